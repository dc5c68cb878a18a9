import json

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func

from database import Base


class Medication(Base):
    __tablename__ = "medications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    dosage = Column(String(100), nullable=False)       # e.g. "1 tablet", "5 ml"
    frequency = Column(String(100), nullable=False)    # e.g. "3 times a day"
    times_per_day = Column(Integer, nullable=False, default=1)
    reminder_times = Column(Text, nullable=False, default="[]")  # JSON array of "HH:mm"
    total_quantity = Column(Integer, nullable=False)
    remaining_quantity = Column(Integer, nullable=False)
    dosage_per_time = Column(Integer, nullable=False, default=1)
    start_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def reminder_time_list(self) -> list[str]:
        try:
            times = json.loads(self.reminder_times or "[]")
        except (TypeError, ValueError):
            return []
        if not isinstance(times, list):
            return []
        return [str(t) for t in times]

    @reminder_time_list.setter
    def reminder_time_list(self, times: list[str]) -> None:
        self.reminder_times = json.dumps(list(times))
