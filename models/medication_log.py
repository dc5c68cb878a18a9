from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum as SAEnum
from sqlalchemy.sql import func
import enum

from database import Base


class LogStatus(str, enum.Enum):
    taken = "taken"
    skipped = "skipped"
    late = "late"


class MedicationLog(Base):
    __tablename__ = "medication_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    medication_id = Column(Integer, ForeignKey("medications.id"), nullable=False, index=True)
    taken_at = Column(DateTime(timezone=True), nullable=False, index=True)
    scheduled_time = Column(String(10), nullable=False)  # "HH:mm"
    status = Column(SAEnum(LogStatus), nullable=False, default=LogStatus.taken)
    quantity = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
