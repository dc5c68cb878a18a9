from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Enum as SAEnum
from sqlalchemy.sql import func
import enum

from database import Base


class NotificationType(str, enum.Enum):
    low_stock = "low_stock"
    out_of_stock = "out_of_stock"
    missed_dose = "missed_dose"
    reminder = "reminder"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    contact_id = Column(Integer, ForeignKey("family_contacts.id"), nullable=True)  # null: addressed to the user
    medication_id = Column(Integer, ForeignKey("medications.id"), nullable=True)
    type = Column(SAEnum(NotificationType), nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    sent_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
