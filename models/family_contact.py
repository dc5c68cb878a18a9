from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base


class FamilyContact(Base):
    __tablename__ = "family_contacts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    contact_name = Column(String(100), nullable=False)
    contact_email = Column(String(320), nullable=False)
    contact_phone = Column(String(20), nullable=True)
    relationship = Column(String(50), nullable=True)  # e.g. "son", "daughter", "friend"
    notify_on_low_stock = Column(Boolean, nullable=False, default=True)
    notify_on_missed_dose = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
