from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from models.medication_log import LogStatus
from schemas.validators import normalize_reminder_time


class MedicationLogCreate(BaseModel):
    medication_id: int
    taken_at: datetime
    scheduled_time: str
    status: LogStatus = LogStatus.taken
    quantity: int = Field(default=1, ge=1)
    notes: str | None = None

    @field_validator("scheduled_time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return normalize_reminder_time(v)


class MedicationLogOut(BaseModel):
    id: int
    medication_id: int
    taken_at: datetime
    scheduled_time: str
    status: LogStatus
    quantity: int
    notes: str | None
    created_at: datetime | None

    class Config:
        from_attributes = True
