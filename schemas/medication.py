from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from schemas.validators import normalize_reminder_time


class MedicationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    dosage: str = Field(min_length=1, max_length=100)
    frequency: str = Field(min_length=1, max_length=100)
    times_per_day: int = Field(ge=1, le=10)
    reminder_times: list[str] = Field(min_length=1)
    total_quantity: int = Field(ge=1)
    remaining_quantity: int = Field(ge=0)
    dosage_per_time: int = Field(default=1, ge=1)
    start_date: datetime
    notes: str | None = None

    @field_validator("reminder_times")
    @classmethod
    def check_times(cls, v: list[str]) -> list[str]:
        return [normalize_reminder_time(t) for t in v]


class MedicationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    dosage: str | None = Field(default=None, min_length=1, max_length=100)
    frequency: str | None = Field(default=None, min_length=1, max_length=100)
    times_per_day: int | None = Field(default=None, ge=1, le=10)
    reminder_times: list[str] | None = Field(default=None, min_length=1)
    total_quantity: int | None = Field(default=None, ge=1)
    remaining_quantity: int | None = Field(default=None, ge=0)
    dosage_per_time: int | None = Field(default=None, ge=1)
    notes: str | None = None

    @field_validator("reminder_times")
    @classmethod
    def check_times(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return [normalize_reminder_time(t) for t in v]


class RefillRequest(BaseModel):
    add_quantity: int = Field(ge=1)


class MedicationOut(BaseModel):
    id: int
    name: str
    dosage: str
    frequency: str
    times_per_day: int
    reminder_times: list[str]
    total_quantity: int
    remaining_quantity: int
    dosage_per_time: int
    start_date: datetime
    notes: str | None
    is_active: bool
    created_at: datetime | None
    daily_usage: int
    days_remaining: int
    predicted_exhaust_date: datetime | None


class CreatedOut(BaseModel):
    id: int


class SuccessOut(BaseModel):
    success: bool = True
