from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from schemas.validators import validate_email


class FamilyContactCreate(BaseModel):
    contact_name: str = Field(min_length=1, max_length=100)
    contact_email: str
    contact_phone: str | None = Field(default=None, max_length=20)
    relationship: str | None = Field(default=None, max_length=50)
    notify_on_low_stock: bool = True
    notify_on_missed_dose: bool = False

    @field_validator("contact_email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)


class FamilyContactUpdate(BaseModel):
    contact_name: str | None = Field(default=None, min_length=1, max_length=100)
    contact_email: str | None = None
    contact_phone: str | None = Field(default=None, max_length=20)
    relationship: str | None = Field(default=None, max_length=50)
    notify_on_low_stock: bool | None = None
    notify_on_missed_dose: bool | None = None

    @field_validator("contact_email")
    @classmethod
    def check_email(cls, v: str | None) -> str | None:
        return validate_email(v) if v is not None else None


class FamilyContactOut(BaseModel):
    id: int
    contact_name: str
    contact_email: str
    contact_phone: str | None
    relationship: str | None
    notify_on_low_stock: bool
    notify_on_missed_dose: bool
    created_at: datetime | None

    class Config:
        from_attributes = True
