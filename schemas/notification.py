from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from models.notification import NotificationType
from schemas.validators import validate_email


class NotificationOut(BaseModel):
    id: int
    user_id: int
    contact_id: int | None
    medication_id: int | None
    type: NotificationType
    title: str
    content: str
    is_read: bool
    sent_at: datetime
    created_at: datetime | None

    class Config:
        from_attributes = True


class CheckAndNotifyOut(BaseModel):
    notifications_sent: int
    emails_sent: int
    low_stock_count: int


class SmtpConfigIn(BaseModel):
    smtp_host: str = Field(min_length=1)
    smtp_port: int = Field(default=465, ge=1, le=65535)
    smtp_user: str = Field(min_length=1)
    smtp_pass: str = Field(min_length=1)
    smtp_from: str | None = None
    smtp_secure: bool = True
    is_enabled: bool = True


class SmtpTestIn(BaseModel):
    smtp_host: str = Field(min_length=1)
    smtp_port: int = Field(ge=1, le=65535)
    smtp_user: str = Field(min_length=1)
    smtp_pass: str = Field(min_length=1)
    smtp_secure: bool
    smtp_from: str | None = None
    test_email: str

    @field_validator("test_email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)


class SendTestEmailIn(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)


class SmtpStatusOut(BaseModel):
    configured: bool
    is_enabled: bool = False
    host: str | None = None
    sender: str | None = None
    smtp_host: str | None = None
    smtp_port: int | None = None
    smtp_user: str | None = None
    smtp_secure: bool | None = None
    smtp_from: str | None = None
