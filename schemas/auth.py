from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from schemas.validators import validate_email


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6, max_length=128)
    name: str | None = None
    email: str | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str | None) -> str | None:
        return validate_email(v) if v else None


class LoginRequest(BaseModel):
    username: str
    password: str


class PushTokenRequest(BaseModel):
    push_token: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    username: str
    name: str | None = None
    email: str | None = None


class UserOut(BaseModel):
    id: int
    username: str
    name: str | None
    email: str | None
    role: str
    created_at: datetime | None
    last_signed_in: datetime | None

    class Config:
        from_attributes = True
