from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import EmailStr, Field, field_validator, model_validator

from ..core.config import settings
from .base import CamelModel, RequestModel


class UserResponse(CamelModel):
    """User response model."""

    id: UUID
    email: EmailStr
    username: str
    first_name: Optional[str]
    last_name: Optional[str]
    profile_image_url: Optional[str]
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(RequestModel):
    """Profile update request."""

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    username: Optional[str] = Field(
        default=None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_-]+$"
    )
    profile_image_url: Optional[str] = Field(default=None, max_length=500)


class EmailChange(RequestModel):
    """Email change request, confirmed with the current password."""

    new_email: EmailStr
    password: str

    @field_validator("new_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class PasswordChange(RequestModel):
    """Password change request."""

    current_password: str
    new_password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH, max_length=128)
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.new_password:
            raise ValueError("Passwords do not match")
        return self


class PasswordChangeResponse(CamelModel):
    """Password changed; every other session was signed out."""

    message: str
    token: str
