from typing import Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from ..core.config import settings
from .base import CamelModel, RequestModel
from .user import UserResponse

USERNAME_PATTERN = r"^[A-Za-z0-9_-]+$"


class UserRegister(RequestModel):
    """User registration request."""

    email: EmailStr
    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH, max_length=128)
    confirm_password: Optional[str] = None
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class UserLogin(RequestModel):
    """User login request."""

    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class AuthResponse(CamelModel):
    """Session issued on register or login."""

    user: UserResponse
    token: str
    token_type: str = "bearer"


class ForgotPasswordRequest(RequestModel):
    """Password reset request."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class ResetPasswordRequest(RequestModel):
    """Redeem a reset token for a new password."""

    token: str = Field(min_length=1)
    password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH, max_length=128)
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class VerifyEmailRequest(RequestModel):
    """Email verification request."""

    token: str = Field(min_length=1)


class MessageResponse(CamelModel):
    message: str
