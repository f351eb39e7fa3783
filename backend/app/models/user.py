from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional


class User(SQLModel, table=True):
    """User model for authentication and profile management."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    username: str = Field(unique=True, index=True, max_length=50)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)

    # Authentication
    hashed_password: str

    # Email verification
    is_verified: bool = Field(default=False)
    verification_token: Optional[str] = Field(default=None, index=True, max_length=255)
    verification_token_expires: Optional[datetime] = Field(default=None)

    # Password reset
    reset_token: Optional[str] = Field(default=None, index=True, max_length=255)
    reset_token_expires: Optional[datetime] = Field(default=None)

    # Profile
    profile_image_url: Optional[str] = Field(default=None, max_length=500)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
