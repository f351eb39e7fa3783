from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4
from datetime import datetime


class UserSession(SQLModel, table=True):
    """Login session identified by an opaque bearer token."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    token: str = Field(unique=True, index=True, max_length=255)

    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
