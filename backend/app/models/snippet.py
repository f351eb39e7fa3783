from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Text, JSON
from uuid import UUID, uuid4
from datetime import datetime
from typing import List, Optional


class CodeSnippet(SQLModel, table=True):
    """Shared piece of code with its listing metadata."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Anonymous snippets have no owner
    owner_id: Optional[UUID] = Field(default=None, foreign_key="user.id", index=True)

    title: str = Field(max_length=200)
    code: str = Field(sa_column=Column(Text, nullable=False))
    language: str = Field(max_length=50, index=True)
    category: str = Field(max_length=100, index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Visibility and interaction settings
    is_public: bool = Field(default=True, index=True)
    allow_comments: bool = Field(default=True)

    # Counters, only ever changed through atomic UPDATEs
    views: int = Field(default=0)
    likes: int = Field(default=0)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
