from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from .base import CamelModel, RequestModel


class SnippetSort(str, Enum):
    """Orderings for the public gallery."""

    NEWEST = "newest"
    POPULAR = "popular"
    LIKED = "liked"


class DateRange(str, Enum):
    """Search window on creation time."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class SnippetCreate(RequestModel):
    """Code snippet creation request."""

    title: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1)
    language: str = Field(min_length=1, max_length=50)
    category: str = Field(min_length=1, max_length=100)
    tags: List[str] = Field(default_factory=list)
    is_public: bool = True
    allow_comments: bool = True

    @field_validator("title", "code", "language", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("title", "language", "category")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


class SnippetResponse(CamelModel):
    """Code snippet response model."""

    id: UUID
    owner_id: Optional[UUID]
    title: str
    code: str
    language: str
    category: str
    tags: List[str]
    is_public: bool
    allow_comments: bool
    views: int
    likes: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
