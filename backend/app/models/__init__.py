"""
SQLModel models for the Snippet Share application.

This module exports all database models for use with Alembic migrations
and throughout the application.
"""

from .user import User
from .session import UserSession
from .snippet import CodeSnippet

# Export all models for Alembic auto-generation
__all__ = [
    "User",
    "UserSession",
    "CodeSnippet",
]
