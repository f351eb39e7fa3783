import secrets
from datetime import datetime, timedelta
from typing import Optional

import bcrypt

from .config import settings

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            _password_bytes(plain_password), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed hash in the database
        return False


def generate_session_token() -> str:
    """Generate an opaque session token."""
    return secrets.token_urlsafe(32)


def generate_reset_token() -> str:
    """Generate a single-use password reset token."""
    return secrets.token_urlsafe(32)


def generate_verification_token() -> str:
    """Generate a secure email verification token."""
    return secrets.token_urlsafe(32)


def session_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.utcnow()) + timedelta(days=settings.SESSION_EXPIRE_DAYS)


def reset_token_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.utcnow()) + timedelta(
        minutes=settings.RESET_TOKEN_EXPIRE_MINUTES
    )


def verification_token_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.utcnow()) + timedelta(
        hours=settings.VERIFICATION_TOKEN_EXPIRE_HOURS
    )


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """A missing expiry counts as expired."""
    if expires_at is None:
        return True
    return expires_at <= (now or datetime.utcnow())
