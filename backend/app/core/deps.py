from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .database import get_db
from .exceptions import AuthenticationError
from .storage import Storage
from ..models.user import User

# auto_error=False so a missing header gets the same 401 body as a bad token
security = HTTPBearer(auto_error=False)


def get_storage(db: Session = Depends(get_db)) -> Storage:
    """Storage bound to the request's database session."""
    return Storage(db)


def get_session_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Bearer token from the Authorization header, if any."""
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    storage: Storage = Depends(get_storage),
) -> User:
    """Get the current authenticated user."""
    user = storage.get_user_by_session(token) if token else None
    if user is None:
        # Same answer for missing, unknown and expired tokens
        raise AuthenticationError("Not authenticated")
    return user


def get_optional_user(
    token: Optional[str] = Depends(get_session_token),
    storage: Storage = Depends(get_storage),
) -> Optional[User]:
    """None when no token is sent; a token that is sent must be valid."""
    if not token:
        return None
    return get_current_user(token, storage)
