"""
Storage layer: every read and write against users, sessions and snippets.

A ``Storage`` wraps the SQLModel session of the current request and is
handed to route handlers through the ``get_storage`` dependency. Failures are
raised as the exceptions in ``exceptions.py``; callers never see SQLAlchemy
errors for conditions a client can cause.
"""

import json
import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import String, cast, delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .security import (
    generate_reset_token,
    generate_session_token,
    generate_verification_token,
    get_password_hash,
    is_expired,
    reset_token_expiry,
    session_expiry,
    verification_token_expiry,
    verify_password,
)
from ..models.session import UserSession
from ..models.snippet import CodeSnippet
from ..models.user import User
from ..schemas.snippet import DateRange, SnippetCreate, SnippetSort

logger = logging.getLogger(__name__)

DATE_RANGE_DAYS = {
    DateRange.DAY: 1,
    DateRange.WEEK: 7,
    DateRange.MONTH: 30,
    DateRange.YEAR: 365,
}

INVALID_CREDENTIALS = "Invalid email or password"


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    # Unknown emails still pay for one bcrypt check
    return get_password_hash("not-a-real-password")


def clean_tags(tags: Optional[List[str]]) -> List[str]:
    """Strip tags and drop blank ones, keeping their order."""
    return [tag.strip() for tag in tags or [] if tag and tag.strip()]


def like_pattern(query: str) -> str:
    """Substring LIKE pattern with wildcards in the query escaped."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def tag_pattern(query: str) -> str:
    """LIKE pattern for the query as it appears inside the JSON text of the tags."""
    return like_pattern(json.dumps(query, ensure_ascii=False)[1:-1])


def snippet_matches(snippet: CodeSnippet, query: str) -> bool:
    """Case-insensitive substring match on title, code or any tag."""
    needle = query.lower()
    if needle in snippet.title.lower() or needle in snippet.code.lower():
        return True
    return any(needle in tag.lower() for tag in snippet.tags or [])


class Storage:
    """Repository over the relational store for one request."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, conflict_message: str = "Resource already exists") -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # Lost a race on a unique column
            raise ConflictError(conflict_message, context={"detail": str(e.orig)})

    # ── Users ─────────────────────────────────────────────────────────────

    def get_user(self, user_id: UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.exec(select(User).where(User.email == email.lower())).first()

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.exec(select(User).where(User.username == username)).first()

    def create_user(
        self,
        email: str,
        username: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        """Create a user after checking email and username are free."""
        email = email.lower()
        if self.get_user_by_email(email):
            raise ConflictError("Email already registered", field="email")
        if self.get_user_by_username(username):
            raise ConflictError("Username already taken", field="username")

        user = User(
            email=email,
            username=username,
            first_name=first_name,
            last_name=last_name,
            hashed_password=get_password_hash(password),
            is_verified=False,
            verification_token=generate_verification_token(),
            verification_token_expires=verification_token_expiry(),
        )
        self.db.add(user)
        self._commit("Email or username already registered")
        self.db.refresh(user)

        logger.info(f"Created user {user.id} ({user.username})")
        return user

    def register(
        self,
        email: str,
        username: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Tuple[User, UserSession]:
        user = self.create_user(email, username, password, first_name, last_name)
        return user, self.create_session(user.id)

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user only if the email exists and the password matches."""
        user = self.get_user_by_email(email)
        if not user:
            verify_password(password, _dummy_password_hash())
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def login(self, email: str, password: str) -> Tuple[User, UserSession]:
        user = self.authenticate(email, password)
        if not user:
            logger.warning("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info(f"User {user.id} logged in")
        return user, self.create_session(user.id)

    def update_profile(
        self,
        user: User,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        username: Optional[str] = None,
        profile_image_url: Optional[str] = None,
    ) -> User:
        """Update the given profile fields; ``None`` leaves a field unchanged."""
        if username is not None and username != user.username:
            existing = self.get_user_by_username(username)
            if existing and existing.id != user.id:
                raise ConflictError("Username already taken", field="username")
            user.username = username

        if first_name is not None:
            user.first_name = first_name
        if last_name is not None:
            user.last_name = last_name
        if profile_image_url is not None:
            user.profile_image_url = profile_image_url or None

        user.updated_at = datetime.utcnow()
        self.db.add(user)
        self._commit("Username already taken")
        self.db.refresh(user)
        return user

    def change_email(self, user: User, new_email: str, password: str) -> User:
        """Move the account to a new address; it must be verified again."""
        if not verify_password(password, user.hashed_password):
            raise AuthenticationError("Password is incorrect")

        new_email = new_email.lower()
        if new_email == user.email:
            raise ValidationError("New email is the same as the current one", field="new_email")

        existing = self.get_user_by_email(new_email)
        if existing and existing.id != user.id:
            raise ConflictError("Email already registered", field="email")

        user.email = new_email
        user.is_verified = False
        user.verification_token = generate_verification_token()
        user.verification_token_expires = verification_token_expiry()
        user.updated_at = datetime.utcnow()
        self.db.add(user)
        self._commit("Email already registered")
        self.db.refresh(user)

        logger.info(f"User {user.id} changed email")
        return user

    def change_password(
        self, user: User, current_password: str, new_password: str
    ) -> UserSession:
        """Set a new password, sign out every session and issue a fresh one."""
        if not verify_password(current_password, user.hashed_password):
            raise AuthenticationError("Current password is incorrect")

        user.hashed_password = get_password_hash(new_password)
        user.updated_at = datetime.utcnow()
        self.db.add(user)
        self.delete_user_sessions(user.id, commit=False)
        self._commit()

        logger.info(f"User {user.id} changed password; all sessions revoked")
        return self.create_session(user.id)

    # ── Password reset ────────────────────────────────────────────────────

    def create_password_reset(self, email: str) -> Optional[Tuple[User, str]]:
        """
        Store a fresh reset token on the user with this email.

        Returns ``None`` for an unknown address. The caller must not reveal
        which case happened.
        """
        user = self.get_user_by_email(email)
        if not user:
            return None

        token = generate_reset_token()
        user.reset_token = token
        user.reset_token_expires = reset_token_expiry()
        user.updated_at = datetime.utcnow()
        self.db.add(user)
        self._commit()

        logger.info(f"Password reset requested for user {user.id}")
        return user, token

    def get_user_by_reset_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        user = self.db.exec(select(User).where(User.reset_token == token)).first()
        if not user or is_expired(user.reset_token_expires):
            return None
        return user

    def reset_password(self, token: str, new_password: str) -> User:
        """Redeem a reset token. The token is cleared so it works only once."""
        user = self.get_user_by_reset_token(token)
        if not user:
            logger.warning("Rejected invalid or expired reset token")
            raise ValidationError("Invalid or expired reset token", field="token")

        user.hashed_password = get_password_hash(new_password)
        user.reset_token = None
        user.reset_token_expires = None
        user.updated_at = datetime.utcnow()
        self.db.add(user)
        self.delete_user_sessions(user.id, commit=False)
        self._commit()
        self.db.refresh(user)

        logger.info(f"Password reset completed for user {user.id}")
        return user

    # ── Email verification ────────────────────────────────────────────────

    def issue_verification_token(self, user: User) -> str:
        if user.is_verified:
            raise ValidationError("Email already verified")

        token = generate_verification_token()
        user.verification_token = token
        user.verification_token_expires = verification_token_expiry()
        self.db.add(user)
        self._commit()
        return token

    def verify_email(self, token: str) -> User:
        user = None
        if token:
            user = self.db.exec(
                select(User).where(User.verification_token == token)
            ).first()
        if not user or is_expired(user.verification_token_expires):
            raise ValidationError("Invalid or expired verification token", field="token")

        user.is_verified = True
        user.verification_token = None
        user.verification_token_expires = None
        user.updated_at = datetime.utcnow()
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        return user

    # ── Sessions ──────────────────────────────────────────────────────────

    def create_session(self, user_id: UUID) -> UserSession:
        now = datetime.utcnow()
        session = UserSession(
            user_id=user_id,
            token=generate_session_token(),
            created_at=now,
            expires_at=session_expiry(now),
        )
        self.db.add(session)
        self._commit()
        self.db.refresh(session)
        return session

    def get_session(self, token: str) -> Optional[UserSession]:
        """Return the live session for a token; expired ones are deleted."""
        if not token:
            return None

        session = self.db.exec(
            select(UserSession).where(UserSession.token == token)
        ).first()
        if not session:
            return None

        if is_expired(session.expires_at):
            self.db.delete(session)
            self.db.commit()
            return None

        return session

    def get_user_by_session(self, token: str) -> Optional[User]:
        session = self.get_session(token)
        if not session:
            return None
        return self.get_user(session.user_id)

    def delete_session(self, token: str) -> bool:
        result = self.db.execute(delete(UserSession).where(UserSession.token == token))
        self.db.commit()
        return result.rowcount > 0

    def delete_user_sessions(self, user_id: UUID, commit: bool = True) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        if commit:
            self.db.commit()
        return result.rowcount

    def purge_expired_sessions(self) -> int:
        result = self.db.execute(
            delete(UserSession).where(UserSession.expires_at <= datetime.utcnow())
        )
        self.db.commit()
        return result.rowcount

    # ── Code snippets ─────────────────────────────────────────────────────

    def create_snippet(
        self, data: SnippetCreate, owner_id: Optional[UUID] = None
    ) -> CodeSnippet:
        now = datetime.utcnow()
        snippet = CodeSnippet(
            owner_id=owner_id,
            title=data.title,
            code=data.code,
            language=data.language,
            category=data.category,
            tags=clean_tags(data.tags),
            is_public=data.is_public,
            allow_comments=data.allow_comments,
            created_at=now,
            updated_at=now,
        )
        self.db.add(snippet)
        self._commit()
        self.db.refresh(snippet)

        logger.info(f"Created snippet {snippet.id} (owner={owner_id or 'anonymous'})")
        return snippet

    def get_snippet(self, snippet_id: UUID) -> Optional[CodeSnippet]:
        return self.db.get(CodeSnippet, snippet_id)

    def _increment(self, snippet_id: UUID, **counters) -> bool:
        values = {
            name: getattr(CodeSnippet, name) + amount
            for name, amount in counters.items()
        }
        values["updated_at"] = datetime.utcnow()
        result = self.db.execute(
            update(CodeSnippet).where(CodeSnippet.id == snippet_id).values(**values)
        )
        self.db.commit()
        return result.rowcount > 0

    def increment_views(self, snippet_id: UUID) -> bool:
        return self._increment(snippet_id, views=1)

    def view_snippet(self, snippet_id: UUID) -> CodeSnippet:
        """Count one view and return the snippet including it."""
        if not self.increment_views(snippet_id):
            raise NotFoundError("snippet", str(snippet_id))
        snippet = self.get_snippet(snippet_id)
        self.db.refresh(snippet)
        return snippet

    def like_snippet(self, snippet_id: UUID) -> CodeSnippet:
        """
        Add one like.

        There is no per-user like state, so every call counts and the
        operation is not idempotent.
        """
        if not self._increment(snippet_id, likes=1):
            raise NotFoundError("snippet", str(snippet_id))
        snippet = self.get_snippet(snippet_id)
        self.db.refresh(snippet)
        return snippet

    def list_public_snippets(
        self,
        sort: SnippetSort = SnippetSort.NEWEST,
        language: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[CodeSnippet]:
        statement = select(CodeSnippet).where(CodeSnippet.is_public == True)  # noqa: E712
        if language:
            statement = statement.where(CodeSnippet.language == language)
        if category:
            statement = statement.where(CodeSnippet.category == category)

        if sort == SnippetSort.POPULAR:
            statement = statement.order_by(CodeSnippet.views.desc(), CodeSnippet.created_at.desc())
        elif sort == SnippetSort.LIKED:
            statement = statement.order_by(CodeSnippet.likes.desc(), CodeSnippet.created_at.desc())
        else:
            statement = statement.order_by(CodeSnippet.created_at.desc())

        return list(self.db.exec(statement.offset(offset).limit(limit)).all())

    def list_snippets_by_owner(self, owner_id: UUID) -> List[CodeSnippet]:
        statement = (
            select(CodeSnippet)
            .where(CodeSnippet.owner_id == owner_id)
            .order_by(CodeSnippet.created_at.desc())
        )
        return list(self.db.exec(statement).all())

    def search_snippets(
        self,
        query: str,
        language: Optional[str] = None,
        category: Optional[str] = None,
        date_range: Optional[DateRange] = None,
    ) -> List[CodeSnippet]:
        """Search public snippets by title, code or tag."""
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query is required", field="q")

        statement = select(CodeSnippet).where(CodeSnippet.is_public == True)  # noqa: E712

        # SQLite's lower() only folds ASCII, so there the text match runs in Python alone
        if self.db.get_bind().dialect.name != "sqlite":
            pattern = like_pattern(query)
            statement = statement.where(
                or_(
                    CodeSnippet.title.ilike(pattern, escape="\\"),
                    CodeSnippet.code.ilike(pattern, escape="\\"),
                    cast(CodeSnippet.tags, String).ilike(tag_pattern(query), escape="\\"),
                )
            )
        if language:
            statement = statement.where(CodeSnippet.language == language)
        if category:
            statement = statement.where(CodeSnippet.category == category)
        if date_range:
            cutoff = datetime.utcnow() - timedelta(days=DATE_RANGE_DAYS[date_range])
            statement = statement.where(CodeSnippet.created_at >= cutoff)

        statement = statement.order_by(CodeSnippet.created_at.desc())

        # The tag column is matched on its JSON text; confirm per tag
        return [s for s in self.db.exec(statement).all() if snippet_matches(s, query)]

    def delete_snippet(self, snippet_id: UUID, user: User) -> None:
        """Delete a snippet; only its owner may do so."""
        snippet = self.get_snippet(snippet_id)
        if not snippet:
            raise NotFoundError("snippet", str(snippet_id))
        if snippet.owner_id is None or snippet.owner_id != user.id:
            raise PermissionDeniedError("Only the owner can delete this snippet")

        self.db.delete(snippet)
        self._commit()
        logger.info(f"User {user.id} deleted snippet {snippet_id}")
