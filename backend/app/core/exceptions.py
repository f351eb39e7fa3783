"""
Application exception hierarchy.

The storage layer and route handlers raise these; the handlers registered in
``main.py`` turn each one into a JSON body of the form
``{"error": <code>, "message": <text>}`` with the matching HTTP status.

    SnippetShareError          500  server_error
    ├── ValidationError        400  validation_error
    ├── AuthenticationError    401  unauthorized
    ├── PermissionDeniedError  403  forbidden
    ├── NotFoundError          404  not_found
    └── ConflictError          409  conflict
"""

from typing import Any, Dict, Optional


class SnippetShareError(Exception):
    """Base class for all application errors."""

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        # Logged server-side only, never returned to the client
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SnippetShareError):
    """Client input failed a business rule."""

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(SnippetShareError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Not authenticated",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(SnippetShareError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SnippetShareError):
    """Requested resource does not exist."""

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(SnippetShareError):
    """A unique value (email, username) is already taken."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
