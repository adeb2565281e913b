"""Domain error taxonomy.

Every error the service layer raises on purpose derives from :class:`AppError`.
The handler registered in ``roleboard.main`` renders them as::

    {"error": "<code>", "message": "<text>", "details": [...]}

with the HTTP status carried by the class.
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    error: str = "internal_server_error"

    def __init__(
        self,
        message: str,
        details: Optional[List[Any]] = None,
        error: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if error:
            self.error = error

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """Missing or malformed input, weak password, invalid permission set."""

    status_code = 400
    error = "validation_error"


class AuthenticationError(AppError):
    """Missing/invalid/expired token or inactive account."""

    status_code = 401
    error = "authentication_failed"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class AuthorizationError(AppError):
    """Valid identity, insufficient role or permission."""

    status_code = 403
    error = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error = "not_found"


class ConflictError(AppError):
    status_code = 409
    error = "conflict"


class StorageError(AppError):
    """Both the persistent and the fallback storage paths failed."""

    status_code = 500
    error = "internal_server_error"
