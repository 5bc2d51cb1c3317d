"""
Domain error taxonomy.

Services raise these; the API layer renders them with a single exception
handler (see app.main) using the envelope
``{"error": {"code": ..., "message": ..., "status": ...}}``.
"""

from __future__ import annotations


class CorkboardError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": self.status_code,
            }
        }


class Unauthorized(CorkboardError):
    """No caller identity or no active organization."""

    status_code = 401
    code = "UNAUTHORIZED"


class AccessDenied(CorkboardError):
    """Target belongs to a different organization than the caller."""

    status_code = 403
    code = "ACCESS_DENIED"


class CSRFRejected(AccessDenied):
    """Invalid or missing CSRF token."""

    code = "CSRF_VALIDATION_FAILED"


class NotFound(CorkboardError):
    """Target does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class Conflict(CorkboardError):
    """A concurrent write already changed this state."""

    status_code = 409
    code = "CONFLICT"


class ValidationError(CorkboardError):
    """Malformed payload or argument."""

    status_code = 422
    code = "VALIDATION_ERROR"
