"""
Domain errors raised by the service layer.

Each error maps to exactly one HTTP outcome; the mapping is applied once, in
the exception handler registered by ``club_backend.api.main``.
"""

from typing import Optional


class ClubError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None, field: Optional[str] = None):
        self.detail = detail or self.default_detail
        self.field = field
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        body = {"detail": self.detail}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(ClubError):
    """Malformed, missing or out-of-range input."""

    status_code = 422
    default_detail = "Invalid input"


class NotFound(ClubError):
    """Referenced entity does not exist."""

    status_code = 404
    default_detail = "Not found"


class Forbidden(ClubError):
    """Role or team scoping check failed."""

    status_code = 403
    default_detail = "Forbidden"


class Unauthorized(ClubError):
    """No valid caller identity."""

    status_code = 401
    default_detail = "Not authenticated"


class Conflict(ClubError):
    """Uniqueness invariant violated."""

    status_code = 409
    default_detail = "Conflict"


class InternalError(ClubError):
    """Unexpected failure in a collaborator. Detail is never shown to callers."""

    status_code = 500

    def to_dict(self) -> dict:
        return {"detail": self.default_detail}
