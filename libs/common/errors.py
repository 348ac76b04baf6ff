"""
Domain errors shared by every service.

Operations raise these; the HTTP layer (libs.common.error_handler) maps them to
status codes and the ``{ok, error}`` envelope.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    default_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DomainError):
    """A required field is missing or malformed. Always client-correctable."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(DomainError):
    """A referenced record does not exist or is soft-deleted."""

    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(DomainError):
    """A uniqueness rule was violated (duplicate slug, full lesson, ...)."""

    status_code = 409
    default_code = "CONFLICT"


class DependencyError(DomainError):
    """
    The storage layer failed for a reason other than the above.

    ``message`` is what clients see; the original exception is chained as
    ``__cause__`` and only ever logged.
    """

    status_code = 500
    default_code = "DEPENDENCY_ERROR"

    def __init__(
        self,
        message: str = "Server error",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
