"""Uniform response envelope: ``{"ok": true, "data": ...}`` / ``{"ok": false, "error": ...}``."""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    ok: bool = True
    data: Optional[T] = None


class ErrorEnvelope(BaseModel):
    ok: bool = False
    error: str
    code: str
    details: Optional[Dict[str, Any]] = None


def ok(data: Any = None) -> Dict[str, Any]:
    """Wrap a successful result."""
    return {"ok": True, "data": data}


def fail(error: str, code: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Build the body of a failed response."""
    body = ErrorEnvelope(error=error, code=code, details=details or None)
    return body.model_dump(exclude_none=True)
