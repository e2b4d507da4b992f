# commerce_kernel/errors.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple

import structlog
from sqlalchemy.exc import IntegrityError, NoResultFound

logger = structlog.get_logger(__name__)


class ErrorType(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_DATA = "invalid_data"
    DUPLICATE_ERROR = "duplicate_error"
    NOT_ALLOWED = "not_allowed"
    UNEXPECTED_STATE = "unexpected_state"
    DB_ERROR = "database_error"


# ErrorType -> (envelope code, status)
_STATUS: Dict[ErrorType, Tuple[str, int]] = {
    ErrorType.NOT_FOUND: ("NOT_FOUND", 404),
    ErrorType.INVALID_DATA: ("BAD_REQUEST", 400),
    ErrorType.DUPLICATE_ERROR: ("CONFLICT", 409),
    ErrorType.NOT_ALLOWED: ("NOT_ALLOWED", 400),
    ErrorType.UNEXPECTED_STATE: ("UNEXPECTED_STATE", 409),
    ErrorType.DB_ERROR: ("SERVER_ERROR", 500),
}


class KernelError(Exception):
    """Domain error raised by services; `type` drives the envelope mapping."""

    def __init__(self, type_: ErrorType, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.type = type_
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return f"KernelError({self.type.value!r}, {self.message!r})"


def error_envelope(code: str, message: str, details=None):
    return {"error": {"code": code, "message": message, "details": details or {}}}


def envelope_for(exc: Exception) -> Tuple[Dict[str, Any], int]:
    """Translate any exception into (envelope, status) for an outer web layer."""
    if isinstance(exc, KernelError):
        code, status = _STATUS[exc.type]
        return error_envelope(code, exc.message, exc.details), status
    if isinstance(exc, IntegrityError):
        return error_envelope("CONFLICT", "Integrity violation"), 409
    if isinstance(exc, NoResultFound):
        return error_envelope("NOT_FOUND", "Resource not found"), 404
    if isinstance(exc, ValueError):
        return error_envelope("BAD_REQUEST", str(exc)), 400
    logger.error("unexpected error", error=type(exc).__name__, detail=str(exc))
    return error_envelope("SERVER_ERROR", "Unexpected error"), 500
