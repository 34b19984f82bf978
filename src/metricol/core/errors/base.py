"""Error-to-response mapping registry.

Provides a centralized mapping from exception types to (ErrorCode, HTTP status)
tuples so the serving layer can translate repository errors consistently.

Usage:
    from metricol.core.errors.base import error_to_response

    try:
        repository.update_raw(kind, name, raw)
    except Exception as e:
        result = error_to_response(e)
        if result is not None:
            return result
        raise  # Unknown error, re-raise
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type

from metricol.core.errors.metrics import (
    AlreadyRegistered,
    InvalidValue,
    KindMismatch,
    NotFound,
    NotRegistered,
)
from metricol.core.errors.storage import PersistenceUnavailable


class ErrorCode(str, Enum):
    """Machine-readable error codes for metric responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    UNAVAILABLE = "UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_MAPPINGS: Dict[Type[Exception], Tuple[ErrorCode, int]] = {
    # --- Metric errors ---
    InvalidValue: (ErrorCode.VALIDATION_ERROR, 400),
    KindMismatch: (ErrorCode.CONFLICT, 409),
    NotFound: (ErrorCode.NOT_FOUND, 404),
    # --- Observer wiring errors ---
    AlreadyRegistered: (ErrorCode.CONFLICT, 409),
    NotRegistered: (ErrorCode.NOT_FOUND, 404),
    # --- Storage errors ---
    PersistenceUnavailable: (ErrorCode.UNAVAILABLE, 503),
}


def error_to_response(exc: Exception) -> Optional[Dict[str, Any]]:
    """Convert a known exception to a standard error response dict, or None if unknown.

    Looks up the exception's *exact* type in ERROR_MAPPINGS.

    Args:
        exc: The exception to convert.

    Returns:
        A dict with ``success``, ``error``, ``error_code`` and ``status`` keys,
        or None if the exception type is not registered in ERROR_MAPPINGS.
    """
    mapping = ERROR_MAPPINGS.get(type(exc))
    if mapping is None:
        return None

    code, status = mapping
    return {
        "success": False,
        "error": str(exc),
        "error_code": code.value,
        "status": status,
    }
