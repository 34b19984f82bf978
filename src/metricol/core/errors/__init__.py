"""Unified error hierarchy for metricol.

All custom exception classes are defined in domain-specific modules within
this package. This __init__.py re-exports everything for convenient access.

Usage:
    from metricol.core.errors import KindMismatch, NotFound
    from metricol.core.errors import error_to_response
"""

# --- Base / Registry ---
from metricol.core.errors.base import ERROR_MAPPINGS, ErrorCode, error_to_response

# --- Metric errors ---
from metricol.core.errors.metrics import (
    AlreadyRegistered,
    InvalidValue,
    KindMismatch,
    MetricError,
    NotFound,
    NotRegistered,
)

# --- Storage errors ---
from metricol.core.errors.storage import PersistenceUnavailable

__all__ = [
    # Base / Registry
    "ERROR_MAPPINGS",
    "ErrorCode",
    "error_to_response",
    # Metric errors
    "MetricError",
    "InvalidValue",
    "KindMismatch",
    "NotFound",
    "AlreadyRegistered",
    "NotRegistered",
    # Storage errors
    "PersistenceUnavailable",
]
