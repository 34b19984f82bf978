"""Metric and repository error classes.

Raised by the metric model and repositories and returned to the immediate
caller; the serving layer translates them into responses.
"""

from typing import Any, Optional


class MetricError(Exception):
    """Base exception for metric and repository errors."""


class InvalidValue(MetricError):
    """Raised when a value cannot be interpreted as the metric's kind.

    Attributes:
        kind: Declared kind of the metric (raw text if unknown)
        name: Metric name
        value: The rejected raw value
    """

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[str] = None,
        name: Optional[str] = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.name = name
        self.value = value


class KindMismatch(MetricError):
    """Raised when a name is updated with a kind other than the stored one."""

    def __init__(self, name: str, stored: str, requested: str) -> None:
        self.name = name
        self.stored_kind = stored
        self.requested_kind = requested
        super().__init__(
            f"Metric '{name}' is stored as {stored}, cannot update it as {requested}"
        )


class NotFound(MetricError):
    """Raised when a requested metric is absent."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"Metric not found: kind={kind}, name={name}")


class AlreadyRegistered(MetricError):
    """Raised when the same observer is registered twice."""


class NotRegistered(MetricError):
    """Raised when removing an observer that was never registered."""
