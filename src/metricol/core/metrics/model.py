"""Metric value type and backup record model.

A metric is identified by its name and carries a kind that decides how
updates are applied: counters accumulate integer deltas, gauges replace
their floating-point value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from metricol.core.errors.metrics import InvalidValue

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

MetricValue = Union[int, float]


class MetricKind(str, Enum):
    """Supported metric kinds."""

    COUNTER = "counter"
    GAUGE = "gauge"

    @classmethod
    def parse(cls, raw: Any) -> "MetricKind":
        """Resolve a kind from an enum member or its wire text."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise InvalidValue(f"Unknown metric kind: {raw!r}", kind=str(raw)) from None


def _parse_counter(name: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise InvalidValue("Counter value must be an integer, got bool", kind="counter", name=name, value=raw)
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        # JSON writers may emit integral counters as 5.0
        if not math.isfinite(raw) or not raw.is_integer():
            raise InvalidValue(
                f"Counter value must be an integer, got {raw!r}", kind="counter", name=name, value=raw
            )
        value = int(raw)
    elif isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError:
            raise InvalidValue(
                f"Counter value must be an integer, got {raw!r}", kind="counter", name=name, value=raw
            ) from None
    else:
        raise InvalidValue(
            f"Counter value must be an integer, got {type(raw).__name__}", kind="counter", name=name, value=raw
        )

    _check_int64(name, value)
    return value


def _parse_gauge(name: str, raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise InvalidValue(
            f"Gauge value must be a number, got {type(raw).__name__}", kind="gauge", name=name, value=raw
        )
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (ValueError, OverflowError):
        raise InvalidValue(f"Gauge value must be a number, got {raw!r}", kind="gauge", name=name, value=raw) from None
    if not math.isfinite(value):
        raise InvalidValue(f"Gauge value must be finite, got {raw!r}", kind="gauge", name=name, value=raw)
    return value


def _check_int64(name: str, value: int) -> None:
    if not INT64_MIN <= value <= INT64_MAX:
        raise InvalidValue(
            f"Counter value {value} is outside the signed 64-bit range", kind="counter", name=name, value=value
        )


def parse_value(kind: MetricKind, name: str, raw: Any) -> MetricValue:
    """Parse a raw wire value according to the metric kind.

    Raises:
        InvalidValue: If the value cannot be interpreted as ``kind``
    """
    if kind is MetricKind.COUNTER:
        return _parse_counter(name, raw)
    return _parse_gauge(name, raw)


@dataclass
class Metric:
    """A named counter or gauge.

    Attributes:
        kind: Counter or gauge; fixed at creation
        name: Non-empty identifier
        value: int for counters, float for gauges
    """

    kind: MetricKind
    name: str
    value: MetricValue

    def __post_init__(self) -> None:
        # Direct construction and copy() are checked like from_raw
        self.kind = MetricKind.parse(self.kind)
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidValue(
                "Metric name must be a non-empty string", kind=self.kind.value, value=self.value
            )
        self.value = parse_value(self.kind, self.name, self.value)

    @classmethod
    def from_raw(cls, kind: Any, name: str, raw: Any) -> "Metric":
        """Build a metric from wire-level kind, name and value.

        Raises:
            InvalidValue: On unknown kind, empty name or unparsable value
        """
        return cls(kind=kind, name=name, value=raw)

    @classmethod
    def counter(cls, name: str, value: Any = 0) -> "Metric":
        return cls.from_raw(MetricKind.COUNTER, name, value)

    @classmethod
    def gauge(cls, name: str, value: Any = 0.0) -> "Metric":
        return cls.from_raw(MetricKind.GAUGE, name, value)

    @property
    def key(self) -> tuple:
        return (self.kind.value, self.name)

    def update(self, raw: Any) -> "Metric":
        """Apply an update in place: add for counters, replace for gauges.

        Raises:
            InvalidValue: If ``raw`` does not parse as this metric's kind, or
                a counter would leave the signed 64-bit range
        """
        delta = parse_value(self.kind, self.name, raw)
        if self.kind is MetricKind.COUNTER:
            total = int(self.value) + int(delta)
            _check_int64(self.name, total)
            self.value = total
        else:
            self.value = delta
        return self

    def copy(self) -> "Metric":
        return Metric(kind=self.kind, name=self.name, value=self.value)

    def string_value(self) -> str:
        """Render the value in the kind's canonical text form."""
        if self.kind is MetricKind.COUNTER:
            return str(int(self.value))
        return repr(float(self.value))

    def to_record(self) -> Dict[str, Any]:
        """Convert to the backup record dict."""
        return {"kind": self.kind.value, "name": self.name, "value": self.value}

    def __str__(self) -> str:
        return f"{self.kind.value} {self.name}={self.string_value()}"


class MetricRecord(BaseModel):
    """One decoded backup line.

    Older backups wrote the kind under ``type``; both keys are accepted.
    Unknown fields are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    kind: str = Field(..., validation_alias=AliasChoices("kind", "type"))
    name: str = Field(..., min_length=1)
    value: Any = Field(...)

    def to_metric(self) -> Metric:
        """Validate the record against its kind.

        Raises:
            InvalidValue: If the kind is unknown or the value does not fit it
        """
        return Metric.from_raw(self.kind, self.name, self.value)
