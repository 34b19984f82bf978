"""Parsing helpers for configuration values.

Provides boolean and duration parsing used by the other config sub-modules.
"""

import logging
import math
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _parse_duration(value: Any) -> float:
    """Parse a duration in seconds.

    Accepts plain numbers (seconds) or strings with an ``ms``, ``s``, ``m``
    or ``h`` suffix: ``"300"``, ``"10s"``, ``"5m"``.

    Raises:
        ValueError: If the value is not a finite, non-negative duration
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        try:
            seconds = float(value)
        except OverflowError:
            raise ValueError(f"Duration out of range: {value!r}") from None
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        seconds = float(amount) * _DURATION_UNITS[(unit or "s").lower()]
    if not math.isfinite(seconds):
        raise ValueError(f"Duration must be finite, got {value!r}")
    if seconds < 0:
        raise ValueError(f"Duration must be >= 0, got {value!r}")
    return seconds
