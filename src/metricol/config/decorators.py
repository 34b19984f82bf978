"""Logging and timing decorators for persistence operations.

``log_call`` records entry, exit and failure of a call; ``timed`` records how
long it took and how it ended. Both log through the decorated function's
module logger with ``extra`` fields for structured handlers.
"""

import functools
import logging
import time
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


def log_call(
    logger_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Log each call of the decorated function at DEBUG, and failures at ERROR.

    Args:
        logger_name: Optional logger name (defaults to function module)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        log = logging.getLogger(logger_name or func.__module__)
        label = func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            log.debug("Calling %s", label, extra={"function": label})
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(
                    "%s failed: %s",
                    label,
                    e,
                    extra={"function": label, "error_type": type(e).__name__},
                )
                raise
            log.debug("%s returned %r", label, result, extra={"function": label, "success": True})
            return result

        return wrapper

    return decorator


def timed(
    metric_name: Optional[str] = None,
    level: int = logging.DEBUG,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Log the duration of each call.

    The outcome is ``ok``, ``failed`` (the function returned False) or
    ``error`` (it raised).

    Args:
        metric_name: Optional timer name (defaults to function name)
        level: Log level for the timing record
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = metric_name or func.__name__
        log = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.perf_counter()
            outcome = "error"
            try:
                result = func(*args, **kwargs)
                outcome = "failed" if result is False else "ok"
                return result
            finally:
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                log.log(
                    level,
                    "Timer: %s %s in %.2fms",
                    name,
                    outcome,
                    duration_ms,
                    extra={"metric": name, "duration_ms": duration_ms, "outcome": outcome},
                )

        return wrapper

    return decorator
