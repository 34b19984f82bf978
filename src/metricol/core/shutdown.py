"""Graceful shutdown coordination.

Collects cleanup handlers (e.g. the backup manager's final flush) and runs
them when the process receives SIGINT or SIGTERM. Handlers run concurrently
and share one grace period; whatever is still running when it elapses is
abandoned so the process can exit.
"""

import logging
import math
import signal
import threading
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

ShutdownHandler = Callable[[], Any]

DEFAULT_SIGNALS: Tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)

# How often the waiting thread checks for a received signal
_WAIT_POLL_SECONDS = 0.1


class ShutdownManager:
    """Runs registered cleanup handlers within a bounded grace period."""

    def __init__(self, grace_period: float = 5.0, logger: Optional[logging.Logger] = None) -> None:
        if not math.isfinite(grace_period) or grace_period < 0:
            raise ValueError(f"Grace period must be a finite number >= 0, got {grace_period}")
        self.grace_period = grace_period
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._handlers: List[Tuple[str, ShutdownHandler]] = []
        self._lock = threading.Lock()
        self._triggered = threading.Event()
        self._received: Optional[str] = None

    def add_handler(self, handler: ShutdownHandler, name: Optional[str] = None) -> None:
        """Register a zero-argument cleanup callable."""
        with self._lock:
            self._handlers.append((name or getattr(handler, "__qualname__", repr(handler)), handler))

    @property
    def triggered(self) -> bool:
        return self._triggered.is_set()

    def trigger(self, reason: str = "manual") -> None:
        """Release a thread blocked in ``wait``."""
        self._received = reason
        self._triggered.set()

    def wait(self, signals: Sequence[signal.Signals] = DEFAULT_SIGNALS) -> bool:
        """Block until a termination signal (or ``trigger``), then shut down.

        Must be called from the main thread, where Python delivers signals.

        Returns:
            The result of ``shutdown()``
        """

        def _on_signal(signum: int, frame: Any) -> None:
            # Event.set may deadlock inside a signal handler; only record it
            self._received = signal.Signals(signum).name

        previous = {sig: signal.signal(sig, _on_signal) for sig in signals}
        try:
            while self._received is None and not self._triggered.is_set():
                time.sleep(_WAIT_POLL_SECONDS)
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
        self._triggered.set()

        self._logger.info("Shutdown signal received: %s. Cleaning up...", self._received)
        return self.shutdown()

    def shutdown(self) -> bool:
        """Run every handler concurrently and wait up to the grace period.

        Handler exceptions are logged, never raised.

        Returns:
            True if every handler finished within the grace period
        """
        with self._lock:
            handlers = list(self._handlers)

        deadline = time.monotonic() + self.grace_period
        threads = []
        for name, handler in handlers:
            thread = threading.Thread(
                target=self._run_handler,
                args=(name, handler),
                name=f"shutdown:{name}",
                daemon=True,
            )
            thread.start()
            threads.append(thread)

        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))

        pending = [t.name for t in threads if t.is_alive()]
        if pending:
            self._logger.error(
                "Grace period of %ss elapsed with handlers still running: %s",
                self.grace_period,
                ", ".join(pending),
            )
            return False

        self._logger.info("Shutdown ended.")
        return True

    def _run_handler(self, name: str, handler: ShutdownHandler) -> None:
        try:
            handler()
        except Exception as e:
            self._logger.error(
                "Error occurred while shutting down %s: %s",
                name,
                e,
                extra={"handler": name, "error_type": type(e).__name__},
            )
