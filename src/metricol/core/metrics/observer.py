"""Change notification between a repository and its listeners.

The repository broadcasts a payload-free "something changed" signal to every
registered observer. Listeners re-read the full state themselves, so a
notification may be coalesced or dropped without losing data.
"""

import logging
import threading
from typing import List, Optional, Protocol, runtime_checkable

from metricol.core.errors.metrics import AlreadyRegistered, NotRegistered


@runtime_checkable
class Observer(Protocol):
    """Anything that wants to hear about repository mutations."""

    def on_notify(self) -> None: ...


class ObserverRegistry:
    """Thread-safe set of observers, notified in registration order.

    Observers are compared by identity so two equal-but-distinct listeners
    can both subscribe.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._observers: List[Observer] = []
        self._lock = threading.Lock()
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def register(self, observer: Observer) -> None:
        """Add an observer.

        Raises:
            AlreadyRegistered: If this exact observer is already registered
        """
        with self._lock:
            if any(o is observer for o in self._observers):
                raise AlreadyRegistered(f"Observer {observer!r} is already registered")
            self._observers.append(observer)

    def remove(self, observer: Observer) -> None:
        """Remove an observer.

        Raises:
            NotRegistered: If the observer was never registered
        """
        with self._lock:
            for i, o in enumerate(self._observers):
                if o is observer:
                    del self._observers[i]
                    return
        raise NotRegistered(f"Observer {observer!r} is not registered")

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)

    def __contains__(self, observer: object) -> bool:
        with self._lock:
            return any(o is observer for o in self._observers)

    def notify(self) -> None:
        """Call ``on_notify`` on every observer.

        A failing observer is logged and skipped; it never fails the caller.
        """
        with self._lock:
            observers = list(self._observers)

        for observer in observers:
            try:
                observer.on_notify()
            except Exception as e:
                self._logger.error(
                    "Observer %r failed on notify: %s",
                    observer,
                    e,
                    extra={"observer": repr(observer), "error_type": type(e).__name__},
                )


class ChangeSignal:
    """Single-slot, non-blocking notification buffer.

    ``set`` never blocks; repeated sets before the consumer wakes collapse
    into one pending signal.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a signal is pending, then consume it.

        Returns:
            True if a signal was consumed, False on timeout
        """
        if not self._event.wait(timeout):
            return False
        self._event.clear()
        return True

    @property
    def pending(self) -> bool:
        return self._event.is_set()
