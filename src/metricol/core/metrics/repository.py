"""Metric repositories.

Defines the ``MetricsRepository`` contract shared by every storage variant and
the thread-safe in-memory implementation that backs the server. Durability is
not the repository's concern; a ``BackupManager`` subscribes to change
notifications and persists snapshots.

Example:
    repo = InMemoryMetricsRepository()
    repo.update_raw("counter", "requests", "5")
    repo.update_raw("counter", "requests", 3)
    repo.get("counter", "requests").value  # 8
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from metricol.core.errors.metrics import InvalidValue, KindMismatch, NotFound
from metricol.core.metrics.model import Metric, MetricKind
from metricol.core.metrics.observer import Observer, ObserverRegistry


class MetricsRepository(ABC):
    """Capability contract consumed by the serving layer and the backup manager."""

    @abstractmethod
    def update(self, metric: Metric) -> Metric:
        """Create the metric or apply its kind's update rule.

        Returns:
            A copy of the stored metric after the update

        Raises:
            KindMismatch: If the name is stored under the other kind
            InvalidValue: If the value does not fit the kind
        """

    @abstractmethod
    def update_batch(self, metrics: Iterable[Metric]) -> List[Metric]:
        """Apply several updates as one mutation."""

    @abstractmethod
    def get(self, kind: Any, name: str) -> Metric:
        """Return the current metric.

        Raises:
            NotFound: If no metric of that kind has that name
        """

    @abstractmethod
    def exists(self, kind: Any, name: str) -> bool:
        """Check whether a metric of that kind and name is stored.

        An unknown kind is never stored, so it reports False.
        """

    @abstractmethod
    def all(self) -> List[Metric]:
        """Return a snapshot copy of every stored metric."""

    @abstractmethod
    def reset_all(self) -> None:
        """Delete every stored metric."""

    @abstractmethod
    def __len__(self) -> int: ...

    def update_raw(self, kind: Any, name: str, raw: Any) -> Metric:
        """Parse wire-level input and apply it.

        Raises:
            InvalidValue: On unknown kind, empty name or unparsable value
            KindMismatch: If the name is stored under the other kind
        """
        return self.update(Metric.from_raw(kind, name, raw))


class InMemoryMetricsRepository(MetricsRepository):
    """Thread-safe in-memory repository with change notification.

    All state lives in one dict keyed by metric name, guarded by a single
    lock. A name is bound to the kind it was created with. Observers are
    notified once per successful mutation, after the lock is released.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._metrics: Dict[str, Metric] = {}
        self._lock = threading.RLock()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._observers = ObserverRegistry(logger=self._logger)

    # ------------------------------------------------------------------
    # Observer subject
    # ------------------------------------------------------------------

    def register_observer(self, observer: Observer) -> None:
        """Subscribe to change notifications.

        Raises:
            AlreadyRegistered: If the observer is already subscribed
        """
        self._observers.register(observer)

    def remove_observer(self, observer: Observer) -> None:
        """Unsubscribe from change notifications.

        Raises:
            NotRegistered: If the observer is not subscribed
        """
        self._observers.remove(observer)

    def notify_observers(self) -> None:
        self._observers.notify()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update(self, metric: Metric) -> Metric:
        with self._lock:
            stored = self._apply(metric)
            result = stored.copy()

        self._logger.debug("Updated metric %s", result)
        self.notify_observers()
        return result

    def update_batch(self, metrics: Iterable[Metric]) -> List[Metric]:
        """Apply several updates under one lock acquisition.

        Every entry is checked against stored kinds (and against earlier
        entries in the batch) before anything is written, so a mismatch
        leaves the repository untouched. Observers are notified once.
        """
        batch = list(metrics)
        if not batch:
            return []

        with self._lock:
            bound = {name: m.kind for name, m in self._metrics.items()}
            for metric in batch:
                kind = bound.setdefault(metric.name, metric.kind)
                if kind is not metric.kind:
                    raise KindMismatch(metric.name, kind.value, metric.kind.value)

            # Dry run on copies so overflow surfaces before any write
            staged: Dict[str, Metric] = {}
            for metric in batch:
                current = staged.get(metric.name) or self._metrics.get(metric.name)
                if current is None:
                    staged[metric.name] = metric.copy()
                else:
                    staged[metric.name] = current.copy().update(metric.value)

            self._metrics.update(staged)
            results = [self._metrics[m.name].copy() for m in batch]

        self._logger.debug("Applied batch of %d metric updates", len(batch))
        self.notify_observers()
        return results

    def reset_all(self) -> None:
        with self._lock:
            count = len(self._metrics)
            self._metrics.clear()

        self._logger.info("Reset repository, dropped %d metrics", count)
        self.notify_observers()

    def _apply(self, metric: Metric) -> Metric:
        stored = self._metrics.get(metric.name)
        if stored is None:
            stored = metric.copy()
            self._metrics[metric.name] = stored
            return stored

        if stored.kind is not metric.kind:
            raise KindMismatch(metric.name, stored.kind.value, metric.kind.value)

        # Metric.update validates before mutating, so a failure leaves stored intact
        return stored.update(metric.value)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, kind: Any, name: str) -> Metric:
        metric_kind = MetricKind.parse(kind)
        with self._lock:
            stored = self._metrics.get(name)
            if stored is None or stored.kind is not metric_kind:
                raise NotFound(metric_kind.value, name)
            return stored.copy()

    def exists(self, kind: Any, name: str) -> bool:
        try:
            metric_kind = MetricKind.parse(kind)
        except InvalidValue:
            return False
        with self._lock:
            stored = self._metrics.get(name)
            return stored is not None and stored.kind is metric_kind

    def all(self) -> List[Metric]:
        with self._lock:
            snapshot = [m.copy() for m in self._metrics.values()]
        return sorted(snapshot, key=lambda m: m.key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)
