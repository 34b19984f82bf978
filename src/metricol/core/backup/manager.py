"""Backup manager: periodic or change-driven persistence of a repository.

The manager owns the persistence loop for one repository. In interval mode a
background thread flushes every ``interval`` seconds; with ``interval == 0``
it subscribes to the repository and flushes after change notifications.
``stop`` always performs one final synchronous flush.

Flush requests never run concurrently. A request that arrives while a flush
is in flight is coalesced into a single follow-up flush, which re-reads the
full repository state, so no change is lost.

Example:
    repo = InMemoryMetricsRepository()
    manager = BackupManager(repo, FileBackupSink("data/metrics.jsonl"), interval=0)
    manager.restore()
    manager.start()
    ...
    manager.stop()
"""

import logging
import math
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from metricol.config.decorators import log_call, timed
from metricol.core.backup.sink import BackupSink, FileBackupSink
from metricol.core.errors.metrics import InvalidValue, KindMismatch, NotRegistered
from metricol.core.errors.storage import PersistenceUnavailable
from metricol.core.metrics.observer import ChangeSignal
from metricol.core.metrics.repository import MetricsRepository

if TYPE_CHECKING:
    from metricol.config.domains import BackupConfig


class BackupState(str, Enum):
    """Lifecycle states of a backup manager."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class BackupStats:
    """Counters describing flush activity.

    Attributes:
        flushes: Flushes that rewrote the sink
        failures: Flushes aborted by PersistenceUnavailable
        coalesced: Flush requests folded into an in-flight flush
        last_record_count: Records written by the last successful flush
        last_flush_at: ISO timestamp of the last successful flush
    """

    flushes: int = 0
    failures: int = 0
    coalesced: int = 0
    last_record_count: int = 0
    last_flush_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BackupManager:
    """Persists a repository to a sink on a cadence or on every change.

    The repository is shared, not owned: it outlives the manager.
    """

    def __init__(
        self,
        repository: MetricsRepository,
        sink: BackupSink,
        *,
        interval: float = 300.0,
        restore: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the manager in the IDLE state.

        Args:
            repository: Repository to back up and restore into
            sink: Durable destination
            interval: Seconds between flushes; 0 flushes on every change
            restore: Whether ``restore()`` reads the sink
            logger: Logger to use (default: module logger)

        Raises:
            ValueError: If interval is negative or not finite
        """
        if not math.isfinite(interval) or interval < 0:
            raise ValueError(f"Backup interval must be a finite number >= 0, got {interval}")

        self.repository = repository
        self.sink = sink
        self.interval = float(interval)
        self.restore_enabled = restore
        self._logger = logger if logger is not None else logging.getLogger(__name__)

        self._state = BackupState.IDLE
        self._state_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._changed = ChangeSignal()

        self._flush_lock = threading.Lock()
        self._flush_requested = threading.Event()
        self._stats = BackupStats()
        self._stats_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        repository: MetricsRepository,
        config: "BackupConfig",
        logger: Optional[logging.Logger] = None,
    ) -> "BackupManager":
        """Build a manager writing to the configured backup file."""
        return cls(
            repository,
            FileBackupSink(
                config.get_file_path(),
                lock_timeout=config.lock_timeout_seconds,
                logger=logger,
            ),
            interval=config.interval_seconds,
            restore=config.restore,
            logger=logger,
        )

    def __repr__(self) -> str:
        return f"BackupManager(sink={self.sink!r}, interval={self.interval}, state={self._state.value})"

    @property
    def state(self) -> BackupState:
        return self._state

    @property
    def change_driven(self) -> bool:
        return self.interval == 0

    @property
    def stats(self) -> BackupStats:
        with self._stats_lock:
            return BackupStats(**self._stats.to_dict())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Launch the background loop and return immediately.

        Raises:
            RuntimeError: If the manager was already started or stopped
            TypeError: In change-driven mode, if the repository cannot be observed
        """
        with self._state_lock:
            if self._state is not BackupState.IDLE:
                raise RuntimeError(f"Backup manager cannot start from state {self._state.value}")

            if self.change_driven:
                register = getattr(self.repository, "register_observer", None)
                if register is None:
                    raise TypeError(f"{type(self.repository).__name__} does not support change notification")
                register(self)
                target = self._run_change_driven
            else:
                target = self._run_interval

            self._thread = threading.Thread(target=target, name="metricol-backup", daemon=True)
            self._state = BackupState.RUNNING
            self._thread.start()

        self._logger.info(
            "Backup started: mode=%s, sink=%s",
            "change-driven" if self.change_driven else f"every {self.interval}s",
            self.sink,
        )

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Halt the loop, then flush once more before returning.

        Safe to call more than once; only the first call flushes.

        Args:
            timeout: Maximum seconds to wait for the loop thread to exit

        Returns:
            True if the final flush rewrote the sink
        """
        with self._state_lock:
            if self._state is BackupState.STOPPED:
                return False
            was_running = self._state is BackupState.RUNNING
            self._state = BackupState.STOPPED

        if was_running:
            if self.change_driven:
                try:
                    self.repository.remove_observer(self)  # type: ignore[attr-defined]
                except NotRegistered:
                    pass
            self._stop_event.set()
            self._changed.set()
            if self._thread is not None:
                self._thread.join(timeout)
                if self._thread.is_alive():
                    self._logger.warning("Backup loop did not exit within %ss", timeout)

        # Waits for an in-flight flush so the sink ends at the latest state
        with self._flush_lock:
            self._flush_requested.clear()
            flushed = self._flush_once()

        self._logger.info("Backup stopped: %s", self.stats.to_dict())
        return flushed

    def on_notify(self) -> None:
        """Record that the repository changed; never blocks."""
        self._changed.set()

    def _run_interval(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.flush()

    def _run_change_driven(self) -> None:
        while True:
            self._changed.wait()
            if self._stop_event.is_set():
                return
            self.flush()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def flush(self) -> bool:
        """Write the current repository state to the sink.

        If another flush is in flight the request is coalesced: this call
        returns False immediately and the running flush repeats once more
        after it finishes.

        Returns:
            True if this call rewrote the sink
        """
        self._flush_requested.set()
        flushed = False
        while self._flush_requested.is_set():
            if not self._flush_lock.acquire(blocking=False):
                with self._stats_lock:
                    self._stats.coalesced += 1
                return flushed
            try:
                self._flush_requested.clear()
                flushed = self._flush_once()
            finally:
                self._flush_lock.release()
        return flushed

    @timed("backup_flush")
    def _flush_once(self) -> bool:
        snapshot = self.repository.all()
        try:
            written = self.sink.write(snapshot)
        except PersistenceUnavailable as e:
            with self._stats_lock:
                self._stats.failures += 1
            self._logger.error(
                "Backup flush failed, will retry on next trigger: %s",
                e,
                extra={"path": e.path, "reason": e.reason},
            )
            return False

        with self._stats_lock:
            self._stats.flushes += 1
            self._stats.last_record_count = written
            self._stats.last_flush_at = datetime.now(timezone.utc).isoformat()
        return True

    @log_call()
    def restore(self) -> int:
        """Replay the sink's records into the repository.

        Records are applied in file order. Corrupt lines and records whose
        kind conflicts with the repository are skipped. An unreadable sink
        is logged and treated as empty.

        Returns:
            Number of records applied (0 when restore is disabled)
        """
        if not self.restore_enabled:
            self._logger.info("Restore disabled, starting with an empty repository")
            return 0

        applied = 0
        try:
            for number, metric in self.sink.read():
                try:
                    self.repository.update(metric)
                except (KindMismatch, InvalidValue) as e:
                    self._logger.warning("Skipping backup record %d: %s", number, e)
                    continue
                applied += 1
        except PersistenceUnavailable as e:
            self._logger.error(
                "Restore failed, continuing with %d restored metrics: %s",
                applied,
                e,
                extra={"path": e.path, "reason": e.reason},
            )
            return applied

        self._logger.info("Restored %d metrics from %s", applied, self.sink)
        return applied
