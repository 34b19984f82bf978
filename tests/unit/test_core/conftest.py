"""Shared fixtures for core unit tests."""

import threading
from pathlib import Path
from typing import Iterable, List

import pytest

from metricol.core.backup.sink import FileBackupSink
from metricol.core.metrics.model import Metric
from metricol.core.metrics.repository import InMemoryMetricsRepository


class RecordingObserver:
    """Observer that counts notifications."""

    def __init__(self) -> None:
        self.calls = 0
        self._lock = threading.Lock()

    def on_notify(self) -> None:
        with self._lock:
            self.calls += 1


class BlockingSink:
    """In-memory sink whose writes can be held open by the test.

    While ``gate`` is clear, ``write`` blocks after signalling ``entered``.
    """

    def __init__(self) -> None:
        self.snapshots: List[List[Metric]] = []
        self.entered = threading.Event()
        self.gate = threading.Event()
        self.gate.set()
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def write(self, metrics: Iterable[Metric]) -> int:
        snapshot = [m.copy() for m in metrics]
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.entered.set()
            self.gate.wait(5)
            with self._lock:
                self.snapshots.append(snapshot)
            return len(snapshot)
        finally:
            with self._lock:
                self.active -= 1

    def read(self):
        return iter(())

    @property
    def last(self) -> List[Metric]:
        return self.snapshots[-1] if self.snapshots else []


@pytest.fixture
def repository() -> InMemoryMetricsRepository:
    return InMemoryMetricsRepository()


@pytest.fixture
def backup_path(tmp_path: Path) -> Path:
    return tmp_path / "backups" / "metrics.jsonl"


@pytest.fixture
def file_sink(backup_path: Path) -> FileBackupSink:
    return FileBackupSink(backup_path)


@pytest.fixture
def recording_observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def blocking_sink() -> BlockingSink:
    return BlockingSink()
