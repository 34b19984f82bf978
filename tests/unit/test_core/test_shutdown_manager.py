"""Tests for ShutdownManager: concurrent handlers under one grace period."""

import logging
import os
import signal
import threading
import time

import pytest

from metricol.core.shutdown import ShutdownManager


class TestShutdown:
    def test_runs_every_handler(self):
        calls = []
        manager = ShutdownManager(grace_period=2)
        for name in ("a", "b", "c"):
            manager.add_handler(lambda n=name: calls.append(n), name=name)

        assert manager.shutdown() is True
        assert sorted(calls) == ["a", "b", "c"]

    def test_handlers_run_concurrently(self):
        barrier = threading.Barrier(2, timeout=2)
        manager = ShutdownManager(grace_period=3)
        manager.add_handler(barrier.wait, name="first")
        manager.add_handler(barrier.wait, name="second")

        # Sequential execution would break the barrier
        assert manager.shutdown() is True

    def test_grace_period_elapses(self, caplog):
        release = threading.Event()
        manager = ShutdownManager(grace_period=0.1)
        manager.add_handler(lambda: release.wait(5), name="stuck")

        start = time.monotonic()
        try:
            assert manager.shutdown() is False
            assert time.monotonic() - start < 2
        finally:
            release.set()
        assert any("stuck" in r.getMessage() for r in caplog.records)

    def test_handler_error_is_logged(self, caplog):
        ran = threading.Event()

        def broken():
            raise RuntimeError("boom")

        manager = ShutdownManager(grace_period=2)
        manager.add_handler(broken, name="broken")
        manager.add_handler(ran.set, name="healthy")

        assert manager.shutdown() is True
        assert ran.is_set()
        assert any("boom" in r.getMessage() for r in caplog.records)

    def test_no_handlers(self):
        assert ShutdownManager(grace_period=0).shutdown() is True

    @pytest.mark.parametrize("grace", [-1, float("nan"), float("inf")])
    def test_invalid_grace_rejected(self, grace):
        with pytest.raises(ValueError):
            ShutdownManager(grace_period=grace)


class TestWait:
    def test_trigger_releases_wait(self):
        ran = threading.Event()
        manager = ShutdownManager(grace_period=1)
        manager.add_handler(ran.set)

        timer = threading.Timer(0.05, manager.trigger)
        timer.start()
        try:
            assert manager.wait() is True
        finally:
            timer.cancel()

        assert manager.triggered
        assert ran.is_set()

    def test_sigterm_triggers_shutdown(self, caplog):
        caplog.set_level(logging.INFO, logger="metricol")
        ran = threading.Event()
        previous = signal.getsignal(signal.SIGTERM)
        manager = ShutdownManager(grace_period=1)
        manager.add_handler(ran.set, name="flush")

        timer = threading.Timer(0.05, os.kill, args=(os.getpid(), signal.SIGTERM))
        timer.start()
        try:
            assert manager.wait() is True
        finally:
            timer.cancel()

        assert ran.is_set()
        assert signal.getsignal(signal.SIGTERM) is previous
        assert any("SIGTERM" in r.getMessage() for r in caplog.records)
