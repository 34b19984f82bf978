"""Unit tests for the metricol run command.

``ShutdownManager.wait`` is patched so the command shuts down immediately
instead of blocking for a signal.
"""

import json
from unittest.mock import patch

import pytest

from metricol.cli.main import cli
from metricol.core.shutdown import ShutdownManager


def _shutdown_now(self, *args, **kwargs):
    return self.shutdown()


@pytest.fixture
def immediate_shutdown():
    with patch.object(ShutdownManager, "wait", autospec=True, side_effect=_shutdown_now) as mock_wait:
        yield mock_wait


class TestRun:
    def test_restores_and_flushes_on_shutdown(self, cli_runner, backup_file, immediate_shutdown):
        result = cli_runner.invoke(cli, ["run", "--store-interval", "1h"])

        assert result.exit_code == 0, result.output
        immediate_shutdown.assert_called_once()
        # Final flush rewrote the file without the corrupt line
        records = [json.loads(line) for line in backup_file.read_text().splitlines()]
        assert {r["name"] for r in records} == {"requests", "temperature"}

    def test_no_restore_starts_empty(self, cli_runner, backup_file, immediate_shutdown):
        result = cli_runner.invoke(cli, ["run", "--no-restore", "-i", "0"])

        assert result.exit_code == 0, result.output
        assert backup_file.read_text() == ""

    def test_file_storage_path_option(self, cli_runner, store_dir, tmp_path, immediate_shutdown):
        target = tmp_path / "elsewhere"

        result = cli_runner.invoke(cli, ["run", "-f", str(target)])

        assert result.exit_code == 0, result.output
        assert (target / "metrics.jsonl").exists()

    def test_invalid_interval(self, cli_runner, store_dir, immediate_shutdown):
        result = cli_runner.invoke(cli, ["run", "--store-interval", "soon"])

        assert result.exit_code == 2
        assert "--store-interval" in result.output
        immediate_shutdown.assert_not_called()

    def test_grace_period_exceeded_exits_nonzero(self, cli_runner, store_dir):
        with patch.object(ShutdownManager, "wait", return_value=False):
            result = cli_runner.invoke(cli, ["run"])

        assert result.exit_code == 1
