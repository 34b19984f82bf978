"""Shared fixtures for CLI command tests."""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def restore_metricol_logger():
    """Undo the handlers and level the root command installs."""
    logger = logging.getLogger("metricol")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def store_dir(tmp_path, monkeypatch):
    """Empty working directory with FILE_STORAGE_PATH pointing into it."""
    monkeypatch.chdir(tmp_path)
    storage = tmp_path / "store"
    env = {
        "XDG_CONFIG_HOME": str(tmp_path / "xdg"),
        "FILE_STORAGE_PATH": str(storage),
    }
    with patch.object(Path, "home", return_value=tmp_path):
        with patch.dict(os.environ, env, clear=True):
            yield storage


@pytest.fixture
def backup_file(store_dir):
    """Backup file with two good records and one corrupt line."""
    store_dir.mkdir()
    path = store_dir / "metrics.jsonl"
    path.write_text(
        '{"kind":"counter","name":"requests","value":8}\n'
        "not json\n"
        '{"type":"gauge","name":"temperature","value":19.0}\n'
    )
    return path
