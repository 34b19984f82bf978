"""Domain-specific configuration dataclasses.

Contains small, focused configuration classes for the backup subsystem and
process shutdown.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from metricol.config.parsing import _parse_bool, _parse_duration


@dataclass
class BackupConfig:
    """Configuration for repository backup and restore.

    Attributes:
        storage_path: Directory holding the backup file
        file_name: Backup file name inside storage_path
        interval_seconds: Seconds between flushes (0 = flush on every change)
        restore: Restore the repository from the backup at startup
        lock_timeout_seconds: How long a flush waits for the file lock
    """

    storage_path: str = "./data"
    file_name: str = "metrics.jsonl"
    interval_seconds: float = 300.0
    restore: bool = True
    lock_timeout_seconds: float = 5.0

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "BackupConfig":
        """Create config from TOML dict (typically [backup] section).

        Args:
            data: Dict from TOML parsing

        Returns:
            BackupConfig instance

        Raises:
            ValueError: If a duration is malformed or negative
        """
        return cls(
            storage_path=str(data.get("storage_path", "./data")),
            file_name=str(data.get("file_name", "metrics.jsonl")),
            interval_seconds=_parse_duration(data.get("interval", 300)),
            restore=_parse_bool(data.get("restore", True)),
            lock_timeout_seconds=_parse_duration(data.get("lock_timeout", 5)),
        )

    def get_file_path(self) -> Path:
        """Get the resolved backup file path."""
        return Path(self.storage_path).expanduser() / self.file_name


@dataclass
class ShutdownConfig:
    """Configuration for graceful shutdown.

    Attributes:
        grace_seconds: Time granted to cleanup handlers before forced exit
    """

    grace_seconds: float = 5.0

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "ShutdownConfig":
        """Create config from TOML dict (typically [shutdown] section)."""
        return cls(grace_seconds=_parse_duration(data.get("grace", 5)))
