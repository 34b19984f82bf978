"""ServerConfig dataclass and global configuration state.

This module defines the ``ServerConfig`` class (field declarations and simple
accessor methods) and the global ``get_config`` / ``set_config`` helpers used
by the CLI entry point. Library classes receive their configuration and logger
explicitly. Loading and validation logic lives in the ``_ServerConfigLoader``
mixin (``loader.py``) which ``ServerConfig`` inherits from.
"""

import json
import logging
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version
from typing import Any, Dict, List, Optional

from metricol.config.domains import BackupConfig, ShutdownConfig
from metricol.config.loader import _ServerConfigLoader


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("metricol")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for dev without install


_PACKAGE_VERSION = _get_version()

_HANDLER_NAME = "metricol-console"

# ``extra`` fields our modules attach to log records
_STRUCTURED_FIELDS = (
    "path",
    "reason",
    "metric",
    "kind",
    "line",
    "handler",
    "function",
    "error_type",
    "duration_ms",
    "outcome",
)


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, including known ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _STRUCTURED_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


@dataclass
class ServerConfig(_ServerConfigLoader):
    """Server configuration with support for env vars and TOML overrides."""

    # Address the serving layer binds to
    address: str = "localhost:8080"

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = False

    server_version: str = field(default_factory=lambda: _PACKAGE_VERSION)

    # Backup configuration
    backup: BackupConfig = field(default_factory=BackupConfig)

    # Shutdown configuration
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)

    startup_warnings: List[str] = field(default_factory=list, repr=False)

    def _add_startup_warning(self, message: str) -> None:
        if message and message not in self.startup_warnings:
            self.startup_warnings.append(message)

    def setup_logging(self) -> None:
        """Install one stderr handler on the ``metricol`` logger.

        Calling it again replaces the handler installed by a previous call.
        """
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            formatter: logging.Formatter = JsonLineFormatter()
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        handler.set_name(_HANDLER_NAME)

        package_logger = logging.getLogger("metricol")
        package_logger.handlers[:] = [h for h in package_logger.handlers if h.get_name() != _HANDLER_NAME]
        package_logger.setLevel(level)
        package_logger.addHandler(handler)


# Global configuration instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def set_config(config: ServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
