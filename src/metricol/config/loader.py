"""ServerConfig loading and validation logic.

Provides ``_ServerConfigLoader``, a mixin class whose methods are inherited by
``ServerConfig`` (defined in ``server.py``). Splitting loading/validation
logic into its own module keeps ``server.py`` focused on field definitions and
simple accessor methods.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, cast

if TYPE_CHECKING:
    from metricol.config.server import ServerConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from metricol.config.domains import BackupConfig, ShutdownConfig
from metricol.config.parsing import _parse_duration, _try_parse_bool

logger = logging.getLogger(__name__)


class _ServerConfigLoader:
    """Mixin providing config-loading methods for ``ServerConfig``.

    These methods are inherited by the ``ServerConfig`` dataclass defined in
    ``server.py``. At runtime ``self`` is always a ``ServerConfig`` instance.
    """

    if TYPE_CHECKING:
        address: str
        log_level: str
        structured_logging: bool
        backup: BackupConfig
        shutdown: ShutdownConfig
        startup_warnings: List[str]

        def _add_startup_warning(self, message: str) -> None: ...

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ServerConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. Explicit TOML file (argument, METRICOL_CONFIG_FILE or CONFIG)
        3. Project TOML config (./metricol.toml)
        4. User TOML config (~/.metricol.toml)
        5. XDG config (~/.config/metricol/config.toml)
        6. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get("METRICOL_CONFIG_FILE") or os.environ.get("CONFIG")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            # Layered config loading (lowest to highest priority)
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "metricol" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug(f"Loaded XDG config from {xdg_config}")

            home_config = Path.home() / ".metricol.toml"
            if home_config.exists():
                config._load_toml(home_config)
                logger.debug(f"Loaded user config from {home_config}")

            project_config = Path("metricol.toml")
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug(f"Loaded project config from {project_config}")

        config._load_env()
        config._validate_startup_configuration()

        return cast("ServerConfig", config)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            self._add_startup_warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            self._add_startup_warning(f"Error loading config file {path}: {e}")
            return

        # Server settings
        if "server" in data:
            srv = data["server"]
            if "address" in srv:
                self.address = str(srv["address"])

        # Logging settings
        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = bool(log["structured"])

        # Backup settings, merged over what earlier layers set
        if "backup" in data:
            self.backup = self._section_from_toml(
                BackupConfig, self._backup_as_toml(), data["backup"], path, "backup"
            )

        # Shutdown settings
        if "shutdown" in data:
            self.shutdown = self._section_from_toml(
                ShutdownConfig, {"grace": self.shutdown.grace_seconds}, data["shutdown"], path, "shutdown"
            )

    def _backup_as_toml(self) -> Dict[str, Any]:
        return {
            "storage_path": self.backup.storage_path,
            "file_name": self.backup.file_name,
            "interval": self.backup.interval_seconds,
            "restore": self.backup.restore,
            "lock_timeout": self.backup.lock_timeout_seconds,
        }

    def _section_from_toml(
        self,
        section_cls: Any,
        current: Dict[str, Any],
        data: Any,
        path: Path,
        section: str,
    ) -> Any:
        if not isinstance(data, dict):
            self._add_startup_warning(
                f"Ignoring [{section}] in {path}: expected table/dict, got {type(data).__name__}"
            )
            return section_cls.from_toml_dict(current)
        try:
            return section_cls.from_toml_dict({**current, **data})
        except ValueError as e:
            self._add_startup_warning(f"Ignoring [{section}] in {path}: {e}")
            return section_cls.from_toml_dict(current)

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if address := os.environ.get("ADDRESS"):
            self.address = address

        if level := os.environ.get("METRICOL_LOG_LEVEL"):
            self.log_level = level.upper()

        if structured := os.environ.get("METRICOL_STRUCTURED_LOGGING"):
            parsed = _try_parse_bool(structured)
            if parsed is None:
                self._add_startup_warning(f"Ignoring METRICOL_STRUCTURED_LOGGING={structured!r}: not a boolean")
            else:
                self.structured_logging = parsed

        # Backup settings
        if storage_path := os.environ.get("FILE_STORAGE_PATH"):
            self.backup.storage_path = storage_path
        if file_name := os.environ.get("METRICOL_BACKUP_FILE"):
            self.backup.file_name = file_name
        if interval := os.environ.get("STORE_INTERVAL"):
            try:
                self.backup.interval_seconds = _parse_duration(interval)
            except ValueError as e:
                logger.warning("Ignoring STORE_INTERVAL: %s", e)
                self._add_startup_warning(f"Ignoring STORE_INTERVAL={interval!r}: {e}")
        if restore := os.environ.get("RESTORE"):
            parsed = _try_parse_bool(restore)
            if parsed is None:
                self._add_startup_warning(f"Ignoring RESTORE={restore!r}: not a boolean")
            else:
                self.backup.restore = parsed

        # Shutdown settings
        if grace := os.environ.get("METRICOL_SHUTDOWN_GRACE"):
            try:
                self.shutdown.grace_seconds = _parse_duration(grace)
            except ValueError as e:
                logger.warning("Ignoring METRICOL_SHUTDOWN_GRACE: %s", e)
                self._add_startup_warning(f"Ignoring METRICOL_SHUTDOWN_GRACE={grace!r}: {e}")

    def _validate_startup_configuration(self) -> None:
        """Reject settings the server cannot run with.

        Raises:
            ValueError: On an empty backup file name or negative durations
        """
        if not self.backup.file_name.strip():
            raise ValueError("Backup file name must not be empty")
        if self.backup.interval_seconds < 0:
            raise ValueError(f"Backup interval must be >= 0, got {self.backup.interval_seconds}")
        if self.shutdown.grace_seconds < 0:
            raise ValueError(f"Shutdown grace period must be >= 0, got {self.shutdown.grace_seconds}")

        for warning in self.startup_warnings:
            logger.warning(warning)
