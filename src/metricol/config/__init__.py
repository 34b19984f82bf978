"""Configuration package for metricol.

Sub-modules:
    parsing    – Boolean/duration parsing helpers
    domains    – BackupConfig, ShutdownConfig
    server     – ServerConfig dataclass, get_config/set_config globals
    loader     – ServerConfig loading/validation mixin (_ServerConfigLoader)
    decorators – log_call, timed
"""

from metricol.config.decorators import log_call, timed  # noqa: F401
from metricol.config.domains import BackupConfig, ShutdownConfig  # noqa: F401
from metricol.config.parsing import _parse_bool, _parse_duration, _try_parse_bool  # noqa: F401
from metricol.config.server import (  # noqa: F401
    _PACKAGE_VERSION,
    ServerConfig,
    get_config,
    set_config,
)
