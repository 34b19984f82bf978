"""CLI commands."""

from metricol.cli.commands.backup import backup_group
from metricol.cli.commands.run import run_cmd

__all__ = [
    "backup_group",
    "run_cmd",
]
