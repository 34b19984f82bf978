"""Shared CLI context carried on ``click.Context.obj``."""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import click

from metricol.config.server import ServerConfig
from metricol.core.backup.manager import BackupManager
from metricol.core.metrics.repository import InMemoryMetricsRepository


@dataclass
class CLIContext:
    """Resolved configuration and logger for a CLI invocation."""

    config: ServerConfig
    logger: logging.Logger

    def build_store(self, restore: Optional[bool] = None) -> Tuple[InMemoryMetricsRepository, BackupManager]:
        """Create a fresh repository and its backup manager from the config.

        Args:
            restore: Override the configured restore flag
        """
        backup_config = self.config.backup
        if restore is not None:
            backup_config = dataclasses.replace(backup_config, restore=restore)

        repository = InMemoryMetricsRepository(logger=self.logger.getChild("repository"))
        manager = BackupManager.from_config(repository, backup_config, logger=self.logger.getChild("backup"))
        return repository, manager


def get_context(ctx: click.Context) -> CLIContext:
    """Return the CLIContext set up by the root group."""
    obj = ctx.find_object(CLIContext)
    if obj is None:
        raise click.UsageError("CLI context not initialized")
    return obj
