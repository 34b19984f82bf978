"""Run command: restore, start backups and wait for termination.

This is the startup/shutdown wiring the serving layer plugs into: the
repository is restored before anything may write to it, the backup manager's
final flush is registered as a shutdown handler, and the process blocks until
SIGINT or SIGTERM.
"""

from typing import Optional

import click

from metricol.cli.context import get_context
from metricol.config.parsing import _parse_duration
from metricol.core.shutdown import ShutdownManager


@click.command("run")
@click.option(
    "--store-interval",
    "-i",
    default=None,
    help="Seconds between backups (0 = back up on every change). Accepts 10s, 5m.",
)
@click.option("--file-storage-path", "-f", default=None, help="Directory for the backup file.")
@click.option("--restore/--no-restore", default=None, help="Restore metrics from the backup at startup.")
@click.pass_context
def run_cmd(
    ctx: click.Context,
    store_interval: Optional[str],
    file_storage_path: Optional[str],
    restore: Optional[bool],
) -> None:
    """Start the metrics store and keep its backup current until interrupted."""
    cli_ctx = get_context(ctx)
    config = cli_ctx.config

    if store_interval is not None:
        try:
            config.backup.interval_seconds = _parse_duration(store_interval)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--store-interval") from e
    if file_storage_path is not None:
        config.backup.storage_path = file_storage_path

    repository, manager = cli_ctx.build_store(restore=restore)
    restored = manager.restore()
    manager.start()

    shutdown = ShutdownManager(config.shutdown.grace_seconds, logger=cli_ctx.logger.getChild("shutdown"))
    shutdown.add_handler(manager.stop, name="backup")

    cli_ctx.logger.info(
        "metricol %s ready on %s with %d restored metrics",
        config.server_version,
        config.address,
        restored,
    )

    if not shutdown.wait():
        # Remaining handler threads are daemons and die with the process
        ctx.exit(1)
