"""metricol command-line entry point."""

import logging
from typing import Optional

import click

from metricol.cli.commands import backup_group, run_cmd
from metricol.cli.context import CLIContext
from metricol.config.server import ServerConfig, _PACKAGE_VERSION, set_config


@click.group()
@click.version_option(_PACKAGE_VERSION, prog_name="metricol")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a TOML config file.",
)
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str]) -> None:
    """Counter and gauge metrics store with file backup."""
    try:
        config = ServerConfig.from_env(config_file)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    if log_level:
        config.log_level = log_level.upper()
    config.setup_logging()
    set_config(config)

    ctx.obj = CLIContext(config=config, logger=logging.getLogger("metricol"))


cli.add_command(run_cmd)
cli.add_command(backup_group)


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
