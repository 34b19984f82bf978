"""Backup inspection commands."""

from typing import Iterable

import click

from metricol.cli.context import get_context
from metricol.cli.output import emit_error, emit_success
from metricol.core.exposition import render_text
from metricol.core.metrics.model import Metric


@click.group("backup")
def backup_group() -> None:
    """Inspect and maintain the backup file."""


@backup_group.command("dump")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "prometheus", "table", "text"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Output format.",
)
@click.pass_context
def dump_cmd(ctx: click.Context, output_format: str) -> None:
    """Print the metrics stored in the backup file."""
    cli_ctx = get_context(ctx)
    repository, manager = cli_ctx.build_store(restore=True)
    restored = manager.restore()

    output_format = output_format.lower()
    if output_format == "prometheus":
        click.echo(render_text(repository), nl=False)
    elif output_format == "table":
        _print_table(repository.all())
    elif output_format == "text":
        for metric in repository.all():
            click.echo(str(metric))
    else:
        emit_success(
            {
                "path": str(cli_ctx.config.backup.get_file_path()),
                "count": restored,
                "metrics": [m.to_record() for m in repository.all()],
            }
        )


def _print_table(metrics: Iterable[Metric]) -> None:
    from rich.console import Console
    from rich.table import Table

    table = Table(title="Backed up metrics")
    table.add_column("Kind")
    table.add_column("Name")
    table.add_column("Value", justify="right")
    for metric in metrics:
        color = "cyan" if metric.kind.value == "counter" else "green"
        table.add_row(f"[{color}]{metric.kind.value}[/{color}]", metric.name, metric.string_value())
    Console().print(table)


@backup_group.command("compact")
@click.pass_context
def compact_cmd(ctx: click.Context) -> None:
    """Rewrite the backup file, dropping corrupt lines."""
    cli_ctx = get_context(ctx)
    repository, manager = cli_ctx.build_store(restore=True)
    restored = manager.restore()

    if not manager.flush():
        emit_error(
            "Failed to rewrite backup file",
            code="UNAVAILABLE",
            details={"path": str(cli_ctx.config.backup.get_file_path())},
        )
        return

    emit_success(
        {
            "path": str(cli_ctx.config.backup.get_file_path()),
            "count": restored,
        }
    )
