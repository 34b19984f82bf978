"""metricol CLI."""

from metricol.cli.main import cli, main

__all__ = ["cli", "main"]
