"""JSON output helpers for CLI commands.

Every command prints one JSON envelope so callers can parse results the same
way regardless of the command.
"""

import json
import sys
from typing import Any, Dict, Mapping, Optional

import click


def emit_success(data: Mapping[str, Any]) -> None:
    """Print a success envelope to stdout."""
    click.echo(json.dumps({"success": True, "data": dict(data), "error": None}, indent=2, default=str))


def emit_error(
    message: str,
    *,
    code: str = "INTERNAL_ERROR",
    details: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """Print an error envelope to stdout and exit."""
    payload = {
        "success": False,
        "data": None,
        "error": message,
        "error_code": code,
        "details": details or {},
    }
    click.echo(json.dumps(payload, indent=2, default=str))
    sys.exit(exit_code)
