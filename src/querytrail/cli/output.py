"""
CLI Output Utilities

Machine mode prints compact JSON or bare lines to stdout; human mode goes
through a rich console.
"""

import json
from typing import Any, Optional

import typer
from rich.console import Console

from querytrail.cli.config import CLIConfig

_console = Console()


def echo(message: str = "", **kwargs) -> None:
    """Print a line; plain print() in machine mode so nothing is styled."""
    if CLIConfig.is_machine_mode():
        print(message, **kwargs)
    else:
        typer.echo(message, **kwargs)


def print_json(data: Any, minified: Optional[bool] = None) -> None:
    """
    Print JSON data.

    Minified in machine mode unless `minified` says otherwise; datetimes and
    other non-JSON values are stringified.
    """
    if minified is None:
        minified = CLIConfig.is_machine_mode()

    if minified:
        echo(json.dumps(data, separators=(',', ':'), default=str))
    else:
        echo(json.dumps(data, indent=2, default=str))


def print_error(message: str, code: Optional[str] = None) -> None:
    """Report an error as {"status": "error", ...} JSON, or on stderr for humans."""
    if CLIConfig.is_machine_mode():
        error_obj = {"status": "error", "message": message}
        if code:
            error_obj["code"] = code
        print_json(error_obj)
    else:
        typer.echo(f"Error: {message}", err=True)


def get_console() -> Console:
    """Rich console for human-mode rendering (tables, colors)."""
    return _console
