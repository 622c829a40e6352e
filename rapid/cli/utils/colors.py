"""
Rapid CLI — styled output helpers built on Click.

Payloads go to stdout unstyled; diagnostics go to stderr so that
``rapid project ... > out.json`` stays valid JSON.
"""

from __future__ import annotations

import click

_CROSS = "✗"


def error(message: str) -> None:
    """Print error message in red."""
    click.echo(click.style(message, fg="red"), err=True)


def warning(message: str) -> None:
    """Print warning message in yellow."""
    click.echo(click.style(message, fg="yellow"), err=True)
