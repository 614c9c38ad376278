"""
Reusable Typer Options Module

Options shared by the main callback and the commands. Each is a
``typer.Option`` meant to be used as ``Annotated[<type>, <option>]``.
"""

from __future__ import annotations

import typer

from checkpointer.shared.constants import CLIDefaults, CLIHelp


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=CLIDefaults.VERSION))
        raise typer.Exit


# Verbose option - count-based for multiple -v flags
verbose_option = typer.Option(
    "--verbose",
    "-v",
    count=True,
    help="Enable verbose output (equivalent to --log-level DEBUG).",
)

log_level_option = typer.Option(
    "--log-level",
    case_sensitive=False,
    help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: WARNING.",
)

json_output_option = typer.Option(
    "--json",
    help="Enable machine-readable JSON output instead of tables.",
)

# Version option - for main app only
version_option = typer.Option(
    "--version",
    "-V",
    help="Show version information and exit.",
    callback=version_callback,
    is_eager=True,
)

page_option = typer.Option("--page", "-p", min=1, help="Page to show (1-based).")

pages_option = typer.Option("--pages", min=1, help="How many pages to load.")
