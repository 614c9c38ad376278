"""
Checkpointer Typer CLI Application

Browse the catalog, play history and wishlist of a Checkpointer server,
and read the admin back office, from the command line.
"""

from __future__ import annotations

from typing import Annotated, Optional

import typer

from checkpointer.cli import commands
from checkpointer.cli.common.context import CliContext, LogLevel, set_cli_context
from checkpointer.cli.common.options import (
    json_output_option,
    log_level_option,
    page_option,
    pages_option,
    verbose_option,
    version_callback,
    version_option,
)
from checkpointer.config.loader import get_config
from checkpointer.shared.constants import CLICommands, CLIDefaults, CLIHelp, SortBy, SortOrder
from checkpointer.shared.logging import setup_structured_logger

__version__ = CLIDefaults.VERSION


def main_callback(
    verbose: int,
    log_level: LogLevel,
    json_output: bool,
    version: bool,
) -> None:
    """Set up the CLI context and logging before any command runs."""
    if version:
        version_callback(value=True)

    context = CliContext(
        verbose=verbose,
        log_level=log_level,
        json_output=json_output,
    )
    set_cli_context(context)

    logging_settings = get_config().logging
    setup_structured_logger(
        level=context.effective_log_level,
        log_file=logging_settings.file,
        use_rich_console=logging_settings.console_output,
    )


app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    rich_markup_mode=CLIHelp.APP_STYLE,
    no_args_is_help=True,
)

admin_app = typer.Typer(help=CLIHelp.ADMIN_HELP, no_args_is_help=True)
app.add_typer(admin_app, name=CLICommands.ADMIN)


@app.callback()
def main(
    verbose: Annotated[int, verbose_option] = 0,
    log_level: Annotated[LogLevel, log_level_option] = LogLevel.WARNING,
    json_output: Annotated[bool, json_output_option] = False,
    version: Annotated[bool, version_option] = False,
) -> None:
    """Main CLI callback with error handling."""
    try:
        main_callback(verbose, log_level, json_output, version)
    except typer.Exit:
        raise
    except Exception as e:
        from checkpointer.cli.common.error_handler import handle_cli_error

        exit_code = handle_cli_error(e, "main-callback", json_output=json_output)
        raise typer.Exit(exit_code) from e


@app.command(CLICommands.BROWSE, help=CLIHelp.BROWSE_HELP)
def browse_command(
    q: Annotated[Optional[str], typer.Option("--query", "-q", help="Free-text filter.")] = None,
    sort_by: Annotated[Optional[SortBy], typer.Option("--sort-by", help="Sort field.")] = None,
    sort_order: Annotated[
        Optional[SortOrder], typer.Option("--sort-order", help="Sort direction.")
    ] = None,
    year: Annotated[Optional[int], typer.Option("--year", help="Release year.")] = None,
    genre: Annotated[Optional[str], typer.Option("--genre", help="Genre name.")] = None,
    platform: Annotated[Optional[str], typer.Option("--platform", help="Platform name.")] = None,
    page: Annotated[int, page_option] = 1,
) -> None:
    """
    Browse the catalog one page at a time.

    Examples:
        checkpointer browse --sort-by rating --sort-order desc
        checkpointer browse --genre RPG --page 3
    """
    commands.browse(
        q=q,
        sort_by=sort_by,
        sort_order=sort_order,
        year=year,
        genre=genre,
        platform=platform,
        page=page,
    )


@app.command(CLICommands.SEARCH, help=CLIHelp.SEARCH_HELP)
def search_command(
    query: Annotated[str, typer.Argument(help="Title to search for.")],
) -> None:
    commands.search(query)


@app.command(CLICommands.GAME, help=CLIHelp.GAME_HELP)
def game_command(
    game_id: Annotated[str, typer.Argument(help="Game id.")],
) -> None:
    commands.game(game_id)


@app.command(CLICommands.TOP, help=CLIHelp.TOP_HELP)
def top_command(
    trending: Annotated[
        bool, typer.Option("--trending", help="Show trending instead of top-rated games.")
    ] = False,
    limit: Annotated[Optional[int], typer.Option("--limit", min=1, help="Number of games.")] = None,
) -> None:
    commands.top(trending=trending, limit=limit)


@app.command(CLICommands.HISTORY, help=CLIHelp.HISTORY_HELP)
def history_command(
    user_id: Annotated[str, typer.Argument(help="User id.")],
    pages: Annotated[int, pages_option] = 1,
) -> None:
    commands.history(user_id, pages=pages)


@app.command(CLICommands.WISHLIST, help=CLIHelp.WISHLIST_HELP)
def wishlist_command(
    pages: Annotated[int, pages_option] = 1,
) -> None:
    commands.wishlist(pages=pages)


@admin_app.command(CLICommands.ADMIN_STATS)
def admin_stats_command() -> None:
    """Show the dashboard counters."""
    commands.admin_stats()


@admin_app.command(CLICommands.ADMIN_USERS)
def admin_users_command(page: Annotated[int, page_option] = 1) -> None:
    """List users."""
    commands.admin_users(page=page)


@admin_app.command(CLICommands.ADMIN_REVIEWS)
def admin_reviews_command(page: Annotated[int, page_option] = 1) -> None:
    """List reviews for moderation."""
    commands.admin_reviews(page=page)


@admin_app.command(CLICommands.ADMIN_AUDIT_LOGS)
def admin_audit_logs_command(page: Annotated[int, page_option] = 1) -> None:
    """Show the admin audit log."""
    commands.admin_audit_logs(page=page)


__all__ = ["app"]
