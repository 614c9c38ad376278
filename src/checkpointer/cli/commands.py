"""Command handlers.

Each handler opens a CheckpointerSession, runs its queries and prints the
result as rich tables or, with ``--json``, as a JSON envelope. Errors are
left to ``run_command``, which turns them into an exit code.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, Callable

import typer
from rich.console import Console

from checkpointer.cli import render
from checkpointer.cli.common.context import get_cli_context
from checkpointer.cli.common.error_handler import handle_cli_error
from checkpointer.cli.json_formatter import format_success_output, write_json
from checkpointer.config.loader import get_config
from checkpointer.services.list_view import ListView
from checkpointer.services.pagination import NOTHING_TO_PAGINATE, InfiniteQuery, PageWindow
from checkpointer.services.session import CheckpointerSession
from checkpointer.shared.constants import CLIHelp, SortBy, SortOrder

logger = logging.getLogger(__name__)


def create_session() -> CheckpointerSession:
    """Session for one command invocation."""
    return CheckpointerSession.from_settings(get_config())


def run_command(command: str, handler: Callable[[CheckpointerSession, Console], Awaitable[Any]]) -> None:
    """Run an async handler in a fresh session and exit with its status."""
    json_output = get_cli_context().json_output

    async def _main() -> None:
        async with create_session() as session:
            await handler(session, Console())

    try:
        asyncio.run(_main())
    except (Exception, KeyboardInterrupt) as e:  # noqa: BLE001
        exit_code = handle_cli_error(e, command, json_output=json_output)
        raise typer.Exit(exit_code) from e


def _emit(command: str, console: Console, data: Any, render_human: Callable[[], None]) -> None:
    if get_cli_context().json_output:
        write_json(format_success_output(command, data))
    else:
        render_human()


def _window_data(view: ListView) -> dict[str, Any] | None:
    window = view.page_window
    if not isinstance(window, PageWindow):
        return None
    return {
        "rangeStart": window.range_start,
        "rangeEnd": window.range_end,
        "currentPage": window.current_page,
        "totalPages": window.total_pages,
        "pageNumbers": [n if isinstance(n, int) else "..." for n in window.page_numbers],
    }


async def _load_view(view: ListView) -> ListView:
    await view.load()
    if view.error is not None:
        raise view.error
    return view


async def _load_pages(query: InfiniteQuery, pages: int) -> list[Any]:
    data = await query.fetch_first_page()
    while len(data.pages) < pages and not data.exhausted:
        data = await query.fetch_next_page()
    return data.items


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def browse(
    *,
    q: str | None = None,
    sort_by: SortBy | None = None,
    sort_order: SortOrder | None = None,
    year: int | None = None,
    genre: str | None = None,
    platform: str | None = None,
    page: int = 1,
) -> None:
    filters = {
        "q": q,
        "sort_by": sort_by,
        "sort_order": sort_order,
        "year": year,
        "genre": genre,
        "platform": platform,
    }
    filters = {name: value for name, value in filters.items() if value is not None}

    async def handler(session: CheckpointerSession, console: Console) -> None:
        view = await _load_view(session.browse_view(filters, page=page))
        total = view.total_count or 0
        _emit(
            "browse",
            console,
            {"games": view.items, "totalCount": total, "window": _window_data(view)},
            lambda: render.print_games_page(console, view.items, view.page_window, total),
        )

    run_command("browse", handler)


def search(query: str) -> None:
    async def handler(session: CheckpointerSession, console: Console) -> None:
        result = await session.fetch(session.queries.search(query))

        def render_human() -> None:
            if result.games:
                console.print(render.games_table(result.games, title=f"Results for {query.strip()!r}"))
            else:
                console.print(f"[yellow]{CLIHelp.NOTHING_FOUND}[/yellow]")

        _emit("search", console, result, render_human)

    run_command("search", handler)


def game(game_id: str) -> None:
    async def handler(session: CheckpointerSession, console: Console) -> None:
        detail = await session.fetch(session.queries.game(game_id))
        _emit("game", console, detail, lambda: render.game_detail_panel(console, detail))

    run_command("game", handler)


def top(*, trending: bool = False, limit: int | None = None) -> None:
    async def handler(session: CheckpointerSession, console: Console) -> None:
        options = session.queries.trending(limit) if trending else session.queries.top_rated(limit)
        result = await session.fetch(options)
        title = "Trending games" if trending else "Top rated games"
        _emit("top", console, result, lambda: console.print(render.games_table(result.games, title=title)))

    run_command("top", handler)


# ---------------------------------------------------------------------------
# Play history and wishlist
# ---------------------------------------------------------------------------


def history(user_id: str, *, pages: int = 1) -> None:
    async def handler(session: CheckpointerSession, console: Console) -> None:
        query = session.play_history(user_id)
        entries = await _load_pages(query, pages)
        total = query.data.total_count if query.data else 0
        _emit(
            "history",
            console,
            {"sessions": entries, "totalCount": total, "hasMore": query.has_next_page},
            lambda: _print_cursor_table(console, render.history_table(entries), len(entries), total, "sessions"),
        )

    run_command("history", handler)


def wishlist(*, pages: int = 1) -> None:
    async def handler(session: CheckpointerSession, console: Console) -> None:
        query = session.wishlist()
        items = await _load_pages(query, pages)
        total = query.data.total_count if query.data else 0
        _emit(
            "wishlist",
            console,
            {"wishlist": items, "totalCount": total, "hasMore": query.has_next_page},
            lambda: _print_cursor_table(console, render.wishlist_table(items), len(items), total, "games"),
        )

    run_command("wishlist", handler)


def _print_cursor_table(console: Console, table: Any, shown: int, total: int, noun: str) -> None:
    console.print(table)
    console.print(render.format_range(NOTHING_TO_PAGINATE, total, shown, noun))


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


def admin_stats() -> None:
    async def handler(session: CheckpointerSession, console: Console) -> None:
        stats = await session.fetch(session.queries.admin_stats())
        _emit("admin stats", console, stats, lambda: console.print(render.stats_table(stats)))

    run_command("admin stats", handler)


def _admin_list(command: str, build_view: Callable[[CheckpointerSession], ListView], table: Callable, noun: str) -> None:
    async def handler(session: CheckpointerSession, console: Console) -> None:
        view = await _load_view(build_view(session))
        total = view.total_count or 0

        def render_human() -> None:
            console.print(table(view.items))
            console.print(render.format_range(view.page_window, total, len(view.items), noun))
            if isinstance(view.page_window, PageWindow):
                console.print(render.format_page_numbers(view.page_window))

        _emit(
            command,
            console,
            {"items": view.items, "totalCount": total, "window": _window_data(view)},
            render_human,
        )

    run_command(command, handler)


def admin_users(*, page: int = 1) -> None:
    _admin_list("admin users", lambda s: s.admin_users_view(page), render.users_table, "users")


def admin_reviews(*, page: int = 1) -> None:
    _admin_list("admin reviews", lambda s: s.admin_reviews_view(page), render.reviews_table, "reviews")


def admin_audit_logs(*, page: int = 1) -> None:
    _admin_list("admin audit-logs", lambda s: s.audit_logs_view(page), render.audit_logs_table, "entries")


__all__ = [
    "admin_audit_logs",
    "admin_reviews",
    "admin_stats",
    "admin_users",
    "browse",
    "create_session",
    "game",
    "history",
    "run_command",
    "search",
    "top",
    "wishlist",
]
