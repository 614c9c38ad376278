"""Rich rendering of command results."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich.console import Console
from rich.table import Table

from checkpointer.services.models import (
    AdminReview,
    AdminStats,
    AdminUser,
    AuditLog,
    Game,
    GameDetail,
    HistoryEntry,
    WishlistItem,
)
from checkpointer.services.pagination import ELLIPSIS, PageWindow, PaginationMarker
from checkpointer.shared.constants import CLIHelp


def format_page_numbers(window: PageWindow) -> str:
    """Page buttons as text, the current page in brackets."""
    parts = []
    for number in window.page_numbers:
        if number is ELLIPSIS:
            parts.append("…")
        elif number == window.current_page:
            parts.append(f"[{number}]")
        else:
            parts.append(str(number))
    return " ".join(parts)


def format_range(window: PageWindow | PaginationMarker, total: int, shown: int, noun: str) -> str:
    """``Showing X-Y of Z <noun>``; without pages the range is the whole result."""
    if isinstance(window, PageWindow):
        return f"Showing {window.range_start}-{window.range_end} of {total} {noun}"
    if shown == 0:
        return f"Showing 0 of {total} {noun}"
    return f"Showing 1-{shown} of {total} {noun}"


def _rating(value: float | None) -> str:
    return f"{value:.1f}" if value is not None else "-"


def games_table(games: Iterable[Game], title: str | None = None) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Year", justify="right")
    table.add_column("Rating", justify="right")
    for game in games:
        year = game.release_year
        table.add_row(str(game.id), game.name, str(year) if year else "-", _rating(game.rating_value))
    return table


def print_games_page(
    console: Console,
    games: list[Game],
    window: PageWindow | PaginationMarker,
    total: int,
) -> None:
    """Browse results with the pager footer."""
    if not games:
        console.print(f"[yellow]{CLIHelp.NOTHING_FOUND}[/yellow]")
        return
    console.print(games_table(games))
    console.print(format_range(window, total, len(games), "games"))
    if isinstance(window, PageWindow):
        console.print(format_page_numbers(window))


def game_detail_panel(console: Console, detail: GameDetail) -> None:
    game = detail.game
    console.print(f"[bold]{game.name}[/bold] ({game.release_year or 'unreleased'})")
    if game.summary:
        console.print(game.summary)
    console.print(f"Rating: {_rating(game.rating_value)}")
    for label, values in (("Genres", detail.genres), ("Platforms", detail.platforms)):
        names = [_name_of(value) for value in values]
        if names:
            console.print(f"{label}: {', '.join(names)}")


def _name_of(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("name", value))
    return str(value)


def history_table(entries: Iterable[HistoryEntry]) -> Table:
    table = Table(title="Play history")
    table.add_column("Game", style="bold")
    table.add_column("Status")
    table.add_column("Ended")
    for entry in entries:
        status = entry.session.status.value if entry.session.status else "-"
        table.add_row(entry.game.name, status, entry.session.ended_at or "-")
    return table


def wishlist_table(items: Iterable[WishlistItem]) -> Table:
    table = Table(title="Want to play")
    table.add_column("Game", style="bold")
    table.add_column("Added")
    for item in items:
        table.add_row(item.game_name, item.created_at)
    return table


def users_table(users: Iterable[AdminUser]) -> Table:
    table = Table(title="Users")
    table.add_column("Username", style="bold")
    table.add_column("Role")
    table.add_column("Suspended")
    table.add_column("Joined")
    for user in users:
        table.add_row(
            user.username,
            user.role.value,
            "yes" if user.is_suspended else "no",
            user.created_at,
        )
    return table


def reviews_table(reviews: Iterable[AdminReview]) -> Table:
    table = Table(title="Reviews")
    table.add_column("ID", style="dim")
    table.add_column("Game", style="bold")
    table.add_column("User")
    table.add_column("Rating", justify="right")
    for review in reviews:
        rating = review.rating if review.rating is not None else "-"
        table.add_row(str(review.id), review.game_name, review.username, str(rating))
    return table


def audit_logs_table(logs: Iterable[AuditLog]) -> Table:
    table = Table(title="Audit log")
    table.add_column("When")
    table.add_column("Admin", style="bold")
    table.add_column("Action")
    table.add_column("Resource")
    for log in logs:
        table.add_row(
            log.created_at,
            log.admin_username,
            log.action,
            f"{log.resource_type}:{log.resource_id}",
        )
    return table


def stats_table(stats: AdminStats) -> Table:
    table = Table(title="Admin dashboard", show_header=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Users", str(stats.users.total))
    table.add_row("Suspended users", str(stats.users.suspended))
    table.add_row("New users (7 days)", str(stats.users.new_last_7_days))
    table.add_row("Reviews", str(stats.reviews.total))
    table.add_row("Average rating", str(stats.reviews.average_rating or "-"))
    table.add_row("Games", str(stats.games.total))
    return table


__all__ = [
    "audit_logs_table",
    "format_page_numbers",
    "format_range",
    "game_detail_panel",
    "games_table",
    "history_table",
    "print_games_page",
    "reviews_table",
    "stats_table",
    "users_table",
    "wishlist_table",
]
