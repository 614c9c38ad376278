"""Tests for rich rendering of command results."""

from __future__ import annotations

from rich.console import Console

from checkpointer.cli import render
from checkpointer.services.models import AdminStats, AdminUser, Game, HistoryEntry
from checkpointer.services.pagination import NOTHING_TO_PAGINATE, compute_page_window


def _text(renderable) -> str:
    console = Console(width=120, record=True, color_system=None)
    console.print(renderable)
    return console.export_text()


class TestPager:
    def test_page_numbers_mark_current_page(self):
        window = compute_page_window(100, 10, 5)

        assert render.format_page_numbers(window) == "1 … 4 [5] 6 … 10"

    def test_range_with_window(self):
        window = compute_page_window(45, 20, 3)

        assert render.format_range(window, 45, 5, "users") == "Showing 41-45 of 45 users"

    def test_range_without_pages(self):
        assert render.format_range(NOTHING_TO_PAGINATE, 3, 3, "games") == "Showing 1-3 of 3 games"
        assert render.format_range(NOTHING_TO_PAGINATE, 0, 0, "games") == "Showing 0 of 0 games"


class TestTables:
    def test_games_table(self, payloads):
        games = [
            Game.model_validate(payloads.game()),
            Game.model_validate({"id": "g2", "name": "Unreleased"}),
        ]

        text = _text(render.games_table(games, title="Results"))

        assert "Hades" in text
        assert "2020" in text
        assert "92.5" in text
        assert "Unreleased" in text

    def test_history_table(self, payloads):
        entry = HistoryEntry.model_validate(payloads.history_entry("s1", game_id="g7"))

        text = _text(render.history_table([entry]))

        assert "Game g7" in text
        assert "finished" in text

    def test_users_table(self, payloads):
        users = [
            AdminUser.model_validate(payloads.admin_user("u1", role="pro")),
            AdminUser.model_validate(payloads.admin_user("u2", suspended_at="2024-05-01")),
        ]

        text = _text(render.users_table(users))

        assert "user-u1" in text
        assert "pro" in text
        assert "yes" in text

    def test_stats_table(self):
        stats = AdminStats.model_validate(
            {
                "users": {"total": 12, "suspended": 1, "newLast7Days": 3, "byRole": {"free": 11}},
                "reviews": {"total": 40, "averageRating": "3.75"},
                "games": {"total": 900},
            }
        )

        text = _text(render.stats_table(stats))

        assert "New users (7 days)" in text
        assert "3.75" in text
        assert "900" in text


class TestGamesPage:
    def test_empty_page(self):
        console = Console(width=120, record=True, color_system=None)

        render.print_games_page(console, [], NOTHING_TO_PAGINATE, 0)

        assert "No games found" in console.export_text()

    def test_footer(self, payloads):
        console = Console(width=120, record=True, color_system=None)
        games = [Game.model_validate(payloads.game())]

        render.print_games_page(console, games, compute_page_window(30, 24, 2), 30)

        text = console.export_text()
        assert "Showing 25-30 of 30 games" in text
        assert "1 [2]" in text
