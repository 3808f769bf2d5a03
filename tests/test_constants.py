"""
tests/test_constants.py — Leveling Curve, Durations & Ranking
==============================================================
"""

from __future__ import annotations

import pytest

from hearth.constants import (
    DAY,
    HOUR,
    MINUTE,
    format_minutes,
    level_for_xp,
    parse_duration,
    xp_for_level,
)
from hearth.engine.leaderboard import ACTIVITY_CATEGORIES, rank_of, rank_users


class TestLevelCurve:
    @pytest.mark.parametrize(
        ("xp", "level"),
        [(0, 1), (-50, 1), (99, 1), (100, 2), (399, 2), (400, 3), (8_100, 10), (8_099, 9)],
    )
    def test_level_for_xp(self, xp, level):
        assert level_for_xp(xp) == level

    def test_xp_for_level_is_threshold(self):
        assert xp_for_level(1) == 0
        assert xp_for_level(2) == 100
        assert xp_for_level(10) == 8_100

    def test_inverse_across_range(self):
        for level in range(2, 120):
            threshold = xp_for_level(level)
            assert level_for_xp(threshold) == level
            assert level_for_xp(threshold - 1) == level - 1

    def test_huge_xp_has_no_float_drift(self):
        level = 1_000_000
        assert level_for_xp(xp_for_level(level)) == level


class TestParseDuration:
    @pytest.mark.parametrize(
        ("text", "seconds"),
        [("30s", 30), ("10m", 10 * MINUTE), ("2H", 2 * HOUR), (" 1d ", DAY)],
    )
    def test_valid(self, text, seconds):
        assert parse_duration(text) == seconds

    @pytest.mark.parametrize("text", ["", "abc", "10", "m", "-5m", "1.5h", "10w", "0m"])
    def test_invalid(self, text):
        assert parse_duration(text) is None


def test_format_minutes():
    assert format_minutes(205) == "3h 25m"
    assert format_minutes(0) == "0h 0m"


class TestRanking:
    def test_descending(self):
        entries = rank_users([(1, 100), (2, 300), (3, 200)], limit=10)
        assert [e.user_id for e in entries] == [2, 3, 1]
        assert [e.rank for e in entries] == [1, 2, 3]
        assert [e.value for e in entries] == [300, 200, 100]

    def test_ties_keep_insertion_order(self):
        entries = rank_users([(7, 50), (3, 50), (9, 50)], limit=10)
        assert [e.user_id for e in entries] == [7, 3, 9]

    def test_limit(self):
        rows = [(i, i) for i in range(20)]
        assert len(rank_users(rows, limit=5)) == 5
        assert rank_users(rows, limit=0) == []

    def test_rank_of_is_competition_rank(self):
        assert rank_of([500, 300, 300, 100], 300) == 2
        assert rank_of([500, 300, 300, 100], 100) == 4
        assert rank_of([], 0) == 1

    def test_categories(self):
        assert set(ACTIVITY_CATEGORIES) == {
            "xp", "level", "messages", "voice", "music", "study", "streak", "achievements",
        }
        assert ACTIVITY_CATEGORIES["voice"].fmt(90) == "1h 30m"
