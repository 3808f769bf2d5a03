"""
hearth.engine.leaderboard — Leaderboard Categories & Ranking
=============================================================

The activity leaderboard is generic over a table of categories, each a
(value extractor, formatter) pair.  Ranking is shared with the economy
leaderboard: descending by value, ties kept in insertion order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from hearth.constants import format_minutes


@dataclass(frozen=True, slots=True)
class LeaderboardCategory:
    id: str
    name: str
    emoji: str
    value: Callable[[Any], int]
    fmt: Callable[[int], str]


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    user_id: int
    value: int


ACTIVITY_CATEGORIES: dict[str, LeaderboardCategory] = {
    c.id: c
    for c in (
        LeaderboardCategory("xp", "Experience Points", "\u2b50",
                            lambda s: s.xp, lambda v: f"{v:,}"),
        LeaderboardCategory("level", "Level", "\U0001f525",
                            lambda s: s.level, lambda v: f"Level {v}"),
        LeaderboardCategory("messages", "Messages Sent", "\U0001f4ac",
                            lambda s: s.messages, lambda v: f"{v:,}"),
        LeaderboardCategory("voice", "Voice Time", "\U0001f3a4",
                            lambda s: s.voice_minutes, format_minutes),
        LeaderboardCategory("music", "Music Time", "\U0001f3b5",
                            lambda s: s.music_minutes, format_minutes),
        LeaderboardCategory("study", "Study Time", "\U0001f4da",
                            lambda s: s.study_minutes, format_minutes),
        LeaderboardCategory("streak", "Daily Streak", "\U0001f525",
                            lambda s: s.daily_streak, lambda v: f"{v} days"),
        LeaderboardCategory("achievements", "Achievements", "\U0001f3c6",
                            lambda s: len(s.achievements), lambda v: f"{v} unlocked"),
    )
}


def rank_users(rows: Iterable[tuple[int, int]], limit: int) -> list[LeaderboardEntry]:
    """Rank ``(user_id, value)`` rows, highest first.

    ``sorted`` is stable (also with ``reverse=True``), so equal values keep
    the order in which the rows were supplied.
    """
    if limit <= 0:
        return []
    ordered = sorted(rows, key=lambda row: row[1], reverse=True)[:limit]
    return [
        LeaderboardEntry(rank=index, user_id=user_id, value=value)
        for index, (user_id, value) in enumerate(ordered, start=1)
    ]


def rank_of(values: Iterable[int], target: int) -> int:
    """Competition rank: number of values strictly greater than *target*, plus one."""
    return sum(1 for v in values if v > target) + 1
