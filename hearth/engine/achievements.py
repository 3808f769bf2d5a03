"""
hearth.engine.achievements — Achievement Catalog & Check Pipeline
==================================================================

A static catalog of one-time milestones.  Each achievement carries a pure
predicate over an :class:`ActivitySnapshot`; the activity ledger builds a
fresh snapshot after every mutation and asks :func:`check_achievements`
which milestones are newly satisfied.

This module is pure calculation — no file I/O, no Discord I/O.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

__all__ = [
    "ACHIEVEMENTS",
    "ACHIEVEMENTS_BY_ID",
    "Achievement",
    "AchievementCategory",
    "ActivitySnapshot",
    "Rarity",
    "check_achievements",
]


class AchievementCategory(enum.StrEnum):
    ACTIVITY = "activity"
    SOCIAL = "social"
    MUSIC = "music"
    STUDY = "study"
    SPECIAL = "special"


class Rarity(enum.StrEnum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


# ---------------------------------------------------------------------------
# Snapshot — the only thing predicates ever see
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ActivitySnapshot:
    """Immutable view of one user's activity record after a mutation."""

    xp: int = 0
    level: int = 1
    messages: int = 0
    voice_minutes: int = 0
    music_minutes: int = 0
    study_minutes: int = 0
    commands_used: int = 0
    reactions_given: int = 0
    reactions_received: int = 0
    daily_streak: int = 0
    weekly_streak: int = 0
    achievements: frozenset[str] = frozenset()


# Snapshot fields a stat threshold may reference
VALID_STAT_FIELDS: set[str] = {
    "xp",
    "level",
    "messages",
    "voice_minutes",
    "music_minutes",
    "study_minutes",
    "commands_used",
    "reactions_given",
    "reactions_received",
    "daily_streak",
    "weekly_streak",
}


@dataclass(frozen=True, slots=True)
class Achievement:
    """One catalog entry.  ``predicate`` must be a pure function."""

    id: str
    name: str
    description: str
    emoji: str
    reward_xp: int
    category: AchievementCategory
    rarity: Rarity
    predicate: Callable[[ActivitySnapshot], bool]


def _stat_at_least(field_name: str, value: int) -> Callable[[ActivitySnapshot], bool]:
    """Build a predicate that fires when *field_name* reaches *value*."""
    if field_name not in VALID_STAT_FIELDS:
        raise ValueError(f"Unknown stat field: {field_name}")

    def _check(snapshot: ActivitySnapshot) -> bool:
        return getattr(snapshot, field_name) >= value

    return _check


def _ach(
    id: str,
    name: str,
    description: str,
    emoji: str,
    reward_xp: int,
    category: AchievementCategory,
    rarity: Rarity,
    field_name: str,
    value: int,
) -> Achievement:
    return Achievement(
        id=id,
        name=name,
        description=description,
        emoji=emoji,
        reward_xp=reward_xp,
        category=category,
        rarity=rarity,
        predicate=_stat_at_least(field_name, value),
    )


_A = AchievementCategory
_R = Rarity

# ---------------------------------------------------------------------------
# The catalog (evaluation order == declaration order)
# ---------------------------------------------------------------------------
ACHIEVEMENTS: tuple[Achievement, ...] = (
    # Activity
    _ach("first_message", "First Steps", "Send your first message",
         "\U0001f44b", 10, _A.ACTIVITY, _R.COMMON, "messages", 1),
    _ach("chatter", "Chatter", "Send 100 messages",
         "\U0001f4ac", 50, _A.ACTIVITY, _R.COMMON, "messages", 100),
    _ach("conversationalist", "Conversationalist", "Send 1,000 messages",
         "\U0001f5e3\ufe0f", 200, _A.ACTIVITY, _R.UNCOMMON, "messages", 1_000),
    _ach("social_butterfly", "Social Butterfly", "Send 10,000 messages",
         "\U0001f98b", 1_000, _A.ACTIVITY, _R.RARE, "messages", 10_000),
    # Voice
    _ach("voice_newcomer", "Voice Newcomer", "Spend 1 hour in voice channels",
         "\U0001f3a4", 25, _A.SOCIAL, _R.COMMON, "voice_minutes", 60),
    _ach("voice_regular", "Voice Regular", "Spend 24 hours in voice channels",
         "\U0001f50a", 100, _A.SOCIAL, _R.UNCOMMON, "voice_minutes", 1_440),
    _ach("voice_addict", "Voice Addict", "Spend 168 hours in voice channels",
         "\U0001f4e2", 500, _A.SOCIAL, _R.RARE, "voice_minutes", 10_080),
    # Music
    _ach("music_lover", "Music Lover", "Listen to music for 2 hours",
         "\U0001f3b5", 50, _A.MUSIC, _R.COMMON, "music_minutes", 120),
    _ach("audiophile", "Audiophile", "Listen to music for 24 hours",
         "\U0001f3a7", 200, _A.MUSIC, _R.UNCOMMON, "music_minutes", 1_440),
    _ach("music_maestro", "Music Maestro", "Listen to music for 100 hours",
         "\U0001f3bc", 750, _A.MUSIC, _R.EPIC, "music_minutes", 6_000),
    # Study
    _ach("study_starter", "Study Starter", "Study for 1 hour total",
         "\U0001f4da", 30, _A.STUDY, _R.COMMON, "study_minutes", 60),
    _ach("dedicated_learner", "Dedicated Learner", "Study for 25 hours total",
         "\U0001f393", 150, _A.STUDY, _R.UNCOMMON, "study_minutes", 1_500),
    _ach("academic_excellence", "Academic Excellence", "Study for 100 hours total",
         "\U0001f3c6", 500, _A.STUDY, _R.RARE, "study_minutes", 6_000),
    # Streaks
    _ach("daily_dedication", "Daily Dedication", "Maintain a 7-day activity streak",
         "\U0001f525", 100, _A.SPECIAL, _R.UNCOMMON, "daily_streak", 7),
    _ach("consistency_king", "Consistency King", "Maintain a 30-day activity streak",
         "\U0001f451", 500, _A.SPECIAL, _R.EPIC, "daily_streak", 30),
    _ach("legendary_streak", "Legendary Streak", "Maintain a 100-day activity streak",
         "\u26a1", 2_000, _A.SPECIAL, _R.LEGENDARY, "daily_streak", 100),
    # Levels
    _ach("level_10", "Rising Star", "Reach level 10",
         "\u2b50", 100, _A.SPECIAL, _R.COMMON, "level", 10),
    _ach("level_25", "Community Pillar", "Reach level 25",
         "\U0001f3db\ufe0f", 300, _A.SPECIAL, _R.UNCOMMON, "level", 25),
    _ach("level_50", "Server Legend", "Reach level 50",
         "\U0001f31f", 800, _A.SPECIAL, _R.RARE, "level", 50),
    _ach("level_100", "Mythical Being", "Reach level 100",
         "\U0001f52e", 2_500, _A.SPECIAL, _R.LEGENDARY, "level", 100),
)

ACHIEVEMENTS_BY_ID: dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


# ---------------------------------------------------------------------------
# Main check function
# ---------------------------------------------------------------------------
def check_achievements(
    snapshot: ActivitySnapshot,
    already_earned: Iterable[str],
    catalog: Iterable[Achievement] = ACHIEVEMENTS,
) -> list[Achievement]:
    """Return the achievements newly satisfied by *snapshot*.

    Parameters
    ----------
    snapshot : Post-mutation state of the user.
    already_earned : Ids the user has unlocked before; never returned again.
    catalog : Achievements to evaluate, in order.
    """
    earned = set(already_earned)
    newly_earned: list[Achievement] = []
    for achievement in catalog:
        if achievement.id in earned:
            continue
        if achievement.predicate(snapshot):
            newly_earned.append(achievement)
    return newly_earned
