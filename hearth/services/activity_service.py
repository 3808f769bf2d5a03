"""
hearth.services.activity_service — Activity Ledger, XP & Streaks
=================================================================

Per-guild activity tracking backed by ``activity.json``.

Pipeline for one activity event::

    counter += amount → award kind-specific XP → recompute level
        → check achievements (each unlock awards its own XP) → repeat
          until no new unlocks → persist → ActivityResult

Achievement evaluation runs to a fixpoint so a reward that pushes the user
over a level threshold is caught in the same event, while every
achievement is still granted at most once per user.

Streaks are advanced by :meth:`ActivityLedger.sweep_streaks`, called once
an hour by the periodic-tasks cog.
"""

from __future__ import annotations

import enum
import logging
import random
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, fields

from hearth.constants import DAY, level_for_xp, xp_for_level
from hearth.engine.achievements import (
    ACHIEVEMENTS,
    ACHIEVEMENTS_BY_ID,
    Achievement,
    ActivitySnapshot,
    check_achievements,
)
from hearth.engine.leaderboard import (
    ACTIVITY_CATEGORIES,
    LeaderboardCategory,
    LeaderboardEntry,
    rank_of,
    rank_users,
)
from hearth.storage.json_store import JsonStore, user_key

logger = logging.getLogger(__name__)


class ActivityKind(enum.StrEnum):
    MESSAGE = "message"
    VOICE = "voice"
    MUSIC = "music"
    STUDY = "study"
    REACTION_GIVEN = "reaction_given"
    REACTION_RECEIVED = "reaction_received"
    COMMAND = "command"


# Which counter each kind increments
ACTIVITY_COUNTERS: dict[ActivityKind, str] = {
    ActivityKind.MESSAGE: "messages",
    ActivityKind.VOICE: "voice_minutes",
    ActivityKind.MUSIC: "music_minutes",
    ActivityKind.STUDY: "study_minutes",
    ActivityKind.REACTION_GIVEN: "reactions_given",
    ActivityKind.REACTION_RECEIVED: "reactions_received",
    ActivityKind.COMMAND: "commands_used",
}

MESSAGE_XP_RANGE = (5, 20)
COMMAND_XP = 2


def xp_for_activity(kind: ActivityKind, amount: int, rng: random.Random) -> int:
    """XP earned for *amount* units of *kind*.

    Messages earn one random roll per event regardless of *amount*; commands
    earn a flat bonus; everything else scales linearly.
    """
    match kind:
        case ActivityKind.MESSAGE:
            return rng.randint(*MESSAGE_XP_RANGE)
        case ActivityKind.VOICE:
            return amount * 2
        case ActivityKind.MUSIC:
            return amount
        case ActivityKind.STUDY:
            return amount * 3
        case ActivityKind.REACTION_GIVEN:
            return amount
        case ActivityKind.REACTION_RECEIVED:
            return amount * 2
        case ActivityKind.COMMAND:
            return COMMAND_XP
    return 0


@dataclass(slots=True)
class UserActivityRecord:
    xp: int = 0
    level: int = 1
    messages: int = 0
    voice_minutes: int = 0
    music_minutes: int = 0
    study_minutes: int = 0
    commands_used: int = 0
    reactions_given: int = 0
    reactions_received: int = 0
    achievements: list[str] = field(default_factory=list)
    last_active: float = 0.0
    daily_streak: int = 0
    weekly_streak: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict) -> UserActivityRecord:
        known = {f.name for f in fields(cls)}
        record = cls(**{k: v for k, v in raw.items() if k in known})
        record.achievements = list(record.achievements)
        return record

    def snapshot(self) -> ActivitySnapshot:
        return ActivitySnapshot(
            xp=self.xp,
            level=self.level,
            messages=self.messages,
            voice_minutes=self.voice_minutes,
            music_minutes=self.music_minutes,
            study_minutes=self.study_minutes,
            commands_used=self.commands_used,
            reactions_given=self.reactions_given,
            reactions_received=self.reactions_received,
            daily_streak=self.daily_streak,
            weekly_streak=self.weekly_streak,
            achievements=frozenset(self.achievements),
        )

    @property
    def xp_for_next(self) -> int:
        return xp_for_level(self.level + 1)


@dataclass(frozen=True, slots=True)
class ActivityResult:
    xp_gained: int
    old_level: int
    new_level: int
    unlocked: tuple[Achievement, ...] = ()

    @property
    def level_up(self) -> bool:
        return self.new_level > self.old_level


class ActivityLedger:
    """Activity counters, XP, achievements, and streaks for one guild."""

    def __init__(
        self,
        guild_id: int,
        store: JsonStore,
        *,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        self.guild_id = guild_id
        self._store = store
        self._clock = clock
        self._rng = rng or random.Random()
        self._records: dict[int, UserActivityRecord] = {}

        prefix = f"{guild_id}-"
        for key, raw in store.items(prefix):
            try:
                user_id = int(key[len(prefix):])
                self._records[user_id] = UserActivityRecord.from_dict(raw)
            except (AttributeError, TypeError, ValueError):
                logger.warning("Skipping malformed activity record %r", key)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _get(self, user_id: int) -> UserActivityRecord:
        record = self._records.get(user_id)
        if record is None:
            record = UserActivityRecord(last_active=self._clock())
            self._records[user_id] = record
        return record

    def _commit(self, *user_ids: int) -> None:
        for user_id in user_ids:
            self._store.set(user_key(self.guild_id, user_id), self._records[user_id].to_dict())
        self._store.save()

    def _settle(self, user_id: int, record: UserActivityRecord) -> list[Achievement]:
        """Recompute level and unlock achievements until nothing changes."""
        unlocked: list[Achievement] = []
        while True:
            record.level = level_for_xp(record.xp)
            fresh = check_achievements(record.snapshot(), record.achievements)
            if not fresh:
                return unlocked
            for achievement in fresh:
                record.achievements.append(achievement.id)
                record.xp += achievement.reward_xp
                logger.info(
                    "Achievement %s unlocked by %s in %s",
                    achievement.id, user_id, self.guild_id,
                )
            unlocked.extend(fresh)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_activity(
        self, user_id: int, kind: str | ActivityKind, amount: int = 1
    ) -> ActivityResult | None:
        """Record one activity event.  Unknown *kind* or non-positive *amount* returns None."""
        try:
            kind = ActivityKind(kind)
        except ValueError:
            logger.warning("Ignoring unknown activity kind %r", kind)
            return None
        if amount <= 0:
            return None

        record = self._get(user_id)
        old_level = record.level
        counter = ACTIVITY_COUNTERS[kind]
        setattr(record, counter, getattr(record, counter) + amount)

        gained = xp_for_activity(kind, amount, self._rng)
        record.xp += gained
        record.last_active = self._clock()

        unlocked = self._settle(user_id, record)
        self._commit(user_id)
        return ActivityResult(
            xp_gained=gained,
            old_level=old_level,
            new_level=record.level,
            unlocked=tuple(unlocked),
        )

    def add_xp(self, user_id: int, amount: int, source: str = "manual") -> ActivityResult | None:
        """Grant raw XP outside the activity kinds (bonuses, admin grants)."""
        if amount < 0:
            return None
        record = self._get(user_id)
        old_level = record.level
        record.xp += amount
        record.last_active = self._clock()
        unlocked = self._settle(user_id, record)
        self._commit(user_id)
        logger.info("Granted %d XP to %s in %s (%s)", amount, user_id, self.guild_id, source)
        return ActivityResult(
            xp_gained=amount,
            old_level=old_level,
            new_level=record.level,
            unlocked=tuple(unlocked),
        )

    def sweep_streaks(self, now: float | None = None) -> int:
        """Advance or reset streaks.  Returns the number of users touched.

        A user idle for more than a day loses both streaks.  A user whose
        last activity is exactly one whole day ago gains a daily streak day,
        and a weekly streak week on every seventh day.  Anything in between
        leaves the streak untouched, so an hourly sweep advances it at most
        on the sweep that lands on the day boundary.
        """
        now = self._clock() if now is None else now
        cutoff = now - DAY
        touched: list[int] = []

        for user_id, record in self._records.items():
            if record.last_active < cutoff:
                if record.daily_streak or record.weekly_streak:
                    record.daily_streak = 0
                    record.weekly_streak = 0
                    touched.append(user_id)
                continue
            days_since = int((now - record.last_active) // DAY)
            if days_since == 1:
                record.daily_streak += 1
                if record.daily_streak % 7 == 0:
                    record.weekly_streak += 1
                self._settle(user_id, record)
                touched.append(user_id)

        if touched:
            self._commit(*touched)
            logger.info("Streak sweep touched %d users in %s", len(touched), self.guild_id)
        return len(touched)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_user_stats(self, user_id: int) -> UserActivityRecord:
        return self._get(user_id)

    def get_leaderboard(self, category: str = "xp", limit: int = 10) -> list[LeaderboardEntry]:
        """Top users in *category*; an unknown category yields []."""
        cat = ACTIVITY_CATEGORIES.get(category)
        if cat is None:
            return []
        return rank_users(((uid, cat.value(r)) for uid, r in self._records.items()), limit)

    def get_user_rank(self, user_id: int, category: str = "xp") -> int | None:
        """1-based rank of *user_id* in *category*, or None for an unknown category."""
        cat = ACTIVITY_CATEGORIES.get(category)
        if cat is None:
            return None
        target = cat.value(self._get(user_id))
        return rank_of((cat.value(r) for r in self._records.values()), target)

    def xp_to_next_level(self, user_id: int) -> int:
        record = self._get(user_id)
        return max(xp_for_level(record.level + 1) - record.xp, 0)

    # -------------------------------------------------------------------
    # Catalog lookups
    # -------------------------------------------------------------------
    @staticmethod
    def xp_for_level(level: int) -> int:
        return xp_for_level(level)

    @staticmethod
    def categories() -> list[LeaderboardCategory]:
        return list(ACTIVITY_CATEGORIES.values())

    @staticmethod
    def achievements() -> tuple[Achievement, ...]:
        return ACHIEVEMENTS

    @staticmethod
    def get_achievement(achievement_id: str) -> Achievement | None:
        return ACHIEVEMENTS_BY_ID.get(achievement_id)

    @staticmethod
    def format_value(category: str, value: int) -> str:
        """Render *value* the way *category* displays it; unknown categories get ``str``."""
        cat = ACTIVITY_CATEGORIES.get(category)
        return cat.fmt(value) if cat else str(value)
