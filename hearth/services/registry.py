"""
hearth.services.registry — Per-Guild Manager Registry
======================================================

Owns one :class:`~hearth.storage.json_store.JsonStore` per subsystem file
and hands out exactly one manager per (subsystem, guild)::

    registry = GuildRegistry(cfg.data_dir)
    registry.economy(guild_id).claim_daily(user_id)
    registry.timers(guild_id).create_pomodoro_session(user_id, channel_id)

Guild-wide settings (welcome, audit log, bad words) are single objects
keyed by guild internally.

Cross-subsystem wiring also lives here: finished study and Pomodoro work
timers credit study minutes to the activity ledger, and new members get
the configured join bonus.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from pathlib import Path

from hearth.constants import MINUTE
from hearth.engine.timers import Timer, TimerKind
from hearth.services.activity_service import ActivityKind, ActivityLedger
from hearth.services.economy_service import EconomyLedger
from hearth.services.guild_config_service import (
    JOIN_BONUS_XP,
    AuditLogSettings,
    BadWordList,
    WelcomeSettings,
)
from hearth.services.moderation_service import ModerationStore
from hearth.services.timer_service import CLEANUP_GRACE_SECONDS, TimerEngine
from hearth.storage.json_store import JsonStore

logger = logging.getLogger(__name__)

STORE_FILES: dict[str, str] = {
    "economy": "economy.json",
    "activity": "activity.json",
    "warnings": "warnings.json",
    "mutes": "mutes.json",
    "welcome": "welcome.json",
    "audit": "audit.json",
    "badwords": "badwords.json",
}


class GuildRegistry:
    def __init__(
        self,
        data_dir: str | Path,
        *,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
        timer_cleanup_seconds: int = CLEANUP_GRACE_SECONDS,
    ) -> None:
        self.data_dir = Path(data_dir)
        self._clock = clock
        self._rng = rng or random.Random()
        self._timer_cleanup_seconds = timer_cleanup_seconds

        self.stores: dict[str, JsonStore] = {
            name: JsonStore(self.data_dir / filename) for name, filename in STORE_FILES.items()
        }
        self.welcome = WelcomeSettings(self.stores["welcome"])
        self.audit = AuditLogSettings(self.stores["audit"])
        self.bad_words = BadWordList(self.stores["badwords"])

        self._economy: dict[int, EconomyLedger] = {}
        self._activity: dict[int, ActivityLedger] = {}
        self._timers: dict[int, TimerEngine] = {}
        self._moderation: dict[int, ModerationStore] = {}
        logger.info("Guild registry ready (data dir: %s)", self.data_dir)

    # -------------------------------------------------------------------
    # Per-guild managers
    # -------------------------------------------------------------------
    def economy(self, guild_id: int) -> EconomyLedger:
        ledger = self._economy.get(guild_id)
        if ledger is None:
            ledger = EconomyLedger(
                guild_id, self.stores["economy"], clock=self._clock, rng=self._rng
            )
            self._economy[guild_id] = ledger
        return ledger

    def activity(self, guild_id: int) -> ActivityLedger:
        ledger = self._activity.get(guild_id)
        if ledger is None:
            ledger = ActivityLedger(
                guild_id, self.stores["activity"], clock=self._clock, rng=self._rng
            )
            self._activity[guild_id] = ledger
        return ledger

    def timers(self, guild_id: int) -> TimerEngine:
        engine = self._timers.get(guild_id)
        if engine is None:
            engine = TimerEngine(
                guild_id, clock=self._clock, cleanup_grace=self._timer_cleanup_seconds
            )
            engine.add_completion_hook(self._credit_study_time)
            self._timers[guild_id] = engine
        return engine

    def moderation(self, guild_id: int) -> ModerationStore:
        store = self._moderation.get(guild_id)
        if store is None:
            store = ModerationStore(
                guild_id, self.stores["warnings"], self.stores["mutes"], clock=self._clock
            )
            self._moderation[guild_id] = store
        return store

    def timer_engines(self) -> list[TimerEngine]:
        return list(self._timers.values())

    # -------------------------------------------------------------------
    # Cross-subsystem wiring
    # -------------------------------------------------------------------
    def _credit_study_time(self, timer: Timer) -> None:
        """Completion hook: study timers and Pomodoro work timers count as study time."""
        if timer.kind not in (TimerKind.STUDY, TimerKind.POMODORO):
            return
        minutes = timer.duration // MINUTE
        if minutes <= 0:
            return
        self.activity(timer.guild_id).add_activity(timer.owner_id, ActivityKind.STUDY, minutes)

    def apply_join_bonus(self, guild_id: int, user_id: int) -> int:
        """Grant the configured welcome coins and join XP.  Returns the coins granted."""
        coins = self.welcome.get(guild_id).bonus_coins
        economy = self.economy(guild_id)
        if coins > 0:
            economy.add_money(user_id, coins, "Welcome bonus")
        economy.add_xp(user_id, JOIN_BONUS_XP)
        return max(coins, 0)
