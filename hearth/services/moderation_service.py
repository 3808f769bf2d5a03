"""
hearth.services.moderation_service — Warnings & Timed Mutes
============================================================

Per-guild moderation state over two JSON stores:

* ``warnings.json`` — ``"{guild}-{user}"`` → list of warning records.
* ``mutes.json``    — ``"{guild}-{user}"`` → ``{"unmute_at": <epoch s>}``.

Mutes are persisted so a restart does not forget them.  Expiry is handled
by the periodic-tasks cog, which reads :meth:`ModerationStore.expired_mutes`
every 30 seconds and calls :meth:`ModerationStore.unmute` once the Discord
role is lifted.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass

from hearth.constants import parse_duration
from hearth.storage.json_store import JsonStore, user_key

logger = logging.getLogger(__name__)

AUTO_MUTE_THRESHOLD = 3
AUTO_MUTE_SECONDS = 60 * 60
DEFAULT_REASON = "No reason provided"


@dataclass(frozen=True, slots=True)
class WarningRecord:
    id: str
    moderator_id: int
    reason: str
    timestamp: float

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict) -> WarningRecord:
        return cls(
            id=str(raw["id"]),
            moderator_id=int(raw["moderator_id"]),
            reason=str(raw.get("reason", DEFAULT_REASON)),
            timestamp=float(raw.get("timestamp", 0.0)),
        )


@dataclass(frozen=True, slots=True)
class WarnResult:
    warning: WarningRecord
    count: int
    auto_mute_threshold_reached: bool


@dataclass(frozen=True, slots=True)
class MuteRecord:
    guild_id: int
    user_id: int
    unmute_at: float


class ModerationStore:
    """Warnings and mutes for one guild."""

    def __init__(
        self,
        guild_id: int,
        warnings: JsonStore,
        mutes: JsonStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.guild_id = guild_id
        self._warnings = warnings
        self._mutes = mutes
        self._clock = clock

    # -------------------------------------------------------------------
    # Warnings
    # -------------------------------------------------------------------
    def get_warnings(self, user_id: int) -> list[WarningRecord]:
        raw = self._warnings.get(user_key(self.guild_id, user_id), [])
        records: list[WarningRecord] = []
        for entry in raw if isinstance(raw, list) else []:
            try:
                records.append(WarningRecord.from_dict(entry))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed warning for %s in %s", user_id, self.guild_id)
        return records

    def warn(self, user_id: int, moderator_id: int, reason: str | None = None) -> WarnResult:
        """Append a warning and report whether the auto-mute threshold is reached."""
        existing = self.get_warnings(user_id)
        warning = WarningRecord(
            id=uuid.uuid4().hex,
            moderator_id=moderator_id,
            reason=reason or DEFAULT_REASON,
            timestamp=self._clock(),
        )
        existing.append(warning)
        self._warnings.set(user_key(self.guild_id, user_id), [w.to_dict() for w in existing])
        self._warnings.save()
        logger.info(
            "Warning %s for %s in %s by %s: %s",
            warning.id, user_id, self.guild_id, moderator_id, warning.reason,
        )
        return WarnResult(
            warning=warning,
            count=len(existing),
            auto_mute_threshold_reached=len(existing) >= AUTO_MUTE_THRESHOLD,
        )

    def clear_warnings(self, user_id: int, warning_id: str | None = None) -> bool:
        """Clear one warning by id, or all of them.  Returns False if nothing matched."""
        key = user_key(self.guild_id, user_id)
        existing = self.get_warnings(user_id)
        if not existing:
            return False
        if warning_id is None:
            self._warnings.delete(key)
        else:
            kept = [w for w in existing if w.id != warning_id]
            if len(kept) == len(existing):
                return False
            if kept:
                self._warnings.set(key, [w.to_dict() for w in kept])
            else:
                self._warnings.delete(key)
        self._warnings.save()
        return True

    # -------------------------------------------------------------------
    # Mutes
    # -------------------------------------------------------------------
    def mute_timed(self, user_id: int, duration: int | str) -> MuteRecord | None:
        """Record a mute lasting *duration* (seconds or ``"10m"``-style).  None if invalid."""
        seconds = parse_duration(duration) if isinstance(duration, str) else duration
        if not seconds or seconds <= 0:
            return None
        record = MuteRecord(
            guild_id=self.guild_id,
            user_id=user_id,
            unmute_at=self._clock() + seconds,
        )
        self._mutes.set(user_key(self.guild_id, user_id), {"unmute_at": record.unmute_at})
        self._mutes.save()
        logger.info("Muted %s in %s for %ss", user_id, self.guild_id, seconds)
        return record

    def get_mute(self, user_id: int) -> MuteRecord | None:
        raw = self._mutes.get(user_key(self.guild_id, user_id))
        if not isinstance(raw, dict) or "unmute_at" not in raw:
            return None
        return MuteRecord(guild_id=self.guild_id, user_id=user_id, unmute_at=float(raw["unmute_at"]))

    def is_muted(self, user_id: int, now: float | None = None) -> bool:
        record = self.get_mute(user_id)
        if record is None:
            return False
        now = self._clock() if now is None else now
        return now < record.unmute_at

    def unmute(self, user_id: int) -> bool:
        """Forget a mute early.  Returns False if the user was not muted."""
        if not self._mutes.delete(user_key(self.guild_id, user_id)):
            return False
        self._mutes.save()
        logger.info("Unmuted %s in %s", user_id, self.guild_id)
        return True

    def active_mutes(self) -> list[MuteRecord]:
        prefix = f"{self.guild_id}-"
        records: list[MuteRecord] = []
        for key, raw in self._mutes.items(prefix):
            try:
                records.append(
                    MuteRecord(
                        guild_id=self.guild_id,
                        user_id=int(key[len(prefix):]),
                        unmute_at=float(raw["unmute_at"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed mute record %r", key)
        return records

    def expired_mutes(self, now: float | None = None) -> list[MuteRecord]:
        """Mutes whose time is up, left in place."""
        now = self._clock() if now is None else now
        return [m for m in self.active_mutes() if m.unmute_at <= now]

    def pop_expired(self, now: float | None = None) -> list[MuteRecord]:
        """Remove and return every mute whose time is up."""
        expired = self.expired_mutes(now)
        for mute in expired:
            self._mutes.delete(user_key(self.guild_id, mute.user_id))
        if expired:
            self._mutes.save()
            logger.info("%d mutes expired in %s", len(expired), self.guild_id)
        return expired
