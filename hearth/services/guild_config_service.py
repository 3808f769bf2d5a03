"""
hearth.services.guild_config_service — Welcome, Audit Log & Bad Words
======================================================================

Guild-scoped settings documents, one JSON store each:

* ``welcome.json``  — greeting channel, message template, join bonus, auto-role.
* ``audit.json``    — audit-log channel and per-event toggles.
* ``badwords.json`` — the per-guild filtered word list.

A guild with no stored document gets defaults on first read; the defaults
are written back so the file reflects what the bot is actually using.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field, fields

from hearth.storage.json_store import JsonStore, guild_key

logger = logging.getLogger(__name__)

DEFAULT_WELCOME_MESSAGE = (
    "Welcome to **{server}**, {user}! \U0001f389\n"
    "You are member #{memberCount}. Make yourself at home!"
)
JOIN_BONUS_XP = 50


# ---------------------------------------------------------------------------
# Welcome
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class WelcomeConfig:
    enabled: bool = True
    channel_id: int | None = None
    message: str = DEFAULT_WELCOME_MESSAGE
    card_enabled: bool = True
    dm_welcome: bool = False
    dm_message: str | None = None
    auto_role_id: int | None = None
    embed_color: str = "#667eea"
    bonus_coins: int = 100
    mention_user: bool = True

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict) -> WelcomeConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in raw.items() if k in known})


def format_welcome_message(
    template: str,
    *,
    user_mention: str,
    username: str,
    display_name: str,
    server: str,
    member_count: int,
) -> str:
    """Substitute ``{user}``, ``{username}``, ``{displayName}``, ``{server}``, ``{memberCount}``."""
    replacements = {
        "{user}": user_mention,
        "{username}": username,
        "{displayName}": display_name,
        "{server}": server,
        "{memberCount}": str(member_count),
    }
    text = template
    for placeholder, value in replacements.items():
        text = text.replace(placeholder, value)
    return text


class WelcomeSettings:
    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def get(self, guild_id: int) -> WelcomeConfig:
        raw = self._store.get(guild_key(guild_id))
        if isinstance(raw, dict):
            try:
                return WelcomeConfig.from_dict(raw)
            except TypeError:
                logger.warning("Resetting malformed welcome config for %s", guild_id)
        config = WelcomeConfig()
        self._write(guild_id, config)
        return config

    def _write(self, guild_id: int, config: WelcomeConfig) -> None:
        self._store.set(guild_key(guild_id), config.to_dict())
        self._store.save()

    def update(self, guild_id: int, **changes) -> bool:
        """Apply *changes* atomically.  Any unknown setting rejects the whole update."""
        known = {f.name for f in fields(WelcomeConfig)}
        unknown = set(changes) - known
        if unknown:
            logger.warning("Rejected unknown welcome settings %s", sorted(unknown))
            return False
        config = self.get(guild_id)
        for name, value in changes.items():
            setattr(config, name, value)
        self._write(guild_id, config)
        return True

    def set_channel(self, guild_id: int, channel_id: int | None) -> None:
        self.update(guild_id, channel_id=channel_id)

    def set_message(self, guild_id: int, message: str) -> None:
        self.update(guild_id, message=message)

    def set_auto_role(self, guild_id: int, role_id: int | None) -> None:
        self.update(guild_id, auto_role_id=role_id)

    def toggle(self, guild_id: int, enabled: bool) -> None:
        self.update(guild_id, enabled=enabled)

    def toggle_card(self, guild_id: int, enabled: bool) -> None:
        self.update(guild_id, card_enabled=enabled)


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------
AUDIT_EVENTS: tuple[str, ...] = (
    "member_join",
    "member_leave",
    "message_delete",
    "message_edit",
    "channel_create",
    "channel_delete",
    "role_create",
    "role_delete",
    "member_ban",
    "member_unban",
    "member_kick",
    "member_mute",
    "member_unmute",
    "member_warn",
)


@dataclass(slots=True)
class AuditConfig:
    enabled: bool = False
    channel_id: int | None = None
    events: dict[str, bool] = field(default_factory=lambda: dict.fromkeys(AUDIT_EVENTS, True))

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict) -> AuditConfig:
        events = dict.fromkeys(AUDIT_EVENTS, True)
        stored = raw.get("events")
        if isinstance(stored, dict):
            events.update({k: bool(v) for k, v in stored.items() if k in events})
        return cls(
            enabled=bool(raw.get("enabled", False)),
            channel_id=raw.get("channel_id"),
            events=events,
        )


class AuditLogSettings:
    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def get(self, guild_id: int) -> AuditConfig:
        raw = self._store.get(guild_key(guild_id))
        if isinstance(raw, dict):
            return AuditConfig.from_dict(raw)
        config = AuditConfig()
        self._write(guild_id, config)
        return config

    def _write(self, guild_id: int, config: AuditConfig) -> None:
        self._store.set(guild_key(guild_id), config.to_dict())
        self._store.save()

    def set_log_channel(self, guild_id: int, channel_id: int) -> None:
        """Point the audit log at *channel_id* and switch logging on."""
        config = self.get(guild_id)
        config.channel_id = channel_id
        config.enabled = True
        self._write(guild_id, config)

    def toggle_logging(self, guild_id: int, enabled: bool) -> None:
        config = self.get(guild_id)
        config.enabled = enabled
        self._write(guild_id, config)

    def toggle_event(self, guild_id: int, event: str, enabled: bool) -> bool:
        """Enable or disable one event type.  Returns False for an unknown event."""
        if event not in AUDIT_EVENTS:
            return False
        config = self.get(guild_id)
        config.events[event] = enabled
        self._write(guild_id, config)
        return True

    def should_log(self, guild_id: int, event: str) -> bool:
        config = self.get(guild_id)
        return config.enabled and config.channel_id is not None and config.events.get(event, False)


# ---------------------------------------------------------------------------
# Bad words
# ---------------------------------------------------------------------------
class BadWordList:
    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def get(self, guild_id: int) -> list[str]:
        raw = self._store.get(guild_key(guild_id), [])
        return [str(w) for w in raw] if isinstance(raw, list) else []

    def add(self, guild_id: int, word: str) -> bool:
        """Add *word* (case-insensitive).  Returns False if blank or already listed."""
        word = word.strip().lower()
        words = self.get(guild_id)
        if not word or word in words:
            return False
        words.append(word)
        self._store.set(guild_key(guild_id), words)
        self._store.save()
        return True

    def remove(self, guild_id: int, word: str) -> bool:
        word = word.strip().lower()
        words = self.get(guild_id)
        if word not in words:
            return False
        words.remove(word)
        self._store.set(guild_key(guild_id), words)
        self._store.save()
        return True

    def find_bad_word(self, guild_id: int, content: str) -> str | None:
        """First listed word appearing as a whole word in *content*, or None."""
        lowered = content.lower()
        for word in self.get(guild_id):
            if re.search(rf"\b{re.escape(word)}\b", lowered):
                return word
        return None
