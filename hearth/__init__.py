"""
Hearth — Community Core for Discord
====================================
Keeps a community's shared state in one place: wallets and daily claims,
activity XP with achievements and streaks, Pomodoro and study timers,
moderation records, and per-guild settings.  Everything is partitioned by
guild and persisted as flat JSON files.

Package layout::

    hearth/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Leveling curve + presentation constants
    ├── storage/
    │   └── json_store.py  # Flush-on-write JSON key/value store
    ├── engine/
    │   ├── achievements.py # Achievement catalog + pure predicate checks
    │   ├── leaderboard.py  # Leaderboard category table + ranking
    │   └── timers.py       # Timer model, presets, formatting helpers
    ├── services/
    │   ├── economy_service.py      # Wallet / bank / XP ledger
    │   ├── activity_service.py     # Activity counters, achievements, streaks
    │   ├── timer_service.py        # Timer state machine + Pomodoro cycles
    │   ├── moderation_service.py   # Warnings + timed mutes
    │   ├── guild_config_service.py # Welcome, audit-log, bad-word settings
    │   ├── notifier.py             # Channel delivery for timer notifications
    │   ├── embeds.py               # Discord embed builders
    │   └── registry.py             # Per-guild manager registry
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        └── cogs/          # Listeners, slash commands, periodic tasks
"""

__version__ = "0.1.0"
