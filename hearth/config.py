"""
hearth.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for the bot's infrastructure settings: identity,
command prefix, where the JSON state files live, and a few scheduling knobs.
Secrets (``DISCORD_TOKEN``) are never stored here; they come from the
environment.

Usage::

    from hearth.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.community_name)    # "Hearth Dev"
    print(cfg.data_dir)          # PosixPath('data')
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HearthConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str

    # Discord
    bot_prefix: str

    # Storage: one JSON document per subsystem lives under this directory
    data_dir: Path

    # Moderation
    mute_role_name: str = "Muted"

    # Timers
    timer_cleanup_minutes: int = 30  # grace window before finished timers are reaped


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> HearthConfig:
    """Read *path* and return a :class:`HearthConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return HearthConfig(
        community_name=raw["community_name"],
        bot_prefix=raw["bot_prefix"],
        data_dir=Path(raw["data_dir"]),
        mute_role_name=raw.get("mute_role_name") or "Muted",
        timer_cleanup_minutes=int(raw.get("timer_cleanup_minutes", 30)),
    )
