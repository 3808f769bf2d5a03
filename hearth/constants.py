"""
hearth.constants — Shared Constants & Helpers
==============================================

Single source of truth for presentation constants and the leveling formula.
Both the economy ledger and the activity ledger level their users with the
curve below; they keep separate ``xp``/``level`` fields but never a separate
formula.
"""

from __future__ import annotations

import math
import re

# ---------------------------------------------------------------------------
# Rarity presentation (used by leaderboard/profile rendering)
# ---------------------------------------------------------------------------
RARITY_EMOJI: dict[str, str] = {
    "common": "\u26aa",        # ⚪
    "uncommon": "\U0001f7e2",  # 🟢
    "rare": "\U0001f535",      # 🔵
    "epic": "\U0001f7e3",      # 🟣
    "legendary": "\U0001f7e1", # 🟡
}

RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉

# Seconds in common spans
MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY


# ---------------------------------------------------------------------------
# Leveling formula — THE single canonical implementation
# ---------------------------------------------------------------------------
def level_for_xp(xp: int) -> int:
    """Level reached with *xp* total experience.

    ``level = floor(sqrt(xp / 100)) + 1``.  Computed with integer square
    roots so large XP totals never hit float rounding.
    """
    if xp <= 0:
        return 1
    return math.isqrt(xp // 100) + 1


def xp_for_level(level: int) -> int:
    """Total XP required to reach *level* (inverse of :func:`level_for_xp`)."""
    return max(level - 1, 0) ** 2 * 100


def format_minutes(value: int) -> str:
    """Render a minute count as ``"3h 25m"``."""
    return f"{value // 60}h {value % 60}m"


# ---------------------------------------------------------------------------
# Duration strings ("30s", "10m", "2h", "1d")
# ---------------------------------------------------------------------------
_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS: dict[str, int] = {"s": 1, "m": MINUTE, "h": HOUR, "d": DAY}


def parse_duration(text: str) -> int | None:
    """Parse a duration string into seconds.  Returns None if malformed or zero."""
    match = _DURATION_RE.match(text.strip().lower())
    if match is None:
        return None
    seconds = int(match.group(1)) * _DURATION_UNITS[match.group(2)]
    return seconds or None
