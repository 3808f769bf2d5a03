"""
hearth.services.notifier — Channel Resolution & Delivery
=========================================================

The one place that turns engine output into Discord messages.  Every send
is wrapped so a missing channel or a failed request is logged and dropped;
delivery failures never propagate back into the timer engine or the
activity pipeline.

Embed construction lives in :mod:`hearth.services.embeds`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.abc import Messageable

from hearth.services.embeds import (
    build_achievement_embed,
    build_level_up_embed,
    build_notification_embed,
)

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot
    from hearth.engine.timers import TimerNotification
    from hearth.services.activity_service import ActivityResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Channel resolution
# ---------------------------------------------------------------------------
async def resolve_channel(bot: HearthBot, channel_id: int | None) -> Messageable | None:
    """Cached lookup first, then one API fetch.  None if unreachable."""
    if not channel_id:
        return None
    channel = bot.get_channel(channel_id)
    if channel is None:
        try:
            channel = await bot.fetch_channel(channel_id)
        except discord.DiscordException:
            logger.warning("Channel %d could not be fetched", channel_id)
            return None
    if not isinstance(channel, Messageable):
        return None
    return channel


async def _send(
    channel: Messageable | None,
    *,
    content: str | None = None,
    embed: discord.Embed | None = None,
) -> bool:
    if channel is None:
        return False
    try:
        await channel.send(content=content, embed=embed)
    except Exception:
        logger.exception("Failed to send message to channel %s", getattr(channel, "id", "?"))
        return False
    return True


# ---------------------------------------------------------------------------
# Public API — called by cogs
# ---------------------------------------------------------------------------
async def deliver_timer_notification(bot: HearthBot, note: TimerNotification) -> bool:
    """Post one timer notification in the channel the timer was started from."""
    channel = await resolve_channel(bot, note.channel_id)
    if channel is None:
        logger.warning("Dropping %s notification for timer %s", note.kind, note.timer_id)
        return False
    content = f"<@{note.owner_id}>" if note.mention_owner else None
    return await _send(channel, content=content, embed=build_notification_embed(note))


async def announce_activity(
    channel: Messageable | None,
    *,
    result: ActivityResult,
    user_id: int,
    avatar_url: str | None,
) -> None:
    """Announce level-ups and achievements from an activity result."""
    if result.level_up:
        await _send(channel, embed=build_level_up_embed(user_id, avatar_url, result.new_level))
    for achievement in result.unlocked:
        await _send(channel, embed=build_achievement_embed(user_id, avatar_url, achievement))


async def send_audit_log(bot: HearthBot, guild_id: int, event: str, embed: discord.Embed) -> bool:
    """Post *embed* to the guild's audit channel if *event* is being logged."""
    audit = bot.registry.audit
    if not audit.should_log(guild_id, event):
        return False
    channel = await resolve_channel(bot, audit.get(guild_id).channel_id)
    return await _send(channel, embed=embed)
