"""
hearth.services.embeds — Discord embed builders
================================================

All embed construction lives here so the notifier and cogs only need to
supply data — no layout concerns.
"""

from __future__ import annotations

import discord

from hearth.constants import RANK_BADGES, RARITY_EMOJI
from hearth.engine.achievements import Achievement
from hearth.engine.leaderboard import LeaderboardEntry
from hearth.engine.timers import (
    TIMER_EMOJI,
    Timer,
    TimerNotification,
    TimerState,
    format_time,
    progress_bar,
)


def build_notification_embed(note: TimerNotification) -> discord.Embed:
    """Render a queued timer notification."""
    embed = discord.Embed(
        title=note.title,
        description=note.description,
        color=discord.Color(note.color),
    )
    for name, value in note.fields:
        embed.add_field(name=name, value=value, inline=True)
    embed.set_footer(text=f"Timer {note.timer_id}")
    return embed


def build_timer_embed(timer: Timer) -> discord.Embed:
    """Status card for one timer."""
    status = {
        TimerState.RUNNING: "\u25b6\ufe0f Running",
        TimerState.PAUSED: "\u23f8\ufe0f Paused",
        TimerState.COMPLETED: "\u2705 Completed",
        TimerState.STOPPED: "\u23f9\ufe0f Stopped",
    }[timer.state]
    embed = discord.Embed(
        title=f"{TIMER_EMOJI[timer.kind]} {timer.name}",
        description=timer.description or None,
        color=discord.Color.blurple(),
    )
    embed.add_field(name="Remaining", value=format_time(timer.remaining), inline=True)
    embed.add_field(name="Duration", value=format_time(timer.duration), inline=True)
    embed.add_field(name="Status", value=status, inline=True)
    if timer.in_pomodoro_session:
        embed.add_field(
            name="Cycle", value=f"{timer.cycle_index}/{timer.total_cycles}", inline=True
        )
    if timer.settings.show_progress:
        embed.add_field(name="Progress", value=f"`{progress_bar(timer)}`", inline=False)
    embed.set_footer(text=f"ID: {timer.id}")
    return embed


def build_level_up_embed(user_id: int, avatar_url: str | None, new_level: int) -> discord.Embed:
    """Level-up celebration embed with @mention."""
    embed = discord.Embed(
        title="\u26a1 Level Up!",
        description=f"<@{user_id}> reached **Level {new_level}**!",
        color=discord.Color.gold(),
    )
    if avatar_url:
        embed.set_thumbnail(url=avatar_url)
    return embed


def build_achievement_embed(
    user_id: int, avatar_url: str | None, achievement: Achievement
) -> discord.Embed:
    """Achievement celebration embed with @mention."""
    rarity_emoji = RARITY_EMOJI.get(achievement.rarity, "\u26aa")
    embed = discord.Embed(
        title="\U0001f3c6 Achievement Unlocked!",
        description=(
            f"<@{user_id}> earned "
            f"{achievement.emoji} **{achievement.name}** "
            f"({rarity_emoji} {achievement.rarity})\n\n"
            f"*{achievement.description}*"
        ),
        color=discord.Color.purple(),
    )
    embed.add_field(name="Reward", value=f"+{achievement.reward_xp} XP", inline=False)
    if avatar_url:
        embed.set_thumbnail(url=avatar_url)
    return embed


def build_leaderboard_embed(
    title: str,
    entries: list[LeaderboardEntry],
    fmt=str,
) -> discord.Embed:
    """Ranked list; the top three get medal badges."""
    lines = []
    for entry in entries:
        badge = RANK_BADGES[entry.rank - 1] if entry.rank <= len(RANK_BADGES) else f"**#{entry.rank}**"
        lines.append(f"{badge} <@{entry.user_id}> — {fmt(entry.value)}")
    return discord.Embed(
        title=title,
        description="\n".join(lines) or "No data yet.",
        color=discord.Color.gold(),
    )


def build_audit_embed(title: str, description: str, color: discord.Color) -> discord.Embed:
    embed = discord.Embed(title=title, description=description, color=color)
    embed.timestamp = discord.utils.utcnow()
    return embed
