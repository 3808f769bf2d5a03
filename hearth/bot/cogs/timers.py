"""
hearth.bot.cogs.timers — Timer Commands
========================================

The ``/timer`` command group over the per-guild timer engine.  Timers tick
in :mod:`hearth.bot.cogs.tasks`; this cog only creates, inspects, and
controls them.  Only a timer's owner (or a member with Manage Server) may
pause, resume, or stop it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from hearth.constants import MINUTE, parse_duration
from hearth.engine.timers import (
    TIMER_EMOJI,
    PresetCategory,
    Recurrence,
    StudySession,
    Timer,
    TimerKind,
    format_time,
    get_presets,
    get_presets_by_category,
)
from hearth.services.embeds import build_timer_embed

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot
    from hearth.services.timer_service import TimerEngine

logger = logging.getLogger(__name__)


def _session_mark(session: StudySession) -> str:
    if session.completed:
        return "\u2705"
    return "\u23f9\ufe0f" if session.ended_at else "\u25b6\ufe0f"


class Timers(commands.Cog, name="Timers"):
    """Pomodoro, study, and general-purpose countdowns."""

    timer = app_commands.Group(name="timer", description="Focus timers and reminders", guild_only=True)

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot

    def _engine(self, interaction: discord.Interaction) -> TimerEngine:
        return self.bot.registry.timers(interaction.guild_id or 0)

    def _owned(self, interaction: discord.Interaction, timer_id: str) -> Timer | None:
        timer = self._engine(interaction).get_timer(timer_id)
        if timer is None:
            return None
        perms = getattr(interaction.user, "guild_permissions", None)
        if timer.owner_id != interaction.user.id and not (perms and perms.manage_guild):
            return None
        return timer

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    @timer.command(name="start", description="Start a custom timer.")
    @app_commands.describe(
        duration="How long, e.g. 90s, 25m, 2h",
        name="What the timer is for",
        kind="Timer type",
        repeat_every="Restart this long after it finishes, e.g. 10m",
        repeat_count="How many times to repeat (empty = forever)",
    )
    async def start(
        self,
        interaction: discord.Interaction,
        duration: str,
        name: str = "Timer",
        kind: TimerKind = TimerKind.CUSTOM,
        repeat_every: str | None = None,
        repeat_count: app_commands.Range[int, 1] | None = None,
    ) -> None:
        seconds = parse_duration(duration)
        if seconds is None:
            await interaction.response.send_message(
                "\u274c Invalid duration. Use a number plus s, m, h, or d (e.g. `25m`).",
                ephemeral=True,
            )
            return

        recurring = None
        if repeat_every is not None:
            interval = parse_duration(repeat_every)
            if interval is None:
                await interaction.response.send_message("\u274c Invalid repeat interval.", ephemeral=True)
                return
            recurring = Recurrence(interval=interval, count=repeat_count)

        timer = self._engine(interaction).create_timer(
            interaction.user.id,
            interaction.channel_id or 0,
            kind,
            seconds,
            name,
            recurring=recurring,
        )
        if timer is None:
            await interaction.response.send_message("\u274c Could not start that timer.", ephemeral=True)
            return
        await interaction.response.send_message(embed=build_timer_embed(timer))

    @timer.command(name="preset", description="Start a timer from a preset.")
    @app_commands.choices(preset=[
        app_commands.Choice(name=f"{p.name} ({p.duration // MINUTE}m)", value=p.id)
        for p in get_presets()
    ])
    async def preset(self, interaction: discord.Interaction, preset: str) -> None:
        timer = self._engine(interaction).start_preset(
            interaction.user.id, interaction.channel_id or 0, preset
        )
        if timer is None:
            await interaction.response.send_message("\u274c Unknown preset.", ephemeral=True)
            return
        await interaction.response.send_message(embed=build_timer_embed(timer))

    @timer.command(name="pomodoro", description="Start a Pomodoro session.")
    @app_commands.describe(
        work="Work minutes (default 25)",
        short_break="Short break minutes (default 5)",
        long_break="Long break minutes (default 15)",
        cycles="Work sessions before the session ends (default 4)",
    )
    async def pomodoro(
        self,
        interaction: discord.Interaction,
        work: app_commands.Range[int, 1, 180] = 25,
        short_break: app_commands.Range[int, 1, 60] = 5,
        long_break: app_commands.Range[int, 1, 120] = 15,
        cycles: app_commands.Range[int, 1, 12] = 4,
    ) -> None:
        timer = self._engine(interaction).create_pomodoro_session(
            interaction.user.id,
            interaction.channel_id or 0,
            work_seconds=work * MINUTE,
            short_break_seconds=short_break * MINUTE,
            long_break_seconds=long_break * MINUTE,
            total_cycles=cycles,
        )
        if timer is None:
            await interaction.response.send_message("\u274c Could not start the session.", ephemeral=True)
            return
        await interaction.response.send_message(
            f"\U0001f345 Pomodoro session started: {cycles} × {work}m work.",
            embed=build_timer_embed(timer),
        )

    @timer.command(name="study", description="Start a study session.")
    @app_commands.describe(subject="What you are studying", minutes="Session length in minutes")
    async def study(
        self,
        interaction: discord.Interaction,
        subject: str,
        minutes: app_commands.Range[int, 1, 480] = 60,
    ) -> None:
        engine = self._engine(interaction)
        session = engine.create_study_session(
            interaction.user.id, interaction.channel_id or 0, subject, minutes
        )
        timer = engine.get_timer(session.timer_id) if session else None
        if timer is None:
            await interaction.response.send_message("\u274c Could not start the session.", ephemeral=True)
            return
        await interaction.response.send_message(embed=build_timer_embed(timer))

    # -------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------
    @timer.command(name="list", description="List running timers.")
    @app_commands.describe(everyone="Show every member's timers, not just yours")
    async def list_timers(self, interaction: discord.Interaction, everyone: bool = False) -> None:
        owner = None if everyone else interaction.user.id
        timers = self._engine(interaction).get_active_timers(owner)
        if not timers:
            await interaction.response.send_message("\u23f1\ufe0f No active timers.", ephemeral=True)
            return
        lines = [
            f"{TIMER_EMOJI[t.kind]} **{t.name}** — {format_time(t.remaining)} left"
            f"{' (paused)' if t.is_paused else ''} · `{t.id}`"
            for t in timers
        ]
        embed = discord.Embed(
            title="\u23f1\ufe0f Active Timers",
            description="\n".join(lines),
            color=discord.Color.blurple(),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @timer.command(name="status", description="Show one timer.")
    async def status(self, interaction: discord.Interaction, timer_id: str) -> None:
        timer = self._engine(interaction).get_timer(timer_id)
        if timer is None:
            await interaction.response.send_message("\u274c No timer with that ID.", ephemeral=True)
            return
        await interaction.response.send_message(embed=build_timer_embed(timer), ephemeral=True)

    @timer.command(name="presets", description="Show available timer presets.")
    @app_commands.describe(category="Only show one category")
    async def presets(
        self, interaction: discord.Interaction, category: PresetCategory | None = None
    ) -> None:
        embed = discord.Embed(title="\u23f1\ufe0f Timer Presets", color=discord.Color.blurple())
        for cat in [category] if category else PresetCategory:
            lines = [
                f"{p.emoji} **{p.name}** ({p.duration // MINUTE}m) — {p.description}"
                for p in get_presets_by_category(cat)
            ]
            if lines:
                embed.add_field(name=cat.title(), value="\n".join(lines), inline=False)
        if not embed.fields:
            embed.description = "No presets in that category."
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @timer.command(name="sessions", description="Your study sessions.")
    async def sessions(self, interaction: discord.Interaction) -> None:
        sessions = self._engine(interaction).get_study_sessions(interaction.user.id)
        if not sessions:
            await interaction.response.send_message("\U0001f4da No study sessions yet.", ephemeral=True)
            return
        lines = [
            f"{_session_mark(s)} "
            f"**{s.subject}** — {s.duration_minutes}m"
            for s in sessions[-10:]
        ]
        embed = discord.Embed(
            title="\U0001f4da Study Sessions",
            description="\n".join(lines),
            color=discord.Color.blurple(),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    # -------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------
    @timer.command(name="pause", description="Pause one of your timers.")
    async def pause(self, interaction: discord.Interaction, timer_id: str) -> None:
        timer = self._owned(interaction, timer_id)
        if timer is None or not self._engine(interaction).pause_timer(timer_id):
            await interaction.response.send_message("\u274c No running timer of yours with that ID.", ephemeral=True)
            return
        await interaction.response.send_message(f"\u23f8\ufe0f Paused **{timer.name}**.")

    @timer.command(name="resume", description="Resume a paused timer.")
    async def resume(self, interaction: discord.Interaction, timer_id: str) -> None:
        timer = self._owned(interaction, timer_id)
        if timer is None or not self._engine(interaction).resume_timer(timer_id):
            await interaction.response.send_message("\u274c No paused timer of yours with that ID.", ephemeral=True)
            return
        await interaction.response.send_message(f"\u25b6\ufe0f Resumed **{timer.name}**.")

    @timer.command(name="stop", description="Stop and discard a timer.")
    async def stop(self, interaction: discord.Interaction, timer_id: str) -> None:
        timer = self._owned(interaction, timer_id)
        if timer is None or not self._engine(interaction).stop_timer(timer_id):
            await interaction.response.send_message("\u274c No timer of yours with that ID.", ephemeral=True)
            return
        await interaction.response.send_message(f"\u23f9\ufe0f Stopped **{timer.name}**.")


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(Timers(bot))
