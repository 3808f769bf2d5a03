"""
hearth.bot.cogs.tasks — Periodic Background Tasks
==================================================

Scheduled jobs that run on ``discord.ext.tasks`` loops:

- **Timer tick** — every second, advances every guild's timer engine and
  delivers the notifications it queued.
- **Timer cleanup** — every 5 minutes, reaps finished timers older than
  the configured grace window.
- **Streak sweep** — hourly, advances or resets activity streaks.
- **Mute expiry** — every 30 seconds, lifts mutes whose time is up.

Each loop body is wrapped so one failure is logged and the loop keeps
running.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands, tasks

from hearth.services.notifier import deliver_timer_notification

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot
    from hearth.services.moderation_service import MuteRecord

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background tasks."""

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        """Start task loops when the cog is loaded."""
        self.timer_tick_loop.start()
        self.timer_cleanup_loop.start()
        self.streak_loop.start()
        self.mute_expiry_loop.start()

    async def cog_unload(self) -> None:
        """Cancel task loops on unload."""
        self.timer_tick_loop.cancel()
        self.timer_cleanup_loop.cancel()
        self.streak_loop.cancel()
        self.mute_expiry_loop.cancel()

    # -------------------------------------------------------------------
    # Timer tick — every second
    # -------------------------------------------------------------------
    @tasks.loop(seconds=1)
    async def timer_tick_loop(self):
        """Advance all timer engines one second and deliver their notifications."""
        for engine in self.bot.registry.timer_engines():
            try:
                engine.tick()
            except Exception:
                logger.exception("Timer tick failed for guild %s", engine.guild_id)
            for note in engine.drain_notifications():
                try:
                    await deliver_timer_notification(self.bot, note)
                except Exception:
                    logger.exception("Failed to deliver %s for timer %s", note.kind, note.timer_id)

    @timer_tick_loop.before_loop
    async def _wait_timer_tick(self):
        await self.bot.wait_until_ready()

    # -------------------------------------------------------------------
    # Timer cleanup — every 5 minutes
    # -------------------------------------------------------------------
    @tasks.loop(minutes=5)
    async def timer_cleanup_loop(self):
        """Reap finished timers past their grace window."""
        removed = 0
        for engine in self.bot.registry.timer_engines():
            try:
                removed += engine.cleanup_completed()
            except Exception:
                logger.exception("Timer cleanup failed for guild %s", engine.guild_id)
        if removed:
            logger.info("Timer cleanup removed %d finished timers", removed)

    @timer_cleanup_loop.before_loop
    async def _wait_timer_cleanup(self):
        await self.bot.wait_until_ready()

    # -------------------------------------------------------------------
    # Streak sweep — hourly
    # -------------------------------------------------------------------
    @tasks.loop(hours=1)
    async def streak_loop(self):
        """Advance or reset daily/weekly streaks in every guild."""
        for guild in self.bot.guilds:
            try:
                self.bot.registry.activity(guild.id).sweep_streaks()
            except Exception:
                logger.exception("Streak sweep failed for guild %s", guild.id)

    @streak_loop.before_loop
    async def _wait_streak(self):
        await self.bot.wait_until_ready()

    # -------------------------------------------------------------------
    # Mute expiry — every 30 seconds
    # -------------------------------------------------------------------
    @tasks.loop(seconds=30)
    async def mute_expiry_loop(self):
        """Lift the mute role for every expired mute.

        A record is only forgotten once its role is gone, so a failed
        removal is retried on the next sweep.
        """
        for guild in self.bot.guilds:
            try:
                store = self.bot.registry.moderation(guild.id)
                expired = store.expired_mutes()
            except Exception:
                logger.exception("Mute expiry check failed for guild %s", guild.id)
                continue
            for mute in expired:
                if await self._lift_mute(guild, mute):
                    store.unmute(mute.user_id)

    @mute_expiry_loop.before_loop
    async def _wait_mute_expiry(self):
        await self.bot.wait_until_ready()

    async def _lift_mute(self, guild: discord.Guild, mute: MuteRecord) -> bool:
        """Remove the mute role.  False only when Discord refused the removal."""
        member = guild.get_member(mute.user_id)
        role = discord.utils.get(guild.roles, name=self.bot.cfg.mute_role_name)
        if member is None or role is None or role not in member.roles:
            return True
        try:
            await member.remove_roles(role, reason="Mute expired")
        except discord.HTTPException:
            logger.exception("Failed to remove mute role from %s in %s", member.id, guild.id)
            return False
        logger.info("Mute expired for %s in %s", member.id, guild.id)
        return True


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))
