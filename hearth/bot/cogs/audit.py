"""
hearth.bot.cogs.audit — Server Audit Log
=========================================

Forwards message, channel, role, and ban events to each guild's audit-log
channel.  Which events are forwarded is controlled per guild with
``/auditlog``; member join/leave, mute and warn entries are posted by the
cogs that handle those actions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from hearth.services.embeds import build_audit_embed
from hearth.services.notifier import send_audit_log

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot


def _clip(text: str, limit: int = 1000) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "\u2026"


class Audit(commands.Cog, name="Audit"):
    """Mirrors server events into the audit-log channel."""

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot

    # Messages
    @commands.Cog.listener()
    async def on_message_delete(self, message: discord.Message) -> None:
        if message.guild is None or message.author.bot:
            return
        await send_audit_log(
            self.bot,
            message.guild.id,
            "message_delete",
            build_audit_embed(
                "\U0001f5d1\ufe0f Message Deleted",
                f"By {message.author.mention} in {message.channel.mention}\n"
                f"{_clip(message.content) or '*no text*'}",
                discord.Color.red(),
            ),
        )

    @commands.Cog.listener()
    async def on_message_edit(self, before: discord.Message, after: discord.Message) -> None:
        if after.guild is None or after.author.bot or before.content == after.content:
            return
        await send_audit_log(
            self.bot,
            after.guild.id,
            "message_edit",
            build_audit_embed(
                "\u270f\ufe0f Message Edited",
                f"By {after.author.mention} in {after.channel.mention} "
                f"([jump]({after.jump_url}))\n"
                f"**Before:** {_clip(before.content, 500)}\n"
                f"**After:** {_clip(after.content, 500)}",
                discord.Color.blue(),
            ),
        )

    # Channels
    @commands.Cog.listener()
    async def on_guild_channel_create(self, channel: discord.abc.GuildChannel) -> None:
        await send_audit_log(
            self.bot,
            channel.guild.id,
            "channel_create",
            build_audit_embed("\U0001f4c1 Channel Created", f"#{channel.name}", discord.Color.green()),
        )

    @commands.Cog.listener()
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel) -> None:
        await send_audit_log(
            self.bot,
            channel.guild.id,
            "channel_delete",
            build_audit_embed("\U0001f4c1 Channel Deleted", f"#{channel.name}", discord.Color.red()),
        )

    # Roles
    @commands.Cog.listener()
    async def on_guild_role_create(self, role: discord.Role) -> None:
        await send_audit_log(
            self.bot,
            role.guild.id,
            "role_create",
            build_audit_embed("\U0001f3f7\ufe0f Role Created", role.name, discord.Color.green()),
        )

    @commands.Cog.listener()
    async def on_guild_role_delete(self, role: discord.Role) -> None:
        await send_audit_log(
            self.bot,
            role.guild.id,
            "role_delete",
            build_audit_embed("\U0001f3f7\ufe0f Role Deleted", role.name, discord.Color.red()),
        )

    # Bans
    @commands.Cog.listener()
    async def on_member_ban(self, guild: discord.Guild, user: discord.User | discord.Member) -> None:
        await send_audit_log(
            self.bot,
            guild.id,
            "member_ban",
            build_audit_embed("\U0001f528 Member Banned", f"{user.mention} ({user})", discord.Color.dark_red()),
        )

    @commands.Cog.listener()
    async def on_member_unban(self, guild: discord.Guild, user: discord.User) -> None:
        await send_audit_log(
            self.bot,
            guild.id,
            "member_unban",
            build_audit_embed("\U0001f513 Member Unbanned", f"{user.mention} ({user})", discord.Color.green()),
        )


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(Audit(bot))
