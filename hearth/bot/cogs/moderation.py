"""
hearth.bot.cogs.moderation — Warnings, Mutes & Word Filter
===========================================================

Slash commands for moderators:
- /warn — record a warning; the third warning auto-mutes for an hour
- /warnings — list a member's warnings
- /clearwarnings — clear one warning by id, or all of them
- /mute, /unmute — timed mute via the configured mute role
- /badwords add|remove|list — manage the guild's filtered words

A message listener deletes messages containing a filtered word.  Mute
expiry is handled by :mod:`hearth.bot.cogs.tasks`.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from hearth.constants import HOUR, parse_duration
from hearth.services.embeds import build_audit_embed
from hearth.services.moderation_service import AUTO_MUTE_SECONDS
from hearth.services.notifier import send_audit_log

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot

logger = logging.getLogger(__name__)


class Moderation(commands.Cog, name="Moderation"):
    """Moderator tools."""

    badwords = app_commands.Group(
        name="badwords",
        description="Manage the filtered word list",
        guild_only=True,
        default_permissions=discord.Permissions(manage_messages=True),
    )

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # Mute role helpers
    # -------------------------------------------------------------------
    async def _mute_role(self, guild: discord.Guild) -> discord.Role | None:
        """Find the mute role, creating it if missing."""
        name = self.bot.cfg.mute_role_name
        role = discord.utils.get(guild.roles, name=name)
        if role is not None:
            return role
        try:
            role = await guild.create_role(
                name=name,
                permissions=discord.Permissions.none(),
                reason="Hearth: mute role",
            )
        except discord.HTTPException:
            logger.exception("Failed to create mute role in %s", guild.id)
            return None
        for channel in guild.channels:
            try:
                await channel.set_permissions(
                    role, send_messages=False, add_reactions=False, speak=False
                )
            except discord.HTTPException:
                logger.warning("Could not apply mute overwrite in #%s", channel.name)
        return role

    async def _apply_mute(self, member: discord.Member, seconds: int, reason: str) -> bool:
        role = await self._mute_role(member.guild)
        if role is None:
            return False
        try:
            await member.add_roles(role, reason=reason)
        except discord.HTTPException:
            logger.exception("Failed to add mute role to %s", member.id)
            return False
        self.bot.registry.moderation(member.guild.id).mute_timed(member.id, seconds)
        await send_audit_log(
            self.bot,
            member.guild.id,
            "member_mute",
            build_audit_embed(
                "\U0001f507 Member Muted",
                f"{member.mention} muted for {seconds // 60} minutes.\nReason: {reason}",
                discord.Color.orange(),
            ),
        )
        return True

    # -------------------------------------------------------------------
    # /warn, /warnings, /clearwarnings
    # -------------------------------------------------------------------
    @app_commands.command(name="warn", description="Warn a member.")
    @app_commands.describe(member="Who to warn", reason="Why")
    @app_commands.default_permissions(moderate_members=True)
    @app_commands.guild_only()
    async def warn(
        self, interaction: discord.Interaction, member: discord.Member, reason: str | None = None
    ) -> None:
        result = self.bot.registry.moderation(member.guild.id).warn(
            member.id, interaction.user.id, reason
        )
        await interaction.response.send_message(
            f"\u26a0\ufe0f {member.mention} has been warned (`{result.warning.id}`, "
            f"{result.count} total). Reason: {result.warning.reason}"
        )
        await send_audit_log(
            self.bot,
            member.guild.id,
            "member_warn",
            build_audit_embed(
                "\u26a0\ufe0f Member Warned",
                f"{member.mention} by {interaction.user.mention}\nReason: {result.warning.reason}",
                discord.Color.yellow(),
            ),
        )
        if result.auto_mute_threshold_reached:
            if await self._apply_mute(member, AUTO_MUTE_SECONDS, "Reached warning threshold"):
                await interaction.followup.send(
                    f"\U0001f507 {member.mention} reached {result.count} warnings "
                    f"and was muted for {AUTO_MUTE_SECONDS // HOUR} hour."
                )

    @app_commands.command(name="warnings", description="List a member's warnings.")
    @app_commands.default_permissions(moderate_members=True)
    @app_commands.guild_only()
    async def warnings(self, interaction: discord.Interaction, member: discord.Member) -> None:
        records = self.bot.registry.moderation(member.guild.id).get_warnings(member.id)
        if not records:
            await interaction.response.send_message(
                f"\u2705 {member.display_name} has no warnings.", ephemeral=True
            )
            return
        embed = discord.Embed(
            title=f"\u26a0\ufe0f Warnings for {member.display_name}",
            color=discord.Color.yellow(),
        )
        for w in records[-10:]:
            when = datetime.fromtimestamp(w.timestamp, tz=UTC)
            embed.add_field(
                name=discord.utils.format_dt(when, 'R'),
                value=f"{w.reason}\nby <@{w.moderator_id}> · `{w.id}`",
                inline=False,
            )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="clearwarnings", description="Clear a member's warnings.")
    @app_commands.describe(warning_id="Only clear this warning (default: all)")
    @app_commands.default_permissions(moderate_members=True)
    @app_commands.guild_only()
    async def clearwarnings(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        warning_id: str | None = None,
    ) -> None:
        cleared = self.bot.registry.moderation(member.guild.id).clear_warnings(member.id, warning_id)
        if not cleared:
            await interaction.response.send_message("\u274c Nothing to clear.", ephemeral=True)
            return
        await interaction.response.send_message(
            f"\u2705 Cleared {'warning `' + warning_id + '`' if warning_id else 'all warnings'} "
            f"for {member.display_name}.",
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /mute, /unmute
    # -------------------------------------------------------------------
    @app_commands.command(name="mute", description="Mute a member for a while.")
    @app_commands.describe(duration="How long, e.g. 10m, 2h, 1d", reason="Why")
    @app_commands.default_permissions(moderate_members=True)
    @app_commands.guild_only()
    async def mute(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        duration: str,
        reason: str = "No reason provided",
    ) -> None:
        seconds = parse_duration(duration)
        if seconds is None:
            await interaction.response.send_message(
                "\u274c Invalid duration. Use a number plus s, m, h, or d (e.g. `10m`).",
                ephemeral=True,
            )
            return
        await interaction.response.defer()
        if not await self._apply_mute(member, seconds, reason):
            await interaction.followup.send("\u274c Could not mute that member.")
            return
        await interaction.followup.send(f"\U0001f507 {member.mention} muted for {duration}.")

    @app_commands.command(name="unmute", description="Lift a member's mute early.")
    @app_commands.default_permissions(moderate_members=True)
    @app_commands.guild_only()
    async def unmute(self, interaction: discord.Interaction, member: discord.Member) -> None:
        self.bot.registry.moderation(member.guild.id).unmute(member.id)
        role = discord.utils.get(member.guild.roles, name=self.bot.cfg.mute_role_name)
        if role is None or role not in member.roles:
            await interaction.response.send_message("\u274c That member is not muted.", ephemeral=True)
            return
        try:
            await member.remove_roles(role, reason=f"Unmuted by {interaction.user}")
        except discord.HTTPException:
            logger.exception("Failed to remove mute role from %s", member.id)
            await interaction.response.send_message("\u274c Could not unmute.", ephemeral=True)
            return
        await interaction.response.send_message(f"\U0001f50a {member.mention} has been unmuted.")
        await send_audit_log(
            self.bot,
            member.guild.id,
            "member_unmute",
            build_audit_embed(
                "\U0001f50a Member Unmuted",
                f"{member.mention} by {interaction.user.mention}",
                discord.Color.green(),
            ),
        )

    # -------------------------------------------------------------------
    # /badwords
    # -------------------------------------------------------------------
    @badwords.command(name="add", description="Filter a word.")
    async def badwords_add(self, interaction: discord.Interaction, word: str) -> None:
        added = self.bot.registry.bad_words.add(interaction.guild_id or 0, word)
        msg = f"\u2705 Now filtering `{word.lower()}`." if added else "\u274c Already filtered or empty."
        await interaction.response.send_message(msg, ephemeral=True)

    @badwords.command(name="remove", description="Stop filtering a word.")
    async def badwords_remove(self, interaction: discord.Interaction, word: str) -> None:
        removed = self.bot.registry.bad_words.remove(interaction.guild_id or 0, word)
        msg = f"\u2705 No longer filtering `{word.lower()}`." if removed else "\u274c That word is not filtered."
        await interaction.response.send_message(msg, ephemeral=True)

    @badwords.command(name="list", description="Show filtered words.")
    async def badwords_list(self, interaction: discord.Interaction) -> None:
        words = self.bot.registry.bad_words.get(interaction.guild_id or 0)
        text = ", ".join(f"`{w}`" for w in words) or "No filtered words."
        await interaction.response.send_message(text, ephemeral=True)

    # -------------------------------------------------------------------
    # Filter
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        word = self.bot.registry.bad_words.find_bad_word(message.guild.id, message.content)
        if word is None:
            return
        try:
            await message.delete()
        except discord.HTTPException:
            logger.warning("Could not delete filtered message %s", message.id)
            return
        logger.info("Deleted message from %s containing a filtered word", message.author.id)
        await send_audit_log(
            self.bot,
            message.guild.id,
            "message_delete",
            build_audit_embed(
                "\U0001f6ab Filtered Message Deleted",
                f"{message.author.mention} in {message.channel.mention}",
                discord.Color.red(),
            ),
        )


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(Moderation(bot))
