"""
hearth.bot.cogs.admin — Server Settings Commands
=================================================

Slash command groups for server admins (Manage Server permission):
- /welcome channel|message|toggle|card|autorole|dm|bonus|preview
- /auditlog channel|toggle|event|status

All responses are ephemeral.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from hearth.bot.cogs.membership import render_welcome
from hearth.services.guild_config_service import AUDIT_EVENTS

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot

logger = logging.getLogger(__name__)

_ADMIN = discord.Permissions(manage_guild=True)
_ON = "\u2705"
_OFF = "\u274c"


class Admin(commands.Cog, name="Admin"):
    """Per-guild welcome and audit-log settings."""

    welcome = app_commands.Group(
        name="welcome", description="Welcome message settings",
        guild_only=True, default_permissions=_ADMIN,
    )
    auditlog = app_commands.Group(
        name="auditlog", description="Audit log settings",
        guild_only=True, default_permissions=_ADMIN,
    )

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot

    async def _ok(self, interaction: discord.Interaction, text: str) -> None:
        await interaction.response.send_message(f"\u2705 {text}", ephemeral=True)
        logger.info("Guild %s setting changed by %s: %s", interaction.guild_id, interaction.user.id, text)

    # -------------------------------------------------------------------
    # /welcome
    # -------------------------------------------------------------------
    @welcome.command(name="channel", description="Set the welcome channel.")
    async def welcome_channel(
        self, interaction: discord.Interaction, channel: discord.TextChannel
    ) -> None:
        self.bot.registry.welcome.set_channel(channel.guild.id, channel.id)
        await self._ok(interaction, f"Welcome messages will be posted in {channel.mention}.")

    @welcome.command(name="message", description="Set the welcome message template.")
    @app_commands.describe(
        template="Placeholders: {user} {username} {displayName} {server} {memberCount}"
    )
    async def welcome_message(self, interaction: discord.Interaction, template: str) -> None:
        self.bot.registry.welcome.set_message(interaction.guild_id or 0, template)
        await self._ok(interaction, "Welcome message updated.")

    @welcome.command(name="toggle", description="Turn the welcome flow on or off.")
    async def welcome_toggle(self, interaction: discord.Interaction, enabled: bool) -> None:
        self.bot.registry.welcome.toggle(interaction.guild_id or 0, enabled)
        await self._ok(interaction, f"Welcome flow {'enabled' if enabled else 'disabled'}.")

    @welcome.command(name="card", description="Show the member's avatar on the welcome embed.")
    async def welcome_card(self, interaction: discord.Interaction, enabled: bool) -> None:
        self.bot.registry.welcome.toggle_card(interaction.guild_id or 0, enabled)
        await self._ok(interaction, f"Welcome card {'enabled' if enabled else 'disabled'}.")

    @welcome.command(name="autorole", description="Role given to new members (omit to clear).")
    async def welcome_autorole(
        self, interaction: discord.Interaction, role: discord.Role | None = None
    ) -> None:
        self.bot.registry.welcome.set_auto_role(interaction.guild_id or 0, role.id if role else None)
        await self._ok(interaction, f"Auto-role set to {role.mention}." if role else "Auto-role cleared.")

    @welcome.command(name="dm", description="Also DM new members.")
    async def welcome_dm(
        self, interaction: discord.Interaction, enabled: bool, message: str | None = None
    ) -> None:
        changes: dict = {"dm_welcome": enabled}
        if message is not None:
            changes["dm_message"] = message
        self.bot.registry.welcome.update(interaction.guild_id or 0, **changes)
        await self._ok(interaction, f"Welcome DMs {'enabled' if enabled else 'disabled'}.")

    @welcome.command(name="bonus", description="Coins granted to new members.")
    async def welcome_bonus(
        self, interaction: discord.Interaction, coins: app_commands.Range[int, 0, 100_000]
    ) -> None:
        self.bot.registry.welcome.update(interaction.guild_id or 0, bonus_coins=coins)
        await self._ok(interaction, f"New members receive {coins} coins.")

    @welcome.command(name="preview", description="Preview the welcome message for yourself.")
    async def welcome_preview(self, interaction: discord.Interaction) -> None:
        if not isinstance(interaction.user, discord.Member):
            return
        config = self.bot.registry.welcome.get(interaction.user.guild.id)
        text = render_welcome(config, interaction.user, config.message)
        await interaction.response.send_message(text, ephemeral=True)

    # -------------------------------------------------------------------
    # /auditlog
    # -------------------------------------------------------------------
    @auditlog.command(name="channel", description="Set the audit-log channel and enable logging.")
    async def auditlog_channel(
        self, interaction: discord.Interaction, channel: discord.TextChannel
    ) -> None:
        self.bot.registry.audit.set_log_channel(channel.guild.id, channel.id)
        await self._ok(interaction, f"Audit log enabled in {channel.mention}.")

    @auditlog.command(name="toggle", description="Turn audit logging on or off.")
    async def auditlog_toggle(self, interaction: discord.Interaction, enabled: bool) -> None:
        self.bot.registry.audit.toggle_logging(interaction.guild_id or 0, enabled)
        await self._ok(interaction, f"Audit logging {'enabled' if enabled else 'disabled'}.")

    @auditlog.command(name="event", description="Toggle one event type.")
    @app_commands.choices(event=[app_commands.Choice(name=e, value=e) for e in AUDIT_EVENTS])
    async def auditlog_event(
        self, interaction: discord.Interaction, event: str, enabled: bool
    ) -> None:
        if not self.bot.registry.audit.toggle_event(interaction.guild_id or 0, event, enabled):
            await interaction.response.send_message("\u274c Unknown event.", ephemeral=True)
            return
        await self._ok(interaction, f"`{event}` logging {'enabled' if enabled else 'disabled'}.")

    @auditlog.command(name="status", description="Show audit-log settings.")
    async def auditlog_status(self, interaction: discord.Interaction) -> None:
        config = self.bot.registry.audit.get(interaction.guild_id or 0)
        embed = discord.Embed(
            title="\U0001f4cb Audit Log",
            description=(
                f"Status: {'enabled' if config.enabled else 'disabled'}\n"
                f"Channel: {f'<#{config.channel_id}>' if config.channel_id else 'not set'}"
            ),
            color=discord.Color.blurple(),
        )
        embed.add_field(
            name="Events",
            value="\n".join(f"{_ON if on else _OFF} `{e}`" for e, on in config.events.items()),
            inline=False,
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(Admin(bot))
