"""
hearth.bot.cogs.economy — Coin Commands
========================================

Slash commands over the per-guild economy ledger:
- /balance — wallet, bank, and claim readiness
- /daily, /weekly — periodic rewards
- /pay — transfer coins to another member
- /deposit, /withdraw — move coins between wallet and bank
- /richest — economy leaderboard
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from hearth.services.embeds import build_leaderboard_embed

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot
    from hearth.services.economy_service import EconomyLedger

logger = logging.getLogger(__name__)

COIN = "\U0001fa99"


class Economy(commands.Cog, name="Economy"):
    """Balances, claims, and transfers."""

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot

    def _ledger(self, interaction: discord.Interaction) -> EconomyLedger:
        return self.bot.registry.economy(interaction.guild_id or 0)

    # -------------------------------------------------------------------
    # /balance
    # -------------------------------------------------------------------
    @app_commands.command(name="balance", description="Check your (or another member's) coins.")
    @app_commands.describe(member="The member to look up (defaults to you)")
    @app_commands.guild_only()
    async def balance(
        self, interaction: discord.Interaction, member: discord.Member | None = None
    ) -> None:
        target = member or interaction.user
        stats = self._ledger(interaction).get_stats(target.id)

        embed = discord.Embed(
            title=f"{COIN} {target.display_name}'s Balance",
            color=discord.Color.gold(),
        )
        embed.add_field(name="Wallet", value=f"{stats.balance:,}", inline=True)
        embed.add_field(name="Bank", value=f"{stats.bank:,}", inline=True)
        embed.add_field(name="Total", value=f"{stats.total:,}", inline=True)
        embed.add_field(
            name="Level", value=f"{stats.level} ({stats.xp}/{stats.xp_for_next} XP)", inline=True
        )
        embed.add_field(name="Next daily", value=f"<t:{int(stats.next_daily_at)}:R>", inline=True)
        embed.add_field(name="Next weekly", value=f"<t:{int(stats.next_weekly_at)}:R>", inline=True)
        await interaction.response.send_message(embed=embed)

    # -------------------------------------------------------------------
    # /daily, /weekly
    # -------------------------------------------------------------------
    @app_commands.command(name="daily", description="Claim your daily coins.")
    @app_commands.guild_only()
    async def daily(self, interaction: discord.Interaction) -> None:
        ledger = self._ledger(interaction)
        amount = ledger.claim_daily(interaction.user.id)
        if not amount:
            ready = int(ledger.next_daily_at(interaction.user.id))
            await interaction.response.send_message(
                f"\u23f3 You already claimed today. Come back <t:{ready}:R>.", ephemeral=True
            )
            return
        await interaction.response.send_message(f"{COIN} You claimed **{amount:,}** coins!")

    @app_commands.command(name="weekly", description="Claim your weekly coins.")
    @app_commands.guild_only()
    async def weekly(self, interaction: discord.Interaction) -> None:
        ledger = self._ledger(interaction)
        amount = ledger.claim_weekly(interaction.user.id)
        if not amount:
            ready = int(ledger.next_weekly_at(interaction.user.id))
            await interaction.response.send_message(
                f"\u23f3 Weekly reward not ready. Come back <t:{ready}:R>.", ephemeral=True
            )
            return
        await interaction.response.send_message(f"{COIN} You claimed **{amount:,}** coins!")

    # -------------------------------------------------------------------
    # /pay
    # -------------------------------------------------------------------
    @app_commands.command(name="pay", description="Send coins to another member.")
    @app_commands.describe(member="Who to pay", amount="How many coins")
    @app_commands.guild_only()
    async def pay(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        amount: app_commands.Range[int, 1],
    ) -> None:
        if member.bot or member.id == interaction.user.id:
            await interaction.response.send_message("\u274c Pick another member.", ephemeral=True)
            return
        if not self._ledger(interaction).transfer(interaction.user.id, member.id, amount):
            await interaction.response.send_message("\u274c Not enough coins.", ephemeral=True)
            return
        await interaction.response.send_message(
            f"{COIN} {interaction.user.mention} sent **{amount:,}** coins to {member.mention}."
        )

    # -------------------------------------------------------------------
    # /deposit, /withdraw
    # -------------------------------------------------------------------
    @app_commands.command(name="deposit", description="Move coins from your wallet to the bank.")
    @app_commands.guild_only()
    async def deposit(
        self, interaction: discord.Interaction, amount: app_commands.Range[int, 1]
    ) -> None:
        if not self._ledger(interaction).deposit(interaction.user.id, amount):
            await interaction.response.send_message("\u274c Not enough coins in your wallet.", ephemeral=True)
            return
        await interaction.response.send_message(f"\U0001f3e6 Deposited **{amount:,}** coins.", ephemeral=True)

    @app_commands.command(name="withdraw", description="Move coins from the bank to your wallet.")
    @app_commands.guild_only()
    async def withdraw(
        self, interaction: discord.Interaction, amount: app_commands.Range[int, 1]
    ) -> None:
        if not self._ledger(interaction).withdraw(interaction.user.id, amount):
            await interaction.response.send_message("\u274c Not enough coins in the bank.", ephemeral=True)
            return
        await interaction.response.send_message(f"\U0001f3e6 Withdrew **{amount:,}** coins.", ephemeral=True)

    # -------------------------------------------------------------------
    # /richest
    # -------------------------------------------------------------------
    @app_commands.command(name="richest", description="Top members by coins or economy level.")
    @app_commands.choices(metric=[
        app_commands.Choice(name="Net worth", value="balance"),
        app_commands.Choice(name="Lifetime earnings", value="total"),
        app_commands.Choice(name="Level", value="level"),
    ])
    @app_commands.guild_only()
    async def richest(self, interaction: discord.Interaction, metric: str = "balance") -> None:
        entries = self._ledger(interaction).get_leaderboard(metric, limit=10)
        embed = build_leaderboard_embed(
            f"{COIN} Richest Members", entries, fmt=lambda v: f"{v:,}"
        )
        await interaction.response.send_message(embed=embed)


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(Economy(bot))
