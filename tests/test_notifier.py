"""
tests/test_notifier.py — Notification Delivery & Background Loops
==================================================================

Channel resolution, timer-notification delivery, activity announcements,
audit-log gating, the periodic-task loop bodies that drive them, and the
message listener that feeds activity.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord

from hearth.bot.cogs.activity import Activity
from hearth.bot.cogs.tasks import PeriodicTasks
from hearth.engine.achievements import ACHIEVEMENTS_BY_ID
from hearth.engine.timers import NotificationFlags, NotificationKind, TimerNotification
from hearth.services.activity_service import ActivityResult
from hearth.services.embeds import build_audit_embed
from hearth.services.notifier import (
    announce_activity,
    deliver_timer_notification,
    resolve_channel,
    send_audit_log,
)
from conftest import GUILD


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.get_event_loop_policy().new_event_loop().run_until_complete(coro)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _not_found() -> discord.NotFound:
    return discord.NotFound(MagicMock(status=404, reason="Not Found"), "Unknown Channel")


def _make_bot(
    *,
    channels: dict[int, object] | None = None,
    registry=None,
) -> MagicMock:
    """Create a lightweight mock HearthBot."""
    bot = MagicMock()
    bot.registry = registry
    bot.cfg = SimpleNamespace(mute_role_name="Muted")
    bot.guilds = []

    def _get_channel(ch_id):
        if channels and ch_id in channels:
            return channels[ch_id]
        return None

    bot.get_channel = _get_channel
    bot.fetch_channel = AsyncMock(side_effect=_not_found())
    return bot


def _make_messageable(channel_id: int = 10) -> MagicMock:
    """Create a mock Messageable channel."""
    ch = MagicMock(spec=discord.TextChannel)
    ch.id = channel_id
    ch.send = AsyncMock()
    return ch


def _note(*, mention_owner: bool = True, channel_id: int = 10) -> TimerNotification:
    return TimerNotification(
        kind=NotificationKind.COMPLETED,
        timer_id="abc123",
        owner_id=1,
        guild_id=GUILD,
        channel_id=channel_id,
        title="Timer Complete",
        description="**Tea** has finished!",
        mention_owner=mention_owner,
        fields=(("Duration", "0:05"),),
    )


# ---------------------------------------------------------------------------
# resolve_channel
# ---------------------------------------------------------------------------
class TestResolveChannel:
    def test_no_id(self):
        assert run_async(resolve_channel(_make_bot(), None)) is None

    def test_cached(self):
        ch = _make_messageable()
        bot = _make_bot(channels={10: ch})
        assert run_async(resolve_channel(bot, 10)) is ch
        bot.fetch_channel.assert_not_awaited()

    def test_fetch_fallback(self):
        ch = _make_messageable()
        bot = _make_bot()
        bot.fetch_channel = AsyncMock(return_value=ch)
        assert run_async(resolve_channel(bot, 10)) is ch

    def test_fetch_failure(self):
        assert run_async(resolve_channel(_make_bot(), 10)) is None

    def test_fetch_bad_data(self):
        bot = _make_bot()
        bot.fetch_channel = AsyncMock(side_effect=discord.InvalidData("bad channel type"))
        assert run_async(resolve_channel(bot, 10)) is None

    def test_not_messageable(self):
        category = MagicMock(spec=discord.CategoryChannel)
        bot = _make_bot(channels={10: category})
        assert run_async(resolve_channel(bot, 10)) is None


# ---------------------------------------------------------------------------
# Timer notifications
# ---------------------------------------------------------------------------
class TestDeliverTimerNotification:
    def test_mentions_owner(self):
        ch = _make_messageable()
        bot = _make_bot(channels={10: ch})
        assert run_async(deliver_timer_notification(bot, _note())) is True
        ch.send.assert_awaited_once()
        kwargs = ch.send.call_args.kwargs
        assert kwargs["content"] == "<@1>"
        embed = kwargs["embed"]
        assert embed.title == "Timer Complete"
        assert embed.fields[0].name == "Duration"
        assert embed.footer.text == "Timer abc123"

    def test_without_mention(self):
        ch = _make_messageable()
        bot = _make_bot(channels={10: ch})
        run_async(deliver_timer_notification(bot, _note(mention_owner=False)))
        assert ch.send.call_args.kwargs["content"] is None

    def test_missing_channel_dropped(self):
        assert run_async(deliver_timer_notification(_make_bot(), _note())) is False

    def test_send_failure_swallowed(self):
        ch = _make_messageable()
        ch.send = AsyncMock(side_effect=discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "no"))
        bot = _make_bot(channels={10: ch})
        assert run_async(deliver_timer_notification(bot, _note())) is False


# ---------------------------------------------------------------------------
# Activity announcements
# ---------------------------------------------------------------------------
class TestAnnounceActivity:
    def test_level_up_and_achievement(self):
        ch = _make_messageable()
        result = ActivityResult(
            xp_gained=15,
            old_level=1,
            new_level=2,
            unlocked=(ACHIEVEMENTS_BY_ID["first_message"],),
        )
        run_async(announce_activity(ch, result=result, user_id=1, avatar_url=None))
        assert ch.send.await_count == 2
        titles = [c.kwargs["embed"].title for c in ch.send.call_args_list]
        assert "Level Up" in titles[0]
        assert "Achievement Unlocked" in titles[1]
        assert "First Steps" in ch.send.call_args_list[1].kwargs["embed"].description

    def test_quiet_result(self):
        ch = _make_messageable()
        result = ActivityResult(xp_gained=5, old_level=1, new_level=1)
        run_async(announce_activity(ch, result=result, user_id=1, avatar_url=None))
        ch.send.assert_not_awaited()

    def test_no_channel(self):
        result = ActivityResult(xp_gained=5, old_level=1, new_level=2)
        run_async(announce_activity(None, result=result, user_id=1, avatar_url=None))


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------
class TestSendAuditLog:
    def _embed(self):
        return build_audit_embed("Member Joined", "<@1>", discord.Color.green())

    def test_not_configured(self, registry):
        ch = _make_messageable(500)
        bot = _make_bot(channels={500: ch}, registry=registry)
        assert run_async(send_audit_log(bot, GUILD, "member_join", self._embed())) is False
        ch.send.assert_not_awaited()

    def test_configured(self, registry):
        registry.audit.set_log_channel(GUILD, 500)
        ch = _make_messageable(500)
        bot = _make_bot(channels={500: ch}, registry=registry)
        embed = self._embed()
        assert run_async(send_audit_log(bot, GUILD, "member_join", embed)) is True
        assert ch.send.call_args.kwargs["embed"] is embed

    def test_event_disabled(self, registry):
        registry.audit.set_log_channel(GUILD, 500)
        registry.audit.toggle_event(GUILD, "member_join", False)
        ch = _make_messageable(500)
        bot = _make_bot(channels={500: ch}, registry=registry)
        assert run_async(send_audit_log(bot, GUILD, "member_join", self._embed())) is False


# ---------------------------------------------------------------------------
# Periodic task loop bodies
# ---------------------------------------------------------------------------
class TestPeriodicTasks:
    def test_tick_delivers_notifications(self, registry):
        ch = _make_messageable()
        bot = _make_bot(channels={10: ch}, registry=registry)
        quiet = NotificationFlags(halfway=False, five_minutes=False, one_minute=False)
        registry.timers(GUILD).create_timer(1, 10, "custom", 1, "Tea", notifications=quiet)

        cog = PeriodicTasks(bot)
        run_async(cog.timer_tick_loop.coro(cog))
        ch.send.assert_awaited_once()
        assert registry.timers(GUILD).drain_notifications() == []

    def test_tick_survives_missing_channel(self, registry):
        bot = _make_bot(registry=registry)
        registry.timers(GUILD).create_timer(1, 10, "custom", 1, "Tea")
        cog = PeriodicTasks(bot)
        run_async(cog.timer_tick_loop.coro(cog))
        assert registry.timers(GUILD).get_active_timers() == []

    def test_tick_survives_bad_channel_data(self, registry):
        bot = _make_bot(registry=registry)
        bot.fetch_channel = AsyncMock(side_effect=discord.InvalidData("bad channel type"))
        engine = registry.timers(GUILD)
        engine.create_timer(1, 10, "custom", 1, "Tea")
        engine.create_timer(2, 11, "custom", 1, "Coffee")

        cog = PeriodicTasks(bot)
        run_async(cog.timer_tick_loop.coro(cog))
        assert bot.fetch_channel.await_count == 2
        assert engine.get_active_timers() == []

    def test_tick_keeps_delivering_after_error(self, registry, monkeypatch):
        deliver = AsyncMock(side_effect=[RuntimeError("boom"), True])
        monkeypatch.setattr("hearth.bot.cogs.tasks.deliver_timer_notification", deliver)
        bot = _make_bot(registry=registry)
        engine = registry.timers(GUILD)
        engine.create_timer(1, 10, "custom", 1, "Tea")
        engine.create_timer(2, 11, "custom", 1, "Coffee")

        cog = PeriodicTasks(bot)
        run_async(cog.timer_tick_loop.coro(cog))
        assert deliver.await_count == 2
        assert engine.drain_notifications() == []

    def test_cleanup_reaps(self, registry, clock):
        bot = _make_bot(registry=registry)
        engine = registry.timers(GUILD)
        engine.create_timer(1, 10, "custom", 1, "Tea")
        engine.tick()
        clock.advance(engine.cleanup_grace + 1)
        cog = PeriodicTasks(bot)
        run_async(cog.timer_cleanup_loop.coro(cog))
        assert len(engine) == 0

    def test_mute_expiry_removes_role(self, registry, clock):
        role = MagicMock()
        role.name = "Muted"
        member = MagicMock()
        member.id = 5
        member.roles = [role]
        member.remove_roles = AsyncMock()
        guild = MagicMock()
        guild.id = GUILD
        guild.roles = [role]
        guild.get_member.return_value = member

        bot = _make_bot(registry=registry)
        bot.guilds = [guild]
        registry.moderation(GUILD).mute_timed(5, 30)

        cog = PeriodicTasks(bot)
        run_async(cog.mute_expiry_loop.coro(cog))
        member.remove_roles.assert_not_awaited()

        clock.advance(30)
        run_async(cog.mute_expiry_loop.coro(cog))
        member.remove_roles.assert_awaited_once()
        assert registry.moderation(GUILD).get_mute(5) is None

    def test_streak_sweep_runs_per_guild(self, registry, clock):
        guild = MagicMock()
        guild.id = GUILD
        bot = _make_bot(registry=registry)
        bot.guilds = [guild]
        registry.activity(GUILD).add_activity(1, "message")
        clock.advance(24 * 60 * 60)

        cog = PeriodicTasks(bot)
        run_async(cog.streak_loop.coro(cog))
        assert registry.activity(GUILD).get_user_stats(1).daily_streak == 1

    def test_failed_unmute_retried(self, registry, clock):
        role = MagicMock()
        role.name = "Muted"
        member = MagicMock()
        member.id = 5
        member.roles = [role]
        member.remove_roles = AsyncMock(
            side_effect=[discord.HTTPException(MagicMock(status=500, reason="Server Error"), "down"), None]
        )
        guild = MagicMock()
        guild.id = GUILD
        guild.roles = [role]
        guild.get_member.return_value = member

        bot = _make_bot(registry=registry)
        bot.guilds = [guild]
        registry.moderation(GUILD).mute_timed(5, 30)
        clock.advance(30)

        cog = PeriodicTasks(bot)
        run_async(cog.mute_expiry_loop.coro(cog))
        assert registry.moderation(GUILD).get_mute(5) is not None

        run_async(cog.mute_expiry_loop.coro(cog))
        assert member.remove_roles.await_count == 2
        assert registry.moderation(GUILD).get_mute(5) is None

    def test_departed_member_record_dropped(self, registry, clock):
        guild = MagicMock()
        guild.id = GUILD
        guild.roles = []
        guild.get_member.return_value = None
        bot = _make_bot(registry=registry)
        bot.guilds = [guild]
        registry.moderation(GUILD).mute_timed(5, 30)
        clock.advance(30)

        cog = PeriodicTasks(bot)
        run_async(cog.mute_expiry_loop.coro(cog))
        assert registry.moderation(GUILD).get_mute(5) is None


# ---------------------------------------------------------------------------
# Message activity listener
# ---------------------------------------------------------------------------
class TestMessageActivity:
    def _message(self, content: str) -> MagicMock:
        message = MagicMock()
        message.author.bot = False
        message.author.id = 1
        message.author.display_avatar.url = None
        message.guild.id = GUILD
        message.content = content
        message.channel = _make_messageable()
        return message

    def test_message_earns_xp(self, registry):
        cog = Activity(_make_bot(registry=registry))
        run_async(cog.on_message(self._message("hello there")))
        assert registry.activity(GUILD).get_user_stats(1).messages == 1

    def test_filtered_message_earns_nothing(self, registry):
        registry.bad_words.add(GUILD, "darn")
        message = self._message("well Darn it")
        cog = Activity(_make_bot(registry=registry))
        run_async(cog.on_message(message))
        stats = registry.activity(GUILD).get_user_stats(1)
        assert (stats.messages, stats.xp) == (0, 0)
        message.channel.send.assert_not_awaited()
