"""
tests/test_moderation.py — Warnings & Timed Mutes
==================================================
"""

from __future__ import annotations

import pytest

from hearth.constants import HOUR, MINUTE
from hearth.services.moderation_service import DEFAULT_REASON, ModerationStore
from hearth.services.registry import GuildRegistry
from conftest import GUILD, OTHER_GUILD

MOD = 99


@pytest.fixture
def mod(registry) -> ModerationStore:
    return registry.moderation(GUILD)


class TestWarnings:
    def test_ids_and_auto_mute(self, mod):
        first = mod.warn(5, MOD, "spam")
        second = mod.warn(5, MOD, "spam again")
        third = mod.warn(5, MOD)
        ids = [r.warning.id for r in (first, second, third)]
        assert len(set(ids)) == 3
        assert all(len(i) == 32 and int(i, 16) >= 0 for i in ids)
        assert [r.count for r in (first, second, third)] == [1, 2, 3]
        assert [r.auto_mute_threshold_reached for r in (first, second, third)] == [False, False, True]
        assert third.warning.reason == DEFAULT_REASON

    def test_records(self, mod, clock):
        mod.warn(5, MOD, "spam")
        (record,) = mod.get_warnings(5)
        assert (record.moderator_id, record.reason, record.timestamp) == (MOD, "spam", clock())

    def test_clear_one(self, mod):
        ids = [mod.warn(5, MOD).warning.id for _ in range(3)]
        assert mod.clear_warnings(5, ids[1]) is True
        assert [w.id for w in mod.get_warnings(5)] == [ids[0], ids[2]]
        assert mod.clear_warnings(5, ids[1]) is False
        assert mod.clear_warnings(5, "deadbeef") is False

    def test_clear_all(self, mod):
        mod.warn(5, MOD)
        mod.warn(5, MOD)
        assert mod.clear_warnings(5) is True
        assert mod.get_warnings(5) == []
        assert mod.clear_warnings(5) is False

    def test_clear_last_removes_key(self, mod, registry):
        warning_id = mod.warn(5, MOD).warning.id
        mod.clear_warnings(5, warning_id)
        assert f"{GUILD}-5" not in registry.stores["warnings"]

    def test_guild_isolation(self, registry):
        registry.moderation(GUILD).warn(5, MOD)
        assert registry.moderation(OTHER_GUILD).get_warnings(5) == []


class TestMutes:
    def test_timed_mute_expires(self, mod, clock):
        record = mod.mute_timed(7, "10m")
        assert record.unmute_at == clock() + 10 * MINUTE
        assert mod.is_muted(7) is True

        clock.advance(10 * MINUTE - 1)
        assert mod.is_muted(7) is True
        assert mod.expired_mutes() == []
        assert mod.pop_expired() == []

        clock.advance(1)
        assert mod.is_muted(7) is False
        assert mod.expired_mutes() == [record]
        assert mod.get_mute(7) == record
        assert mod.pop_expired() == [record]
        assert mod.get_mute(7) is None
        assert mod.pop_expired() == []

    def test_expired_at_explicit_time(self, mod, clock):
        record = mod.mute_timed(7, "1h")
        assert mod.expired_mutes(now=clock() + HOUR) == [record]
        assert mod.is_muted(7, now=clock() + HOUR) is False

    def test_seconds(self, mod, clock):
        assert mod.mute_timed(7, HOUR).unmute_at == clock() + HOUR

    @pytest.mark.parametrize("duration", ["abc", "0m", "", 0, -30])
    def test_invalid_duration(self, mod, duration):
        assert mod.mute_timed(7, duration) is None
        assert mod.get_mute(7) is None

    def test_unmute(self, mod):
        mod.mute_timed(7, "1h")
        assert mod.unmute(7) is True
        assert mod.is_muted(7) is False
        assert mod.unmute(7) is False

    def test_active_mutes(self, mod, registry):
        mod.mute_timed(7, "1h")
        mod.mute_timed(8, "2h")
        registry.moderation(OTHER_GUILD).mute_timed(9, "1h")
        assert sorted(m.user_id for m in mod.active_mutes()) == [7, 8]

    def test_remute_replaces(self, mod, clock):
        mod.mute_timed(7, "1h")
        mod.mute_timed(7, "10m")
        assert mod.get_mute(7).unmute_at == clock() + 10 * MINUTE

    def test_survives_restart(self, mod, tmp_path, clock):
        mod.mute_timed(7, "1d")
        mod.warn(7, MOD, "rude")
        reloaded = GuildRegistry(tmp_path, clock=clock).moderation(GUILD)
        assert reloaded.is_muted(7) is True
        assert [w.reason for w in reloaded.get_warnings(7)] == ["rude"]
