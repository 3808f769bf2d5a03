"""
tests/test_economy.py — Economy Ledger
=======================================
"""

from __future__ import annotations

import pytest

from hearth.constants import DAY, WEEK
from hearth.services.economy_service import (
    DAILY_REWARD_RANGE,
    STARTING_BALANCE,
    WEEKLY_REWARD_RANGE,
    BalanceInfo,
    EconomyLedger,
)
from hearth.services.registry import GuildRegistry
from conftest import GUILD, OTHER_GUILD


@pytest.fixture
def ledger(registry) -> EconomyLedger:
    return registry.economy(GUILD)


def _balance(wallet: int, bank: int) -> BalanceInfo:
    return BalanceInfo(balance=wallet, bank=bank, total=wallet + bank)


class TestBalances:
    def test_new_user_defaults(self, ledger):
        assert ledger.get_balance(1) == _balance(STARTING_BALANCE, 0)
        record = ledger.get_user(1)
        assert record.total_earned == STARTING_BALANCE
        assert record.level == 1

    def test_first_access_is_persisted(self, ledger, registry):
        ledger.get_balance(1)
        assert f"{GUILD}-1" in registry.stores["economy"]

    def test_add_money(self, ledger):
        assert ledger.add_money(1, 50) is True
        assert ledger.get_balance(1) == _balance(150, 0)
        assert ledger.get_user(1).total_earned == 150

    def test_add_money_to_bank(self, ledger):
        assert ledger.add_money(1, 50, "Interest", to_bank=True) is True
        assert ledger.get_balance(1) == _balance(100, 50)
        assert ledger.get_user(1).total_earned == 150

    @pytest.mark.parametrize("amount", [0, -10])
    def test_add_money_rejects_non_positive(self, ledger, amount):
        assert ledger.add_money(1, amount) is False
        assert ledger.get_balance(1) == _balance(100, 0)

    def test_remove_money(self, ledger):
        assert ledger.remove_money(1, 30) is True
        assert ledger.get_balance(1) == _balance(70, 0)
        assert ledger.get_user(1).total_spent == 30

    def test_remove_money_insufficient(self, ledger):
        assert ledger.remove_money(1, 101) is False
        assert ledger.get_balance(1) == _balance(100, 0)

    def test_remove_money_from_bank(self, ledger):
        ledger.deposit(1, 40)
        assert ledger.remove_money(1, 41, from_bank=True) is False
        assert ledger.remove_money(1, 40, "Fee", from_bank=True) is True
        assert ledger.get_balance(1) == _balance(60, 0)
        assert ledger.get_user(1).total_spent == 40

    def test_deposit_and_withdraw(self, ledger):
        assert ledger.deposit(1, 60) is True
        assert ledger.get_balance(1) == _balance(40, 60)
        assert ledger.deposit(1, 41) is False
        assert ledger.withdraw(1, 61) is False
        assert ledger.withdraw(1, 10) is True
        assert ledger.get_balance(1) == _balance(50, 50)
        assert ledger.get_user(1).total == 100


class TestTransfer:
    def test_moves_funds(self, ledger):
        assert ledger.transfer(1, 2, 40) is True
        assert ledger.get_balance(1) == _balance(60, 0)
        assert ledger.get_balance(2) == _balance(140, 0)
        assert ledger.get_user(1).total_spent == 40
        assert ledger.get_user(2).total_earned == 140

    def test_self_transfer_refused(self, ledger):
        assert ledger.transfer(1, 1, 10) is False
        assert ledger.get_balance(1) == _balance(100, 0)

    def test_insufficient_funds(self, ledger):
        assert ledger.transfer(1, 2, 500) is False
        assert ledger.get_balance(1) == _balance(100, 0)

    def test_non_positive(self, ledger):
        assert ledger.transfer(1, 2, 0) is False


class TestClaims:
    def test_daily_cooldown(self, ledger, clock):
        amount = ledger.claim_daily(1)
        assert DAILY_REWARD_RANGE[0] <= amount <= DAILY_REWARD_RANGE[1]
        assert ledger.get_balance(1) == _balance(100 + amount, 0)
        assert ledger.claim_daily(1) == 0
        assert ledger.next_daily_at(1) == clock() + DAY

        clock.advance(DAY - 1)
        assert ledger.can_claim_daily(1) is False
        clock.advance(1)
        assert ledger.can_claim_daily(1) is True
        assert ledger.claim_daily(1) > 0

    def test_weekly_cooldown(self, ledger, clock):
        amount = ledger.claim_weekly(1)
        assert WEEKLY_REWARD_RANGE[0] <= amount <= WEEKLY_REWARD_RANGE[1]
        clock.advance(WEEK - 1)
        assert ledger.claim_weekly(1) == 0
        clock.advance(1)
        assert ledger.claim_weekly(1) > 0

    def test_daily_and_weekly_independent(self, ledger):
        assert ledger.claim_daily(1) > 0
        assert ledger.claim_weekly(1) > 0


class TestLevels:
    def test_level_up(self, ledger):
        change = ledger.add_xp(1, 100)
        assert change.level_up is True
        assert (change.old_level, change.new_level) == (1, 2)

    def test_no_level_up(self, ledger):
        change = ledger.add_xp(1, 99)
        assert change.level_up is False
        assert ledger.get_level(1).xp_for_next == 100

    def test_stats(self, ledger, clock):
        ledger.deposit(1, 25)
        ledger.add_xp(1, 400)
        stats = ledger.get_stats(1)
        assert (stats.balance, stats.bank, stats.total) == (75, 25, 100)
        assert (stats.level, stats.xp, stats.xp_for_next) == (3, 400, 900)
        assert stats.next_daily_at == DAY


class TestLeaderboard:
    def test_balance_order(self, ledger):
        ledger.add_money(1, 200)
        ledger.add_money(2, 100)
        ledger.get_user(3)
        entries = ledger.get_leaderboard("balance")
        assert [(e.user_id, e.value) for e in entries] == [(1, 300), (2, 200), (3, 100)]

    def test_ties_stable(self, ledger):
        for user_id in (5, 4, 6):
            ledger.get_user(user_id)
        assert [e.user_id for e in ledger.get_leaderboard("balance")] == [5, 4, 6]

    def test_balance_counts_bank(self, ledger):
        ledger.deposit(1, 100)
        ledger.add_money(2, 1, to_bank=True)
        entries = ledger.get_leaderboard("balance")
        assert [(e.user_id, e.value) for e in entries] == [(2, 101), (1, 100)]

    def test_total_is_lifetime_earnings(self, ledger):
        ledger.add_money(1, 50)
        ledger.remove_money(1, 150)
        ledger.add_money(2, 10)
        entries = ledger.get_leaderboard("total")
        assert [(e.user_id, e.value) for e in entries] == [(1, 150), (2, 110)]

    def test_unknown_metric(self, ledger):
        ledger.get_user(1)
        assert ledger.get_leaderboard("karma") == []

    def test_limit(self, ledger):
        for user_id in range(15):
            ledger.get_user(user_id)
        assert len(ledger.get_leaderboard(limit=10)) == 10


class TestPersistence:
    def test_survives_reload(self, ledger, tmp_path, clock):
        ledger.add_money(1, 50)
        ledger.deposit(1, 20)
        reloaded = GuildRegistry(tmp_path, clock=clock).economy(GUILD)
        assert reloaded.get_balance(1) == _balance(130, 20)

    def test_guild_isolation(self, registry):
        registry.economy(GUILD).add_money(1, 50)
        assert registry.economy(OTHER_GUILD).get_balance(1) == _balance(100, 0)
        assert registry.economy(GUILD).get_balance(1) == _balance(150, 0)

    def test_malformed_record_skipped(self, tmp_path, clock):
        (tmp_path / "economy.json").write_text(
            '{"100-1": "garbage", "100-2": {"balance": 7}}', encoding="utf-8"
        )
        ledger = GuildRegistry(tmp_path, clock=clock).economy(GUILD)
        assert ledger.get_balance(2) == _balance(7, 0)
        assert ledger.get_balance(1) == _balance(100, 0)
