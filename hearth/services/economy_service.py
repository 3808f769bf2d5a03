"""
hearth.services.economy_service — Per-Guild Coin Ledger
========================================================

Each guild has an independent :class:`EconomyLedger` over the shared
``economy.json`` store.  Users carry a wallet balance, a bank balance,
lifetime earn/spend totals, claim timestamps, and an economy-side
``xp``/``level`` pair levelled with the same curve as the activity ledger.

Every mutating call rewrites the backing file before returning.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, fields

from hearth.constants import DAY, WEEK, level_for_xp, xp_for_level
from hearth.engine.leaderboard import LeaderboardEntry, rank_users
from hearth.storage.json_store import JsonStore, user_key

logger = logging.getLogger(__name__)

STARTING_BALANCE = 100

DAILY_COOLDOWN = DAY
WEEKLY_COOLDOWN = WEEK
DAILY_REWARD_RANGE = (250, 749)
WEEKLY_REWARD_RANGE = (1_000, 2_999)


@dataclass(slots=True)
class UserEconomyRecord:
    balance: int = STARTING_BALANCE
    bank: int = 0
    last_daily: float = 0.0
    last_weekly: float = 0.0
    total_earned: int = STARTING_BALANCE
    total_spent: int = 0
    level: int = 1
    xp: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict) -> UserEconomyRecord:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in raw.items() if k in known})

    @property
    def total(self) -> int:
        return self.balance + self.bank


@dataclass(frozen=True, slots=True)
class BalanceInfo:
    balance: int
    bank: int
    total: int


@dataclass(frozen=True, slots=True)
class LevelChange:
    level_up: bool
    old_level: int
    new_level: int


@dataclass(frozen=True, slots=True)
class LevelInfo:
    level: int
    xp: int
    xp_for_next: int


@dataclass(frozen=True, slots=True)
class EconomyStats:
    balance: int
    bank: int
    total: int
    total_earned: int
    total_spent: int
    level: int
    xp: int
    xp_for_next: int
    next_daily_at: float
    next_weekly_at: float


ECONOMY_METRICS: dict[str, Callable[[UserEconomyRecord], int]] = {
    "balance": lambda r: r.total,
    "level": lambda r: r.level,
    "total": lambda r: r.total_earned,
}


class EconomyLedger:
    """Balances, claims, and economy XP for one guild."""

    def __init__(
        self,
        guild_id: int,
        store: JsonStore,
        *,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        self.guild_id = guild_id
        self._store = store
        self._clock = clock
        self._rng = rng or random.Random()
        self._records: dict[int, UserEconomyRecord] = {}

        prefix = f"{guild_id}-"
        for key, raw in store.items(prefix):
            try:
                user_id = int(key[len(prefix):])
                self._records[user_id] = UserEconomyRecord.from_dict(raw)
            except (AttributeError, TypeError, ValueError):
                logger.warning("Skipping malformed economy record %r", key)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _get(self, user_id: int) -> UserEconomyRecord:
        record = self._records.get(user_id)
        if record is None:
            record = UserEconomyRecord()
            self._records[user_id] = record
            self._commit(user_id)
        return record

    def _commit(self, *user_ids: int) -> None:
        for user_id in user_ids:
            self._store.set(user_key(self.guild_id, user_id), self._records[user_id].to_dict())
        self._store.save()

    # -------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------
    def get_user(self, user_id: int) -> UserEconomyRecord:
        return self._get(user_id)

    def get_balance(self, user_id: int) -> BalanceInfo:
        """Wallet, bank, and their sum; creates the user on first access."""
        record = self._get(user_id)
        return BalanceInfo(balance=record.balance, bank=record.bank, total=record.total)

    def add_money(
        self, user_id: int, amount: int, reason: str = "Unknown", *, to_bank: bool = False
    ) -> bool:
        """Credit the wallet (or the bank).  Fails if *amount* is not positive."""
        if amount <= 0:
            return False
        record = self._get(user_id)
        if to_bank:
            record.bank += amount
        else:
            record.balance += amount
        record.total_earned += amount
        self._commit(user_id)
        logger.debug("Economy +%d to %s in %s (%s)", amount, user_id, self.guild_id, reason)
        return True

    def remove_money(
        self, user_id: int, amount: int, reason: str = "Unknown", *, from_bank: bool = False
    ) -> bool:
        """Debit the wallet (or the bank).  Fails without mutation if funds are insufficient."""
        if amount <= 0:
            return False
        record = self._get(user_id)
        if (record.bank if from_bank else record.balance) < amount:
            return False
        if from_bank:
            record.bank -= amount
        else:
            record.balance -= amount
        record.total_spent += amount
        self._commit(user_id)
        logger.debug("Economy -%d from %s in %s (%s)", amount, user_id, self.guild_id, reason)
        return True

    def transfer(self, from_id: int, to_id: int, amount: int) -> bool:
        """Move *amount* between wallets atomically; a self-transfer is refused."""
        if amount <= 0 or from_id == to_id:
            return False
        source = self._get(from_id)
        if source.balance < amount:
            return False
        target = self._get(to_id)
        source.balance -= amount
        source.total_spent += amount
        target.balance += amount
        target.total_earned += amount
        self._commit(from_id, to_id)
        logger.info("Transfer %d from %s to %s in %s", amount, from_id, to_id, self.guild_id)
        return True

    def deposit(self, user_id: int, amount: int) -> bool:
        if amount <= 0:
            return False
        record = self._get(user_id)
        if record.balance < amount:
            return False
        record.balance -= amount
        record.bank += amount
        self._commit(user_id)
        return True

    def withdraw(self, user_id: int, amount: int) -> bool:
        if amount <= 0:
            return False
        record = self._get(user_id)
        if record.bank < amount:
            return False
        record.bank -= amount
        record.balance += amount
        self._commit(user_id)
        return True

    # -------------------------------------------------------------------
    # Periodic claims
    # -------------------------------------------------------------------
    def can_claim_daily(self, user_id: int) -> bool:
        return self._clock() - self._get(user_id).last_daily >= DAILY_COOLDOWN

    def can_claim_weekly(self, user_id: int) -> bool:
        return self._clock() - self._get(user_id).last_weekly >= WEEKLY_COOLDOWN

    def next_daily_at(self, user_id: int) -> float:
        return self._get(user_id).last_daily + DAILY_COOLDOWN

    def next_weekly_at(self, user_id: int) -> float:
        return self._get(user_id).last_weekly + WEEKLY_COOLDOWN

    def claim_daily(self, user_id: int) -> int:
        """Grant the daily reward.  Returns the amount, or 0 while on cooldown."""
        if not self.can_claim_daily(user_id):
            return 0
        amount = self._rng.randint(*DAILY_REWARD_RANGE)
        record = self._get(user_id)
        record.last_daily = self._clock()
        record.balance += amount
        record.total_earned += amount
        self._commit(user_id)
        logger.info("Daily claim %d for %s in %s", amount, user_id, self.guild_id)
        return amount

    def claim_weekly(self, user_id: int) -> int:
        """Grant the weekly reward.  Returns the amount, or 0 while on cooldown."""
        if not self.can_claim_weekly(user_id):
            return 0
        amount = self._rng.randint(*WEEKLY_REWARD_RANGE)
        record = self._get(user_id)
        record.last_weekly = self._clock()
        record.balance += amount
        record.total_earned += amount
        self._commit(user_id)
        logger.info("Weekly claim %d for %s in %s", amount, user_id, self.guild_id)
        return amount

    # -------------------------------------------------------------------
    # Economy XP
    # -------------------------------------------------------------------
    def add_xp(self, user_id: int, amount: int) -> LevelChange:
        record = self._get(user_id)
        old_level = record.level
        record.xp += max(amount, 0)
        record.level = level_for_xp(record.xp)
        self._commit(user_id)
        return LevelChange(
            level_up=record.level > old_level,
            old_level=old_level,
            new_level=record.level,
        )

    def get_level(self, user_id: int) -> LevelInfo:
        record = self._get(user_id)
        return LevelInfo(
            level=record.level,
            xp=record.xp,
            xp_for_next=xp_for_level(record.level + 1),
        )

    def get_stats(self, user_id: int) -> EconomyStats:
        record = self._get(user_id)
        return EconomyStats(
            balance=record.balance,
            bank=record.bank,
            total=record.total,
            total_earned=record.total_earned,
            total_spent=record.total_spent,
            level=record.level,
            xp=record.xp,
            xp_for_next=xp_for_level(record.level + 1),
            next_daily_at=record.last_daily + DAILY_COOLDOWN,
            next_weekly_at=record.last_weekly + WEEKLY_COOLDOWN,
        )

    # -------------------------------------------------------------------
    # Leaderboard
    # -------------------------------------------------------------------
    def get_leaderboard(self, metric: str = "balance", limit: int = 10) -> list[LeaderboardEntry]:
        """Top users by net worth (``balance``), ``level``, or lifetime earnings (``total``).

        An unknown metric yields ``[]``.
        """
        value = ECONOMY_METRICS.get(metric)
        if value is None:
            return []
        return rank_users(((uid, value(r)) for uid, r in self._records.items()), limit)
