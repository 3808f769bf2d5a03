"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import random

import pytest

from hearth.services.registry import GuildRegistry
from hearth.storage.json_store import JsonStore

GUILD = 100
OTHER_GUILD = 200
START = 1_700_000_000.0


class FakeClock:
    """Injectable ``time.time`` replacement advanced by hand."""

    def __init__(self, start: float = START) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def store_factory(tmp_path):
    """Open (or reopen) a JSON store under the test's temp directory."""
    def _open(name: str = "store.json") -> JsonStore:
        return JsonStore(tmp_path / name)
    return _open


@pytest.fixture
def registry(tmp_path, clock, rng) -> GuildRegistry:
    return GuildRegistry(tmp_path, clock=clock, rng=rng)


@pytest.fixture
def run_engine(clock):
    """Tick a timer engine *seconds* times, moving the clock with it."""
    def _run(engine, seconds: int) -> None:
        for _ in range(seconds):
            clock.advance(1)
            engine.tick()
    return _run
