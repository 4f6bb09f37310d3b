"""
Pytest configuration for the transaction stream demo.

Provides fixtures for:
- A virtual pacer that advances a fake clock instead of sleeping
- Seeded random sources for reproducible profiles
- Settings overrides without touching the environment
- A record factory for aggregator tests
"""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

import pytest

from txnstream.config import Settings, get_settings
from txnstream.domain.models import TransactionRecord, TransactionStatus

EPOCH_MS = 1_700_000_000_000


class VirtualPacer:
    """
    Pacer that records requested pauses and advances a fake clock.

    Each sleep still yields to the event loop once, so concurrent calls on the
    driver interleave the way they would with real pauses.
    """

    def __init__(self, start_ms: int = EPOCH_MS) -> None:
        self.clock_ms = start_ms
        self.sleeps: List[int] = []

    def now_ms(self) -> int:
        return self.clock_ms

    async def sleep(self, ms: int) -> None:
        self.sleeps.append(ms)
        self.clock_ms += ms
        await asyncio.sleep(0)

    @property
    def elapsed_ms(self) -> int:
        return sum(self.sleeps)


class GatedPacer(VirtualPacer):
    """Pacer whose pauses never end until `release()`; used for teardown tests."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.waiting = 0

    async def sleep(self, ms: int) -> None:
        self.sleeps.append(ms)
        self.waiting += 1
        try:
            await self.gate.wait()
        finally:
            self.waiting -= 1

    def release(self) -> None:
        self.gate.set()


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def pacer() -> VirtualPacer:
    return VirtualPacer()


@pytest.fixture
def gated_pacer() -> GatedPacer:
    return GatedPacer()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """
    Build Settings with field overrides.

    `model_copy(update=...)` bypasses env aliases so tests do not depend on
    the caller's environment variable names.
    """

    def _make(**overrides) -> Settings:
        return Settings().model_copy(update=overrides)

    return _make


@pytest.fixture
def make_record() -> Callable[..., TransactionRecord]:
    counter = {"n": 0}

    def _make(
        status: TransactionStatus = TransactionStatus.COMPLETED,
        latency_ms: Optional[int] = 20,
        amount: str = "100.00",
    ) -> TransactionRecord:
        counter["n"] += 1
        return TransactionRecord(
            id=f"TXN-TEST-{counter['n']}",
            amount=Decimal(amount),
            status=status,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            latency_ms=latency_ms if status.is_terminal else None,
        )

    return _make
