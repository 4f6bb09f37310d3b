"""
Concurrent profile: a fixed number of transactions emitted in sub-batches.

Every record is created already completed with a latency drawn uniformly from
a bounded range. The profile pauses after each sub-batch so the host can
re-render; sub-batches go out in ascending order over the input range.
"""

from __future__ import annotations

import random
from decimal import Decimal
from typing import AsyncIterator, List, Optional

from txnstream.domain.models import Phase, TransactionRecord, TransactionStatus, utc_now
from txnstream.profiles.abstract import CENTS, AbstractStreamProfile, Emission
from txnstream.utils.pacing import Pacer

AMOUNT_MIN = 100
AMOUNT_SPAN = 5000
LATENCY_MIN_MS = 10
LATENCY_SPAN_MS = 30


class ConcurrentProfile(AbstractStreamProfile):
    """
    Emit `count` completed transactions in sub-batches of `batch_size`.
    """

    name: str = "concurrent"
    phase: Phase = Phase.CONCURRENT
    description: str = "Completed transactions in fixed-size sub-batches."

    def __init__(
        self,
        count: Optional[int] = None,
        batch_size: Optional[int] = None,
        pause_ms: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(rng)
        self.count = self._configured(count, "concurrent_count")
        self.batch_size = self._configured(batch_size, "concurrent_batch_size")
        self.pause_ms = self._configured(pause_ms, "concurrent_pause_ms")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")

    def _make_batch(self, stamp: int, start: int) -> List[TransactionRecord]:
        created_at = utc_now()
        size = min(self.batch_size, self.count - start)
        return [
            TransactionRecord(
                id=f"TXN{stamp}-{start + offset}",
                amount=Decimal(self._uniform_int(AMOUNT_MIN, AMOUNT_SPAN)).quantize(CENTS),
                status=TransactionStatus.COMPLETED,
                created_at=created_at,
                latency_ms=self._uniform_int(LATENCY_MIN_MS, LATENCY_SPAN_MS),
            )
            for offset in range(size)
        ]

    async def emissions(self, pacer: Pacer) -> AsyncIterator[Emission]:
        stamp = pacer.now_ms()
        for start in range(0, self.count, self.batch_size):
            batch = self._make_batch(stamp, start)
            yield Emission(records=batch, progress=start / self.count)
            await pacer.sleep(self.pause_ms)


__all__ = ["ConcurrentProfile"]
