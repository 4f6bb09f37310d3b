"""
High-load profile: paced sub-batches at a target throughput.

For a fixed wall-clock duration the profile emits one sub-batch per interval,
sized so that `sub_batch_size / interval` approximates the target TPS. Each
record independently fails with a small fixed probability. Every sub-batch
carries a throughput sample for the aggregator's current/peak TPS.
"""

from __future__ import annotations

import random
from decimal import Decimal
from typing import AsyncIterator, List, Optional

from txnstream.domain.models import Phase, TransactionRecord, TransactionStatus, utc_now
from txnstream.profiles.abstract import CENTS, AbstractStreamProfile, Emission
from txnstream.utils.pacing import Pacer

AMOUNT_MIN = 100
AMOUNT_SPAN = 10_000
LATENCY_MIN_MS = 5
LATENCY_SPAN_MS = 50


class HighLoadProfile(AbstractStreamProfile):
    """
    Emit `target_tps * interval_ms / 1000` records every `interval_ms` for
    `duration_ms`.

    Iteration count is `duration_ms // interval_ms`; the profile does not wait
    for the display layer to catch up.
    """

    name: str = "highload"
    phase: Phase = Phase.HIGHLOAD
    description: str = "Paced sub-batches at a target TPS with random failures."

    def __init__(
        self,
        target_tps: Optional[int] = None,
        duration_ms: Optional[int] = None,
        interval_ms: Optional[int] = None,
        failure_probability: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(rng)
        self.target_tps = self._configured(target_tps, "target_tps")
        self.duration_ms = self._configured(duration_ms, "highload_duration_ms")
        self.interval_ms = self._configured(interval_ms, "highload_interval_ms")
        self.failure_probability = self._configured(failure_probability, "failure_probability")
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

    @property
    def sub_batch_size(self) -> int:
        return self.target_tps * self.interval_ms // 1000

    @property
    def iterations(self) -> int:
        return self.duration_ms // self.interval_ms

    def _make_batch(self, stamp: int, first_seq: int) -> List[TransactionRecord]:
        created_at = utc_now()
        batch: List[TransactionRecord] = []
        for offset in range(self.sub_batch_size):
            failed = self.rng.random() < self.failure_probability
            batch.append(
                TransactionRecord(
                    id=f"TXN-HL-{stamp}-{first_seq + offset}",
                    amount=Decimal(self._uniform_int(AMOUNT_MIN, AMOUNT_SPAN)).quantize(CENTS),
                    status=TransactionStatus.FAILED if failed else TransactionStatus.COMPLETED,
                    created_at=created_at,
                    latency_ms=self._uniform_int(LATENCY_MIN_MS, LATENCY_SPAN_MS),
                )
            )
        return batch

    async def emissions(self, pacer: Pacer) -> AsyncIterator[Emission]:
        size = self.sub_batch_size
        iterations = self.iterations
        for index in range(iterations):
            batch = self._make_batch(pacer.now_ms(), index * size)
            yield Emission(
                records=batch,
                progress=index / iterations,
                throughput=(size, self.interval_ms),
            )
            await pacer.sleep(self.interval_ms)


__all__ = ["HighLoadProfile"]
