"""
Single-transaction profile: one record walked through its whole lifecycle.

Demonstrates end-to-end processing rather than throughput: the record is shown
as pending, then processing, then completed, with short pauses in between.
"""

from __future__ import annotations

import random
from decimal import Decimal
from typing import AsyncIterator, Optional

from txnstream.domain.models import Phase, TransactionRecord, TransactionStatus, utc_now
from txnstream.profiles.abstract import AbstractStreamProfile, Emission
from txnstream.utils.pacing import Pacer

SINGLE_AMOUNT = Decimal("1000.00")
LATENCY_MIN_MS = 30
LATENCY_SPAN_MS = 20


class SingleProfile(AbstractStreamProfile):
    """
    Emit exactly one transaction: pending -> processing -> completed.

    Only the completed emission is settled; the earlier ones replace each other
    at the head of the display window.
    """

    name: str = "single"
    phase: Phase = Phase.SINGLE
    description: str = "One transaction through pending, processing and completed."

    def __init__(
        self,
        pending_ms: Optional[int] = None,
        processing_ms: Optional[int] = None,
        settle_ms: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(rng)
        self.pending_ms = self._configured(pending_ms, "single_pending_ms")
        self.processing_ms = self._configured(processing_ms, "single_processing_ms")
        self.settle_ms = self._configured(settle_ms, "single_settle_ms")

    async def emissions(self, pacer: Pacer) -> AsyncIterator[Emission]:
        record = TransactionRecord(
            id=f"TXN{pacer.now_ms()}",
            amount=SINGLE_AMOUNT,
            status=TransactionStatus.PENDING,
            created_at=utc_now(),
        )
        yield Emission(records=[record], progress=0.0, settled=False)
        await pacer.sleep(self.pending_ms)

        record = record.advance(TransactionStatus.PROCESSING)
        yield Emission(records=[record], progress=0.33, settled=False, replace_head=True)
        await pacer.sleep(self.processing_ms)

        record = record.advance(
            TransactionStatus.COMPLETED,
            latency_ms=self._uniform_int(LATENCY_MIN_MS, LATENCY_SPAN_MS),
        )
        yield Emission(records=[record], progress=0.66, replace_head=True)
        await pacer.sleep(self.settle_ms)


__all__ = ["SingleProfile"]
