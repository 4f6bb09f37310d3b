"""
Metrics aggregation for the transaction stream demo.

The aggregator folds one batch of records at a time into a running
`MetricsSnapshot`. It is a fold, not a replay log: once a batch is folded its
records can be dropped.

Usage:
    from txnstream.aggregator import MetricsAggregator

    aggregator = MetricsAggregator()
    aggregator.fold(records)
    aggregator.record_throughput(sub_batch_size=100, interval_ms=100)
    print(aggregator.snapshot.p99_latency_ms)
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from txnstream.domain.models import MetricsSnapshot, TransactionRecord, TransactionStatus
from txnstream.utils.logging import get_logger

log = get_logger(__name__)

PERCENTILES = {"p50_latency_ms": 0.5, "p95_latency_ms": 0.95, "p99_latency_ms": 0.99}


def _round_ms(value: float) -> int:
    """Round half-up to whole milliseconds."""
    return int(math.floor(value + 0.5))


def percentile(sorted_values: Sequence[int], quantile: float) -> int:
    """
    Nearest-rank percentile: the element at index floor(len * quantile).

    `sorted_values` must be non-empty and sorted ascending; `quantile` lies in
    [0, 1).
    """
    return sorted_values[int(math.floor(len(sorted_values) * quantile))]


class MetricsAggregator:
    """
    Fold batches of records into a cumulative snapshot.

    Success accounting is reconstructed from the previous rate and total on
    every fold instead of being kept as an exact counter, so the rate drifts by
    floating-point rounding over many batches.
    """

    def __init__(self, snapshot: Optional[MetricsSnapshot] = None) -> None:
        self.snapshot = snapshot if snapshot is not None else MetricsSnapshot.baseline()

    def reset(self) -> MetricsSnapshot:
        self.snapshot = MetricsSnapshot.baseline()
        return self.snapshot

    def fold(self, batch: Sequence[TransactionRecord]) -> MetricsSnapshot:
        """
        Fold `batch` into the snapshot in place and return it.

        An empty batch leaves the snapshot untouched. Latency statistics are
        taken from the batch's completed records and retained from the prior
        state when there are none.
        """
        if not batch:
            return self.snapshot

        snap = self.snapshot
        latencies: List[int] = sorted(
            record.latency_ms
            for record in batch
            if record.status is TransactionStatus.COMPLETED and record.latency_ms is not None
        )

        previous_total = snap.total_count
        total = previous_total + len(batch)
        success_count = previous_total * (snap.success_rate / 100) + len(latencies)

        snap.total_count = total
        snap.success_rate = success_count / total * 100

        if latencies:
            for field_name, quantile in PERCENTILES.items():
                setattr(snap, field_name, percentile(latencies, quantile))
            snap.avg_latency_ms = _round_ms(sum(latencies) / len(latencies))

        log.debug(
            "Folded batch",
            extra={
                "batch_size": len(batch),
                "completed": len(latencies),
                "total_count": snap.total_count,
                "success_rate": round(snap.success_rate, 2),
            },
        )
        return snap

    def record_throughput(self, sub_batch_size: int, interval_ms: int) -> MetricsSnapshot:
        """Update current/peak TPS from one paced sub-batch."""
        snap = self.snapshot
        snap.current_tps = sub_batch_size * (1000 / interval_ms)
        snap.peak_tps = max(snap.peak_tps, snap.current_tps)
        return snap


__all__ = ["MetricsAggregator", "percentile"]
