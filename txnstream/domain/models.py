"""
Domain models for the transaction stream demo.

Defines the transaction record produced by every load profile, the cumulative
metrics snapshot maintained by the aggregator, and the phase tags published by
the driver. Records are frozen; a status transition yields a new record.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.COMPLETED, TransactionStatus.FAILED)


class Phase(str, Enum):
    IDLE = "idle"
    SINGLE = "single"
    CONCURRENT = "concurrent"
    HIGHLOAD = "highload"
    CSV = "csv"
    COMPLETE = "complete"


class TransactionRecord(BaseModel):
    """
    A single synthetic (or file-derived) transaction.

    `latency_ms` is present exactly when the record reached a terminal status.
    """

    id: str = Field(..., min_length=1, description="Unique transaction token.")
    amount: Decimal = Field(..., gt=0, description="Positive amount, two decimals.")
    status: TransactionStatus = Field(..., description="Lifecycle tag.")
    created_at: datetime = Field(..., description="Record creation timestamp (UTC).")
    latency_ms: Optional[int] = Field(None, ge=0, description="Processing latency.")
    currency: Optional[str] = Field(None, description="ISO currency code, if known.")
    transaction_type: Optional[str] = Field(None, description="TRANSFER, PAYMENT, ...")
    account_from: Optional[str] = Field(None, description="Debited account.")
    account_to: Optional[str] = Field(None, description="Credited account.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @model_validator(mode="after")
    def _latency_matches_status(self) -> "TransactionRecord":
        if self.status.is_terminal and self.latency_ms is None:
            raise ValueError(f"{self.status.value} record {self.id!r} requires latency_ms")
        if not self.status.is_terminal and self.latency_ms is not None:
            raise ValueError(f"{self.status.value} record {self.id!r} cannot carry latency_ms")
        return self

    def advance(
        self, status: TransactionStatus, latency_ms: Optional[int] = None
    ) -> "TransactionRecord":
        """Return a copy of this record moved to `status`."""
        # model_copy skips validation, so go through model_validate to keep the invariant
        data = self.model_dump()
        data.update(status=status, latency_ms=latency_ms)
        return TransactionRecord.model_validate(data)


class MetricsSnapshot(BaseModel):
    """
    Cumulative metrics exposed to the presentation layer.

    Latency figures describe the most recently folded batch; counters and the
    success rate are cumulative across the run.
    """

    total_count: int = 0
    success_rate: float = 100.0
    avg_latency_ms: int = 0
    p50_latency_ms: int = 0
    p95_latency_ms: int = 0
    p99_latency_ms: int = 0
    current_tps: float = 0.0
    peak_tps: float = 0.0

    @classmethod
    def baseline(cls) -> "MetricsSnapshot":
        return cls()

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "MetricsSnapshot",
    "Phase",
    "TransactionRecord",
    "TransactionStatus",
    "utc_now",
]
