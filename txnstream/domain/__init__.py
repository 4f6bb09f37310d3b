"""
Domain package for the transaction stream demo.

Exports the core domain models used across profiles, the aggregator and the
driver. Keep this package focused on data definitions and validation concerns.
"""

from txnstream.domain.models import (
    MetricsSnapshot,
    Phase,
    TransactionRecord,
    TransactionStatus,
    utc_now,
)

__all__ = [
    "MetricsSnapshot",
    "Phase",
    "TransactionRecord",
    "TransactionStatus",
    "utc_now",
]
