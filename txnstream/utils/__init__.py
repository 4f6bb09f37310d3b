"""
Utilities package for the transaction stream demo.

Exports shared helpers for logging, pacing, profiling, and other cross-cutting
concerns. Keep this package lightweight and free of domain-specific logic.
"""

from txnstream.utils.logging import configure_logging, get_logger
from txnstream.utils.pacing import AsyncioPacer, Pacer
from txnstream.utils.profiler import ProfileStats, profile_block

__all__ = [
    "AsyncioPacer",
    "Pacer",
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
