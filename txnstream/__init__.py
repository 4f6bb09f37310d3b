"""
txnstream - transaction-stream simulation and metrics engine.

This package drives the live demo of a distributed transaction engine. Nothing
here talks to a real backend: transactions are synthetic (or read from an
uploaded CSV), produced under named load profiles:

- Single transaction lifecycle
- Concurrent sub-batches
- Paced high-load bursts at a target TPS
- File-derived replay of uploaded tables

A driver sequences the profiles, folds each batch into a running metrics
snapshot (success rate, P50/P95/P99 latency, current/peak TPS) and publishes
phase and progress to whatever presentation layer subscribes.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from txnstream.aggregator import MetricsAggregator
from txnstream.config import Settings, get_settings
from txnstream.domain.models import MetricsSnapshot, Phase, TransactionRecord, TransactionStatus
from txnstream.driver import DemoDriver, DemoState, available_profiles
from txnstream.profiles import (
    ConcurrentProfile,
    FileDerivedProfile,
    HighLoadProfile,
    SingleProfile,
    StreamProfile,
    parse_transactions,
)
from txnstream.sample import generate_sample_csv
from txnstream.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "MetricsSnapshot",
    "Phase",
    "TransactionRecord",
    "TransactionStatus",
    # Engine
    "DemoDriver",
    "DemoState",
    "MetricsAggregator",
    "available_profiles",
    # Profiles
    "ConcurrentProfile",
    "FileDerivedProfile",
    "HighLoadProfile",
    "SingleProfile",
    "StreamProfile",
    "parse_transactions",
    "generate_sample_csv",
    # Logging
    "configure_logging",
    "get_logger",
]
