"""
Run profiling for the transaction stream demo.

Wraps a demo run and records wall-clock duration, process CPU percent and
resident memory via psutil, so the CLI report can show what the simulated
load actually cost the host process.

Usage:
    from txnstream.utils.profiler import profile_block

    with profile_block("demo") as stats:
        asyncio.run(run_demo())

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)
    extra: dict[str, Any] = field(default_factory=dict)

    def summary(self) -> str:
        parts = [f"{self.label}: {self.duration_seconds:.2f}s"]
        if self.cpu_percent is not None:
            parts.append(f"CPU {self.cpu_percent:.1f}%")
        if self.peak_rss_bytes:
            parts.append(f"RSS {self.peak_rss_bytes / (1024 * 1024):.1f}MB")
        return " | ".join(parts)


def _peak_rss(process: psutil.Process) -> int:
    rss = process.memory_info().rss
    try:
        import resource
    except ImportError:  # Windows: no high-water mark, current RSS only
        return rss
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes on Linux
    peak = max_rss if sys.platform == "darwin" else max_rss * 1024
    return max(rss, peak)


@contextlib.contextmanager
def profile_block(label: str) -> Generator[ProfileStats, None, None]:
    """
    Profile a block of code.

    Measures wall-clock duration (perf_counter), process CPU percent over the
    block and peak resident memory.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    # CPU percent needs a priming call
    process.cpu_percent(interval=None)

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stats.cpu_percent = process.cpu_percent(interval=None)
        stats.peak_rss_bytes = _peak_rss(process)


__all__ = ["ProfileStats", "profile_block"]
