"""
Pacing primitives shared by the load profiles and the driver.

Every timed pause in the demo goes through a `Pacer`. The asyncio
implementation sleeps on the running loop, so cancelling the task that owns a
run releases its pending pause immediately. Tests swap in a virtual pacer that
advances a fake clock instead of sleeping.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Pacer(Protocol):
    """Clock and suspension point used by profiles."""

    def now_ms(self) -> int:
        """Wall-clock time in epoch milliseconds (used for ids)."""
        ...

    async def sleep(self, ms: int) -> None:
        """Suspend the current run for `ms` milliseconds."""
        ...


class AsyncioPacer:
    """Pacer backed by `asyncio.sleep` and the system clock."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    async def sleep(self, ms: int) -> None:
        if ms <= 0:
            # still yield so the host can repaint between chunks
            await asyncio.sleep(0)
            return
        await asyncio.sleep(ms / 1000.0)


__all__ = ["AsyncioPacer", "Pacer"]
