"""
Driver for the transaction stream demo: sequences load profiles, folds their
batches into the metrics snapshot and publishes state after every step.

Usage (inside a running event loop):
    from txnstream.driver import DemoDriver

    driver = DemoDriver()
    driver.subscribe(lambda state: print(state.phase, state.progress))
    driver.start()
    final = await driver.wait()

The driver owns all mutable demo state (phase, progress, snapshot, display
window). Presentation code reads it through `state` or a subscription and
changes it only through `start`, `ingest` and `reset`.
"""

from __future__ import annotations

import asyncio
import random
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from txnstream.aggregator import MetricsAggregator
from txnstream.config import Settings, get_settings
from txnstream.domain.models import MetricsSnapshot, Phase, TransactionRecord
from txnstream.profiles.abstract import Emission, StreamProfile
from txnstream.profiles.concurrent import ConcurrentProfile
from txnstream.profiles.file_derived import FileDerivedProfile
from txnstream.profiles.high_load import HighLoadProfile
from txnstream.profiles.single import SingleProfile
from txnstream.utils.logging import get_logger
from txnstream.utils.pacing import AsyncioPacer, Pacer

log = get_logger(__name__)

# Non-overlapping slices of the 0-100 progress range reserved for each phase.
PROGRESS_SLICES: Dict[Phase, Tuple[float, float]] = {
    Phase.SINGLE: (0.0, 20.0),
    Phase.CONCURRENT: (20.0, 50.0),
    Phase.HIGHLOAD: (50.0, 100.0),
    Phase.CSV: (0.0, 100.0),
}

DEMO_SEQUENCE: Tuple[str, ...] = ("single", "concurrent", "highload")


class DemoState(BaseModel):
    """
    Immutable view of the driver published to the presentation layer.
    """

    phase: Phase
    progress: float
    running: bool
    snapshot: MetricsSnapshot
    records: Tuple[TransactionRecord, ...]

    model_config = {"frozen": True}


Listener = Callable[[DemoState], None]


def available_profiles() -> List[str]:
    """List profile names the driver can run."""
    return sorted([*DEMO_SEQUENCE, FileDerivedProfile.name])


class DemoDriver:
    """
    Phase controller for one demo at a time.

    `start` and `ingest` are no-ops while a run is active, `reset` is a no-op
    while running. Each phase's settled records are folded as one batch when
    the phase ends; high-load throughput samples are recorded as they arrive.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        pacer: Optional[Pacer] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.pacer: Pacer = pacer or AsyncioPacer()
        self.rng = rng or random.Random(self.settings.seed)
        self._aggregator = MetricsAggregator()
        self._window: Deque[TransactionRecord] = deque(maxlen=self.settings.display_window)
        self._phase = Phase.IDLE
        self._progress = 0.0
        self._running = False
        self._task: Optional[asyncio.Task[DemoState]] = None
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------ state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> DemoState:
        return DemoState(
            phase=self._phase,
            progress=self._progress,
            running=self._running,
            snapshot=self._aggregator.snapshot.model_copy(),
            records=tuple(self._window),
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # noqa: BLE001 - a broken view must not stop the run
                log.exception("State listener failed", extra={"phase": state.phase.value})

    # ------------------------------------------------------------- operations

    def start(self) -> Optional[asyncio.Task[DemoState]]:
        """
        Begin the single -> concurrent -> highload sequence.

        Must be called from within a running event loop. Returns the run task,
        or None when a run is already active.
        """
        if self._running:
            log.debug("Start ignored: run in progress", extra={"phase": self._phase.value})
            return None
        self._window.clear()
        self._progress = 0.0
        self._phase = Phase.SINGLE
        return self._launch(self._demo_profiles())

    def ingest(self, contents: Optional[str]) -> Optional[asyncio.Task[DemoState]]:
        """
        Replay uploaded table contents through the file-derived profile.

        `None` (no file selected) and calls during an active run are no-ops.
        """
        if contents is None:
            log.debug("Ingest ignored: no file selected")
            return None
        if self._running:
            log.debug("Ingest ignored: run in progress", extra={"phase": self._phase.value})
            return None
        self._window.clear()
        self._progress = 0.0
        self._phase = Phase.CSV
        profile = FileDerivedProfile(
            contents,
            chunk_rows=self.settings.csv_chunk_rows,
            pause_ms=self.settings.csv_pause_ms,
            rng=self.rng,
        )
        return self._launch([profile])

    def reset(self) -> bool:
        """Return metrics to baseline and the driver to idle; False while running."""
        if self._running:
            log.debug("Reset ignored: run in progress", extra={"phase": self._phase.value})
            return False
        self._aggregator.reset()
        self._window.clear()
        self._phase = Phase.IDLE
        self._progress = 0.0
        self._publish()
        log.info("[RESET] Metrics returned to baseline")
        return True

    async def wait(self) -> DemoState:
        """Wait for the active run (if any) and return the resulting state."""
        if self._task is not None:
            await self._task
        return self.state

    async def close(self) -> None:
        """
        Tear down: cancel the active run so any pending pause is released.
        """
        task, self._task = self._task, None
        self._running = False
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            self._publish()

    async def __aenter__(self) -> "DemoDriver":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -------------------------------------------------------------- internals

    def _demo_profiles(self) -> List[StreamProfile]:
        factories = self._profile_factories()
        return [factories[name]() for name in DEMO_SEQUENCE]

    def _profile_factories(self) -> Dict[str, Callable[[], StreamProfile]]:
        """Registry of the built-in sequence's profiles."""
        s = self.settings
        return {
            "single": lambda: SingleProfile(
                pending_ms=s.single_pending_ms,
                processing_ms=s.single_processing_ms,
                settle_ms=s.single_settle_ms,
                rng=self.rng,
            ),
            "concurrent": lambda: ConcurrentProfile(
                count=s.concurrent_count,
                batch_size=s.concurrent_batch_size,
                pause_ms=s.concurrent_pause_ms,
                rng=self.rng,
            ),
            "highload": lambda: HighLoadProfile(
                target_tps=s.target_tps,
                duration_ms=s.highload_duration_ms,
                interval_ms=s.highload_interval_ms,
                failure_probability=s.failure_probability,
                rng=self.rng,
            ),
        }

    def _launch(self, profiles: Sequence[StreamProfile]) -> asyncio.Task[DemoState]:
        loop = asyncio.get_running_loop()
        self._running = True
        self._publish()
        self._task = loop.create_task(self._run(profiles))
        return self._task

    def _show(self, emission: Emission) -> None:
        if emission.replace_head and self._window:
            self._window[0] = emission.records[-1]
            return
        # keep the batch's own order at the front of the newest-first window
        for record in reversed(emission.records):
            self._window.appendleft(record)

    def _advance(self, progress: float) -> None:
        self._progress = max(self._progress, progress)

    async def _run_profile(self, profile: StreamProfile) -> None:
        self._phase = profile.phase
        low, high = PROGRESS_SLICES[profile.phase]
        log.info(f"[PHASE START] {profile.name}", extra={"phase": profile.phase.value})
        self._publish()

        settled: List[TransactionRecord] = []
        async for emission in profile.emissions(self.pacer):
            self._show(emission)
            if emission.settled:
                settled.extend(emission.records)
            if emission.throughput is not None:
                self._aggregator.record_throughput(*emission.throughput)
            self._advance(low + (high - low) * min(max(emission.progress, 0.0), 1.0))
            self._publish()

        snapshot = self._aggregator.fold(settled)
        self._advance(high)
        self._publish()
        log.info(
            f"[PHASE COMPLETE] {profile.name}",
            extra={
                "phase": profile.phase.value,
                "batch_size": len(settled),
                "total_count": snapshot.total_count,
                "p99_latency_ms": snapshot.p99_latency_ms,
            },
        )

    async def _run(self, profiles: Sequence[StreamProfile]) -> DemoState:
        try:
            for profile in profiles:
                await self._run_profile(profile)
        except asyncio.CancelledError:
            log.info("[RUN CANCELLED]", extra={"phase": self._phase.value})
            raise
        except Exception:
            log.exception("[RUN FAILED]", extra={"phase": self._phase.value})
            raise
        finally:
            self._running = False

        self._phase = Phase.COMPLETE
        self._publish()
        log.info("[RUN COMPLETE]", extra=self._aggregator.snapshot.as_dict())
        return self.state


__all__ = ["DEMO_SEQUENCE", "DemoDriver", "DemoState", "PROGRESS_SLICES", "available_profiles"]
