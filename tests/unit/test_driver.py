from __future__ import annotations

import asyncio
import random
from typing import List

import pytest

from txnstream.domain.models import MetricsSnapshot, Phase, TransactionStatus
from txnstream.driver import PROGRESS_SLICES, DemoDriver, DemoState, available_profiles

HEADER = "transaction_id,amount,currency,type,account_from,account_to,timestamp,status"


@pytest.fixture
def fast_settings(make_settings):
    """Smaller high-load burst so the whole sequence stays cheap."""
    return make_settings(
        highload_duration_ms=1000,
        highload_interval_ms=100,
        target_tps=200,
        failure_probability=0.02,
    )


def _recorder(driver: DemoDriver) -> List[DemoState]:
    states: List[DemoState] = []
    driver.subscribe(states.append)
    return states


def test_available_profiles_lists_builtins() -> None:
    assert available_profiles() == ["concurrent", "csv", "highload", "single"]


def test_new_driver_is_idle_at_baseline(make_settings) -> None:
    driver = DemoDriver(settings=make_settings())
    state = driver.state

    assert state.phase is Phase.IDLE
    assert state.progress == 0.0
    assert not state.running
    assert state.snapshot == MetricsSnapshot.baseline()
    assert state.records == ()


@pytest.mark.asyncio
async def test_full_sequence_reaches_complete(fast_settings, pacer) -> None:
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(5))
    states = _recorder(driver)

    driver.start()
    final = await driver.wait()

    assert final.phase is Phase.COMPLETE
    assert final.progress == 100.0
    assert not final.running
    # 1 single + 100 concurrent + 10 sub-batches of 20
    assert final.snapshot.total_count == 1 + 100 + 200
    assert final.snapshot.current_tps == pytest.approx(200.0)

    phases = []
    for state in states:
        if not phases or phases[-1] is not state.phase:
            phases.append(state.phase)
    assert phases == [Phase.SINGLE, Phase.CONCURRENT, Phase.HIGHLOAD, Phase.COMPLETE]


@pytest.mark.asyncio
async def test_default_high_load_reports_target_tps(make_settings, pacer) -> None:
    driver = DemoDriver(settings=make_settings(), pacer=pacer, rng=random.Random(1))
    states = _recorder(driver)

    driver.start()
    final = await driver.wait()

    assert final.snapshot.total_count == 1 + 100 + 3000
    assert final.snapshot.current_tps == pytest.approx(1000.0)
    assert final.snapshot.peak_tps == pytest.approx(1000.0)
    for state in states:
        assert state.snapshot.peak_tps >= state.snapshot.current_tps

    # newest sub-batch first, in its own order
    assert len(final.records) == 50
    assert final.records[0].id.endswith("-2900")
    assert final.records[49].id.endswith("-2949")


@pytest.mark.asyncio
async def test_progress_is_monotonic_and_inside_phase_slice(fast_settings, pacer) -> None:
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(2))
    states = _recorder(driver)

    driver.start()
    await driver.wait()

    progress = [s.progress for s in states]
    assert progress == sorted(progress)
    for state in states:
        if state.phase in PROGRESS_SLICES and state.running:
            low, high = PROGRESS_SLICES[state.phase]
            assert low <= state.progress <= high


@pytest.mark.asyncio
async def test_display_window_is_bounded(fast_settings, pacer) -> None:
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(3))
    states = _recorder(driver)

    driver.start()
    await driver.wait()

    assert max(len(s.records) for s in states) == fast_settings.display_window


@pytest.mark.asyncio
async def test_single_phase_shows_one_record_updated_in_place(make_settings, pacer) -> None:
    settings = make_settings(concurrent_count=0, highload_duration_ms=100, target_tps=10)
    driver = DemoDriver(settings=settings, pacer=pacer, rng=random.Random(4))
    states = _recorder(driver)

    driver.start()
    await driver.wait()

    single_states = [s for s in states if s.phase is Phase.SINGLE and s.records]
    assert {len(s.records) for s in single_states} == {1}
    assert [s.records[0].status for s in single_states][:3] == [
        TransactionStatus.PENDING,
        TransactionStatus.PROCESSING,
        TransactionStatus.COMPLETED,
    ]


@pytest.mark.asyncio
async def test_start_is_noop_while_running(fast_settings, gated_pacer) -> None:
    pacer = gated_pacer
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(6))

    task = driver.start()
    await asyncio.sleep(0)

    assert task is not None
    assert driver.running
    assert driver.start() is None
    assert driver.ingest(HEADER) is None

    await driver.close()


@pytest.mark.asyncio
async def test_reset_is_noop_while_running(fast_settings, gated_pacer) -> None:
    pacer = gated_pacer
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(7))

    driver.start()
    await asyncio.sleep(0)
    before = driver.state

    assert driver.reset() is False
    assert driver.state.phase is before.phase
    assert driver.state.progress == before.progress

    await driver.close()


@pytest.mark.asyncio
async def test_reset_returns_exact_baseline_after_run(fast_settings, pacer) -> None:
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(8))
    driver.start()
    await driver.wait()

    assert driver.reset() is True

    state = driver.state
    assert state.phase is Phase.IDLE
    assert state.progress == 0.0
    assert state.records == ()
    assert state.snapshot.as_dict() == MetricsSnapshot.baseline().as_dict()


@pytest.mark.asyncio
async def test_start_keeps_previous_metrics(fast_settings, pacer) -> None:
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(9))
    driver.start()
    first = await driver.wait()

    driver.start()
    second = await driver.wait()

    assert second.snapshot.total_count == 2 * first.snapshot.total_count


@pytest.mark.asyncio
async def test_ingest_none_is_noop(make_settings, pacer) -> None:
    driver = DemoDriver(settings=make_settings(), pacer=pacer)
    states = _recorder(driver)

    assert driver.ingest(None) is None
    assert states == []
    assert driver.state.phase is Phase.IDLE


@pytest.mark.asyncio
async def test_ingest_header_only_leaves_baseline(make_settings, pacer) -> None:
    driver = DemoDriver(settings=make_settings(), pacer=pacer)

    driver.ingest(HEADER)
    final = await driver.wait()

    assert final.phase is Phase.COMPLETE
    assert final.progress == 100.0
    assert final.snapshot == MetricsSnapshot.baseline()
    assert final.records == ()


@pytest.mark.asyncio
async def test_ingest_folds_mixed_statuses(make_settings, pacer) -> None:
    driver = DemoDriver(settings=make_settings(), pacer=pacer, rng=random.Random(10))
    contents = "\n".join(
        [
            HEADER,
            "TXN-1,100.00,USD,TRANSFER,ACC1,ACC2,2024-01-01T00:00:00Z,completed",
            "TXN-2,200.00,USD,TRANSFER,ACC3,ACC4,2024-01-01T00:00:01Z,failed",
        ]
    )

    driver.ingest(contents)
    final = await driver.wait()

    snap = final.snapshot
    assert snap.total_count == 2
    assert snap.success_rate == pytest.approx(50.0)

    completed = next(r for r in final.records if r.status is TransactionStatus.COMPLETED)
    assert snap.p50_latency_ms == completed.latency_ms
    assert snap.p95_latency_ms == completed.latency_ms
    assert snap.p99_latency_ms == completed.latency_ms
    assert snap.avg_latency_ms == completed.latency_ms
    assert [r.id for r in final.records] == ["TXN-1", "TXN-2"]


@pytest.mark.asyncio
async def test_csv_progress_ends_at_100(make_settings, pacer) -> None:
    driver = DemoDriver(settings=make_settings(csv_chunk_rows=10), pacer=pacer)
    states = _recorder(driver)
    rows = [f"T{i},10,USD,,,,,completed" for i in range(30)]

    driver.ingest("\n".join([HEADER, *rows]))
    await driver.wait()

    progress = [s.progress for s in states]
    assert progress == sorted(progress)
    assert progress[-1] == 100.0
    assert all(s.phase in (Phase.CSV, Phase.COMPLETE) for s in states)


@pytest.mark.asyncio
async def test_close_cancels_pending_pause(fast_settings, gated_pacer) -> None:
    pacer = gated_pacer
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(11))

    task = driver.start()
    await asyncio.sleep(0)
    assert pacer.waiting == 1

    await driver.close()

    assert task.cancelled()
    assert pacer.waiting == 0
    assert not driver.running


@pytest.mark.asyncio
async def test_close_publishes_stopped_state(fast_settings, gated_pacer) -> None:
    driver = DemoDriver(settings=fast_settings, pacer=gated_pacer, rng=random.Random(13))
    states = _recorder(driver)

    driver.start()
    await asyncio.sleep(0)
    assert states[-1].running

    await driver.close()

    assert states[-1].running is False
    assert states[-1].phase is Phase.SINGLE


@pytest.mark.asyncio
async def test_close_without_active_run_publishes_nothing(make_settings, pacer) -> None:
    driver = DemoDriver(settings=make_settings(), pacer=pacer)
    states = _recorder(driver)

    await driver.close()

    assert states == []


@pytest.mark.asyncio
async def test_injected_settings_ignore_invalid_environment(
    monkeypatch, make_settings, pacer
) -> None:
    driver = DemoDriver(settings=make_settings(), pacer=pacer, rng=random.Random(14))
    monkeypatch.setenv("DEMO_CSV_CHUNK_ROWS", "0")
    monkeypatch.setenv("DEMO_TARGET_TPS", "-5")

    driver.ingest(HEADER + "\nTXN-1,10.00,USD,,,,,completed")
    ingested = await driver.wait()
    driver.start()
    final = await driver.wait()

    assert ingested.snapshot.total_count == 1
    assert final.phase is Phase.COMPLETE
    assert final.snapshot.current_tps == pytest.approx(1000.0)


@pytest.mark.asyncio
async def test_context_manager_closes_driver(fast_settings, gated_pacer) -> None:
    pacer = gated_pacer
    async with DemoDriver(settings=fast_settings, pacer=pacer) as driver:
        task = driver.start()
        await asyncio.sleep(0)

    assert task.cancelled()


@pytest.mark.asyncio
async def test_failing_listener_does_not_stop_run(fast_settings, pacer) -> None:
    driver = DemoDriver(settings=fast_settings, pacer=pacer, rng=random.Random(12))

    def broken(state: DemoState) -> None:
        raise RuntimeError("render failed")

    driver.subscribe(broken)
    driver.start()
    final = await driver.wait()

    assert final.phase is Phase.COMPLETE


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications(fast_settings, pacer) -> None:
    driver = DemoDriver(settings=fast_settings, pacer=pacer)
    states: List[DemoState] = []
    unsubscribe = driver.subscribe(states.append)
    unsubscribe()

    driver.start()
    await driver.wait()

    assert states == []


def test_start_outside_event_loop_raises(make_settings) -> None:
    driver = DemoDriver(settings=make_settings())
    with pytest.raises(RuntimeError):
        driver.start()
