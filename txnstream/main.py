from __future__ import annotations

import asyncio
import json
import random
import sys
from pathlib import Path
from typing import Callable, Optional, Tuple

import typer

from txnstream.config import Settings, get_settings
from txnstream.driver import DemoDriver, DemoState
from txnstream.reporter import phase_message, print_report
from txnstream.utils.logging import configure_logging, get_logger
from txnstream.utils.profiler import ProfileStats, profile_block

app = typer.Typer(help="Transaction stream demo CLI.")
log = get_logger(__name__)


def _log_phase_changes() -> Callable[[DemoState], None]:
    last = {"phase": None}

    def _listener(state: DemoState) -> None:
        if state.phase != last["phase"]:
            last["phase"] = state.phase
            log.info(phase_message(state.phase), extra={"progress": round(state.progress, 1)})

    return _listener


async def _drive(driver: DemoDriver, contents: Optional[str]) -> DemoState:
    async with driver:
        driver.subscribe(_log_phase_changes())
        if contents is None:
            driver.start()
        else:
            driver.ingest(contents)
        return await driver.wait()


def _execute(
    settings: Settings, seed: Optional[int], contents: Optional[str]
) -> Tuple[DemoState, ProfileStats]:
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    rng = random.Random(seed if seed is not None else settings.seed)
    driver = DemoDriver(settings=settings, rng=rng)
    with profile_block("demo") as stats:
        state = asyncio.run(_drive(driver, contents))
    return state, stats


def _emit(state: DemoState, stats: ProfileStats, as_json: bool) -> None:
    if as_json:
        payload = {
            "phase": state.phase.value,
            "snapshot": state.snapshot.as_dict(),
            "duration_seconds": round(stats.duration_seconds, 2),
        }
        typer.echo(json.dumps(payload, indent=2))
        return
    print_report(state, profile=stats)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"env={settings.app_env} window={settings.display_window} | "
        f"concurrent={settings.concurrent_count}x{settings.concurrent_batch_size} | "
        f"highload={settings.target_tps}tps for {settings.highload_duration_ms}ms "
        f"every {settings.highload_interval_ms}ms (p_fail={settings.failure_probability}) | "
        f"csv chunk={settings.csv_chunk_rows}"
    )


@app.command()
def run(
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Deterministic RNG seed (default from settings).",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the final snapshot as JSON instead of tables.",
    ),
) -> None:
    """
    Run the single -> concurrent -> high-load sequence and report metrics.
    """
    state, stats = _execute(get_settings(), seed, contents=None)
    _emit(state, stats, as_json)


@app.command()
def ingest(
    path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="CSV file with transaction_id, amount, ..., status columns.",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Deterministic RNG seed."),
    as_json: bool = typer.Option(False, "--json", help="Print the final snapshot as JSON."),
) -> None:
    """
    Replay a CSV file through the file-derived profile and report metrics.
    """
    contents = path.read_text(encoding="utf-8")
    state, stats = _execute(get_settings(), seed, contents=contents)
    _emit(state, stats, as_json)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
