from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from txnstream.domain.models import Phase, TransactionStatus
from txnstream.driver import DemoState
from txnstream.utils.profiler import ProfileStats

RECENT_ROWS = 20

# Latency badge thresholds (ms) above which a percentile is flagged
LATENCY_TARGETS = {"P50": 50, "P95": 100, "P99": 200}

STATUS_STYLES = {
    TransactionStatus.COMPLETED: "green",
    TransactionStatus.PROCESSING: "yellow",
    TransactionStatus.FAILED: "red",
    TransactionStatus.PENDING: "dim",
}

PHASE_MESSAGES = {
    Phase.SINGLE: "Processing single transaction...",
    Phase.CONCURRENT: "Running concurrent transactions (100 TPS)...",
    Phase.HIGHLOAD: "High load test (1000 TPS target)...",
    Phase.CSV: "Processing CSV file transactions...",
    Phase.COMPLETE: "Demo completed successfully!",
}


def phase_message(phase: Phase) -> str:
    """Human-readable status line for a phase."""
    return PHASE_MESSAGES.get(phase, "Ready to start demo")


def completion_summary(state: DemoState) -> Optional[str]:
    """One-line wrap-up once the run is complete, else None."""
    if state.phase is not Phase.COMPLETE:
        return None
    snap = state.snapshot
    return (
        f"The system processed {snap.total_count:,} transactions with "
        f"{snap.success_rate:.1f}% success rate. Peak TPS: {snap.peak_tps:,.0f}, "
        f"P99 Latency: {snap.p99_latency_ms}ms"
    )


def _metrics_table(state: DemoState, profile: Optional[ProfileStats]) -> Table:
    snap = state.snapshot
    table = Table(
        title=f"Transaction Processing Demo\n[dim]{phase_message(state.phase)}[/dim]",
        box=box.ROUNDED,
        caption=profile.summary() if profile else None,
    )
    table.add_column("Total Processed", justify="right", style="magenta")
    table.add_column("Success Rate", justify="right", style="green")
    table.add_column("Current TPS", justify="right", style="bold green")
    table.add_column("Peak TPS", justify="right", style="yellow")
    table.add_column("Avg Latency", justify="right", style="cyan")
    table.add_row(
        f"{snap.total_count:,}",
        f"{snap.success_rate:.1f}%",
        f"{snap.current_tps:,.0f}",
        f"{snap.peak_tps:,.0f}",
        f"{snap.avg_latency_ms}ms",
    )
    return table


def _latency_table(state: DemoState) -> Table:
    snap = state.snapshot
    table = Table(title="Latency Distribution", box=box.ROUNDED)
    table.add_column("Percentile", style="cyan", no_wrap=True)
    table.add_column("Latency", justify="right")
    for label, value in (
        ("P50", snap.p50_latency_ms),
        ("P95", snap.p95_latency_ms),
        ("P99", snap.p99_latency_ms),
    ):
        style = "green" if value < LATENCY_TARGETS[label] else "red"
        table.add_row(label, f"[{style}]{value}ms[/{style}]")
    return table


def _recent_table(state: DemoState) -> Table:
    table = Table(title="Recent Transactions", box=box.SIMPLE)
    table.add_column("Transaction", style="cyan", no_wrap=True)
    table.add_column("Amount", justify="right", style="magenta")
    table.add_column("Status")
    table.add_column("Latency", justify="right")
    for record in state.records[:RECENT_ROWS]:
        style = STATUS_STYLES[record.status]
        latency = f"{record.latency_ms}ms" if record.latency_ms is not None else "-"
        table.add_row(
            record.id,
            f"${record.amount:,.2f}",
            f"[{style}]{record.status.value}[/{style}]",
            latency,
        )
    return table


def print_report(
    state: DemoState,
    profile: Optional[ProfileStats] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Render the demo state as rich tables: headline metrics, latency
    percentiles, the newest transactions and a completion summary.
    """
    console = console or Console()

    console.print(_metrics_table(state, profile))
    console.print(_latency_table(state))

    if state.records:
        console.print(_recent_table(state))
    else:
        console.print("[yellow]No transactions yet. Use 'run' or 'ingest' to begin.[/yellow]")

    summary = completion_summary(state)
    if summary:
        console.print(f"[bold green]Demo Completed Successfully![/bold green] {summary}")
