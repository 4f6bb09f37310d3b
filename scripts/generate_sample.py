"""
Sample CSV generation script for the transaction stream demo.

Writes a table in the upload format (transaction_id, amount, currency, type,
account_from, account_to, timestamp, status) that can be fed straight back to
`txnstream ingest`.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path

import typer

from txnstream.sample import write_sample_csv

app = typer.Typer(help="Generate a sample transactions CSV for the file-derived profile.")


@app.command()
def main(
    rows: int = typer.Option(
        100,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    seed: int | None = typer.Option(
        None,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("sample_transactions.csv"),
        "--output",
        "-o",
        help="CSV output path.",
    ),
) -> None:
    """
    Generate synthetic transactions and write them as CSV.
    """
    start = time.perf_counter()
    typer.echo(f"Generating {rows:,} rows -> {output} (seed={seed})")
    write_sample_csv(output, rows=rows, seed=seed)
    typer.echo(f"Sample written in {time.perf_counter() - start:.3f}s")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
