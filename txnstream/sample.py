"""
Sample CSV generation for the file-derived profile.

Produces a table in the upload format with synthetic rows so users have a
starting file to edit and feed back through `ingest`.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

SAMPLE_COLUMNS = [
    "transaction_id",
    "amount",
    "currency",
    "type",
    "account_from",
    "account_to",
    "timestamp",
    "status",
]
TRANSACTION_TYPES = ["TRANSFER", "PAYMENT", "WITHDRAWAL", "DEPOSIT"]
SUCCESS_PROBABILITY = 0.95
DAY_MS = 86_400_000


def _sample_row(rng: random.Random, now: datetime, stamp: int, index: int) -> List[str]:
    status = "completed" if rng.random() < SUCCESS_PROBABILITY else "failed"
    amount = rng.random() * 9900 + 100
    timestamp = now - timedelta(milliseconds=rng.random() * DAY_MS)
    return [
        f"TXN{stamp}-{index}",
        f"{amount:.2f}",
        "USD",
        rng.choice(TRANSACTION_TYPES),
        f"ACC{rng.randrange(1000)}",
        f"ACC{rng.randrange(1000)}",
        timestamp.isoformat().replace("+00:00", "Z"),
        status,
    ]


def generate_sample_csv(
    rows: int = 100,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Build sample upload contents: a header plus `rows` synthetic transactions.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    lines = [",".join(SAMPLE_COLUMNS)]
    lines.extend(",".join(_sample_row(rng, now, stamp, i)) for i in range(1, rows + 1))
    return "\n".join(lines)


def write_sample_csv(path: Path, rows: int = 100, seed: Optional[int] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_sample_csv(rows, rng=random.Random(seed)), encoding="utf-8")
    return path


__all__ = ["SAMPLE_COLUMNS", "generate_sample_csv", "write_sample_csv"]
