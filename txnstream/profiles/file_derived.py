"""
File-derived profile: transactions parsed from an uploaded delimited table.

Input is a header row of comma-separated column names followed by
comma-separated data rows. Blank lines are ignored and quoting is not
supported: a comma inside a value always splits it. Every non-empty data row
yields a record; missing or malformed fields fall back to generated values
instead of aborting the parse.

Recognised columns:
    transaction_id, amount, currency, type, account_from, account_to,
    timestamp, status
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import AsyncIterator, Dict, List, Optional

from txnstream.domain.models import Phase, TransactionRecord, TransactionStatus, utc_now
from txnstream.profiles.abstract import CENTS, AbstractStreamProfile, Emission
from txnstream.utils.logging import get_logger
from txnstream.utils.pacing import Pacer

log = get_logger(__name__)

FALLBACK_AMOUNT_MIN = 100.0
FALLBACK_AMOUNT_SPAN = 5000.0
LATENCY_MIN_MS = 10
LATENCY_SPAN_MS = 50


@dataclass(frozen=True)
class ParsedTable:
    """Header and data rows of a delimited text table."""

    header: List[str]
    rows: List[Dict[str, str]]

    @property
    def line_count(self) -> int:
        """Non-blank lines including the header."""
        return len(self.rows) + (1 if self.header else 0)


def parse_table(contents: str) -> ParsedTable:
    """
    Split `contents` into a header and column-keyed rows.

    Rows shorter than the header simply lack the trailing columns; extra
    values beyond the header are dropped.
    """
    lines = [line for line in contents.splitlines() if line.strip()]
    if not lines:
        return ParsedTable(header=[], rows=[])

    header = [name.strip() for name in lines[0].split(",")]
    rows: List[Dict[str, str]] = []
    for line in lines[1:]:
        values = [value.strip() for value in line.split(",")]
        rows.append(dict(zip(header, values)))
    return ParsedTable(header=header, rows=rows)


def _parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    if not raw:
        return None
    try:
        amount = Decimal(raw)
        if not amount.is_finite():
            return None
        # quantize overflows the context precision for huge values
        amount = amount.quantize(CENTS)
    except InvalidOperation:
        return None
    if amount <= 0:
        return None
    return amount


def _parse_status(raw: Optional[str]) -> Optional[TransactionStatus]:
    if not raw:
        return None
    try:
        return TransactionStatus(raw.lower())
    except ValueError:
        return None


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RowMapper:
    """
    Map one table row onto a TransactionRecord with per-field fallbacks.

    - missing id          -> ``TXN-CSV-<line index>``
    - bad/missing amount  -> uniform in [100, 5100)
    - missing status      -> completed
    - unknown status      -> failed
    - bad/missing time    -> generation time
    Latency is always synthetic and only attached to terminal records.
    """

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def _fallback_amount(self) -> Decimal:
        value = FALLBACK_AMOUNT_MIN + self.rng.random() * FALLBACK_AMOUNT_SPAN
        # truncate to cents so the range stays half-open
        return (Decimal(math.floor(value * 100)) / 100).quantize(CENTS)

    def to_record(self, row: Dict[str, str], line_index: int) -> TransactionRecord:
        amount = _parse_amount(row.get("amount"))
        if amount is None:
            log.debug("Amount fallback", extra={"line": line_index, "raw": row.get("amount")})
            amount = self._fallback_amount()

        raw_status = row.get("status")
        status = _parse_status(raw_status)
        if status is None and raw_status:
            log.debug(
                "Unknown status counted as failed",
                extra={"line": line_index, "raw": raw_status},
            )
            status = TransactionStatus.FAILED
        elif status is None:
            status = TransactionStatus.COMPLETED

        created_at = _parse_timestamp(row.get("timestamp"))
        if created_at is None:
            created_at = utc_now()

        latency = (
            LATENCY_MIN_MS + self.rng.randrange(LATENCY_SPAN_MS) if status.is_terminal else None
        )

        return TransactionRecord(
            id=row.get("transaction_id") or f"TXN-CSV-{line_index}",
            amount=amount,
            status=status,
            created_at=created_at,
            latency_ms=latency,
            currency=row.get("currency") or None,
            transaction_type=row.get("type") or None,
            account_from=row.get("account_from") or None,
            account_to=row.get("account_to") or None,
        )


def parse_transactions(
    contents: str, rng: Optional[random.Random] = None
) -> List[TransactionRecord]:
    """Parse a whole table into records, one per non-empty data row."""
    mapper = RowMapper(rng or random.Random())
    table = parse_table(contents)
    return [mapper.to_record(row, index) for index, row in enumerate(table.rows, start=1)]


class FileDerivedProfile(AbstractStreamProfile):
    """
    Replay a parsed table as chunks of `chunk_rows` records.

    Pauses after every full chunk; a trailing partial chunk is emitted without
    a pause.
    """

    name: str = "csv"
    phase: Phase = Phase.CSV
    description: str = "Transactions parsed from an uploaded CSV file."

    def __init__(
        self,
        contents: str,
        chunk_rows: Optional[int] = None,
        pause_ms: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(rng)
        self.contents = contents
        self.chunk_rows = self._configured(chunk_rows, "csv_chunk_rows")
        self.pause_ms = self._configured(pause_ms, "csv_pause_ms")
        if self.chunk_rows <= 0:
            raise ValueError("chunk_rows must be positive")

    async def emissions(self, pacer: Pacer) -> AsyncIterator[Emission]:
        table = parse_table(self.contents)
        mapper = RowMapper(self.rng)
        log.info(
            "Parsed uploaded table",
            extra={"columns": table.header, "rows": len(table.rows)},
        )

        pending: List[TransactionRecord] = []
        for index, row in enumerate(table.rows, start=1):
            pending.append(mapper.to_record(row, index))
            if index % self.chunk_rows == 0:
                yield Emission(records=pending, progress=index / table.line_count)
                pending = []
                await pacer.sleep(self.pause_ms)

        if pending:
            yield Emission(records=pending, progress=len(table.rows) / table.line_count)


__all__ = ["FileDerivedProfile", "ParsedTable", "RowMapper", "parse_table", "parse_transactions"]
