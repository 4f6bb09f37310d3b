"""
Abstract profile interfaces and emission contracts for the transaction stream demo.

Concrete profiles (single, concurrent, high-load, file-derived) implement the
StreamProfile protocol: an async generator of Emission objects. The driver
consumes emissions one at a time, publishing each to the display layer before
the profile resumes and pauses for its next sub-batch.
"""

from __future__ import annotations

import abc
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, AsyncIterator, Optional, Protocol, Sequence, runtime_checkable

from txnstream.config import get_settings
from txnstream.domain.models import Phase, TransactionRecord
from txnstream.utils.pacing import Pacer

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Emission:
    """
    One step of a profile.

    Attributes
    ----------
    records : Sequence[TransactionRecord]
        Records to show, oldest first; the driver prepends them to the window.
    progress : float
        Fraction of the phase's work done, in [0, 1].
    settled : bool
        Whether `records` count towards the phase's folded batch.
    replace_head : bool
        Replace the newest displayed record instead of prepending (lifecycle
        updates of the same transaction).
    throughput : Optional[tuple[int, int]]
        Throughput sample of a paced profile as `(sub_batch_size, interval_ms)`,
        recorded by the aggregator as current/peak TPS.
    """

    records: Sequence[TransactionRecord]
    progress: float
    settled: bool = True
    replace_head: bool = False
    throughput: Optional[tuple[int, int]] = None


@runtime_checkable
class StreamProfile(Protocol):
    """
    Common interface all load profiles must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    phase : Phase
        Phase tag published while the profile runs.
    description : str
        A human-friendly summary of the load shape.
    """

    name: str
    phase: Phase
    description: str

    def emissions(self, pacer: Pacer) -> AsyncIterator[Emission]:
        """
        Produce the profile's emissions, suspending through `pacer`.
        """
        ...


class AbstractStreamProfile(abc.ABC):
    """
    ABC helper for class-based profiles.

    Subclasses set `name`, `phase` and `description` and implement `emissions`.
    """

    name: str
    phase: Phase
    description: str

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    @abc.abstractmethod
    def emissions(self, pacer: Pacer) -> AsyncIterator[Emission]:  # pragma: no cover - interface only
        """Yield emissions for this profile."""
        raise NotImplementedError

    def _uniform_int(self, low: int, span: int) -> int:
        """Integer in [low, low + span)."""
        return low + self.rng.randrange(span)

    @staticmethod
    def _configured(value: Any, field_name: str) -> Any:
        """Return `value`, or the `Settings` field `field_name` when it is None."""
        if value is not None:
            return value
        return getattr(get_settings(), field_name)


__all__ = [
    "AbstractStreamProfile",
    "CENTS",
    "Emission",
    "StreamProfile",
]
