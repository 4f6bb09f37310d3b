"""
Profiles package for the transaction stream demo.

This module re-exports the abstract interfaces and the concrete load profiles
so downstream code can import from `txnstream.profiles` directly.
"""

from txnstream.profiles.abstract import AbstractStreamProfile, Emission, StreamProfile
from txnstream.profiles.concurrent import ConcurrentProfile
from txnstream.profiles.file_derived import (
    FileDerivedProfile,
    parse_table,
    parse_transactions,
)
from txnstream.profiles.high_load import HighLoadProfile
from txnstream.profiles.single import SingleProfile

__all__ = [
    # Abstracts
    "AbstractStreamProfile",
    "Emission",
    "StreamProfile",
    # Concrete profiles
    "ConcurrentProfile",
    "FileDerivedProfile",
    "HighLoadProfile",
    "SingleProfile",
    # File parsing
    "parse_table",
    "parse_transactions",
]
