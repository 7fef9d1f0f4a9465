from __future__ import annotations

from typing import Protocol, Sequence

from record_dedupe.models import DedupeResult, Key, Record


class KeyFunction(Protocol):
    """Extract the grouping key of a record. Must be pure."""

    def __call__(self, record: Record) -> Key:
        ...


class PriorityComparator(Protocol):
    """Rank two records with the same key.

    Negative (or ``Preference.FIRST``) prefers the first record, positive
    prefers the second, zero is a tie.
    """

    def __call__(self, first: Record, second: Record) -> int:
        ...


class RecordCleaner(Protocol):
    """Optional step before deduplication: normalize fields into new records."""

    def clean(self, records: Sequence[Record]) -> list[Record]:
        ...


class DedupeRunner(Protocol):
    """Unified runner interface for single-pass or sharded execution."""

    def run(self, records: Sequence[Record]) -> DedupeResult:
        ...
