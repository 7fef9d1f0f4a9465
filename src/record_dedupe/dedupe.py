from __future__ import annotations

import logging
from collections.abc import Sequence

from record_dedupe.interfaces import KeyFunction, PriorityComparator
from record_dedupe.models import DedupeResult, GroupOutcome, Record
from record_dedupe.steps.grouping import group_records
from record_dedupe.steps.selection import (
    required_fields_of,
    select_winner,
    validate_required_fields,
)

logger = logging.getLogger(__name__)


class Deduplicator:
    """Collapse records to one winner per key.

    Without a comparator the first record seen for each key wins. With one,
    a record replaces the current best only when the comparator strictly
    prefers it, so ties always keep the earliest record. Any error aborts the
    whole run; there is never a partial result.
    """

    def __init__(
        self,
        key_fn: KeyFunction,
        priority_fn: PriorityComparator | None = None,
    ) -> None:
        self._key_fn = key_fn
        self._priority_fn = priority_fn

    @property
    def key_fn(self) -> KeyFunction:
        return self._key_fn

    @property
    def priority_fn(self) -> PriorityComparator | None:
        return self._priority_fn

    def run(self, records: Sequence[Record]) -> DedupeResult:
        groups = group_records(records, self._key_fn)
        validate_required_fields(records, range(len(records)), required_fields_of(self._priority_fn))

        winners: list[Record] = []
        outcomes: list[GroupOutcome] = []
        for group in groups:
            position, winner = select_winner(group, self._priority_fn)
            winners.append(winner)
            outcomes.append(GroupOutcome(key=group.key, positions=group.positions, winner_position=position))

        result = DedupeResult(records=winners, groups=outcomes, input_count=len(records))
        logger.debug(
            "deduplicated",
            extra={
                "input_count": result.input_count,
                "output_count": len(result.records),
                "duplicate_keys": len(result.duplicate_keys),
            },
        )
        return result


def deduplicate(
    records: Sequence[Record],
    key_fn: KeyFunction,
    priority_fn: PriorityComparator | None = None,
) -> list[Record]:
    """Return one record per distinct key, in first-appearance order of keys."""
    return Deduplicator(key_fn, priority_fn).run(records).records
