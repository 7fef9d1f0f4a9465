from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from record_dedupe.errors import ConfigurationError
from record_dedupe.interfaces import KeyFunction, PriorityComparator, RecordCleaner
from record_dedupe.models import DedupeResult, GroupOutcome, Key, Preference, Record
from record_dedupe.steps.grouping import extract_key, group_records
from record_dedupe.steps.selection import (
    compare_records,
    required_fields_of,
    select_winner,
    validate_required_fields,
)

logger = logging.getLogger(__name__)


class ShardStrategy(StrEnum):
    CONTIGUOUS = "contiguous"
    ROUND_ROBIN = "round_robin"


@dataclass(slots=True)
class PartialGroup:
    """Per-key state for one shard, expressed in original input indices."""

    key: Key
    first_index: int
    best_index: int
    best: Record
    positions: list[int]


@dataclass(slots=True)
class Shard:
    positions: list[int]
    records: list[Record]


class ShardedDedupeRunner:
    """Reduce each shard to partial per-key state, then merge the partials.

    Shards are processed one after another here. The merge only relies on
    original input indices, so the result matches the single-pass runner for
    any consistent comparator regardless of how records were split.
    """

    def __init__(
        self,
        key_fn: KeyFunction,
        priority_fn: PriorityComparator | None = None,
        shard_size: int = 10_000,
        strategy: ShardStrategy = ShardStrategy.CONTIGUOUS,
        cleaner: RecordCleaner | None = None,
    ) -> None:
        if shard_size <= 0:
            raise ConfigurationError(f"shard_size must be positive, got {shard_size}")
        self._key_fn = key_fn
        self._priority_fn = priority_fn
        self._shard_size = shard_size
        self._strategy = ShardStrategy(strategy)
        self._cleaner = cleaner

    def run(self, records: Sequence[Record]) -> DedupeResult:
        if self._cleaner is not None:
            records = self._cleaner.clean(records)
        # Keys, then priority fields, checked in input order before any shard runs.
        for position, record in enumerate(records):
            extract_key(self._key_fn, record, position)
        validate_required_fields(records, range(len(records)), required_fields_of(self._priority_fn))

        shards = self.split(records)
        partials = [reduce_shard(shard, self._key_fn, self._priority_fn) for shard in shards]
        merged = merge_partials(partials, self._priority_fn)

        result = DedupeResult(
            records=[group.best for group in merged],
            groups=[
                GroupOutcome(key=group.key, positions=group.positions, winner_position=group.best_index)
                for group in merged
            ],
            input_count=len(records),
        )
        logger.info(
            "sharded_dedupe_done",
            extra={
                "shards": len(shards),
                "strategy": self._strategy.value,
                "input_count": result.input_count,
                "output_count": len(result.records),
            },
        )
        return result

    def split(self, records: Sequence[Record]) -> list[Shard]:
        if not records:
            return []

        if self._strategy == ShardStrategy.CONTIGUOUS:
            return [
                Shard(
                    positions=list(range(start, min(start + self._shard_size, len(records)))),
                    records=list(records[start : start + self._shard_size]),
                )
                for start in range(0, len(records), self._shard_size)
            ]

        shard_count = math.ceil(len(records) / self._shard_size)
        shards = [Shard(positions=[], records=[]) for _ in range(shard_count)]
        for position, record in enumerate(records):
            shard = shards[position % shard_count]
            shard.positions.append(position)
            shard.records.append(record)
        return shards


def reduce_shard(
    shard: Shard,
    key_fn: KeyFunction,
    priority_fn: PriorityComparator | None = None,
) -> dict[Key, PartialGroup]:
    partial: dict[Key, PartialGroup] = {}
    for group in group_records(shard.records, key_fn, positions=shard.positions):
        best_index, best = select_winner(group, priority_fn)
        partial[group.key] = PartialGroup(
            key=group.key,
            first_index=group.positions[0],
            best_index=best_index,
            best=best,
            positions=list(group.positions),
        )
    return partial


def merge_partials(
    partials: Iterable[dict[Key, PartialGroup]],
    priority_fn: PriorityComparator | None = None,
) -> list[PartialGroup]:
    """Merge shard partials; output is ordered by each key's first original index."""
    merged: dict[Key, PartialGroup] = {}
    for partial in partials:
        for key, incoming in partial.items():
            current = merged.get(key)
            if current is None:
                merged[key] = PartialGroup(
                    key=incoming.key,
                    first_index=incoming.first_index,
                    best_index=incoming.best_index,
                    best=incoming.best,
                    positions=list(incoming.positions),
                )
                continue

            current.first_index = min(current.first_index, incoming.first_index)
            current.positions.extend(incoming.positions)
            if _incoming_wins(current, incoming, priority_fn):
                current.best_index = incoming.best_index
                current.best = incoming.best

    for group in merged.values():
        group.positions.sort()
    return sorted(merged.values(), key=lambda group: group.first_index)


def _incoming_wins(current: PartialGroup, incoming: PartialGroup, priority_fn: PriorityComparator | None) -> bool:
    if priority_fn is not None:
        outcome = compare_records(
            priority_fn,
            incoming.best,
            incoming.best_index,
            current.best,
            current.best_index,
        )
        if outcome != Preference.EQUAL:
            return outcome == Preference.FIRST
    return incoming.best_index < current.best_index
