from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

Record = Mapping[str, Any]
Key = Hashable


class Preference(IntEnum):
    """Comparator outcome for a pair of records sharing a key."""

    FIRST = -1
    EQUAL = 0
    SECOND = 1

    @classmethod
    def from_result(cls, result: int) -> "Preference":
        if result < 0:
            return cls.FIRST
        if result > 0:
            return cls.SECOND
        return cls.EQUAL


@dataclass(slots=True)
class GroupOutcome:
    """Members of one key group and the position of the record that survived."""

    key: Key
    positions: list[int]
    winner_position: int

    @property
    def size(self) -> int:
        return len(self.positions)


@dataclass(slots=True)
class DedupeResult:
    """Winners in first-appearance order, plus per-key bookkeeping."""

    records: list[Record]
    groups: list[GroupOutcome] = field(default_factory=list)
    input_count: int = 0

    @property
    def duplicate_count(self) -> int:
        return self.input_count - len(self.records)

    @property
    def duplicate_keys(self) -> list[Key]:
        return [group.key for group in self.groups if group.size > 1]

    @property
    def winner_positions(self) -> list[int]:
        return [group.winner_position for group in self.groups]
