from __future__ import annotations

import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from record_dedupe.errors import ConfigurationError, FieldComparisonError
from record_dedupe.models import Preference, Record
from record_dedupe.schema import Direction

_INT_LITERAL = re.compile(r"-?(0|[1-9]\d*)")
_FLOAT_LITERAL = re.compile(r"-?\d+\.\d*([eE][-+]?\d+)?")


class PriorityClause(Protocol):
    """One step of a priority rule. Negative result prefers ``first``."""

    @property
    def fields(self) -> tuple[str, ...]:
        ...

    def compare(self, first: Record, second: Record) -> int:
        ...

    def describe(self) -> str:
        ...


@dataclass(frozen=True)
class PreferValue:
    """Prefer records whose field equals ``value`` (e.g. status == "active")."""

    field: str
    value: Any

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.field,)

    def compare(self, first: Record, second: Record) -> int:
        return _rank(first[self.field] != self.value) - _rank(second[self.field] != self.value)

    def describe(self) -> str:
        return f"{self.field} == {self.value!r}"


@dataclass(frozen=True)
class PreferRanked:
    """Prefer values appearing earlier in ``ranking``; unlisted values rank last."""

    field: str
    ranking: tuple[Any, ...]

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.field,)

    def compare(self, first: Record, second: Record) -> int:
        return self._position(first[self.field]) - self._position(second[self.field])

    def _position(self, value: Any) -> int:
        for idx, candidate in enumerate(self.ranking):
            if candidate == value:
                return idx
        return len(self.ranking)

    def describe(self) -> str:
        return f"{self.field} in {list(self.ranking)!r}"


@dataclass(frozen=True)
class PreferOrder:
    """Prefer the largest (``DESC``) or smallest (``ASC``) value of a field.

    Missing values (None, NaN) rank after every present value in both directions.
    """

    field: str
    direction: Direction = Direction.DESC

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.field,)

    def compare(self, first: Record, second: Record) -> int:
        left = first[self.field]
        right = second[self.field]
        left_null = _is_null(left)
        right_null = _is_null(right)
        if left_null or right_null:
            return _rank(left_null) - _rank(right_null)

        try:
            if left == right:
                return 0
            left_better = left > right if self.direction == Direction.DESC else left < right
        except TypeError as exc:
            raise FieldComparisonError(self.field, str(exc)) from exc
        return -1 if left_better else 1

    def describe(self) -> str:
        return f"{self.field} {self.direction.value}"


@dataclass(frozen=True)
class PreferWhen:
    """Prefer records satisfying ``predicate``.

    ``fields`` lists what the predicate reads so missing fields can be
    reported before any comparison happens.
    """

    predicate: Callable[[Record], bool]
    field_names: tuple[str, ...] = ()
    label: str = "predicate"

    @property
    def fields(self) -> tuple[str, ...]:
        return self.field_names

    def compare(self, first: Record, second: Record) -> int:
        return _rank(not self.predicate(first)) - _rank(not self.predicate(second))

    def describe(self) -> str:
        return self.label


class PriorityRule:
    """Ordered clauses; the first clause that distinguishes two records decides."""

    def __init__(self, *clauses: PriorityClause) -> None:
        if not clauses:
            raise ConfigurationError("a priority rule needs at least one clause")
        self.clauses = clauses

    def __call__(self, first: Record, second: Record) -> Preference:
        for clause in self.clauses:
            result = clause.compare(first, second)
            if result:
                return Preference.from_result(result)
        return Preference.EQUAL

    @property
    def required_fields(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for clause in self.clauses:
            for field in clause.fields:
                seen.setdefault(field, None)
        return tuple(seen)

    def describe(self) -> str:
        return ", then ".join(clause.describe() for clause in self.clauses)

    def __repr__(self) -> str:
        return f"PriorityRule({self.describe()})"


def prefer(
    predicate: Callable[[Record], bool],
    fields: Sequence[str] = (),
    label: str = "predicate",
) -> PriorityRule:
    return PriorityRule(PreferWhen(predicate=predicate, field_names=tuple(fields), label=label))


def parse_clause(text: str) -> PriorityClause:
    """Parse ``field=value`` or ``field:asc|desc`` as used on the command line."""
    if "=" in text:
        field, _, raw_value = text.partition("=")
        field = field.strip()
        if not field:
            raise ConfigurationError(f"rule clause {text!r} has no field name")
        return PreferValue(field=field, value=_coerce_literal(raw_value.strip()))

    if ":" in text:
        field, _, raw_direction = text.rpartition(":")
        field = field.strip()
        try:
            direction = Direction(raw_direction.strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"rule clause {text!r}: direction must be 'asc' or 'desc'") from exc
        if not field:
            raise ConfigurationError(f"rule clause {text!r} has no field name")
        return PreferOrder(field=field, direction=direction)

    raise ConfigurationError(f"rule clause {text!r} must look like 'field=value' or 'field:desc'")


def parse_rule(clauses: Sequence[str]) -> PriorityRule | None:
    if not clauses:
        return None
    return PriorityRule(*(parse_clause(text) for text in clauses))


def _coerce_literal(raw: str) -> Any:
    # Numbers typed on the command line should match numeric table columns.
    if _INT_LITERAL.fullmatch(raw):
        return int(raw)
    if _FLOAT_LITERAL.fullmatch(raw):
        return float(raw)
    return raw


def _rank(flag: bool) -> int:
    return 1 if flag else 0


def _is_null(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)
