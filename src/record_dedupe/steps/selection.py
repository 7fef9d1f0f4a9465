from __future__ import annotations

from collections.abc import Iterable, Sequence

from record_dedupe.errors import FieldComparisonError, InvalidPriorityRuleError, MalformedRecordError
from record_dedupe.interfaces import PriorityComparator
from record_dedupe.models import Preference, Record
from record_dedupe.steps.grouping import KeyGroup


def compare_records(
    priority_fn: PriorityComparator,
    first: Record,
    first_position: int,
    second: Record,
    second_position: int,
) -> Preference:
    """Compare two records in both directions and reject contradictory answers."""
    forward = _call(priority_fn, first, first_position, second, second_position)
    backward = _call(priority_fn, second, second_position, first, first_position)
    if forward != -backward:
        raise InvalidPriorityRuleError(first_position, second_position, int(forward), int(backward))
    return forward


def select_winner(group: KeyGroup, priority_fn: PriorityComparator | None = None) -> tuple[int, Record]:
    """Fold over a group keeping the best record; ties keep the earlier one."""
    best_position = group.positions[0]
    best = group.records[0]
    if priority_fn is None:
        return best_position, best

    for position, candidate in zip(group.positions[1:], group.records[1:]):
        outcome = compare_records(priority_fn, candidate, position, best, best_position)
        if outcome == Preference.FIRST:
            best_position, best = position, candidate
    return best_position, best


def validate_required_fields(
    records: Sequence[Record],
    positions: Iterable[int],
    fields: Sequence[str],
) -> None:
    if not fields:
        return
    for position, record in zip(positions, records):
        for field in fields:
            if not _has_field(record, field):
                raise MalformedRecordError(position, field=field)


def required_fields_of(priority_fn: PriorityComparator | None) -> tuple[str, ...]:
    if priority_fn is None:
        return ()
    return tuple(getattr(priority_fn, "required_fields", ()))


def _call(
    priority_fn: PriorityComparator,
    first: Record,
    first_position: int,
    second: Record,
    second_position: int,
) -> Preference:
    try:
        result = priority_fn(first, second)
    except KeyError as exc:
        field = exc.args[0] if exc.args else None
        position = second_position if _has_field(first, field) else first_position
        raise MalformedRecordError(position, field=field) from exc
    except FieldComparisonError as exc:
        raise MalformedRecordError(
            first_position,
            field=exc.field,
            reason=f"value of field {exc.field!r} cannot be compared with record {second_position}: {exc.detail}",
        ) from exc
    return Preference.from_result(result)


def _has_field(record: Record, field: object) -> bool:
    try:
        return field in record
    except TypeError:
        return False
