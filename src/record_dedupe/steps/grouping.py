from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from record_dedupe.errors import MalformedRecordError
from record_dedupe.interfaces import KeyFunction
from record_dedupe.models import Key, Record


@dataclass(slots=True)
class KeyGroup:
    """Records sharing one key, in input order, with their input positions."""

    key: Key
    positions: list[int]
    records: list[Record]


def extract_key(key_fn: KeyFunction, record: Record, position: int) -> Key:
    try:
        key = key_fn(record)
    except KeyError as exc:
        field = exc.args[0] if exc.args else None
        raise MalformedRecordError(position, field=field) from exc
    except (LookupError, AttributeError, TypeError, ValueError) as exc:
        raise MalformedRecordError(position, reason=f"key extraction failed: {type(exc).__name__}: {exc}") from exc

    try:
        hash(key)
    except TypeError as exc:
        raise MalformedRecordError(position, reason=f"key {key!r} is not hashable") from exc
    return key


def group_records(
    records: Sequence[Record],
    key_fn: KeyFunction,
    positions: Sequence[int] | None = None,
) -> list[KeyGroup]:
    """Partition records by key.

    Groups come back in the order their key first appears; members keep input
    order. ``positions`` overrides the reported position of each record (the
    sharded runner passes original input indices).
    """
    if positions is None:
        positions = range(len(records))
    elif len(positions) != len(records):
        raise ValueError("positions must have one entry per record")

    groups: dict[Key, KeyGroup] = {}
    for position, record in zip(positions, records):
        key = extract_key(key_fn, record, position)
        group = groups.get(key)
        if group is None:
            groups[key] = KeyGroup(key=key, positions=[position], records=[record])
        else:
            group.positions.append(position)
            group.records.append(record)
    return list(groups.values())
