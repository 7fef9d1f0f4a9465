from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Sequence

from record_dedupe.errors import ConfigurationError
from record_dedupe.models import Record


class Direction(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class KeySpec:
    """Key function over a fixed tuple of field names.

    Values are taken as-is; no case or whitespace normalization happens here.
    A missing field raises ``KeyError`` carrying the field name.
    """

    fields: tuple[str, ...]

    @classmethod
    def from_fields(cls, fields: str | Sequence[str]) -> "KeySpec":
        if isinstance(fields, str):
            fields = [fields]
        frozen = tuple(fields)
        if not frozen:
            raise ConfigurationError("a key needs at least one field")
        return cls(fields=frozen)

    def __call__(self, record: Record) -> tuple[Any, ...]:
        return tuple(record[field] for field in self.fields)
