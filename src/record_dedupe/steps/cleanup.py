from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from record_dedupe.models import Record


class FunctionalCleaner:
    """Composable per-field cleaner applied to copies of the records.

    Deduplication compares keys exactly; normalization such as case folding
    has to be asked for here.
    """

    def __init__(
        self,
        transforms: Mapping[str, Callable[[Any], Any]] | None = None,
        default_transform: Callable[[Any], Any] | None = None,
    ) -> None:
        self._transforms = dict(transforms or {})
        self._default_transform = default_transform

    def clean(self, records: Sequence[Record]) -> list[Record]:
        cleaned: list[Record] = []
        for record in records:
            attrs = dict(record)

            if self._default_transform is not None:
                for field, value in attrs.items():
                    if field not in self._transforms:
                        attrs[field] = self._default_transform(value)

            for field, transform in self._transforms.items():
                if field in attrs:
                    attrs[field] = transform(attrs[field])

            cleaned.append(attrs)
        return cleaned


def strip_text(value: Any) -> Any:
    return " ".join(value.split()) if isinstance(value, str) else value


def casefold_text(value: Any) -> Any:
    return strip_text(value).casefold() if isinstance(value, str) else value
