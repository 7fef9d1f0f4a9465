from __future__ import annotations

import random
from typing import Any

_STATUSES = ["pending", "active", "closed", "withdrawn"]
_PRIORITY_CODES = ["P1", "P2", "P3", "P4"]
_SITES = ["Dublin", "Cork", "Galway", "Limerick", "Belfast", "Waterford"]

REFERENCE_FIELDS = ["row_id", "id", "site", "status", "priority_code", "value", "recorded"]


class ReferenceDatasetGenerator:
    """Generate synthetic rows (with intentional duplicate ids) for tests and demos.

    Duplicates copy an existing row and vary the fields priority rules look at:
    status, priority code, value and recording date. ``row_id`` stays unique so
    the surviving row can be identified.
    """

    def __init__(self, seed: int = 7) -> None:
        self._rng = random.Random(seed)

    def generate(self, size: int, duplicate_rate: float = 0.15) -> list[dict[str, Any]]:
        if size <= 0:
            return []

        unique_count = int(size * (1.0 - duplicate_rate))
        unique_count = max(1, min(unique_count, size))

        records: list[dict[str, Any]] = []
        for i in range(unique_count):
            records.append(self._row(len(records), f"ID{i:06d}", i))

        while len(records) < size:
            source = self._rng.choice(records[:unique_count])
            duplicate = dict(source)
            duplicate["row_id"] = len(records)
            self._perturb(duplicate)
            records.append(duplicate)

        self._rng.shuffle(records)
        return records

    def _row(self, row_id: int, entity_id: str, idx: int) -> dict[str, Any]:
        return {
            "row_id": row_id,
            "id": entity_id,
            "site": self._rng.choice(_SITES),
            "status": self._rng.choice(_STATUSES),
            "priority_code": self._rng.choice(_PRIORITY_CODES),
            "value": round(self._rng.uniform(0, 1000), 2),
            "recorded": f"2019-{(idx % 12) + 1:02d}-{(idx % 27) + 1:02d}",
        }

    def _perturb(self, attrs: dict[str, Any]) -> None:
        mutation = self._rng.choice(["status", "priority", "value", "mixed"])

        if mutation in {"status", "mixed"}:
            attrs["status"] = self._rng.choice(_STATUSES)
        if mutation in {"priority", "mixed"}:
            attrs["priority_code"] = self._rng.choice(_PRIORITY_CODES)
        if mutation in {"value", "mixed"}:
            # Occasional ties and missing values exercise the fallback clauses.
            roll = self._rng.random()
            if roll < 0.1:
                attrs["value"] = None
            elif roll < 0.6:
                attrs["value"] = round(self._rng.uniform(0, 1000), 2)
        if self._rng.random() < 0.5:
            year, month, day = attrs["recorded"].split("-")
            attrs["recorded"] = f"{int(year) + 1}-{month}-{day}"
