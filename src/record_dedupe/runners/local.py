from __future__ import annotations

import logging
from collections.abc import Sequence

from record_dedupe.dedupe import Deduplicator
from record_dedupe.interfaces import KeyFunction, PriorityComparator, RecordCleaner
from record_dedupe.models import DedupeResult, Record

logger = logging.getLogger(__name__)


class LocalDedupeRunner:
    """Single-pass runner: optional cleaning, then deduplication in memory."""

    def __init__(
        self,
        key_fn: KeyFunction,
        priority_fn: PriorityComparator | None = None,
        cleaner: RecordCleaner | None = None,
    ) -> None:
        self._deduplicator = Deduplicator(key_fn, priority_fn)
        self._cleaner = cleaner

    def run(self, records: Sequence[Record]) -> DedupeResult:
        prepared = self._cleaner.clean(records) if self._cleaner is not None else records
        result = self._deduplicator.run(prepared)
        logger.info(
            "local_dedupe_done",
            extra={"input_count": result.input_count, "output_count": len(result.records)},
        )
        return result
