from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from record_dedupe.dedupe import Deduplicator
from record_dedupe.errors import ConfigurationError
from record_dedupe.interfaces import KeyFunction, PriorityComparator
from record_dedupe.models import Record
from record_dedupe.schema import KeySpec

logger = logging.getLogger(__name__)

_EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
_SHEET_NAME_LIMIT = 31
_INVALID_SHEET_CHARS = re.compile(r"[\[\]\:\*\?\/\\]")


def read_table(path: Path, sheet_name: str | int = 0) -> pd.DataFrame:
    """Load a CSV or Excel sheet."""
    suffix = path.suffix.lower()
    if suffix in _EXCEL_SUFFIXES:
        return pd.read_excel(path, sheet_name=sheet_name)
    if suffix in {".csv", ".txt"}:
        return pd.read_csv(path)
    raise ConfigurationError(f"unsupported table format {suffix!r} for {path}")


def frame_to_records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """Rows as dicts; missing cells become None so they compare equal in keys."""
    cleaned = frame.astype(object).where(frame.notna(), None)
    return cleaned.to_dict(orient="records")


def records_to_frame(records: Sequence[Record], columns: Sequence[str] | None = None) -> pd.DataFrame:
    return pd.DataFrame.from_records([dict(record) for record in records], columns=columns)


def deduplicate_frame(
    frame: pd.DataFrame,
    key: str | Sequence[str] | KeyFunction,
    priority: PriorityComparator | None = None,
) -> pd.DataFrame:
    """Keep one row per key, preserving the original index of surviving rows.

    Rows come back in the order their key first appears.
    """
    key_fn = key if callable(key) else KeySpec.from_fields(key)
    result = Deduplicator(key_fn, priority).run(frame_to_records(frame))
    logger.debug(
        "frame_deduplicated",
        extra={"rows": len(frame), "kept": len(result.records), "duplicates": result.duplicate_count},
    )
    return frame.iloc[result.winner_positions]


def write_csv(path: Path, frame: pd.DataFrame) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)


def write_partitioned_workbook(frame: pd.DataFrame, path: Path, partition_by: str) -> list[str]:
    """Write one sheet per distinct value of ``partition_by``; returns the sheet names."""
    if partition_by not in frame.columns:
        raise ConfigurationError(f"partition column {partition_by!r} not found in table")

    path.parent.mkdir(parents=True, exist_ok=True)
    sheet_names: list[str] = []
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        if frame.empty:
            frame.to_excel(writer, sheet_name="empty", index=False)
            return ["empty"]

        for value, part in frame.groupby(partition_by, sort=False, dropna=False):
            sheet_name = _sheet_name(value, sheet_names)
            part.to_excel(writer, sheet_name=sheet_name, index=False)
            sheet_names.append(sheet_name)

    logger.info("workbook_written", extra={"path": str(path), "sheets": len(sheet_names)})
    return sheet_names


def _sheet_name(value: object, taken: Sequence[str]) -> str:
    if pd.isna(value):
        base = "missing"
    else:
        base = _INVALID_SHEET_CHARS.sub("_", str(value)).strip("'") or "blank"
    base = base[:_SHEET_NAME_LIMIT]

    name = base
    counter = 2
    lowered = {existing.lower() for existing in taken}
    while name.lower() in lowered:
        suffix = f"_{counter}"
        name = f"{base[: _SHEET_NAME_LIMIT - len(suffix)]}{suffix}"
        counter += 1
    return name
