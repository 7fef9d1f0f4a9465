from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from record_dedupe.config import LOG_FORMATS, get_settings
from record_dedupe.datasets import REFERENCE_FIELDS, REFERENCE_KEY, RULE_PRESETS, ReferenceDatasetGenerator
from record_dedupe.errors import ConfigurationError, DedupeError
from record_dedupe.frames import (
    frame_to_records,
    read_table,
    records_to_frame,
    write_csv,
    write_partitioned_workbook,
)
from record_dedupe.interfaces import DedupeRunner, PriorityComparator
from record_dedupe.models import DedupeResult, Record
from record_dedupe.runners import LocalDedupeRunner, ShardedDedupeRunner
from record_dedupe.schema import KeySpec
from record_dedupe.steps.cleanup import FunctionalCleaner, casefold_text, strip_text
from record_dedupe.steps.priority import PriorityRule, parse_rule
from record_dedupe.util.logging import configure_logging

logger = logging.getLogger(__name__)

# Exit status for any deduplication or configuration error.
EXIT_DEDUPE_ERROR = 2

_NORMALIZERS: dict[str, FunctionalCleaner | None] = {
    "none": None,
    "strip": FunctionalCleaner(default_transform=strip_text),
    "casefold": FunctionalCleaner(default_transform=casefold_text),
}


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(f"record-dedupe: {exc}", file=sys.stderr)
        return EXIT_DEDUPE_ERROR

    parser = _build_parser(settings.output_dir, settings.shard_size)
    args = parser.parse_args(argv)
    configure_logging(args.log_level or settings.log_level, args.log_format or settings.log_format)

    try:
        if args.command == "run":
            run(
                input_path=args.input,
                key_fields=args.key,
                rule_clauses=args.rule,
                output_path=args.output or settings.output_dir / "deduplicated.csv",
                workbook_path=args.workbook,
                partition_by=args.partition_by,
                summary_path=args.summary,
                shard_size=args.shard_size,
                normalize=args.normalize,
            )
            return 0

        if args.command == "run-test":
            run_test(
                size=args.size,
                duplicate_rate=args.duplicate_rate,
                seed=args.seed,
                rule_preset=args.rule_preset,
                output_dir=args.output_dir,
                show_groups=args.show_groups,
                shard_size=args.shard_size,
            )
            return 0
    except DedupeError as exc:
        logger.error("dedupe_failed", extra={"error": str(exc), "error_type": type(exc).__name__})
        return EXIT_DEDUPE_ERROR

    parser.print_help()
    return 0


def run(
    *,
    input_path: Path,
    key_fields: Sequence[str],
    rule_clauses: Sequence[str],
    output_path: Path,
    workbook_path: Path | None,
    partition_by: str | None,
    summary_path: Path | None,
    shard_size: int,
    normalize: str = "none",
) -> dict[str, object]:
    if workbook_path is not None and not partition_by:
        raise ConfigurationError("--workbook requires --partition-by")

    frame = read_table(input_path)
    if partition_by and partition_by not in frame.columns:
        raise ConfigurationError(f"partition column {partition_by!r} not found in table")
    key_fn = KeySpec.from_fields(key_fields)
    rule = parse_rule(rule_clauses)
    cleaner = _NORMALIZERS[normalize]
    runner = _build_runner(key_fn, rule, shard_size, cleaner)
    result = runner.run(frame_to_records(frame))

    deduplicated = frame.iloc[result.winner_positions]
    write_csv(output_path, deduplicated)
    if workbook_path is not None and partition_by:
        write_partitioned_workbook(deduplicated, workbook_path, partition_by)

    summary = _build_summary(
        result=result,
        key_fields=key_fn.fields,
        rule=rule,
        input_path=input_path,
        output_path=output_path,
    )
    if summary_path is not None:
        _write_json(summary_path, summary)

    print(f"Input: {input_path}")
    print(f"Output: {output_path}")
    if workbook_path is not None:
        print(f"Workbook: {workbook_path}")
    _print_summary(summary)
    return summary


def run_test(
    *,
    size: int,
    duplicate_rate: float,
    seed: int,
    rule_preset: str,
    output_dir: Path,
    show_groups: int,
    shard_size: int,
) -> dict[str, object]:
    rule = RULE_PRESETS[rule_preset]
    runner = _build_runner(REFERENCE_KEY, rule, shard_size)
    output_dir.mkdir(parents=True, exist_ok=True)

    records = ReferenceDatasetGenerator(seed=seed).generate(size=size, duplicate_rate=duplicate_rate)
    dataset_path = output_dir / "test_dataset.csv"
    write_csv(dataset_path, records_to_frame(records, columns=REFERENCE_FIELDS))

    result = runner.run(records)

    output_path = output_dir / "deduplicated.csv"
    summary_path = output_dir / "summary.json"
    write_csv(output_path, records_to_frame(result.records, columns=REFERENCE_FIELDS))
    summary = _build_summary(
        result=result,
        key_fields=REFERENCE_KEY.fields,
        rule=rule,
        input_path=dataset_path,
        output_path=output_path,
    )
    _write_json(summary_path, summary)

    print(f"Dataset: {dataset_path}")
    print(f"Output: {output_path}")
    print(f"Summary: {summary_path}")
    _print_summary(summary)
    if show_groups > 0:
        print("---")
        print("sample_groups=")
        print(json.dumps(_group_sample_payload(result, records, limit=show_groups), indent=2, default=str))
    return summary


def _build_runner(
    key_fn: KeySpec,
    rule: PriorityComparator | None,
    shard_size: int,
    cleaner: FunctionalCleaner | None = None,
) -> DedupeRunner:
    if shard_size < 0:
        raise ConfigurationError(f"--shard-size must not be negative, got {shard_size}")
    if shard_size > 0:
        return ShardedDedupeRunner(key_fn, rule, shard_size=shard_size, cleaner=cleaner)
    return LocalDedupeRunner(key_fn, rule, cleaner=cleaner)


def _build_summary(
    *,
    result: DedupeResult,
    key_fields: Sequence[str],
    rule: PriorityComparator | None,
    input_path: Path,
    output_path: Path,
) -> dict[str, object]:
    group_sizes = [group.size for group in result.groups]
    duplicate_sizes = [size for size in group_sizes if size > 1]

    return {
        "input_count": result.input_count,
        "output_count": len(result.records),
        "duplicate_count": result.duplicate_count,
        "duplicate_key_count": len(duplicate_sizes),
        "avg_duplicate_group_size": round(sum(duplicate_sizes) / len(duplicate_sizes), 3) if duplicate_sizes else 0.0,
        "max_group_size": max(group_sizes) if group_sizes else 0,
        "key_fields": list(key_fields),
        "priority_rule": _describe_rule(rule),
        "input_path": str(input_path),
        "output_path": str(output_path),
    }


def _describe_rule(rule: PriorityComparator | None) -> str:
    if rule is None:
        return "first occurrence"
    if isinstance(rule, PriorityRule):
        return rule.describe()
    return repr(rule)


def _print_summary(summary: dict[str, object]) -> None:
    print("---")
    print(f"records={summary['input_count']}")
    print(f"kept={summary['output_count']}")
    print(f"duplicates_removed={summary['duplicate_count']}")
    print(f"duplicate_keys={summary['duplicate_key_count']}")
    print(f"priority_rule={summary['priority_rule']}")


def _build_parser(default_output_dir: Path, default_shard_size: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="record-dedupe", description="Priority-based record deduplication")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Overrides RECORD_DEDUPE_LOG_LEVEL",
    )
    parser.add_argument("--log-format", choices=LOG_FORMATS, default=None)
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Deduplicate a CSV or Excel table")
    run_parser.add_argument("--input", type=Path, required=True)
    run_parser.add_argument("--key", action="append", required=True, help="Key column (repeat for composite keys)")
    run_parser.add_argument(
        "--rule",
        action="append",
        default=[],
        help="Priority clause 'field=value' or 'field:asc|desc'; clauses apply in the order given",
    )
    run_parser.add_argument("--output", type=Path, default=None)
    run_parser.add_argument("--workbook", type=Path, default=None, help="Also write an .xlsx, one sheet per partition")
    run_parser.add_argument("--partition-by", type=str, default=None)
    run_parser.add_argument("--summary", type=Path, default=None)
    run_parser.add_argument("--shard-size", type=int, default=default_shard_size)
    run_parser.add_argument(
        "--normalize",
        choices=sorted(_NORMALIZERS),
        default="none",
        help="Normalize text cells before matching; output keeps the original values",
    )

    run_test_parser = subparsers.add_parser(
        "run-test",
        help="Generate a reference dataset, deduplicate it, and output rows + summary",
    )
    run_test_parser.add_argument("--size", type=int, default=2000)
    run_test_parser.add_argument("--duplicate-rate", type=float, default=0.15)
    run_test_parser.add_argument("--seed", type=int, default=42)
    run_test_parser.add_argument("--rule-preset", choices=sorted(RULE_PRESETS), default="active-status")
    run_test_parser.add_argument("--output-dir", type=Path, default=default_output_dir)
    run_test_parser.add_argument("--show-groups", type=int, default=5)
    run_test_parser.add_argument("--shard-size", type=int, default=default_shard_size)

    return parser


def _write_json(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, default=str)


def _group_sample_payload(
    result: DedupeResult,
    records: Sequence[Record],
    limit: int = 5,
) -> list[dict[str, Any]]:
    ranked = sorted(
        (group for group in result.groups if group.size > 1),
        key=lambda group: (-group.size, group.positions[0]),
    )
    payload: list[dict[str, Any]] = []

    for group in ranked[:limit]:
        members = [records[position] for position in group.positions]
        differing_columns = _differing_columns(members)
        payload.append(
            {
                "key": list(group.key) if isinstance(group.key, tuple) else group.key,
                "size": group.size,
                "winner_position": group.winner_position,
                "differing_columns": differing_columns,
                "rows": [
                    {
                        "position": position,
                        "kept": position == group.winner_position,
                        "values": [record.get(column) for column in differing_columns],
                    }
                    for position, record in zip(group.positions, members)
                ],
            }
        )
    return payload


def _differing_columns(records: Sequence[Record]) -> list[str]:
    if len(records) <= 1:
        return []
    columns = sorted({column for record in records for column in record})
    differing: list[str] = []
    for column in columns:
        if column == "row_id":
            continue
        values = {_display(record.get(column)) for record in records}
        if len(values) > 1:
            differing.append(column)
    return differing


def _display(value: object) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


if __name__ == "__main__":
    raise SystemExit(main())
