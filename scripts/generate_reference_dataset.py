from __future__ import annotations

import argparse
from pathlib import Path

from record_dedupe.datasets import REFERENCE_FIELDS, ReferenceDatasetGenerator
from record_dedupe.frames import records_to_frame, write_csv


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic dataset with duplicate ids")
    parser.add_argument("--size", type=int, default=10000)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--duplicate-rate", type=float, default=0.15)
    parser.add_argument("--output", type=Path, default=Path("data/reference_records.csv"))
    args = parser.parse_args()

    records = ReferenceDatasetGenerator(seed=args.seed).generate(
        size=args.size,
        duplicate_rate=args.duplicate_rate,
    )
    write_csv(args.output, records_to_frame(records, columns=REFERENCE_FIELDS))


if __name__ == "__main__":
    main()
