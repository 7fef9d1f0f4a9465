from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from record_dedupe.errors import ConfigurationError

LOG_FORMATS = ("text", "json")


@dataclass(frozen=True)
class Settings:
    # Logging
    log_level: str
    log_format: str

    # Outputs
    output_dir: Path

    # Sharded runner; 0 keeps the single-pass runner
    shard_size: int


def get_settings() -> Settings:
    log_level = os.getenv("RECORD_DEDUPE_LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"RECORD_DEDUPE_LOG_LEVEL={log_level!r} is not a logging level")

    log_format = os.getenv("RECORD_DEDUPE_LOG_FORMAT", "text").lower()
    if log_format not in LOG_FORMATS:
        raise ConfigurationError(f"RECORD_DEDUPE_LOG_FORMAT must be one of {LOG_FORMATS}, got {log_format!r}")

    raw_shard_size = os.getenv("RECORD_DEDUPE_SHARD_SIZE", "0")
    try:
        shard_size = int(raw_shard_size)
    except ValueError as exc:
        raise ConfigurationError(f"RECORD_DEDUPE_SHARD_SIZE={raw_shard_size!r} is not an integer") from exc
    if shard_size < 0:
        raise ConfigurationError("RECORD_DEDUPE_SHARD_SIZE must not be negative")

    return Settings(
        log_level=log_level,
        log_format=log_format,
        output_dir=Path(os.getenv("RECORD_DEDUPE_OUTPUT_DIR", "data/cli_output")),
        shard_size=shard_size,
    )
