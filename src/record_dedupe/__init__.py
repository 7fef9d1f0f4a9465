"""Priority-based record deduplication for tabular analysis workflows."""

from record_dedupe.dedupe import Deduplicator, deduplicate
from record_dedupe.errors import (
    ConfigurationError,
    DedupeError,
    InvalidPriorityRuleError,
    MalformedRecordError,
)
from record_dedupe.models import DedupeResult, GroupOutcome, Preference
from record_dedupe.schema import Direction, KeySpec
from record_dedupe.steps.priority import PreferOrder, PreferRanked, PreferValue, PreferWhen, PriorityRule, prefer

__version__ = "0.1.0"

__all__ = [
    "Deduplicator",
    "deduplicate",
    "ConfigurationError",
    "DedupeError",
    "InvalidPriorityRuleError",
    "MalformedRecordError",
    "DedupeResult",
    "GroupOutcome",
    "Preference",
    "Direction",
    "KeySpec",
    "PreferOrder",
    "PreferRanked",
    "PreferValue",
    "PreferWhen",
    "PriorityRule",
    "prefer",
]
