from record_dedupe.steps.cleanup import FunctionalCleaner, casefold_text, strip_text
from record_dedupe.steps.grouping import KeyGroup, group_records
from record_dedupe.steps.priority import (
    PreferOrder,
    PreferRanked,
    PreferValue,
    PreferWhen,
    PriorityRule,
    parse_clause,
    parse_rule,
    prefer,
)
from record_dedupe.steps.selection import compare_records, select_winner

__all__ = [
    "FunctionalCleaner",
    "casefold_text",
    "strip_text",
    "KeyGroup",
    "group_records",
    "PreferOrder",
    "PreferRanked",
    "PreferValue",
    "PreferWhen",
    "PriorityRule",
    "parse_clause",
    "parse_rule",
    "prefer",
    "compare_records",
    "select_winner",
]
