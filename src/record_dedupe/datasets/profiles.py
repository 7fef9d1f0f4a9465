from __future__ import annotations

from record_dedupe.schema import Direction, KeySpec
from record_dedupe.steps.priority import PreferOrder, PreferRanked, PreferValue, PriorityRule

# Business rules the reporting scripts dedupe with.
REFERENCE_KEY = KeySpec.from_fields(["id"])

ACTIVE_STATUS_RULE = PriorityRule(PreferValue("status", "active"))

PRIORITY_CODE_RULE = PriorityRule(
    PreferRanked("priority_code", ("P1", "P2", "P3")),
    PreferOrder("recorded", Direction.DESC),
)

HIGHEST_VALUE_RULE = PriorityRule(PreferOrder("value", Direction.DESC))

RULE_PRESETS: dict[str, PriorityRule | None] = {
    "first": None,
    "active-status": ACTIVE_STATUS_RULE,
    "priority-code": PRIORITY_CODE_RULE,
    "highest-value": HIGHEST_VALUE_RULE,
}
