from record_dedupe.datasets.profiles import (
    ACTIVE_STATUS_RULE,
    HIGHEST_VALUE_RULE,
    PRIORITY_CODE_RULE,
    REFERENCE_KEY,
    RULE_PRESETS,
)
from record_dedupe.datasets.reference import REFERENCE_FIELDS, ReferenceDatasetGenerator

__all__ = [
    "ACTIVE_STATUS_RULE",
    "HIGHEST_VALUE_RULE",
    "PRIORITY_CODE_RULE",
    "REFERENCE_KEY",
    "RULE_PRESETS",
    "REFERENCE_FIELDS",
    "ReferenceDatasetGenerator",
]
