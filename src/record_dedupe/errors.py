from __future__ import annotations


class DedupeError(Exception):
    """Base class for every error raised by record_dedupe."""


class ConfigurationError(DedupeError):
    """Invalid settings, rule clause or command line argument."""


class MalformedRecordError(DedupeError):
    """A record cannot be keyed or ranked because a required field is unusable."""

    def __init__(self, position: int, field: str | None = None, reason: str | None = None) -> None:
        self.position = position
        self.field = field
        if reason is None:
            reason = f"missing field {field!r}" if field is not None else "key extraction failed"
        self.reason = reason
        super().__init__(f"record at position {position}: {reason}")


class InvalidPriorityRuleError(DedupeError):
    """The priority comparator gave contradictory answers for one pair of records."""

    def __init__(self, left_position: int, right_position: int, forward: int, backward: int) -> None:
        self.left_position = left_position
        self.right_position = right_position
        self.forward = forward
        self.backward = backward
        super().__init__(
            f"priority comparator is inconsistent for records at positions "
            f"{left_position} and {right_position}: compare(a, b)={forward}, compare(b, a)={backward}"
        )


class FieldComparisonError(DedupeError):
    """Raised by priority clauses when two field values cannot be ordered.

    Deduplication turns this into a MalformedRecordError once the record
    position is known.
    """

    def __init__(self, field: str, detail: str) -> None:
        self.field = field
        self.detail = detail
        super().__init__(f"cannot compare values of field {field!r}: {detail}")
