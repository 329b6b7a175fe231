"""Immutable recurrence values.

A ``RecurrenceRule`` is owned by a ``CalendarEvent`` and persisted as plain
columns on it; this module holds the in-memory value used by the generator, the
splitter and the services. Rules are never mutated: splitting or editing a
series produces new rules with ``dataclasses.replace``.
"""

import dataclasses
import datetime
from dataclasses import dataclass

from events.constants import EndConditionKind, RecurrenceType
from events.exceptions import InvalidRecurrenceRuleError


@dataclass(frozen=True)
class EndCondition:
    kind: EndConditionKind = EndConditionKind.NEVER
    until: datetime.date | None = None
    count: int | None = None

    def __post_init__(self):
        try:
            object.__setattr__(self, "kind", EndConditionKind(self.kind))
        except ValueError as e:
            raise InvalidRecurrenceRuleError(f"Unknown end condition: {self.kind}") from e
        match self.kind:
            case EndConditionKind.NEVER:
                if self.until is not None or self.count is not None:
                    raise InvalidRecurrenceRuleError(
                        "A recurrence that never ends cannot have an end date or a count."
                    )
            case EndConditionKind.ON_DATE:
                if self.until is None:
                    raise InvalidRecurrenceRuleError("An end date is required.")
                if self.count is not None:
                    raise InvalidRecurrenceRuleError(
                        "Cannot specify both an end date and a count."
                    )
            case EndConditionKind.AFTER_COUNT:
                if self.count is None or self.count < 1:
                    raise InvalidRecurrenceRuleError("Occurrence count must be at least 1.")
                if self.until is not None:
                    raise InvalidRecurrenceRuleError(
                        "Cannot specify both an end date and a count."
                    )

    @classmethod
    def never(cls) -> "EndCondition":
        return cls(kind=EndConditionKind.NEVER)

    @classmethod
    def on_date(cls, until: datetime.date) -> "EndCondition":
        return cls(kind=EndConditionKind.ON_DATE, until=until)

    @classmethod
    def after_count(cls, count: int) -> "EndCondition":
        return cls(kind=EndConditionKind.AFTER_COUNT, count=count)

    @classmethod
    def from_fields(cls, until: datetime.date | None, count: int | None) -> "EndCondition":
        """Build the end condition stored as nullable ``until``/``count`` columns."""
        if until is not None and count is not None:
            raise InvalidRecurrenceRuleError("Cannot specify both an end date and a count.")
        if until is not None:
            return cls.on_date(until)
        if count is not None:
            return cls.after_count(count)
        return cls.never()


@dataclass(frozen=True)
class RecurrenceRule:
    """
    How an event repeats.

    ``start_date`` is the calendar date of the first occurrence. Every other
    occurrence is ``start_date`` plus a whole number of ``interval`` periods.
    """

    type: RecurrenceType  # noqa: A003
    start_date: datetime.date
    interval: int = 1
    end_condition: EndCondition = dataclasses.field(default_factory=EndCondition.never)

    def __post_init__(self):
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise InvalidRecurrenceRuleError("Interval must be an integer.")
        if self.interval < 1:
            raise InvalidRecurrenceRuleError("Interval must be at least 1.")
        try:
            object.__setattr__(self, "type", RecurrenceType(self.type))
        except ValueError as e:
            raise InvalidRecurrenceRuleError(f"Unknown recurrence type: {self.type}") from e

    @property
    def is_recurring(self) -> bool:
        return self.type != RecurrenceType.NONE

    @classmethod
    def non_recurring(cls, start_date: datetime.date) -> "RecurrenceRule":
        return cls(type=RecurrenceType.NONE, start_date=start_date)

    def with_end_condition(self, end_condition: EndCondition) -> "RecurrenceRule":
        return dataclasses.replace(self, end_condition=end_condition)

    def with_start_date(self, start_date: datetime.date) -> "RecurrenceRule":
        return dataclasses.replace(self, start_date=start_date)
