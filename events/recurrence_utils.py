"""Recurrence utilities: expanding, validating and splitting recurrence rules.

Everything here is pure and works on calendar dates:

- ``RangeValidator`` rejects query windows that are too wide for a rule type.
- ``OccurrenceGenerator`` expands a rule into the dates that fall inside a
  half-open ``[window_start, window_end)`` window.
- ``OccurrenceValidator`` answers whether a date is produced by a rule.
- ``RecurrenceRuleSplitter`` splits a rule at an occurrence into a truncated
  rule and a continuation rule.

Occurrence ``n`` is always computed from the rule's ``start_date`` (never from
occurrence ``n - 1``), so month and year steps clamp to the last day of short
months without drifting: a monthly rule starting on Jan 31 produces Feb 29 and
then Mar 31.
"""

import datetime
from collections.abc import Mapping
from typing import assert_never

from django.utils import timezone

from dateutil.relativedelta import relativedelta

from events.constants import EndConditionKind, RecurrenceType
from events.exceptions import InvalidWindowError, RangeTooLargeError, TooManyInstancesError
from events.recurrence import EndCondition, RecurrenceRule


MAX_INSTANCES_PER_EVENT = 1000

MAX_SPAN_DAYS: Mapping[str, int] = {
    RecurrenceType.DAILY: 365,
    RecurrenceType.WEEKLY: 730,
    RecurrenceType.MONTHLY: 1095,
    RecurrenceType.YEARLY: 3650,
}


def format_days_as_years(days: int) -> str:
    years = days / 365
    unit = "year" if years == 1 else "years"
    return f"{years:.1f} {unit}"


class RangeValidator:
    """Rejects date ranges that would expand a rule into too many occurrences."""

    @staticmethod
    def validate(
        rule: RecurrenceRule,
        window_start: datetime.date,
        window_end: datetime.date,
        max_span_days: Mapping[str, int] | None = None,
    ) -> None:
        """
        Validate a ``[window_start, window_end)`` query window against ``rule``.

        Raises:
            InvalidWindowError: If ``window_end`` is before ``window_start``.
            RangeTooLargeError: If the window is wider than the bound for the rule type.
        """
        if window_end < window_start:
            raise InvalidWindowError()

        if not rule.is_recurring:
            return

        limits = max_span_days if max_span_days is not None else MAX_SPAN_DAYS
        max_days = limits[rule.type]
        requested_days = (window_end - window_start).days
        if requested_days > max_days:
            raise RangeTooLargeError(
                f"Date range too large for {rule.type.label.lower()} recurring event: "
                f"requested {requested_days} days, maximum is {max_days} days "
                f"({format_days_as_years(max_days)})."
            )


class OccurrenceGenerator:
    """Expands recurrence rules into occurrence dates."""

    @staticmethod
    def nth_occurrence(rule: RecurrenceRule, index: int) -> datetime.date:
        """Return occurrence number ``index`` (0 is ``rule.start_date``), ignoring the end condition."""
        if index < 0:
            raise ValueError("Occurrence index must not be negative")

        match rule.type:
            case RecurrenceType.NONE:
                if index != 0:
                    raise ValueError("A non-recurring rule has a single occurrence")
                return rule.start_date
            case RecurrenceType.DAILY:
                return rule.start_date + datetime.timedelta(days=index * rule.interval)
            case RecurrenceType.WEEKLY:
                return rule.start_date + datetime.timedelta(weeks=index * rule.interval)
            case RecurrenceType.MONTHLY:
                return rule.start_date + relativedelta(months=index * rule.interval)
            case RecurrenceType.YEARLY:
                return rule.start_date + relativedelta(years=index * rule.interval)
            case _:
                assert_never(rule.type)

    @staticmethod
    def first_index_on_or_after(rule: RecurrenceRule, day: datetime.date) -> int:
        """Return the index of the first occurrence on or after ``day``, ignoring the end condition."""
        if day <= rule.start_date:
            return 0

        match rule.type:
            case RecurrenceType.NONE:
                return 1
            case RecurrenceType.DAILY | RecurrenceType.WEEKLY:
                step_days = rule.interval * (7 if rule.type == RecurrenceType.WEEKLY else 1)
                elapsed_days = (day - rule.start_date).days
                return -(-elapsed_days // step_days)
            case RecurrenceType.MONTHLY | RecurrenceType.YEARLY:
                step_months = rule.interval * (12 if rule.type == RecurrenceType.YEARLY else 1)
                elapsed_months = (day.year - rule.start_date.year) * 12 + (
                    day.month - rule.start_date.month
                )
                index = elapsed_months // step_months
                while OccurrenceGenerator.nth_occurrence(rule, index) < day:
                    index += 1
                return index
            case _:
                assert_never(rule.type)

    @staticmethod
    def last_index(rule: RecurrenceRule) -> int | None:
        """Return the index of the last occurrence, ``None`` if the rule never ends, ``-1`` if it has none."""
        if not rule.is_recurring:
            return 0

        end_condition = rule.end_condition
        match end_condition.kind:
            case EndConditionKind.NEVER:
                return None
            case EndConditionKind.AFTER_COUNT:
                return end_condition.count - 1
            case EndConditionKind.ON_DATE:
                if end_condition.until < rule.start_date:
                    return -1
                index = OccurrenceGenerator.first_index_on_or_after(rule, end_condition.until)
                if OccurrenceGenerator.nth_occurrence(rule, index) > end_condition.until:
                    index -= 1
                return index
            case _:
                assert_never(end_condition.kind)

    @staticmethod
    def generate(
        rule: RecurrenceRule,
        window_start: datetime.date,
        window_end: datetime.date,
        max_instances: int = MAX_INSTANCES_PER_EVENT,
    ) -> list[datetime.date]:
        """
        Return the chronological occurrence dates of ``rule`` inside ``[window_start, window_end)``.

        Occurrences before ``window_start`` are skipped arithmetically but still count
        towards an ``AFTER_COUNT`` end condition.

        Raises:
            TooManyInstancesError: If more than ``max_instances`` dates would be returned.
        """
        if window_end <= window_start:
            return []

        if not rule.is_recurring:
            if window_start <= rule.start_date < window_end:
                return [rule.start_date]
            return []

        last_index = OccurrenceGenerator.last_index(rule)
        index = OccurrenceGenerator.first_index_on_or_after(rule, window_start)

        occurrences: list[datetime.date] = []
        while last_index is None or index <= last_index:
            occurrence = OccurrenceGenerator.nth_occurrence(rule, index)
            if occurrence >= window_end:
                break
            if len(occurrences) >= max_instances:
                raise TooManyInstancesError(
                    f"More than {max_instances} occurrences requested for a single event."
                )
            occurrences.append(occurrence)
            index += 1
        return occurrences

    @staticmethod
    def occurrence_index(rule: RecurrenceRule, day: datetime.date) -> int | None:
        """Return the index of ``day`` in ``rule``, or ``None`` if the rule does not produce it."""
        if day < rule.start_date:
            return None
        if not rule.is_recurring:
            return 0 if day == rule.start_date else None

        index = OccurrenceGenerator.first_index_on_or_after(rule, day)
        if OccurrenceGenerator.nth_occurrence(rule, index) != day:
            return None
        last_index = OccurrenceGenerator.last_index(rule)
        if last_index is not None and index > last_index:
            return None
        return index

    @staticmethod
    def previous_occurrence(rule: RecurrenceRule, day: datetime.date) -> datetime.date | None:
        """Return the last occurrence strictly before ``day``."""
        if day <= rule.start_date:
            return None
        if not rule.is_recurring:
            return rule.start_date

        index = OccurrenceGenerator.first_index_on_or_after(rule, day) - 1
        last_index = OccurrenceGenerator.last_index(rule)
        if last_index is not None:
            index = min(index, last_index)
        if index < 0:
            return None
        return OccurrenceGenerator.nth_occurrence(rule, index)

    @staticmethod
    def first_occurrence_on_or_after(
        rule: RecurrenceRule, day: datetime.date
    ) -> datetime.date | None:
        index = OccurrenceGenerator.first_index_on_or_after(rule, day)
        last_index = OccurrenceGenerator.last_index(rule)
        if last_index is not None and index > last_index:
            return None
        return OccurrenceGenerator.nth_occurrence(rule, index)


class OccurrenceValidator:
    """Helpers to validate dates against a recurrence."""

    @staticmethod
    def is_occurrence(rule: RecurrenceRule, day: datetime.date) -> bool:
        """Return True if ``day`` is produced by ``rule``."""
        return OccurrenceGenerator.occurrence_index(rule, day) is not None

    @staticmethod
    def validate_modification_date(rule: RecurrenceRule, day: datetime.date) -> bool:
        """Return True if ``day`` is an occurrence of ``rule`` that can be modified."""
        return OccurrenceValidator.is_occurrence(rule, day)


class RecurrenceRuleSplitter:
    """Helpers to split or truncate recurrence rules."""

    @staticmethod
    def truncate_rule_until_date(rule: RecurrenceRule, until_date: datetime.date) -> RecurrenceRule:
        """Return a copy of ``rule`` that ends on ``until_date``."""
        return rule.with_end_condition(EndCondition.on_date(until_date))

    @staticmethod
    def create_continuation_rule(
        original_rule: RecurrenceRule, new_start_date: datetime.date
    ) -> RecurrenceRule | None:
        """Create a continuation rule starting at ``new_start_date``.

        If the original rule ends after a count the continuation keeps the remaining
        count. Returns ``None`` if there are no remaining occurrences.
        """
        end_condition = original_rule.end_condition
        match end_condition.kind:
            case EndConditionKind.AFTER_COUNT:
                used = OccurrenceGenerator.first_index_on_or_after(original_rule, new_start_date)
                remaining = end_condition.count - used
                if remaining <= 0:
                    return None
                end_condition = EndCondition.after_count(remaining)
            case EndConditionKind.ON_DATE:
                if end_condition.until < new_start_date:
                    return None
            case EndConditionKind.NEVER:
                pass
            case _:
                assert_never(end_condition.kind)

        return RecurrenceRule(
            type=original_rule.type,
            start_date=new_start_date,
            interval=original_rule.interval,
            end_condition=end_condition,
        )

    @staticmethod
    def split_at_date(
        original_rule: RecurrenceRule, split_date: datetime.date
    ) -> tuple[RecurrenceRule | None, RecurrenceRule | None]:
        """Split ``original_rule`` at ``split_date`` into (truncated, continuation).

        ``truncated`` ends on the last occurrence before ``split_date`` and is ``None``
        when ``split_date`` is the first occurrence. ``continuation`` generates the
        occurrences from ``split_date`` forwards (``None`` if nothing remains).
        """
        if not original_rule.is_recurring:
            return None, None

        previous_occurrence = OccurrenceGenerator.previous_occurrence(original_rule, split_date)
        truncated_rule: RecurrenceRule | None
        if previous_occurrence is None:
            truncated_rule = None
        else:
            truncated_rule = RecurrenceRuleSplitter.truncate_rule_until_date(
                original_rule, previous_occurrence
            )

        continuation_rule = RecurrenceRuleSplitter.create_continuation_rule(
            original_rule, split_date
        )

        return truncated_rule, continuation_rule


def shift_to_date(value: datetime.datetime, day: datetime.date) -> datetime.datetime:
    """Return ``value`` moved to ``day``, keeping its wall time in the current time zone."""
    local_value = timezone.localtime(value)
    return timezone.make_aware(
        datetime.datetime.combine(day, local_value.time().replace(tzinfo=None))
    )
