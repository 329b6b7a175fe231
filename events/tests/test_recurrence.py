import datetime

import pytest

from events.constants import EndConditionKind, RecurrenceType
from events.exceptions import InvalidRecurrenceRuleError
from events.recurrence import EndCondition, RecurrenceRule


def test_rule_defaults_to_interval_one_and_never_ending():
    """A rule without explicit interval/end condition repeats every period forever."""
    rule = RecurrenceRule(type=RecurrenceType.DAILY, start_date=datetime.date(2024, 1, 1))

    assert rule.interval == 1
    assert rule.end_condition.kind == EndConditionKind.NEVER
    assert rule.is_recurring


@pytest.mark.parametrize("interval", [0, -1])
def test_rule_rejects_non_positive_interval(interval):
    """Non-positive intervals are rejected when the rule is built."""
    with pytest.raises(InvalidRecurrenceRuleError):
        RecurrenceRule(
            type=RecurrenceType.WEEKLY, start_date=datetime.date(2024, 1, 1), interval=interval
        )


def test_rule_normalizes_plain_string_type():
    """Plain strings are coerced into RecurrenceType members."""
    rule = RecurrenceRule(type="MONTHLY", start_date=datetime.date(2024, 1, 31))

    assert rule.type is RecurrenceType.MONTHLY


def test_rule_rejects_unknown_type():
    """Unknown recurrence types are rejected."""
    with pytest.raises(InvalidRecurrenceRuleError):
        RecurrenceRule(type="HOURLY", start_date=datetime.date(2024, 1, 1))


def test_non_recurring_rule():
    """NONE rules do not repeat."""
    rule = RecurrenceRule.non_recurring(datetime.date(2024, 3, 1))

    assert not rule.is_recurring
    assert rule.type == RecurrenceType.NONE


def test_rule_is_immutable():
    """Rules are frozen values; changes produce new rules."""
    rule = RecurrenceRule(type=RecurrenceType.DAILY, start_date=datetime.date(2024, 1, 1))

    with pytest.raises(AttributeError):
        rule.interval = 2  # type: ignore[misc]

    truncated = rule.with_end_condition(EndCondition.on_date(datetime.date(2024, 1, 10)))
    assert rule.end_condition.kind == EndConditionKind.NEVER
    assert truncated.end_condition.until == datetime.date(2024, 1, 10)


@pytest.mark.parametrize("count", [0, -3])
def test_after_count_requires_positive_count(count):
    """AFTER_COUNT needs at least one occurrence."""
    with pytest.raises(InvalidRecurrenceRuleError):
        EndCondition.after_count(count)


def test_on_date_requires_a_date():
    """ON_DATE without a date is invalid."""
    with pytest.raises(InvalidRecurrenceRuleError):
        EndCondition(kind=EndConditionKind.ON_DATE)


def test_end_condition_from_fields():
    """Stored until/count columns map to the matching end condition."""
    assert EndCondition.from_fields(None, None) == EndCondition.never()
    assert EndCondition.from_fields(datetime.date(2024, 5, 1), None) == EndCondition.on_date(
        datetime.date(2024, 5, 1)
    )
    assert EndCondition.from_fields(None, 4) == EndCondition.after_count(4)

    with pytest.raises(InvalidRecurrenceRuleError):
        EndCondition.from_fields(datetime.date(2024, 5, 1), 4)
