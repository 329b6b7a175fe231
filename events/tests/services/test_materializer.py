import datetime
import uuid

import pytest

from events.constants import RecurrenceExceptionKind, RecurrenceType
from events.exceptions import TooManyInstancesError
from events.recurrence import EndCondition, RecurrenceRule
from events.services.dataclasses import EventSnapshotData, RecurrenceExceptionData
from events.services.materializer import Materializer


def _dt(year, month, day, hour=9, minute=0):
    return datetime.datetime(year, month, day, hour, minute, tzinfo=datetime.UTC)


@pytest.fixture
def series():
    return EventSnapshotData(
        id=uuid.uuid4(),
        title="Swimming",
        description="",
        location="Club",
        start_time=_dt(2024, 1, 1, 17),
        end_time=_dt(2024, 1, 1, 18),
        is_all_day=False,
        is_task=False,
    )


@pytest.fixture
def daily_rule():
    return RecurrenceRule(type=RecurrenceType.DAILY, start_date=datetime.date(2024, 1, 1))


def _snapshot(start_time, end_time, title="Moved"):
    return EventSnapshotData(
        id=uuid.uuid4(),
        title=title,
        description="",
        location="",
        start_time=start_time,
        end_time=end_time,
        is_all_day=False,
        is_task=False,
    )


def test_materialize_without_exceptions(series, daily_rule):
    occurrences = Materializer.materialize(
        series, daily_rule, datetime.date(2024, 1, 1), datetime.date(2024, 1, 4)
    )

    assert [occurrence.occurrence_date for occurrence in occurrences] == [
        datetime.date(2024, 1, 1),
        datetime.date(2024, 1, 2),
        datetime.date(2024, 1, 3),
    ]
    assert occurrences[1].start_time == _dt(2024, 1, 2, 17)
    assert occurrences[1].end_time == _dt(2024, 1, 2, 18)
    assert occurrences[1].effective_event is series
    assert not occurrences[1].is_modified


def test_cancelled_occurrence_is_dropped(series, daily_rule):
    exceptions = {
        datetime.date(2024, 1, 2): RecurrenceExceptionData(
            occurrence_date=datetime.date(2024, 1, 2), kind=RecurrenceExceptionKind.CANCELLED
        )
    }

    occurrences = Materializer.materialize(
        series, daily_rule, datetime.date(2024, 1, 1), datetime.date(2024, 1, 4), exceptions
    )

    assert [occurrence.occurrence_date for occurrence in occurrences] == [
        datetime.date(2024, 1, 1),
        datetime.date(2024, 1, 3),
    ]


def test_modified_occurrence_uses_snapshot_fields(series, daily_rule):
    snapshot = _snapshot(_dt(2024, 1, 2, 19), _dt(2024, 1, 2, 21))
    exceptions = {
        datetime.date(2024, 1, 2): RecurrenceExceptionData(
            occurrence_date=datetime.date(2024, 1, 2),
            kind=RecurrenceExceptionKind.MODIFIED,
            modified_event=snapshot,
        )
    }

    occurrences = Materializer.materialize(
        series, daily_rule, datetime.date(2024, 1, 1), datetime.date(2024, 1, 4), exceptions
    )

    modified = occurrences[1]
    assert modified.is_modified
    assert modified.event_id == series.id
    assert modified.occurrence_date == datetime.date(2024, 1, 2)
    assert modified.start_time == _dt(2024, 1, 2, 19)
    assert modified.end_time == _dt(2024, 1, 2, 21)
    assert modified.effective_event.title == "Moved"


def test_modified_occurrence_moved_out_of_window_is_excluded(series, daily_rule):
    """The occurrence slot is in the window but its snapshot now starts after it."""
    snapshot = _snapshot(_dt(2024, 1, 10, 17), _dt(2024, 1, 10, 18))
    exceptions = {
        datetime.date(2024, 1, 3): RecurrenceExceptionData(
            occurrence_date=datetime.date(2024, 1, 3),
            kind=RecurrenceExceptionKind.MODIFIED,
            modified_event=snapshot,
        )
    }

    occurrences = Materializer.materialize(
        series, daily_rule, datetime.date(2024, 1, 1), datetime.date(2024, 1, 4), exceptions
    )

    assert datetime.date(2024, 1, 3) not in [
        occurrence.occurrence_date for occurrence in occurrences
    ]


def test_exception_outside_the_window_is_ignored(series, daily_rule):
    exceptions = {
        datetime.date(2024, 2, 1): RecurrenceExceptionData(
            occurrence_date=datetime.date(2024, 2, 1), kind=RecurrenceExceptionKind.CANCELLED
        )
    }

    occurrences = Materializer.materialize(
        series, daily_rule, datetime.date(2024, 1, 1), datetime.date(2024, 1, 4), exceptions
    )

    assert len(occurrences) == 3


def test_materialize_propagates_too_many_instances(series, daily_rule):
    with pytest.raises(TooManyInstancesError):
        Materializer.materialize(
            series,
            daily_rule,
            datetime.date(2024, 1, 1),
            datetime.date(2024, 1, 10),
            max_instances=5,
        )


def test_non_recurring_event_ignores_exceptions(series):
    rule = RecurrenceRule.non_recurring(datetime.date(2024, 1, 1))
    exceptions = {
        datetime.date(2024, 1, 1): RecurrenceExceptionData(
            occurrence_date=datetime.date(2024, 1, 1), kind=RecurrenceExceptionKind.CANCELLED
        )
    }

    occurrences = Materializer.materialize(
        series, rule, datetime.date(2024, 1, 1), datetime.date(2024, 1, 2), exceptions
    )

    assert len(occurrences) == 1


def test_has_occurrence(daily_rule):
    rule = daily_rule.with_end_condition(EndCondition.after_count(3))
    exceptions = {
        datetime.date(2024, 1, 2): RecurrenceExceptionData(
            occurrence_date=datetime.date(2024, 1, 2), kind=RecurrenceExceptionKind.CANCELLED
        )
    }

    assert Materializer.has_occurrence(rule, datetime.date(2024, 1, 1), exceptions)
    assert not Materializer.has_occurrence(rule, datetime.date(2024, 1, 2), exceptions)
    assert not Materializer.has_occurrence(rule, datetime.date(2024, 1, 4), exceptions)
