"""Merge generated occurrence dates with their exceptions.

``Materializer`` works on plain dataclasses only. ``serialize_event`` and
``serialize_exception`` convert loaded models into those dataclasses; they read
related rows, so callers should prefetch ``participants`` and ``modified_event``.
"""

import datetime
from collections.abc import Mapping

from django.utils import timezone

from events.constants import RecurrenceExceptionKind
from events.models import CalendarEvent, EventRecurrenceException
from events.recurrence import RecurrenceRule
from events.recurrence_utils import (
    MAX_INSTANCES_PER_EVENT,
    OccurrenceGenerator,
    OccurrenceValidator,
    shift_to_date,
)
from events.services.dataclasses import (
    EventSnapshotData,
    OccurrenceData,
    RecurrenceExceptionData,
)


def serialize_event(event: CalendarEvent) -> EventSnapshotData:
    return EventSnapshotData(
        id=event.id,
        title=event.title,
        description=event.description,
        location=event.location,
        start_time=event.start_time,
        end_time=event.end_time,
        is_all_day=event.is_all_day,
        is_task=event.is_task,
        participant_ids=[participant.id for participant in event.participants.all()],
    )


def serialize_exception(exception: EventRecurrenceException) -> RecurrenceExceptionData:
    return RecurrenceExceptionData(
        occurrence_date=exception.occurrence_date,
        kind=RecurrenceExceptionKind(exception.kind),
        modified_event=(
            serialize_event(exception.modified_event) if exception.modified_event else None
        ),
    )


class Materializer:
    @staticmethod
    def materialize(
        event: EventSnapshotData,
        rule: RecurrenceRule,
        window_start: datetime.date,
        window_end: datetime.date,
        exceptions: Mapping[datetime.date, RecurrenceExceptionData] | None = None,
        max_instances: int = MAX_INSTANCES_PER_EVENT,
    ) -> list[OccurrenceData]:
        """
        Return the visible occurrences of ``event`` inside ``[window_start, window_end)``.

        Cancelled occurrences are dropped. Modified occurrences take the fields of their
        snapshot and are kept only while the snapshot still starts inside the window.
        Exceptions stay keyed by the original occurrence date.
        """
        exceptions = exceptions or {}
        occurrences: list[OccurrenceData] = []

        for occurrence_date in OccurrenceGenerator.generate(
            rule, window_start, window_end, max_instances=max_instances
        ):
            exception = exceptions.get(occurrence_date) if rule.is_recurring else None

            if exception is None:
                start_time = shift_to_date(event.start_time, occurrence_date)
                occurrences.append(
                    OccurrenceData(
                        event_id=event.id,
                        occurrence_date=occurrence_date,
                        start_time=start_time,
                        end_time=start_time + event.duration,
                        effective_event=event,
                    )
                )
                continue

            if exception.kind == RecurrenceExceptionKind.CANCELLED:
                continue

            snapshot = exception.modified_event
            if snapshot is None:
                continue
            snapshot_date = timezone.localtime(snapshot.start_time).date()
            if not window_start <= snapshot_date < window_end:
                continue
            occurrences.append(
                OccurrenceData(
                    event_id=event.id,
                    occurrence_date=occurrence_date,
                    start_time=snapshot.start_time,
                    end_time=snapshot.end_time,
                    effective_event=snapshot,
                    is_modified=True,
                )
            )

        return occurrences

    @staticmethod
    def has_occurrence(
        rule: RecurrenceRule,
        occurrence_date: datetime.date,
        exceptions: Mapping[datetime.date, RecurrenceExceptionData] | None = None,
    ) -> bool:
        """Return True if ``occurrence_date`` is produced by ``rule`` and not cancelled."""
        if not OccurrenceValidator.is_occurrence(rule, occurrence_date):
            return False
        exception = (exceptions or {}).get(occurrence_date)
        return exception is None or exception.kind != RecurrenceExceptionKind.CANCELLED
