import datetime
import uuid
from collections import defaultdict
from collections.abc import Iterable

from events.models import CalendarEvent, EventRecurrenceException, EventTaskCompletion


class DjangoOccurrenceStore:
    """``OccurrenceStore`` backed by the Django ORM."""

    def get_event(
        self, family_id: uuid.UUID, event_id: uuid.UUID, for_update: bool = False
    ) -> CalendarEvent | None:
        queryset = CalendarEvent.objects.filter_by_family(family_id)
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.prefetch_related("participants").filter(id=event_id).first()

    def get_family_events(
        self, family_id: uuid.UUID, window_start: datetime.date, window_end: datetime.date
    ) -> list[CalendarEvent]:
        return list(
            CalendarEvent.objects.filter_by_family(family_id)
            .filter_series()
            .filter_possibly_in_range(window_start, window_end)
            .prefetch_related("participants")
            .order_by("start_time", "id")
        )

    def save_event(
        self, event: CalendarEvent, participant_ids: Iterable[uuid.UUID] | None = None
    ) -> CalendarEvent:
        event.save()
        if participant_ids is not None:
            event.participants.set(list(participant_ids))
        return event

    def delete_event(self, event: CalendarEvent) -> None:
        self.delete_exceptions(event.family_id, event.id)
        self.delete_completions(event.family_id, event.id)
        event.delete()

    def get_exceptions(
        self, family_id: uuid.UUID, event_ids: Iterable[uuid.UUID]
    ) -> dict[uuid.UUID, dict[datetime.date, EventRecurrenceException]]:
        exceptions_by_event: dict[uuid.UUID, dict[datetime.date, EventRecurrenceException]] = (
            defaultdict(dict)
        )
        queryset = (
            EventRecurrenceException.objects.filter_by_family(family_id)
            .filter_by_parent_events(list(event_ids))
            .select_related("modified_event")
            .prefetch_related("modified_event__participants")
        )
        for exception in queryset:
            exceptions_by_event[exception.parent_event_id][exception.occurrence_date] = exception
        return dict(exceptions_by_event)

    def get_exception(
        self, family_id: uuid.UUID, event_id: uuid.UUID, occurrence_date: datetime.date
    ) -> EventRecurrenceException | None:
        return (
            EventRecurrenceException.objects.filter_by_family(family_id)
            .select_related("modified_event")
            .filter(parent_event_id=event_id, occurrence_date=occurrence_date)
            .first()
        )

    def save_exception(self, exception: EventRecurrenceException) -> EventRecurrenceException:
        exception.save()
        return exception

    def delete_exceptions(
        self,
        family_id: uuid.UUID,
        event_id: uuid.UUID,
        occurrence_dates: Iterable[datetime.date] | None = None,
        on_or_after: datetime.date | None = None,
    ) -> int:
        queryset = EventRecurrenceException.objects.filter_by_family(family_id).filter(
            parent_event_id=event_id
        )
        if occurrence_dates is not None:
            queryset = queryset.filter(occurrence_date__in=list(occurrence_dates))
        if on_or_after is not None:
            queryset = queryset.filter_on_or_after(on_or_after)

        snapshot_ids = list(
            queryset.filter(modified_event__isnull=False).values_list("modified_event_id", flat=True)
        )
        deleted_count, _ = queryset.delete()
        if snapshot_ids:
            CalendarEvent.objects.filter_by_family(family_id).filter(
                id__in=snapshot_ids, is_recurring_exception=True
            ).delete()
        return deleted_count

    def reassign_exceptions(
        self,
        family_id: uuid.UUID,
        from_event_id: uuid.UUID,
        to_event_id: uuid.UUID,
        on_or_after: datetime.date,
    ) -> int:
        return (
            EventRecurrenceException.objects.filter_by_family(family_id)
            .filter(parent_event_id=from_event_id)
            .filter_on_or_after(on_or_after)
            .update(parent_event_id=to_event_id)
        )

    def get_completions(
        self,
        family_id: uuid.UUID,
        event_ids: Iterable[uuid.UUID],
        window_start: datetime.date | None = None,
        window_end: datetime.date | None = None,
    ) -> dict[tuple[uuid.UUID, datetime.date], list[EventTaskCompletion]]:
        queryset = EventTaskCompletion.objects.filter_by_family(family_id).filter_by_events(
            list(event_ids)
        )
        if window_start is not None:
            queryset = queryset.filter(occurrence_date__gte=window_start)
        if window_end is not None:
            queryset = queryset.filter(occurrence_date__lt=window_end)

        completions: dict[tuple[uuid.UUID, datetime.date], list[EventTaskCompletion]] = (
            defaultdict(list)
        )
        for completion in queryset.order_by("completed_at"):
            completions[(completion.event_id, completion.occurrence_date)].append(completion)
        return dict(completions)

    def get_occurrence_completions(
        self, family_id: uuid.UUID, event_id: uuid.UUID, occurrence_date: datetime.date
    ) -> list[EventTaskCompletion]:
        return list(
            EventTaskCompletion.objects.filter_by_family(family_id)
            .filter_by_occurrence(event_id, occurrence_date)
            .order_by("completed_at")
        )

    def get_event_completions(
        self, family_id: uuid.UUID, event_id: uuid.UUID
    ) -> list[EventTaskCompletion]:
        return list(
            EventTaskCompletion.objects.filter_by_family(family_id)
            .filter(event_id=event_id)
            .order_by("occurrence_date", "completed_at")
        )

    def get_member_completions(
        self, family_id: uuid.UUID, member_id: uuid.UUID
    ) -> list[EventTaskCompletion]:
        return list(
            EventTaskCompletion.objects.filter_by_family(family_id)
            .filter(member_id=member_id)
            .order_by("-completed_at")
        )

    def create_completion(self, completion: EventTaskCompletion) -> EventTaskCompletion:
        completion.save(force_insert=True)
        return completion

    def delete_completions(
        self,
        family_id: uuid.UUID,
        event_id: uuid.UUID,
        occurrence_date: datetime.date | None = None,
        occurrence_dates: Iterable[datetime.date] | None = None,
        on_or_after: datetime.date | None = None,
    ) -> int:
        queryset = EventTaskCompletion.objects.filter_by_family(family_id).filter(
            event_id=event_id
        )
        if occurrence_date is not None:
            queryset = queryset.filter(occurrence_date=occurrence_date)
        if occurrence_dates is not None:
            queryset = queryset.filter(occurrence_date__in=list(occurrence_dates))
        if on_or_after is not None:
            queryset = queryset.filter_on_or_after(on_or_after)
        deleted_count, _ = queryset.delete()
        return deleted_count

    def reassign_completions(
        self,
        family_id: uuid.UUID,
        from_event_id: uuid.UUID,
        to_event_id: uuid.UUID,
        on_or_after: datetime.date,
    ) -> int:
        return (
            EventTaskCompletion.objects.filter_by_family(family_id)
            .filter(event_id=from_event_id)
            .filter_on_or_after(on_or_after)
            .update(event_id=to_event_id)
        )
