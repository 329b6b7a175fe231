import datetime

from django.db.models import Q

from events.constants import RecurrenceType
from families.querysets import BaseFamilyModelQuerySet


class CalendarEventQuerySet(BaseFamilyModelQuerySet):
    def filter_series(self):
        """Filter out occurrence snapshots, keeping events that are listed on their own."""
        return self.filter(is_recurring_exception=False)

    def filter_possibly_in_range(self, window_start: datetime.date, window_end: datetime.date):
        """
        Keep events that may have occurrences inside ``[window_start, window_end)``.

        This is a coarse database filter; the generator decides the exact dates.
        """
        return self.filter(
            Q(
                recurrence_type=RecurrenceType.NONE,
                start_time__date__gte=window_start,
                start_time__date__lt=window_end,
            )
            | (
                ~Q(recurrence_type=RecurrenceType.NONE)
                & Q(start_time__date__lt=window_end)
                & (Q(recurrence_until__isnull=True) | Q(recurrence_until__gte=window_start))
            )
        )


class EventRecurrenceExceptionQuerySet(BaseFamilyModelQuerySet):
    def filter_by_parent_events(self, event_ids):
        return self.filter(parent_event_id__in=event_ids)

    def filter_on_or_after(self, occurrence_date: datetime.date):
        return self.filter(occurrence_date__gte=occurrence_date)


class EventTaskCompletionQuerySet(BaseFamilyModelQuerySet):
    def filter_by_events(self, event_ids):
        return self.filter(event_id__in=event_ids)

    def filter_by_occurrence(self, event_id, occurrence_date: datetime.date):
        return self.filter(event_id=event_id, occurrence_date=occurrence_date)

    def filter_on_or_after(self, occurrence_date: datetime.date):
        return self.filter(occurrence_date__gte=occurrence_date)
