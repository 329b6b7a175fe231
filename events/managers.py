from events.querysets import (
    CalendarEventQuerySet,
    EventRecurrenceExceptionQuerySet,
    EventTaskCompletionQuerySet,
)
from families.managers import BaseFamilyModelManager


class CalendarEventManager(BaseFamilyModelManager):
    """
    Custom manager for CalendarEvent model to handle specific queries.
    """

    def get_queryset(self) -> CalendarEventQuerySet:
        return CalendarEventQuerySet(self.model, using=self._db)

    def filter_by_family(self, family_id) -> CalendarEventQuerySet:
        return self.get_queryset().filter_by_family(family_id)


class EventRecurrenceExceptionManager(BaseFamilyModelManager):
    def get_queryset(self) -> EventRecurrenceExceptionQuerySet:
        return EventRecurrenceExceptionQuerySet(self.model, using=self._db)

    def filter_by_family(self, family_id) -> EventRecurrenceExceptionQuerySet:
        return self.get_queryset().filter_by_family(family_id)


class EventTaskCompletionManager(BaseFamilyModelManager):
    def get_queryset(self) -> EventTaskCompletionQuerySet:
        return EventTaskCompletionQuerySet(self.model, using=self._db)

    def filter_by_family(self, family_id) -> EventTaskCompletionQuerySet:
        return self.get_queryset().filter_by_family(family_id)
