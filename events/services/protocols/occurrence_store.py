import datetime
import uuid
from collections.abc import Iterable
from typing import Protocol

from events.models import CalendarEvent, EventRecurrenceException, EventTaskCompletion


class OccurrenceStore(Protocol):
    """Persistence for events, occurrence exceptions and task completions.

    Every read and write is scoped to a family.
    """

    def get_event(
        self, family_id: uuid.UUID, event_id: uuid.UUID, for_update: bool = False
    ) -> CalendarEvent | None:
        """
        Load one event of the family.
        :param for_update: Lock the row until the surrounding transaction ends.
        :return: The event or None if it does not exist in the family.
        """
        ...

    def get_family_events(
        self, family_id: uuid.UUID, window_start: datetime.date, window_end: datetime.date
    ) -> list[CalendarEvent]:
        """
        Load the listed (non-snapshot) events that may occur in ``[window_start, window_end)``.
        """
        ...

    def save_event(
        self, event: CalendarEvent, participant_ids: Iterable[uuid.UUID] | None = None
    ) -> CalendarEvent:
        """
        Insert or update an event. Participants are replaced when ``participant_ids`` is given.
        """
        ...

    def delete_event(self, event: CalendarEvent) -> None:
        """
        Delete an event with its exceptions, their snapshots and its completions.
        """
        ...

    def get_exceptions(
        self, family_id: uuid.UUID, event_ids: Iterable[uuid.UUID]
    ) -> dict[uuid.UUID, dict[datetime.date, EventRecurrenceException]]:
        """
        Load exceptions grouped by parent event and keyed by occurrence date.
        """
        ...

    def get_exception(
        self, family_id: uuid.UUID, event_id: uuid.UUID, occurrence_date: datetime.date
    ) -> EventRecurrenceException | None:
        ...

    def save_exception(self, exception: EventRecurrenceException) -> EventRecurrenceException:
        ...

    def delete_exceptions(
        self,
        family_id: uuid.UUID,
        event_id: uuid.UUID,
        occurrence_dates: Iterable[datetime.date] | None = None,
        on_or_after: datetime.date | None = None,
    ) -> int:
        """
        Delete exceptions of an event together with their snapshots.
        :param occurrence_dates: Only delete exceptions on these dates.
        :param on_or_after: Only delete exceptions on or after this date.
        :return: Number of deleted exceptions.
        """
        ...

    def reassign_exceptions(
        self,
        family_id: uuid.UUID,
        from_event_id: uuid.UUID,
        to_event_id: uuid.UUID,
        on_or_after: datetime.date,
    ) -> int:
        """
        Move exceptions dated on or after ``on_or_after`` to another event.
        """
        ...

    def get_completions(
        self,
        family_id: uuid.UUID,
        event_ids: Iterable[uuid.UUID],
        window_start: datetime.date | None = None,
        window_end: datetime.date | None = None,
    ) -> dict[tuple[uuid.UUID, datetime.date], list[EventTaskCompletion]]:
        """
        Load completions grouped by ``(event_id, occurrence_date)``.
        """
        ...

    def get_occurrence_completions(
        self, family_id: uuid.UUID, event_id: uuid.UUID, occurrence_date: datetime.date
    ) -> list[EventTaskCompletion]:
        ...

    def get_event_completions(
        self, family_id: uuid.UUID, event_id: uuid.UUID
    ) -> list[EventTaskCompletion]:
        ...

    def get_member_completions(
        self, family_id: uuid.UUID, member_id: uuid.UUID
    ) -> list[EventTaskCompletion]:
        ...

    def create_completion(self, completion: EventTaskCompletion) -> EventTaskCompletion:
        """
        Insert a completion row. Raises ``IntegrityError`` if the member already completed it.
        """
        ...

    def delete_completions(
        self,
        family_id: uuid.UUID,
        event_id: uuid.UUID,
        occurrence_date: datetime.date | None = None,
        occurrence_dates: Iterable[datetime.date] | None = None,
        on_or_after: datetime.date | None = None,
    ) -> int:
        ...

    def reassign_completions(
        self,
        family_id: uuid.UUID,
        from_event_id: uuid.UUID,
        to_event_id: uuid.UUID,
        on_or_after: datetime.date,
    ) -> int:
        ...
