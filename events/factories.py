import datetime

from events.constants import RecurrenceType
from events.models import CalendarEvent


class CalendarEventFactory:
    @staticmethod
    def create_event(
        family,
        title: str,
        start_time: datetime.datetime,
        end_time: datetime.datetime | None = None,
        participants=None,
        **kwargs,
    ) -> CalendarEvent:
        """
        Create a one-time calendar event.

        Args:
            family: Family that owns the event
            title: Event title
            start_time: Event start time
            end_time: Event end time (default: one hour after start)
            participants: Family members taking part in the event
            **kwargs: Additional CalendarEvent fields

        Returns:
            Saved CalendarEvent instance
        """
        event = CalendarEvent.objects.create(
            family=family,
            title=title,
            start_time=start_time,
            end_time=end_time or start_time + datetime.timedelta(hours=1),
            **kwargs,
        )
        if participants:
            event.participants.set(participants)
        return event

    @staticmethod
    def create_recurring_event(
        family,
        title: str,
        start_time: datetime.datetime,
        recurrence_type: RecurrenceType,
        end_time: datetime.datetime | None = None,
        interval: int = 1,
        until: datetime.date | None = None,
        count: int | None = None,
        participants=None,
        **kwargs,
    ) -> CalendarEvent:
        """
        Create a recurring calendar event.

        Args:
            family: Family that owns the event
            title: Event title
            start_time: Start time of the first occurrence
            recurrence_type: Recurrence type (DAILY, WEEKLY, MONTHLY, YEARLY)
            end_time: End time of the first occurrence (default: one hour after start)
            interval: Interval between occurrences (default: 1)
            until: Date of the last possible occurrence (optional)
            count: Number of occurrences (optional)
            participants: Family members taking part in the event
            **kwargs: Additional CalendarEvent fields

        Returns:
            Saved CalendarEvent instance
        """
        return CalendarEventFactory.create_event(
            family=family,
            title=title,
            start_time=start_time,
            end_time=end_time,
            participants=participants,
            recurrence_type=recurrence_type,
            recurrence_interval=interval,
            recurrence_until=until,
            recurrence_count=count,
            **kwargs,
        )
