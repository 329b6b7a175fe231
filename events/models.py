import datetime

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from events.constants import EndConditionKind, RecurrenceExceptionKind, RecurrenceType
from events.managers import (
    CalendarEventManager,
    EventRecurrenceExceptionManager,
    EventTaskCompletionManager,
)
from events.recurrence import EndCondition, RecurrenceRule
from events.recurrence_utils import shift_to_date
from families.models import FamilyMember, FamilyModel


class CalendarEvent(FamilyModel):
    """
    Represents an event on a family calendar.

    The recurrence rule is stored in the `recurrence_*` columns and read back through
    `recurrence_rule`. Events with `is_recurring_exception` set are detached
    snapshots holding the fields of a single modified occurrence.
    """

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    is_all_day = models.BooleanField(default=False)
    is_task = models.BooleanField(
        default=False, help_text="Task events track per-occurrence completion"
    )
    created_by = models.ForeignKey(
        FamilyMember,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_events",
    )
    participants = models.ManyToManyField(
        FamilyMember,
        related_name="calendar_events",
        blank=True,
    )
    is_recurring_exception = models.BooleanField(
        default=False,
        help_text="True for snapshots that store a single modified occurrence of a series",
    )

    # Recurrence fields
    recurrence_type = models.CharField(
        max_length=10,
        choices=RecurrenceType,
        default=RecurrenceType.NONE,
        help_text="How often the event repeats",
    )
    recurrence_interval = models.PositiveIntegerField(
        default=1, help_text="The interval between each repetition (e.g., every 2 weeks)"
    )
    recurrence_until = models.DateField(
        null=True, blank=True, help_text="Date of the last possible occurrence"
    )
    recurrence_count = models.PositiveIntegerField(
        null=True, blank=True, help_text="Number of occurrences after which the recurrence ends"
    )

    objects: CalendarEventManager = CalendarEventManager()

    def __str__(self):
        return f"{self.title} ({self.start_time} - {self.end_time})"

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_type != RecurrenceType.NONE

    @property
    def start_date(self) -> datetime.date:
        """Calendar date of the first occurrence, in the project time zone."""
        return timezone.localtime(self.start_time).date()

    @property
    def duration(self) -> datetime.timedelta:
        return self.end_time - self.start_time

    @property
    def recurrence_rule(self) -> RecurrenceRule:
        if not self.is_recurring:
            return RecurrenceRule.non_recurring(self.start_date)
        return RecurrenceRule(
            type=RecurrenceType(self.recurrence_type),
            start_date=self.start_date,
            interval=self.recurrence_interval,
            end_condition=EndCondition.from_fields(self.recurrence_until, self.recurrence_count),
        )

    def apply_recurrence_rule(self, rule: RecurrenceRule) -> None:
        """Copy ``rule`` into the recurrence columns. The rule must start on the event's date."""
        if rule.start_date != self.start_date:
            raise ValueError("Recurrence rule must start on the event start date")

        self.recurrence_type = rule.type
        self.recurrence_interval = rule.interval
        self.recurrence_until = None
        self.recurrence_count = None
        if not rule.is_recurring:
            return
        if rule.end_condition.kind == EndConditionKind.ON_DATE:
            self.recurrence_until = rule.end_condition.until
        elif rule.end_condition.kind == EndConditionKind.AFTER_COUNT:
            self.recurrence_count = rule.end_condition.count

    def occurrence_start_time(self, occurrence_date: datetime.date) -> datetime.datetime:
        """Start datetime of the occurrence on ``occurrence_date``, keeping the local wall time."""
        return shift_to_date(self.start_time, occurrence_date)

    def occurrence_end_time(self, occurrence_date: datetime.date) -> datetime.datetime:
        return self.occurrence_start_time(occurrence_date) + self.duration

    def clean(self):
        """
        Validate the event and its recurrence columns.
        """
        if self.end_time < self.start_time:
            raise ValidationError("Event end time must not be before its start time.")

        if self.recurrence_count and self.recurrence_until:
            raise ValidationError(
                "Cannot specify both 'recurrence_until' and 'recurrence_count' for an event."
            )

        if self.recurrence_interval < 1:
            raise ValidationError("Interval must be at least 1.")

        if not self.is_recurring and (self.recurrence_count or self.recurrence_until):
            raise ValidationError("A non-recurring event cannot have an end condition.")

        if self.is_recurring and self.is_recurring_exception:
            raise ValidationError("An occurrence snapshot cannot be recurring.")

    def save(self, *args, **kwargs):
        """Override save to run validation."""
        self.clean()
        super().save(*args, **kwargs)


class EventRecurrenceException(FamilyModel):
    """
    Represents an exception to a recurring event (cancelled or modified occurrence).

    Exceptions are keyed by the date of the occurrence they replace.
    """

    parent_event = models.ForeignKey(
        CalendarEvent,
        on_delete=models.CASCADE,
        related_name="recurrence_exceptions",
        help_text="The recurring event this exception applies to",
    )
    occurrence_date = models.DateField(
        help_text="The original date of the occurrence being excepted"
    )
    kind = models.CharField(max_length=10, choices=RecurrenceExceptionKind)
    modified_event = models.ForeignKey(
        CalendarEvent,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="exception_for",
        help_text="If the occurrence is modified (not cancelled), points to the modified event",
    )

    objects: EventRecurrenceExceptionManager = EventRecurrenceExceptionManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["parent_event", "occurrence_date"],
                name="events_unique_exception_per_occurrence",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(
                        kind=RecurrenceExceptionKind.MODIFIED, modified_event__isnull=False
                    )
                    | models.Q(
                        kind=RecurrenceExceptionKind.CANCELLED, modified_event__isnull=True
                    )
                ),
                name="events_modified_event_iff_modified",
            ),
        ]

    def __str__(self):
        return f"Exception for {self.parent_event_id} on {self.occurrence_date} ({self.kind})"

    @property
    def is_cancelled(self) -> bool:
        return self.kind == RecurrenceExceptionKind.CANCELLED


class EventTaskCompletion(FamilyModel):
    """
    Marks one occurrence of a task event as done by a participant.

    Completion is shared: an occurrence is complete while any row exists for it.
    """

    event = models.ForeignKey(
        CalendarEvent,
        on_delete=models.CASCADE,
        related_name="task_completions",
    )
    member = models.ForeignKey(
        FamilyMember,
        on_delete=models.CASCADE,
        related_name="task_completions",
    )
    occurrence_date = models.DateField()
    completed_at = models.DateTimeField(default=timezone.now)

    objects: EventTaskCompletionManager = EventTaskCompletionManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["event", "occurrence_date", "member"],
                name="events_unique_completion_per_member",
            ),
        ]

    def __str__(self):
        return f"{self.member_id} completed {self.event_id} on {self.occurrence_date}"
