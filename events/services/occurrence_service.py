import datetime
import logging
import uuid
from typing import TYPE_CHECKING, Annotated, assert_never

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from dependency_injector.wiring import Provide, inject

from events.constants import OccurrencePermission, OccurrenceScope, RecurrenceExceptionKind
from events.exceptions import (
    EditConflictError,
    EventNotFoundError,
    InvalidOccurrenceError,
    InvalidRecurrenceRuleError,
    InvalidWindowError,
    OccurrenceStoreNotInjectedError,
)
from events.models import CalendarEvent, EventRecurrenceException
from events.recurrence import EndCondition, RecurrenceRule
from events.recurrence_utils import (
    OccurrenceGenerator,
    OccurrenceValidator,
    RangeValidator,
    RecurrenceRuleSplitter,
)
from events.services.dataclasses import (
    CacheScope,
    EventFieldsInputData,
    OccurrenceData,
    RecurrenceRuleInputData,
)
from events.services.decorators import requires_initialization
from events.services.materializer import Materializer, serialize_event, serialize_exception
from families.models import FamilyMember


if TYPE_CHECKING:
    from events.services.occurrence_cache import OccurrenceCache
    from events.services.occurrence_permission_service import OccurrencePermissionService
    from events.services.protocols.occurrence_store import OccurrenceStore


logger = logging.getLogger(__name__)


class OccurrenceService:
    """
    Lists, edits and deletes occurrences of family calendar events.

    Call `initialize` with the acting family member before using any operation.
    Every write runs in a single transaction; cached occurrences of the family are
    invalidated once that transaction commits.
    """

    actor: FamilyMember | None

    @inject
    def __init__(
        self,
        occurrence_store: Annotated["OccurrenceStore | None", Provide["occurrence_store"]] = None,
        occurrence_cache: Annotated["OccurrenceCache | None", Provide["occurrence_cache"]] = None,
        occurrence_permission_service: Annotated[
            "OccurrencePermissionService | None", Provide["occurrence_permission_service"]
        ] = None,
    ) -> None:
        self.actor = None
        self.occurrence_store = occurrence_store
        self.occurrence_cache = occurrence_cache
        self.occurrence_permission_service = occurrence_permission_service

    def initialize(self, actor: FamilyMember) -> None:
        """
        Set the family member on whose behalf the service acts.
        """
        if self.occurrence_store is None or self.occurrence_permission_service is None:
            raise OccurrenceStoreNotInjectedError(
                "OccurrenceService requires an occurrence store and a permission service."
            )
        self.actor = actor

    def _get_event(self, event_id: uuid.UUID, for_update: bool = False) -> CalendarEvent:
        event = self.occurrence_store.get_event(
            self.actor.family_id, event_id, for_update=for_update
        )
        if event is None:
            raise EventNotFoundError(f"Event {event_id} does not exist")
        return event

    def _invalidate_on_commit(self, family_id: uuid.UUID, event_id: uuid.UUID) -> None:
        if self.occurrence_cache is None:
            return
        scope = CacheScope(family_id=family_id, event_id=event_id)
        transaction.on_commit(lambda: self.occurrence_cache.invalidate(scope))

    @staticmethod
    def _build_rule(
        recurrence: RecurrenceRuleInputData, start_date: datetime.date
    ) -> RecurrenceRule:
        return RecurrenceRule(
            type=recurrence.type,
            start_date=start_date,
            interval=recurrence.interval,
            end_condition=EndCondition.from_fields(recurrence.until, recurrence.count),
        )

    def _validate_fields(self, fields: EventFieldsInputData) -> None:
        if fields.recurrence is not None:
            self._build_rule(fields.recurrence, timezone.localdate())

    @staticmethod
    def _validate_occurrence_date(event: CalendarEvent, occurrence_date: datetime.date) -> None:
        if not OccurrenceValidator.validate_modification_date(
            event.recurrence_rule, occurrence_date
        ):
            raise InvalidOccurrenceError(
                f"{occurrence_date.isoformat()} is not an occurrence of event {event.id}"
            )

    @staticmethod
    def _apply_fields(event: CalendarEvent, fields: EventFieldsInputData) -> None:
        for field_name in ("title", "description", "location", "is_all_day", "is_task"):
            value = getattr(fields, field_name)
            if value is not None:
                setattr(event, field_name, value)

    @staticmethod
    def _resolve_times(
        fields: EventFieldsInputData,
        default_start_time: datetime.datetime,
        duration: datetime.timedelta,
    ) -> tuple[datetime.datetime, datetime.datetime]:
        start_time = fields.start_time or default_start_time
        end_time = fields.end_time or start_time + duration
        return start_time, end_time

    @staticmethod
    def _participant_ids(event: CalendarEvent, fields: EventFieldsInputData) -> list[uuid.UUID]:
        if fields.participant_ids is not None:
            return list(fields.participant_ids)
        return [participant.id for participant in event.participants.all()]

    def _copy_event(self, event: CalendarEvent, fields: EventFieldsInputData) -> CalendarEvent:
        """Return an unsaved, non-recurring copy of ``event`` with ``fields`` applied."""
        copy = CalendarEvent(
            family_id=event.family_id,
            title=event.title,
            description=event.description,
            location=event.location,
            start_time=event.start_time,
            end_time=event.end_time,
            is_all_day=event.is_all_day,
            is_task=event.is_task,
            created_by_id=event.created_by_id,
        )
        self._apply_fields(copy, fields)
        return copy

    def _prune_dropped_dates(self, event: CalendarEvent) -> None:
        """
        Delete exceptions and completions of ``event`` on dates its rule no longer
        produces. Every completion goes once the event is no longer a task.
        """
        rule = event.recurrence_rule
        exceptions = self.occurrence_store.get_exceptions(event.family_id, [event.id]).get(
            event.id, {}
        )
        stale_dates = [
            occurrence_date
            for occurrence_date in exceptions
            if not rule.is_recurring or not OccurrenceValidator.is_occurrence(rule, occurrence_date)
        ]
        if stale_dates:
            self.occurrence_store.delete_exceptions(
                event.family_id, event.id, occurrence_dates=stale_dates
            )

        if not event.is_task:
            self.occurrence_store.delete_completions(event.family_id, event.id)
            return
        stale_completion_dates = {
            completion.occurrence_date
            for completion in self.occurrence_store.get_event_completions(
                event.family_id, event.id
            )
            if not OccurrenceValidator.is_occurrence(rule, completion.occurrence_date)
        }
        if stale_completion_dates:
            self.occurrence_store.delete_completions(
                event.family_id, event.id, occurrence_dates=stale_completion_dates
            )

    @staticmethod
    def _ensure_has_occurrences(rule: RecurrenceRule) -> None:
        if OccurrenceGenerator.last_index(rule) == -1:
            raise InvalidRecurrenceRuleError(
                f"A series starting on {rule.start_date.isoformat()} would have no occurrences."
            )

    def _materialize_events(
        self,
        events: list[CalendarEvent],
        window_start: datetime.date,
        window_end: datetime.date,
    ) -> list[OccurrenceData]:
        family_id = self.actor.family_id
        exceptions = self.occurrence_store.get_exceptions(
            family_id, [event.id for event in events if event.is_recurring]
        )
        task_event_ids = [event.id for event in events if event.is_task]
        completions = (
            self.occurrence_store.get_completions(
                family_id, task_event_ids, window_start=window_start, window_end=window_end
            )
            if task_event_ids
            else {}
        )

        occurrences: list[OccurrenceData] = []
        for event in events:
            rule = event.recurrence_rule
            RangeValidator.validate(
                rule, window_start, window_end, settings.OCCURRENCE_MAX_SPAN_DAYS
            )
            event_exceptions = {
                occurrence_date: serialize_exception(exception)
                for occurrence_date, exception in exceptions.get(event.id, {}).items()
            }
            for occurrence in Materializer.materialize(
                serialize_event(event),
                rule,
                window_start,
                window_end,
                event_exceptions,
                max_instances=settings.OCCURRENCE_MAX_INSTANCES_PER_EVENT,
            ):
                if event.is_task:
                    occurrence.is_completed = (event.id, occurrence.occurrence_date) in completions
                occurrences.append(occurrence)

        occurrences.sort(key=lambda occurrence: (occurrence.start_time, str(occurrence.event_id)))
        return occurrences

    @requires_initialization
    def get_occurrences(
        self,
        window_start: datetime.date,
        window_end: datetime.date,
        event_id: uuid.UUID | None = None,
        family_id: uuid.UUID | None = None,
    ) -> list[OccurrenceData]:
        """
        Return the visible occurrences in ``[window_start, window_end)`` of one event or
        of every event of a family, sorted by start time.
        :param event_id: Expand a single event of the actor's family.
        :param family_id: Expand every event of the family. Results are cached.
        """
        if (event_id is None) == (family_id is None):
            raise ValueError("Provide exactly one of `event_id` or `family_id`.")
        if window_end < window_start:
            raise InvalidWindowError()

        if event_id is not None:
            event = self._get_event(event_id)
            self.occurrence_permission_service.check_permission(
                self.actor, event.family_id, OccurrencePermission.VIEW
            )
            return self._materialize_events([event], window_start, window_end)

        self.occurrence_permission_service.check_permission(
            self.actor, family_id, OccurrencePermission.VIEW
        )
        window_key = None
        if self.occurrence_cache is not None:
            window_key = self.occurrence_cache.get_window_key(family_id, window_start, window_end)
        if window_key is not None:
            cached_occurrences = self.occurrence_cache.get_occurrences(window_key)
            if cached_occurrences is not None:
                return cached_occurrences

        events = self.occurrence_store.get_family_events(family_id, window_start, window_end)
        occurrences = self._materialize_events(events, window_start, window_end)

        if window_key is not None:
            self.occurrence_cache.set_occurrences(window_key, occurrences)
        return occurrences

    @requires_initialization
    def get_upcoming_occurrences(self, days: int | None = None) -> list[OccurrenceData]:
        """
        Return the actor's family occurrences from today on, for ``days`` days.
        """
        if days is None:
            days = settings.OCCURRENCE_DEFAULT_UPCOMING_DAYS
        window_start = timezone.localdate()
        return self.get_occurrences(
            window_start,
            window_start + datetime.timedelta(days=days),
            family_id=self.actor.family_id,
        )

    def _update_event(self, event: CalendarEvent, fields: EventFieldsInputData) -> CalendarEvent:
        self._apply_fields(event, fields)
        event.start_time, event.end_time = self._resolve_times(
            fields, event.start_time, event.duration
        )
        if fields.recurrence is not None:
            event.apply_recurrence_rule(self._build_rule(fields.recurrence, event.start_date))
        self._ensure_has_occurrences(event.recurrence_rule)

        self.occurrence_store.save_event(event, fields.participant_ids)
        self._prune_dropped_dates(event)
        return event

    def _edit_this_occurrence(
        self, event: CalendarEvent, occurrence_date: datetime.date, fields: EventFieldsInputData
    ) -> CalendarEvent:
        snapshot = self._copy_event(event, fields)
        snapshot.start_time, snapshot.end_time = self._resolve_times(
            fields, event.occurrence_start_time(occurrence_date), event.duration
        )
        snapshot.is_recurring_exception = True
        self.occurrence_store.save_event(snapshot, self._participant_ids(event, fields))

        exception = self.occurrence_store.get_exception(
            event.family_id, event.id, occurrence_date
        )
        previous_snapshot = None
        if exception is None:
            exception = EventRecurrenceException(
                family_id=event.family_id,
                parent_event=event,
                occurrence_date=occurrence_date,
            )
        else:
            previous_snapshot = exception.modified_event
        exception.kind = RecurrenceExceptionKind.MODIFIED
        exception.modified_event = snapshot
        self.occurrence_store.save_exception(exception)

        if previous_snapshot is not None:
            self.occurrence_store.delete_event(previous_snapshot)
        return snapshot

    def _edit_this_and_following(
        self, event: CalendarEvent, occurrence_date: datetime.date, fields: EventFieldsInputData
    ) -> CalendarEvent:
        rule = event.recurrence_rule
        if occurrence_date == rule.start_date:
            return self._update_event(event, fields)

        truncated_rule, continuation_rule = RecurrenceRuleSplitter.split_at_date(
            rule, occurrence_date
        )

        new_event = self._copy_event(event, fields)
        new_event.start_time, new_event.end_time = self._resolve_times(
            fields, event.occurrence_start_time(occurrence_date), event.duration
        )
        if fields.recurrence is not None:
            new_rule = self._build_rule(fields.recurrence, new_event.start_date)
        else:
            new_rule = continuation_rule.with_start_date(new_event.start_date)
        self._ensure_has_occurrences(new_rule)
        new_event.apply_recurrence_rule(new_rule)

        event.apply_recurrence_rule(truncated_rule)
        self.occurrence_store.save_event(event)
        self.occurrence_store.save_event(new_event, self._participant_ids(event, fields))

        self.occurrence_store.reassign_exceptions(
            event.family_id, event.id, new_event.id, on_or_after=occurrence_date
        )
        self.occurrence_store.reassign_completions(
            event.family_id, event.id, new_event.id, on_or_after=occurrence_date
        )
        self._prune_dropped_dates(new_event)
        return new_event

    @requires_initialization
    def edit_occurrence(
        self,
        event_id: uuid.UUID,
        occurrence_date: datetime.date,
        scope: OccurrenceScope,
        fields: EventFieldsInputData,
    ) -> CalendarEvent:
        """
        Edit one occurrence, an occurrence and the following ones, or a whole series.

        THIS stores the edited fields in a detached snapshot and returns it.
        THIS_AND_FOLLOWING ends the series before ``occurrence_date`` and returns the
        new series that starts there. ALL rewrites the series and returns it.
        Non-recurring events are edited in place for any scope.
        Exceptions and completions on dates the edited series no longer produces are
        deleted, and so are all completions of a series that is no longer a task.

        Raises:
            EventNotFoundError: If the event is not in the actor's family.
            InvalidOccurrenceError: If the event has no occurrence on ``occurrence_date``.
            InvalidRecurrenceRuleError: If ``fields`` carries an invalid recurrence
                or the edited series would have no occurrences.
            EditConflictError: If a concurrent edit of the same occurrence won.
        """
        scope = OccurrenceScope(scope)
        self._validate_fields(fields)

        try:
            with transaction.atomic():
                event = self._get_event(event_id, for_update=True)
                self.occurrence_permission_service.check_permission(
                    self.actor, event.family_id, OccurrencePermission.EDIT
                )
                self._validate_occurrence_date(event, occurrence_date)

                edited_event: CalendarEvent
                if not event.is_recurring:
                    edited_event = self._update_event(event, fields)
                else:
                    match scope:
                        case OccurrenceScope.THIS:
                            edited_event = self._edit_this_occurrence(
                                event, occurrence_date, fields
                            )
                        case OccurrenceScope.THIS_AND_FOLLOWING:
                            edited_event = self._edit_this_and_following(
                                event, occurrence_date, fields
                            )
                        case OccurrenceScope.ALL:
                            edited_event = self._update_event(event, fields)
                        case _:
                            assert_never(scope)

                self._invalidate_on_commit(event.family_id, event.id)
        except IntegrityError as e:
            raise EditConflictError() from e

        logger.info(
            "Member %s edited occurrence %s of event %s (scope: %s)",
            self.actor.id,
            occurrence_date,
            event_id,
            scope,
        )
        return edited_event

    def _cancel_occurrence(self, event: CalendarEvent, occurrence_date: datetime.date) -> None:
        exception = self.occurrence_store.get_exception(
            event.family_id, event.id, occurrence_date
        )
        previous_snapshot = None
        if exception is None:
            exception = EventRecurrenceException(
                family_id=event.family_id,
                parent_event=event,
                occurrence_date=occurrence_date,
            )
        else:
            previous_snapshot = exception.modified_event
        exception.kind = RecurrenceExceptionKind.CANCELLED
        exception.modified_event = None
        self.occurrence_store.save_exception(exception)

        if previous_snapshot is not None:
            self.occurrence_store.delete_event(previous_snapshot)
        self.occurrence_store.delete_completions(
            event.family_id, event.id, occurrence_date=occurrence_date
        )

    def _truncate_series(self, event: CalendarEvent, occurrence_date: datetime.date) -> None:
        rule = event.recurrence_rule
        if occurrence_date == rule.start_date:
            self.occurrence_store.delete_event(event)
            return

        truncated_rule, _ = RecurrenceRuleSplitter.split_at_date(rule, occurrence_date)
        event.apply_recurrence_rule(truncated_rule)
        self.occurrence_store.save_event(event)
        self.occurrence_store.delete_exceptions(
            event.family_id, event.id, on_or_after=occurrence_date
        )
        self.occurrence_store.delete_completions(
            event.family_id, event.id, on_or_after=occurrence_date
        )

    @requires_initialization
    def delete_occurrence(
        self, event_id: uuid.UUID, occurrence_date: datetime.date, scope: OccurrenceScope
    ) -> None:
        """
        Cancel one occurrence, end a series before an occurrence, or delete a whole series.
        Non-recurring events are deleted for any scope.
        """
        scope = OccurrenceScope(scope)

        try:
            with transaction.atomic():
                event = self._get_event(event_id, for_update=True)
                self.occurrence_permission_service.check_permission(
                    self.actor, event.family_id, OccurrencePermission.DELETE
                )
                self._validate_occurrence_date(event, occurrence_date)

                family_id = event.family_id
                if not event.is_recurring:
                    self.occurrence_store.delete_event(event)
                else:
                    match scope:
                        case OccurrenceScope.THIS:
                            self._cancel_occurrence(event, occurrence_date)
                        case OccurrenceScope.THIS_AND_FOLLOWING:
                            self._truncate_series(event, occurrence_date)
                        case OccurrenceScope.ALL:
                            self.occurrence_store.delete_event(event)
                        case _:
                            assert_never(scope)

                self._invalidate_on_commit(family_id, event_id)
        except IntegrityError as e:
            raise EditConflictError() from e

        logger.info(
            "Member %s deleted occurrence %s of event %s (scope: %s)",
            self.actor.id,
            occurrence_date,
            event_id,
            scope,
        )
