import datetime
import logging
import uuid
from typing import TYPE_CHECKING, Annotated

from django.db import IntegrityError, transaction

from dependency_injector.wiring import Provide, inject

from events.constants import OccurrencePermission
from events.exceptions import (
    CompletionInvalidOccurrenceError,
    EventNotFoundError,
    NotTaskEventError,
    OccurrenceStoreNotInjectedError,
    ParticipantNotInFamilyError,
)
from events.models import CalendarEvent, EventTaskCompletion
from events.services.dataclasses import CacheScope, CompletionStateData, TaskCompletionData
from events.services.decorators import requires_initialization
from events.services.materializer import Materializer, serialize_exception
from families.models import FamilyMember


if TYPE_CHECKING:
    from events.services.occurrence_permission_service import OccurrencePermissionService
    from events.services.protocols.cache_invalidation_notifier import CacheInvalidationNotifier
    from events.services.protocols.family_directory import FamilyDirectory
    from events.services.protocols.occurrence_store import OccurrenceStore


logger = logging.getLogger(__name__)


class CompletionService:
    """
    Tracks completion of task occurrences.

    Completion is shared by all participants: an occurrence is complete once any
    participant completed it, and toggling a complete occurrence clears it for everyone.
    """

    actor: FamilyMember | None

    @inject
    def __init__(
        self,
        occurrence_store: Annotated["OccurrenceStore | None", Provide["occurrence_store"]] = None,
        family_directory: Annotated["FamilyDirectory | None", Provide["family_directory"]] = None,
        occurrence_cache: Annotated[
            "CacheInvalidationNotifier | None", Provide["occurrence_cache"]
        ] = None,
        occurrence_permission_service: Annotated[
            "OccurrencePermissionService | None", Provide["occurrence_permission_service"]
        ] = None,
    ) -> None:
        self.actor = None
        self.occurrence_store = occurrence_store
        self.family_directory = family_directory
        self.occurrence_cache = occurrence_cache
        self.occurrence_permission_service = occurrence_permission_service

    def initialize(self, actor: FamilyMember) -> None:
        if (
            self.occurrence_store is None
            or self.family_directory is None
            or self.occurrence_permission_service is None
        ):
            raise OccurrenceStoreNotInjectedError(
                "CompletionService requires an occurrence store, a family directory "
                "and a permission service."
            )
        self.actor = actor

    def _get_event(self, event_id: uuid.UUID) -> CalendarEvent:
        event = self.occurrence_store.get_event(self.actor.family_id, event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} does not exist")
        return event

    def _validate_completion_occurrence(
        self, event: CalendarEvent, occurrence_date: datetime.date
    ) -> None:
        exceptions = self.occurrence_store.get_exceptions(event.family_id, [event.id]).get(
            event.id, {}
        )
        event_exceptions = {
            exception_date: serialize_exception(exception)
            for exception_date, exception in exceptions.items()
        }
        if not Materializer.has_occurrence(
            event.recurrence_rule, occurrence_date, event_exceptions
        ):
            raise CompletionInvalidOccurrenceError(
                f"{occurrence_date.isoformat()} is not a visible occurrence of event {event.id}"
            )

    @staticmethod
    def _serialize_completion(completion: EventTaskCompletion) -> TaskCompletionData:
        return TaskCompletionData(
            event_id=completion.event_id,
            member_id=completion.member_id,
            occurrence_date=completion.occurrence_date,
            completed_at=completion.completed_at,
        )

    @requires_initialization
    def toggle_completion(
        self,
        event_id: uuid.UUID,
        occurrence_date: datetime.date,
        participant_id: uuid.UUID | None = None,
    ) -> CompletionStateData:
        """
        Flip the shared completion state of one task occurrence.

        :param participant_id: Member credited with the completion, the actor by default.
        :return: The completion state after the toggle.
        """
        if participant_id is None:
            participant_id = self.actor.id

        event = self._get_event(event_id)
        self.occurrence_permission_service.check_permission(
            self.actor, event.family_id, OccurrencePermission.TOGGLE_COMPLETION
        )
        if not event.is_task:
            raise NotTaskEventError()
        if not self.family_directory.is_member_of_family(participant_id, event.family_id):
            raise ParticipantNotInFamilyError()
        self._validate_completion_occurrence(event, occurrence_date)

        with transaction.atomic():
            deleted_count = self.occurrence_store.delete_completions(
                event.family_id, event.id, occurrence_date=occurrence_date
            )
            if not deleted_count:
                try:
                    with transaction.atomic():
                        self.occurrence_store.create_completion(
                            EventTaskCompletion(
                                family_id=event.family_id,
                                event=event,
                                member_id=participant_id,
                                occurrence_date=occurrence_date,
                            )
                        )
                except IntegrityError:
                    # The same member completed it concurrently
                    logger.info(
                        "Occurrence %s of task %s was already completed by member %s",
                        occurrence_date,
                        event.id,
                        participant_id,
                    )

            if self.occurrence_cache is not None:
                scope = CacheScope(family_id=event.family_id, event_id=event.id)
                transaction.on_commit(lambda: self.occurrence_cache.invalidate(scope))

        logger.info(
            "Member %s %s occurrence %s of task %s",
            participant_id,
            "reopened" if deleted_count else "completed",
            occurrence_date,
            event.id,
        )
        return self.get_completion_state(event.id, occurrence_date)

    @requires_initialization
    def get_completion_state(
        self, event_id: uuid.UUID, occurrence_date: datetime.date
    ) -> CompletionStateData:
        event = self._get_event(event_id)
        completions = self.occurrence_store.get_occurrence_completions(
            event.family_id, event.id, occurrence_date
        )
        return CompletionStateData(
            event_id=event.id,
            occurrence_date=occurrence_date,
            is_completed=bool(completions),
            completed_by=[completion.member_id for completion in completions],
        )

    @requires_initialization
    def get_task_completions(self, event_id: uuid.UUID) -> list[TaskCompletionData]:
        event = self._get_event(event_id)
        return [
            self._serialize_completion(completion)
            for completion in self.occurrence_store.get_event_completions(
                event.family_id, event.id
            )
        ]

    @requires_initialization
    def get_task_completions_for_member(self, member_id: uuid.UUID) -> list[TaskCompletionData]:
        if not self.family_directory.is_member_of_family(member_id, self.actor.family_id):
            raise ParticipantNotInFamilyError()
        return [
            self._serialize_completion(completion)
            for completion in self.occurrence_store.get_member_completions(
                self.actor.family_id, member_id
            )
        ]
