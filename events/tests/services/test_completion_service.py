import datetime
from unittest.mock import patch

from django.db import IntegrityError

import pytest

from events.constants import OccurrenceScope, RecurrenceType
from events.exceptions import (
    CompletionInvalidOccurrenceError,
    EventNotFoundError,
    NotTaskEventError,
    OccurrencePermissionError,
    OccurrenceStoreNotInjectedError,
    ParticipantNotInFamilyError,
    ServiceNotInitializedError,
)
from events.factories import CalendarEventFactory
from events.models import EventTaskCompletion
from events.services.completion_service import CompletionService
from events.services.dataclasses import EventFieldsInputData
from events.services.occurrence_cache import OccurrenceCache
from events.services.occurrence_permission_service import OccurrencePermissionService
from events.services.occurrence_service import OccurrenceService
from events.services.occurrence_store import DjangoOccurrenceStore
from families.services import DjangoFamilyDirectory


def _d(year, month, day):
    return datetime.date(year, month, day)


def _completion_service(actor):
    service = CompletionService(
        occurrence_store=DjangoOccurrenceStore(),
        family_directory=DjangoFamilyDirectory(),
        occurrence_cache=OccurrenceCache(),
        occurrence_permission_service=OccurrencePermissionService(),
    )
    service.initialize(actor)
    return service


@pytest.fixture
def completion_service(child):
    return _completion_service(child)


@pytest.fixture
def chore(family, child, dt):
    """Daily task from Jan 1 2024."""
    return CalendarEventFactory.create_recurring_event(
        family,
        "Feed the cat",
        dt(2024, 1, 1, 7),
        RecurrenceType.DAILY,
        participants=[child],
        is_task=True,
    )


def _completion_count(family):
    return EventTaskCompletion.objects.filter_by_family(family.id).count()


def test_operations_require_initialization():
    service = CompletionService(
        occurrence_store=DjangoOccurrenceStore(),
        family_directory=DjangoFamilyDirectory(),
        occurrence_permission_service=OccurrencePermissionService(),
    )

    with pytest.raises(ServiceNotInitializedError):
        service.get_task_completions_for_member(None)


@pytest.mark.django_db
def test_initialize_requires_injected_collaborators(child):
    service = CompletionService(
        occurrence_store=None,
        family_directory=None,
        occurrence_cache=None,
        occurrence_permission_service=None,
    )

    with pytest.raises(OccurrenceStoreNotInjectedError):
        service.initialize(child)


@pytest.mark.django_db
def test_container_builds_completion_service(di_container, child):
    service = di_container.completion_service()
    service.initialize(child)

    assert isinstance(service.family_directory, DjangoFamilyDirectory)
    assert isinstance(service.occurrence_store, DjangoOccurrenceStore)


@pytest.mark.django_db
def test_toggle_completes_then_reopens(completion_service, family, child, chore):
    state = completion_service.toggle_completion(chore.id, _d(2024, 1, 2))

    assert state.is_completed
    assert state.completed_by == [child.id]
    assert _completion_count(family) == 1

    state = completion_service.toggle_completion(chore.id, _d(2024, 1, 2))

    assert not state.is_completed
    assert state.completed_by == []
    assert _completion_count(family) == 0


@pytest.mark.django_db
def test_completion_is_shared_between_participants(family, parent, child, chore):
    _completion_service(child).toggle_completion(chore.id, _d(2024, 1, 2))

    # The parent sees it completed and toggling clears it for everyone
    parent_service = _completion_service(parent)
    assert parent_service.get_completion_state(chore.id, _d(2024, 1, 2)).is_completed

    state = parent_service.toggle_completion(chore.id, _d(2024, 1, 2))

    assert not state.is_completed
    assert _completion_count(family) == 0


@pytest.mark.django_db
def test_toggle_on_behalf_of_another_member(family, parent, child, chore):
    state = _completion_service(parent).toggle_completion(
        chore.id, _d(2024, 1, 3), participant_id=child.id
    )

    assert state.completed_by == [child.id]


@pytest.mark.django_db
def test_completions_are_per_occurrence(completion_service, chore):
    completion_service.toggle_completion(chore.id, _d(2024, 1, 2))

    assert not completion_service.get_completion_state(chore.id, _d(2024, 1, 3)).is_completed


@pytest.mark.django_db
def test_toggle_rejects_non_task_event(completion_service, family, dt):
    event = CalendarEventFactory.create_recurring_event(
        family, "Swimming", dt(2024, 1, 1, 17), RecurrenceType.WEEKLY
    )

    with pytest.raises(NotTaskEventError):
        completion_service.toggle_completion(event.id, _d(2024, 1, 1))


@pytest.mark.django_db
def test_toggle_rejects_date_outside_the_series(completion_service, family, dt):
    chore = CalendarEventFactory.create_recurring_event(
        family, "Laundry", dt(2024, 1, 1, 10), RecurrenceType.WEEKLY, is_task=True
    )

    with pytest.raises(CompletionInvalidOccurrenceError):
        completion_service.toggle_completion(chore.id, _d(2024, 1, 2))
    with pytest.raises(CompletionInvalidOccurrenceError):
        completion_service.toggle_completion(chore.id, _d(2023, 12, 25))


@pytest.mark.django_db
def test_toggle_rejects_cancelled_occurrence(completion_service, family, parent, chore):
    occurrence_service = OccurrenceService(
        occurrence_store=DjangoOccurrenceStore(),
        occurrence_permission_service=OccurrencePermissionService(),
    )
    occurrence_service.initialize(parent)
    occurrence_service.delete_occurrence(chore.id, _d(2024, 1, 2), OccurrenceScope.THIS)

    with pytest.raises(CompletionInvalidOccurrenceError):
        completion_service.toggle_completion(chore.id, _d(2024, 1, 2))


@pytest.mark.django_db
def test_toggle_accepts_modified_occurrence(completion_service, family, parent, chore):
    occurrence_service = OccurrenceService(
        occurrence_store=DjangoOccurrenceStore(),
        occurrence_permission_service=OccurrencePermissionService(),
    )
    occurrence_service.initialize(parent)
    occurrence_service.edit_occurrence(
        chore.id, _d(2024, 1, 2), OccurrenceScope.THIS, EventFieldsInputData(title="Feed both cats")
    )

    assert completion_service.toggle_completion(chore.id, _d(2024, 1, 2)).is_completed


@pytest.mark.django_db
def test_toggle_rejects_participant_from_another_family(
    completion_service, chore, other_family_parent
):
    with pytest.raises(ParticipantNotInFamilyError):
        completion_service.toggle_completion(
            chore.id, _d(2024, 1, 2), participant_id=other_family_parent.id
        )


@pytest.mark.django_db
def test_toggle_on_other_family_task_is_not_found(other_family_parent, chore):
    with pytest.raises(EventNotFoundError):
        _completion_service(other_family_parent).toggle_completion(chore.id, _d(2024, 1, 2))


@pytest.mark.django_db
def test_toggle_requires_toggle_permission(family, child, chore):
    permission_service = OccurrencePermissionService()
    service = CompletionService(
        occurrence_store=DjangoOccurrenceStore(),
        family_directory=DjangoFamilyDirectory(),
        occurrence_permission_service=permission_service,
    )
    service.initialize(child)

    with patch.object(permission_service, "has_permission", return_value=False):
        with pytest.raises(OccurrencePermissionError):
            service.toggle_completion(chore.id, _d(2024, 1, 2))

    assert _completion_count(family) == 0


@pytest.mark.django_db
def test_concurrent_completion_by_same_member_counts_as_completed(
    completion_service, family, child, chore
):
    with patch.object(DjangoOccurrenceStore, "create_completion", side_effect=IntegrityError):
        state = completion_service.toggle_completion(chore.id, _d(2024, 1, 2))

    # The concurrent insert is not visible here, so nothing is stored by this call
    assert not state.is_completed
    assert _completion_count(family) == 0


@pytest.mark.django_db
def test_toggle_invalidates_cached_occurrences(
    completion_service, family, chore, django_capture_on_commit_callbacks
):
    occurrence_service = OccurrenceService(
        occurrence_store=DjangoOccurrenceStore(),
        occurrence_cache=OccurrenceCache(),
        occurrence_permission_service=OccurrencePermissionService(),
    )
    occurrence_service.initialize(completion_service.actor)
    window = (_d(2024, 1, 1), _d(2024, 1, 4))
    assert not any(
        occurrence.is_completed
        for occurrence in occurrence_service.get_occurrences(*window, family_id=family.id)
    )

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        completion_service.toggle_completion(chore.id, _d(2024, 1, 2))

    assert len(callbacks) == 1
    assert [
        occurrence.is_completed
        for occurrence in occurrence_service.get_occurrences(*window, family_id=family.id)
    ] == [False, True, False]


@pytest.mark.django_db
def test_get_task_completions(completion_service, child, chore):
    completion_service.toggle_completion(chore.id, _d(2024, 1, 3))
    completion_service.toggle_completion(chore.id, _d(2024, 1, 1))

    completions = completion_service.get_task_completions(chore.id)

    assert [completion.occurrence_date for completion in completions] == [
        _d(2024, 1, 1),
        _d(2024, 1, 3),
    ]
    assert {completion.member_id for completion in completions} == {child.id}


@pytest.mark.django_db
def test_get_task_completions_for_member(family, parent, child, chore, dt):
    homework = CalendarEventFactory.create_recurring_event(
        family, "Homework", dt(2024, 1, 1, 16), RecurrenceType.DAILY, is_task=True
    )
    child_service = _completion_service(child)
    child_service.toggle_completion(chore.id, _d(2024, 1, 1))
    child_service.toggle_completion(homework.id, _d(2024, 1, 1))
    _completion_service(parent).toggle_completion(chore.id, _d(2024, 1, 2))

    completions = _completion_service(parent).get_task_completions_for_member(child.id)

    assert {completion.event_id for completion in completions} == {chore.id, homework.id}
    assert all(completion.member_id == child.id for completion in completions)


@pytest.mark.django_db
def test_get_task_completions_for_member_of_another_family(
    completion_service, other_family_parent
):
    with pytest.raises(ParticipantNotInFamilyError):
        completion_service.get_task_completions_for_member(other_family_parent.id)
