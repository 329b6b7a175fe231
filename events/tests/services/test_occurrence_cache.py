import datetime
import uuid
from unittest.mock import MagicMock, patch

import pytest

from events.services.dataclasses import CacheScope, EventSnapshotData, OccurrenceData
from events.services.occurrence_cache import OccurrenceCache


@pytest.fixture
def occurrence_cache():
    return OccurrenceCache()


@pytest.fixture
def occurrences():
    start_time = datetime.datetime(2024, 1, 1, 9, tzinfo=datetime.UTC)
    event = EventSnapshotData(
        id=uuid.uuid4(),
        title="Breakfast",
        description="",
        location="",
        start_time=start_time,
        end_time=start_time + datetime.timedelta(hours=1),
        is_all_day=False,
        is_task=False,
    )
    return [
        OccurrenceData(
            event_id=event.id,
            occurrence_date=datetime.date(2024, 1, 1),
            start_time=event.start_time,
            end_time=event.end_time,
            effective_event=event,
        )
    ]


def _cached(occurrence_cache, family_id, window):
    return occurrence_cache.get_occurrences(occurrence_cache.get_window_key(family_id, *window))


def _store(occurrence_cache, family_id, window, occurrences):
    occurrence_cache.set_occurrences(
        occurrence_cache.get_window_key(family_id, *window), occurrences
    )


def test_cached_window_is_returned(occurrence_cache, occurrences):
    family_id = uuid.uuid4()
    window_key = occurrence_cache.get_window_key(
        family_id, datetime.date(2024, 1, 1), datetime.date(2024, 2, 1)
    )

    assert occurrence_cache.get_occurrences(window_key) is None
    occurrence_cache.set_occurrences(window_key, occurrences)

    assert occurrence_cache.get_occurrences(window_key) == occurrences


def test_window_keys_are_per_family_and_window(occurrence_cache):
    family_id = uuid.uuid4()
    january = (datetime.date(2024, 1, 1), datetime.date(2024, 2, 1))
    february = (datetime.date(2024, 2, 1), datetime.date(2024, 3, 1))

    keys = {
        occurrence_cache.get_window_key(family_id, *january),
        occurrence_cache.get_window_key(family_id, *february),
        occurrence_cache.get_window_key(uuid.uuid4(), *january),
    }

    assert len(keys) == 3
    assert occurrence_cache.get_window_key(family_id, *january) in keys


def test_invalidate_drops_every_window_of_the_family(occurrence_cache, occurrences):
    family_id = uuid.uuid4()
    other_family_id = uuid.uuid4()
    january = (datetime.date(2024, 1, 1), datetime.date(2024, 2, 1))
    february = (datetime.date(2024, 2, 1), datetime.date(2024, 3, 1))
    _store(occurrence_cache, family_id, january, occurrences)
    _store(occurrence_cache, family_id, february, occurrences)
    _store(occurrence_cache, other_family_id, january, occurrences)

    occurrence_cache.invalidate(CacheScope(family_id=family_id, event_id=uuid.uuid4()))

    assert _cached(occurrence_cache, family_id, january) is None
    assert _cached(occurrence_cache, family_id, february) is None
    assert _cached(occurrence_cache, other_family_id, january) == occurrences


def test_key_taken_before_invalidation_is_never_read_again(occurrence_cache, occurrences):
    family_id = uuid.uuid4()
    window = (datetime.date(2024, 1, 1), datetime.date(2024, 2, 1))
    window_key = occurrence_cache.get_window_key(family_id, *window)

    # Occurrences loaded before an edit committed are stored after its invalidation
    occurrence_cache.invalidate(CacheScope(family_id=family_id))
    occurrence_cache.set_occurrences(window_key, occurrences)

    assert occurrence_cache.get_window_key(family_id, *window) != window_key
    assert _cached(occurrence_cache, family_id, window) is None


def test_invalidate_restarts_missing_generation(occurrence_cache, occurrences):
    family_id = uuid.uuid4()
    window = (datetime.date(2024, 1, 1), datetime.date(2024, 2, 1))
    _store(occurrence_cache, family_id, window, occurrences)
    occurrence_cache.cache.delete(OccurrenceCache._generation_key(family_id))

    occurrence_cache.invalidate(CacheScope(family_id=family_id))

    assert _cached(occurrence_cache, family_id, window) is None


def test_cache_failures_are_logged_not_raised(occurrence_cache, occurrences, caplog):
    family_id = uuid.uuid4()
    window = (datetime.date(2024, 1, 1), datetime.date(2024, 2, 1))
    broken_cache = MagicMock()
    broken_cache.get_or_set.side_effect = ConnectionError("cache is down")
    broken_cache.get.side_effect = ConnectionError("cache is down")
    broken_cache.set.side_effect = ConnectionError("cache is down")
    broken_cache.incr.side_effect = ConnectionError("cache is down")

    with patch.object(OccurrenceCache, "cache", broken_cache):
        assert occurrence_cache.get_window_key(family_id, *window) is None
        assert occurrence_cache.get_occurrences("occurrences:family:broken") is None
        occurrence_cache.set_occurrences("occurrences:family:broken", occurrences)
        occurrence_cache.invalidate(CacheScope(family_id=family_id))

    assert f"Failed to read cached occurrences for family {family_id}" in caplog.text
    assert "Failed to read cached occurrences occurrences:family:broken" in caplog.text
    assert "Failed to cache occurrences occurrences:family:broken" in caplog.text
    assert "Failed to invalidate cached occurrences" in caplog.text
