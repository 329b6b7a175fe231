import datetime
import logging
import uuid

from django.conf import settings
from django.core.cache import caches

from events.services.dataclasses import CacheScope, OccurrenceData


logger = logging.getLogger(__name__)


class OccurrenceCache:
    """
    Caches materialized family occurrences in the Django cache.

    Every cached window of a family is keyed by the family's generation counter;
    invalidating a scope bumps the counter, so stale windows are never read again
    and simply expire. Cache failures are logged and never raised.
    """

    def __init__(self, cache_alias: str | None = None, timeout: int | None = None):
        self.cache_alias = cache_alias or settings.OCCURRENCE_CACHE_ALIAS
        self.timeout = timeout if timeout is not None else settings.OCCURRENCE_CACHE_TIMEOUT

    @property
    def cache(self):
        return caches[self.cache_alias]

    @staticmethod
    def _generation_key(family_id: uuid.UUID) -> str:
        return f"occurrences:family:{family_id}:generation"

    def _get_generation(self, family_id: uuid.UUID) -> int:
        return self.cache.get_or_set(self._generation_key(family_id), 1, timeout=None)

    def get_window_key(
        self, family_id: uuid.UUID, window_start: datetime.date, window_end: datetime.date
    ) -> str | None:
        """
        Return the key of a family window under the current generation, or None if
        the generation cannot be read.

        Take the key before loading the occurrences it will hold, so an invalidation
        in between leaves them under a generation that is never read.
        """
        try:
            generation = self._get_generation(family_id)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to read cached occurrences for family %s", family_id, exc_info=True
            )
            return None
        return (
            f"occurrences:family:{family_id}:{generation}:"
            f"{window_start.isoformat()}:{window_end.isoformat()}"
        )

    def get_occurrences(self, window_key: str) -> list[OccurrenceData] | None:
        try:
            return self.cache.get(window_key)
        except Exception:  # noqa: BLE001
            logger.warning("Failed to read cached occurrences %s", window_key, exc_info=True)
            return None

    def set_occurrences(self, window_key: str, occurrences: list[OccurrenceData]) -> None:
        try:
            self.cache.set(window_key, occurrences, timeout=self.timeout)
        except Exception:  # noqa: BLE001
            logger.warning("Failed to cache occurrences %s", window_key, exc_info=True)

    def invalidate(self, scope: CacheScope) -> None:
        key = self._generation_key(scope.family_id)
        try:
            try:
                self.cache.incr(key)
            except ValueError:
                # Counter expired or was evicted, restart it above any live generation
                self.cache.set(key, self._restart_generation(), timeout=None)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to invalidate cached occurrences for family %s (event %s)",
                scope.family_id,
                scope.event_id,
                exc_info=True,
            )
            return
        logger.debug(
            "Invalidated cached occurrences for family %s (event %s)",
            scope.family_id,
            scope.event_id,
        )

    @staticmethod
    def _restart_generation() -> int:
        return int(datetime.datetime.now(tz=datetime.UTC).timestamp() * 1000)
