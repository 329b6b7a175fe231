from typing import Protocol, runtime_checkable

from events.services.dataclasses import CacheScope


@runtime_checkable
class CacheInvalidationNotifier(Protocol):
    def invalidate(self, scope: CacheScope) -> None:
        """
        Drop cached occurrence data for ``scope``. Must never raise.
        """
        ...
