"""Decorators for occurrence service methods."""

from collections.abc import Callable
from functools import wraps
from typing import Any

from events.services.type_guards import is_initialized_occurrence_service


def requires_initialization(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator that ensures the service was initialized with an actor before calling the method.

    Raises:
        ServiceNotInitializedError: If `initialize` was not called.
    """

    @wraps(func)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        is_initialized_occurrence_service(self)
        return func(self, *args, **kwargs)

    return wrapper
