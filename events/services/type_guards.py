from typing import Any, TypeGuard

from events.exceptions import ServiceNotInitializedError
from events.services.protocols.initialized_occurrence_service import (
    InitializedOccurrenceService,
)


def is_initialized_occurrence_service(
    service: Any, raise_error: bool = True
) -> TypeGuard[InitializedOccurrenceService]:
    """
    Check if an occurrence or completion service is initialized.
    An initialized service has an acting family member.

    Args:
        service: The service instance to check.
        raise_error: Whether to raise an error if the check fails.

    Returns:
        True if the service is initialized, False otherwise.

    Raises:
        ServiceNotInitializedError: If the service is not initialized and raise_error is True.
    """

    if hasattr(service, "actor") and service.actor is not None:
        return True

    if not raise_error:
        return False

    raise ServiceNotInitializedError()
