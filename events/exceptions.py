from django.core.exceptions import ImproperlyConfigured, PermissionDenied


class OccurrenceStoreNotInjectedError(ImproperlyConfigured):
    pass


# Service Layer/Internal Errors
class FamilyCalendarError(Exception):
    """Base exception for the occurrence engine"""

    default_message = ""

    def __init__(self, message: str | None = None):
        if message is None:
            message = self.default_message
        super().__init__(message)


class RecurrenceError(FamilyCalendarError):
    """Base class for recurrence rule errors"""

    pass


class InvalidRecurrenceRuleError(RecurrenceError):
    default_message = "Invalid recurrence rule"


class RangeError(FamilyCalendarError):
    """Base class for errors raised while expanding a date range"""

    pass


class InvalidWindowError(RangeError):
    default_message = "The end of the requested range must not be before its start"


class RangeTooLargeError(RangeError):
    default_message = "Date range too large for recurring event"


class TooManyInstancesError(RangeError):
    default_message = "Too many occurrences generated for a single event"


class EditError(FamilyCalendarError):
    """Base class for occurrence edit/delete errors"""

    pass


class EventNotFoundError(EditError):
    default_message = "Event does not exist"


class InvalidOccurrenceError(EditError):
    default_message = "Date is not an occurrence of the event"


class EditConflictError(EditError):
    default_message = "The occurrence was changed concurrently, please retry"


class CompletionError(FamilyCalendarError):
    """Base class for task completion errors"""

    pass


class NotTaskEventError(CompletionError):
    default_message = "Only task events can be completed"


class CompletionInvalidOccurrenceError(CompletionError):
    default_message = "Date is not a visible occurrence of the task"


class ParticipantNotInFamilyError(CompletionError):
    default_message = "Participant does not belong to the event's family"


class OccurrenceServiceStateError(FamilyCalendarError):
    """Base class for service lifecycle errors"""

    pass


class ServiceNotInitializedError(OccurrenceServiceStateError):
    default_message = "Service is not initialized. Please call `initialize` with an actor first."


class OccurrencePermissionError(FamilyCalendarError, PermissionDenied):
    default_message = "You don't have permission to perform this action on the family calendar"
