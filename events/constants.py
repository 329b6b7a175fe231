from django.db.models import TextChoices


class RecurrenceType(TextChoices):
    NONE = "NONE", "Does not repeat"
    DAILY = "DAILY", "Daily"
    WEEKLY = "WEEKLY", "Weekly"
    MONTHLY = "MONTHLY", "Monthly"
    YEARLY = "YEARLY", "Yearly"


class EndConditionKind(TextChoices):
    NEVER = "never", "Never"
    ON_DATE = "on_date", "On date"
    AFTER_COUNT = "after_count", "After a number of occurrences"


class RecurrenceExceptionKind(TextChoices):
    CANCELLED = "cancelled", "Cancelled"
    MODIFIED = "modified", "Modified"


class OccurrenceScope(TextChoices):
    THIS = "this", "This occurrence"
    THIS_AND_FOLLOWING = "this_and_following", "This and following occurrences"
    ALL = "all", "All occurrences"


class OccurrencePermission(TextChoices):
    VIEW = "view", "View occurrences"
    EDIT = "edit", "Edit occurrences"
    DELETE = "delete", "Cancel or delete occurrences"
    TOGGLE_COMPLETION = "toggle_completion", "Toggle task completion"
