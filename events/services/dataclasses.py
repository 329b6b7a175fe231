import datetime
import uuid
from dataclasses import dataclass
from dataclasses import field as dataclass_field

from events.constants import RecurrenceExceptionKind, RecurrenceType


@dataclass
class RecurrenceRuleInputData:
    type: RecurrenceType  # noqa: A003
    interval: int = 1
    until: datetime.date | None = None
    count: int | None = None


@dataclass
class EventFieldsInputData:
    """
    Fields to change on an occurrence or a series. ``None`` keeps the current value.
    """

    title: str | None = None
    description: str | None = None
    location: str | None = None
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    is_all_day: bool | None = None
    is_task: bool | None = None
    participant_ids: list[uuid.UUID] | None = None
    recurrence: RecurrenceRuleInputData | None = None


@dataclass
class EventSnapshotData:
    id: uuid.UUID  # noqa: A003
    title: str
    description: str
    location: str
    start_time: datetime.datetime
    end_time: datetime.datetime
    is_all_day: bool
    is_task: bool
    participant_ids: list[uuid.UUID] = dataclass_field(default_factory=list)

    @property
    def duration(self) -> datetime.timedelta:
        return self.end_time - self.start_time


@dataclass
class RecurrenceExceptionData:
    occurrence_date: datetime.date
    kind: RecurrenceExceptionKind
    modified_event: EventSnapshotData | None = None


@dataclass
class OccurrenceData:
    event_id: uuid.UUID
    occurrence_date: datetime.date
    start_time: datetime.datetime
    end_time: datetime.datetime
    effective_event: EventSnapshotData
    is_modified: bool = False
    is_completed: bool | None = None


@dataclass
class CompletionStateData:
    event_id: uuid.UUID
    occurrence_date: datetime.date
    is_completed: bool
    completed_by: list[uuid.UUID] = dataclass_field(default_factory=list)


@dataclass
class TaskCompletionData:
    event_id: uuid.UUID
    member_id: uuid.UUID
    occurrence_date: datetime.date
    completed_at: datetime.datetime


@dataclass(frozen=True)
class CacheScope:
    family_id: uuid.UUID
    event_id: uuid.UUID | None = None
