from typing import Protocol

from families.models import FamilyMember


class InitializedOccurrenceService(Protocol):
    actor: FamilyMember
