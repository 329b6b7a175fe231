import uuid
from typing import Protocol

from families.models import FamilyMember


class FamilyDirectory(Protocol):
    def get_member(self, member_id: uuid.UUID) -> FamilyMember:
        """
        :raises FamilyMemberNotFoundError: If no such member exists.
        """
        ...

    def is_member_of_family(self, member_id: uuid.UUID, family_id: uuid.UUID) -> bool:
        ...
