from families.exceptions import FamilyMemberNotFoundError
from families.models import FamilyMember


class DjangoFamilyDirectory:
    """Family/member directory backed by the `families` tables."""

    def get_member(self, member_id) -> FamilyMember:
        """
        Return the member with the given id.
        :param member_id: ID of the family member.
        :raises FamilyMemberNotFoundError: If no such member exists.
        """
        try:
            return FamilyMember.objects.select_related("family").get(id=member_id)
        except FamilyMember.DoesNotExist as e:
            raise FamilyMemberNotFoundError() from e

    def is_member_of_family(self, member_id, family_id) -> bool:
        return FamilyMember.objects.is_member_of_family(member_id, family_id)
