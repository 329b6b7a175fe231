import uuid
from typing import assert_never

from events.constants import OccurrencePermission
from events.exceptions import OccurrencePermissionError
from families.constants import FamilyMemberRole
from families.models import FamilyMember


DEFAULT_PARENT_PERMISSIONS = frozenset(
    [
        OccurrencePermission.VIEW,
        OccurrencePermission.EDIT,
        OccurrencePermission.DELETE,
        OccurrencePermission.TOGGLE_COMPLETION,
    ]
)
DEFAULT_ASSISTANT_PERMISSIONS = DEFAULT_PARENT_PERMISSIONS
DEFAULT_CHILD_PERMISSIONS = frozenset(
    [
        OccurrencePermission.VIEW,
        OccurrencePermission.TOGGLE_COMPLETION,
    ]
)


class OccurrencePermissionService:
    """Role based permissions for occurrence reads and writes."""

    def get_role_permissions(self, role: FamilyMemberRole) -> frozenset[OccurrencePermission]:
        match FamilyMemberRole(role):
            case FamilyMemberRole.PARENT:
                return DEFAULT_PARENT_PERMISSIONS
            case FamilyMemberRole.ASSISTANT:
                return DEFAULT_ASSISTANT_PERMISSIONS
            case FamilyMemberRole.CHILD:
                return DEFAULT_CHILD_PERMISSIONS
            case _ as unreachable:
                assert_never(unreachable)

    def has_permission(
        self, actor: FamilyMember, family_id: uuid.UUID, permission: OccurrencePermission
    ) -> bool:
        """
        Check if ``actor`` may perform ``permission`` on the calendar of ``family_id``.
        Members never hold permissions on another family's calendar.
        """
        if actor.family_id != family_id:
            return False
        return permission in self.get_role_permissions(FamilyMemberRole(actor.role))

    def check_permission(
        self, actor: FamilyMember, family_id: uuid.UUID, permission: OccurrencePermission
    ) -> None:
        """
        :raises OccurrencePermissionError: If ``actor`` does not hold ``permission``.
        """
        if not self.has_permission(actor, family_id, permission):
            raise OccurrencePermissionError(
                f"{FamilyMemberRole(actor.role).label} members cannot {permission.label.lower()} "
                "on this family calendar."
            )
