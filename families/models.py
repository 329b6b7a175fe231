from django.db import models

from common.models import BaseModel
from families.constants import FamilyMemberRole
from families.managers import BaseFamilyModelManager, FamilyMemberManager


class Family(BaseModel):
    """
    Represents a family: the tenant that owns calendars, events and members.
    """

    name = models.CharField(max_length=255)

    class Meta:
        verbose_name_plural = "families"

    def __str__(self):
        return self.name


class FamilyMember(BaseModel):
    """
    Represents a person in a family. The role decides what the member may change
    on the family calendar.
    """

    family = models.ForeignKey(
        Family,
        on_delete=models.CASCADE,
        related_name="members",
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    role = models.CharField(
        max_length=20,
        choices=FamilyMemberRole,
        default=FamilyMemberRole.CHILD,
    )

    objects: FamilyMemberManager = FamilyMemberManager()

    def __str__(self):
        return f"{self.name} ({self.get_role_display()}) in {self.family}"


class FamilyModel(BaseModel):
    """
    Represents a model owned by a family. Queries must be filtered by `family`.
    """

    family = models.ForeignKey(
        Family,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="The family this model is associated with. Queries should use the `family` field.",
    )

    objects: BaseFamilyModelManager = BaseFamilyModelManager()

    class Meta:
        abstract = True
