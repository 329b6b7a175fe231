from django.db.models import Manager

from common.exceptions import FamilyRequiredError
from families.querysets import BaseFamilyModelQuerySet


class BaseFamilyModelManager(Manager):
    """
    Base manager for family scoped models.
    """

    def get_queryset(self) -> BaseFamilyModelQuerySet:
        return BaseFamilyModelQuerySet(self.model, using=self._db)

    def filter_by_family(self, family_id):
        """
        Filters the queryset by the specified family ID.
        :param family_id: ID of the family to filter by.
        :return: Filtered queryset.
        """
        return self.get_queryset().filter_by_family(family_id)

    def exclude_by_family(self, family_id):
        """
        Excludes the queryset by the specified family ID.
        :param family_id: ID of the family to exclude.
        :return: Filtered queryset excluding the specified family.
        """
        return self.get_queryset().exclude_by_family(family_id)

    def get(self, *args, **kwargs):
        return self.get_queryset().get(*args, **kwargs)

    def count(self):
        return self.get_queryset().count()

    def create(self, **kwargs):
        if "family_id" not in kwargs and "family" not in kwargs:
            raise FamilyRequiredError()
        return super().create(**kwargs)


class FamilyMemberManager(Manager):
    def filter_by_family(self, family_id):
        return self.get_queryset().filter(family_id=family_id)

    def is_member_of_family(self, member_id, family_id) -> bool:
        return self.get_queryset().filter(id=member_id, family_id=family_id).exists()
