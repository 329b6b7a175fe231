from django.core.exceptions import ImproperlyConfigured
from django.db.models.query import QuerySet

from common.exceptions import FamilyImmutableError


class BaseFamilyModelQuerySet(QuerySet):
    """
    Base QuerySet for family scoped models.

    Evaluating a queryset that is not filtered by `family` raises, so one family's
    calendar can never leak into another family's results.
    """

    def filter_by_family(self, family_id):
        """
        Filters the queryset by the specified family ID.
        :param family_id: ID of the family to filter by.
        :return: Filtered QuerySet.
        """
        return super().filter(family_id=family_id)

    def exclude_by_family(self, family_id):
        """
        Excludes records belonging to the specified family ID.
        :param family_id: ID of the family to exclude.
        :return: Filtered QuerySet.
        """
        return super().exclude(family_id=family_id)

    def _check_required_tenant_filter(self):
        required_field = "family"
        where_str = str(self.query.where)
        if required_field not in where_str and f"{required_field}_id" not in where_str:
            raise ImproperlyConfigured(
                f"QuerySet must be filtered by `{required_field}` on model {self.model}"
            )

    def __iter__(self):
        self._check_required_tenant_filter()
        return super().__iter__()

    def count(self):
        self._check_required_tenant_filter()
        return super().count()

    def get(self, *args, **kwargs):
        if (
            "family_id" not in kwargs
            and "family" not in kwargs
            and "family" not in str(self.query.where)
        ):
            raise ImproperlyConfigured(
                f"`family_id` filter is required when querying model {self.model}."
            )
        return super().get(*args, **kwargs)

    def update(self, **kwargs):
        if "family_id" in kwargs or "family" in kwargs:
            raise FamilyImmutableError()
        return super().update(**kwargs)
