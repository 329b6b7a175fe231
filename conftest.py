import datetime

import pytest
from model_bakery import baker

from families.constants import FamilyMemberRole


@pytest.fixture
def family(db):
    return baker.make("families.Family", name="Silva")


@pytest.fixture
def parent(family):
    return baker.make(
        "families.FamilyMember", family=family, name="Ana", role=FamilyMemberRole.PARENT
    )


@pytest.fixture
def assistant(family):
    return baker.make(
        "families.FamilyMember", family=family, name="Bia", role=FamilyMemberRole.ASSISTANT
    )


@pytest.fixture
def child(family):
    return baker.make(
        "families.FamilyMember", family=family, name="Caio", role=FamilyMemberRole.CHILD
    )


@pytest.fixture
def other_family(db):
    return baker.make("families.Family", name="Souza")


@pytest.fixture
def other_family_parent(other_family):
    return baker.make(
        "families.FamilyMember",
        family=other_family,
        name="Duda",
        role=FamilyMemberRole.PARENT,
    )


@pytest.fixture
def dt():
    """Build aware datetimes in UTC."""

    def _dt(year, month, day, hour=9, minute=0):
        return datetime.datetime(year, month, day, hour, minute, tzinfo=datetime.UTC)

    return _dt


@pytest.fixture
def di_container():
    """Fixture to create a DI container."""
    from di_core.containers import container

    return container


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()
