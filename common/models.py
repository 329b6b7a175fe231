import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _

from model_utils.fields import AutoCreatedField, AutoLastModifiedField


class UUIDPrimaryKeyModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)  # noqa: A003

    class Meta:
        abstract = True


class IndexedTimeStampedModel(models.Model):
    created = AutoCreatedField(_("created"), db_index=True)
    modified = AutoLastModifiedField(_("modified"), db_index=True)

    class Meta:
        abstract = True


class MetaJsonFieldModel(models.Model):
    meta = models.JSONField(_("meta"), default=dict, blank=True)

    class Meta:
        abstract = True


class BaseModel(UUIDPrimaryKeyModel, IndexedTimeStampedModel, MetaJsonFieldModel):
    class Meta(UUIDPrimaryKeyModel.Meta, IndexedTimeStampedModel.Meta, MetaJsonFieldModel.Meta):
        abstract = True
