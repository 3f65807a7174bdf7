from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from model_utils.fields import AutoCreatedField, AutoLastModifiedField

from common.managers import SoftDeletableManager


class IndexedTimeStampedModel(models.Model):
    created = AutoCreatedField(_("created"), db_index=True)
    modified = AutoLastModifiedField(_("modified"), db_index=True)

    class Meta:
        abstract = True


class BaseModel(IndexedTimeStampedModel):
    class Meta(IndexedTimeStampedModel.Meta):
        abstract = True


class SoftDeletableBaseModel(BaseModel):
    """
    Model whose rows are hidden instead of removed when soft deleted.

    `objects` only returns rows that were not soft deleted, `all_objects` returns every row.
    Hard deletion is still available through `delete()`.
    """

    deleted_at = models.DateTimeField(_("deleted at"), null=True, blank=True, db_index=True)

    objects = SoftDeletableManager()
    all_objects = SoftDeletableManager(include_deleted=True)

    class Meta(BaseModel.Meta):
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, deleted_at=None):
        self.deleted_at = deleted_at or timezone.now()
        self.save(update_fields=["deleted_at", "modified"])

    def restore(self):
        self.deleted_at = None
        self.save(update_fields=["deleted_at", "modified"])
