from django.db.models import Manager

from common.querysets import SoftDeletableQuerySet


class SoftDeletableManager(Manager):
    """
    Manager for soft deletable models. Hides soft deleted rows unless built with
    `include_deleted=True`.
    Subclasses can point `queryset_class` to a `SoftDeletableQuerySet` subclass.
    """

    queryset_class = SoftDeletableQuerySet

    def __init__(self, *args, include_deleted: bool = False, **kwargs):
        self.include_deleted = include_deleted
        super().__init__(*args, **kwargs)

    def get_queryset(self):
        queryset = self.queryset_class(self.model, using=self._db)
        if self.include_deleted:
            return queryset
        return queryset.not_deleted()

    def only_deleted(self):
        return self.get_queryset().only_deleted()

    def soft_delete(self, deleted_at=None) -> int:
        return self.get_queryset().soft_delete(deleted_at=deleted_at)
