from django.db.models.query import QuerySet
from django.utils import timezone


class SoftDeletableQuerySet(QuerySet):
    """
    Base QuerySet for models that keep a `deleted_at` soft delete marker.
    """

    def not_deleted(self):
        return self.filter(deleted_at__isnull=True)

    def only_deleted(self):
        return self.filter(deleted_at__isnull=False)

    def soft_delete(self, deleted_at=None) -> int:
        """
        Marks every row of the queryset as deleted with a single UPDATE.
        :param deleted_at: the instant stored as the deletion marker, defaults to now.
        :return: number of rows updated.
        """
        now = timezone.now()
        return self.update(deleted_at=deleted_at or now, modified=now)

    def restore(self) -> int:
        return self.update(deleted_at=None, modified=timezone.now())
