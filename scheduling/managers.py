import datetime

from django.db.models import Manager

from common.managers import SoftDeletableManager
from scheduling.querysets import AppointmentQuerySet, AppointmentSeriesQuerySet


class AppointmentManager(SoftDeletableManager):
    queryset_class = AppointmentQuerySet

    def filter_by_customer(self, customer_id: int):
        return self.get_queryset().filter_by_customer(customer_id)

    def filter_by_series(self, series_id: int):
        return self.get_queryset().filter_by_series(series_id)

    def filter_overlapping(self, starts_at: datetime.datetime, ends_at: datetime.datetime):
        return self.get_queryset().filter_overlapping(starts_at, ends_at)


class AppointmentSeriesManager(Manager):
    def get_queryset(self):
        return AppointmentSeriesQuerySet(self.model, using=self._db)

    def filter_by_customer(self, customer_id: int):
        return self.get_queryset().filter_by_customer(customer_id)
