import datetime

from django.db.models.query import QuerySet

from common.querysets import SoftDeletableQuerySet


class AppointmentQuerySet(SoftDeletableQuerySet):
    def filter_by_customer(self, customer_id: int):
        return self.filter(customer_id=customer_id)

    def filter_by_series(self, series_id: int):
        return self.filter(series_id=series_id)

    def filter_overlapping(self, starts_at: datetime.datetime, ends_at: datetime.datetime):
        """
        Filters appointments whose [starts_at, ends_at) interval shares any instant with
        [starts_at, ends_at). Appointments that only touch the boundaries are not included.
        """
        return self.filter(starts_at__lt=ends_at, ends_at__gt=starts_at)

    def filter_starting_from(self, reference: datetime.datetime):
        return self.filter(starts_at__gte=reference)


class AppointmentSeriesQuerySet(QuerySet):
    def filter_by_customer(self, customer_id: int):
        return self.filter(customer_id=customer_id)

    def filter_active(self):
        return self.filter(is_active=True)

    def filter_inactive(self):
        return self.filter(is_active=False)
