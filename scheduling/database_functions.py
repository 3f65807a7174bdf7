from django.contrib.postgres.fields import DateTimeRangeField
from django.db.models import Func


class TsTzRange(Func):
    """
    Builds a Postgres `tstzrange` out of two timestamp expressions.

    Usage:
        from django.contrib.postgres.fields import RangeBoundary

        TsTzRange("starts_at", "ends_at", RangeBoundary())  # half-open [starts_at, ends_at)
    """

    function = "TSTZRANGE"
    output_field = DateTimeRangeField()
