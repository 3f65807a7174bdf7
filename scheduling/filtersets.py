from django_filters import rest_framework as filters

from scheduling.models import Appointment


class AppointmentFilterSet(filters.FilterSet):
    starts_from = filters.IsoDateTimeFilter(field_name="starts_at", lookup_expr="gte")
    starts_to = filters.IsoDateTimeFilter(field_name="starts_at", lookup_expr="lte")
    series = filters.NumberFilter(field_name="series_id")

    class Meta:
        model = Appointment
        fields = ("series",)

    @classmethod
    def get_filters(cls):
        # exposed as `from` and `to`, `from` can't be an attribute name
        filters_by_name = super().get_filters()
        filters_by_name["from"] = filters_by_name.pop("starts_from")
        filters_by_name["to"] = filters_by_name.pop("starts_to")
        return filters_by_name
