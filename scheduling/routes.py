from common.types import RouteDict

from .views import AppointmentSeriesViewSet, AppointmentViewSet


routes: list[RouteDict] = [
    {
        "regex": r"customers/<int:customer_pk>/appointments",
        "viewset": AppointmentViewSet,
        "basename": "CustomerAppointments",
    },
    {
        "regex": r"customers/<int:customer_pk>/series",
        "viewset": AppointmentSeriesViewSet,
        "basename": "CustomerSeries",
    },
]
