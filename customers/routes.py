from common.types import RouteDict

from .views import CustomerViewSet


routes: list[RouteDict] = [
    {
        "regex": r"customers",
        "viewset": CustomerViewSet,
        "basename": "Customers",
    },
]
