from django_filters import rest_framework as filters

from customers.models import Customer


class CustomerFilterSet(filters.FilterSet):
    name = filters.CharFilter(field_name="name", lookup_expr="icontains")
    email = filters.CharFilter(field_name="email", lookup_expr="icontains")

    class Meta:
        model = Customer
        fields = ("name", "email")
