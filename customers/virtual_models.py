import django_virtual_models as v

from customers.models import Customer


class CustomerVirtualModel(v.VirtualModel):
    class Meta:
        model = Customer
