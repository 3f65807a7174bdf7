import django_virtual_models as v

from customers.virtual_models import CustomerVirtualModel
from scheduling.models import Appointment, AppointmentSeries, AppointmentSeriesWeekday


class AppointmentSeriesWeekdayVirtualModel(v.VirtualModel):
    class Meta:
        model = AppointmentSeriesWeekday


class AppointmentSeriesVirtualModel(v.VirtualModel):
    customer = CustomerVirtualModel()
    weekdays = AppointmentSeriesWeekdayVirtualModel(many=True)

    class Meta:
        model = AppointmentSeries


class NestedAppointmentSeriesVirtualModel(v.VirtualModel):
    class Meta:
        model = AppointmentSeries


class AppointmentVirtualModel(v.VirtualModel):
    customer = CustomerVirtualModel()
    series = NestedAppointmentSeriesVirtualModel()

    class Meta:
        model = Appointment


class AppointmentWithSeriesVirtualModel(v.VirtualModel):
    customer = CustomerVirtualModel()
    series = AppointmentSeriesVirtualModel()

    class Meta:
        model = Appointment
