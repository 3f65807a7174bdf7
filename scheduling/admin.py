from django.contrib import admin

from common.admin import DeletedListFilter, SoftDeletableModelAdmin
from scheduling.models import Appointment, AppointmentSeries, AppointmentSeriesWeekday


class AppointmentSeriesWeekdayInline(admin.TabularInline):
    model = AppointmentSeriesWeekday
    fields = ("weekday", "start_time", "end_time")
    extra = 0


@admin.register(AppointmentSeries)
class AppointmentSeriesAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "title",
        "customer",
        "timezone",
        "starts_on",
        "ends_on",
        "is_active",
        "created",
    )
    list_filter = ("is_active", "timezone")
    search_fields = ("title", "customer__name", "customer__email")
    list_select_related = ("customer",)
    raw_id_fields = ("customer",)
    readonly_fields = ("created", "modified")
    inlines = (AppointmentSeriesWeekdayInline,)


@admin.register(Appointment)
class AppointmentAdmin(SoftDeletableModelAdmin):
    list_display = ("id", "title", "customer", "series", "starts_at", "ends_at", "deleted_at")
    list_filter = (DeletedListFilter,)
    search_fields = ("title", "customer__name", "customer__email")
    list_select_related = ("customer", "series")
    raw_id_fields = ("customer", "series")
    readonly_fields = ("created", "modified")
    date_hierarchy = "starts_at"
