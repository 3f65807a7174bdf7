from django.contrib.postgres.constraints import ExclusionConstraint
from django.contrib.postgres.fields import RangeBoundary, RangeOperators
from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from common.models import BaseModel, SoftDeletableBaseModel
from scheduling.constants import APPOINTMENTS_NO_OVERLAP_CONSTRAINT, Weekday
from scheduling.database_functions import TsTzRange
from scheduling.managers import AppointmentManager, AppointmentSeriesManager


class AppointmentSeries(BaseModel):
    """
    A weekly recurrence definition for a customer. Its weekday slots are expanded into
    concrete `Appointment` rows for a bounded horizon. Deleting a series through the API
    only deactivates it.
    """

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="series",
        verbose_name=_("customer"),
    )
    title = models.CharField(_("title"), max_length=150)
    notes = models.TextField(_("notes"), null=True, blank=True)
    timezone = models.CharField(_("timezone"), max_length=64)
    starts_on = models.DateField(_("starts on"))
    ends_on = models.DateField(_("ends on"), null=True, blank=True)
    is_active = models.BooleanField(_("is active"), default=True)

    objects: AppointmentSeriesManager = AppointmentSeriesManager()

    class Meta:
        verbose_name = _("appointment series")
        verbose_name_plural = _("appointment series")
        indexes = [
            models.Index(fields=["customer", "is_active"], name="series_customer_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(ends_on__isnull=True) | Q(ends_on__gte=F("starts_on")),
                name="chk_series_date_range",
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.timezone}, from {self.starts_on})"


class AppointmentSeriesWeekday(models.Model):
    """A recurring time window of a series, in the series' local clock."""

    series = models.ForeignKey(
        AppointmentSeries,
        on_delete=models.CASCADE,
        related_name="weekdays",
        verbose_name=_("series"),
    )
    weekday = models.PositiveSmallIntegerField(_("weekday"), choices=Weekday.choices)
    start_time = models.TimeField(_("start time"))
    end_time = models.TimeField(_("end time"))

    class Meta:
        verbose_name = _("appointment series weekday")
        verbose_name_plural = _("appointment series weekdays")
        ordering = ("weekday", "start_time")
        constraints = [
            models.UniqueConstraint(
                fields=["series", "weekday", "start_time", "end_time"],
                name="series_weekday_slot_unique",
            ),
            models.CheckConstraint(
                condition=Q(weekday__gte=0) & Q(weekday__lte=6),
                name="chk_series_weekday_range",
            ),
            models.CheckConstraint(
                condition=Q(end_time__gt=F("start_time")),
                name="chk_series_weekday_time_order",
            ),
        ]

    def __str__(self):
        return f"{self.get_weekday_display()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class Appointment(SoftDeletableBaseModel):
    """
    A concrete appointment of a customer, either standalone or generated by a series.
    Active (not soft deleted) appointments of the same customer never overlap.
    """

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="appointments",
        verbose_name=_("customer"),
    )
    series = models.ForeignKey(
        AppointmentSeries,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="appointments",
        verbose_name=_("series"),
    )
    title = models.CharField(_("title"), max_length=150)
    notes = models.TextField(_("notes"), null=True, blank=True)
    starts_at = models.DateTimeField(_("starts at"))
    ends_at = models.DateTimeField(_("ends at"))

    objects: AppointmentManager = AppointmentManager()
    all_objects: AppointmentManager = AppointmentManager(include_deleted=True)

    class Meta:
        verbose_name = _("appointment")
        verbose_name_plural = _("appointments")
        indexes = [
            models.Index(fields=["customer", "starts_at"], name="appt_customer_starts_idx"),
            models.Index(fields=["series", "starts_at"], name="appt_series_starts_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(ends_at__gt=F("starts_at")),
                name="chk_appointments_time_order",
            ),
            ExclusionConstraint(
                name=APPOINTMENTS_NO_OVERLAP_CONSTRAINT,
                expressions=[
                    ("customer", RangeOperators.EQUAL),
                    (TsTzRange("starts_at", "ends_at", RangeBoundary()), RangeOperators.OVERLAPS),
                ],
                condition=Q(deleted_at__isnull=True),
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.starts_at.isoformat()} - {self.ends_at.isoformat()})"
