import datetime
import logging
from collections.abc import Iterable

from django.db import transaction
from django.utils import timezone

from customers.models import Customer
from scheduling.constants import MIN_GENERATION_WEEKS, Weekday
from scheduling.exceptions import (
    AppointmentNotFoundError,
    AppointmentSeriesNotFoundError,
    CustomerNotFoundError,
    DuplicateWeekdaySlotError,
    EmptyWeekdaySlotsError,
    InvalidDateRangeError,
    InvalidTimeRangeError,
    SchedulingValidationError,
)
from scheduling.models import Appointment, AppointmentSeries, AppointmentSeriesWeekday
from scheduling.occurrences import generate_occurrences
from scheduling.services.appointment_writer import AppointmentWriter
from scheduling.services.dataclasses import (
    AppointmentCandidate,
    AppointmentInputData,
    AppointmentSeriesInputData,
    SeriesDefinition,
    WeekdaySlotData,
)
from scheduling.services.decorators import translate_storage_errors
from scheduling.timezone_utils import get_zone


logger = logging.getLogger(__name__)


APPOINTMENT_UPDATABLE_FIELDS = ("title", "notes", "starts_at", "ends_at")
SERIES_UPDATABLE_FIELDS = ("title", "notes", "timezone", "starts_on", "ends_on", "is_active")


def validate_weekday_slots(weekdays: Iterable[WeekdaySlotData], allow_empty: bool = False):
    """
    Checks weekday slots of a series: weekday inside 0-6, end after start and no repeated
    (weekday, start_time, end_time).
    """
    weekdays = list(weekdays)
    if not weekdays and not allow_empty:
        raise EmptyWeekdaySlotsError()

    seen_slots = set()
    for slot in weekdays:
        if slot.weekday not in Weekday.values:
            raise SchedulingValidationError(
                f"Weekday must be between 0 and 6, got {slot.weekday}.", field="weekdays"
            )
        if slot.end_time <= slot.start_time:
            raise InvalidTimeRangeError(
                "Weekday slot end_time must be after start_time.", field="weekdays"
            )
        slot_key = (slot.weekday, slot.start_time, slot.end_time)
        if slot_key in seen_slots:
            raise DuplicateWeekdaySlotError()
        seen_slots.add(slot_key)


class SchedulingService:
    """
    Appointment and appointment series operations of a customer.

    Every operation checks ownership first: ids that belong to another customer are reported
    exactly like missing ids. Multi step operations run in a single transaction, so any failure
    (including an `AppointmentConflictError`) leaves series, slots and appointments untouched.
    """

    def __init__(
        self,
        appointment_writer: AppointmentWriter,
        default_timezone: str = "UTC",
        default_generation_weeks: int = 12,
        max_generation_weeks: int = 52,
    ):
        self.appointment_writer = appointment_writer
        self.default_timezone = default_timezone
        self.default_generation_weeks = default_generation_weeks
        self.max_generation_weeks = max_generation_weeks

    def clamp_generation_weeks(self, weeks: int | None) -> int:
        if weeks is None:
            weeks = self.default_generation_weeks
        return max(MIN_GENERATION_WEEKS, min(weeks, self.max_generation_weeks))

    # Lookups
    def get_customer(self, customer_id: int) -> Customer:
        try:
            return Customer.objects.get(pk=customer_id)
        except Customer.DoesNotExist as e:
            raise CustomerNotFoundError() from e

    def get_appointment(self, customer_id: int, appointment_id: int) -> Appointment:
        try:
            return Appointment.objects.filter_by_customer(customer_id).get(pk=appointment_id)
        except Appointment.DoesNotExist as e:
            raise AppointmentNotFoundError() from e

    def get_series(self, customer_id: int, series_id: int) -> AppointmentSeries:
        try:
            return AppointmentSeries.objects.filter_by_customer(customer_id).get(pk=series_id)
        except AppointmentSeries.DoesNotExist as e:
            raise AppointmentSeriesNotFoundError() from e

    # Appointments
    def create_appointment(self, customer_id: int, data: AppointmentInputData) -> Appointment:
        self.get_customer(customer_id)
        (appointment,) = self.appointment_writer.commit(
            customer_id,
            [
                AppointmentCandidate(
                    title=data.title,
                    notes=data.notes,
                    starts_at=data.starts_at,
                    ends_at=data.ends_at,
                )
            ],
        )
        return appointment

    @translate_storage_errors
    @transaction.atomic()
    def update_appointment(
        self, customer_id: int, appointment_id: int, changes: dict
    ) -> Appointment:
        """
        Applies a partial update to an appointment. Changed times are checked against the
        other active appointments of the customer.
        """
        appointment = self.get_appointment(customer_id, appointment_id)
        for field_name in APPOINTMENT_UPDATABLE_FIELDS:
            if field_name in changes:
                setattr(appointment, field_name, changes[field_name])

        return self.appointment_writer.save(appointment)

    @translate_storage_errors
    def delete_appointment(
        self,
        customer_id: int,
        appointment_id: int,
        now: datetime.datetime | None = None,
    ) -> Appointment:
        appointment = self.get_appointment(customer_id, appointment_id)
        appointment.soft_delete(deleted_at=now or timezone.now())
        return appointment

    # Series
    @translate_storage_errors
    @transaction.atomic()
    def create_series(
        self,
        customer_id: int,
        data: AppointmentSeriesInputData,
        generate: bool = False,
        weeks: int | None = None,
        now: datetime.datetime | None = None,
    ) -> AppointmentSeries:
        """
        Creates a series with its weekday slots.
        :param generate: expand the series into appointments right away.
        :param weeks: generation horizon, clamped to the configured bounds.
        :param now: reference instant for generation, defaults to the current time.
        """
        customer = self.get_customer(customer_id)

        timezone_name = data.timezone or self.default_timezone
        get_zone(timezone_name)
        self._check_date_range(data.starts_on, data.ends_on)
        validate_weekday_slots(data.weekdays)

        series = AppointmentSeries.objects.create(
            customer=customer,
            title=data.title,
            notes=data.notes,
            timezone=timezone_name,
            starts_on=data.starts_on,
            ends_on=data.ends_on,
            is_active=data.is_active,
        )
        self._replace_weekday_slots(series, data.weekdays)

        if generate:
            self._generate_appointments(series, weeks, now or timezone.now())

        return series

    @translate_storage_errors
    @transaction.atomic()
    def update_series(
        self,
        customer_id: int,
        series_id: int,
        changes: dict,
        weekdays: list[WeekdaySlotData] | None = None,
        regenerate: bool = False,
        weeks: int | None = None,
        now: datetime.datetime | None = None,
    ) -> AppointmentSeries:
        """
        Applies a partial update to a series.
        :param changes: new values for the series fields, missing keys are kept.
        :param weekdays: when not None, replaces every weekday slot of the series. An empty
            list leaves the series without slots.
        :param regenerate: soft delete the future appointments of the series and generate them
            again from the updated definition.
        """
        series = self.get_series(customer_id, series_id)

        for field_name in SERIES_UPDATABLE_FIELDS:
            if field_name in changes:
                setattr(series, field_name, changes[field_name])
        if not series.timezone:
            series.timezone = self.default_timezone

        get_zone(series.timezone)
        self._check_date_range(series.starts_on, series.ends_on)
        series.save()

        if weekdays is not None:
            validate_weekday_slots(weekdays, allow_empty=True)
            series.weekdays.all().delete()
            self._replace_weekday_slots(series, weekdays)

        if regenerate:
            now = now or timezone.now()
            self._delete_future_appointments(series, now)
            self._generate_appointments(series, weeks, now)

        return series

    @translate_storage_errors
    @transaction.atomic()
    def deactivate_series(
        self,
        customer_id: int,
        series_id: int,
        delete_future_instances: bool = False,
        now: datetime.datetime | None = None,
    ) -> AppointmentSeries:
        """
        Deactivates a series. Reactivating it later does not bring deleted appointments back.
        :param delete_future_instances: also soft delete its appointments starting from now.
        """
        series = self.get_series(customer_id, series_id)
        series.is_active = False
        series.save(update_fields=["is_active", "modified"])

        if delete_future_instances:
            self._delete_future_appointments(series, now or timezone.now())

        logger.info("Deactivated appointment series %s of customer %s", series.pk, customer_id)
        return series

    @translate_storage_errors
    @transaction.atomic()
    def generate_series_appointments(
        self,
        customer_id: int,
        series_id: int,
        weeks: int | None = None,
        now: datetime.datetime | None = None,
    ) -> list[Appointment]:
        """
        Creates the missing appointments of a series for the horizon, without deleting the
        existing ones.
        """
        series = self.get_series(customer_id, series_id)
        return self._generate_appointments(series, weeks, now or timezone.now())

    def build_series_definition(self, series: AppointmentSeries) -> SeriesDefinition:
        return SeriesDefinition(
            timezone=series.timezone,
            starts_on=series.starts_on,
            ends_on=series.ends_on,
            is_active=series.is_active,
            weekdays=tuple(
                WeekdaySlotData(
                    weekday=slot.weekday,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                )
                for slot in series.weekdays.all()
            ),
        )

    def _check_date_range(self, starts_on: datetime.date, ends_on: datetime.date | None):
        if ends_on is not None and ends_on < starts_on:
            raise InvalidDateRangeError()

    def _replace_weekday_slots(self, series: AppointmentSeries, weekdays: list[WeekdaySlotData]):
        AppointmentSeriesWeekday.objects.bulk_create(
            [
                AppointmentSeriesWeekday(
                    series=series,
                    weekday=slot.weekday,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                )
                for slot in weekdays
            ]
        )

    def _delete_future_appointments(self, series: AppointmentSeries, now: datetime.datetime) -> int:
        deleted_count = (
            Appointment.objects.filter_by_series(series.pk)
            .filter_starting_from(now)
            .soft_delete(deleted_at=now)
        )
        logger.info(
            "Soft deleted %s future appointments of appointment series %s",
            deleted_count,
            series.pk,
        )
        return deleted_count

    def _generate_appointments(
        self, series: AppointmentSeries, weeks: int | None, now: datetime.datetime
    ) -> list[Appointment]:
        horizon_weeks = self.clamp_generation_weeks(weeks)
        occurrences = generate_occurrences(
            self.build_series_definition(series), horizon_weeks, now
        )
        if not occurrences:
            logger.info("Appointment series %s generated no appointments", series.pk)
            return []

        # appointments of the series that survived a regeneration (earlier today, before now)
        # are kept, generating them again would collide with themselves
        existing_intervals = set(
            Appointment.objects.filter_by_series(series.pk)
            .filter(
                starts_at__gte=occurrences[0].starts_at,
                starts_at__lte=occurrences[-1].starts_at,
            )
            .values_list("starts_at", "ends_at")
        )
        candidates = [
            AppointmentCandidate(
                title=series.title,
                notes=series.notes,
                starts_at=occurrence.starts_at,
                ends_at=occurrence.ends_at,
                series_id=series.pk,
            )
            for occurrence in occurrences
            if (occurrence.starts_at, occurrence.ends_at) not in existing_intervals
        ]

        appointments = self.appointment_writer.commit(series.customer_id, candidates)
        logger.info(
            "Appointment series %s generated %s appointments for %s weeks",
            series.pk,
            len(appointments),
            horizon_weeks,
        )
        return appointments
