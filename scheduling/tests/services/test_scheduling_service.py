import datetime
import threading
import zoneinfo

from django.db import connection

import pytest
from model_bakery import baker

from scheduling.constants import Weekday
from scheduling.exceptions import (
    AppointmentConflictError,
    AppointmentNotFoundError,
    AppointmentSeriesNotFoundError,
    CustomerNotFoundError,
    DuplicateWeekdaySlotError,
    EmptyWeekdaySlotsError,
    InvalidDateRangeError,
    InvalidTimeRangeError,
    InvalidTimezoneError,
    SchedulingValidationError,
)
from scheduling.models import Appointment, AppointmentSeries, AppointmentSeriesWeekday
from scheduling.services.appointment_writer import AppointmentWriter
from scheduling.services.dataclasses import (
    AppointmentInputData,
    AppointmentSeriesInputData,
    WeekdaySlotData,
)
from scheduling.services.scheduling_service import SchedulingService, validate_weekday_slots


SAO_PAULO = zoneinfo.ZoneInfo("America/Sao_Paulo")
# a Monday morning in Sao Paulo, before the 09:00 slot
MONDAY_MORNING = datetime.datetime(2026, 2, 2, 8, 0, tzinfo=SAO_PAULO)


def utc(*args):
    return datetime.datetime(*args, tzinfo=datetime.UTC)


def slot(weekday, start, end):
    return WeekdaySlotData(
        weekday=weekday,
        start_time=datetime.time.fromisoformat(start),
        end_time=datetime.time.fromisoformat(end),
    )


def series_data(**kwargs):
    defaults = {
        "title": "Physiotherapy",
        "timezone": "America/Sao_Paulo",
        "starts_on": datetime.date(2026, 2, 2),
        "weekdays": [slot(Weekday.MONDAY, "09:00", "10:00")],
    }
    defaults.update(kwargs)
    return AppointmentSeriesInputData(**defaults)


def active_intervals(series):
    return list(
        Appointment.objects.filter_by_series(series.pk)
        .order_by("starts_at")
        .values_list("starts_at", "ends_at")
    )


class TestValidateWeekdaySlots:
    def test_accepts_valid_slots(self):
        validate_weekday_slots(
            [slot(Weekday.MONDAY, "09:00", "10:00"), slot(Weekday.MONDAY, "10:00", "11:00")]
        )

    def test_rejects_empty_slots(self):
        with pytest.raises(EmptyWeekdaySlotsError):
            validate_weekday_slots([])

    def test_allows_empty_slots_when_asked(self):
        validate_weekday_slots([], allow_empty=True)

    def test_rejects_weekday_out_of_range(self):
        with pytest.raises(SchedulingValidationError) as exc_info:
            validate_weekday_slots([slot(7, "09:00", "10:00")])

        assert exc_info.value.field == "weekdays"

    def test_rejects_end_not_after_start(self):
        with pytest.raises(InvalidTimeRangeError):
            validate_weekday_slots([slot(Weekday.MONDAY, "10:00", "09:00")])

    def test_rejects_duplicates(self):
        with pytest.raises(DuplicateWeekdaySlotError):
            validate_weekday_slots(
                [slot(Weekday.MONDAY, "09:00", "10:00"), slot(Weekday.MONDAY, "09:00", "10:00")]
            )


class TestClampGenerationWeeks:
    @pytest.mark.parametrize(
        "weeks, expected",
        [(None, 12), (0, 1), (-3, 1), (1, 1), (20, 20), (52, 52), (53, 52), (500, 52)],
    )
    def test_clamps_weeks(self, weeks, expected):
        service = SchedulingService(appointment_writer=AppointmentWriter())

        assert service.clamp_generation_weeks(weeks) == expected


@pytest.mark.django_db
class TestAppointments:
    def test_create_appointment(self, scheduling_service, customer):
        appointment = scheduling_service.create_appointment(
            customer.pk,
            AppointmentInputData(
                title="Consultation",
                notes="First visit",
                starts_at=utc(2026, 2, 2, 10),
                ends_at=utc(2026, 2, 2, 11),
            ),
        )

        assert appointment.pk
        assert appointment.customer_id == customer.pk
        assert appointment.series_id is None
        assert appointment.notes == "First visit"

    def test_create_appointment_for_unknown_customer(self, scheduling_service):
        with pytest.raises(CustomerNotFoundError):
            scheduling_service.create_appointment(
                999_999,
                AppointmentInputData(
                    title="Consultation",
                    starts_at=utc(2026, 2, 2, 10),
                    ends_at=utc(2026, 2, 2, 11),
                ),
            )

    def test_update_appointment(self, scheduling_service, customer):
        appointment = baker.make(
            Appointment,
            customer=customer,
            title="Consultation",
            starts_at=utc(2026, 2, 2, 10),
            ends_at=utc(2026, 2, 2, 11),
        )

        updated = scheduling_service.update_appointment(
            customer.pk, appointment.pk, {"title": "Checkup", "ends_at": utc(2026, 2, 2, 12)}
        )

        updated.refresh_from_db()
        assert updated.title == "Checkup"
        assert updated.starts_at == utc(2026, 2, 2, 10)
        assert updated.ends_at == utc(2026, 2, 2, 12)

    def test_update_appointment_checks_merged_times(self, scheduling_service, customer):
        appointment = baker.make(
            Appointment,
            customer=customer,
            starts_at=utc(2026, 2, 2, 10),
            ends_at=utc(2026, 2, 2, 11),
        )

        with pytest.raises(InvalidTimeRangeError):
            scheduling_service.update_appointment(
                customer.pk, appointment.pk, {"ends_at": utc(2026, 2, 2, 9)}
            )

    def test_update_appointment_into_conflict(self, scheduling_service, customer):
        baker.make(
            Appointment, customer=customer, starts_at=utc(2026, 2, 2, 10), ends_at=utc(2026, 2, 2, 11)
        )
        appointment = baker.make(
            Appointment, customer=customer, starts_at=utc(2026, 2, 2, 12), ends_at=utc(2026, 2, 2, 13)
        )

        with pytest.raises(AppointmentConflictError):
            scheduling_service.update_appointment(
                customer.pk, appointment.pk, {"starts_at": utc(2026, 2, 2, 10, 30)}
            )

        appointment.refresh_from_db()
        assert appointment.starts_at == utc(2026, 2, 2, 12)

    def test_appointments_of_other_customers_are_not_found(
        self, scheduling_service, customer, other_customer
    ):
        appointment = baker.make(
            Appointment,
            customer=other_customer,
            starts_at=utc(2026, 2, 2, 10),
            ends_at=utc(2026, 2, 2, 11),
        )

        with pytest.raises(AppointmentNotFoundError):
            scheduling_service.get_appointment(customer.pk, appointment.pk)
        with pytest.raises(AppointmentNotFoundError):
            scheduling_service.update_appointment(customer.pk, appointment.pk, {"title": "Mine"})
        with pytest.raises(AppointmentNotFoundError):
            scheduling_service.delete_appointment(customer.pk, appointment.pk)

    def test_delete_appointment_soft_deletes(self, scheduling_service, customer):
        appointment = baker.make(
            Appointment, customer=customer, starts_at=utc(2026, 2, 2, 10), ends_at=utc(2026, 2, 2, 11)
        )
        deleted_at = utc(2026, 2, 1, 9)

        scheduling_service.delete_appointment(customer.pk, appointment.pk, now=deleted_at)

        assert not Appointment.objects.filter(pk=appointment.pk).exists()
        assert Appointment.all_objects.get(pk=appointment.pk).deleted_at == deleted_at
        with pytest.raises(AppointmentNotFoundError):
            scheduling_service.delete_appointment(customer.pk, appointment.pk)


@pytest.mark.django_db
class TestCreateSeries:
    def test_create_series_with_generation(self, scheduling_service, customer):
        series = scheduling_service.create_series(
            customer.pk, series_data(), generate=True, weeks=2, now=MONDAY_MORNING
        )

        assert series.customer_id == customer.pk
        assert series.is_active
        assert list(series.weekdays.values_list("weekday", "start_time", "end_time")) == [
            (Weekday.MONDAY, datetime.time(9, 0), datetime.time(10, 0))
        ]
        assert active_intervals(series) == [
            (utc(2026, 2, 2, 12), utc(2026, 2, 2, 13)),
            (utc(2026, 2, 9, 12), utc(2026, 2, 9, 13)),
        ]
        assert set(
            Appointment.objects.filter_by_series(series.pk).values_list("title", flat=True)
        ) == {"Physiotherapy"}

    def test_create_series_without_generation(self, scheduling_service, customer):
        series = scheduling_service.create_series(customer.pk, series_data(), now=MONDAY_MORNING)

        assert series.weekdays.count() == 1
        assert active_intervals(series) == []

    def test_create_inactive_series_generates_nothing(self, scheduling_service, customer):
        series = scheduling_service.create_series(
            customer.pk, series_data(is_active=False), generate=True, now=MONDAY_MORNING
        )

        assert active_intervals(series) == []

    def test_default_timezone(self, scheduling_service, customer):
        series = scheduling_service.create_series(customer.pk, series_data(timezone=None))

        assert series.timezone == "UTC"

    def test_invalid_timezone(self, scheduling_service, customer):
        with pytest.raises(InvalidTimezoneError):
            scheduling_service.create_series(customer.pk, series_data(timezone="Mars/Base"))

        assert AppointmentSeries.objects.count() == 0

    def test_invalid_date_range(self, scheduling_service, customer):
        with pytest.raises(InvalidDateRangeError):
            scheduling_service.create_series(
                customer.pk, series_data(ends_on=datetime.date(2026, 2, 1))
            )

    def test_empty_weekdays(self, scheduling_service, customer):
        with pytest.raises(EmptyWeekdaySlotsError):
            scheduling_service.create_series(customer.pk, series_data(weekdays=[]))

    def test_unknown_customer(self, scheduling_service):
        with pytest.raises(CustomerNotFoundError):
            scheduling_service.create_series(999_999, series_data())

    def test_generation_conflict_rolls_everything_back(self, scheduling_service, customer):
        baker.make(
            Appointment,
            customer=customer,
            starts_at=utc(2026, 2, 9, 12, 30),
            ends_at=utc(2026, 2, 9, 13),
        )

        with pytest.raises(AppointmentConflictError):
            scheduling_service.create_series(
                customer.pk, series_data(), generate=True, weeks=2, now=MONDAY_MORNING
            )

        assert AppointmentSeries.objects.count() == 0
        assert AppointmentSeriesWeekday.objects.count() == 0
        assert Appointment.all_objects.count() == 1


@pytest.mark.django_db
class TestUpdateSeries:
    @pytest.fixture
    def series(self, scheduling_service, customer):
        return scheduling_service.create_series(
            customer.pk, series_data(), generate=True, weeks=2, now=MONDAY_MORNING
        )

    def test_update_fields_without_regeneration(self, scheduling_service, customer, series):
        updated = scheduling_service.update_series(
            customer.pk, series.pk, {"title": "Pilates", "notes": "Bring a mat"}
        )

        assert updated.title == "Pilates"
        assert updated.notes == "Bring a mat"
        assert list(
            Appointment.objects.filter_by_series(series.pk).values_list("title", flat=True)
        ) == ["Physiotherapy", "Physiotherapy"]

    def test_regenerate_with_new_slots(self, scheduling_service, customer, series):
        scheduling_service.update_series(
            customer.pk,
            series.pk,
            {},
            weekdays=[slot(Weekday.TUESDAY, "14:00", "15:00")],
            regenerate=True,
            weeks=2,
            now=MONDAY_MORNING,
        )

        assert active_intervals(series) == [
            (utc(2026, 2, 3, 17), utc(2026, 2, 3, 18)),
            (utc(2026, 2, 10, 17), utc(2026, 2, 10, 18)),
        ]
        assert Appointment.all_objects.filter_by_series(series.pk).only_deleted().count() == 2

    def test_regenerate_with_empty_slots(self, scheduling_service, customer, series):
        scheduling_service.update_series(
            customer.pk, series.pk, {}, weekdays=[], regenerate=True, now=MONDAY_MORNING
        )

        assert series.weekdays.count() == 0
        assert active_intervals(series) == []

    def test_replacing_slots_without_regeneration_keeps_appointments(
        self, scheduling_service, customer, series
    ):
        scheduling_service.update_series(
            customer.pk, series.pk, {}, weekdays=[slot(Weekday.FRIDAY, "18:00", "19:00")]
        )

        assert list(series.weekdays.values_list("weekday", flat=True)) == [Weekday.FRIDAY]
        assert len(active_intervals(series)) == 2

    def test_regeneration_conflict_rolls_everything_back(
        self, scheduling_service, customer, series
    ):
        baker.make(
            Appointment,
            customer=customer,
            starts_at=utc(2026, 2, 3, 17, 30),
            ends_at=utc(2026, 2, 3, 18),
        )

        with pytest.raises(AppointmentConflictError):
            scheduling_service.update_series(
                customer.pk,
                series.pk,
                {"title": "Renamed"},
                weekdays=[slot(Weekday.TUESDAY, "14:00", "15:00")],
                regenerate=True,
                weeks=2,
                now=MONDAY_MORNING,
            )

        series.refresh_from_db()
        assert series.title == "Physiotherapy"
        assert list(series.weekdays.values_list("weekday", flat=True)) == [Weekday.MONDAY]
        assert active_intervals(series) == [
            (utc(2026, 2, 2, 12), utc(2026, 2, 2, 13)),
            (utc(2026, 2, 9, 12), utc(2026, 2, 9, 13)),
        ]

    def test_regeneration_is_idempotent(self, scheduling_service, customer, series):
        before = active_intervals(series)

        scheduling_service.update_series(
            customer.pk, series.pk, {}, regenerate=True, weeks=2, now=MONDAY_MORNING
        )

        assert active_intervals(series) == before

    def test_regeneration_keeps_todays_past_appointment(self, scheduling_service, customer):
        # after the 09:00 slot, today's appointment is in the past and survives regeneration
        monday_noon = datetime.datetime(2026, 2, 2, 12, 0, tzinfo=SAO_PAULO)
        series = scheduling_service.create_series(
            customer.pk, series_data(), generate=True, weeks=2, now=monday_noon
        )
        before = active_intervals(series)

        scheduling_service.update_series(
            customer.pk, series.pk, {}, regenerate=True, weeks=2, now=monday_noon
        )

        assert active_intervals(series) == before
        assert before == [
            (utc(2026, 2, 2, 12), utc(2026, 2, 2, 13)),
            (utc(2026, 2, 9, 12), utc(2026, 2, 9, 13)),
        ]

    def test_invalid_timezone_keeps_series(self, scheduling_service, customer, series):
        with pytest.raises(InvalidTimezoneError):
            scheduling_service.update_series(customer.pk, series.pk, {"timezone": "Nowhere/City"})

        series.refresh_from_db()
        assert series.timezone == "America/Sao_Paulo"

    def test_invalid_date_range(self, scheduling_service, customer, series):
        with pytest.raises(InvalidDateRangeError):
            scheduling_service.update_series(
                customer.pk, series.pk, {"ends_on": datetime.date(2026, 1, 1)}
            )

    def test_series_of_other_customers_are_not_found(
        self, scheduling_service, other_customer, series
    ):
        with pytest.raises(AppointmentSeriesNotFoundError):
            scheduling_service.get_series(other_customer.pk, series.pk)
        with pytest.raises(AppointmentSeriesNotFoundError):
            scheduling_service.update_series(other_customer.pk, series.pk, {"title": "Mine"})
        with pytest.raises(AppointmentSeriesNotFoundError):
            scheduling_service.deactivate_series(other_customer.pk, series.pk)
        with pytest.raises(AppointmentSeriesNotFoundError):
            scheduling_service.generate_series_appointments(other_customer.pk, series.pk)


@pytest.mark.django_db
class TestDeactivateAndGenerate:
    @pytest.fixture
    def series(self, scheduling_service, customer):
        return scheduling_service.create_series(
            customer.pk, series_data(), generate=True, weeks=3, now=MONDAY_MORNING
        )

    def test_deactivate_keeps_appointments(self, scheduling_service, customer, series):
        scheduling_service.deactivate_series(customer.pk, series.pk)

        series.refresh_from_db()
        assert not series.is_active
        assert len(active_intervals(series)) == 3

    def test_deactivate_deletes_future_appointments(self, scheduling_service, customer, series):
        scheduling_service.deactivate_series(
            customer.pk, series.pk, delete_future_instances=True, now=utc(2026, 2, 5)
        )

        assert active_intervals(series) == [(utc(2026, 2, 2, 12), utc(2026, 2, 2, 13))]
        assert set(
            Appointment.all_objects.filter_by_series(series.pk)
            .only_deleted()
            .values_list("deleted_at", flat=True)
        ) == {utc(2026, 2, 5)}

    def test_reactivation_does_not_regenerate(self, scheduling_service, customer, series):
        scheduling_service.deactivate_series(
            customer.pk, series.pk, delete_future_instances=True, now=utc(2026, 2, 5)
        )

        scheduling_service.update_series(customer.pk, series.pk, {"is_active": True})

        series.refresh_from_db()
        assert series.is_active
        assert len(active_intervals(series)) == 1

    def test_generate_only_adds_missing_appointments(self, scheduling_service, customer, series):
        created = scheduling_service.generate_series_appointments(
            customer.pk, series.pk, weeks=4, now=MONDAY_MORNING
        )

        assert [appointment.starts_at for appointment in created] == [utc(2026, 2, 23, 12)]
        assert len(active_intervals(series)) == 4

    def test_generate_twice_creates_nothing_new(self, scheduling_service, customer, series):
        created = scheduling_service.generate_series_appointments(
            customer.pk, series.pk, weeks=3, now=MONDAY_MORNING
        )

        assert created == []
        assert len(active_intervals(series)) == 3

    def test_generate_for_inactive_series(self, scheduling_service, customer, series):
        scheduling_service.deactivate_series(customer.pk, series.pk)

        created = scheduling_service.generate_series_appointments(
            customer.pk, series.pk, weeks=6, now=MONDAY_MORNING
        )

        assert created == []

    def test_deleting_series_keeps_its_appointments(self, series):
        appointment_ids = list(
            Appointment.objects.filter_by_series(series.pk).values_list("pk", flat=True)
        )

        series.delete()

        appointments = Appointment.objects.filter(pk__in=appointment_ids)
        assert appointments.count() == 3
        assert all(appointment.series_id is None for appointment in appointments)


@pytest.mark.django_db(transaction=True)
def test_concurrent_overlapping_writes_keep_one(customer, scheduling_service):
    barrier = threading.Barrier(2)
    results = []

    def create_appointment(starts_at, ends_at):
        try:
            barrier.wait(timeout=10)
            scheduling_service.create_appointment(
                customer.pk,
                AppointmentInputData(title="Concurrent", starts_at=starts_at, ends_at=ends_at),
            )
            results.append("created")
        except AppointmentConflictError:
            results.append("conflict")
        finally:
            connection.close()

    threads = [
        threading.Thread(
            target=create_appointment, args=(utc(2026, 2, 2, 10), utc(2026, 2, 2, 11))
        ),
        threading.Thread(
            target=create_appointment, args=(utc(2026, 2, 2, 10, 30), utc(2026, 2, 2, 11, 30))
        ),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(results) == ["conflict", "created"]
    assert Appointment.objects.filter_by_customer(customer.pk).count() == 1
