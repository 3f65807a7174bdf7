import datetime
import logging
from collections.abc import Iterable, Sequence

from django.db import transaction

from customers.models import Customer
from scheduling.exceptions import (
    AppointmentConflictError,
    CustomerNotFoundError,
    InvalidTimeRangeError,
)
from scheduling.interval_utils import find_overlapping_pair
from scheduling.models import Appointment
from scheduling.services.dataclasses import AppointmentCandidate
from scheduling.services.decorators import translate_storage_errors


logger = logging.getLogger(__name__)


class AppointmentWriter:
    """
    Persists appointments keeping the active appointments of a customer free of overlaps.

    Every write locks the customer row, so writers of the same customer run one after the
    other, then checks the new intervals against each other and against the stored ones using
    half-open [start, end) intervals. The `appointments_no_overlap` exclusion constraint is
    the final guard, a rejection from it is reported as `AppointmentConflictError` as well.
    Writes are all or nothing.
    """

    @translate_storage_errors
    @transaction.atomic()
    def commit(
        self, customer_id: int, candidates: Sequence[AppointmentCandidate]
    ) -> list[Appointment]:
        """
        Creates all `candidates` for the customer or none of them.
        :param customer_id: owner of the new appointments.
        :param candidates: appointments to create.
        :return: the created appointments, in the same order as `candidates`.
        :raises AppointmentConflictError: if any candidate overlaps another candidate or an
            active appointment of the customer.
        """
        candidates = list(candidates)
        if not candidates:
            return []

        for candidate in candidates:
            self._check_time_order(candidate.starts_at, candidate.ends_at)

        self._lock_customer(customer_id)

        overlapping_pair = find_overlapping_pair(
            candidates, lambda candidate: (candidate.starts_at, candidate.ends_at)
        )
        if overlapping_pair is not None:
            _, second = overlapping_pair
            logger.info(
                "Conflict inside appointment batch of customer %s at %s",
                customer_id,
                second.starts_at.isoformat(),
            )
            raise AppointmentConflictError(starts_at=second.starts_at, ends_at=second.ends_at)

        self._check_existing_overlaps(
            customer_id,
            [(candidate.starts_at, candidate.ends_at) for candidate in candidates],
        )

        return Appointment.objects.bulk_create(
            [
                Appointment(
                    customer_id=customer_id,
                    series_id=candidate.series_id,
                    title=candidate.title,
                    notes=candidate.notes,
                    starts_at=candidate.starts_at,
                    ends_at=candidate.ends_at,
                )
                for candidate in candidates
            ]
        )

    @translate_storage_errors
    @transaction.atomic()
    def save(self, appointment: Appointment) -> Appointment:
        """
        Saves a new or edited appointment, checking it against the other active
        appointments of its customer.
        :raises AppointmentConflictError: if the appointment overlaps another one.
        """
        self._check_time_order(appointment.starts_at, appointment.ends_at)
        self._lock_customer(appointment.customer_id)

        self._check_existing_overlaps(
            appointment.customer_id,
            [(appointment.starts_at, appointment.ends_at)],
            exclude_ids=[appointment.pk] if appointment.pk else [],
        )

        appointment.save()
        return appointment

    def _check_time_order(self, starts_at: datetime.datetime, ends_at: datetime.datetime):
        if ends_at <= starts_at:
            raise InvalidTimeRangeError("ends_at must be after starts_at.", field="ends_at")

    def _lock_customer(self, customer_id: int):
        locked_ids = list(
            Customer.objects.select_for_update().filter(pk=customer_id).values_list("pk", flat=True)
        )
        if not locked_ids:
            raise CustomerNotFoundError()

    def _check_existing_overlaps(
        self,
        customer_id: int,
        intervals: list[tuple[datetime.datetime, datetime.datetime]],
        exclude_ids: Iterable[int] = (),
    ):
        window_start = min(starts_at for starts_at, _ in intervals)
        window_end = max(ends_at for _, ends_at in intervals)

        existing_appointments = list(
            Appointment.objects.filter_by_customer(customer_id)
            .filter_overlapping(window_start, window_end)
            .exclude(pk__in=list(exclude_ids))
            .values_list("pk", "starts_at", "ends_at")
        )
        if not existing_appointments:
            return

        # stored appointments never overlap each other and the new intervals were already
        # checked among themselves, so any overlapping pair mixes one of each
        tagged_intervals = [(None, starts_at, ends_at) for starts_at, ends_at in intervals] + list(
            existing_appointments
        )
        overlapping_pair = find_overlapping_pair(tagged_intervals, lambda item: (item[1], item[2]))
        if overlapping_pair is None:
            return

        first, second = overlapping_pair
        new_interval, existing = (first, second) if first[0] is None else (second, first)
        logger.info(
            "Appointment %s-%s of customer %s conflicts with appointment %s",
            new_interval[1].isoformat(),
            new_interval[2].isoformat(),
            customer_id,
            existing[0],
        )
        raise AppointmentConflictError(
            starts_at=new_interval[1],
            ends_at=new_interval[2],
            conflicting_appointment_id=existing[0],
        )
