import datetime

from rest_framework import status
from rest_framework.exceptions import APIException


class SchedulingError(Exception):
    """Base exception for scheduling errors"""

    default_message = ""

    def __init__(self, message: str | None = None):
        if message is None:
            message = self.default_message
        super().__init__(message)


# Validation Errors
class SchedulingValidationError(SchedulingError):
    """Raised when the input of a scheduling operation is malformed or out of range"""

    field: str | None = None

    def __init__(self, message: str | None = None, field: str | None = None):
        if field is not None:
            self.field = field
        super().__init__(message)


class InvalidTimezoneError(SchedulingValidationError):
    field = "timezone"

    def __init__(self, timezone_name: str):
        self.timezone_name = timezone_name
        super().__init__(f"Invalid timezone: {timezone_name}")


class InvalidTimeRangeError(SchedulingValidationError):
    default_message = "End must be after start."


class InvalidDateRangeError(SchedulingValidationError):
    default_message = "ends_on must be on or after starts_on."
    field = "ends_on"


class EmptyWeekdaySlotsError(SchedulingValidationError):
    default_message = "At least one weekday slot is required."
    field = "weekdays"


class DuplicateWeekdaySlotError(SchedulingValidationError):
    default_message = "Duplicate weekday slot in the same series."
    field = "weekdays"


# Not Found Errors
class SchedulingNotFoundError(SchedulingError):
    """Raised when an entity does not exist or is not owned by the given customer"""

    pass


class CustomerNotFoundError(SchedulingNotFoundError):
    default_message = "Customer not found."


class AppointmentNotFoundError(SchedulingNotFoundError):
    default_message = "Appointment not found."


class AppointmentSeriesNotFoundError(SchedulingNotFoundError):
    default_message = "Appointment series not found."


# Conflict Errors
class AppointmentConflictError(SchedulingError):
    """Raised when a write would make two active appointments of a customer overlap"""

    default_message = "Schedule conflict: the customer already has an appointment in this period."

    def __init__(
        self,
        starts_at: datetime.datetime | None = None,
        ends_at: datetime.datetime | None = None,
        conflicting_appointment_id: int | None = None,
        message: str | None = None,
    ):
        self.starts_at = starts_at
        self.ends_at = ends_at
        self.conflicting_appointment_id = conflicting_appointment_id
        if message is None and starts_at is not None and ends_at is not None:
            message = (
                f"Schedule conflict: the customer already has an appointment overlapping "
                f"{starts_at.isoformat()} - {ends_at.isoformat()}."
            )
        super().__init__(message)


# Storage Errors
class StorageFailureError(SchedulingError):
    """Raised for persistence errors that are not overlap conflicts"""

    default_message = "Failed to persist the schedule changes."


# API Errors
class AppointmentConflictAPIError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = AppointmentConflictError.default_message
    default_code = "appointment_conflict"
