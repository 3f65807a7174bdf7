"""Decorators for scheduling service methods."""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.db import DatabaseError, IntegrityError

from psycopg import errors as psycopg_errors

from scheduling.constants import APPOINTMENTS_NO_OVERLAP_CONSTRAINT
from scheduling.exceptions import AppointmentConflictError, StorageFailureError


logger = logging.getLogger(__name__)


def is_overlap_violation(error: DatabaseError) -> bool:
    """
    True when `error` was raised by the appointments exclusion constraint. Relies on the
    driver error type and the constraint name reported by Postgres, never on the message.
    """
    cause = error.__cause__
    return (
        isinstance(cause, psycopg_errors.ExclusionViolation)
        and cause.diag.constraint_name == APPOINTMENTS_NO_OVERLAP_CONSTRAINT
    )


def translate_storage_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator that turns database errors into scheduling errors.

    Raises:
        AppointmentConflictError: If the appointments exclusion constraint rejected the write.
        StorageFailureError: For any other database error.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except IntegrityError as e:
            if is_overlap_violation(e):
                logger.info("Appointment write rejected by %s", APPOINTMENTS_NO_OVERLAP_CONSTRAINT)
                raise AppointmentConflictError() from e
            logger.exception("Integrity error while writing schedule changes")
            raise StorageFailureError() from e
        except DatabaseError as e:
            logger.exception("Database error while writing schedule changes")
            raise StorageFailureError() from e

    return wrapper
