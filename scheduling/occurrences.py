import datetime
import logging
from collections import defaultdict

from scheduling.services.dataclasses import Occurrence, SeriesDefinition, WeekdaySlotData
from scheduling.timezone_utils import get_zone, local_to_utc


logger = logging.getLogger(__name__)


def get_weekday_index(day: datetime.date) -> int:
    """Weekday index where 0 is Sunday and 6 is Saturday."""
    return day.isoweekday() % 7


def get_generation_window(
    series: SeriesDefinition, horizon_weeks: int, today: datetime.date
) -> tuple[datetime.date, datetime.date]:
    """
    Returns the [first_day, stop_day) window of local dates to expand. It never starts before
    `today`, stops `horizon_weeks` weeks after today and includes `series.ends_on`.
    """
    first_day = max(series.starts_on, today)
    stop_day = today + datetime.timedelta(weeks=horizon_weeks)
    if series.ends_on is not None:
        stop_day = min(stop_day, series.ends_on + datetime.timedelta(days=1))
    return first_day, stop_day


def generate_occurrences(
    series: SeriesDefinition, horizon_weeks: int, now: datetime.datetime
) -> list[Occurrence]:
    """
    Expands the weekday slots of `series` into concrete occurrences.

    Days are walked one at a time in the series' timezone, each slot matching the day's
    weekday yields one occurrence whose local start and end are converted to UTC. Inactive
    series produce nothing. `horizon_weeks` must already be clamped by the caller.
    :param series: snapshot of the series to expand.
    :param horizon_weeks: number of weeks after today (series' local date) to expand.
    :param now: reference instant used to compute today.
    :return: occurrences ordered by start.
    """
    if not series.is_active:
        return []
    if horizon_weeks < 1:
        raise ValueError("horizon_weeks must be a positive number of weeks.")

    zone = get_zone(series.timezone)
    today = now.astimezone(zone).date()
    first_day, stop_day = get_generation_window(series, horizon_weeks, today)

    slots_by_weekday: dict[int, list[WeekdaySlotData]] = defaultdict(list)
    for slot in series.weekdays:
        slots_by_weekday[slot.weekday].append(slot)
    for slots in slots_by_weekday.values():
        slots.sort(key=lambda slot: (slot.start_time, slot.end_time))

    occurrences: list[Occurrence] = []
    day = first_day
    while day < stop_day:
        for slot in slots_by_weekday.get(get_weekday_index(day), []):
            starts_at = local_to_utc(day, slot.start_time, zone)
            ends_at = local_to_utc(day, slot.end_time, zone)
            if ends_at <= starts_at:
                logger.warning(
                    "Skipping occurrence on %s for slot %s-%s in %s: end is not after start",
                    day.isoformat(),
                    slot.start_time.isoformat(),
                    slot.end_time.isoformat(),
                    series.timezone,
                )
                continue
            occurrences.append(Occurrence(starts_at=starts_at, ends_at=ends_at, local_date=day))
        day += datetime.timedelta(days=1)

    occurrences.sort(key=lambda occurrence: (occurrence.starts_at, occurrence.ends_at))
    return occurrences
