import datetime
import zoneinfo

from scheduling.exceptions import InvalidTimezoneError


def get_zone(timezone_name: str) -> zoneinfo.ZoneInfo:
    """
    Returns the IANA zone for `timezone_name`.
    :raises InvalidTimezoneError: when the name is empty or not a known zone.
    """
    if not timezone_name:
        raise InvalidTimezoneError(timezone_name)

    try:
        return zoneinfo.ZoneInfo(timezone_name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(timezone_name) from e


def is_valid_timezone(timezone_name: str) -> bool:
    try:
        get_zone(timezone_name)
    except InvalidTimezoneError:
        return False
    return True


def is_nonexistent_local_time(local_datetime: datetime.datetime) -> bool:
    """
    True when the aware `local_datetime` falls in a gap skipped by a DST transition,
    detected by a round trip through UTC not giving back the same wall clock.
    """
    round_trip = local_datetime.astimezone(datetime.UTC).astimezone(local_datetime.tzinfo)
    return round_trip.replace(tzinfo=None, fold=0) != local_datetime.replace(tzinfo=None, fold=0)


def local_to_utc(
    local_date: datetime.date,
    local_time: datetime.time,
    timezone: str | zoneinfo.ZoneInfo,
) -> datetime.datetime:
    """
    Converts a wall clock date and time in `timezone` into an aware UTC datetime.

    DST transitions always resolve to an instant after the transition:
    - a wall clock that happens twice (clocks set back) uses the later offset, so
      01:30 on the day New York leaves DST is 01:30 EST;
    - a wall clock skipped by the transition (clocks set forward) is moved forward by the
      size of the gap, so 02:30 on the day New York enters DST is 03:30 EDT.
    """
    zone = timezone if isinstance(timezone, zoneinfo.ZoneInfo) else get_zone(timezone)
    local_datetime = datetime.datetime.combine(local_date, local_time, tzinfo=zone)

    if is_nonexistent_local_time(local_datetime):
        # fold=0 applies the offset in use before the gap, landing after the transition
        resolved = local_datetime.replace(fold=0)
    else:
        resolved = local_datetime.replace(fold=1)

    return resolved.astimezone(datetime.UTC)


def local_today(now: datetime.datetime, timezone: str | zoneinfo.ZoneInfo) -> datetime.date:
    zone = timezone if isinstance(timezone, zoneinfo.ZoneInfo) else get_zone(timezone)
    return now.astimezone(zone).date()
