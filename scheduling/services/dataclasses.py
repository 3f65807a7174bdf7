import datetime
from dataclasses import dataclass
from dataclasses import field as dataclass_field


@dataclass(frozen=True)
class WeekdaySlotData:
    weekday: int
    start_time: datetime.time
    end_time: datetime.time


@dataclass(frozen=True)
class SeriesDefinition:
    """Snapshot of a series used to expand it into occurrences."""

    timezone: str
    starts_on: datetime.date
    ends_on: datetime.date | None
    is_active: bool
    weekdays: tuple[WeekdaySlotData, ...] = ()


@dataclass(frozen=True)
class Occurrence:
    starts_at: datetime.datetime
    ends_at: datetime.datetime
    local_date: datetime.date


@dataclass(frozen=True)
class AppointmentCandidate:
    """An appointment about to be written for a customer."""

    title: str
    starts_at: datetime.datetime
    ends_at: datetime.datetime
    notes: str | None = None
    series_id: int | None = None


@dataclass
class AppointmentInputData:
    title: str
    starts_at: datetime.datetime
    ends_at: datetime.datetime
    notes: str | None = None


@dataclass
class AppointmentSeriesInputData:
    title: str
    starts_on: datetime.date
    weekdays: list[WeekdaySlotData] = dataclass_field(default_factory=list)
    notes: str | None = None
    ends_on: datetime.date | None = None
    timezone: str | None = None
    is_active: bool = True
