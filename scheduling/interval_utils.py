import datetime
from collections.abc import Callable, Iterable
from typing import TypeVar


T = TypeVar("T")

Interval = tuple[datetime.datetime, datetime.datetime]


def intervals_overlap(
    first_start: datetime.datetime,
    first_end: datetime.datetime,
    second_start: datetime.datetime,
    second_end: datetime.datetime,
) -> bool:
    """
    Half-open [start, end) overlap check, intervals that only touch do not overlap.
    """
    return first_start < second_end and second_start < first_end


def find_overlapping_pair(
    items: Iterable[T], get_interval: Callable[[T], Interval]
) -> tuple[T, T] | None:
    """
    Returns the first pair of items whose intervals overlap, or None.
    Sorts by start and sweeps keeping the item that ends last so far.
    """
    sorted_items = sorted(items, key=get_interval)

    latest_ending_item: T | None = None
    latest_end: datetime.datetime | None = None
    for item in sorted_items:
        start, end = get_interval(item)
        if latest_end is not None and start < latest_end:
            return latest_ending_item, item  # type: ignore[return-value]
        if latest_end is None or end > latest_end:
            latest_ending_item = item
            latest_end = end

    return None
