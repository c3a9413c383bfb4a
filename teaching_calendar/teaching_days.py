from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import date, timedelta

log = logging.getLogger(__name__)

MAX_SEARCH_DAYS = 365

WEEKDAY_TO_INT = {
    "Mon": 0,
    "Tue": 1,
    "Wed": 2,
    "Thu": 3,
    "Fri": 4,
    "Sat": 5,
    "Sun": 6,
    "Monday": 0,
    "Tuesday": 1,
    "Wednesday": 2,
    "Thursday": 3,
    "Friday": 4,
    "Saturday": 5,
    "Sunday": 6,
}

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


def weekday_number(name: str) -> int:
    text = str(name or "").strip()
    key = text[:1].upper() + text[1:].lower()
    if key not in WEEKDAY_TO_INT:
        raise ValueError(f"Unknown weekday name: {name!r}")
    return WEEKDAY_TO_INT[key]


def teaching_day_numbers(names: Iterable[str]) -> list[int]:
    return sorted({weekday_number(name) for name in names})


def is_teaching_day(day: date, teaching_day_numbers: Iterable[int]) -> bool:
    return day.weekday() in set(teaching_day_numbers)


def next_teaching_day(day: date, teaching_day_numbers: Iterable[int]) -> date:
    """Smallest date on or after ``day`` that falls on a teaching weekday."""
    numbers = set(teaching_day_numbers)
    candidate = day
    for _ in range(MAX_SEARCH_DAYS):
        if candidate.weekday() in numbers:
            return candidate
        candidate += timedelta(days=1)
    log.warning(
        "No teaching day found within %d days of %s (teaching days: %s)",
        MAX_SEARCH_DAYS,
        day.isoformat(),
        sorted(numbers),
    )
    return day


def previous_teaching_day(day: date, teaching_day_numbers: Iterable[int]) -> date:
    numbers = set(teaching_day_numbers)
    candidate = day
    for _ in range(MAX_SEARCH_DAYS):
        if candidate.weekday() in numbers:
            return candidate
        candidate -= timedelta(days=1)
    log.warning(
        "No teaching day found within %d days before %s (teaching days: %s)",
        MAX_SEARCH_DAYS,
        day.isoformat(),
        sorted(numbers),
    )
    return day


def teaching_days_between(
    start: date,
    end: date,
    teaching_day_numbers: Iterable[int],
) -> Iterator[date]:
    numbers = set(teaching_day_numbers)
    if end < start:
        return
    for offset in range((end - start).days + 1):
        day = start + timedelta(days=offset)
        if day.weekday() in numbers:
            yield day


def is_slot_occupied_by_non_lesson_event(day: date, period: int, events) -> bool:
    """True when a Special/Free (anything but Lesson or Error) event holds the slot."""
    return any(
        event.date == day and event.period == period and event.blocks_placement
        for event in events
    )


def blocked_dates_for_period(events, period: int) -> set[date]:
    return {
        event.date
        for event in events
        if event.period == period and event.blocks_placement
    }


def _search_available_date(
    start: date,
    *,
    period: int,
    teaching_day_numbers: Iterable[int],
    events,
    step: int,
    accept: Callable[[date], bool] | None = None,
    floor: date | None = None,
) -> date | None:
    numbers = set(teaching_day_numbers)
    blocked = blocked_dates_for_period(events, period)
    candidate = start
    for _ in range(MAX_SEARCH_DAYS):
        if floor is not None and candidate < floor:
            return None
        if candidate.weekday() in numbers and candidate not in blocked:
            if accept is None or accept(candidate):
                return candidate
        candidate += timedelta(days=step)
    return None


def find_next_available_date(
    start: date,
    *,
    period: int,
    teaching_day_numbers: Iterable[int],
    events,
    accept: Callable[[date], bool] | None = None,
) -> date:
    """Scan forward from ``start`` for a teaching day whose slot is not blocked.

    Falls back to ``start`` itself when nothing is found within
    :data:`MAX_SEARCH_DAYS`.
    """
    found = _search_available_date(
        start,
        period=period,
        teaching_day_numbers=teaching_day_numbers,
        events=events,
        step=1,
        accept=accept,
    )
    if found is None:
        log.warning(
            "Could not find available date for period %d after %s",
            period,
            start.isoformat(),
        )
        return start
    return found


def find_previous_available_date(
    start: date,
    *,
    period: int,
    teaching_day_numbers: Iterable[int],
    events,
    floor: date | None = None,
) -> date | None:
    """Scan backward from the day before ``start``.

    Returns ``None`` when no open slot exists at or after ``floor``; when the
    search cap is hit without a floor the original ``start`` is returned.
    """
    found = _search_available_date(
        start - timedelta(days=1),
        period=period,
        teaching_day_numbers=teaching_day_numbers,
        events=events,
        step=-1,
        floor=floor,
    )
    if found is None:
        if floor is not None:
            return None
        log.warning(
            "Could not find previous available date for period %d before %s",
            period,
            start.isoformat(),
        )
        return start
    return found
