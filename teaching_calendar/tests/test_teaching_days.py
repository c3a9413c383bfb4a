from __future__ import annotations

from datetime import date

import pytest

from teaching_calendar.models import EVENT_TYPE_ERROR, EVENT_TYPE_LESSON, EVENT_TYPE_SPECIAL, ScheduleEvent
from teaching_calendar.teaching_days import (
    find_next_available_date,
    find_previous_available_date,
    is_slot_occupied_by_non_lesson_event,
    is_teaching_day,
    next_teaching_day,
    previous_teaching_day,
    teaching_day_numbers,
    teaching_days_between,
    weekday_number,
)

WEEKDAYS = [0, 1, 2, 3, 4]


def _special(day: date, period: int = 1) -> ScheduleEvent:
    return ScheduleEvent(id=-100, date=day, period=period, event_type=EVENT_TYPE_SPECIAL)


def test_weekday_number_accepts_short_and_full_names_in_any_case():
    assert weekday_number("mon") == 0
    assert weekday_number("Friday") == 4
    assert weekday_number("  SUN ") == 6
    assert teaching_day_numbers(["Wed", "Monday", "mon"]) == [0, 2]


def test_weekday_number_rejects_unknown_names():
    with pytest.raises(ValueError, match="Unknown weekday"):
        weekday_number("Funday")


def test_next_teaching_day_skips_weekend():
    saturday = date(2024, 1, 6)
    assert not is_teaching_day(saturday, WEEKDAYS)
    assert next_teaching_day(saturday, WEEKDAYS) == date(2024, 1, 8)
    assert next_teaching_day(date(2024, 1, 3), WEEKDAYS) == date(2024, 1, 3)
    assert previous_teaching_day(saturday, WEEKDAYS) == date(2024, 1, 5)
    assert previous_teaching_day(date(2024, 1, 3), [0]) == date(2024, 1, 1)


def test_next_teaching_day_returns_input_when_no_weekday_is_taught():
    assert next_teaching_day(date(2024, 1, 6), []) == date(2024, 1, 6)


def test_teaching_days_between_is_inclusive_and_filtered():
    days = list(teaching_days_between(date(2024, 1, 1), date(2024, 1, 7), [0, 2, 4]))
    assert days == [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 5)]
    assert list(teaching_days_between(date(2024, 1, 5), date(2024, 1, 1), WEEKDAYS)) == []


def test_only_non_lesson_events_occupy_a_slot():
    wednesday = date(2024, 1, 3)
    events = [
        ScheduleEvent(id=-1, date=wednesday, period=1, event_type=EVENT_TYPE_LESSON, lesson_id=3),
        ScheduleEvent(id=-2, date=wednesday, period=2, event_type=EVENT_TYPE_ERROR),
        _special(wednesday, period=3),
    ]
    assert not is_slot_occupied_by_non_lesson_event(wednesday, 1, events)
    assert not is_slot_occupied_by_non_lesson_event(wednesday, 2, events)
    assert is_slot_occupied_by_non_lesson_event(wednesday, 3, events)


def test_find_next_available_date_skips_special_events_in_the_same_period_only():
    events = [_special(date(2024, 1, 3), period=1)]
    assert (
        find_next_available_date(
            date(2024, 1, 3), period=1, teaching_day_numbers=WEEKDAYS, events=events
        )
        == date(2024, 1, 4)
    )
    assert (
        find_next_available_date(
            date(2024, 1, 3), period=2, teaching_day_numbers=WEEKDAYS, events=events
        )
        == date(2024, 1, 3)
    )


def test_find_next_available_date_falls_back_to_start_when_search_is_exhausted():
    start = date(2024, 1, 3)
    assert find_next_available_date(start, period=1, teaching_day_numbers=[], events=[]) == start


def test_find_previous_available_date_respects_floor():
    events = [_special(date(2024, 1, 4))]
    found = find_previous_available_date(
        date(2024, 1, 5),
        period=1,
        teaching_day_numbers=WEEKDAYS,
        events=events,
        floor=date(2024, 1, 3),
    )
    assert found == date(2024, 1, 3)

    assert (
        find_previous_available_date(
            date(2024, 1, 3),
            period=1,
            teaching_day_numbers=WEEKDAYS,
            events=[],
            floor=date(2024, 1, 3),
        )
        is None
    )


def test_find_previous_available_date_crosses_weekends():
    found = find_previous_available_date(
        date(2024, 1, 8), period=1, teaching_day_numbers=WEEKDAYS, events=[]
    )
    assert found == date(2024, 1, 5)
