from __future__ import annotations

from datetime import date

from teaching_calendar.event_factory import create_schedule
from teaching_calendar.models import (
    EVENT_CATEGORY_SPECIAL_DAY,
    EVENT_TYPE_ERROR,
    EVENT_TYPE_LESSON,
    EVENT_TYPE_SPECIAL,
    NO_LESSON_COMMENT,
    Lesson,
    PeriodAssignment,
    ScheduleConfiguration,
    ScheduleEvent,
)
from teaching_calendar.shifting import shift_backward, shift_forward

MON, TUE, WED, THU, FRI = (date(2024, 1, day) for day in range(1, 6))


def _base_configuration(end_date: date = FRI) -> ScheduleConfiguration:
    return ScheduleConfiguration(
        start_date=MON,
        end_date=end_date,
        teaching_days=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
        periods_per_day=1,
        period_assignments=[PeriodAssignment(period=1, course_id=10)],
    )


def _scenario_a(end_date: date = FRI, lesson_count: int = 3):
    config = _base_configuration(end_date)
    lessons = [Lesson(id=idx, title=f"L{idx}") for idx in range(1, lesson_count + 1)]
    return config, create_schedule(config, {10: lessons}).schedule


def _special(schedule, day: date) -> ScheduleEvent:
    event = ScheduleEvent(
        id=schedule.next_temporary_id(),
        date=day,
        period=1,
        event_type=EVENT_TYPE_SPECIAL,
        course_id=10,
        event_category=EVENT_CATEGORY_SPECIAL_DAY,
        comment="Assembly",
    )
    schedule.add_event(event)
    return event


def _slots(schedule) -> list[tuple[date, str, int | None]]:
    return [(e.date, e.event_type, e.lesson_id) for e in schedule.sorted_events()]


def test_special_day_pushes_lessons_forward_and_drops_trailing_placeholder():
    config, schedule = _scenario_a()
    _special(schedule, WED)

    result = shift_forward(schedule, config, WED, 1)

    assert result.success
    assert _slots(schedule) == [
        (MON, EVENT_TYPE_LESSON, 1),
        (TUE, EVENT_TYPE_LESSON, 2),
        (WED, EVENT_TYPE_SPECIAL, None),
        (THU, EVENT_TYPE_LESSON, 3),
        (FRI, EVENT_TYPE_ERROR, None),
    ]
    assert result.shifted == 2
    assert result.dropped == 1
    assert result.converted_to_error == 0


def test_removing_the_special_day_restores_the_original_layout():
    config, schedule = _scenario_a()
    original = _slots(schedule)
    special = _special(schedule, WED)
    shift_forward(schedule, config, WED, 1)

    schedule.remove_event(special)
    result = shift_backward(schedule, config, WED, 1)

    assert result.success
    assert result.shifted == 2
    assert result.refilled == 1
    assert _slots(schedule) == original
    assert all(e.comment == NO_LESSON_COMMENT for e in schedule.events if e.is_error)
    ids = [e.id for e in schedule.events]
    assert len(set(ids)) == len(ids)


def test_lessons_pushed_past_end_date_become_error_events():
    config, schedule = _scenario_a(end_date=WED)
    _special(schedule, TUE)

    result = shift_forward(schedule, config, TUE, 1)

    assert result.converted_to_error == 1
    overflow = schedule.events_at(THU, 1)
    assert len(overflow) == 1
    assert overflow[0].event_type == EVENT_TYPE_ERROR
    assert overflow[0].lesson_id is None
    assert overflow[0].comment == "ERROR: Lesson pushed past schedule end (Period 1)"
    assert schedule.events_at(WED, 1)[0].lesson_id == 2
    assert any("converted to error events" in w for w in result.warnings)


def test_shift_forward_keeps_lesson_order_and_slot_uniqueness():
    config, schedule = _scenario_a()
    _special(schedule, TUE)
    _special(schedule, THU)

    shift_forward(schedule, config, TUE, 1)
    shift_forward(schedule, config, THU, 1)

    lessons = [e for e in schedule.sorted_events() if e.is_lesson]
    assert [e.lesson_id for e in lessons] == sorted(e.lesson_id for e in lessons)
    slots = [(e.date, e.period) for e in schedule.events]
    assert len(slots) == len(set(slots))
    assert schedule.dirty


def test_later_shift_keeps_overflow_markers_from_earlier_shifts():
    config, schedule = _scenario_a(lesson_count=5)
    _special(schedule, WED)
    shift_forward(schedule, config, WED, 1)
    _special(schedule, THU)

    result = shift_forward(schedule, config, THU, 1)

    assert result.converted_to_error == 1
    assert result.dropped == 0
    markers = [e for e in schedule.sorted_events() if e.is_overflow_marker]
    assert [e.date for e in markers] == [date(2024, 1, 8), date(2024, 1, 9)]
    assert [e.lesson_id for e in schedule.sorted_events() if e.is_lesson] == [1, 2, 3]
    slots = [(e.date, e.period) for e in schedule.events]
    assert len(slots) == len(set(slots))


def test_shift_backward_is_a_no_op_when_no_slot_was_freed():
    config, schedule = _scenario_a()
    _special(schedule, WED)
    shift_forward(schedule, config, WED, 1)
    before = _slots(schedule)

    result = shift_backward(schedule, config, WED, 1)
    assert result.shifted == 0
    assert any("nothing shifted" in w for w in result.warnings)

    result = shift_backward(schedule, config, date(2024, 1, 6), 1)
    assert result.shifted == 0
    assert _slots(schedule) == before


def test_shift_forward_without_lessons_after_the_insertion_does_nothing():
    config, schedule = _scenario_a()
    result = shift_forward(schedule, config, date(2024, 1, 8), 1)
    assert result.summary() == {
        "period": 1,
        "shifted": 0,
        "converted_to_error": 0,
        "dropped": 0,
        "refilled": 0,
    }
