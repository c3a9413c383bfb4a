from __future__ import annotations

from datetime import date

from teaching_calendar.event_factory import create_schedule
from teaching_calendar.models import EVENT_TYPE_LESSON, Lesson, PeriodAssignment, ScheduleConfiguration, ScheduleEvent
from teaching_calendar.sequence_analysis import analyze_sequences, find_continuation_point

COURSE = PeriodAssignment(period=1, course_id=10)


def _base_configuration() -> ScheduleConfiguration:
    return ScheduleConfiguration(
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 5),
        teaching_days=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
        periods_per_day=1,
        period_assignments=[COURSE],
    )


def _lessons(count: int) -> list[Lesson]:
    return [Lesson(id=idx, title=f"L{idx}") for idx in range(1, count + 1)]


def _lesson_event(event_id: int, day: date, lesson_id: int) -> ScheduleEvent:
    return ScheduleEvent(
        id=event_id,
        date=day,
        period=1,
        event_type=EVENT_TYPE_LESSON,
        course_id=10,
        lesson_id=lesson_id,
    )


def test_appended_lesson_produces_a_continuation_point():
    schedule = create_schedule(_base_configuration(), {10: _lessons(3)}).schedule

    analysis = analyze_sequences(
        schedule.events, [COURSE], {10: _lessons(4)}, date(2024, 1, 3)
    )

    assert len(analysis.continuation_points) == 1
    point = analysis.continuation_points[0]
    assert point.last_assigned_lesson_index == 2
    assert point.continuation_date == date(2024, 1, 4)
    assert analysis.details[0].placed_lessons == 3
    assert analysis.warnings == []


def test_fully_placed_sequence_needs_no_continuation():
    schedule = create_schedule(_base_configuration(), {10: _lessons(3)}).schedule

    analysis = analyze_sequences(schedule.events, [COURSE], {10: _lessons(3)}, date(2024, 1, 3))

    assert analysis.continuation_points == []
    assert not analysis.details[0].needs_continuation


def test_gaps_below_the_highest_position_are_reported_not_replaced():
    events = [
        _lesson_event(-1, date(2024, 1, 1), 1),
        _lesson_event(-2, date(2024, 1, 2), 3),
    ]
    point, detail, warnings = find_continuation_point(events, COURSE, _lessons(4), date(2024, 1, 2))

    assert point.last_assigned_lesson_index == 2
    assert detail.missing_positions == [1]
    assert any("will not be re-scheduled" in w for w in warnings)


def test_unknown_lessons_and_inversions_are_warned_about():
    events = [
        _lesson_event(-1, date(2024, 1, 1), 2),
        _lesson_event(-2, date(2024, 1, 2), 1),
        _lesson_event(-3, date(2024, 1, 3), 99),
    ]
    point, detail, warnings = find_continuation_point(events, COURSE, _lessons(3), date(2024, 1, 3))

    assert point.last_assigned_lesson_index == 1
    assert detail.placed_lessons == 2
    assert any("lesson 99" in w and "not in the course's lesson sequence" in w for w in warnings)
    assert any("out of sequence order" in w for w in warnings)


def test_non_course_assignments_and_unknown_courses_are_skipped():
    analysis = analyze_sequences(
        [],
        [PeriodAssignment(period=2, special_period_type="Lunch"), PeriodAssignment(period=1, course_id=77)],
        {},
        date(2024, 1, 1),
    )
    assert analysis.continuation_points == []
    assert analysis.warnings == ["Course 77 (period 1) has no lesson sequence."]
