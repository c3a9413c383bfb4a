from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import date

from teaching_calendar.configuration import validate_configuration
from teaching_calendar.models import (
    EVENT_CATEGORY_LESSON,
    EVENT_CATEGORY_SPECIAL_PERIOD,
    EVENT_TYPE_ERROR,
    EVENT_TYPE_FREE,
    EVENT_TYPE_LESSON,
    EVENT_TYPE_SPECIAL,
    NO_LESSON_COMMENT,
    UNASSIGNED_PERIOD_COMMENT,
    GenerationResult,
    Lesson,
    PeriodAssignment,
    Schedule,
    ScheduleConfiguration,
    ScheduleEvent,
)
from teaching_calendar.teaching_days import teaching_days_between

log = logging.getLogger(__name__)


def temporary_ids(start: int = -1) -> Iterator[int]:
    """Strictly decreasing negative ids marking events as not yet persisted."""
    current = min(start, -1)
    while True:
        yield current
        current -= 1


def error_event(
    event_id: int,
    day: date,
    period: int,
    *,
    course_id: int | None,
    comment: str = NO_LESSON_COMMENT,
) -> ScheduleEvent:
    return ScheduleEvent(
        id=event_id,
        date=day,
        period=period,
        event_type=EVENT_TYPE_ERROR,
        course_id=course_id,
        lesson_id=None,
        event_category=None,
        comment=comment,
    )


def lesson_event(
    event_id: int,
    day: date,
    period: int,
    *,
    course_id: int,
    lesson: Lesson,
) -> ScheduleEvent:
    return ScheduleEvent(
        id=event_id,
        date=day,
        period=period,
        event_type=EVENT_TYPE_LESSON,
        course_id=course_id,
        lesson_id=lesson.id,
        event_category=EVENT_CATEGORY_LESSON,
        comment=None,
    )


def generate_events_for_course_period(
    assignment: PeriodAssignment,
    days: list[date],
    lessons: list[Lesson],
    ids: Iterator[int],
) -> list[ScheduleEvent]:
    events: list[ScheduleEvent] = []
    lesson_index = 0
    for day in days:
        if lesson_index < len(lessons):
            events.append(
                lesson_event(
                    next(ids),
                    day,
                    assignment.period,
                    course_id=assignment.course_id,
                    lesson=lessons[lesson_index],
                )
            )
            lesson_index += 1
        else:
            events.append(
                error_event(next(ids), day, assignment.period, course_id=assignment.course_id)
            )
    return events


def generate_events_for_special_period(
    assignment: PeriodAssignment,
    days: list[date],
    ids: Iterator[int],
) -> list[ScheduleEvent]:
    comment = assignment.notes or assignment.special_period_type
    return [
        ScheduleEvent(
            id=next(ids),
            date=day,
            period=assignment.period,
            event_type=EVENT_TYPE_SPECIAL,
            event_category=EVENT_CATEGORY_SPECIAL_PERIOD,
            comment=comment,
        )
        for day in days
    ]


def generate_events_for_unassigned_period(
    assignment: PeriodAssignment,
    days: list[date],
    ids: Iterator[int],
) -> list[ScheduleEvent]:
    return [
        ScheduleEvent(
            id=next(ids),
            date=day,
            period=assignment.period,
            event_type=EVENT_TYPE_FREE,
            comment=UNASSIGNED_PERIOD_COMMENT,
        )
        for day in days
    ]


def generate_schedule_events(
    configuration: ScheduleConfiguration,
    lesson_sequences: dict[int, list[Lesson]],
) -> tuple[list[ScheduleEvent], list[str]]:
    """Build the full slot assignment for a freshly activated configuration.

    Every period is filled independently over every teaching day in
    ``[start_date, end_date]``. Course periods walk their lesson sequence in
    order and then fall back to Error events; no occupancy checks are made
    here. The configuration is assumed to have passed validation.
    """
    warnings: list[str] = []
    days = list(
        teaching_days_between(
            configuration.start_date,
            configuration.end_date,
            configuration.teaching_day_numbers,
        )
    )
    ids = temporary_ids()
    events: list[ScheduleEvent] = []

    for assignment in sorted(configuration.period_assignments, key=lambda pa: pa.period):
        kind = assignment.kind
        if kind == "course":
            lessons = lesson_sequences.get(assignment.course_id)
            if lessons is None:
                warnings.append(
                    f"Course {assignment.course_id} (period {assignment.period}) has no lesson sequence; "
                    "period filled with error days."
                )
                lessons = []
            period_events = generate_events_for_course_period(assignment, days, lessons, ids)
            if len(lessons) > len(days):
                warnings.append(
                    f"Course {assignment.course_id} (period {assignment.period}): "
                    f"{len(lessons) - len(days)} lesson(s) did not fit before {configuration.end_date.isoformat()}."
                )
            log.info(
                "Period %d: %d lessons over %d teaching days for course %s",
                assignment.period,
                min(len(lessons), len(days)),
                len(days),
                assignment.course_id,
            )
        elif kind == "special":
            period_events = generate_events_for_special_period(assignment, days, ids)
        else:
            period_events = generate_events_for_unassigned_period(assignment, days, ids)
        events.extend(period_events)

    return events, warnings


def create_schedule(
    configuration: ScheduleConfiguration | None,
    lesson_sequences: dict[int, list[Lesson]],
    *,
    title: str | None = None,
) -> GenerationResult:
    """Validate the configuration, then generate a new in-memory schedule.

    Configuration problems reject the whole request: nothing is generated and
    the issues are returned in ``errors``.
    """
    if configuration is None:
        return GenerationResult(
            success=False,
            errors=["Cannot create schedule: No active schedule configuration available"],
        )

    errors, warnings = validate_configuration(configuration)
    if errors:
        log.warning("Schedule generation rejected: %s", "; ".join(errors))
        return GenerationResult(success=False, errors=errors, warnings=warnings)

    events, generation_warnings = generate_schedule_events(configuration, lesson_sequences)
    warnings.extend(generation_warnings)

    schedule = Schedule(
        id=0,
        title=title or configuration.title or "Schedule",
        schedule_configuration_id=configuration.id,
        events=events,
        dirty=True,
    )
    log.info(
        "Generated schedule '%s' with %d events (%d warnings)",
        schedule.title,
        len(events),
        len(warnings),
    )
    return GenerationResult(
        success=True,
        schedule=schedule,
        events_created=len(events),
        warnings=warnings,
    )
