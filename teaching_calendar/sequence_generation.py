from __future__ import annotations

import logging
from datetime import date, timedelta

from teaching_calendar.configuration import validate_configuration
from teaching_calendar.event_factory import error_event, lesson_event, temporary_ids
from teaching_calendar.models import (
    OVERFLOW_COMMENT_PREFIX,
    ContinuationPoint,
    ContinuationResult,
    Lesson,
    PairingProgress,
    PeriodAssignment,
    Schedule,
    ScheduleConfiguration,
)
from teaching_calendar.sequence_analysis import analyze_sequences
from teaching_calendar.teaching_days import find_next_available_date

log = logging.getLogger(__name__)


def _overflow_comment(remaining: int, end_date: date) -> str:
    return (
        f"{OVERFLOW_COMMENT_PREFIX}{remaining} lesson(s) could not be placed before schedule end "
        f"{end_date.isoformat()}"
    )


def continue_sequence_for_point(
    schedule: Schedule,
    point: ContinuationPoint,
    configuration: ScheduleConfiguration,
    lessons: list[Lesson],
) -> PairingProgress:
    """Append lessons for one pairing after its continuation date.

    A slot is usable when it is a teaching day, is not held by a Special or
    Free event, and holds no Lesson for this period yet. An Error placeholder
    in a usable slot is replaced by the new lesson. Existing Lesson and Special
    events are never touched.
    Overflow writes one Error past ``end_date``, reusing an Error already in
    that slot.
    """
    period = point.period
    numbers = configuration.teaching_day_numbers
    end_date = configuration.end_date
    ids = temporary_ids(schedule.next_temporary_id())

    lesson_dates = {
        event.date for event in schedule.events if event.period == period and event.is_lesson
    }

    def _free_of_lessons(day: date) -> bool:
        return day not in lesson_dates

    next_index = point.last_assigned_lesson_index + 1
    events_added = 0
    candidate = find_next_available_date(
        point.continuation_date,
        period=period,
        teaching_day_numbers=numbers,
        events=schedule.events,
        accept=_free_of_lessons,
    )

    while next_index < len(lessons):
        remaining = len(lessons) - next_index
        if candidate > end_date:
            comment = _overflow_comment(remaining, end_date)
            existing = [e for e in schedule.events_at(candidate, period) if e.is_error]
            if existing:
                existing[0].comment = comment
                schedule.mark_dirty()
            else:
                schedule.add_event(
                    error_event(
                        next(ids),
                        candidate,
                        period,
                        course_id=point.course_id,
                        comment=comment,
                    )
                )
                events_added += 1
            log.warning(
                "Period %d, course %d: %d lesson(s) remain past %s",
                period,
                point.course_id,
                remaining,
                end_date.isoformat(),
            )
            break

        for placeholder in [e for e in schedule.events_at(candidate, period) if e.is_error]:
            schedule.remove_event(placeholder)
        lesson = lessons[next_index]
        schedule.add_event(
            lesson_event(
                next(ids),
                candidate,
                period,
                course_id=point.course_id,
                lesson=lesson,
            )
        )
        log.debug(
            "%s period %d: lesson %s (%d)",
            candidate.isoformat(),
            period,
            lesson.title,
            lesson.id,
        )
        lesson_dates.add(candidate)
        events_added += 1
        next_index += 1
        candidate = find_next_available_date(
            candidate + timedelta(days=1),
            period=period,
            teaching_day_numbers=numbers,
            events=schedule.events,
            accept=_free_of_lessons,
        )

    return PairingProgress(
        course_id=point.course_id,
        period=period,
        events_added=events_added,
        lessons_remaining=len(lessons) - next_index,
        last_lesson_index=next_index - 1,
    )


def generate_continuation(
    schedule: Schedule,
    points: list[ContinuationPoint],
    configuration: ScheduleConfiguration,
    lesson_sequences: dict[int, list[Lesson]],
) -> ContinuationResult:
    processed: list[PairingProgress] = []
    warnings: list[str] = []
    total = 0

    for point in points:
        lessons = lesson_sequences.get(point.course_id)
        if lessons is None:
            warnings.append(f"Course {point.course_id} not found; period {point.period} skipped.")
            continue
        progress = continue_sequence_for_point(schedule, point, configuration, lessons)
        processed.append(progress)
        total += progress.events_added
        if progress.lessons_remaining:
            warnings.append(
                f"Period {point.period}, course {point.course_id}: {progress.lessons_remaining} "
                f"lesson(s) did not fit before {configuration.end_date.isoformat()}."
            )
        log.info(
            "Added %d continuation events for period %d, course %d",
            progress.events_added,
            point.period,
            point.course_id,
        )

    if processed:
        schedule.mark_dirty()

    return ContinuationResult(
        success=True,
        periods_processed=len(processed),
        events_created=total,
        processed=processed,
        warnings=warnings,
    )


def continue_sequences(
    schedule: Schedule,
    configuration: ScheduleConfiguration,
    lesson_sequences: dict[int, list[Lesson]],
    after_date: date,
    *,
    assignments: list[PeriodAssignment] | None = None,
) -> ContinuationResult:
    """Analyze the schedule and place every lesson that is not placed yet.

    ``assignments`` narrows the pairings in scope; by default every course
    period of ``configuration`` is considered.
    """
    errors, _ = validate_configuration(configuration)
    if errors:
        log.warning("Sequence continuation rejected: %s", "; ".join(errors))
        return ContinuationResult(
            success=False,
            errors=[f"Sequence continuation failed: {error}" for error in errors],
        )

    analysis = analyze_sequences(
        schedule.events,
        assignments if assignments is not None else configuration.course_assignments(),
        lesson_sequences,
        after_date,
    )
    if not analysis.continuation_points:
        return ContinuationResult(
            success=True,
            warnings=analysis.warnings + ["No course periods require lesson continuation"],
        )
    result = generate_continuation(
        schedule, analysis.continuation_points, configuration, lesson_sequences
    )
    result.warnings = analysis.warnings + result.warnings
    return result
