from __future__ import annotations

import logging
from datetime import date, timedelta

from teaching_calendar.event_factory import error_event, temporary_ids
from teaching_calendar.models import (
    NO_LESSON_COMMENT,
    OVERFLOW_COMMENT_PREFIX,
    Schedule,
    ScheduleConfiguration,
    ScheduleEvent,
    ShiftResult,
)
from teaching_calendar.teaching_days import (
    find_next_available_date,
    find_previous_available_date,
    is_slot_occupied_by_non_lesson_event,
    is_teaching_day,
    next_teaching_day,
)

log = logging.getLogger(__name__)


def _overflow_comment(period: int) -> str:
    return f"{OVERFLOW_COMMENT_PREFIX}Lesson pushed past schedule end (Period {period})"


def _movable(event: ScheduleEvent) -> bool:
    return event.is_lesson or event.is_error


def _chain_key(event: ScheduleEvent) -> tuple[date, int]:
    return event.date, 0 if event.is_lesson else 1


def lessons_on_or_after(schedule: Schedule, day: date, period: int) -> list[ScheduleEvent]:
    return sorted(
        (e for e in schedule.events if e.period == period and e.date >= day and _movable(e)),
        key=_chain_key,
    )


def lessons_after_descending(schedule: Schedule, day: date, period: int) -> list[ScheduleEvent]:
    return sorted(
        (e for e in schedule.events if e.period == period and e.date > day and _movable(e)),
        key=_chain_key,
        reverse=True,
    )


def shift_forward(
    schedule: Schedule,
    configuration: ScheduleConfiguration,
    insertion_date: date,
    period: int,
) -> ShiftResult:
    """Push a period's lessons later after a special event lands on ``insertion_date``.

    Lessons (and the Error placeholders trailing them) dated on or after the
    insertion are re-dated in date order onto consecutive open slots starting
    the teaching day after the insertion. Each new date is never earlier than
    the previous one. A lesson pushed past ``end_date`` turns into an Error
    event in place. Overflow markers left by earlier shifts or continuations
    keep moving with the chain; empty-slot placeholders pushed past it are
    removed.
    """
    result = ShiftResult(success=True, period=period)
    numbers = configuration.teaching_day_numbers
    end_date = configuration.end_date

    chain = lessons_on_or_after(schedule, insertion_date, period)
    log.info(
        "shift_forward: period %d from %s (%d events)",
        period,
        insertion_date.isoformat(),
        len(chain),
    )
    if not chain:
        return result

    cursor = next_teaching_day(insertion_date + timedelta(days=1), numbers)
    for event in chain:
        cursor = find_next_available_date(
            cursor,
            period=period,
            teaching_day_numbers=numbers,
            events=schedule.events,
        )
        if cursor > end_date:
            if event.is_lesson:
                log.debug("Lesson %s overflowed to %s", event.lesson_id, cursor.isoformat())
                event.date = cursor
                event.convert_to_error(_overflow_comment(period))
                result.converted_to_error += 1
            elif event.is_overflow_marker:
                if event.date != cursor:
                    event.date = cursor
                    result.shifted += 1
            else:
                schedule.remove_event(event)
                result.dropped += 1
        else:
            if event.date != cursor:
                event.date = cursor
                result.shifted += 1
        cursor = next_teaching_day(cursor + timedelta(days=1), numbers)

    if result.converted_to_error:
        result.warnings.append(
            f"{result.converted_to_error} lesson(s) in period {period} were pushed past "
            f"{end_date.isoformat()} and converted to error events."
        )
    schedule.mark_dirty()
    return result


def shift_backward(
    schedule: Schedule,
    configuration: ScheduleConfiguration,
    deleted_date: date,
    period: int,
) -> ShiftResult:
    """Pull a period's lessons earlier after the special event on ``deleted_date`` is gone.

    Events are processed latest first so no lesson claims a slot that an
    earlier, still unprocessed lesson needs. Nothing moves earlier than
    ``deleted_date``. Slots left empty at the end of a course period are
    refilled with Error placeholders.
    """
    result = ShiftResult(success=True, period=period)
    numbers = configuration.teaching_day_numbers

    if not is_teaching_day(deleted_date, numbers) or is_slot_occupied_by_non_lesson_event(
        deleted_date, period, schedule.events
    ):
        result.warnings.append(
            f"No slot was freed on {deleted_date.isoformat()} for period {period}; nothing shifted."
        )
        return result

    chain = lessons_after_descending(schedule, deleted_date, period)
    log.info(
        "shift_backward: period %d after %s (%d events)",
        period,
        deleted_date.isoformat(),
        len(chain),
    )
    if not chain:
        return result

    vacated: set[date] = set()
    for event in chain:
        target = find_previous_available_date(
            event.date,
            period=period,
            teaching_day_numbers=numbers,
            events=schedule.events,
            floor=deleted_date,
        )
        if target is None:
            result.warnings.append(
                f"No earlier slot for event {event.id} on {event.date.isoformat()} (period {period})."
            )
            continue
        vacated.add(event.date)
        event.date = target
        if event.is_error and target <= configuration.end_date:
            event.comment = NO_LESSON_COMMENT
        result.shifted += 1

    result.refilled = _refill_vacated_slots(schedule, configuration, period, vacated)
    schedule.mark_dirty()
    return result


def _refill_vacated_slots(
    schedule: Schedule,
    configuration: ScheduleConfiguration,
    period: int,
    vacated: set[date],
) -> int:
    assignment = configuration.assignment_for_period(period)
    if assignment is None or assignment.kind != "course":
        return 0
    occupied = {e.date for e in schedule.events if e.period == period}
    ids = temporary_ids(schedule.next_temporary_id())
    refilled = 0
    for day in sorted(vacated):
        if day in occupied:
            continue
        if not configuration.start_date <= day <= configuration.end_date:
            continue
        schedule.add_event(error_event(next(ids), day, period, course_id=assignment.course_id))
        refilled += 1
    return refilled
