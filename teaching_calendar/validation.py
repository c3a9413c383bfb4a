from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from teaching_calendar.models import Lesson, Schedule, ScheduleConfiguration, ScheduleEvent
from teaching_calendar.sequence_analysis import pairing_lesson_events

log = logging.getLogger(__name__)


@dataclass
class ScheduleValidationResult:
    can_save: bool
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def find_slot_conflicts(events: list[ScheduleEvent]) -> dict[tuple[date, int], list[ScheduleEvent]]:
    by_slot: dict[tuple[date, int], list[ScheduleEvent]] = {}
    for event in events:
        by_slot.setdefault((event.date, event.period), []).append(event)
    return {slot: found for slot, found in by_slot.items() if len(found) > 1}


def find_sequence_inversions(
    events: list[ScheduleEvent],
    configuration: ScheduleConfiguration,
    lesson_sequences: dict[int, list[Lesson]],
) -> list[str]:
    """Describe every course period whose dated lessons break sequence order.

    A repeated lesson counts as an inversion too.
    """
    problems: list[str] = []
    for assignment in configuration.course_assignments():
        lessons = lesson_sequences.get(assignment.course_id) or []
        position = {lesson.id: idx for idx, lesson in enumerate(lessons)}
        previous = -1
        for event in pairing_lesson_events(events, assignment.period, assignment.course_id):
            current = position.get(event.lesson_id)
            if current is None:
                continue
            if current <= previous:
                problems.append(
                    f"Period {assignment.period}: lesson {event.lesson_id} on "
                    f"{event.date.isoformat()} is out of order"
                )
            previous = max(previous, current)
    return problems


def validate_schedule(
    schedule: Schedule | None,
    configuration: ScheduleConfiguration | None,
    lesson_sequences: dict[int, list[Lesson]] | None = None,
) -> ScheduleValidationResult:
    issues: list[str] = []
    warnings: list[str] = []

    if schedule is None:
        return ScheduleValidationResult(can_save=False, issues=["No schedule available"])
    if not schedule.title.strip():
        issues.append("Schedule title is required")
    if configuration is None:
        issues.append("No active configuration available")
        return ScheduleValidationResult(can_save=False, issues=issues)
    if not schedule.events:
        issues.append("Schedule has no events")

    for (day, period), found in sorted(find_slot_conflicts(schedule.events).items()):
        issues.append(
            f"{len(found)} events share {day.isoformat()} period {period}: "
            + ", ".join(str(e.id) for e in found)
        )

    if lesson_sequences is not None:
        warnings.extend(find_sequence_inversions(schedule.events, configuration, lesson_sequences))

    if configuration.end_date is not None:
        beyond = [e for e in schedule.events if e.date > configuration.end_date]
        if beyond:
            warnings.append(
                f"{len(beyond)} event(s) fall after the schedule end {configuration.end_date.isoformat()}"
            )

    log.info(
        "Schedule validation: %s (%d issues, %d warnings)",
        "VALID" if not issues else "INVALID",
        len(issues),
        len(warnings),
    )
    return ScheduleValidationResult(can_save=not issues, issues=issues, warnings=warnings)
