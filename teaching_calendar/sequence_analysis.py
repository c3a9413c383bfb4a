from __future__ import annotations

import logging
from datetime import date, timedelta

from teaching_calendar.models import (
    ContinuationPoint,
    Lesson,
    PairingDetail,
    PeriodAssignment,
    ScheduleEvent,
    SequenceAnalysis,
)

log = logging.getLogger(__name__)


def pairing_lesson_events(
    events: list[ScheduleEvent],
    period: int,
    course_id: int,
) -> list[ScheduleEvent]:
    return sorted(
        (
            event
            for event in events
            if event.period == period
            and event.course_id == course_id
            and event.is_lesson
            and event.lesson_id is not None
        ),
        key=lambda event: event.date,
    )


def find_continuation_point(
    events: list[ScheduleEvent],
    assignment: PeriodAssignment,
    lessons: list[Lesson],
    after_date: date,
) -> tuple[ContinuationPoint | None, PairingDetail, list[str]]:
    """Locate how far one (period, course) pairing has progressed.

    Progress is the highest sequence position among the pairing's placed
    lessons, looked up by lesson id, so events may be reordered or edited
    externally without confusing the analysis. Positions below that maximum
    that are not placed anywhere are reported but never re-placed; placement
    resumes after the maximum.
    """
    warnings: list[str] = []
    period = assignment.period
    course_id = assignment.course_id
    position_by_lesson = {lesson.id: idx for idx, lesson in enumerate(lessons)}

    placed = pairing_lesson_events(events, period, course_id)
    positions: list[int] = []
    for event in placed:
        position = position_by_lesson.get(event.lesson_id)
        if position is None:
            warnings.append(
                f"Period {period}, course {course_id}: lesson {event.lesson_id} on "
                f"{event.date.isoformat()} is not in the course's lesson sequence."
            )
            continue
        positions.append(position)

    highest = max(positions, default=-1)

    for earlier, later in zip(positions, positions[1:]):
        if later < earlier:
            warnings.append(
                f"Period {period}, course {course_id}: placed lessons are out of sequence order "
                f"(position {later} follows {earlier})."
            )
            break

    placed_positions = set(positions)
    missing = [idx for idx in range(highest) if idx not in placed_positions]
    if missing:
        warnings.append(
            f"Period {period}, course {course_id}: {len(missing)} lesson(s) before position "
            f"{highest} are not placed and will not be re-scheduled."
        )

    last_index = len(lessons) - 1
    needs_continuation = highest < last_index
    detail = PairingDetail(
        course_id=course_id,
        period=period,
        total_lessons=len(lessons),
        highest_lesson_index=highest,
        placed_lessons=len(placed_positions),
        missing_positions=missing,
        needs_continuation=needs_continuation,
    )

    log.debug(
        "Period %d, course %d: %d lesson events, highest index %d of %d",
        period,
        course_id,
        len(placed),
        highest,
        last_index,
    )

    if not needs_continuation:
        return None, detail, warnings

    point = ContinuationPoint(
        period=period,
        course_id=course_id,
        period_assignment=assignment,
        last_assigned_lesson_index=highest,
        continuation_date=after_date + timedelta(days=1),
    )
    return point, detail, warnings


def analyze_sequences(
    events: list[ScheduleEvent],
    assignments: list[PeriodAssignment],
    lesson_sequences: dict[int, list[Lesson]],
    after_date: date,
) -> SequenceAnalysis:
    """Find every course pairing in ``assignments`` that still has unplaced lessons.

    ``after_date`` only stamps where continuation resumes; all events of a
    pairing are inspected regardless of their date.
    """
    points: list[ContinuationPoint] = []
    details: list[PairingDetail] = []
    warnings: list[str] = []

    for assignment in assignments:
        if assignment.kind != "course":
            continue
        lessons = lesson_sequences.get(assignment.course_id)
        if lessons is None:
            warnings.append(
                f"Course {assignment.course_id} (period {assignment.period}) has no lesson sequence."
            )
            continue
        point, detail, pairing_warnings = find_continuation_point(
            events, assignment, lessons, after_date
        )
        details.append(detail)
        warnings.extend(pairing_warnings)
        if point is not None:
            points.append(point)

    log.info(
        "Found %d pairing(s) needing continuation: %s",
        len(points),
        ", ".join(
            f"period {p.period} course {p.course_id} from lesson {p.last_assigned_lesson_index + 1}"
            for p in points
        )
        or "none",
    )
    return SequenceAnalysis(continuation_points=points, details=details, warnings=warnings)
