from __future__ import annotations

import logging
from datetime import date, timedelta

from teaching_calendar.errors import MissingContextError
from teaching_calendar.event_factory import create_schedule
from teaching_calendar.models import (
    EVENT_CATEGORY_SPECIAL_DAY,
    EVENT_TYPE_FREE,
    EVENT_TYPE_SPECIAL,
    UNASSIGNED_PERIOD_COMMENT,
    ContinuationResult,
    GenerationResult,
    Lesson,
    Schedule,
    ScheduleConfiguration,
    ScheduleEvent,
    ShiftResult,
)
from teaching_calendar.sequence_analysis import pairing_lesson_events
from teaching_calendar.sequence_generation import continue_sequences
from teaching_calendar.shifting import shift_backward, shift_forward
from teaching_calendar.validation import ScheduleValidationResult, validate_schedule

log = logging.getLogger(__name__)


class EditorSession:
    """One editing session: the active configuration, lesson sequences and schedule.

    Triggers from the surrounding application (lesson added, special day
    inserted or deleted) are plain method calls and must be issued one at a
    time. Every engine function receives this session's ``schedule`` by
    reference and mutates it in place.
    """

    def __init__(
        self,
        configuration: ScheduleConfiguration | None = None,
        lesson_sequences: dict[int, list[Lesson]] | None = None,
        schedule: Schedule | None = None,
    ):
        self.configuration = configuration
        self.lesson_sequences: dict[int, list[Lesson]] = lesson_sequences or {}
        self.schedule = schedule

    def activate(
        self,
        configuration: ScheduleConfiguration,
        lesson_sequences: dict[int, list[Lesson]],
        schedule: Schedule | None = None,
    ) -> GenerationResult:
        """Make ``configuration`` active, generating a schedule when none was loaded."""
        self.configuration = configuration
        self.lesson_sequences = lesson_sequences
        if schedule is not None:
            self.schedule = schedule
            return GenerationResult(
                success=True,
                schedule=schedule,
                events_created=0,
            )
        result = create_schedule(configuration, lesson_sequences)
        self.schedule = result.schedule if result.success else None
        return result

    def _require_context(self) -> tuple[Schedule, ScheduleConfiguration]:
        if self.schedule is None:
            raise MissingContextError("No active schedule in this session.")
        if self.configuration is None:
            raise MissingContextError("No active schedule configuration in this session.")
        return self.schedule, self.configuration

    def lesson_added(self, course_id: int, lesson: Lesson) -> ContinuationResult:
        """Append ``lesson`` to the course and place it in every period teaching that course."""
        schedule, configuration = self._require_context()
        sequence = self.lesson_sequences.setdefault(course_id, [])
        if any(existing.id == lesson.id for existing in sequence):
            return ContinuationResult(
                success=True,
                warnings=[f"Lesson {lesson.id} is already part of course {course_id}"],
            )
        sequence.append(lesson)

        combined = ContinuationResult(success=True)
        assignments = [
            pa for pa in configuration.course_assignments() if pa.course_id == course_id
        ]
        if not assignments:
            combined.warnings.append(f"Course {course_id} is not assigned to any period")
            return combined

        for assignment in assignments:
            placed = pairing_lesson_events(schedule.events, assignment.period, course_id)
            cursor = (
                placed[-1].date
                if placed
                else configuration.start_date - timedelta(days=1)
            )
            result = continue_sequences(
                schedule,
                configuration,
                self.lesson_sequences,
                cursor,
                assignments=[assignment],
            )
            combined.success = combined.success and result.success
            combined.periods_processed += result.periods_processed
            combined.events_created += result.events_created
            combined.processed.extend(result.processed)
            combined.errors.extend(result.errors)
            combined.warnings.extend(result.warnings)
        return combined

    def insert_special_day(
        self,
        day: date,
        periods: list[int],
        *,
        title: str,
    ) -> list[ShiftResult]:
        schedule, configuration = self._require_context()
        results: list[ShiftResult] = []

        for period in sorted(set(periods)):
            existing = [e for e in schedule.events_at(day, period) if e.blocks_placement]
            if any(e.event_type != EVENT_TYPE_FREE for e in existing):
                results.append(
                    ShiftResult(
                        success=False,
                        period=period,
                        errors=[
                            f"Period {period} on {day.isoformat()} already holds a special event"
                        ],
                    )
                )
                continue
            for placeholder in existing:
                schedule.remove_event(placeholder)
            assignment = configuration.assignment_for_period(period)
            schedule.add_event(
                ScheduleEvent(
                    id=schedule.next_temporary_id(),
                    date=day,
                    period=period,
                    event_type=EVENT_TYPE_SPECIAL,
                    course_id=assignment.course_id if assignment else None,
                    event_category=EVENT_CATEGORY_SPECIAL_DAY,
                    comment=title,
                )
            )
            results.append(shift_forward(schedule, configuration, day, period))

        log.info(
            "Inserted special day '%s' on %s for periods %s",
            title,
            day.isoformat(),
            sorted(set(periods)),
        )
        return results

    def delete_special_day(self, day: date, periods: list[int]) -> list[ShiftResult]:
        schedule, configuration = self._require_context()
        results: list[ShiftResult] = []

        for period in sorted(set(periods)):
            special = [
                e
                for e in schedule.events_at(day, period)
                if e.event_category == EVENT_CATEGORY_SPECIAL_DAY
            ]
            if not special:
                results.append(
                    ShiftResult(
                        success=False,
                        period=period,
                        errors=[f"No special day on {day.isoformat()} for period {period}"],
                    )
                )
                continue
            for event in special:
                schedule.remove_event(event)
            assignment = configuration.assignment_for_period(period)
            if assignment is not None and assignment.kind == "unassigned":
                schedule.add_event(
                    ScheduleEvent(
                        id=schedule.next_temporary_id(),
                        date=day,
                        period=period,
                        event_type=EVENT_TYPE_FREE,
                        comment=UNASSIGNED_PERIOD_COMMENT,
                    )
                )
                results.append(ShiftResult(success=True, period=period))
                continue
            results.append(shift_backward(schedule, configuration, day, period))

        log.info("Deleted special day on %s for periods %s", day.isoformat(), sorted(set(periods)))
        return results

    def validate(self) -> ScheduleValidationResult:
        return validate_schedule(self.schedule, self.configuration, self.lesson_sequences)
