from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from teaching_calendar.teaching_days import teaching_day_numbers

EVENT_TYPE_LESSON = "Lesson"
EVENT_TYPE_ERROR = "Error"
EVENT_TYPE_SPECIAL = "Special"
EVENT_TYPE_FREE = "Free"

EVENT_CATEGORY_LESSON = "Lesson"
EVENT_CATEGORY_SPECIAL_PERIOD = "SpecialPeriod"
EVENT_CATEGORY_SPECIAL_DAY = "SpecialDay"

NO_LESSON_COMMENT = "No lesson assigned - schedule needs more content"
UNASSIGNED_PERIOD_COMMENT = "Period not configured - assign a course or special period type"
OVERFLOW_COMMENT_PREFIX = "ERROR: "


@dataclass
class PeriodAssignment:
    period: int
    course_id: int | None = None
    special_period_type: str | None = None
    room: str | None = None
    notes: str | None = None

    @property
    def kind(self) -> str:
        if self.course_id is not None:
            return "course"
        if self.special_period_type:
            return "special"
        return "unassigned"


@dataclass
class ScheduleConfiguration:
    start_date: date | None
    end_date: date | None
    teaching_days: list[str]
    periods_per_day: int
    period_assignments: list[PeriodAssignment]
    id: int = 0
    title: str = ""

    @property
    def teaching_day_numbers(self) -> list[int]:
        return teaching_day_numbers(self.teaching_days)

    def assignment_for_period(self, period: int) -> PeriodAssignment | None:
        for assignment in self.period_assignments:
            if assignment.period == period:
                return assignment
        return None

    def course_assignments(self) -> list[PeriodAssignment]:
        return [pa for pa in self.period_assignments if pa.kind == "course"]


@dataclass(frozen=True)
class Lesson:
    id: int
    title: str = ""
    sort_order: int = 0


@dataclass
class ScheduleEvent:
    id: int
    date: date
    period: int
    event_type: str
    course_id: int | None = None
    lesson_id: int | None = None
    event_category: str | None = None
    comment: str | None = None

    @property
    def is_lesson(self) -> bool:
        return self.event_type == EVENT_TYPE_LESSON

    @property
    def is_error(self) -> bool:
        return self.event_type == EVENT_TYPE_ERROR

    @property
    def is_overflow_marker(self) -> bool:
        """An Error recording lessons that did not fit, as opposed to an empty-slot placeholder."""
        return self.is_error and (self.comment or "").startswith(OVERFLOW_COMMENT_PREFIX)

    @property
    def blocks_placement(self) -> bool:
        # Lesson and Error events are the things being placed, not obstacles.
        return self.event_type not in (EVENT_TYPE_LESSON, EVENT_TYPE_ERROR)

    def convert_to_error(self, comment: str) -> None:
        self.lesson_id = None
        self.event_type = EVENT_TYPE_ERROR
        self.event_category = None
        self.comment = comment


@dataclass
class Schedule:
    """The single mutable event collection shared by every engine component.

    Components never copy ``events``; they mutate it in place and call
    :meth:`mark_dirty`. Only the persistence collaborator clears the flag.
    """

    id: int = 0
    title: str = ""
    schedule_configuration_id: int | None = None
    events: list[ScheduleEvent] = field(default_factory=list)
    dirty: bool = False

    def mark_dirty(self) -> None:
        self.dirty = True

    def mark_saved(self) -> None:
        self.dirty = False

    def add_event(self, event: ScheduleEvent) -> None:
        self.events.append(event)
        self.dirty = True

    def remove_event(self, event: ScheduleEvent) -> None:
        for idx, existing in enumerate(self.events):
            if existing is event:
                del self.events[idx]
                self.dirty = True
                return
        raise ValueError(f"Event {event.id} is not part of schedule {self.id}.")

    def events_at(self, day: date, period: int) -> list[ScheduleEvent]:
        return [e for e in self.events if e.date == day and e.period == period]

    def events_in_period(self, period: int) -> list[ScheduleEvent]:
        return [e for e in self.events if e.period == period]

    def sorted_events(self) -> list[ScheduleEvent]:
        return sorted(self.events, key=lambda e: (e.date, e.period))

    def next_temporary_id(self) -> int:
        lowest = min((e.id for e in self.events), default=0)
        return min(lowest, 0) - 1


@dataclass
class ContinuationPoint:
    period: int
    course_id: int
    period_assignment: PeriodAssignment
    last_assigned_lesson_index: int
    continuation_date: date


@dataclass
class PairingDetail:
    course_id: int
    period: int
    total_lessons: int
    highest_lesson_index: int
    placed_lessons: int
    missing_positions: list[int] = field(default_factory=list)
    needs_continuation: bool = False


@dataclass
class SequenceAnalysis:
    continuation_points: list[ContinuationPoint]
    details: list[PairingDetail]
    warnings: list[str] = field(default_factory=list)


@dataclass
class PairingProgress:
    course_id: int
    period: int
    events_added: int
    lessons_remaining: int
    last_lesson_index: int


@dataclass
class GenerationResult:
    success: bool
    schedule: Schedule | None = None
    events_created: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class ContinuationResult:
    success: bool
    periods_processed: int = 0
    events_created: int = 0
    processed: list[PairingProgress] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class ShiftResult:
    success: bool
    period: int
    shifted: int = 0
    converted_to_error: int = 0
    dropped: int = 0
    refilled: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "shifted": self.shifted,
            "converted_to_error": self.converted_to_error,
            "dropped": self.dropped,
            "refilled": self.refilled,
        }
