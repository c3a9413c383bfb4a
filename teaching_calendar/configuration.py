from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

from teaching_calendar.errors import ConfigurationError
from teaching_calendar.models import Lesson, PeriodAssignment, ScheduleConfiguration
from teaching_calendar.teaching_days import WEEKDAY_NAMES, weekday_number

log = logging.getLogger(__name__)


def _load_yaml_module():
    try:
        import yaml
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            "PyYAML is required for schedule-plan workflows. "
            "Install dependencies (e.g., `pip install -e .[dev]`)."
        ) from exc
    return yaml


def _parse_date(value: str | date | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ConfigurationError(f"Expected ISO date string, got: {value!r}")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ConfigurationError(f"Expected ISO date string, got: {value!r}") from exc


def _optional_int(value: Any, *, field_name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"`{field_name}` must be an integer, got: {value!r}") from exc


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def load_schedule_plan(plan_path: str | Path) -> dict[str, Any]:
    path = Path(plan_path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        raw = json.loads(text)
    else:
        yaml = _load_yaml_module()
        raw = yaml.safe_load(text)
    if not isinstance(raw, dict):
        raise ConfigurationError("Schedule plan must be a mapping/object at the top level.")
    return raw


def normalize_period_assignment(raw: dict[str, Any]) -> PeriodAssignment:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Invalid period assignment: {raw!r}")
    period = _optional_int(raw.get("period"), field_name="period")
    if period is None:
        raise ConfigurationError(f"Period assignment is missing `period`: {raw!r}")
    return PeriodAssignment(
        period=period,
        course_id=_optional_int(raw.get("course_id"), field_name="course_id"),
        special_period_type=_optional_text(raw.get("special_period_type")),
        room=_optional_text(raw.get("room")),
        notes=_optional_text(raw.get("notes")),
    )


def normalize_schedule_configuration(raw: dict[str, Any]) -> ScheduleConfiguration:
    """Turn a raw ``schedule`` mapping into a :class:`ScheduleConfiguration`.

    Values that cannot be parsed raise :class:`ConfigurationError`. Values that
    are merely absent are left empty; :func:`validate_configuration` reports them.
    """
    if not isinstance(raw, dict):
        raise ConfigurationError("`schedule` must be a mapping.")

    teaching_days: list[str] = []
    for value in raw.get("teaching_days") or []:
        try:
            number = weekday_number(value)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        name = WEEKDAY_NAMES[number]
        if name not in teaching_days:
            teaching_days.append(name)
    teaching_days.sort(key=WEEKDAY_NAMES.index)

    periods_per_day = _optional_int(raw.get("periods_per_day"), field_name="periods_per_day")

    assignments = [
        normalize_period_assignment(item) for item in raw.get("period_assignments") or []
    ]
    assignments.sort(key=lambda pa: pa.period)

    return ScheduleConfiguration(
        id=_optional_int(raw.get("id"), field_name="id") or 0,
        title=str(raw.get("title") or "").strip(),
        start_date=_parse_date(raw.get("start_date")),
        end_date=_parse_date(raw.get("end_date")),
        teaching_days=teaching_days,
        periods_per_day=periods_per_day or 0,
        period_assignments=assignments,
    )


def validate_configuration(config: ScheduleConfiguration) -> tuple[list[str], list[str]]:
    errors: list[str] = []
    warnings: list[str] = []

    if config.start_date is None or config.end_date is None:
        errors.append("Start and end dates are required")
    elif config.end_date < config.start_date:
        errors.append("End date must not be before start date")

    if not config.teaching_days:
        errors.append("At least one teaching day must be selected")

    if config.periods_per_day < 1:
        errors.append("Periods per day must be at least 1")

    if not config.period_assignments:
        errors.append("No period assignments configured")
    else:
        seen: dict[int, int] = {}
        for assignment in config.period_assignments:
            seen[assignment.period] = seen.get(assignment.period, 0) + 1
            if assignment.course_id is not None and assignment.special_period_type:
                errors.append(
                    f"Period {assignment.period} cannot have both a course and a special period type"
                )
        for period, count in sorted(seen.items()):
            if count > 1:
                errors.append(f"Duplicate assignment for period {period}")
            if config.periods_per_day >= 1 and not 1 <= period <= config.periods_per_day:
                errors.append(
                    f"Period {period} is outside 1..{config.periods_per_day}"
                )
        for period in range(1, max(config.periods_per_day, 0) + 1):
            if period not in seen:
                errors.append(f"Missing assignment for period {period}")

        unassigned = [pa.period for pa in config.period_assignments if pa.kind == "unassigned"]
        if unassigned:
            warnings.append(
                f"{len(unassigned)} period(s) have no course or special period assignment: "
                + ", ".join(str(p) for p in unassigned)
            )

    return errors, warnings


def _normalize_lesson(raw: dict[str, Any], *, default_sort_order: int = 0) -> Lesson:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Invalid lesson entry: {raw!r}")
    lesson_id = _optional_int(raw.get("id"), field_name="lesson id")
    if lesson_id is None:
        raise ConfigurationError(f"Lesson is missing `id`: {raw!r}")
    return Lesson(
        id=lesson_id,
        title=str(raw.get("title") or f"Lesson {lesson_id}"),
        sort_order=int(raw.get("sort_order", default_sort_order)),
    )


def collect_lesson_sequence(course: dict[str, Any]) -> list[Lesson]:
    """Flatten a course's topic tree into its authoritative lesson order.

    Topics are visited by ``sort_order``. Inside a topic, subtopics and direct
    lessons share one ``sort_order`` space; a subtopic contributes its own
    lessons (sorted) at its position.
    """
    lessons: list[Lesson] = []

    topics = sorted(course.get("topics") or [], key=lambda t: int(t.get("sort_order", 0)))
    for topic in topics:
        children: list[tuple[int, str, dict[str, Any]]] = []
        for subtopic in topic.get("subtopics") or []:
            children.append((int(subtopic.get("sort_order", 0)), "subtopic", subtopic))
        for lesson in topic.get("lessons") or []:
            children.append((int(lesson.get("sort_order", 0)), "lesson", lesson))
        # sorted() is stable, so equal sort orders keep declaration order.
        for _, kind, child in sorted(children, key=lambda item: item[0]):
            if kind == "lesson":
                lessons.append(_normalize_lesson(child))
                continue
            sub_lessons = sorted(
                child.get("lessons") or [], key=lambda l: int(l.get("sort_order", 0))
            )
            lessons.extend(_normalize_lesson(raw) for raw in sub_lessons)

    return lessons


def normalize_courses(raw_courses: Any) -> tuple[dict[int, list[Lesson]], dict[int, str]]:
    """Build ``{course_id: lesson sequence}`` and ``{course_id: title}`` maps."""
    sequences: dict[int, list[Lesson]] = {}
    titles: dict[int, str] = {}
    for course in raw_courses or []:
        if not isinstance(course, dict):
            raise ConfigurationError(f"Invalid course entry: {course!r}")
        course_id = _optional_int(course.get("id"), field_name="course id")
        if course_id is None:
            raise ConfigurationError(f"Course is missing `id`: {course!r}")
        if course_id in sequences:
            raise ConfigurationError(f"Duplicate course id {course_id}")
        if "lessons" in course and not course.get("topics"):
            sequences[course_id] = [
                _normalize_lesson(raw, default_sort_order=idx)
                for idx, raw in enumerate(course.get("lessons") or [])
            ]
        else:
            sequences[course_id] = collect_lesson_sequence(course)
        titles[course_id] = str(course.get("title") or f"Course {course_id}")
        log.debug(
            "Course %d (%s): %d lessons",
            course_id,
            titles[course_id],
            len(sequences[course_id]),
        )
    return sequences, titles


def lesson_titles(sequences: dict[int, list[Lesson]]) -> dict[int, str]:
    return {
        lesson.id: lesson.title for lessons in sequences.values() for lesson in lessons
    }
