from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from teaching_calendar.configuration import (
    _load_yaml_module,
    _parse_date,
    lesson_titles,
    load_schedule_plan,
    normalize_courses,
    normalize_schedule_configuration,
)
from teaching_calendar.errors import ConfigurationError
from teaching_calendar.models import (
    EVENT_TYPE_ERROR,
    EVENT_TYPE_FREE,
    EVENT_TYPE_LESSON,
    EVENT_TYPE_SPECIAL,
    Schedule,
    ScheduleConfiguration,
    ScheduleEvent,
)
from teaching_calendar.session import EditorSession
from teaching_calendar.teaching_days import WEEKDAY_NAMES, teaching_days_between

log = logging.getLogger(__name__)

CELL_CLASSES = {
    EVENT_TYPE_LESSON: "lesson-cell",
    EVENT_TYPE_ERROR: "error-cell",
    EVENT_TYPE_SPECIAL: "special-cell",
    EVENT_TYPE_FREE: "free-cell",
}


@dataclass
class CalendarBuildResult:
    configuration: ScheduleConfiguration
    schedule: Schedule
    calendar_json: dict[str, Any]
    calendar_html: str
    warnings: list[str]
    output_paths: dict[str, Path]


def event_to_dict(event: ScheduleEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "date": event.date.isoformat(),
        "period": event.period,
        "event_type": event.event_type,
        "course_id": event.course_id,
        "lesson_id": event.lesson_id,
        "event_category": event.event_category,
        "comment": event.comment,
    }


def event_from_dict(data: dict[str, Any]) -> ScheduleEvent:
    day = _parse_date(data.get("date"))
    if day is None:
        raise ConfigurationError(f"Schedule event is missing `date`: {data!r}")
    return ScheduleEvent(
        id=int(data["id"]),
        date=day,
        period=int(data["period"]),
        event_type=str(data["event_type"]),
        course_id=data.get("course_id"),
        lesson_id=data.get("lesson_id"),
        event_category=data.get("event_category"),
        comment=data.get("comment"),
    )


def schedule_to_dict(schedule: Schedule) -> dict[str, Any]:
    """Serialize a schedule for the persistence collaborator. Events are date ordered."""
    return {
        "id": schedule.id,
        "title": schedule.title,
        "schedule_configuration_id": schedule.schedule_configuration_id,
        "events": [event_to_dict(event) for event in schedule.sorted_events()],
    }


def schedule_from_dict(data: dict[str, Any]) -> Schedule:
    if not isinstance(data, dict):
        raise ConfigurationError("Schedule data must be a mapping/object.")
    try:
        events = [event_from_dict(item) for item in data.get("events") or []]
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid schedule event: {exc}") from exc
    return Schedule(
        id=int(data.get("id") or 0),
        title=str(data.get("title") or ""),
        schedule_configuration_id=data.get("schedule_configuration_id"),
        events=events,
        dirty=False,
    )


def _cell_label(
    event: ScheduleEvent,
    titles_by_lesson: dict[int, str],
) -> str:
    if event.is_lesson:
        return titles_by_lesson.get(event.lesson_id, f"Lesson {event.lesson_id}")
    if event.event_type == EVENT_TYPE_FREE:
        return "Free"
    return event.comment or event.event_type


def build_calendar_rows(
    schedule: Schedule,
    configuration: ScheduleConfiguration,
    titles_by_lesson: dict[int, str],
    course_titles: dict[int, str] | None = None,
) -> list[dict[str, Any]]:
    """One row per teaching day, plus any dated event outside the configured range.

    Overflow Error events sit after ``end_date``, so their dates get rows too.
    """
    course_titles = course_titles or {}
    by_date: dict[date, list[ScheduleEvent]] = {}
    for event in schedule.events:
        by_date.setdefault(event.date, []).append(event)

    days = set(
        teaching_days_between(
            configuration.start_date,
            configuration.end_date,
            configuration.teaching_day_numbers,
        )
    )
    days.update(by_date)

    rows: list[dict[str, Any]] = []
    for day in sorted(days):
        cells: dict[str, list[dict[str, Any]]] = {}
        for event in sorted(by_date.get(day, []), key=lambda e: (e.period, e.id)):
            cells.setdefault(str(event.period), []).append(
                {
                    "event_id": event.id,
                    "event_type": event.event_type,
                    "course_id": event.course_id,
                    "course_title": course_titles.get(event.course_id),
                    "lesson_id": event.lesson_id,
                    "label": _cell_label(event, titles_by_lesson),
                    "comment": event.comment,
                }
            )
        rows.append(
            {
                "date": day.isoformat(),
                "weekday": WEEKDAY_NAMES[day.weekday()],
                "in_range": configuration.start_date <= day <= configuration.end_date,
                "has_error": any(e.is_error for e in by_date.get(day, [])),
                "cells": cells,
            }
        )
    return rows


def build_calendar_json(
    schedule: Schedule,
    configuration: ScheduleConfiguration,
    titles_by_lesson: dict[int, str],
    course_titles: dict[int, str] | None = None,
) -> dict[str, Any]:
    return {
        "schedule": schedule_to_dict(schedule),
        "term": {
            "title": configuration.title,
            "start_date": configuration.start_date.isoformat(),
            "end_date": configuration.end_date.isoformat(),
            "teaching_days": list(configuration.teaching_days),
            "periods_per_day": configuration.periods_per_day,
        },
        "periods": [
            {
                "period": assignment.period,
                "kind": assignment.kind,
                "course_id": assignment.course_id,
                "course_title": (course_titles or {}).get(assignment.course_id),
                "special_period_type": assignment.special_period_type,
                "room": assignment.room,
            }
            for assignment in sorted(configuration.period_assignments, key=lambda pa: pa.period)
        ],
        "rows": build_calendar_rows(schedule, configuration, titles_by_lesson, course_titles),
    }


def _period_header(period: dict[str, Any]) -> str:
    if period["kind"] == "course":
        label = period.get("course_title") or f"Course {period['course_id']}"
    elif period["kind"] == "special":
        label = period.get("special_period_type") or "Special"
    else:
        label = "Unassigned"
    room = f" ({period['room']})" if period.get("room") else ""
    return f"Period {period['period']}: {label}{room}"


def render_calendar_html(calendar_json: dict[str, Any]) -> str:
    periods = calendar_json["periods"]
    generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")
    page_title = html.escape(calendar_json["term"]["title"] or calendar_json["schedule"]["title"])
    today = date.today()
    cell_style = "border:1px solid #ccc;padding:8px;vertical-align:top;"
    header_style = (
        "border:1px solid #ccc;padding:8px;vertical-align:top;background:#f5f5f5;"
    )

    period_headers = "".join(
        f'<th style="{header_style}">{html.escape(_period_header(period))}</th>'
        for period in periods
    )

    rows_html = []
    for row in calendar_json["rows"]:
        row_date = _parse_date(row["date"])
        row_classes = ["upcoming-row"]
        if row_date < today:
            row_classes = ["past-row"]
        elif row_date == today:
            row_classes = ["current-row"]
        if not row["in_range"]:
            row_classes.append("overflow-row")

        cells_html = []
        for period in periods:
            entries = row["cells"].get(str(period["period"])) or []
            if not entries:
                cells_html.append(f'<td style="{cell_style}">&nbsp;</td>')
                continue
            parts = []
            for entry in entries:
                css = CELL_CLASSES.get(entry["event_type"], "")
                label = html.escape(str(entry["label"]))
                if entry["event_type"] == EVENT_TYPE_ERROR:
                    label = f'<strong>{label}</strong><span class="error-badge">ERROR</span>'
                parts.append(f'<div class="{css}">{label}</div>')
            cells_html.append(f'<td style="{cell_style}">{"".join(parts)}</td>')

        rows_html.append(
            f'<tr class="{" ".join(row_classes)}">'
            f'<td style="{cell_style}">{html.escape(row["weekday"][:3])} {row["date"]}</td>'
            f'{"".join(cells_html)}'
            "</tr>"
        )

    term = calendar_json["term"]
    return f"""<!-- teaching-calendar-generated:start -->
<style>
.teaching-calendar {{
  --line: #ccc;
  --past-bg: #f1f1f1;
  --current-bg: #fff7d6;
  --upcoming-bg: #ffffff;
  --error-bg: #fde2e2;
  --special-bg: #e2ecfd;
}}
.teaching-calendar table {{ border-collapse: collapse; width: 100%; border: 1px solid var(--line); }}
.teaching-calendar .past-row td {{ background: var(--past-bg); }}
.teaching-calendar .current-row td {{ background: var(--current-bg); }}
.teaching-calendar .upcoming-row td {{ background: var(--upcoming-bg); }}
.teaching-calendar .overflow-row td {{ border-top: 2px dashed #c66 !important; }}
.teaching-calendar .error-cell {{ background: var(--error-bg); padding: 2px 4px; }}
.teaching-calendar .special-cell {{ background: var(--special-bg); padding: 2px 4px; }}
.teaching-calendar .free-cell {{ color: #777; }}
.teaching-calendar .error-badge {{
  display: inline-block;
  margin-left: 6px;
  padding: 2px 6px;
  background: #f7b2b2;
  border: 1px solid #d46a6a;
  border-radius: 4px;
  font-size: 12px;
}}
</style>
<div class="teaching-calendar">
  <h2>{page_title}</h2>
  <p><strong>Generated:</strong> {generated_at}</p>
  <p><strong>Term:</strong> {term['start_date']} to {term['end_date']} ({html.escape(", ".join(term['teaching_days']))})</p>
  <table>
    <thead>
      <tr>
        <th style="{header_style}">Date</th>
        {period_headers}
      </tr>
    </thead>
    <tbody>
      {''.join(rows_html)}
    </tbody>
  </table>
</div>
<!-- teaching-calendar-generated:end -->
"""


def apply_special_days(
    session: EditorSession,
    raw_special_days: list[dict[str, Any]],
) -> list[str]:
    """Insert each planned special day through the session, returning shift warnings."""
    warnings: list[str] = []
    configuration = session.configuration
    all_periods = list(range(1, configuration.periods_per_day + 1))
    for raw in raw_special_days or []:
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Invalid special day entry: {raw!r}")
        day = _parse_date(raw.get("date"))
        if day is None:
            raise ConfigurationError(f"Special day is missing `date`: {raw!r}")
        periods = [int(p) for p in raw.get("periods") or all_periods]
        title = str(raw.get("title") or "Special day")
        for result in session.insert_special_day(day, periods, title=title):
            warnings.extend(result.errors)
            warnings.extend(result.warnings)
    return warnings


def build_schedule_calendar(
    *,
    plan_path: str | Path,
    output_dir: str | Path,
) -> CalendarBuildResult:
    raw = load_schedule_plan(plan_path)
    configuration = normalize_schedule_configuration(raw.get("schedule") or {})
    sequences, course_titles = normalize_courses(raw.get("courses"))

    session = EditorSession()
    generation = session.activate(configuration, sequences)
    if not generation.success:
        raise ConfigurationError(generation.errors)
    warnings = list(generation.warnings)
    warnings.extend(apply_special_days(session, raw.get("special_days") or []))

    schedule = session.schedule
    calendar_json = build_calendar_json(
        schedule, configuration, lesson_titles(sequences), course_titles
    )
    calendar_html = render_calendar_html(calendar_json)

    output_root = Path(output_dir)
    output_root.mkdir(parents=True, exist_ok=True)
    html_path = output_root / "calendar.html"
    json_path = output_root / "calendar.json"
    schedule_path = output_root / "schedule.yaml"

    yaml = _load_yaml_module()
    html_path.write_text(calendar_html, encoding="utf-8")
    json_path.write_text(json.dumps(calendar_json, indent=2) + "\n", encoding="utf-8")
    schedule_path.write_text(
        yaml.safe_dump(schedule_to_dict(schedule), sort_keys=False, allow_unicode=False),
        encoding="utf-8",
    )

    log.info(
        "Built calendar for '%s': %d events, %d warnings",
        schedule.title,
        len(schedule.events),
        len(warnings),
    )
    return CalendarBuildResult(
        configuration=configuration,
        schedule=schedule,
        calendar_json=calendar_json,
        calendar_html=calendar_html,
        warnings=warnings,
        output_paths={
            "html": html_path,
            "json": json_path,
            "schedule": schedule_path,
        },
    )
