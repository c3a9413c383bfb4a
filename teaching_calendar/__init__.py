try:
  from importlib.metadata import PackageNotFoundError, version
except Exception:  # pragma: no cover - fallback for older Python
  PackageNotFoundError = Exception  # type: ignore
  version = None  # type: ignore

if "__version__" not in globals():
  try:
    if version is None:
      raise PackageNotFoundError
    __version__ = version("teaching-calendar")
  except PackageNotFoundError:
    __version__ = "0+unknown"

from teaching_calendar.event_factory import create_schedule
from teaching_calendar.models import (
  Lesson,
  PeriodAssignment,
  Schedule,
  ScheduleConfiguration,
  ScheduleEvent,
)
from teaching_calendar.session import EditorSession

__all__ = [
  "EditorSession",
  "Lesson",
  "PeriodAssignment",
  "Schedule",
  "ScheduleConfiguration",
  "ScheduleEvent",
  "create_schedule",
]
