#!env python

import argparse
import logging
import sys

from teaching_calendar.configuration import (
  load_schedule_plan,
  normalize_schedule_configuration,
  validate_configuration,
)
from teaching_calendar.errors import ConfigurationError
from teaching_calendar.export import build_schedule_calendar

log = logging.getLogger(__name__)


def check_plan(plan_path: str) -> int:
  raw = load_schedule_plan(plan_path)
  configuration = normalize_schedule_configuration(raw.get("schedule") or {})
  errors, warnings = validate_configuration(configuration)
  for warning in warnings:
    log.warning(warning)
  if errors:
    for error in errors:
      log.error(error)
    return 1
  log.info(f"{plan_path}: configuration is valid")
  return 0


def build_plan(plan_path: str, output_dir: str) -> int:
  result = build_schedule_calendar(plan_path=plan_path, output_dir=output_dir)
  for warning in result.warnings:
    log.warning(warning)
  for name, path in result.output_paths.items():
    log.info(f"  {name}: {path}")
  return 0


def main(argv=None) -> int:
  parser = argparse.ArgumentParser(
    description="Build and check teaching calendars from schedule plans"
  )
  parser.add_argument(
    "command",
    choices=["build", "check"],
    help="build writes calendar.json/calendar.html; check only validates the configuration"
  )
  parser.add_argument("plan", help="Path to a schedule plan (YAML or JSON)")
  parser.add_argument(
    "--output-dir",
    default="build/calendar",
    help="Directory for generated files (build only)"
  )
  parser.add_argument(
    "--verbose",
    action="store_true",
    help="Log per-event placement details"
  )
  args = parser.parse_args(argv)

  logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.INFO,
    format="%(levelname)s %(name)s: %(message)s",
  )

  try:
    if args.command == "check":
      return check_plan(args.plan)
    return build_plan(args.plan, args.output_dir)
  except ConfigurationError as exc:
    for issue in exc.issues:
      log.error(issue)
    return 1
  except FileNotFoundError as exc:
    print(str(exc), file=sys.stderr)
    return 2


if __name__ == "__main__":
  raise SystemExit(main())
