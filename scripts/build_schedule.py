#!/usr/bin/env python3
"""Generate calendar.json, calendar.html and schedule.yaml from a schedule plan."""

from __future__ import annotations

import argparse
import logging

from teaching_calendar.export import build_schedule_calendar


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("plan", help="Path to plan YAML/JSON file.")
    parser.add_argument(
        "--output-dir",
        default="build/calendar",
        help="Where to write generated files (default: build/calendar).",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    result = build_schedule_calendar(plan_path=args.plan, output_dir=args.output_dir)

    for warning in result.warnings:
        print(f"warning: {warning}")
    for name, path in result.output_paths.items():
        print(f"{name}: {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
