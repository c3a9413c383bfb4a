#!/usr/bin/env python3
"""Check a schedule plan against the JSON Schema, then against the engine's own rules."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def _missing_dependency(message: str) -> None:
    print(message, file=sys.stderr)
    print("Hint: pip install -e .[dev]", file=sys.stderr)
    raise SystemExit(2)


def _read_document(path: Path):
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    try:
        import yaml
    except ModuleNotFoundError:
        _missing_dependency("PyYAML is required to read YAML plans.")
    return yaml.safe_load(text)


def _json_path(error_path) -> str:
    location = "$"
    for part in error_path:
        location += f"[{part}]" if isinstance(part, int) else f".{part}"
    return location


def _schema_errors(plan, schema) -> list[str]:
    try:
        from jsonschema import Draft202012Validator
    except ModuleNotFoundError:
        _missing_dependency("jsonschema is required for schema validation.")
    validator = Draft202012Validator(schema)
    return [
        f"{_json_path(err.path)}: {err.message}"
        for err in sorted(validator.iter_errors(plan), key=lambda e: list(e.path))
    ]


def _rule_errors(plan) -> tuple[list[str], list[str]]:
    from teaching_calendar.configuration import (
        normalize_courses,
        normalize_schedule_configuration,
        validate_configuration,
    )
    from teaching_calendar.errors import ConfigurationError

    try:
        configuration = normalize_schedule_configuration(plan.get("schedule") or {})
        sequences, _ = normalize_courses(plan.get("courses"))
    except ConfigurationError as exc:
        return exc.issues, []
    errors, warnings = validate_configuration(configuration)
    for assignment in configuration.course_assignments():
        if assignment.course_id not in sequences:
            warnings.append(
                f"Period {assignment.period} teaches course {assignment.course_id}, "
                "which is not defined under `courses`"
            )
    return errors, warnings


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Validate a schedule plan against schemas/schedule_configuration.schema.yaml."
    )
    parser.add_argument("plan", help="Path to plan YAML/JSON file to validate.")
    parser.add_argument(
        "--schema",
        default="schemas/schedule_configuration.schema.yaml",
        help="Path to JSON Schema YAML/JSON file.",
    )
    args = parser.parse_args()

    plan_path = Path(args.plan)
    schema_path = Path(args.schema)
    try:
        plan = _read_document(plan_path)
        schema = _read_document(schema_path)
    except json.JSONDecodeError as exc:
        print(f"JSON parse error: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    errors = _schema_errors(plan, schema)
    warnings: list[str] = []
    if not errors:
        errors, warnings = _rule_errors(plan)

    for warning in warnings:
        print(f"warning: {warning}")
    if not errors:
        print(f"VALID: {plan_path}")
        return 0

    print(f"INVALID: {plan_path}")
    print(f"{len(errors)} problem(s):")
    for error in errors:
        print(f"- {error}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
