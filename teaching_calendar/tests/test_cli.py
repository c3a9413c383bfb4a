from __future__ import annotations

from teaching_calendar.cli import main

PLAN = """
schedule:
  start_date: "2024-01-01"
  end_date: "2024-01-05"
  teaching_days: [Mon, Wed, Fri]
  periods_per_day: 1
  period_assignments:
    - {period: 1, course_id: 10}
courses:
  - id: 10
    lessons: [{id: 1}, {id: 2}]
"""


def test_check_accepts_a_valid_plan(tmp_path):
    plan_path = tmp_path / "plan.yaml"
    plan_path.write_text(PLAN, encoding="utf-8")
    assert main(["check", str(plan_path)]) == 0


def test_check_rejects_an_invalid_plan(tmp_path):
    plan_path = tmp_path / "plan.yaml"
    plan_path.write_text(PLAN.replace("[Mon, Wed, Fri]", "[]"), encoding="utf-8")
    assert main(["check", str(plan_path)]) == 1


def test_build_writes_into_output_dir(tmp_path):
    plan_path = tmp_path / "plan.yaml"
    plan_path.write_text(PLAN, encoding="utf-8")
    out = tmp_path / "out"

    assert main(["build", str(plan_path), "--output-dir", str(out)]) == 0
    assert (out / "calendar.html").exists()
    assert (out / "calendar.json").exists()


def test_missing_plan_file_exits_with_2(tmp_path):
    assert main(["check", str(tmp_path / "nope.yaml")]) == 2
