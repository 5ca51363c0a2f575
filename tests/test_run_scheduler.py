"""Smoke test for the demo runner against the bundled fixture."""

import json
from pathlib import Path

import run_scheduler

FIXTURE = Path(__file__).resolve().parent.parent / "sample_clinic.json"


def test_demo_run_exports_result(tmp_path, monkeypatch):
    export = tmp_path / "bulk_result.json"
    monkeypatch.setattr(run_scheduler, "EXPORT_FILENAME", str(export))

    assert run_scheduler.main(str(FIXTURE)) == 0

    data = json.loads(export.read_text())
    assert data["service_assignment_id"] == "asg_0001"
    # 12 total - 2 completed
    assert len(data["created_sessions"]) == 10
    assert data["budget_exhausted"] is True
    assert [e["reason"] for e in data["errors"]] == ["SLOT_TAKEN"]
    assert len(data["created_sessions"]) + len(data["errors"]) == data["evaluated_count"]


def test_missing_fixture_returns_error_code(tmp_path):
    assert run_scheduler.main(str(tmp_path / "nope.json")) == 1
