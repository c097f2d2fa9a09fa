from __future__ import annotations

import json

from src.integration.report import RunReport, StepReport, all_ok
from src.state.storage import Outcome


def _report() -> RunReport:
    return RunReport(
        steps=[
            StepReport(0, "wallet-new-key", Outcome.SUCCESS),
            StepReport(1, "bond", Outcome.NOOP, "missing parameter 'amount'"),
            StepReport(2, "check-balance", Outcome.FAIL, '{"a": "x|y"}\nmore'),
        ],
        attempts=2,
    )


def test_totals_and_failures() -> None:
    report = _report()
    assert not report.ok
    assert report.count(Outcome.NOOP) == 1
    assert [s.id for s in report.failures()] == [2]
    assert RunReport(steps=report.steps[:2]).ok
    assert RunReport().ok


def test_json_report() -> None:
    obj = json.loads(_report().to_json())
    assert obj["ok"] is False
    assert obj["attempts"] == 2
    assert obj["totals"] == {"success": 1, "fail": 1, "noop": 1}
    assert obj["steps"][0] == {"id": 0, "kind": "wallet-new-key", "outcome": "success"}
    assert obj["steps"][1]["error"] == "missing parameter 'amount'"


def test_markdown_report_escapes_cells() -> None:
    md = _report().render_markdown("nightly")
    lines = md.splitlines()
    assert lines[0] == "# nightly"
    assert "Result: **failed** (success: 1, fail: 1, noop: 1; attempts: 2)" in md
    assert "| step | kind | outcome | error |" in lines
    assert '| 2 | check-balance | fail | {"a": "x\\|y"} more |' in lines
    assert "| 0 | wallet-new-key | success |  |" in lines


def test_all_ok() -> None:
    assert all_ok([])
    assert all_ok([RunReport(steps=[StepReport(0, "bond", Outcome.NOOP)])])
    assert not all_ok([RunReport(), _report()])
