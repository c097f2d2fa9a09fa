from __future__ import annotations

import json

import pytest

from src.scenario.document import StepConfig, load_scenario, save_scenario
from src.scenario.kinds import StepKind
from src.scenario.value import ref, v
from tests.conftest import scenario_of
from tools.generate_scenarios import main as generate_main
from tools.run_scenario import main as run_main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("RPC", "CHAIN_ID", "FAUCET_SK", "SCENARIO", "RUNS", "CARGO_ENV", "DRY_RUN", "SEED", "STEPS", "TOTAL", "WEIGHTS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scenario_file(tmp_path):
    scenario = scenario_of(
        [
            StepConfig(StepKind.WALLET_NEW_KEY),
            StepConfig(
                StepKind.TRANSPARENT_TRANSFER,
                {"source": v("faucet"), "target": ref(0, "alias"), "token": v("nam"), "amount": v(1000)},
            ),
            StepConfig(StepKind.CHECK_BALANCE, {"address": ref(0, "alias"), "token": v("nam"), "amount": v(1000)}),
        ]
    )
    return save_scenario(tmp_path / "s.json", scenario)


def test_dry_run_writes_markdown_report(scenario_file, tmp_path, capsys) -> None:
    report = tmp_path / "out" / "report.md"
    rc = run_main(["--dry-run", "--scenario", str(scenario_file), "--runs", "2", "--report", str(report)])
    assert rc == 0
    out = capsys.readouterr().out
    assert "[run_scenario] run 2/2: ok (success=3, fail=0, noop=0)" in out
    body = report.read_text(encoding="utf-8")
    assert "# s.json run 1/2" in body
    assert "| 2 | check-balance | success |  |" in body


def test_dry_run_writes_json_report(scenario_file, tmp_path) -> None:
    report = tmp_path / "report.json"
    assert run_main(["--dry-run", "--scenario", str(scenario_file), "--seed", "3", "--report", str(report)]) == 0
    (only,) = json.loads(report.read_text(encoding="utf-8"))
    assert only["ok"] is True
    assert only["totals"]["success"] == 3


def test_failing_run_exits_nonzero(tmp_path) -> None:
    bad = save_scenario(
        tmp_path / "bad.json",
        scenario_of([StepConfig(StepKind.CHECK_BALANCE, {"address": v("faucet"), "token": v("nam"), "amount": v(0)})]),
    )
    assert run_main(["--dry-run", "--scenario", str(bad)]) == 1


def test_configuration_errors_exit_2(scenario_file, tmp_path, capsys) -> None:
    assert run_main(["--scenario", str(scenario_file)]) == 2
    assert "missing required option" in capsys.readouterr().err
    assert run_main(["--dry-run", "--cargo-env", "production", "--scenario", str(scenario_file)]) == 2
    assert run_main(["--dry-run", "--scenario", str(tmp_path / "absent.json")]) == 2


def test_generate_then_dry_run(tmp_path, capsys) -> None:
    out_dir = tmp_path / "scenarios"
    assert generate_main(["--out-dir", str(out_dir), "--total", "2", "--steps", "10", "--seed", "1"]) == 0
    files = sorted(out_dir.glob("*.json"))
    assert len(files) == 2
    assert all(len(f.stem) == 16 for f in files)
    for f in files:
        assert load_scenario(f).steps[0].kind is StepKind.WALLET_NEW_KEY
    assert run_main(["--dry-run", "--scenario", str(files[0])]) == 0


def test_generate_is_reproducible(tmp_path) -> None:
    a, b = tmp_path / "a", tmp_path / "b"
    assert generate_main(["--out-dir", str(a), "--total", "1", "--steps", "8", "--seed", "5"]) == 0
    assert generate_main(["--out-dir", str(b), "--total", "1", "--steps", "8", "--seed", "5"]) == 0
    (fa,) = a.glob("*.json")
    (fb,) = b.glob("*.json")
    assert fa.name == fb.name
    assert fa.read_text(encoding="utf-8") == fb.read_text(encoding="utf-8")


def test_generate_rejects_bad_arguments(tmp_path, capsys) -> None:
    assert generate_main(["--out-dir", str(tmp_path), "--total", "0"]) == 2
    weights = tmp_path / "w.yaml"
    weights.write_text("unbond: 1\n", encoding="utf-8")
    assert generate_main(["--out-dir", str(tmp_path), "--weights", str(weights), "--steps", "3"]) == 1
    assert "FAIL" in capsys.readouterr().err
