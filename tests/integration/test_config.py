from __future__ import annotations

from pathlib import Path

import pytest

from src.gen import DEFAULT_WEIGHTS, TaskType
from src.integration.config import (
    RunnerConfig,
    generator_config,
    generator_env_defaults,
    load_weights,
    runner_config_from_env,
    scenario_total,
)

_ENV = ("RPC", "CHAIN_ID", "FAUCET_SK", "SCENARIO", "RUNS", "CARGO_ENV", "DRY_RUN", "SEED", "STEPS", "TOTAL", "WEIGHTS")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_runner_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("RPC", " tcp://127.0.0.1:26660 ")
    monkeypatch.setenv("CHAIN_ID", "local.abc")
    monkeypatch.setenv("FAUCET_SK", "00ff")
    monkeypatch.setenv("SCENARIO", "scenarios/a.json")
    monkeypatch.setenv("RUNS", "3")
    monkeypatch.setenv("DRY_RUN", "yes")
    monkeypatch.setenv("SEED", "42")
    cfg = runner_config_from_env()
    assert cfg.rpc == "tcp://127.0.0.1:26660"
    assert cfg.scenario == Path("scenarios/a.json")
    assert (cfg.runs, cfg.dry_run, cfg.seed) == (3, True, 42)
    assert cfg.cargo_env == "development"
    assert cfg.validate() is cfg


def test_runner_config_env_fallbacks(monkeypatch) -> None:
    monkeypatch.setenv("RUNS", "0")
    monkeypatch.setenv("DRY_RUN", "maybe")
    monkeypatch.setenv("SEED", "abc")
    cfg = runner_config_from_env()
    assert cfg.runs == 1
    assert cfg.dry_run is False
    assert cfg.seed is None
    assert cfg.scenario is None


@pytest.mark.parametrize(
    "cfg, message",
    [
        (RunnerConfig(runs=0, dry_run=True), "runs"),
        (RunnerConfig(cargo_env="staging", dry_run=True), "cargo_env"),
        (RunnerConfig(rpc="tcp://h:1"), "chain_id, faucet_sk"),
    ],
)
def test_runner_config_validation(cfg, message) -> None:
    with pytest.raises(ValueError, match=message):
        cfg.validate()


def test_dry_run_needs_no_connection_details() -> None:
    RunnerConfig(dry_run=True).validate()


def test_load_weights(tmp_path) -> None:
    assert load_weights(None) == DEFAULT_WEIGHTS
    assert load_weights("  ") == DEFAULT_WEIGHTS

    nested = tmp_path / "nested.yaml"
    nested.write_text("weights:\n  bond: 4\n  new-wallet-key: 1\n", encoding="utf-8")
    table = load_weights(nested)
    assert table[TaskType.BOND] == 4
    assert table[TaskType.FAUCET_TRANSFER] == 0

    flat = tmp_path / "flat.yaml"
    flat.write_text("faucet_transfer: 2\n", encoding="utf-8")
    assert load_weights(flat)[TaskType.FAUCET_TRANSFER] == 2

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    with pytest.raises(ValueError, match="empty"):
        load_weights(empty)


def test_generator_config_reads_env(monkeypatch) -> None:
    monkeypatch.setenv("STEPS", "25")
    monkeypatch.setenv("SEED", "9")
    cfg = generator_config(weights={TaskType.NEW_WALLET_KEY: 1, "bond": 2}, retry_for=30)
    assert (cfg.steps, cfg.seed, cfg.retry_for) == (25, 9, 30)
    assert cfg.weights[TaskType.BOND] == 2
    assert cfg.weights[TaskType.UNBOND] == 0


def test_generator_config_explicit_values_win(monkeypatch) -> None:
    monkeypatch.setenv("STEPS", "25")
    cfg = generator_config(steps=3, seed=1)
    assert cfg.steps == 3
    assert cfg.weights == DEFAULT_WEIGHTS


def test_generator_env_defaults_clamp(monkeypatch) -> None:
    monkeypatch.setenv("STEPS", "-5")
    monkeypatch.setenv("WEIGHTS", " w.yaml ")
    env = generator_env_defaults()
    assert env == {"steps": 0, "seed": None, "weights": "w.yaml"}


@pytest.mark.parametrize("raw, expected", [(None, 1), ("7", 7), ("0", 1), ("999999999", 100_000), ("x", 1)])
def test_scenario_total(monkeypatch, raw, expected) -> None:
    if raw is not None:
        monkeypatch.setenv("TOTAL", raw)
    assert scenario_total() == expected
