from __future__ import annotations

import json
import logging

import pytest

from src.integration.mock_chain import MockChain
from src.integration.runner import ScenarioRunner, run_scenario
from src.scenario.document import Scenario, Step, StepConfig
from src.scenario.kinds import StepKind
from src.scenario.value import Fuzz, ref, v
from src.state.storage import Outcome
from tests.conftest import scenario_of


def _fund_and_check(retry_for=None):
    return scenario_of(
        [
            StepConfig(StepKind.WALLET_NEW_KEY),
            StepConfig(
                StepKind.TRANSPARENT_TRANSFER,
                {"source": v("faucet"), "target": ref(0, "alias"), "token": v("nam"), "amount": v(1000)},
            ),
            StepConfig(StepKind.CHECK_STEP, {"id": v(1)}),
        ],
        retry_for=retry_for,
    )


def test_runs_every_step_in_order(chain: MockChain) -> None:
    report = run_scenario(chain, _fund_and_check(), seed=1, sleep=chain.sleep)
    assert [s.id for s in report.steps] == [0, 1, 2]
    assert [s.outcome for s in report.steps] == [Outcome.SUCCESS] * 3
    assert report.ok
    assert report.attempts == 1


def test_noop_does_not_stop_the_run(chain: MockChain) -> None:
    scenario = scenario_of(
        [
            StepConfig(StepKind.CHECK_BALANCE, {"address": v("faucet"), "token": v("nam"), "amount": v(0)}),
            StepConfig(StepKind.BOND, {"source": v("faucet"), "validator": Fuzz(0), "amount": v(1)}),
            StepConfig(StepKind.QUERY_VALIDATORS),
        ]
    )
    report = run_scenario(chain, scenario, sleep=chain.sleep)
    assert [s.outcome for s in report.steps] == [Outcome.FAIL, Outcome.NOOP, Outcome.SUCCESS]
    assert not report.ok
    assert [s.id for s in report.failures()] == [0]


def test_timeout_restarts_scenario_within_retry_window(chain: MockChain) -> None:
    chain.pending_timeouts = 1
    report = run_scenario(chain, _fund_and_check(retry_for=600), sleep=chain.sleep)
    assert report.attempts == 2
    assert report.ok
    assert chain.pending_timeouts == 0


def test_timeout_without_retry_fails_the_step_and_continues(chain: MockChain) -> None:
    chain.pending_timeouts = 1
    report = run_scenario(chain, _fund_and_check(), sleep=chain.sleep)
    assert report.attempts == 1
    assert [s.outcome for s in report.steps] == [Outcome.SUCCESS, Outcome.FAIL, Outcome.FAIL]
    assert "timeout" in json.loads(report.steps[1].error)


def test_timeout_after_retry_window_fails_the_step(chain: MockChain) -> None:
    chain.pending_timeouts = 1
    ticks = iter([0.0, 700.0])
    report = ScenarioRunner(chain, sleep=chain.sleep, clock=lambda: next(ticks)).run_once(
        _fund_and_check(retry_for=600)
    )
    assert report.attempts == 1
    assert report.steps[1].outcome is Outcome.FAIL


def test_zero_retry_window_never_restarts(chain: MockChain) -> None:
    chain.pending_timeouts = 1
    report = ScenarioRunner(chain, sleep=chain.sleep, clock=lambda: 0.0).run_once(_fund_and_check(retry_for=0))
    assert report.attempts == 1
    assert not report.ok


def test_multiple_runs_use_fresh_storage(chain: MockChain) -> None:
    reports = ScenarioRunner(chain, seed=3, sleep=chain.sleep).run(_fund_and_check(), runs=3)
    assert len(reports) == 3
    assert all(r.ok for r in reports)
    # One transfer per run.
    assert len(chain.submitted) == 3


def test_runner_rejects_bad_arguments(chain: MockChain) -> None:
    with pytest.raises(ValueError):
        ScenarioRunner(chain, poll_interval=0)
    with pytest.raises(ValueError):
        ScenarioRunner(chain).run(_fund_and_check(), runs=0)


def test_runner_rejects_non_contiguous_documents(chain: MockChain) -> None:
    scenario = Scenario(steps=[Step(id=1, config=StepConfig(StepKind.WALLET_NEW_KEY))])
    with pytest.raises(ValueError):
        run_scenario(chain, scenario)


def test_step_progress_is_logged(chain: MockChain, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="src.integration.runner"):
        run_scenario(chain, _fund_and_check(), sleep=chain.sleep)
    assert "Running step 0 (wallet-new-key)..." in caplog.messages
    assert "Step 1 : success" in caplog.messages
