from __future__ import annotations

import random
from typing import Any, List, Optional

import pytest

from src.core.resolver import Resolver
from src.integration.mock_chain import MockChain
from src.scenario.document import Scenario, Step, StepConfig
from src.scenario.kinds import StepKind
from src.scenario.settings import ScenarioSettings, TxSettings
from src.state.storage import StepStorage
from src.tasks.base import StepContext, StepResult
from src.tasks.registry import execute_step


class Harness:
    """Executes steps one at a time against an in-memory chain, like the runner does."""

    def __init__(self, chain: Optional[MockChain] = None, seed: int = 0) -> None:
        self.chain = chain if chain is not None else MockChain()
        self.storage = StepStorage()
        self.rng = random.Random(seed)

    def run(self, config: StepConfig) -> StepResult:
        step_id = len(self.storage)
        ctx = StepContext(
            sdk=self.chain,
            storage=self.storage,
            resolver=Resolver(self.storage, self.rng),
            step_id=step_id,
            rng=self.rng,
            sleep=self.chain.sleep,
        )
        result = execute_step(ctx, config)
        self.storage.save(step_id, result.outcome, result.fields, result.error)
        return result

    def step(self, kind: StepKind, settings: Optional[TxSettings] = None, **params: Any) -> StepResult:
        return self.run(StepConfig(kind, params, settings))

    def field(self, step_id: int, name: str) -> str:
        return self.storage.get(step_id, name)


def scenario_of(configs: List[StepConfig], retry_for: Optional[int] = None) -> Scenario:
    return Scenario(
        steps=[Step(id=i, config=c) for i, c in enumerate(configs)],
        settings=ScenarioSettings(retry_for=retry_for),
    )


@pytest.fixture
def chain() -> MockChain:
    return MockChain()


@pytest.fixture
def harness(chain: MockChain) -> Harness:
    return Harness(chain)
