"""
Scenario builder.

Draws tasks from a weighted Walker table, redrawing while the drawn task is
infeasible, splices each task between its pre- and post-hooks, and keeps the
generator model in step with what the emitted document will do on chain.

For every task:

1. pre-hooks are emitted at ``base .. base + len(pre) - 1``
2. the main step gets id ``main_id = base + len(pre)``; a fuzz seed names
   the pre-hook the draft points at (``base + seed_hook``)
3. the fee is debited from the payer and the task's effect is applied
4. post-hooks are built from the updated model, emitted, and their own
   effects (e.g. a reveal paid by the revealed account) applied in order

Model invariants are checked after every task.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..core.errors import GenerationStalled
from ..core.walker import WalkerTable
from ..scenario.document import Scenario, Step, StepConfig
from ..scenario.settings import ScenarioSettings
from .constants import DEFAULT_GAS_LIMIT
from .feasibility import TaskType, is_feasible, parse_task_type
from .model import GeneratorModel
from .steps import SYNTHESIZERS, Synth

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS: Dict[TaskType, int] = {
    TaskType.NEW_WALLET_KEY: 10,
    TaskType.FAUCET_TRANSFER: 10,
    TaskType.TRANSPARENT_TRANSFER: 8,
    TaskType.BOND: 6,
    TaskType.UNBOND: 3,
    TaskType.WITHDRAW: 2,
    TaskType.REDELEGATE: 3,
    TaskType.CLAIM_REWARDS: 2,
    TaskType.INIT_ACCOUNT: 3,
    TaskType.UPDATE_ACCOUNT: 1,
    TaskType.BECOME_VALIDATOR: 1,
    TaskType.DEACTIVATE_VALIDATOR: 1,
    TaskType.REACTIVATE_VALIDATOR: 1,
    TaskType.CHANGE_METADATA: 1,
    TaskType.CHANGE_CONSENSUS_KEY: 1,
    TaskType.INIT_DEFAULT_PROPOSAL: 1,
    TaskType.INIT_PGF_STEWARD_PROPOSAL: 1,
    TaskType.INIT_PGF_FUNDING_PROPOSAL: 1,
    TaskType.VOTE_PROPOSAL: 2,
    TaskType.SHIELDING_TRANSFER: 3,
    TaskType.SHIELDED_TRANSFER: 2,
    TaskType.UNSHIELDING_TRANSFER: 2,
    TaskType.BATCH: 2,
    TaskType.BOND_BATCH: 2,
    TaskType.REDELEGATE_BATCH: 1,
    TaskType.TRANSPARENT_TRANSFER_BATCH: 2,
    TaskType.SHIELDING_BATCH: 1,
}

# Rejected draws tolerated before drawing from the feasible tasks only.
MAX_REDRAWS = 256


def parse_weights(raw: Mapping[str, Any]) -> Dict[TaskType, int]:
    """Task-name -> weight mapping; unnamed tasks get weight 0."""
    if not isinstance(raw, Mapping):
        raise ValueError("weights must be a mapping of task name to weight")
    out = {task: 0 for task in TaskType}
    for name, weight in raw.items():
        if isinstance(weight, bool) or not isinstance(weight, int) or weight < 0:
            raise ValueError(f"weight for {name!r} must be a non-negative integer, got {weight!r}")
        out[parse_task_type(str(name))] = weight
    if not any(out.values()):
        raise ValueError("at least one weight must be positive")
    return out


@dataclass(frozen=True)
class GeneratorConfig:
    # Number of tasks to draw; hooks come on top.
    steps: int = 100
    weights: Mapping[TaskType, int] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    seed: Optional[int] = None
    retry_for: Optional[int] = None

    def __post_init__(self) -> None:
        if self.steps < 0:
            raise ValueError("steps must be non-negative")
        if self.retry_for is not None and self.retry_for < 0:
            raise ValueError("retry_for must be non-negative")


class ScenarioBuilder:
    def __init__(self, config: GeneratorConfig = GeneratorConfig()) -> None:
        self.config = config
        self.rng = random.Random(config.seed)
        self.model = GeneratorModel()
        self.configs: List[StepConfig] = []
        self.drawn: List[TaskType] = []
        self._tasks = list(TaskType)
        self._weights = [int(config.weights.get(task, 0)) for task in self._tasks]
        self._table = WalkerTable(self._weights, self.rng)
        self._synth = Synth(self.model, self.rng)

    @property
    def next_id(self) -> int:
        return len(self.configs)

    def _emit(self, config: StepConfig) -> int:
        self.configs.append(config)
        return len(self.configs) - 1

    def next_task(self) -> TaskType:
        feasible = [
            i for i, task in enumerate(self._tasks) if self._weights[i] > 0 and is_feasible(self.model, task)
        ]
        if not feasible:
            raise GenerationStalled(f"no weighted task is feasible after {len(self.drawn)} tasks")
        for _ in range(MAX_REDRAWS):
            index = self._table.next()
            if index in feasible:
                return self._tasks[index]
        restricted = WalkerTable([self._weights[i] for i in feasible], self.rng)
        return self._tasks[feasible[restricted.next()]]

    def add_task(self, task: TaskType) -> int:
        """Splice ``task`` and its hooks into the document; returns the main step id."""
        if not is_feasible(self.model, task):
            raise ValueError(f"task {task.value} is not feasible")
        draft = SYNTHESIZERS[task](self._synth)
        base = self.next_id
        for hook in draft.pre:
            self._emit(hook.config)
            if hook.effect is not None:
                hook.effect(self.model)
        seed = base + draft.seed_hook if draft.seed_hook is not None else None
        main_id = self._emit(draft.config(seed))

        if draft.fee_payer is not None:
            gas_limit = DEFAULT_GAS_LIMIT
            if draft.settings is not None and draft.settings.gas_limit is not None:
                gas_limit = draft.settings.gas_limit
            self.model.debit_fee(draft.fee_payer, gas_limit)
        draft.apply(main_id)

        for hook in draft.post(main_id):
            self._emit(hook.config)
            if hook.effect is not None:
                hook.effect(self.model)

        self.model.check_invariants()
        self.drawn.append(task)
        logger.debug("task %s -> step %d (%d steps so far)", task.value, main_id, self.next_id)
        return main_id

    def scenario(self) -> Scenario:
        return Scenario(
            steps=[Step(id=i, config=c) for i, c in enumerate(self.configs)],
            settings=ScenarioSettings(retry_for=self.config.retry_for),
        )

    def build(self) -> Scenario:
        for _ in range(self.config.steps):
            self.add_task(self.next_task())
        return self.scenario()


def generate_scenario(config: GeneratorConfig = GeneratorConfig()) -> Scenario:
    builder = ScenarioBuilder(config)
    scenario = builder.build()
    logger.info("generated %d steps from %d tasks", len(scenario), len(builder.drawn))
    return scenario
