"""
Scenario runner.

Executes a scenario's steps in id order against one SDK handle, recording
every outcome in a fresh ``StepStorage``. A step whose references cannot be
resolved becomes a ``noop`` and the run carries on; nothing short-circuits
the scenario.

``SubmissionTimeout`` is the only error that escapes a step. When the
scenario sets ``retry_for`` the whole scenario is restarted from step 0 with
fresh storage for as long as less than ``retry_for`` seconds have passed
since the first attempt started. Otherwise (or once the window is spent) the
timed-out step is recorded as ``fail`` and the run continues.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, List, Optional

from ..core.errors import SubmissionTimeout
from ..core.resolver import Resolver
from ..scenario.document import Scenario, check_contiguous
from ..state.canonical import canonical_json
from ..state.storage import Outcome, StepStorage
from ..tasks.base import StepContext, StepResult
from ..tasks.registry import execute_step
from .report import RunReport
from .sdk import Sdk

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 10.0


class _Restart(Exception):
    def __init__(self, step_id: int, cause: SubmissionTimeout) -> None:
        self.step_id = step_id
        self.cause = cause
        super().__init__(f"step {step_id}: {cause}")


class ScenarioRunner:
    def __init__(
        self,
        sdk: Sdk,
        *,
        seed: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self.sdk = sdk
        self.rng = random.Random(seed)
        self.sleep = sleep
        self.poll_interval = poll_interval
        self.clock = clock

    def _context(self, storage: StepStorage, step_id: int) -> StepContext:
        return StepContext(
            sdk=self.sdk,
            storage=storage,
            resolver=Resolver(storage, self.rng),
            step_id=step_id,
            rng=self.rng,
            sleep=self.sleep,
            poll_interval=self.poll_interval,
        )

    def _attempt(self, scenario: Scenario, deadline: Optional[float], attempt: int) -> RunReport:
        storage = StepStorage()
        for step in scenario.steps:
            logger.info("Running step %d (%s)...", step.id, step.kind.value)
            ctx = self._context(storage, step.id)
            try:
                result = execute_step(ctx, step.config)
            except SubmissionTimeout as e:
                if deadline is not None and self.clock() < deadline:
                    raise _Restart(step.id, e) from e
                result = StepResult.fail(canonical_json({"timeout": str(e)}))
            storage.save(step.id, result.outcome, result.fields, result.error)
            logger.info("Step %d : %s", step.id, result.outcome.value)
            if result.outcome is not Outcome.SUCCESS and result.error:
                logger.warning("step %d (%s): %s", step.id, step.kind.value, result.error)
        return RunReport.from_storage(scenario, storage, attempts=attempt)

    def run_once(self, scenario: Scenario) -> RunReport:
        check_contiguous(scenario)
        retry_for = scenario.settings.retry_for
        deadline = self.clock() + retry_for if retry_for is not None else None
        attempt = 1
        while True:
            try:
                return self._attempt(scenario, deadline, attempt)
            except _Restart as e:
                logger.warning("submission timed out at step %d, restarting scenario: %s", e.step_id, e.cause)
                attempt += 1

    def run(self, scenario: Scenario, runs: int = 1) -> List[RunReport]:
        if runs < 1:
            raise ValueError("runs must be at least 1")
        reports = []
        for i in range(runs):
            logger.info("Starting run %d/%d (%d steps)", i + 1, runs, len(scenario))
            report = self.run_once(scenario)
            logger.info("Run %d/%d %s", i + 1, runs, "ok" if report.ok else "failed")
            reports.append(report)
        return reports


def run_scenario(sdk: Sdk, scenario: Scenario, **kwargs) -> RunReport:
    return ScenarioRunner(sdk, **kwargs).run_once(scenario)
