"""
Blocking waits on the chain clock.

Parameters (all optional):

- ``to``: absolute epoch / height to reach
- ``for``: relative amount, counted from ``from`` (or the current value)
- ``from``: base for ``for``

Waits poll the chain every ``ctx.poll_interval`` seconds. A wait whose
target has already passed returns immediately.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..core.errors import BuildError
from ..scenario.document import StepConfig
from ..scenario.fields import EPOCH, HEIGHT
from ..tasks.base import StepContext, StepResult, optional

logger = logging.getLogger(__name__)


def wait_target(ctx: StepContext, config: StepConfig, current: int) -> int:
    to = ctx.resolver.resolve_optional_int(optional(config, "to"))
    if to is not None:
        return to
    amount = ctx.resolver.resolve_optional_int(optional(config, "for"))
    if amount is None:
        raise BuildError(f"{config.kind.value}: one of 'to' or 'for' is required")
    base = ctx.resolver.resolve_optional_int(optional(config, "from"))
    return (current if base is None else base) + amount


def _wait_until(ctx: StepContext, config: StepConfig, query: Callable[[], int], unit: str) -> StepResult:
    current = query()
    target = wait_target(ctx, config, current)
    while current < target:
        logger.debug("waiting for %s %d (now %d)", unit, target, current)
        ctx.sleep(ctx.poll_interval)
        current = query()
    return StepResult.success({unit: str(current)})


def execute_wait_epoch(ctx: StepContext, config: StepConfig) -> StepResult:
    return _wait_until(ctx, config, ctx.sdk.query_epoch, EPOCH)


def execute_wait_height(ctx: StepContext, config: StepConfig) -> StepResult:
    return _wait_until(ctx, config, ctx.sdk.query_block, HEIGHT)
