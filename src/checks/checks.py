"""
Assertions over chain state and step storage.

A check succeeds when the observed value matches, fails when it does not,
and is a ``noop`` when one of its parameters references a step that did not
succeed (the thing it would assert about never happened).
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

from ..core.errors import BuildError
from ..scenario.document import StepConfig
from ..scenario.value import Literal
from ..state.canonical import canonical_json
from ..tasks.base import StepContext, StepResult, account_address, optional, require

logger = logging.getLogger(__name__)

OP_EQ = "eq"
OP_GE = "ge"
OP_LE = "le"

_COMPARE: Dict[str, Callable[[int, int], bool]] = {
    OP_EQ: lambda actual, expected: actual == expected,
    OP_GE: lambda actual, expected: actual >= expected,
    OP_LE: lambda actual, expected: actual <= expected,
}


def _mismatch(what: str, actual, expected, **extra) -> StepResult:
    detail = {"check": what, "actual": str(actual), "expected": str(expected)}
    detail.update({k: str(v) for k, v in extra.items()})
    logger.info("check %s failed: actual=%s expected=%s", what, actual, expected)
    return StepResult.fail(canonical_json(detail))


def execute_check_balance(ctx: StepContext, config: StepConfig) -> StepResult:
    owner = account_address(ctx, require(config, "address"))
    token = account_address(ctx, require(config, "token"))
    expected = ctx.resolver.resolve_int(require(config, "amount"))
    op_value = optional(config, "op")
    op = ctx.resolver.resolve(op_value).lower() if op_value is not None else OP_EQ
    compare = _COMPARE.get(op)
    if compare is None:
        raise BuildError(f"unknown balance comparison {op!r}")
    actual = ctx.sdk.token_balance(token, owner)
    if compare(actual, expected):
        return StepResult.success()
    return _mismatch("balance", actual, expected, op=op, address=owner)


def execute_check_bonds(ctx: StepContext, config: StepConfig) -> StepResult:
    delegator = account_address(ctx, require(config, "delegator"))
    delegate = account_address(ctx, require(config, "delegate"))
    expected = ctx.resolver.resolve_int(require(config, "amount"))
    epoch = ctx.sdk.query_epoch()
    summary = ctx.sdk.enriched_bonds_and_unbonds(epoch, delegator, delegate)
    if summary.bonds_total == expected:
        return StepResult.success()
    return _mismatch("bonds", summary.bonds_total, expected, delegator=delegator, delegate=delegate)


def execute_check_reveal_pk(ctx: StepContext, config: StepConfig) -> StepResult:
    address = account_address(ctx, require(config, "source"))
    if ctx.sdk.is_public_key_revealed(address):
        return StepResult.success()
    return _mismatch("reveal-pk", False, True, address=address)


def _literal_int(config: StepConfig, key: str) -> int:
    raw = require(config, key)
    if not isinstance(raw, Literal) or not raw.value.isdigit():
        raise BuildError(f"{config.kind.value}: {key} must be a literal step id")
    return int(raw.value)


def execute_check_step(ctx: StepContext, config: StepConfig) -> StepResult:
    """
    A ``noop`` counts as success: the checked step was correctly skipped.
    Expecting anything other than ``success`` asserts that the step failed.
    """
    step_id = _literal_int(config, "id")
    outcome_value = optional(config, "outcome")
    expected = ctx.resolver.resolve(outcome_value) if outcome_value is not None else "success"
    ok = ctx.storage.is_success(step_id) or ctx.storage.is_noop(step_id)
    if ok == (expected == "success"):
        return StepResult.success()
    return _mismatch("step", "success" if ok else "fail", expected, step=step_id)


def execute_check_storage(ctx: StepContext, config: StepConfig) -> StepResult:
    step_id = _literal_int(config, "step")
    field = ctx.resolver.resolve(require(config, "field"))
    expected = ctx.resolver.resolve(require(config, "value"))
    actual = ctx.storage.get(step_id, field)
    if actual == expected:
        return StepResult.success()
    return _mismatch("storage", actual, expected, step=step_id, field=field)
