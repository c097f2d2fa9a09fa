"""
Hooks spliced around generated tasks.

A hook is a step config plus an optional model effect. Pre-hooks prepare the
chain (queries a ``Fuzz`` can draw from, waits, shielded sync); post-hooks
assert on the outcome. Hooks that submit transactions (``reveal_pk``) carry
the fee and state change in their effect.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..scenario.document import StepConfig
from ..scenario.kinds import StepKind
from ..scenario.value import Literal, Value, v
from .constants import DEFAULT_GAS_LIMIT, NATIVE_TOKEN
from .model import GeneratorModel

OP_GE = "ge"
OP_LE = "le"


@dataclass
class Hook:
    config: StepConfig
    effect: Optional[Callable[[GeneratorModel], None]] = None

    @property
    def kind(self) -> StepKind:
        return self.config.kind


def _hook(kind: StepKind, **params) -> Hook:
    return Hook(StepConfig(kind, {k: p for k, p in params.items() if p is not None}))


def native_token() -> Literal:
    return v(NATIVE_TOKEN)


# -- pre-hooks -------------------------------------------------------------


def query_validators() -> Hook:
    return _hook(StepKind.QUERY_VALIDATORS)


def query_balance(model: GeneratorModel, alias: str) -> Hook:
    return _hook(StepKind.QUERY_BALANCE, address=model.account_value(alias), token=native_token())


def shielded_sync() -> Hook:
    return _hook(StepKind.SHIELDED_SYNC)


def wait_epoch(*, for_epochs: Optional[int] = None, to: Optional[Value] = None) -> Hook:
    params = {}
    if for_epochs is not None:
        params["for"] = v(for_epochs)
    if to is not None:
        params["to"] = to
    return _hook(StepKind.WAIT_EPOCH, **params)


# -- post-hooks ------------------------------------------------------------


def check_step(step_id: int, outcome: str = "success") -> Hook:
    return _hook(StepKind.CHECK_STEP, id=v(step_id), outcome=v(outcome))


def check_balance(model: GeneratorModel, alias: str, op: str = OP_GE) -> Hook:
    """Assert the chain balance against what the model expects right now."""
    return _hook(
        StepKind.CHECK_BALANCE,
        address=model.account_value(alias),
        token=native_token(),
        amount=v(model.native_balance(alias)),
        op=v(op),
    )


def check_bonds(model: GeneratorModel, delegator: str, delegate: Value, amount: int) -> Hook:
    return _hook(
        StepKind.CHECK_BONDS,
        delegator=model.account_value(delegator),
        delegate=delegate,
        amount=v(amount),
    )


def check_reveal_pk(model: GeneratorModel, alias: str) -> Hook:
    return _hook(StepKind.CHECK_REVEAL_PK, source=model.account_value(alias))


def check_storage(step_id: int, field: str, value: str) -> Hook:
    return _hook(StepKind.CHECK_STORAGE, step=v(step_id), field=v(field), value=v(value))


def reveal_pk(model: GeneratorModel, alias: str) -> Hook:
    """Reveal ``alias``'s public key; the account pays its own fee."""

    def effect(m: GeneratorModel) -> None:
        m.debit_fee(alias, DEFAULT_GAS_LIMIT)
        m.reveal(alias)

    hook = _hook(StepKind.REVEAL_PK, source=model.account_value(alias))
    hook.effect = effect
    return hook
