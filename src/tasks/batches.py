"""
Batched transactions.

A batch resolves and builds every inner transaction, then wraps them in a
single wire transaction with one fee payment. When ``atomic`` is set the
chain applies all inner transactions or none. Published fields are indexed
per inner transaction, and are only written when the whole batch succeeded.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, FrozenSet, List

from ..core.errors import BuildError, MissingReference
from ..scenario.document import BATCH_TXS, StepConfig
from ..scenario.fields import (
    AMOUNT_I,
    BATCH_ATOMIC,
    BATCH_SIZE,
    KIND_I,
    SOURCE_I,
    SRC_VALIDATOR_I,
    TARGET_I,
    TOKEN_I,
    indexed,
)
from ..scenario.kinds import StepKind
from .base import Prepared, StepContext, StepResult, TaskSpec, optional, submit_prepared, tx_args_for
from .pos import SRC_VALIDATOR, prepare_bond, prepare_redelegate, source_validator
from .transfers import prepare_transfer

ALLOWED_INNER: Dict[StepKind, FrozenSet[StepKind]] = {
    StepKind.BATCH: frozenset({StepKind.TRANSPARENT_TRANSFER, StepKind.BOND}),
    StepKind.BOND_BATCH: frozenset({StepKind.BOND}),
    StepKind.REDELEGATE_BATCH: frozenset({StepKind.REDELEGATE}),
    StepKind.TRANSPARENT_TRANSFER_BATCH: frozenset({StepKind.TRANSPARENT_TRANSFER}),
    StepKind.SHIELDING_BATCH: frozenset({StepKind.SHIELDING_TRANSFER}),
}

_INNER_PREPARE = {
    StepKind.TRANSPARENT_TRANSFER: prepare_transfer,
    StepKind.SHIELDING_TRANSFER: prepare_transfer,
    StepKind.BOND: prepare_bond,
}

_BATCH_SPEC = TaskSpec()


def inner_configs(config: StepConfig) -> List[StepConfig]:
    raw = config.param(BATCH_TXS)
    if not isinstance(raw, list) or not raw or not all(isinstance(c, StepConfig) for c in raw):
        raise BuildError(f"{config.kind.value}: txs must be a non-empty list of step configs")
    allowed = ALLOWED_INNER[config.kind]
    for inner in raw:
        if inner.kind not in allowed:
            raise BuildError(f"{config.kind.value} cannot contain {inner.kind.value}")
    return raw


def _prepare_all(ctx: StepContext, config: StepConfig) -> List[Prepared]:
    inners = inner_configs(config)
    if config.kind is StepKind.REDELEGATE_BATCH:
        # Every destination must differ from every source in the batch.
        sources = frozenset(source_validator(ctx, inner) for inner in inners)
        return [prepare_redelegate(ctx, inner, exclude=sources) for inner in inners]
    return [_INNER_PREPARE[inner.kind](ctx, inner) for inner in inners]


def _batch_fields(prepared: List[Prepared], atomic: bool) -> Dict[str, str]:
    fields = {BATCH_SIZE: str(len(prepared)), BATCH_ATOMIC: "true" if atomic else "false"}
    for i, p in enumerate(prepared):
        fields[indexed(KIND_I, i)] = p.kind
        fields[indexed(SOURCE_I, i)] = p.entry.get("source", "")
        fields[indexed(TARGET_I, i)] = p.entry.get("target", "")
        fields[indexed(AMOUNT_I, i)] = p.entry.get("amount", "")
        fields[indexed(TOKEN_I, i)] = p.entry.get("token", "")
        if SRC_VALIDATOR in p.entry:
            fields[indexed(SRC_VALIDATOR_I, i)] = p.entry[SRC_VALIDATOR]
    return fields


def execute_batch(ctx: StepContext, config: StepConfig) -> StepResult:
    try:
        atomic_value = optional(config, "atomic")
        atomic = True if atomic_value is None else ctx.resolver.resolve(atomic_value).lower() == "true"
        prepared = _prepare_all(ctx, config)
    except MissingReference as e:
        return StepResult.noop(str(e))
    except BuildError as e:
        return StepResult.noop(f"build error: {e}")

    signers = list(dict.fromkeys(p.default_signer for p in prepared if p.default_signer is not None))
    try:
        tx_args = tx_args_for(config, signers[0] if signers else None)
        if not (config.settings and config.settings.signers):
            # Every inner source signs the wrapper.
            tx_args = replace(tx_args, signers=tuple(signers))
        txs = [ctx.sdk.build(p.kind, p.args, tx_args) for p in prepared]
        batch = ctx.sdk.build_batch(txs, atomic, tx_args)
    except BuildError as e:
        return StepResult.noop(f"build error: {e}")

    combined = Prepared(kind=config.kind.value, args={}, fields=_batch_fields(prepared, atomic))
    return submit_prepared(ctx, _BATCH_SPEC, combined, batch)
