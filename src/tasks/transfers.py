"""Transparent and shielded token transfers."""

from __future__ import annotations

import logging

from ..core.errors import BuildError, ShieldedSyncError
from ..core.resolver import AddressKind, Resolved
from ..scenario.document import StepConfig
from ..scenario.fields import AMOUNT, SOURCE, TARGET, TOKEN
from ..scenario.kinds import StepKind
from .base import Prepared, StepContext, StepResult, account_address, require, signer_alias, to_address

logger = logging.getLogger(__name__)


def _payment_address(ctx: StepContext, target: Resolved) -> str:
    if target.kind is AddressKind.ADDRESS:
        return target.text
    if target.kind is AddressKind.ALIAS:
        pa = ctx.sdk.wallet.find_payment_address(target.text)
        if pa is not None:
            return pa
    raise BuildError(f"not a payment address: {target.text!r}")


def _spending_key(ctx: StepContext, source: Resolved) -> str:
    if source.kind is AddressKind.ALIAS and ctx.sdk.wallet.has_spending_key(source.text):
        return source.text
    raise BuildError(f"not a spending key alias: {source.text!r}")


def prepare_transfer(ctx: StepContext, config: StepConfig) -> Prepared:
    """Shared by the four transfer kinds; they differ in how ends are named."""
    kind = config.kind
    raw_source = ctx.resolver.resolve_account(require(config, "source"))
    raw_target = ctx.resolver.resolve_account(require(config, "target"))
    token = account_address(ctx, require(config, "token"))
    amount = ctx.resolver.resolve_int(require(config, "amount"))
    if amount == 0:
        raise BuildError("transfer amount must be positive")

    default_signer = None
    if kind in (StepKind.SHIELDED_TRANSFER, StepKind.UNSHIELDING_TRANSFER):
        source = _spending_key(ctx, raw_source)
    else:
        source = to_address(ctx, raw_source)
        default_signer = signer_alias(ctx, raw_source)
    if kind in (StepKind.SHIELDING_TRANSFER, StepKind.SHIELDED_TRANSFER):
        target = _payment_address(ctx, raw_target)
    else:
        target = to_address(ctx, raw_target)

    row = {SOURCE: source, TARGET: target, TOKEN: token, AMOUNT: str(amount)}
    return Prepared(
        kind=kind.value,
        args={"source": source, "target": target, "token": token, "amount": amount},
        fields=dict(row),
        default_signer=default_signer,
        entry=dict(row),
    )


def execute_shielded_sync(ctx: StepContext, config: StepConfig) -> StepResult:
    try:
        ctx.sdk.shielded_sync()
    except ShieldedSyncError as e:
        logger.warning("shielded sync failed: %s", e)
        return StepResult.noop(str(e))
    return StepResult.success()
