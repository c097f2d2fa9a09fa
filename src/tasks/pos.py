"""Proof-of-stake transactions: bond, unbond, withdraw, redelegate, claim rewards."""

from __future__ import annotations

from typing import FrozenSet

from ..core.errors import BuildError
from ..core.resolver import ALL_VALIDATORS, BONDABLE_VALIDATORS, CONSENSUS_VALIDATORS
from ..gen.constants import NATIVE_TOKEN
from ..scenario.document import StepConfig
from ..scenario.fields import (
    AMOUNT,
    DELEGATOR_ADDRESS,
    DEST_VALIDATOR_ADDRESS,
    SOURCE,
    SOURCE_ADDRESS,
    SRC_VALIDATOR_ADDRESS,
    TARGET,
    TOKEN,
    VALIDATOR_ADDRESS,
)
from ..scenario.kinds import StepKind
from .base import Prepared, StepContext, account_address, require, signer_alias, to_address

SRC_VALIDATOR = "src-validator"


def _delegator(ctx: StepContext, config: StepConfig):
    source = ctx.resolver.resolve_account(require(config, "source"))
    return to_address(ctx, source), signer_alias(ctx, source)


def _native_token(ctx: StepContext) -> str:
    address = ctx.sdk.wallet.find_address(NATIVE_TOKEN)
    if address is None:
        raise BuildError("native token alias is not known to the wallet")
    return address


def _positive_amount(ctx: StepContext, config: StepConfig) -> int:
    amount = ctx.resolver.resolve_int(require(config, "amount"))
    if amount == 0:
        raise BuildError("amount must be positive")
    return amount


def prepare_bond(ctx: StepContext, config: StepConfig) -> Prepared:
    source, signer = _delegator(ctx, config)
    fuzz_from = BONDABLE_VALIDATORS if config.kind is StepKind.BOND else ALL_VALIDATORS
    validator = account_address(ctx, require(config, "validator"), fuzz_from=fuzz_from)
    amount = _positive_amount(ctx, config)
    return Prepared(
        kind=config.kind.value,
        args={"source": source, "validator": validator, "amount": amount},
        fields={SOURCE_ADDRESS: source, VALIDATOR_ADDRESS: validator, AMOUNT: str(amount)},
        default_signer=signer,
        entry={SOURCE: source, TARGET: validator, AMOUNT: str(amount), TOKEN: _native_token(ctx)},
    )


# Unbonding takes the same shape as bonding.
prepare_unbond = prepare_bond


def prepare_withdraw(ctx: StepContext, config: StepConfig) -> Prepared:
    source, signer = _delegator(ctx, config)
    validator = account_address(ctx, require(config, "validator"))
    return Prepared(
        kind=config.kind.value,
        args={"source": source, "validator": validator},
        fields={SOURCE_ADDRESS: source, VALIDATOR_ADDRESS: validator},
        default_signer=signer,
    )


def source_validator(ctx: StepContext, config: StepConfig) -> str:
    return account_address(ctx, require(config, "src_validator"))


def prepare_redelegate(ctx: StepContext, config: StepConfig, exclude: FrozenSet[str] = frozenset()) -> Prepared:
    """Destination is drawn from consensus validators other than the source."""
    source, signer = _delegator(ctx, config)
    src_validator = source_validator(ctx, config)
    dest_validator = account_address(
        ctx,
        require(config, "dest_validator"),
        fuzz_from=CONSENSUS_VALIDATORS,
        exclude=exclude | {src_validator},
    )
    if dest_validator == src_validator:
        raise BuildError("redelegation source and destination validators are the same")
    amount = _positive_amount(ctx, config)
    return Prepared(
        kind=config.kind.value,
        args={
            "source": source,
            "src_validator": src_validator,
            "dest_validator": dest_validator,
            "amount": amount,
        },
        fields={
            SOURCE_ADDRESS: source,
            SRC_VALIDATOR_ADDRESS: src_validator,
            DEST_VALIDATOR_ADDRESS: dest_validator,
            AMOUNT: str(amount),
        },
        default_signer=signer,
        entry={
            SOURCE: source,
            TARGET: dest_validator,
            AMOUNT: str(amount),
            TOKEN: _native_token(ctx),
            SRC_VALIDATOR: src_validator,
        },
    )


def prepare_claim_rewards(ctx: StepContext, config: StepConfig) -> Prepared:
    source, signer = _delegator(ctx, config)
    validator = account_address(ctx, require(config, "validator"))
    return Prepared(
        kind=config.kind.value,
        args={"source": source, "validator": validator},
        fields={VALIDATOR_ADDRESS: validator, DELEGATOR_ADDRESS: source},
        default_signer=signer,
    )
