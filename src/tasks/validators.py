"""Validator lifecycle transactions."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Dict

from ..core.errors import BuildError
from ..core.resolver import AddressKind, Resolved
from ..scenario.document import StepConfig
from ..scenario.fields import (
    COMMISSION_RATE,
    CONSENSUS_KEY,
    DESCRIPTION,
    EMAIL,
    PROTOCOL_KEY,
    VALIDATOR_ADDRESS,
)
from .base import Prepared, StepContext, optional, require, to_address

DEFAULT_COMMISSION_RATE = "0.05"
DEFAULT_MAX_COMMISSION_RATE_CHANGE = "0.01"

_WORDS = ("alpha", "bravo", "delta", "echo", "kilo", "lima", "nova", "oscar", "tango", "zulu")


def random_email(rng) -> str:
    return f"{rng.choice(_WORDS)}.{rng.randrange(10_000)}@load-tester.test"


def random_description(rng) -> str:
    return " ".join(rng.choice(_WORDS) for _ in range(4))


def _rate(text: str, name: str) -> str:
    try:
        rate = Decimal(text)
    except InvalidOperation:
        raise BuildError(f"{name} is not a decimal: {text!r}") from None
    if not rate.is_finite():
        raise BuildError(f"{name} must be finite, got {text}")
    if not Decimal(0) <= rate <= Decimal(1):
        raise BuildError(f"{name} must be within [0, 1], got {text}")
    return str(rate)


def _key_base(source: Resolved, ctx: StepContext) -> str:
    if source.kind is AddressKind.ALIAS:
        return source.text
    return f"validator-{ctx.step_id}"


def prepare_become_validator(ctx: StepContext, config: StepConfig) -> Prepared:
    source = ctx.resolver.resolve_account(require(config, "source"))
    address = to_address(ctx, source)
    rate_value = optional(config, "commission_rate")
    max_change_value = optional(config, "max_commission_rate_change")
    commission_rate = _rate(
        ctx.resolver.resolve(rate_value) if rate_value is not None else DEFAULT_COMMISSION_RATE, "commission rate"
    )
    max_change = _rate(
        ctx.resolver.resolve(max_change_value) if max_change_value is not None else DEFAULT_MAX_COMMISSION_RATE_CHANGE,
        "max commission rate change",
    )
    email_value = optional(config, "email")
    email = ctx.resolver.resolve(email_value, generator=random_email) if email_value is not None else random_email(ctx.rng)

    base = _key_base(source, ctx)
    consensus = ctx.sdk.wallet.gen_key(f"{base}-consensus-key", shielded=False)
    protocol = ctx.sdk.wallet.gen_key(f"{base}-protocol-key", shielded=False)
    return Prepared(
        kind=config.kind.value,
        args={
            "address": address,
            "consensus_key": consensus.public_key,
            "protocol_key": protocol.public_key,
            "commission_rate": commission_rate,
            "max_commission_rate_change": max_change,
            "email": email,
        },
        fields={
            VALIDATOR_ADDRESS: address,
            CONSENSUS_KEY: consensus.public_key,
            PROTOCOL_KEY: protocol.public_key,
            COMMISSION_RATE: commission_rate,
            EMAIL: email,
        },
    )


def prepare_validator_state(ctx: StepContext, config: StepConfig) -> Prepared:
    """Deactivate or reactivate: the kind tag selects the transition."""
    address = to_address(ctx, ctx.resolver.resolve_account(require(config, "source")))
    return Prepared(
        kind=config.kind.value,
        args={"address": address},
        fields={VALIDATOR_ADDRESS: address},
    )


def prepare_change_metadata(ctx: StepContext, config: StepConfig) -> Prepared:
    address = to_address(ctx, ctx.resolver.resolve_account(require(config, "source")))
    args: Dict[str, str] = {"address": address}
    fields = {VALIDATOR_ADDRESS: address}
    email_value = optional(config, "email")
    if email_value is not None:
        args["email"] = fields[EMAIL] = ctx.resolver.resolve(email_value, generator=random_email)
    description_value = optional(config, "description")
    if description_value is not None:
        args["description"] = fields[DESCRIPTION] = ctx.resolver.resolve(
            description_value, generator=random_description
        )
    rate_value = optional(config, "commission_rate")
    if rate_value is not None:
        args["commission_rate"] = fields[COMMISSION_RATE] = _rate(ctx.resolver.resolve(rate_value), "commission rate")
    if len(args) == 1:
        raise BuildError("change-metadata changes nothing")
    return Prepared(kind=config.kind.value, args=args, fields=fields)


def prepare_change_consensus_key(ctx: StepContext, config: StepConfig) -> Prepared:
    source = ctx.resolver.resolve_account(require(config, "source"))
    address = to_address(ctx, source)
    key = ctx.sdk.wallet.gen_key(f"{_key_base(source, ctx)}-consensus-key-{ctx.step_id}", shielded=False)
    return Prepared(
        kind=config.kind.value,
        args={"address": address, "consensus_key": key.public_key},
        fields={VALIDATOR_ADDRESS: address, CONSENSUS_KEY: key.public_key},
    )
