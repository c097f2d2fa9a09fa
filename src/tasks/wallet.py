"""Wallet key generation and public key reveal."""

from __future__ import annotations

import string

from ..core.errors import BuildError
from ..core.resolver import AddressKind
from ..gen.constants import ALIAS_PREFIX
from ..scenario.document import StepConfig
from ..scenario.fields import ADDRESS, ALIAS, PAYMENT_ADDRESS, PUBLIC_KEY, SPENDING_KEY
from .base import Prepared, StepContext, StepResult, optional, require, to_address

_ALIAS_CHARS = string.ascii_lowercase + string.digits


def random_alias(rng, prefix: str = ALIAS_PREFIX) -> str:
    return prefix + "-" + "".join(rng.choice(_ALIAS_CHARS) for _ in range(8))


def execute_wallet_new_key(ctx: StepContext, config: StepConfig) -> StepResult:
    raw_alias = optional(config, "alias")
    alias = ctx.resolver.resolve(raw_alias) if raw_alias is not None else random_alias(ctx.rng)
    with ctx.sdk.wallet.write():
        key = ctx.sdk.wallet.gen_key(alias, shielded=True)
    fields = {ALIAS: key.alias, PUBLIC_KEY: key.public_key, ADDRESS: key.address}
    if key.payment_address is not None:
        fields[PAYMENT_ADDRESS] = key.payment_address
    if key.spending_key is not None:
        fields[SPENDING_KEY] = key.spending_key
    return StepResult.success(fields)


def prepare_reveal_pk(ctx: StepContext, config: StepConfig) -> Prepared:
    source = ctx.resolver.resolve_account(require(config, "source"))
    if source.kind is AddressKind.PUBLIC_KEY:
        public_key = source.text
        signer = None
    elif source.kind is AddressKind.ALIAS:
        public_key = ctx.sdk.wallet.find_public_key(source.text)
        if public_key is None:
            raise BuildError(f"no key for alias {source.text!r}")
        signer = source.text
    else:
        raise BuildError("reveal-pk needs an alias or a public key")
    address = to_address(ctx, source) if source.kind is AddressKind.ALIAS else ctx.sdk.address_of_public_key(public_key)
    return Prepared(
        kind=config.kind.value,
        args={"public_key": public_key},
        fields={ADDRESS: address, PUBLIC_KEY: public_key},
        default_signer=signer,
    )
