"""Established account creation and update."""

from __future__ import annotations

from typing import Dict, List

from ..core.errors import BuildError, RpcError
from ..core.resolver import AddressKind
from ..gen.constants import ESTABLISHED_ALIAS_PREFIX
from ..integration.sdk import TxResponse
from ..scenario.document import StepConfig
from ..scenario.fields import (
    ADDRESS,
    ALIAS,
    PUBLIC_KEY_AT_INDEX,
    THRESHOLD,
    TOTAL_PUBLIC_KEYS,
    indexed,
)
from .base import Prepared, StepContext, account_address, optional, require, value_list
from .wallet import random_alias


def _public_keys(ctx: StepContext, config: StepConfig) -> List[str]:
    keys = []
    for value in value_list(config, "public_keys"):
        resolved = ctx.resolver.resolve_account(value)
        if resolved.kind is AddressKind.PUBLIC_KEY:
            keys.append(resolved.text)
        elif resolved.kind is AddressKind.ALIAS:
            pk = ctx.sdk.wallet.find_public_key(resolved.text)
            if pk is None:
                raise BuildError(f"no public key for alias {resolved.text!r}")
            keys.append(pk)
        else:
            raise BuildError(f"not a public key: {resolved.text!r}")
    if not keys:
        raise BuildError("at least one public key is required")
    if len(set(keys)) != len(keys):
        raise BuildError("public keys must be distinct")
    return keys


def _threshold(ctx: StepContext, config: StepConfig, n_keys: int) -> int:
    threshold = ctx.resolver.resolve_int(require(config, "threshold"))
    if not 1 <= threshold <= n_keys:
        raise BuildError(f"threshold {threshold} out of range for {n_keys} keys")
    return threshold


def _account_fields(keys: List[str], threshold: int) -> Dict[str, str]:
    fields = {THRESHOLD: str(threshold), TOTAL_PUBLIC_KEYS: str(len(keys))}
    for i, pk in enumerate(keys):
        fields[indexed(PUBLIC_KEY_AT_INDEX, i)] = pk
    return fields


def prepare_init_account(ctx: StepContext, config: StepConfig) -> Prepared:
    keys = _public_keys(ctx, config)
    threshold = _threshold(ctx, config, len(keys))
    raw_alias = optional(config, "alias")
    alias = ctx.resolver.resolve(raw_alias) if raw_alias is not None else random_alias(ctx.rng, ESTABLISHED_ALIAS_PREFIX)
    fields = {ALIAS: alias}
    fields.update(_account_fields(keys, threshold))
    return Prepared(
        kind=config.kind.value,
        args={"public_keys": keys, "threshold": threshold},
        fields=fields,
    )


def interpret_init_account(ctx: StepContext, prepared: Prepared, response: TxResponse) -> Dict[str, str]:
    if not response.initialized_accounts:
        raise RpcError("init-account applied but no account was initialized")
    address = response.initialized_accounts[0]
    alias = prepared.fields[ALIAS]
    with ctx.sdk.wallet.write():
        ctx.sdk.wallet.add_address(alias, address)
    ctx.storage.save_account(alias, address)
    return {ADDRESS: address}


def prepare_update_account(ctx: StepContext, config: StepConfig) -> Prepared:
    address = account_address(ctx, require(config, "source"))
    keys = _public_keys(ctx, config)
    threshold = _threshold(ctx, config, len(keys))
    fields = {ADDRESS: address}
    fields.update(_account_fields(keys, threshold))
    return Prepared(
        kind=config.kind.value,
        args={"address": address, "public_keys": keys, "threshold": threshold},
        fields=fields,
    )
