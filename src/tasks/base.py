"""
Shared task lifecycle.

Every transaction kind follows the same four phases:

1. ``prepare``: resolve every symbolic parameter. An unresolvable reference
   turns the step into a ``noop`` before the chain is contacted.
2. attach memo, gas limit, fee payer and signers from the step settings.
3. ``build``: a build error also turns the step into a ``noop``.
4. ``sign`` + ``submit``: applied-and-valid is ``success`` (fields published),
   anything else is ``fail`` with the errors captured as JSON.
   ``SubmissionTimeout`` is not caught here.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..core.errors import BuildError, MissingReference, RpcError, SubmissionTimeout
from ..core.resolver import AddressKind, Resolved, Resolver
from ..gen.constants import DEFAULT_GAS_LIMIT, MEMO
from ..integration.sdk import Sdk, Tx, TxArgs, TxResponse
from ..scenario.document import StepConfig
from ..scenario.value import Value
from ..state.canonical import canonical_json
from ..state.storage import Outcome, StepStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepResult:
    outcome: Outcome
    fields: Mapping[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def success(cls, fields: Optional[Mapping[str, str]] = None) -> "StepResult":
        return cls(Outcome.SUCCESS, dict(fields or {}))

    @classmethod
    def fail(cls, error: str) -> "StepResult":
        return cls(Outcome.FAIL, {}, error)

    @classmethod
    def noop(cls, error: Optional[str] = None) -> "StepResult":
        return cls(Outcome.NOOP, {}, error)


@dataclass
class StepContext:
    sdk: Sdk
    storage: StepStorage
    resolver: Resolver
    step_id: int
    rng: random.Random
    sleep: Callable[[float], None] = time.sleep
    poll_interval: float = 10.0


@dataclass
class Prepared:
    """A fully resolved transaction, ready for the SDK builder."""

    kind: str
    args: Dict[str, Any]
    # Published on success.
    fields: Dict[str, str] = field(default_factory=dict)
    # Signs when the step settings name no signers.
    default_signer: Optional[str] = None
    # Row published by batches: source / target / amount / token (+ extras).
    entry: Dict[str, str] = field(default_factory=dict)


PrepareFn = Callable[[StepContext, StepConfig], Prepared]
InterpretFn = Callable[[StepContext, Prepared, TxResponse], Dict[str, str]]
ExecuteFn = Callable[[StepContext, StepConfig], StepResult]


@dataclass(frozen=True)
class TaskSpec:
    """
    One row of the dispatch table.

    Transaction kinds provide ``prepare`` (and ``interpret`` when the chain
    response carries published data). Wallet operations, queries, checks and
    waits provide ``execute`` instead.
    """

    prepare: Optional[PrepareFn] = None
    interpret: Optional[InterpretFn] = None
    execute: Optional[ExecuteFn] = None
    generates_keys: bool = False


# -- parameter helpers --------------------------------------------------------


def require(config: StepConfig, key: str) -> Value:
    raw = config.param(key)
    if raw is None or isinstance(raw, list):
        raise BuildError(f"{config.kind.value}: missing parameter {key!r}")
    return raw


def optional(config: StepConfig, key: str) -> Optional[Value]:
    raw = config.param(key)
    if isinstance(raw, list):
        raise BuildError(f"{config.kind.value}: parameter {key!r} must not be a list")
    return raw


def value_list(config: StepConfig, key: str) -> List[Value]:
    raw = config.param(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        return [raw]
    return raw


def to_address(ctx: StepContext, account: Resolved) -> str:
    """On-chain address for a resolved account identifier."""
    if account.kind is AddressKind.ADDRESS:
        return account.text
    if account.kind is AddressKind.PUBLIC_KEY:
        return ctx.sdk.address_of_public_key(account.text)
    if account.kind is AddressKind.STATE:
        return ctx.storage.get_account(account.text)
    address = ctx.sdk.wallet.find_address(account.text)
    if address is None:
        raise BuildError(f"unknown alias {account.text!r}")
    return address


def account_address(ctx: StepContext, value: Value, **kwargs) -> str:
    return to_address(ctx, ctx.resolver.resolve_account(value, **kwargs))


def signer_alias(ctx: StepContext, account: Resolved) -> Optional[str]:
    """Wallet alias able to sign for ``account`` (implicit accounts only)."""
    if account.kind is AddressKind.ALIAS and ctx.sdk.wallet.find_public_key(account.text) is not None:
        return account.text
    return None


def tx_args_for(config: StepConfig, default_signer: Optional[str]) -> TxArgs:
    settings = config.settings
    signers = tuple(settings.signers) if settings is not None and settings.signers else ()
    if not signers and default_signer is not None:
        signers = (default_signer,)
    if not signers:
        raise BuildError(f"{config.kind.value}: no signer")
    gas_payer = settings.gas_payer if settings is not None and settings.gas_payer else signers[0]
    gas_limit = settings.gas_limit if settings is not None and settings.gas_limit is not None else DEFAULT_GAS_LIMIT
    return TxArgs(
        signers=signers,
        gas_payer=gas_payer,
        gas_limit=gas_limit,
        memo=MEMO,
        broadcast_only=settings.broadcast_only if settings is not None else False,
        gas_token=settings.gas_token if settings is not None else None,
        expiration=settings.expiration if settings is not None else None,
    )


def tx_errors(response: TxResponse) -> str:
    return canonical_json({"applied": response.applied, "errors": list(response.errors)})


# -- lifecycle ---------------------------------------------------------------


def sign_and_submit(ctx: StepContext, tx: Tx) -> TxResponse:
    with ctx.sdk.wallet.read():
        signed = ctx.sdk.sign(tx)
    return ctx.sdk.submit(signed)


def run_tx(ctx: StepContext, spec: TaskSpec, config: StepConfig) -> StepResult:
    if spec.prepare is None:
        raise TypeError(f"{config.kind.value} has no transaction builder")
    try:
        if spec.generates_keys:
            with ctx.sdk.wallet.write():
                prepared = spec.prepare(ctx, config)
        else:
            prepared = spec.prepare(ctx, config)
    except MissingReference as e:
        return StepResult.noop(str(e))
    except BuildError as e:
        return StepResult.noop(f"build error: {e}")

    try:
        tx_args = tx_args_for(config, prepared.default_signer)
        tx = ctx.sdk.build(prepared.kind, prepared.args, tx_args)
    except BuildError as e:
        return StepResult.noop(f"build error: {e}")

    return submit_prepared(ctx, spec, prepared, tx)


def submit_prepared(ctx: StepContext, spec: TaskSpec, prepared: Prepared, tx: Tx) -> StepResult:
    try:
        response = sign_and_submit(ctx, tx)
    except SubmissionTimeout:
        raise
    except BuildError as e:
        return StepResult.noop(f"signing error: {e}")
    except RpcError as e:
        return StepResult.fail(canonical_json({"rpc_error": str(e)}))

    if not response.is_applied_and_valid:
        return StepResult.fail(tx_errors(response))

    fields = dict(prepared.fields)
    if spec.interpret is not None:
        try:
            fields.update(spec.interpret(ctx, prepared, response))
        except RpcError as e:
            return StepResult.fail(canonical_json({"rpc_error": str(e)}))
    logger.debug("tx %s applied at height %d", prepared.kind, response.height)
    return StepResult.success(fields)
