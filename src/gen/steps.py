"""
Per-task synthesis.

Each synthesizer picks its parameters from the model and returns a ``Draft``:
the pre-hooks to emit first, the main step (built once its id is known), the
account paying the fee, the model update to apply once the step is placed,
and a factory for the post-hooks that check the outcome.

Synthesizers only read the model; the builder applies every update.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from ..scenario.document import BATCH_TXS, StepConfig
from ..scenario.fields import (
    BATCH_ATOMIC,
    DEST_VALIDATOR_ADDRESS,
    PROPOSAL_ID,
    PROPOSAL_START_EPOCH,
    TARGET_I,
    VALIDATOR_ADDRESS,
    indexed,
)
from ..scenario.kinds import StepKind
from ..scenario.settings import TxSettings
from ..scenario.value import Fuzz, Literal, Ref, Value, v
from .constants import (
    ALIAS_PREFIX,
    ESTABLISHED_ALIAS_PREFIX,
    FAUCET_ALIAS,
    FAUCET_MAX_AMOUNT,
    FAUCET_MIN_AMOUNT,
    MAX_ACCOUNT_KEYS,
    MAX_BATCH_SIZE,
    MIN_FEE,
    NATIVE_SCALE,
    NATIVE_TOKEN,
    UNBONDING_EPOCHS,
)
from .feasibility import (
    TaskType,
    delegated_bonds,
    fee_payers,
    funded_payers,
    open_proposals,
    proposal_authors,
    shielded_spenders,
    transfer_sources,
    voters,
    withdrawable_unbonds,
)
from .hooks import (
    Hook,
    check_balance,
    check_bonds,
    check_reveal_pk,
    check_step,
    check_storage,
    native_token,
    query_balance,
    query_validators,
    reveal_pk,
    shielded_sync,
    wait_epoch,
)
from .model import GeneratorModel

T = TypeVar("T")

_ALIAS_CHARS = string.ascii_lowercase + string.digits

MainFactory = Callable[[Optional[Fuzz]], Dict[str, object]]


def _nothing(step_id: int) -> None:
    return None


def _no_hooks(step_id: int) -> List[Hook]:
    return []


@dataclass
class Draft:
    kind: StepKind
    # Builds the main step's parameters; receives ``Fuzz(seed)`` when the
    # draft names a seed hook, otherwise None.
    main: MainFactory
    pre: List[Hook] = field(default_factory=list)
    # Index into ``pre`` of the hook that seeds this step's fuzz values.
    seed_hook: Optional[int] = None
    fee_payer: Optional[str] = None
    settings: Optional[TxSettings] = None
    apply: Callable[[int], None] = _nothing
    post: Callable[[int], List[Hook]] = _no_hooks

    def config(self, seed: Optional[int]) -> StepConfig:
        fuzz = Fuzz(seed) if seed is not None else None
        return StepConfig(self.kind, self.main(fuzz), self.settings)


class Synth:
    """Read-only view of the model plus the generator's rng."""

    def __init__(self, model: GeneratorModel, rng: random.Random) -> None:
        self.m = model
        self.rng = rng

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("nothing to pick from")
        return items[self.rng.randrange(len(items))]

    def sample(self, items: Sequence[T], k: int) -> List[T]:
        return self.rng.sample(list(items), k)

    def amount(self, available: int) -> int:
        """A positive amount no larger than ``available``."""
        if available <= 0:
            raise ValueError(f"no funds available: {available}")
        return self.rng.randint(1, available)

    def new_alias(self, prefix: str = ALIAS_PREFIX) -> str:
        while True:
            alias = prefix + "-" + "".join(self.rng.choice(_ALIAS_CHARS) for _ in range(8))
            if alias not in self.m.accounts:
                return alias

    def account(self, alias: str) -> Value:
        return self.m.account_value(alias)

    def spendable(self, alias: str) -> int:
        """Native balance ``alias`` can move when it also pays its own fee."""
        return self.m.native_balance(alias) - MIN_FEE

    def payer_for(self, source: str) -> Optional[TxSettings]:
        """Settings for a tx moving ``source``'s funds; None when it signs and pays itself."""
        acct = self.m.account(source)
        if acct.is_implicit:
            return None
        payer = self.pick(fee_payers(self.m))
        return TxSettings(signers=tuple(self.m.signers_of(source)), gas_payer=payer)


def _transfer_params(source: Value, target: Value, amount: int) -> Dict[str, object]:
    return {"source": source, "target": target, "token": native_token(), "amount": v(amount)}


def _balance_checks(t: Synth, aliases: Sequence[str]) -> List[Hook]:
    return [check_balance(t.m, a) for a in dict.fromkeys(aliases) if a in t.m.accounts]


# -- wallet and faucet -------------------------------------------------------


def new_wallet_key(t: Synth) -> Draft:
    alias = t.new_alias()
    return Draft(
        kind=StepKind.WALLET_NEW_KEY,
        main=lambda fuzz: {"alias": v(alias)},
        apply=lambda step_id: t.m.add_implicit(alias, step_id),
    )


def faucet_transfer(t: Synth) -> Draft:
    target = t.pick(sorted(t.m.accounts))
    amount = t.rng.randint(FAUCET_MIN_AMOUNT // NATIVE_SCALE, FAUCET_MAX_AMOUNT // NATIVE_SCALE) * NATIVE_SCALE
    needs_reveal = t.m.account(target).is_implicit and not t.m.account(target).pk_revealed

    def post(step_id: int) -> List[Hook]:
        hooks = [check_step(step_id), check_balance(t.m, target)]
        if needs_reveal:
            hooks += [reveal_pk(t.m, target), check_reveal_pk(t.m, target)]
        return hooks

    return Draft(
        kind=StepKind.TRANSPARENT_TRANSFER,
        main=lambda fuzz: _transfer_params(Literal(FAUCET_ALIAS), t.account(target), amount),
        pre=[query_balance(t.m, target)],
        apply=lambda step_id: t.m.credit(target, amount),
        post=post,
    )


# -- transfers ---------------------------------------------------------------


def _funded_transfer(t: Synth):
    source = t.pick(transfer_sources(t.m))
    settings = t.payer_for(source)
    if settings is None:
        return source, source, settings, t.spendable(source)
    return source, settings.gas_payer, settings, t.m.native_balance(source)


def transparent_transfer(t: Synth) -> Draft:
    source, payer, settings, available = _funded_transfer(t)
    target = t.pick([a for a in sorted(t.m.accounts) if a != source])
    amount = t.amount(available)
    return Draft(
        kind=StepKind.TRANSPARENT_TRANSFER,
        main=lambda fuzz: _transfer_params(t.account(source), t.account(target), amount),
        pre=[query_balance(t.m, source)],
        fee_payer=payer,
        settings=settings,
        apply=lambda step_id: t.m.transfer(source, target, amount),
        post=lambda step_id: [check_step(step_id)] + _balance_checks(t, [source, target, payer]),
    )


def shielding_transfer(t: Synth) -> Draft:
    source, payer, settings, available = _funded_transfer(t)
    owner = t.pick(t.m.implicit_accounts())
    amount = t.amount(available)
    return Draft(
        kind=StepKind.SHIELDING_TRANSFER,
        main=lambda fuzz: _transfer_params(t.account(source), t.m.payment_address_value(owner), amount),
        fee_payer=payer,
        settings=settings,
        apply=lambda step_id: t.m.shield(source, owner, amount),
        post=lambda step_id: [check_step(step_id)] + _balance_checks(t, [source, payer]),
    )


def shielded_transfer(t: Synth) -> Draft:
    owner = t.pick(shielded_spenders(t.m))
    target = t.pick([a for a in t.m.implicit_accounts() if a != owner])
    amount = t.amount(t.m.shielded.get(owner, NATIVE_TOKEN))
    payer = t.pick(fee_payers(t.m))
    return Draft(
        kind=StepKind.SHIELDED_TRANSFER,
        main=lambda fuzz: _transfer_params(
            t.m.spending_key_value(owner), t.m.payment_address_value(target), amount
        ),
        pre=[shielded_sync()],
        fee_payer=payer,
        settings=TxSettings(signers=(payer,), gas_payer=payer),
        apply=lambda step_id: t.m.shielded_transfer(owner, target, amount),
        post=lambda step_id: [check_step(step_id)],
    )


def unshielding_transfer(t: Synth) -> Draft:
    owner = t.pick(shielded_spenders(t.m))
    target = t.pick(sorted(t.m.accounts))
    amount = t.amount(t.m.shielded.get(owner, NATIVE_TOKEN))
    payer = t.pick(fee_payers(t.m))
    return Draft(
        kind=StepKind.UNSHIELDING_TRANSFER,
        main=lambda fuzz: _transfer_params(t.m.spending_key_value(owner), t.account(target), amount),
        pre=[shielded_sync()],
        fee_payer=payer,
        settings=TxSettings(signers=(payer,), gas_payer=payer),
        apply=lambda step_id: t.m.unshield(owner, target, amount),
        post=lambda step_id: [check_step(step_id)] + _balance_checks(t, [target, payer]),
    )


# -- proof of stake ----------------------------------------------------------


def bond(t: Synth) -> Draft:
    source = t.pick(funded_payers(t.m))
    amount = t.amount(t.spendable(source))
    first_bond = not t.m.has_any_bond(source)

    def post(step_id: int) -> List[Hook]:
        hooks = [check_step(step_id), check_balance(t.m, source)]
        if first_bond:
            hooks.append(check_bonds(t.m, source, Ref(step_id, VALIDATOR_ADDRESS), amount))
        return hooks

    return Draft(
        kind=StepKind.BOND,
        main=lambda fuzz: {"source": t.account(source), "validator": fuzz, "amount": v(amount)},
        pre=[query_validators()],
        seed_hook=0,
        fee_payer=source,
        apply=lambda step_id: t.m.insert_bond(source, step_id, amount),
        post=post,
    )


def unbond(t: Synth) -> Draft:
    entry = t.pick(delegated_bonds(t.m))
    amount = t.amount(entry.amount)
    return Draft(
        kind=StepKind.UNBOND,
        main=lambda fuzz: {
            "source": t.account(entry.delegator),
            "validator": entry.validator_value(),
            "amount": v(amount),
        },
        fee_payer=entry.delegator,
        apply=lambda step_id: t.m.insert_unbond(entry, amount, step_id),
        post=lambda step_id: [check_step(step_id)],
    )


def withdraw(t: Synth) -> Draft:
    entry = t.pick(withdrawable_unbonds(t.m))
    return Draft(
        kind=StepKind.WITHDRAW,
        main=lambda fuzz: {"source": t.account(entry.delegator), "validator": entry.validator_value()},
        pre=[wait_epoch(for_epochs=UNBONDING_EPOCHS)],
        fee_payer=entry.delegator,
        apply=lambda step_id: t.m.withdraw(entry),
        post=lambda step_id: [check_step(step_id), check_balance(t.m, entry.delegator)],
    )


def redelegate(t: Synth) -> Draft:
    entry = t.pick(delegated_bonds(t.m))
    amount = t.amount(entry.amount)
    return Draft(
        kind=StepKind.REDELEGATE,
        main=lambda fuzz: {
            "source": t.account(entry.delegator),
            "src_validator": entry.validator_value(),
            "dest_validator": fuzz,
            "amount": v(amount),
        },
        pre=[query_validators()],
        seed_hook=0,
        fee_payer=entry.delegator,
        apply=lambda step_id: t.m.redelegate(entry, amount, step_id, DEST_VALIDATOR_ADDRESS),
        post=lambda step_id: [check_step(step_id)],
    )


def claim_rewards(t: Synth) -> Draft:
    entry = t.pick(delegated_bonds(t.m))
    return Draft(
        kind=StepKind.CLAIM_REWARDS,
        main=lambda fuzz: {"source": t.account(entry.delegator), "validator": entry.validator_value()},
        fee_payer=entry.delegator,
        post=lambda step_id: [check_step(step_id)],
    )


# -- accounts ----------------------------------------------------------------


def _key_set(t: Synth):
    implicit = t.m.implicit_accounts()
    n = t.rng.randint(1, min(MAX_ACCOUNT_KEYS, len(implicit)))
    keys = sorted(t.sample(implicit, n))
    return keys, t.rng.randint(1, n)


def init_account(t: Synth) -> Draft:
    payer = t.pick(fee_payers(t.m))
    alias = t.new_alias(ESTABLISHED_ALIAS_PREFIX)
    keys, threshold = _key_set(t)
    return Draft(
        kind=StepKind.INIT_ACCOUNT,
        main=lambda fuzz: {
            "alias": v(alias),
            "public_keys": [t.m.public_key_value(k) for k in keys],
            "threshold": v(threshold),
        },
        fee_payer=payer,
        settings=TxSettings(signers=(payer,), gas_payer=payer),
        apply=lambda step_id: t.m.add_established(alias, frozenset(keys), threshold, step_id),
        post=lambda step_id: [check_step(step_id)],
    )


def _owner_settings(t: Synth, alias: str, payer: str) -> TxSettings:
    return TxSettings(signers=tuple(t.m.signers_of(alias)), gas_payer=payer)


def update_account(t: Synth) -> Draft:
    alias = t.pick(t.m.virgin_established())
    payer = t.pick(fee_payers(t.m))
    keys, threshold = _key_set(t)
    return Draft(
        kind=StepKind.UPDATE_ACCOUNT,
        main=lambda fuzz: {
            "source": t.account(alias),
            "public_keys": [t.m.public_key_value(k) for k in keys],
            "threshold": v(threshold),
        },
        fee_payer=payer,
        settings=_owner_settings(t, alias, payer),
        apply=lambda step_id: t.m.update_account(alias, frozenset(keys), threshold),
        post=lambda step_id: [check_step(step_id)],
    )


# -- validators --------------------------------------------------------------


def _validator_draft(t: Synth, kind: StepKind, alias: str, extra: Dict[str, object], apply) -> Draft:
    payer = t.pick(fee_payers(t.m))
    return Draft(
        kind=kind,
        main=lambda fuzz: dict({"source": t.account(alias)}, **extra),
        fee_payer=payer,
        settings=_owner_settings(t, alias, payer),
        apply=apply,
        post=lambda step_id: [check_step(step_id)],
    )


def become_validator(t: Synth) -> Draft:
    alias = t.pick(t.m.virgin_established())
    return _validator_draft(
        t,
        StepKind.BECOME_VALIDATOR,
        alias,
        {"commission_rate": v("0.05"), "max_commission_rate_change": v("0.01"), "email": Fuzz()},
        lambda step_id: t.m.become_validator(alias, step_id),
    )


def deactivate_validator(t: Synth) -> Draft:
    alias = t.pick(t.m.validators(active=True))
    return _validator_draft(
        t, StepKind.DEACTIVATE_VALIDATOR, alias, {}, lambda step_id: t.m.set_validator_active(alias, False)
    )


def reactivate_validator(t: Synth) -> Draft:
    alias = t.pick(t.m.validators(active=False))
    return _validator_draft(
        t, StepKind.REACTIVATE_VALIDATOR, alias, {}, lambda step_id: t.m.set_validator_active(alias, True)
    )


def change_metadata(t: Synth) -> Draft:
    alias = t.pick(t.m.validators())
    return _validator_draft(
        t, StepKind.CHANGE_METADATA, alias, {"email": Fuzz(), "description": Fuzz()}, _nothing
    )


def change_consensus_key(t: Synth) -> Draft:
    alias = t.pick(t.m.validators())
    return _validator_draft(t, StepKind.CHANGE_CONSENSUS_KEY, alias, {}, _nothing)


# -- governance --------------------------------------------------------------


def _proposal(t: Synth, kind: StepKind) -> Draft:
    author = t.pick(proposal_authors(t.m))
    params: Dict[str, object] = {"signer": t.account(author)}
    receivers: List[str] = []
    if kind is StepKind.INIT_PGF_STEWARD_PROPOSAL:
        steward = t.pick(t.m.implicit_accounts())
        receivers.append(steward)
        params["steward_add"] = t.account(steward)
    elif kind is StepKind.INIT_PGF_FUNDING_PROPOSAL:
        for prefix in ("continuous", "retro"):
            n = t.rng.randint(1, 2)
            targets = t.sample(t.m.implicit_accounts(), min(n, len(t.m.implicit_accounts())))
            receivers.extend(targets)
            params[f"{prefix}_funding_target"] = [t.account(a) for a in targets]
            params[f"{prefix}_funding_amount"] = [
                v(t.rng.randint(1, 100) * NATIVE_SCALE) for _ in targets
            ]
    return Draft(
        kind=kind,
        main=lambda fuzz: dict(params),
        fee_payer=author,
        apply=lambda step_id: t.m.add_proposal(step_id, author, kind, receivers),
        post=lambda step_id: [check_step(step_id), check_balance(t.m, author)],
    )


def vote_proposal(t: Synth) -> Draft:
    proposal = t.pick(open_proposals(t.m))
    voter = t.pick(voters(t.m))
    return Draft(
        kind=StepKind.VOTE_PROPOSAL,
        main=lambda fuzz: {
            "proposal_id": Ref(proposal.step_id, PROPOSAL_ID),
            "vote": Fuzz(),
            "voter": t.account(voter),
        },
        pre=[wait_epoch(to=Ref(proposal.step_id, PROPOSAL_START_EPOCH))],
        fee_payer=voter,
        apply=lambda step_id: t.m.vote(proposal),
        post=lambda step_id: [check_step(step_id)],
    )


# -- batches -----------------------------------------------------------------


def _batch_size(t: Synth, limit: int = MAX_BATCH_SIZE) -> int:
    return t.rng.randint(1, max(1, min(MAX_BATCH_SIZE, limit)))


def _batch_post(t: Synth, aliases: Sequence[str]) -> Callable[[int], List[Hook]]:
    def post(step_id: int) -> List[Hook]:
        return [check_step(step_id), check_storage(step_id, BATCH_ATOMIC, "true")] + _balance_checks(t, aliases)

    return post


def _batch_params(inner: Callable[[Optional[Fuzz]], List[StepConfig]]) -> MainFactory:
    return lambda fuzz: {BATCH_TXS: inner(fuzz), "atomic": v(True)}


def batch(t: Synth) -> Draft:
    """Transfers and bonds from one source; bonds all target one fuzzed validator."""
    source = t.pick(funded_payers(t.m))
    size = _batch_size(t)
    share = t.spendable(source) // size
    targets = [a for a in sorted(t.m.accounts) if a != source]
    items = []
    for _ in range(size):
        is_bond = not targets or t.rng.random() < 0.5
        items.append((is_bond, None if is_bond else t.pick(targets), t.amount(share)))

    def inner(fuzz: Optional[Fuzz]) -> List[StepConfig]:
        out = []
        for is_bond, target, amount in items:
            if is_bond:
                out.append(StepConfig(StepKind.BOND, {"source": t.account(source), "validator": fuzz, "amount": v(amount)}))
            else:
                out.append(
                    StepConfig(StepKind.TRANSPARENT_TRANSFER, _transfer_params(t.account(source), t.account(target), amount))
                )
        return out

    def apply(step_id: int) -> None:
        bonded = 0
        first = None
        for i, (is_bond, target, amount) in enumerate(items):
            if is_bond:
                bonded += amount
                first = i if first is None else first
            else:
                t.m.transfer(source, target, amount)
        if first is not None:
            # Every bond in the batch draws the same validator.
            t.m.insert_bond(source, step_id, bonded, indexed(TARGET_I, first))

    return Draft(
        kind=StepKind.BATCH,
        main=_batch_params(inner),
        pre=[query_validators()],
        seed_hook=0,
        fee_payer=source,
        apply=apply,
        post=_batch_post(t, [source] + [target for _, target, _ in items if target is not None]),
    )


def bond_batch(t: Synth) -> Draft:
    payers = funded_payers(t.m)
    sources = t.sample(payers, _batch_size(t, len(payers)))
    amounts = [t.amount(t.spendable(s)) for s in sources]

    def inner(fuzz: Optional[Fuzz]) -> List[StepConfig]:
        return [
            StepConfig(StepKind.BOND, {"source": t.account(s), "validator": fuzz, "amount": v(a)})
            for s, a in zip(sources, amounts)
        ]

    def apply(step_id: int) -> None:
        for i, (s, a) in enumerate(zip(sources, amounts)):
            t.m.insert_bond(s, step_id, a, indexed(TARGET_I, i))

    return Draft(
        kind=StepKind.BOND_BATCH,
        main=_batch_params(inner),
        pre=[query_validators()],
        seed_hook=0,
        fee_payer=sources[0],
        apply=apply,
        post=_batch_post(t, sources),
    )


def redelegate_batch(t: Synth) -> Draft:
    by_delegator: Dict[str, object] = {}
    for entry in delegated_bonds(t.m):
        by_delegator.setdefault(entry.delegator, entry)
    candidates = list(by_delegator.values())
    # Destinations must avoid every source validator in the batch.
    size = _batch_size(t, min(len(candidates), t.m.consensus_validator_count() - 1))
    entries = t.sample(candidates, size)
    amounts = [t.amount(e.amount) for e in entries]

    def inner(fuzz: Optional[Fuzz]) -> List[StepConfig]:
        return [
            StepConfig(
                StepKind.REDELEGATE,
                {
                    "source": t.account(e.delegator),
                    "src_validator": e.validator_value(),
                    "dest_validator": fuzz,
                    "amount": v(a),
                },
            )
            for e, a in zip(entries, amounts)
        ]

    def apply(step_id: int) -> None:
        for i, (e, a) in enumerate(zip(entries, amounts)):
            t.m.redelegate(e, a, step_id, indexed(TARGET_I, i))

    return Draft(
        kind=StepKind.REDELEGATE_BATCH,
        main=_batch_params(inner),
        pre=[query_validators()],
        seed_hook=0,
        fee_payer=entries[0].delegator,
        apply=apply,
        post=_batch_post(t, []),
    )


def transparent_transfer_batch(t: Synth) -> Draft:
    source = t.pick(funded_payers(t.m))
    size = _batch_size(t)
    share = t.spendable(source) // size
    targets = [a for a in sorted(t.m.accounts) if a != source]
    items = [(t.pick(targets), t.amount(share)) for _ in range(size)]

    def inner(fuzz: Optional[Fuzz]) -> List[StepConfig]:
        return [
            StepConfig(StepKind.TRANSPARENT_TRANSFER, _transfer_params(t.account(source), t.account(target), amount))
            for target, amount in items
        ]

    def apply(step_id: int) -> None:
        for target, amount in items:
            t.m.transfer(source, target, amount)

    return Draft(
        kind=StepKind.TRANSPARENT_TRANSFER_BATCH,
        main=_batch_params(inner),
        fee_payer=source,
        apply=apply,
        post=_batch_post(t, [source] + [target for target, _ in items]),
    )


def shielding_batch(t: Synth) -> Draft:
    source = t.pick(funded_payers(t.m))
    size = _batch_size(t)
    share = t.spendable(source) // size
    items = [(t.pick(t.m.implicit_accounts()), t.amount(share)) for _ in range(size)]

    def inner(fuzz: Optional[Fuzz]) -> List[StepConfig]:
        return [
            StepConfig(
                StepKind.SHIELDING_TRANSFER,
                _transfer_params(t.account(source), t.m.payment_address_value(owner), amount),
            )
            for owner, amount in items
        ]

    def apply(step_id: int) -> None:
        for owner, amount in items:
            t.m.shield(source, owner, amount)

    return Draft(
        kind=StepKind.SHIELDING_BATCH,
        main=_batch_params(inner),
        fee_payer=source,
        apply=apply,
        post=_batch_post(t, [source]),
    )


SYNTHESIZERS: Dict[TaskType, Callable[[Synth], Draft]] = {
    TaskType.NEW_WALLET_KEY: new_wallet_key,
    TaskType.FAUCET_TRANSFER: faucet_transfer,
    TaskType.TRANSPARENT_TRANSFER: transparent_transfer,
    TaskType.BOND: bond,
    TaskType.UNBOND: unbond,
    TaskType.WITHDRAW: withdraw,
    TaskType.REDELEGATE: redelegate,
    TaskType.CLAIM_REWARDS: claim_rewards,
    TaskType.INIT_ACCOUNT: init_account,
    TaskType.UPDATE_ACCOUNT: update_account,
    TaskType.BECOME_VALIDATOR: become_validator,
    TaskType.DEACTIVATE_VALIDATOR: deactivate_validator,
    TaskType.REACTIVATE_VALIDATOR: reactivate_validator,
    TaskType.CHANGE_METADATA: change_metadata,
    TaskType.CHANGE_CONSENSUS_KEY: change_consensus_key,
    TaskType.INIT_DEFAULT_PROPOSAL: lambda t: _proposal(t, StepKind.INIT_DEFAULT_PROPOSAL),
    TaskType.INIT_PGF_STEWARD_PROPOSAL: lambda t: _proposal(t, StepKind.INIT_PGF_STEWARD_PROPOSAL),
    TaskType.INIT_PGF_FUNDING_PROPOSAL: lambda t: _proposal(t, StepKind.INIT_PGF_FUNDING_PROPOSAL),
    TaskType.VOTE_PROPOSAL: vote_proposal,
    TaskType.SHIELDING_TRANSFER: shielding_transfer,
    TaskType.SHIELDED_TRANSFER: shielded_transfer,
    TaskType.UNSHIELDING_TRANSFER: unshielding_transfer,
    TaskType.BATCH: batch,
    TaskType.BOND_BATCH: bond_batch,
    TaskType.REDELEGATE_BATCH: redelegate_batch,
    TaskType.TRANSPARENT_TRANSFER_BATCH: transparent_transfer_batch,
    TaskType.SHIELDING_BATCH: shielding_batch,
}
