"""
Generator-side model of chain state.

The model mirrors just enough of the chain (accounts, balances, bonds,
unbonds, proposals and validator flags) to decide whether a task is feasible
and to pick parameters for it. It never talks to a chain. Every update keeps
all modeled quantities non-negative; an update that would break that raises
``ModelInvariantError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from ..core.errors import ModelInvariantError
from ..scenario.fields import ALIAS, PAYMENT_ADDRESS, PUBLIC_KEY, SPENDING_KEY, VALIDATOR_ADDRESS
from ..scenario.kinds import StepKind
from ..scenario.value import Literal, Ref, Value
from ..state.balances import BalanceTable
from .constants import GENESIS_VALIDATORS, MIN_FEE, NATIVE_TOKEN, PROPOSAL_FUNDS, fee_for


@unique
class AddressType(Enum):
    IMPLICIT = "implicit"
    ESTABLISHED = "established"


@dataclass
class Account:
    alias: str
    address_type: AddressType
    signer_aliases: FrozenSet[str]
    threshold: int = 1
    # Step that published this account's ``alias`` (None for the faucet).
    origin_step: Optional[int] = None
    pk_revealed: bool = False
    is_validator: bool = False
    is_active: bool = False
    # Established accounts not yet turned into a validator or updated.
    virgin: bool = True
    validator_step: Optional[int] = None

    def __post_init__(self) -> None:
        if self.address_type is AddressType.IMPLICIT:
            if self.signer_aliases != frozenset({self.alias}) or self.threshold != 1:
                raise ModelInvariantError([f"implicit account {self.alias} must sign for itself"])
        if not 1 <= self.threshold <= len(self.signer_aliases):
            raise ModelInvariantError([f"account {self.alias}: threshold {self.threshold} out of range"])

    @property
    def is_implicit(self) -> bool:
        return self.address_type is AddressType.IMPLICIT


@dataclass
class BondEntry:
    """Bond or unbond keyed by (delegator, originating step)."""

    delegator: str
    step_id: int
    amount: int
    # Field of ``step_id`` that holds the validator address.
    validator_field: str = VALIDATOR_ADDRESS
    # Step and field where the validator was first drawn. Entries sharing an
    # origin always name the same validator on chain.
    origin: Optional[Tuple[int, str]] = None

    def __post_init__(self) -> None:
        if self.origin is None:
            self.origin = (self.step_id, self.validator_field)

    def validator_value(self) -> Ref:
        return Ref(self.step_id, self.validator_field)


@dataclass
class ProposalEntry:
    step_id: int
    author: str
    kind: StepKind
    # Voting window the proposal opens in (see ``GeneratorModel.voting_window``).
    window: int


@dataclass
class GeneratorModel:
    accounts: Dict[str, Account] = field(default_factory=dict)
    balances: BalanceTable = field(default_factory=BalanceTable)
    # Shielded notes keyed by the owning key alias.
    shielded: BalanceTable = field(default_factory=BalanceTable)
    bonds: Dict[str, Dict[int, BondEntry]] = field(default_factory=dict)
    unbonds: Dict[str, Dict[int, BondEntry]] = field(default_factory=dict)
    proposals: List[ProposalEntry] = field(default_factory=list)
    pgf_receivers: Set[str] = field(default_factory=set)
    genesis_validators: int = GENESIS_VALIDATORS
    # Index of the governance voting window the chain is known to be in.
    # Proposals open in the window after the one they were created in; voting
    # waits for that window, after which older windows are closed.
    voting_window: int = 0

    # -- accounts ----------------------------------------------------------

    def add_implicit(self, alias: str, origin_step: int) -> Account:
        self._require_new(alias)
        account = Account(alias, AddressType.IMPLICIT, frozenset({alias}), 1, origin_step)
        self.accounts[alias] = account
        return account

    def add_established(self, alias: str, signers: FrozenSet[str], threshold: int, origin_step: int) -> Account:
        self._require_new(alias)
        for signer in signers:
            if signer not in self.accounts or not self.accounts[signer].is_implicit:
                raise ModelInvariantError([f"established account {alias}: unknown signer {signer}"])
        account = Account(alias, AddressType.ESTABLISHED, frozenset(signers), threshold, origin_step)
        self.accounts[alias] = account
        return account

    def _require_new(self, alias: str) -> None:
        if alias in self.accounts:
            raise ModelInvariantError([f"alias {alias} already exists"])

    def account(self, alias: str) -> Account:
        return self.accounts[alias]

    def account_value(self, alias: str) -> Value:
        acct = self.accounts.get(alias)
        if acct is None or acct.origin_step is None:
            return Literal(alias)
        return Ref(acct.origin_step, ALIAS)

    def public_key_value(self, alias: str) -> Value:
        return Ref(self._key_origin(alias), PUBLIC_KEY)

    def payment_address_value(self, alias: str) -> Value:
        return Ref(self._key_origin(alias), PAYMENT_ADDRESS)

    def spending_key_value(self, alias: str) -> Value:
        return Ref(self._key_origin(alias), SPENDING_KEY)

    def _key_origin(self, alias: str) -> int:
        acct = self.accounts[alias]
        if not acct.is_implicit or acct.origin_step is None:
            raise ModelInvariantError([f"{alias} has no wallet key"])
        return acct.origin_step

    def implicit_accounts(self) -> List[str]:
        return sorted(a for a, acct in self.accounts.items() if acct.is_implicit)

    def established_accounts(self) -> List[str]:
        return sorted(a for a, acct in self.accounts.items() if not acct.is_implicit)

    def signers_of(self, alias: str) -> List[str]:
        return sorted(self.accounts[alias].signer_aliases)

    def unrevealed_implicit(self) -> List[str]:
        return sorted(a for a, acct in self.accounts.items() if acct.is_implicit and not acct.pk_revealed)

    def virgin_established(self) -> List[str]:
        return sorted(
            a
            for a, acct in self.accounts.items()
            if not acct.is_implicit and acct.virgin and not acct.is_validator
        )

    def validators(self, *, active: Optional[bool] = None) -> List[str]:
        return sorted(
            a
            for a, acct in self.accounts.items()
            if acct.is_validator and (active is None or acct.is_active == active)
        )

    def consensus_validator_count(self) -> int:
        # Genesis validators are never deactivated by generated scenarios.
        return self.genesis_validators

    # -- balances ----------------------------------------------------------

    def native_balance(self, alias: str) -> int:
        return self.balances.get(alias, NATIVE_TOKEN)

    def gas_payers(self, min_amount: int = MIN_FEE) -> List[str]:
        """Revealed implicit accounts holding at least ``min_amount`` native tokens."""
        return [
            a
            for a in self.balances.holders(NATIVE_TOKEN, min_amount)
            if a in self.accounts and self.accounts[a].is_implicit and self.accounts[a].pk_revealed
        ]

    def spendable_sources(self, min_amount: int) -> List[str]:
        """Accounts able to sign for at least ``min_amount`` native tokens."""
        out = []
        for a in self.balances.holders(NATIVE_TOKEN, min_amount):
            acct = self.accounts.get(a)
            if acct is None:
                continue
            if acct.is_implicit and not acct.pk_revealed:
                continue
            out.append(a)
        return out

    def shielded_owners(self, min_amount: int = 1) -> List[str]:
        return self.shielded.holders(NATIVE_TOKEN, min_amount)

    def _apply(self, table: BalanceTable, owner: str, token: str, delta: int) -> None:
        try:
            table.add(owner, token, delta)
        except ValueError as e:
            raise ModelInvariantError([str(e)]) from e

    def credit(self, alias: str, amount: int, token: str = NATIVE_TOKEN) -> None:
        self._apply(self.balances, alias, token, amount)

    def debit(self, alias: str, amount: int, token: str = NATIVE_TOKEN) -> None:
        self._apply(self.balances, alias, token, -amount)

    def debit_fee(self, gas_payer: str, gas_limit: int) -> None:
        self.debit(gas_payer, fee_for(gas_limit))

    def transfer(self, source: str, target: str, amount: int, token: str = NATIVE_TOKEN) -> None:
        self.debit(source, amount, token)
        self.credit(target, amount, token)

    def shield(self, source: str, owner: str, amount: int) -> None:
        self.debit(source, amount)
        self._apply(self.shielded, owner, NATIVE_TOKEN, amount)

    def shielded_transfer(self, owner: str, target_owner: str, amount: int) -> None:
        self._apply(self.shielded, owner, NATIVE_TOKEN, -amount)
        self._apply(self.shielded, target_owner, NATIVE_TOKEN, amount)

    def unshield(self, owner: str, target: str, amount: int) -> None:
        self._apply(self.shielded, owner, NATIVE_TOKEN, -amount)
        self.credit(target, amount)

    def reveal(self, alias: str) -> None:
        self.accounts[alias].pk_revealed = True

    # -- proof of stake ----------------------------------------------------

    def insert_bond(self, delegator: str, step_id: int, amount: int, validator_field: str = VALIDATOR_ADDRESS) -> BondEntry:
        if amount <= 0:
            raise ModelInvariantError([f"bond amount must be positive, got {amount}"])
        self.debit(delegator, amount)
        entries = self.bonds.setdefault(delegator, {})
        if step_id in entries:
            raise ModelInvariantError([f"{delegator} already has a bond keyed to step {step_id}"])
        entry = BondEntry(delegator, step_id, amount, validator_field)
        entries[step_id] = entry
        return entry

    def insert_unbond(self, bond: BondEntry, amount: int, step_id: int) -> BondEntry:
        if not 0 < amount <= bond.amount:
            raise ModelInvariantError([f"unbond of {amount} from bond {bond.delegator}@{bond.step_id} holding {bond.amount}"])
        bond.amount -= amount
        entries = self.unbonds.setdefault(bond.delegator, {})
        entry = BondEntry(bond.delegator, step_id, amount, VALIDATOR_ADDRESS, bond.origin)
        entries[step_id] = entry
        return entry

    def withdraw(self, unbond: BondEntry) -> int:
        """
        Withdraw every matured unbond of ``unbond``'s validator.

        The chain pays out all of a delegator's unbonds from one validator at
        once. Unbonds sharing ``unbond``'s origin are credited. Unbonds of the
        same delegator with another origin may resolve to the same validator,
        so they are dropped without credit; the modeled balance stays a lower
        bound of the real one.
        """
        if unbond.amount <= 0:
            raise ModelInvariantError([f"withdraw from empty unbond {unbond.delegator}@{unbond.step_id}"])
        amount = 0
        for entry in self.unbonds.get(unbond.delegator, {}).values():
            if entry.origin == unbond.origin:
                amount += entry.amount
            entry.amount = 0
        self.credit(unbond.delegator, amount)
        return amount

    def redelegate(self, bond: BondEntry, amount: int, step_id: int, validator_field: str) -> BondEntry:
        if not 0 < amount <= bond.amount:
            raise ModelInvariantError([f"redelegation of {amount} from bond holding {bond.amount}"])
        bond.amount -= amount
        entries = self.bonds.setdefault(bond.delegator, {})
        if step_id in entries:
            raise ModelInvariantError([f"{bond.delegator} already has a bond keyed to step {step_id}"])
        entry = BondEntry(bond.delegator, step_id, amount, validator_field)
        entries[step_id] = entry
        return entry

    def non_zero_bonds(self) -> List[BondEntry]:
        return [e for d in sorted(self.bonds) for _, e in sorted(self.bonds[d].items()) if e.amount > 0]

    def non_zero_unbonds(self) -> List[BondEntry]:
        return [e for d in sorted(self.unbonds) for _, e in sorted(self.unbonds[d].items()) if e.amount > 0]

    def total_bonded(self, delegator: str) -> int:
        return sum(e.amount for e in self.bonds.get(delegator, {}).values())

    def has_any_bond(self, delegator: str) -> bool:
        return any(e.amount > 0 for e in self.bonds.get(delegator, {}).values())

    # -- validators --------------------------------------------------------

    def become_validator(self, alias: str, step_id: int) -> None:
        acct = self.accounts[alias]
        acct.is_validator = True
        acct.is_active = True
        acct.virgin = False
        acct.validator_step = step_id

    def set_validator_active(self, alias: str, active: bool) -> None:
        acct = self.accounts[alias]
        if not acct.is_validator:
            raise ModelInvariantError([f"{alias} is not a validator"])
        acct.is_active = active

    def update_account(self, alias: str, signers: FrozenSet[str], threshold: int) -> None:
        acct = self.accounts[alias]
        if not 1 <= threshold <= len(signers):
            raise ModelInvariantError([f"account {alias}: threshold {threshold} out of range"])
        acct.signer_aliases = frozenset(signers)
        acct.threshold = threshold
        acct.virgin = False

    # -- governance --------------------------------------------------------

    @property
    def proposal_counter(self) -> int:
        return len(self.proposals)

    def add_proposal(self, step_id: int, author: str, kind: StepKind, receivers=()) -> ProposalEntry:
        self.debit(author, PROPOSAL_FUNDS)
        self.pgf_receivers.update(receivers)
        entry = ProposalEntry(step_id, author, kind, self.voting_window + 1)
        self.proposals.append(entry)
        return entry

    def votable_proposals(self) -> List[ProposalEntry]:
        return [p for p in self.proposals if p.window >= self.voting_window]

    def vote(self, proposal: ProposalEntry) -> None:
        if proposal.window < self.voting_window:
            raise ModelInvariantError([f"proposal at step {proposal.step_id} is no longer open"])
        self.voting_window = proposal.window

    # -- invariants --------------------------------------------------------

    def violations(self) -> List[str]:
        out: List[str] = []
        if not self.balances.verify_non_negative():
            out.append("negative transparent balance")
        if not self.shielded.verify_non_negative():
            out.append("negative shielded balance")
        for table_name, table in (("bond", self.bonds), ("unbond", self.unbonds)):
            for delegator, entries in table.items():
                for step_id, entry in entries.items():
                    if entry.amount < 0:
                        out.append(f"negative {table_name} {delegator}@{step_id}: {entry.amount}")
        return out

    def check_invariants(self) -> None:
        found = self.violations()
        if found:
            raise ModelInvariantError(found)
