"""
Deterministic in-memory chain implementing the ``Sdk`` interface.

The ledger keeps transparent balances, shielded notes, accounts, revealed
public keys, validators, bonds, unbonds and governance proposals. Time only
moves when a transaction is submitted (one block each) or when ``sleep`` /
``advance_blocks`` is called, so runs are reproducible.

Transaction handling follows the same split as a real SDK:

- ``build`` validates the transaction against a copy of the current ledger
  (client-side checks); a rejection raises ``BuildError``.
- ``submit`` charges the wrapper fee, checks signatures, then applies the
  inner transaction(s) on a copy of the ledger and commits only on success.
  Atomic batches commit all inner transactions or none.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..core.errors import BuildError, ShieldedSyncError, SubmissionTimeout
from ..core.resolver import BELOW_THRESHOLD, CONSENSUS, INACTIVE, JAILED
from ..gen.constants import (
    FAUCET_ALIAS,
    GENESIS_VALIDATORS,
    NATIVE_SCALE,
    NATIVE_TOKEN,
    PROPOSAL_FUNDS,
    UNBONDING_EPOCHS,
    fee_for,
    payment_address_alias,
    spending_key_alias,
)
from ..state.balances import BalanceTable
from ..state.canonical import digest_hex
from .keys import (
    established_address,
    implicit_address,
    payment_address,
    public_key_for,
    token_address,
)
from .sdk import (
    PROPOSAL_COUNTER_KEY,
    AccountInfo,
    BondsSummary,
    GovernanceParameters,
    KeyInfo,
    ProposalInfo,
    Tx,
    TxArgs,
    TxResponse,
    ValidatorInfo,
    WalletLock,
)

logger = logging.getLogger(__name__)

BATCH_KIND = "batch"

FAUCET_BALANCE = 1_000_000_000 * NATIVE_SCALE
GENESIS_STAKE = 1_000 * NATIVE_SCALE
# Validators with less stake than this are below threshold.
CONSENSUS_MIN_STAKE = NATIVE_SCALE


class _Rejected(Exception):
    """Raised by ledger handlers; becomes a build error or a tx error."""


class MockWallet:
    def __init__(self, seed: str = "mock") -> None:
        self._seed = seed
        self._counter = 0
        self._lock = WalletLock()
        self._keys: Dict[str, KeyInfo] = {}
        self._addresses: Dict[str, str] = {}
        self._payment_addresses: Dict[str, str] = {}
        # spending key alias -> payment address it spends for
        self._spending_keys: Dict[str, str] = {}

    def read(self):
        return self._lock.read()

    def write(self):
        return self._lock.write()

    def find_address(self, alias: str) -> Optional[str]:
        return self._addresses.get(alias)

    def find_public_key(self, alias: str) -> Optional[str]:
        key = self._keys.get(alias)
        return key.public_key if key is not None else None

    def find_payment_address(self, alias: str) -> Optional[str]:
        return self._payment_addresses.get(alias)

    def has_spending_key(self, alias: str) -> bool:
        return alias in self._spending_keys

    def spending_key_target(self, alias: str) -> Optional[str]:
        return self._spending_keys.get(alias)

    def gen_key(self, alias: str, *, shielded: bool = True) -> KeyInfo:
        """Create a key under ``alias``, replacing any key already stored there."""
        if not alias:
            raise BuildError("alias must be non-empty")
        self._counter += 1
        public_key = public_key_for(f"{self._seed}/{alias}/{self._counter}")
        return self._store(alias, public_key, shielded)

    def import_key(self, alias: str, seed: str) -> KeyInfo:
        return self._store(alias, public_key_for(seed), shielded=False)

    def _store(self, alias: str, public_key: str, shielded: bool) -> KeyInfo:
        address = implicit_address(public_key)
        pa = sk = None
        if shielded:
            pa = payment_address(public_key)
            sk = spending_key_alias(alias)
            self._payment_addresses[alias] = pa
            self._payment_addresses[payment_address_alias(alias)] = pa
            self._spending_keys[sk] = pa
        key = KeyInfo(alias=alias, public_key=public_key, address=address, payment_address=pa, spending_key=sk)
        self._keys[alias] = key
        self._addresses[alias] = address
        return key

    def add_address(self, alias: str, address: str) -> None:
        self._addresses[alias] = address


@dataclass
class _Validator:
    state: str = CONSENSUS
    genesis: bool = False
    consensus_key: str = ""
    commission_rate: str = "0.05"
    email: str = ""
    description: str = ""


@dataclass
class _Unbond:
    delegator: str
    validator: str
    amount: int
    withdrawable: int


@dataclass
class _Proposal:
    id: int
    author: str
    kind: str
    start_epoch: int
    end_epoch: int
    grace_epoch: int
    data: Dict[str, Any] = field(default_factory=dict)
    votes: Dict[str, str] = field(default_factory=dict)


@dataclass
class Ledger:
    height: int = 0
    balances: BalanceTable = field(default_factory=BalanceTable)
    # payment address -> raw native amount
    shielded: BalanceTable = field(default_factory=BalanceTable)
    revealed: Dict[str, str] = field(default_factory=dict)
    accounts: Dict[str, AccountInfo] = field(default_factory=dict)
    validators: Dict[str, _Validator] = field(default_factory=dict)
    bonds: Dict[Tuple[str, str], int] = field(default_factory=dict)
    unbonds: List[_Unbond] = field(default_factory=list)
    proposals: List[_Proposal] = field(default_factory=list)
    established_counter: int = 0
    # payment addresses holding notes created since the last shielded sync
    unsynced: Set[str] = field(default_factory=set)

    def copy(self) -> "Ledger":
        return copy.deepcopy(self)


@dataclass(frozen=True)
class MockChainConfig:
    chain_id: str = "mock-chain"
    blocks_per_epoch: int = 4
    block_time_s: int = 5
    genesis_validators: int = GENESIS_VALIDATORS
    min_proposal_voting_period: int = 1_000
    min_proposal_grace_epochs: int = 6
    faucet_seed: str = "faucet"
    wallet_seed: str = "mock"


Handler = Callable[["MockChain", Ledger, Dict[str, Any]], Optional[str]]


class MockChain:
    def __init__(self, config: MockChainConfig = MockChainConfig()) -> None:
        if config.blocks_per_epoch <= 0 or config.block_time_s <= 0:
            raise ValueError("blocks_per_epoch and block_time_s must be positive")
        self.config = config
        self.wallet = MockWallet(config.wallet_seed)
        self.ledger = Ledger()
        self.native_token = token_address(NATIVE_TOKEN)
        # Submissions to time out before the next one goes through.
        self.pending_timeouts = 0
        self.fail_shielded_sync = False
        self.submitted: List[Tx] = []
        self._genesis()

    def _genesis(self) -> None:
        self.wallet.add_address(NATIVE_TOKEN, self.native_token)
        faucet = self.wallet.import_key(FAUCET_ALIAS, self.config.faucet_seed)
        self.ledger.balances.set(faucet.address, self.native_token, FAUCET_BALANCE)
        self.ledger.revealed[faucet.address] = faucet.public_key
        for i in range(self.config.genesis_validators):
            address = self._new_established(self.ledger, (), 1)
            self.ledger.validators[address] = _Validator(genesis=True, email=f"genesis-{i}@mock.test")
            self.ledger.bonds[(address, address)] = GENESIS_STAKE
            self.wallet.add_address(f"validator-{i}", address)

    # -- time ------------------------------------------------------------

    @property
    def epoch(self) -> int:
        return self.ledger.height // self.config.blocks_per_epoch

    def advance_blocks(self, n: int = 1) -> None:
        if n < 0:
            raise ValueError("cannot move time backwards")
        self.ledger.height += n

    def advance_epochs(self, n: int = 1) -> None:
        self.advance_blocks(n * self.config.blocks_per_epoch)

    def sleep(self, seconds: float) -> None:
        """Drop-in for ``time.sleep``: advance the chain instead of waiting."""
        self.advance_blocks(max(1, int(seconds) // self.config.block_time_s))

    # -- queries ---------------------------------------------------------

    def query_epoch(self) -> int:
        return self.epoch

    def query_block(self) -> int:
        return self.ledger.height

    def query_storage_value(self, key: str) -> Optional[str]:
        if key == PROPOSAL_COUNTER_KEY:
            return str(len(self.ledger.proposals))
        return None

    def enriched_bonds_and_unbonds(
        self, epoch: int, delegator: Optional[str] = None, validator: Optional[str] = None
    ) -> BondsSummary:
        def matches(d: str, v: str) -> bool:
            return (delegator is None or d == delegator) and (validator is None or v == validator)

        bonds = sum(a for (d, v), a in self.ledger.bonds.items() if matches(d, v))
        unbonds = sum(u.amount for u in self.ledger.unbonds if matches(u.delegator, u.validator))
        return BondsSummary(bonds_total=bonds, unbonds_total=unbonds)

    def _status(self, p: _Proposal) -> str:
        if self.epoch < p.start_epoch:
            return "pending"
        if self.epoch < p.end_epoch:
            return "on-going"
        return "ended"

    def _proposal_info(self, p: _Proposal) -> ProposalInfo:
        return ProposalInfo(p.id, p.author, p.start_epoch, p.end_epoch, p.grace_epoch, self._status(p))

    def query_proposal_by_id(self, proposal_id: int) -> Optional[ProposalInfo]:
        if 0 <= proposal_id < len(self.ledger.proposals):
            return self._proposal_info(self.ledger.proposals[proposal_id])
        return None

    def query_proposals(self) -> List[ProposalInfo]:
        return [self._proposal_info(p) for p in self.ledger.proposals]

    def query_all_validators(self, epoch: Optional[int] = None) -> List[ValidatorInfo]:
        return [
            ValidatorInfo(address, self._validator_state(self.ledger, address))
            for address in sorted(self.ledger.validators)
        ]

    def is_public_key_revealed(self, address: str) -> bool:
        return address in self.ledger.revealed

    def token_balance(self, token: str, owner: str) -> int:
        return self.ledger.balances.get(owner, token)

    def shielded_balance(self, payment_address: str) -> int:
        return self.ledger.shielded.get(payment_address, self.native_token)

    def governance_parameters(self) -> GovernanceParameters:
        return GovernanceParameters(
            min_proposal_voting_period=self.config.min_proposal_voting_period,
            min_proposal_grace_epochs=self.config.min_proposal_grace_epochs,
            min_proposal_fund=PROPOSAL_FUNDS,
        )

    def query_account(self, address: str) -> Optional[AccountInfo]:
        info = self.ledger.accounts.get(address)
        if info is not None:
            return info
        pk = self.ledger.revealed.get(address)
        if pk is not None:
            return AccountInfo(address, 1, (pk,))
        return None

    def query_bonded_stake(self, epoch: Optional[int] = None) -> int:
        return sum(self.ledger.bonds.values())

    def address_of_public_key(self, public_key: str) -> str:
        return implicit_address(public_key)

    def shielded_sync(self) -> None:
        if self.fail_shielded_sync:
            raise ShieldedSyncError("shielded context sync failed")
        self.ledger.unsynced.clear()

    # -- transactions ----------------------------------------------------

    def build(self, kind: str, args: Dict[str, Any], tx_args: TxArgs) -> Tx:
        handler = _HANDLERS.get(kind)
        if handler is None:
            raise BuildError(f"unsupported transaction kind {kind!r}")
        self._check_tx_args(tx_args)
        args = dict(args)
        if "source" in args and self.wallet.has_spending_key(str(args["source"])):
            args["source"] = self.wallet.spending_key_target(str(args["source"]))
            if args["source"] in self.ledger.unsynced:
                raise BuildError("shielded context is out of date; run shielded-sync")
        try:
            handler(self, self.ledger.copy(), args)
        except _Rejected as e:
            raise BuildError(str(e)) from None
        return Tx(kind=kind, args=args, tx_args=tx_args)

    def build_batch(self, txs: List[Tx], atomic: bool, tx_args: TxArgs) -> Tx:
        if not txs:
            raise BuildError("empty batch")
        self._check_tx_args(tx_args)
        return Tx(kind=BATCH_KIND, args={}, tx_args=tx_args, inner=list(txs), atomic=atomic)

    def _check_tx_args(self, tx_args: TxArgs) -> None:
        for alias in tx_args.signers + (tx_args.gas_payer,):
            if self.wallet.find_public_key(alias) is None:
                raise BuildError(f"no signing key for {alias!r}")

    def sign(self, tx: Tx) -> Tx:
        keys = []
        for alias in dict.fromkeys(tx.tx_args.signers + (tx.tx_args.gas_payer,)):
            pk = self.wallet.find_public_key(alias)
            if pk is None:
                raise BuildError(f"no signing key for {alias!r}")
            keys.append(pk)
        tx.signatures = keys
        return tx

    def submit(self, tx: Tx) -> TxResponse:
        if self.pending_timeouts > 0:
            self.pending_timeouts -= 1
            raise SubmissionTimeout("timed out waiting for the transaction to be committed")
        self.advance_blocks(1)
        self.submitted.append(tx)
        tx_hash = digest_hex("tx", str(self.ledger.height), tx.kind)

        fee_error = self._charge_fee(tx)
        if fee_error is not None:
            logger.debug("tx %s rejected: %s", tx.kind, fee_error)
            return TxResponse(applied=False, errors=(fee_error,), height=self.ledger.height, tx_hash=tx_hash)

        inner = tx.inner if tx.kind == BATCH_KIND else [tx]
        errors: List[str] = []
        initialized: List[str] = []
        staged = self.ledger.copy()
        for item in inner:
            work = staged.copy()
            try:
                self._authorize(work, item, tx.signatures)
                created = _HANDLERS[item.kind](self, work, item.args)
            except _Rejected as e:
                errors.append(f"{item.kind}: {e}")
                if tx.atomic:
                    break
                continue
            staged = work
            if created is not None:
                initialized.append(created)
        if not (tx.atomic and errors):
            self.ledger = staged
        else:
            initialized = []
        return TxResponse(
            applied=True,
            errors=tuple(errors),
            height=self.ledger.height,
            tx_hash=tx_hash,
            initialized_accounts=tuple(initialized),
        )

    def _charge_fee(self, tx: Tx) -> Optional[str]:
        payer_alias = tx.tx_args.gas_payer
        payer = self.wallet.find_address(payer_alias)
        payer_pk = self.wallet.find_public_key(payer_alias)
        if payer is None or payer_pk is None or payer_pk not in tx.signatures:
            return f"fee payer {payer_alias} did not sign"
        fee = fee_for(tx.tx_args.gas_limit)
        if self.ledger.balances.get(payer, self.native_token) < fee:
            return f"fee payer {payer} cannot pay fee {fee}"
        if payer not in self.ledger.revealed:
            # The client reveals a signing fee payer's key ahead of its first wrapper.
            logger.debug("revealing fee payer %s", payer)
            self.ledger.revealed[payer] = payer_pk
        self.ledger.balances.subtract(payer, self.native_token, fee)
        return None

    def _authorize(self, ledger: Ledger, tx: Tx, signatures: List[str]) -> None:
        owner_key = _OWNERS.get(tx.kind)
        if owner_key is None:
            return
        owner = str(tx.args[owner_key])
        if owner.startswith("znam"):
            # Shielded spends are authorized by the spending key.
            return
        account = ledger.accounts.get(owner)
        if account is None:
            if not any(implicit_address(pk) == owner for pk in signatures):
                raise _Rejected(f"missing signature for {owner}")
            return
        valid = sum(1 for pk in account.public_keys if pk in signatures)
        if valid < account.threshold:
            raise _Rejected(f"{owner} needs {account.threshold} signatures, got {valid}")

    # -- ledger helpers --------------------------------------------------

    def _new_established(self, ledger: Ledger, public_keys, threshold: int) -> str:
        address = established_address(ledger.established_counter)
        ledger.established_counter += 1
        ledger.accounts[address] = AccountInfo(address, threshold, tuple(public_keys))
        return address

    def _validator_state(self, ledger: Ledger, address: str) -> str:
        v = ledger.validators[address]
        if v.state in (INACTIVE, JAILED):
            return v.state
        stake = sum(a for (_, val), a in ledger.bonds.items() if val == address)
        return CONSENSUS if stake >= CONSENSUS_MIN_STAKE else BELOW_THRESHOLD

    def _move(self, ledger: Ledger, source: str, target: str, token: str, amount: int) -> None:
        if amount <= 0:
            raise _Rejected("amount must be positive")
        if ledger.balances.get(source, token) < amount:
            raise _Rejected(f"insufficient balance in {source}")
        ledger.balances.transfer(source, target, token, amount)

    def _validator(self, ledger: Ledger, address: str) -> _Validator:
        v = ledger.validators.get(address)
        if v is None:
            raise _Rejected(f"{address} is not a validator")
        return v

    def _established(self, ledger: Ledger, address: str) -> AccountInfo:
        info = ledger.accounts.get(address)
        if info is None:
            raise _Rejected(f"{address} is not an established account")
        return info


# -- handlers ----------------------------------------------------------------
# Each handler mutates the ledger it is given and returns the address of an
# account it created, if any.


def _reveal_pk(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    pk = str(args["public_key"])
    ledger.revealed[implicit_address(pk)] = pk


def _init_account(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> str:
    keys = list(args["public_keys"])
    threshold = int(args["threshold"])
    if not keys or not 1 <= threshold <= len(keys):
        raise _Rejected("invalid threshold")
    return chain._new_established(ledger, keys, threshold)


def _update_account(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    address = str(args["address"])
    chain._established(ledger, address)
    keys = tuple(args["public_keys"])
    threshold = int(args["threshold"])
    if not keys or not 1 <= threshold <= len(keys):
        raise _Rejected("invalid threshold")
    ledger.accounts[address] = AccountInfo(address, threshold, keys)


def _transparent_transfer(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    chain._move(ledger, str(args["source"]), str(args["target"]), str(args["token"]), int(args["amount"]))


def _shielding_transfer(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    source, target, token, amount = str(args["source"]), str(args["target"]), str(args["token"]), int(args["amount"])
    if amount <= 0:
        raise _Rejected("amount must be positive")
    try:
        ledger.balances.subtract(source, token, amount)
    except ValueError as e:
        raise _Rejected(str(e)) from None
    ledger.shielded.add(target, token, amount)
    ledger.unsynced.add(target)


def _shielded_transfer(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    source, target, token, amount = str(args["source"]), str(args["target"]), str(args["token"]), int(args["amount"])
    if amount <= 0 or ledger.shielded.get(source, token) < amount:
        raise _Rejected(f"insufficient shielded balance in {source}")
    ledger.shielded.transfer(source, target, token, amount)
    ledger.unsynced.add(target)


def _unshielding_transfer(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    source, target, token, amount = str(args["source"]), str(args["target"]), str(args["token"]), int(args["amount"])
    if amount <= 0 or ledger.shielded.get(source, token) < amount:
        raise _Rejected(f"insufficient shielded balance in {source}")
    ledger.shielded.subtract(source, token, amount)
    ledger.balances.add(target, token, amount)


def _bond(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    source, validator, amount = str(args["source"]), str(args["validator"]), int(args["amount"])
    chain._validator(ledger, validator)
    if chain._validator_state(ledger, validator) in (INACTIVE, JAILED):
        raise _Rejected(f"validator {validator} does not accept bonds")
    if amount <= 0 or ledger.balances.get(source, chain.native_token) < amount:
        raise _Rejected(f"insufficient balance to bond from {source}")
    ledger.balances.subtract(source, chain.native_token, amount)
    ledger.bonds[(source, validator)] = ledger.bonds.get((source, validator), 0) + amount


def _unbond(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    source, validator, amount = str(args["source"]), str(args["validator"]), int(args["amount"])
    bonded = ledger.bonds.get((source, validator), 0)
    if amount <= 0 or bonded < amount:
        raise _Rejected(f"cannot unbond {amount} from a bond of {bonded}")
    ledger.bonds[(source, validator)] = bonded - amount
    ledger.unbonds.append(_Unbond(source, validator, amount, chain.epoch + UNBONDING_EPOCHS))


def _withdraw(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    source, validator = str(args["source"]), str(args["validator"])
    ready = [u for u in ledger.unbonds if u.delegator == source and u.validator == validator and u.withdrawable <= chain.epoch]
    if not ready:
        raise _Rejected("no unbonded tokens ready to withdraw")
    for u in ready:
        ledger.unbonds.remove(u)
        ledger.balances.add(source, chain.native_token, u.amount)


def _redelegate(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    source, src, dest, amount = (
        str(args["source"]),
        str(args["src_validator"]),
        str(args["dest_validator"]),
        int(args["amount"]),
    )
    if src == dest:
        raise _Rejected("source and destination validators are the same")
    chain._validator(ledger, src)
    chain._validator(ledger, dest)
    if chain._validator_state(ledger, dest) != CONSENSUS:
        raise _Rejected(f"validator {dest} is not in the consensus set")
    bonded = ledger.bonds.get((source, src), 0)
    if amount <= 0 or bonded < amount:
        raise _Rejected(f"cannot redelegate {amount} from a bond of {bonded}")
    ledger.bonds[(source, src)] = bonded - amount
    ledger.bonds[(source, dest)] = ledger.bonds.get((source, dest), 0) + amount


def _claim_rewards(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    # Rewards are not modeled; claiming credits nothing.
    chain._validator(ledger, str(args["validator"]))


def _init_proposal(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    author = str(args["author"])
    start, end, grace = int(args["start_epoch"]), int(args["end_epoch"]), int(args["grace_epoch"])
    period = chain.config.min_proposal_voting_period
    if start <= chain.epoch or start % period != 0:
        raise _Rejected(f"invalid start epoch {start}")
    if end - start < period or grace - end < chain.config.min_proposal_grace_epochs:
        raise _Rejected("voting period or grace period too short")
    if ledger.balances.get(author, chain.native_token) < PROPOSAL_FUNDS:
        raise _Rejected(f"{author} cannot lock the proposal funds")
    # Locked funds are never returned by this chain.
    ledger.balances.subtract(author, chain.native_token, PROPOSAL_FUNDS)
    ledger.proposals.append(
        _Proposal(len(ledger.proposals), author, str(args["proposal_type"]), start, end, grace, dict(args["data"]))
    )


def _vote(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    proposal_id, voter = int(args["proposal_id"]), str(args["voter"])
    if not 0 <= proposal_id < len(ledger.proposals):
        raise _Rejected(f"unknown proposal {proposal_id}")
    p = ledger.proposals[proposal_id]
    if not p.start_epoch <= chain.epoch < p.end_epoch:
        raise _Rejected(f"proposal {proposal_id} is not open for voting")
    has_bond = any(a > 0 for (d, _), a in ledger.bonds.items() if d == voter)
    if not has_bond and voter not in ledger.validators:
        raise _Rejected(f"{voter} has no voting power")
    p.votes[voter] = str(args["vote"])


def _become_validator(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    address = str(args["address"])
    chain._established(ledger, address)
    if address in ledger.validators:
        raise _Rejected(f"{address} is already a validator")
    ledger.validators[address] = _Validator(
        consensus_key=str(args["consensus_key"]),
        commission_rate=str(args["commission_rate"]),
        email=str(args["email"]),
    )


def _deactivate_validator(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    v = chain._validator(ledger, str(args["address"]))
    if v.state == INACTIVE:
        raise _Rejected("validator is already inactive")
    v.state = INACTIVE


def _reactivate_validator(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    v = chain._validator(ledger, str(args["address"]))
    if v.state != INACTIVE:
        raise _Rejected("validator is not inactive")
    v.state = CONSENSUS


def _change_metadata(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    v = chain._validator(ledger, str(args["address"]))
    v.email = str(args.get("email", v.email))
    v.description = str(args.get("description", v.description))
    v.commission_rate = str(args.get("commission_rate", v.commission_rate))


def _change_consensus_key(chain: MockChain, ledger: Ledger, args: Dict[str, Any]) -> None:
    v = chain._validator(ledger, str(args["address"]))
    if v.consensus_key == args["consensus_key"]:
        raise _Rejected("consensus key unchanged")
    v.consensus_key = str(args["consensus_key"])


_HANDLERS: Dict[str, Handler] = {
    "reveal-pk": _reveal_pk,
    "tx-init-account": _init_account,
    "tx-update-account": _update_account,
    "tx-transparent-transfer": _transparent_transfer,
    "tx-shielding-transfer": _shielding_transfer,
    "tx-shielded-transfer": _shielded_transfer,
    "tx-unshielding-transfer": _unshielding_transfer,
    "tx-bond": _bond,
    "tx-unbond": _unbond,
    "tx-withdraw": _withdraw,
    "tx-redelegate": _redelegate,
    "tx-claim-rewards": _claim_rewards,
    "tx-init-default-proposal": _init_proposal,
    "tx-init-pgf-steward-proposal": _init_proposal,
    "tx-init-pgf-funding-proposal": _init_proposal,
    "tx-vote-proposal": _vote,
    "tx-become-validator": _become_validator,
    "tx-deactivate-validator": _deactivate_validator,
    "tx-reactivate-validator": _reactivate_validator,
    "tx-change-metadata": _change_metadata,
    "tx-change-consensus-key": _change_consensus_key,
}

# Argument naming the account that must authorize each kind.
_OWNERS: Dict[str, str] = {
    "tx-update-account": "address",
    "tx-transparent-transfer": "source",
    "tx-shielding-transfer": "source",
    "tx-shielded-transfer": "source",
    "tx-unshielding-transfer": "source",
    "tx-bond": "source",
    "tx-unbond": "source",
    "tx-withdraw": "source",
    "tx-redelegate": "source",
    "tx-claim-rewards": "source",
    "tx-init-default-proposal": "author",
    "tx-init-pgf-steward-proposal": "author",
    "tx-init-pgf-funding-proposal": "author",
    "tx-vote-proposal": "voter",
    "tx-become-validator": "address",
    "tx-deactivate-validator": "address",
    "tx-reactivate-validator": "address",
    "tx-change-metadata": "address",
    "tx-change-consensus-key": "address",
}
