"""
Interface the runner requires from a chain SDK.

Two implementations exist: ``MockChain`` (deterministic, in-memory) and
``BridgeSdk`` (talks to an SDK sidecar over TCP). Tasks only use what is
declared here.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

from ..gen.constants import DEFAULT_GAS_LIMIT, MEMO

PROPOSAL_COUNTER_KEY = "/governance/counter"


@dataclass(frozen=True)
class TxArgs:
    signers: Tuple[str, ...]
    gas_payer: str
    gas_limit: int = DEFAULT_GAS_LIMIT
    memo: str = MEMO
    broadcast_only: bool = False
    gas_token: Optional[str] = None
    expiration: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signers": list(self.signers),
            "gas_payer": self.gas_payer,
            "gas_limit": self.gas_limit,
            "memo": self.memo,
            "broadcast_only": self.broadcast_only,
            "gas_token": self.gas_token,
            "expiration": self.expiration,
        }


@dataclass
class Tx:
    kind: str
    args: Dict[str, Any]
    tx_args: TxArgs
    inner: List["Tx"] = field(default_factory=list)
    atomic: bool = False
    signatures: List[str] = field(default_factory=list)
    # Opaque id assigned by a remote builder.
    handle: Optional[str] = None


@dataclass(frozen=True)
class TxResponse:
    applied: bool
    errors: Tuple[str, ...] = ()
    height: int = 0
    tx_hash: str = ""
    initialized_accounts: Tuple[str, ...] = ()

    @property
    def is_applied_and_valid(self) -> bool:
        return self.applied and not self.errors

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "TxResponse":
        return cls(
            applied=bool(obj.get("applied", False)),
            errors=tuple(str(e) for e in obj.get("errors") or ()),
            height=int(obj.get("height", 0)),
            tx_hash=str(obj.get("tx_hash", "")),
            initialized_accounts=tuple(str(a) for a in obj.get("initialized_accounts") or ()),
        )


@dataclass(frozen=True)
class KeyInfo:
    alias: str
    public_key: str
    address: str
    payment_address: Optional[str] = None
    spending_key: Optional[str] = None


@dataclass(frozen=True)
class ValidatorInfo:
    address: str
    state: str


@dataclass(frozen=True)
class ProposalInfo:
    id: int
    proposer: str
    start_epoch: int
    end_epoch: int
    grace_epoch: int
    status: str


@dataclass(frozen=True)
class AccountInfo:
    address: str
    threshold: int
    public_keys: Tuple[str, ...]


@dataclass(frozen=True)
class BondsSummary:
    bonds_total: int
    unbonds_total: int


@dataclass(frozen=True)
class GovernanceParameters:
    min_proposal_voting_period: int
    min_proposal_grace_epochs: int
    min_proposal_fund: int


class WalletLock:
    """
    Scoped access to the wallet.

    The runner executes one step at a time, so readers and writers only
    need mutual exclusion; key generation takes the write side.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._lock:
            yield

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._lock:
            yield


class Wallet(Protocol):
    def find_address(self, alias: str) -> Optional[str]: ...

    def find_public_key(self, alias: str) -> Optional[str]: ...

    def find_payment_address(self, alias: str) -> Optional[str]: ...

    def has_spending_key(self, alias: str) -> bool: ...

    def gen_key(self, alias: str, *, shielded: bool = True) -> KeyInfo: ...

    def add_address(self, alias: str, address: str) -> None: ...

    def read(self): ...

    def write(self): ...


class Sdk(Protocol):
    wallet: Wallet

    def query_epoch(self) -> int: ...

    def query_block(self) -> int: ...

    def query_storage_value(self, key: str) -> Optional[str]: ...

    def enriched_bonds_and_unbonds(
        self, epoch: int, delegator: Optional[str] = None, validator: Optional[str] = None
    ) -> BondsSummary: ...

    def query_proposal_by_id(self, proposal_id: int) -> Optional[ProposalInfo]: ...

    def query_proposals(self) -> List[ProposalInfo]: ...

    def query_all_validators(self, epoch: Optional[int] = None) -> List[ValidatorInfo]: ...

    def is_public_key_revealed(self, address: str) -> bool: ...

    def token_balance(self, token: str, owner: str) -> int: ...

    def governance_parameters(self) -> GovernanceParameters: ...

    def query_account(self, address: str) -> Optional[AccountInfo]: ...

    def query_bonded_stake(self, epoch: Optional[int] = None) -> int: ...

    def address_of_public_key(self, public_key: str) -> str: ...

    def shielded_sync(self) -> None: ...

    def build(self, kind: str, args: Dict[str, Any], tx_args: TxArgs) -> Tx: ...

    def build_batch(self, txs: List[Tx], atomic: bool, tx_args: TxArgs) -> Tx: ...

    def sign(self, tx: Tx) -> Tx: ...

    def submit(self, tx: Tx) -> TxResponse: ...
