"""
SDK bridge client.

Talks to an SDK sidecar over TCP using one JSON object per line in each
direction::

    -> {"id": 7, "method": "query_epoch", "params": {}}
    <- {"id": 7, "result": 42}
    <- {"id": 7, "error": {"kind": "build", "message": "..."}}

Error kinds ``build`` and ``shielded-sync`` map to ``BuildError`` and
``ShieldedSyncError``; anything else is an ``RpcError``. A socket timeout
while waiting for ``submit`` is a ``SubmissionTimeout``.
"""

from __future__ import annotations

import itertools
import json
import logging
import socket
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional
from urllib.parse import urlparse

from ..core.errors import BuildError, RpcError, ShieldedSyncError, SubmissionTimeout
from .sdk import (
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


@dataclass(frozen=True)
class BridgeConfig:
    host: str = "127.0.0.1"
    port: int = 26660
    timeout_s: float = 30.0
    submit_timeout_s: float = 120.0
    recv_max_bytes: int = 16 * 1_048_576
    chain_id: str = ""

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "BridgeConfig":
        """Parse ``tcp://host:port`` (a bare ``host:port`` is accepted too)."""
        if "://" not in url:
            url = "tcp://" + url
        parsed = urlparse(url)
        if parsed.scheme != "tcp" or not parsed.hostname or parsed.port is None:
            raise ValueError(f"bridge url must look like tcp://host:port, got {url!r}")
        return cls(host=parsed.hostname, port=parsed.port, **kwargs)


class BridgeTransport:
    def __init__(self, config: BridgeConfig = BridgeConfig()) -> None:
        if not isinstance(config.port, int) or not (0 <= config.port <= 65535):
            raise ValueError("invalid port")
        if config.timeout_s <= 0 or config.submit_timeout_s <= 0:
            raise ValueError("timeouts must be positive")
        if config.recv_max_bytes <= 0:
            raise ValueError("recv_max_bytes must be positive")
        self._cfg = config
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[Mapping[str, Any]] = None, *, timeout_s: Optional[float] = None) -> Any:
        request_id = next(self._ids)
        wire = json.dumps({"id": request_id, "method": method, "params": dict(params or {})}, separators=(",", ":"))
        timeout = timeout_s if timeout_s is not None else self._cfg.timeout_s
        try:
            with socket.create_connection((self._cfg.host, self._cfg.port), timeout=timeout) as sock:
                sock.settimeout(timeout)
                sock.sendall(wire.encode("utf-8") + b"\n")
                line = self._read_line(sock)
        except socket.timeout as exc:
            raise _Timeout(f"{method} timed out after {timeout}s") from exc
        except OSError as exc:
            raise RpcError(f"{method}: {exc}") from exc

        try:
            response = json.loads(line)
        except json.JSONDecodeError as exc:
            raise RpcError(f"{method}: malformed response {line[:200]!r}") from exc
        if not isinstance(response, dict) or response.get("id") != request_id:
            raise RpcError(f"{method}: response does not match request {request_id}")
        error = response.get("error")
        if error is not None:
            raise _error_from(method, error)
        return response.get("result")

    def _read_line(self, sock: socket.socket) -> str:
        buf = bytearray()
        remaining = self._cfg.recv_max_bytes
        while remaining > 0:
            chunk = sock.recv(min(65536, remaining))
            if not chunk:
                break
            buf += chunk
            remaining -= len(chunk)
            if b"\n" in buf:
                break
        if b"\n" not in buf:
            raise RpcError("connection closed before a full response line arrived")
        line, _, _rest = bytes(buf).partition(b"\n")
        return line.rstrip(b"\r").decode("utf-8", errors="replace")


class _Timeout(RpcError):
    pass


def _error_from(method: str, error: Any) -> Exception:
    if isinstance(error, dict):
        kind = str(error.get("kind", ""))
        message = str(error.get("message", ""))
    else:
        kind, message = "", str(error)
    if kind == "build":
        return BuildError(message)
    if kind == "shielded-sync":
        return ShieldedSyncError(message)
    return RpcError(f"{method}: {message}")


class BridgeWallet:
    def __init__(self, transport: BridgeTransport) -> None:
        self._transport = transport
        self._lock = WalletLock()

    def read(self):
        return self._lock.read()

    def write(self):
        return self._lock.write()

    def find_address(self, alias: str) -> Optional[str]:
        return self._transport.call("wallet.find_address", {"alias": alias})

    def find_public_key(self, alias: str) -> Optional[str]:
        return self._transport.call("wallet.find_public_key", {"alias": alias})

    def find_payment_address(self, alias: str) -> Optional[str]:
        return self._transport.call("wallet.find_payment_address", {"alias": alias})

    def has_spending_key(self, alias: str) -> bool:
        return bool(self._transport.call("wallet.has_spending_key", {"alias": alias}))

    def gen_key(self, alias: str, *, shielded: bool = True) -> KeyInfo:
        obj = self._transport.call("wallet.gen_key", {"alias": alias, "shielded": shielded, "force": True})
        return KeyInfo(
            alias=str(obj["alias"]),
            public_key=str(obj["public_key"]),
            address=str(obj["address"]),
            payment_address=obj.get("payment_address"),
            spending_key=obj.get("spending_key"),
        )

    def add_address(self, alias: str, address: str) -> None:
        self._transport.call("wallet.add_address", {"alias": alias, "address": address, "force": True})


class BridgeSdk:
    def __init__(self, config: BridgeConfig) -> None:
        self.config = config
        self._transport = BridgeTransport(config)
        self.wallet = BridgeWallet(self._transport)

    def _call(self, method: str, **params: Any) -> Any:
        return self._transport.call(method, params)

    def query_epoch(self) -> int:
        return int(self._call("query_epoch"))

    def query_block(self) -> int:
        return int(self._call("query_block"))

    def query_storage_value(self, key: str) -> Optional[str]:
        raw = self._call("query_storage_value", key=key)
        return None if raw is None else str(raw)

    def enriched_bonds_and_unbonds(
        self, epoch: int, delegator: Optional[str] = None, validator: Optional[str] = None
    ) -> BondsSummary:
        obj = self._call("enriched_bonds_and_unbonds", epoch=epoch, delegator=delegator, validator=validator)
        return BondsSummary(bonds_total=int(obj["bonds_total"]), unbonds_total=int(obj["unbonds_total"]))

    @staticmethod
    def _proposal(obj: Dict[str, Any]) -> ProposalInfo:
        return ProposalInfo(
            id=int(obj["id"]),
            proposer=str(obj["proposer"]),
            start_epoch=int(obj["start_epoch"]),
            end_epoch=int(obj["end_epoch"]),
            grace_epoch=int(obj["grace_epoch"]),
            status=str(obj["status"]),
        )

    def query_proposal_by_id(self, proposal_id: int) -> Optional[ProposalInfo]:
        obj = self._call("query_proposal_by_id", proposal_id=proposal_id)
        return None if obj is None else self._proposal(obj)

    def query_proposals(self) -> List[ProposalInfo]:
        return [self._proposal(obj) for obj in self._call("query_proposals") or []]

    def query_all_validators(self, epoch: Optional[int] = None) -> List[ValidatorInfo]:
        return [
            ValidatorInfo(address=str(obj["address"]), state=str(obj["state"]))
            for obj in self._call("query_all_validators", epoch=epoch) or []
        ]

    def is_public_key_revealed(self, address: str) -> bool:
        return bool(self._call("is_public_key_revealed", address=address))

    def token_balance(self, token: str, owner: str) -> int:
        return int(self._call("token_balance", token=token, owner=owner))

    def governance_parameters(self) -> GovernanceParameters:
        obj = self._call("governance_parameters")
        return GovernanceParameters(
            min_proposal_voting_period=int(obj["min_proposal_voting_period"]),
            min_proposal_grace_epochs=int(obj["min_proposal_grace_epochs"]),
            min_proposal_fund=int(obj["min_proposal_fund"]),
        )

    def query_account(self, address: str) -> Optional[AccountInfo]:
        obj = self._call("query_account", address=address)
        if obj is None:
            return None
        return AccountInfo(
            address=str(obj["address"]),
            threshold=int(obj["threshold"]),
            public_keys=tuple(str(pk) for pk in obj.get("public_keys") or ()),
        )

    def query_bonded_stake(self, epoch: Optional[int] = None) -> int:
        return int(self._call("query_bonded_stake", epoch=epoch))

    def address_of_public_key(self, public_key: str) -> str:
        return str(self._call("address_of_public_key", public_key=public_key))

    def shielded_sync(self) -> None:
        self._call("shielded_sync")

    def build(self, kind: str, args: Dict[str, Any], tx_args: TxArgs) -> Tx:
        handle = self._call("build", kind=kind, args=args, tx_args=tx_args.to_dict())
        return Tx(kind=kind, args=dict(args), tx_args=tx_args, handle=str(handle))

    def build_batch(self, txs: List[Tx], atomic: bool, tx_args: TxArgs) -> Tx:
        handle = self._call(
            "build_batch", handles=[tx.handle for tx in txs], atomic=atomic, tx_args=tx_args.to_dict()
        )
        return Tx(kind="batch", args={}, tx_args=tx_args, inner=list(txs), atomic=atomic, handle=str(handle))

    def sign(self, tx: Tx) -> Tx:
        self._call("sign", handle=tx.handle)
        return tx

    def submit(self, tx: Tx) -> TxResponse:
        try:
            obj = self._transport.call("submit", {"handle": tx.handle}, timeout_s=self.config.submit_timeout_s)
        except _Timeout as e:
            raise SubmissionTimeout(str(e)) from e
        return TxResponse.from_dict(obj or {})


@contextmanager
def bridge_sdk(url: str, *, chain_id: str = "", faucet_sk: Optional[str] = None) -> Iterator[BridgeSdk]:
    """Connect to a bridge and register the faucet key when one is given."""
    sdk = BridgeSdk(BridgeConfig.from_url(url, chain_id=chain_id))
    if chain_id:
        remote = sdk._call("chain_id")
        if remote != chain_id:
            raise RpcError(f"bridge serves chain {remote!r}, expected {chain_id!r}")
    if faucet_sk:
        sdk._call("wallet.import_faucet", secret_key=faucet_sk)
    logger.info("connected to SDK bridge at %s:%d", sdk.config.host, sdk.config.port)
    yield sdk
