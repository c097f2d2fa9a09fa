"""
Chain integration layer: the SDK interface the runner drives, an in-memory
chain implementing it, and a TCP client for a real SDK sidecar.
"""

from .sdk import (
    AccountInfo,
    BondsSummary,
    GovernanceParameters,
    KeyInfo,
    ProposalInfo,
    Sdk,
    Tx,
    TxArgs,
    TxResponse,
    ValidatorInfo,
    Wallet,
)

__all__ = [
    "AccountInfo",
    "BondsSummary",
    "GovernanceParameters",
    "KeyInfo",
    "ProposalInfo",
    "Sdk",
    "Tx",
    "TxArgs",
    "TxResponse",
    "ValidatorInfo",
    "Wallet",
]
