"""
Run-time state: step storage, balance tables and canonical encodings.
"""

from .balances import BalanceTable
from .canonical import canonical_json, digest_hex
from .storage import Outcome, StepRecord, StepStorage

__all__ = [
    "BalanceTable",
    "canonical_json",
    "digest_hex",
    "Outcome",
    "StepRecord",
    "StepStorage",
]
