"""
Checks and waits: steps that observe the chain or step storage without
submitting transactions.
"""

from .checks import (
    execute_check_balance,
    execute_check_bonds,
    execute_check_reveal_pk,
    execute_check_step,
    execute_check_storage,
)
from .waits import execute_wait_epoch, execute_wait_height, wait_target

__all__ = [
    "execute_check_balance",
    "execute_check_bonds",
    "execute_check_reveal_pk",
    "execute_check_step",
    "execute_check_storage",
    "execute_wait_epoch",
    "execute_wait_height",
    "wait_target",
]
