"""
Task types the generator can draw and when each one is feasible.

A task is feasible when the model holds everything its synthesis needs
(accounts able to pay fees, bonds to unbond, proposals open for voting and
so on). Synthesis draws its parameters from the same candidate lists, so a
feasible task can always be built.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Callable, Dict, List

from .constants import MIN_FEE, PROPOSAL_FUNDS
from .model import BondEntry, GeneratorModel, ProposalEntry


@unique
class TaskType(Enum):
    NEW_WALLET_KEY = "new-wallet-key"
    FAUCET_TRANSFER = "faucet-transfer"
    TRANSPARENT_TRANSFER = "transparent-transfer"
    BOND = "bond"
    UNBOND = "unbond"
    WITHDRAW = "withdraw"
    REDELEGATE = "redelegate"
    CLAIM_REWARDS = "claim-rewards"
    INIT_ACCOUNT = "init-account"
    UPDATE_ACCOUNT = "update-account"
    BECOME_VALIDATOR = "become-validator"
    DEACTIVATE_VALIDATOR = "deactivate-validator"
    REACTIVATE_VALIDATOR = "reactivate-validator"
    CHANGE_METADATA = "change-metadata"
    CHANGE_CONSENSUS_KEY = "change-consensus-key"
    INIT_DEFAULT_PROPOSAL = "init-default-proposal"
    INIT_PGF_STEWARD_PROPOSAL = "init-pgf-steward-proposal"
    INIT_PGF_FUNDING_PROPOSAL = "init-pgf-funding-proposal"
    VOTE_PROPOSAL = "vote-proposal"
    SHIELDING_TRANSFER = "shielding-transfer"
    SHIELDED_TRANSFER = "shielded-transfer"
    UNSHIELDING_TRANSFER = "unshielding-transfer"
    BATCH = "batch"
    BOND_BATCH = "bond-batch"
    REDELEGATE_BATCH = "redelegate-batch"
    TRANSPARENT_TRANSFER_BATCH = "transparent-transfer-batch"
    SHIELDING_BATCH = "shielding-batch"


def parse_task_type(name: str) -> TaskType:
    try:
        return TaskType(name.strip().lower().replace("_", "-"))
    except ValueError:
        raise ValueError(f"unknown task type: {name!r}") from None


# -- candidate lists ---------------------------------------------------------


def fee_payers(m: GeneratorModel) -> List[str]:
    return m.gas_payers(MIN_FEE)


def funded_payers(m: GeneratorModel) -> List[str]:
    """Fee payers that can also move at least one fee's worth of tokens."""
    return m.gas_payers(2 * MIN_FEE)


def transfer_sources(m: GeneratorModel) -> List[str]:
    return m.spendable_sources(2 * MIN_FEE)


def delegated_bonds(m: GeneratorModel) -> List[BondEntry]:
    payers = set(fee_payers(m))
    return [b for b in m.non_zero_bonds() if b.delegator in payers]


def withdrawable_unbonds(m: GeneratorModel) -> List[BondEntry]:
    """One unbond per (delegator, validator origin); a withdraw pays out the whole group."""
    payers = set(fee_payers(m))
    seen = set()
    out = []
    for u in m.non_zero_unbonds():
        key = (u.delegator, u.origin)
        if u.delegator in payers and key not in seen:
            seen.add(key)
            out.append(u)
    return out


def proposal_authors(m: GeneratorModel) -> List[str]:
    return m.gas_payers(PROPOSAL_FUNDS + MIN_FEE)


def voters(m: GeneratorModel) -> List[str]:
    return [a for a in fee_payers(m) if m.has_any_bond(a)]


def open_proposals(m: GeneratorModel) -> List[ProposalEntry]:
    return m.votable_proposals()


def shielded_spenders(m: GeneratorModel) -> List[str]:
    return m.shielded_owners(1)


# -- predicates --------------------------------------------------------------


def _has_payer(m: GeneratorModel) -> bool:
    return bool(fee_payers(m))


def _transfer(m: GeneratorModel) -> bool:
    return _has_payer(m) and bool(transfer_sources(m)) and len(m.accounts) > 1


def _redelegate(m: GeneratorModel) -> bool:
    return bool(delegated_bonds(m)) and m.consensus_validator_count() >= 2


def _virgin(m: GeneratorModel) -> bool:
    return _has_payer(m) and bool(m.virgin_established())


def _validator(active=None) -> Callable[[GeneratorModel], bool]:
    return lambda m: _has_payer(m) and bool(m.validators(active=active))


FEASIBLE: Dict[TaskType, Callable[[GeneratorModel], bool]] = {
    TaskType.NEW_WALLET_KEY: lambda m: True,
    TaskType.FAUCET_TRANSFER: lambda m: bool(m.accounts),
    TaskType.TRANSPARENT_TRANSFER: _transfer,
    TaskType.BOND: lambda m: bool(funded_payers(m)),
    TaskType.UNBOND: lambda m: bool(delegated_bonds(m)),
    TaskType.WITHDRAW: lambda m: bool(withdrawable_unbonds(m)),
    TaskType.REDELEGATE: _redelegate,
    TaskType.CLAIM_REWARDS: lambda m: bool(delegated_bonds(m)),
    TaskType.INIT_ACCOUNT: _has_payer,
    TaskType.UPDATE_ACCOUNT: _virgin,
    TaskType.BECOME_VALIDATOR: _virgin,
    TaskType.DEACTIVATE_VALIDATOR: _validator(active=True),
    TaskType.REACTIVATE_VALIDATOR: _validator(active=False),
    TaskType.CHANGE_METADATA: _validator(),
    TaskType.CHANGE_CONSENSUS_KEY: _validator(),
    TaskType.INIT_DEFAULT_PROPOSAL: lambda m: bool(proposal_authors(m)),
    TaskType.INIT_PGF_STEWARD_PROPOSAL: lambda m: bool(proposal_authors(m)),
    TaskType.INIT_PGF_FUNDING_PROPOSAL: lambda m: bool(proposal_authors(m)),
    TaskType.VOTE_PROPOSAL: lambda m: bool(voters(m)) and bool(open_proposals(m)),
    TaskType.SHIELDING_TRANSFER: lambda m: _transfer(m) and bool(m.implicit_accounts()),
    TaskType.SHIELDED_TRANSFER: lambda m: (
        _has_payer(m) and bool(shielded_spenders(m)) and len(m.implicit_accounts()) >= 2
    ),
    TaskType.UNSHIELDING_TRANSFER: lambda m: _has_payer(m) and bool(shielded_spenders(m)),
    TaskType.BATCH: lambda m: bool(funded_payers(m)),
    TaskType.BOND_BATCH: lambda m: bool(funded_payers(m)),
    TaskType.REDELEGATE_BATCH: _redelegate,
    TaskType.TRANSPARENT_TRANSFER_BATCH: lambda m: bool(funded_payers(m)) and len(m.accounts) > 1,
    TaskType.SHIELDING_BATCH: lambda m: bool(funded_payers(m)),
}


def is_feasible(m: GeneratorModel, task: TaskType) -> bool:
    return FEASIBLE[task](m)
