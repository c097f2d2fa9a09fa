"""Step kind tags as they appear in ``config.type``."""

from __future__ import annotations

from enum import Enum, unique

from ..core.errors import DocumentError


@unique
class StepKind(Enum):
    # wallet / keys
    WALLET_NEW_KEY = "wallet-new-key"
    REVEAL_PK = "reveal-pk"
    SHIELDED_SYNC = "shielded-sync"

    # accounts
    INIT_ACCOUNT = "tx-init-account"
    UPDATE_ACCOUNT = "tx-update-account"

    # transfers
    TRANSPARENT_TRANSFER = "tx-transparent-transfer"
    SHIELDING_TRANSFER = "tx-shielding-transfer"
    SHIELDED_TRANSFER = "tx-shielded-transfer"
    UNSHIELDING_TRANSFER = "tx-unshielding-transfer"

    # proof of stake
    BOND = "tx-bond"
    UNBOND = "tx-unbond"
    WITHDRAW = "tx-withdraw"
    REDELEGATE = "tx-redelegate"
    CLAIM_REWARDS = "tx-claim-rewards"

    # governance
    INIT_DEFAULT_PROPOSAL = "tx-init-default-proposal"
    INIT_PGF_STEWARD_PROPOSAL = "tx-init-pgf-steward-proposal"
    INIT_PGF_FUNDING_PROPOSAL = "tx-init-pgf-funding-proposal"
    VOTE_PROPOSAL = "tx-vote-proposal"

    # validator lifecycle
    BECOME_VALIDATOR = "tx-become-validator"
    DEACTIVATE_VALIDATOR = "tx-deactivate-validator"
    REACTIVATE_VALIDATOR = "tx-reactivate-validator"
    CHANGE_METADATA = "tx-change-metadata"
    CHANGE_CONSENSUS_KEY = "tx-change-consensus-key"

    # batches
    BATCH = "tx-batch"
    BOND_BATCH = "tx-bond-batch"
    REDELEGATE_BATCH = "tx-redelegate-batch"
    TRANSPARENT_TRANSFER_BATCH = "tx-transparent-transfer-batch"
    SHIELDING_BATCH = "tx-shielding-batch"

    # queries
    QUERY_VALIDATORS = "query-validators"
    QUERY_BALANCE = "query-balance"
    QUERY_PROPOSALS = "query-proposals"
    QUERY_PROPOSAL = "query-proposal"
    QUERY_BONDED_STAKE = "query-bonded-stake"
    QUERY_ACCOUNT = "query-account"

    # checks
    CHECK_BALANCE = "check-balance"
    CHECK_BONDS = "check-bonds"
    CHECK_REVEAL_PK = "check-reveal-pk"
    CHECK_STEP = "check-step"
    CHECK_STORAGE = "check-storage"

    # waits
    WAIT_EPOCH = "wait-epoch"
    WAIT_HEIGHT = "wait-height"

    @property
    def is_check(self) -> bool:
        return self.value.startswith("check-")

    @property
    def is_wait(self) -> bool:
        return self.value.startswith("wait-")

    @property
    def is_query(self) -> bool:
        return self.value.startswith("query-")

    @property
    def is_batch(self) -> bool:
        return self in BATCH_KINDS


BATCH_KINDS = frozenset(
    {
        StepKind.BATCH,
        StepKind.BOND_BATCH,
        StepKind.REDELEGATE_BATCH,
        StepKind.TRANSPARENT_TRANSFER_BATCH,
        StepKind.SHIELDING_BATCH,
    }
)

# Tags written by older scenario files.
KIND_SYNONYMS: dict[str, StepKind] = {
    "tx-init-proposal": StepKind.INIT_DEFAULT_PROPOSAL,
    "tx-init-funding-proposal": StepKind.INIT_PGF_FUNDING_PROPOSAL,
    "tx-init-steward-proposal": StepKind.INIT_PGF_STEWARD_PROPOSAL,
    "tx-reveal-pk": StepKind.REVEAL_PK,
    "check-tx": StepKind.CHECK_STEP,
}


def parse_kind(tag: str) -> StepKind:
    if not isinstance(tag, str):
        raise DocumentError(f"step type must be a string, got {tag!r}")
    try:
        return StepKind(tag)
    except ValueError:
        pass
    kind = KIND_SYNONYMS.get(tag)
    if kind is None:
        raise DocumentError(f"unknown step type: {tag!r}")
    return kind
