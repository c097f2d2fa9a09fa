"""Field names published by each step kind.

These strings are the contract between generated documents and the runner:
a ``Ref`` may only name a field its target step publishes. Indexed fields
are written as templates with an ``{i}`` placeholder.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, Optional, Tuple

from .kinds import StepKind

ALIAS = "alias"
PUBLIC_KEY = "public-key"
STATE = "state"
ADDRESS = "address"
PAYMENT_ADDRESS = "payment-address"
SPENDING_KEY = "spending-key"

SOURCE = "source"
TARGET = "target"
TOKEN = "token"
AMOUNT = "amount"

THRESHOLD = "threshold"
TOTAL_PUBLIC_KEYS = "total_public_keys"
PUBLIC_KEY_AT_INDEX = "public_key_at_index-{i}"

SOURCE_ADDRESS = "source-address"
VALIDATOR_ADDRESS = "validator-address"
SRC_VALIDATOR_ADDRESS = "src-validator-address"
DEST_VALIDATOR_ADDRESS = "dest-validator-address"
DELEGATOR_ADDRESS = "delegator-address"

PROPOSAL_ID = "proposal-id"
PROPOSAL_START_EPOCH = "proposal-start-epoch"
PROPOSAL_END_EPOCH = "proposal-end-epoch"
PROPOSAL_GRACE_EPOCH = "proposal-grace-epoch"
PROPOSER_ADDRESS = "proposer-address"
PROPOSAL_STATUS = "proposal-status"
PROPOSAL_STEWARD_ADD = "proposal-steward-add"
PROPOSAL_STEWARD_REMOVE = "proposal-steward-remove"
PROPOSAL_CONTINUOUS = "proposal-continuous"
PROPOSAL_RETRO = "proposal-retro"

VOTE = "vote"
VOTER_ADDRESS = "voter-address"

CONSENSUS_KEY = "consensus-key"
PROTOCOL_KEY = "protocol-key"
COMMISSION_RATE = "commission-rate"
EMAIL = "email"
DESCRIPTION = "description"

BATCH_SIZE = "batch-size"
BATCH_ATOMIC = "batch-atomic"
KIND_I = "kind-{i}"
SOURCE_I = "source-{i}"
TARGET_I = "target-{i}"
AMOUNT_I = "amount-{i}"
TOKEN_I = "token-{i}"
SRC_VALIDATOR_I = "src-validator-{i}"

TOTAL_VALIDATORS = "total-validators"
VALIDATOR_I_ADDRESS = "validator-{i}-address"
VALIDATOR_I_STATE = "validator-{i}-state"

TOTAL_PROPOSALS = "total-proposals"
PROPOSAL_I_ID = "proposal-{i}-id"
PROPOSAL_I_START_EPOCH = "proposal-{i}-start-epoch"
PROPOSAL_I_END_EPOCH = "proposal-{i}-end-epoch"
PROPOSAL_I_GRACE_EPOCH = "proposal-{i}-grace-epoch"
PROPOSAL_I_STATUS = "proposal-{i}-status"

EPOCH = "epoch"
HEIGHT = "height"

# Older documents name a few fields differently.
FIELD_SYNONYMS: Dict[str, str] = {
    "proposal-proposer-address": PROPOSER_ADDRESS,
    "proposal-continous": PROPOSAL_CONTINUOUS,
    "address-alias": ALIAS,
}

# Older parameter keys; kebab-case keys are folded to snake_case separately.
PARAM_SYNONYMS: Dict[str, str] = {
    "continous_funding_target": "continuous_funding_target",
    "continous_funding_amount": "continuous_funding_amount",
    "author": "signer",
    "proposer": "signer",
    "expected": "outcome",
}


def canonical_field(name: str) -> str:
    return FIELD_SYNONYMS.get(name, name)


def canonical_param(key: str) -> str:
    folded = key.replace("-", "_")
    return PARAM_SYNONYMS.get(folded, folded)


def indexed(template: str, i: int) -> str:
    return template.replace("{i}", str(i))


_TRANSFER = (SOURCE, TARGET, TOKEN, AMOUNT)
_PROPOSAL = (
    PROPOSAL_ID,
    PROPOSAL_START_EPOCH,
    PROPOSAL_END_EPOCH,
    PROPOSAL_GRACE_EPOCH,
    PROPOSER_ADDRESS,
)
_BATCH = (BATCH_SIZE, BATCH_ATOMIC, KIND_I, SOURCE_I, TARGET_I, AMOUNT_I, TOKEN_I)
_ACCOUNT = (ADDRESS, THRESHOLD, TOTAL_PUBLIC_KEYS, PUBLIC_KEY_AT_INDEX)

PUBLISHED_FIELDS: Dict[StepKind, Tuple[str, ...]] = {
    StepKind.WALLET_NEW_KEY: (ALIAS, PUBLIC_KEY, ADDRESS, PAYMENT_ADDRESS, SPENDING_KEY),
    StepKind.REVEAL_PK: (ADDRESS, PUBLIC_KEY),
    StepKind.SHIELDED_SYNC: (),
    StepKind.INIT_ACCOUNT: (ALIAS,) + _ACCOUNT,
    StepKind.UPDATE_ACCOUNT: _ACCOUNT,
    StepKind.TRANSPARENT_TRANSFER: _TRANSFER,
    StepKind.SHIELDING_TRANSFER: _TRANSFER,
    StepKind.SHIELDED_TRANSFER: _TRANSFER,
    StepKind.UNSHIELDING_TRANSFER: _TRANSFER,
    StepKind.BOND: (SOURCE_ADDRESS, VALIDATOR_ADDRESS, AMOUNT),
    StepKind.UNBOND: (SOURCE_ADDRESS, VALIDATOR_ADDRESS, AMOUNT),
    StepKind.WITHDRAW: (SOURCE_ADDRESS, VALIDATOR_ADDRESS),
    StepKind.REDELEGATE: (SOURCE_ADDRESS, SRC_VALIDATOR_ADDRESS, DEST_VALIDATOR_ADDRESS, AMOUNT),
    StepKind.CLAIM_REWARDS: (VALIDATOR_ADDRESS, DELEGATOR_ADDRESS),
    StepKind.INIT_DEFAULT_PROPOSAL: _PROPOSAL,
    StepKind.INIT_PGF_STEWARD_PROPOSAL: _PROPOSAL + (PROPOSAL_STEWARD_ADD, PROPOSAL_STEWARD_REMOVE),
    StepKind.INIT_PGF_FUNDING_PROPOSAL: _PROPOSAL + (PROPOSAL_CONTINUOUS, PROPOSAL_RETRO),
    StepKind.VOTE_PROPOSAL: (VOTE, VOTER_ADDRESS),
    StepKind.BECOME_VALIDATOR: (VALIDATOR_ADDRESS, CONSENSUS_KEY, PROTOCOL_KEY, COMMISSION_RATE, EMAIL),
    StepKind.DEACTIVATE_VALIDATOR: (VALIDATOR_ADDRESS,),
    StepKind.REACTIVATE_VALIDATOR: (VALIDATOR_ADDRESS,),
    StepKind.CHANGE_METADATA: (VALIDATOR_ADDRESS, EMAIL, DESCRIPTION, COMMISSION_RATE),
    StepKind.CHANGE_CONSENSUS_KEY: (VALIDATOR_ADDRESS, CONSENSUS_KEY),
    StepKind.BATCH: _BATCH,
    StepKind.BOND_BATCH: _BATCH,
    StepKind.REDELEGATE_BATCH: _BATCH + (SRC_VALIDATOR_I,),
    StepKind.TRANSPARENT_TRANSFER_BATCH: _BATCH,
    StepKind.SHIELDING_BATCH: _BATCH,
    StepKind.QUERY_VALIDATORS: (TOTAL_VALIDATORS, VALIDATOR_I_ADDRESS, VALIDATOR_I_STATE),
    StepKind.QUERY_BALANCE: (ADDRESS, TOKEN, AMOUNT),
    StepKind.QUERY_PROPOSALS: (
        TOTAL_PROPOSALS,
        PROPOSAL_I_ID,
        PROPOSAL_I_START_EPOCH,
        PROPOSAL_I_END_EPOCH,
        PROPOSAL_I_GRACE_EPOCH,
        PROPOSAL_I_STATUS,
    ),
    StepKind.QUERY_PROPOSAL: _PROPOSAL + (PROPOSAL_STATUS,),
    StepKind.QUERY_BONDED_STAKE: (EPOCH, AMOUNT),
    StepKind.QUERY_ACCOUNT: _ACCOUNT,
    StepKind.WAIT_EPOCH: (EPOCH,),
    StepKind.WAIT_HEIGHT: (HEIGHT,),
}

# Steps that can seed a Fuzz value: (total field, item template).
FUZZ_LISTS: Dict[StepKind, Tuple[str, str]] = {
    StepKind.QUERY_VALIDATORS: (TOTAL_VALIDATORS, VALIDATOR_I_ADDRESS),
    StepKind.QUERY_PROPOSALS: (TOTAL_PROPOSALS, PROPOSAL_I_ID),
}


@lru_cache(maxsize=None)
def _field_pattern(template: str) -> "re.Pattern[str]":
    parts = template.split("{i}")
    return re.compile(r"(0|[1-9][0-9]*)".join(re.escape(p) for p in parts) + r"\Z")


def publishes(kind: StepKind, field: str) -> bool:
    """True when a successful step of ``kind`` may publish ``field``."""
    for template in PUBLISHED_FIELDS.get(kind, ()):
        if "{i}" in template:
            if _field_pattern(template).match(field):
                return True
        elif template == field:
            return True
    return False


def fuzz_list(kind: StepKind) -> Optional[Tuple[str, str]]:
    return FUZZ_LISTS.get(kind)
