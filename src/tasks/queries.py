"""Read-only chain queries. Their published fields seed ``Fuzz`` values."""

from __future__ import annotations

from typing import Dict

from ..core.resolver import PROPOSAL_IDS
from ..scenario.document import StepConfig
from ..scenario.fields import (
    ADDRESS,
    AMOUNT,
    EPOCH,
    PROPOSAL_END_EPOCH,
    PROPOSAL_GRACE_EPOCH,
    PROPOSAL_I_END_EPOCH,
    PROPOSAL_I_GRACE_EPOCH,
    PROPOSAL_I_ID,
    PROPOSAL_I_START_EPOCH,
    PROPOSAL_I_STATUS,
    PROPOSAL_ID,
    PROPOSAL_START_EPOCH,
    PROPOSAL_STATUS,
    PROPOSER_ADDRESS,
    PUBLIC_KEY_AT_INDEX,
    THRESHOLD,
    TOKEN,
    TOTAL_PROPOSALS,
    TOTAL_PUBLIC_KEYS,
    TOTAL_VALIDATORS,
    VALIDATOR_I_ADDRESS,
    VALIDATOR_I_STATE,
    indexed,
)
from .base import StepContext, StepResult, account_address, optional, require


def execute_query_validators(ctx: StepContext, config: StepConfig) -> StepResult:
    epoch = ctx.resolver.resolve_optional_int(optional(config, "epoch"))
    validators = sorted(ctx.sdk.query_all_validators(epoch), key=lambda info: info.address)
    fields: Dict[str, str] = {TOTAL_VALIDATORS: str(len(validators))}
    for i, info in enumerate(validators):
        fields[indexed(VALIDATOR_I_ADDRESS, i)] = info.address
        fields[indexed(VALIDATOR_I_STATE, i)] = info.state
    return StepResult.success(fields)


def execute_query_balance(ctx: StepContext, config: StepConfig) -> StepResult:
    owner = account_address(ctx, require(config, "address"))
    token = account_address(ctx, require(config, "token"))
    amount = ctx.sdk.token_balance(token, owner)
    return StepResult.success({ADDRESS: owner, TOKEN: token, AMOUNT: str(amount)})


def execute_query_proposals(ctx: StepContext, config: StepConfig) -> StepResult:
    proposals = sorted(ctx.sdk.query_proposals(), key=lambda p: p.id)
    fields: Dict[str, str] = {TOTAL_PROPOSALS: str(len(proposals))}
    for i, p in enumerate(proposals):
        fields[indexed(PROPOSAL_I_ID, i)] = str(p.id)
        fields[indexed(PROPOSAL_I_START_EPOCH, i)] = str(p.start_epoch)
        fields[indexed(PROPOSAL_I_END_EPOCH, i)] = str(p.end_epoch)
        fields[indexed(PROPOSAL_I_GRACE_EPOCH, i)] = str(p.grace_epoch)
        fields[indexed(PROPOSAL_I_STATUS, i)] = p.status
    return StepResult.success(fields)


def execute_query_proposal(ctx: StepContext, config: StepConfig) -> StepResult:
    proposal_id = ctx.resolver.resolve_int(require(config, "proposal_id"), fuzz_from=PROPOSAL_IDS)
    proposal = ctx.sdk.query_proposal_by_id(proposal_id)
    if proposal is None:
        return StepResult.fail(f"proposal {proposal_id} not found")
    return StepResult.success(
        {
            PROPOSAL_ID: str(proposal.id),
            PROPOSAL_START_EPOCH: str(proposal.start_epoch),
            PROPOSAL_END_EPOCH: str(proposal.end_epoch),
            PROPOSAL_GRACE_EPOCH: str(proposal.grace_epoch),
            PROPOSER_ADDRESS: proposal.proposer,
            PROPOSAL_STATUS: proposal.status,
        }
    )


def execute_query_bonded_stake(ctx: StepContext, config: StepConfig) -> StepResult:
    epoch = ctx.resolver.resolve_optional_int(optional(config, "epoch"))
    if epoch is None:
        epoch = ctx.sdk.query_epoch()
    return StepResult.success({EPOCH: str(epoch), AMOUNT: str(ctx.sdk.query_bonded_stake(epoch))})


def execute_query_account(ctx: StepContext, config: StepConfig) -> StepResult:
    address = account_address(ctx, require(config, "address"))
    info = ctx.sdk.query_account(address)
    if info is None:
        return StepResult.fail(f"account {address} not found")
    fields = {ADDRESS: info.address, THRESHOLD: str(info.threshold), TOTAL_PUBLIC_KEYS: str(len(info.public_keys))}
    for i, pk in enumerate(info.public_keys):
        fields[indexed(PUBLIC_KEY_AT_INDEX, i)] = pk
    return StepResult.success(fields)
