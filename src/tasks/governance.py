"""Governance proposals and votes."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..core.errors import BuildError, RpcError
from ..core.resolver import PROPOSAL_IDS
from ..integration.sdk import PROPOSAL_COUNTER_KEY, TxResponse
from ..scenario.document import StepConfig
from ..scenario.fields import (
    PROPOSAL_CONTINUOUS,
    PROPOSAL_END_EPOCH,
    PROPOSAL_GRACE_EPOCH,
    PROPOSAL_ID,
    PROPOSAL_RETRO,
    PROPOSAL_START_EPOCH,
    PROPOSAL_STEWARD_ADD,
    PROPOSAL_STEWARD_REMOVE,
    PROPOSER_ADDRESS,
    VOTE,
    VOTER_ADDRESS,
)
from ..scenario.kinds import StepKind
from ..state.canonical import canonical_json
from .base import Prepared, StepContext, account_address, optional, require, signer_alias, to_address, value_list

VOTES = ("yay", "nay", "abstain")

_PROPOSAL_TYPES = {
    StepKind.INIT_DEFAULT_PROPOSAL: "default",
    StepKind.INIT_PGF_STEWARD_PROPOSAL: "pgf-steward",
    StepKind.INIT_PGF_FUNDING_PROPOSAL: "pgf-funding",
}


def random_vote(rng) -> str:
    return VOTES[rng.randrange(len(VOTES))]


def proposal_epochs(
    ctx: StepContext, start: Optional[int], end: Optional[int], grace: Optional[int]
) -> Tuple[int, int, int]:
    """Fill in missing epochs from the chain's governance parameters."""
    if start is not None and end is not None and grace is not None:
        return start, end, grace
    params = ctx.sdk.governance_parameters()
    period = params.min_proposal_voting_period
    if start is None:
        current = ctx.sdk.query_epoch()
        start = current + period - current % period
    if end is None:
        end = start + period
    if grace is None:
        grace = end + params.min_proposal_grace_epochs
    return start, end, grace


def _funding(ctx: StepContext, config: StepConfig, prefix: str) -> List[Dict[str, Any]]:
    targets = value_list(config, f"{prefix}_funding_target")
    amounts = value_list(config, f"{prefix}_funding_amount")
    if len(targets) != len(amounts):
        raise BuildError(f"{prefix} funding targets and amounts differ in length")
    out = []
    for target, amount in zip(targets, amounts):
        out.append({"target": account_address(ctx, target), "amount": ctx.resolver.resolve_int(amount)})
    return out


def prepare_init_proposal(ctx: StepContext, config: StepConfig) -> Prepared:
    signer = ctx.resolver.resolve_account(require(config, "signer"))
    author = to_address(ctx, signer)
    start = ctx.resolver.resolve_optional_int(optional(config, "start_epoch"))
    end = ctx.resolver.resolve_optional_int(optional(config, "end_epoch"))
    grace = ctx.resolver.resolve_optional_int(optional(config, "grace_epoch"))

    data: Dict[str, Any] = {}
    fields: Dict[str, str] = {}
    if config.kind is StepKind.INIT_PGF_STEWARD_PROPOSAL:
        add_value = optional(config, "steward_add")
        add = account_address(ctx, add_value) if add_value is not None else None
        remove = [account_address(ctx, v) for v in value_list(config, "steward_remove")]
        if add is None and not remove:
            raise BuildError("steward proposal adds and removes nobody")
        data = {"add": add, "remove": remove}
        fields[PROPOSAL_STEWARD_ADD] = add or ""
        fields[PROPOSAL_STEWARD_REMOVE] = canonical_json(remove)
    elif config.kind is StepKind.INIT_PGF_FUNDING_PROPOSAL:
        continuous = _funding(ctx, config, "continuous")
        retro = _funding(ctx, config, "retro")
        data = {"continuous": continuous, "retro": retro}
        fields[PROPOSAL_CONTINUOUS] = canonical_json(continuous)
        fields[PROPOSAL_RETRO] = canonical_json(retro)

    start, end, grace = proposal_epochs(ctx, start, end, grace)
    if not start < end < grace:
        raise BuildError(f"invalid proposal epochs start={start} end={end} grace={grace}")
    fields.update(
        {
            PROPOSAL_START_EPOCH: str(start),
            PROPOSAL_END_EPOCH: str(end),
            PROPOSAL_GRACE_EPOCH: str(grace),
            PROPOSER_ADDRESS: author,
        }
    )
    return Prepared(
        kind=config.kind.value,
        args={
            "author": author,
            "proposal_type": _PROPOSAL_TYPES[config.kind],
            "start_epoch": start,
            "end_epoch": end,
            "grace_epoch": grace,
            "content": {"scenario": "tester"},
            "data": data,
        },
        fields=fields,
        default_signer=signer_alias(ctx, signer),
    )


def interpret_init_proposal(ctx: StepContext, prepared: Prepared, response: TxResponse) -> Dict[str, str]:
    # The counter holds the next id; proposals are submitted one per block.
    raw = ctx.sdk.query_storage_value(PROPOSAL_COUNTER_KEY)
    if raw is None:
        raise RpcError("governance counter is not readable")
    return {PROPOSAL_ID: str(int(raw) - 1)}


def prepare_vote(ctx: StepContext, config: StepConfig) -> Prepared:
    proposal_id = ctx.resolver.resolve_int(require(config, "proposal_id"), fuzz_from=PROPOSAL_IDS)
    vote = ctx.resolver.resolve(require(config, "vote"), generator=random_vote).lower()
    if vote not in VOTES:
        raise BuildError(f"unknown vote {vote!r}")
    voter = ctx.resolver.resolve_account(require(config, "voter"))
    voter_address = to_address(ctx, voter)
    return Prepared(
        kind=config.kind.value,
        args={"proposal_id": proposal_id, "vote": vote, "voter": voter_address},
        fields={VOTE: vote, VOTER_ADDRESS: voter_address},
        default_signer=signer_alias(ctx, voter),
    )
