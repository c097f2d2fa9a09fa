"""
Dispatch table from step kind to handler.

``execute_step`` is the single entry point the runner uses. It maps every
recoverable error onto a step outcome:

- ``MissingReference`` / ``BuildError``: ``noop``
- ``RpcError`` (other than ``SubmissionTimeout``): ``fail``

``SubmissionTimeout`` propagates to the runner's retry envelope.
"""

from __future__ import annotations

import logging
from typing import Dict

from ..checks import (
    execute_check_balance,
    execute_check_bonds,
    execute_check_reveal_pk,
    execute_check_step,
    execute_check_storage,
    execute_wait_epoch,
    execute_wait_height,
)
from ..core.errors import BuildError, MissingReference, RpcError, SubmissionTimeout
from ..scenario.document import StepConfig
from ..scenario.kinds import StepKind
from ..state.canonical import canonical_json
from .accounts import interpret_init_account, prepare_init_account, prepare_update_account
from .base import StepContext, StepResult, TaskSpec, run_tx
from .batches import execute_batch
from .governance import interpret_init_proposal, prepare_init_proposal, prepare_vote
from .pos import (
    prepare_bond,
    prepare_claim_rewards,
    prepare_redelegate,
    prepare_unbond,
    prepare_withdraw,
)
from .queries import (
    execute_query_account,
    execute_query_balance,
    execute_query_bonded_stake,
    execute_query_proposal,
    execute_query_proposals,
    execute_query_validators,
)
from .transfers import execute_shielded_sync, prepare_transfer
from .validators import (
    prepare_become_validator,
    prepare_change_consensus_key,
    prepare_change_metadata,
    prepare_validator_state,
)
from .wallet import execute_wallet_new_key, prepare_reveal_pk

logger = logging.getLogger(__name__)

_proposal = TaskSpec(prepare=prepare_init_proposal, interpret=interpret_init_proposal)

REGISTRY: Dict[StepKind, TaskSpec] = {
    StepKind.WALLET_NEW_KEY: TaskSpec(execute=execute_wallet_new_key),
    StepKind.REVEAL_PK: TaskSpec(prepare=prepare_reveal_pk),
    StepKind.SHIELDED_SYNC: TaskSpec(execute=execute_shielded_sync),
    StepKind.INIT_ACCOUNT: TaskSpec(prepare=prepare_init_account, interpret=interpret_init_account),
    StepKind.UPDATE_ACCOUNT: TaskSpec(prepare=prepare_update_account),
    StepKind.TRANSPARENT_TRANSFER: TaskSpec(prepare=prepare_transfer),
    StepKind.SHIELDING_TRANSFER: TaskSpec(prepare=prepare_transfer),
    StepKind.SHIELDED_TRANSFER: TaskSpec(prepare=prepare_transfer),
    StepKind.UNSHIELDING_TRANSFER: TaskSpec(prepare=prepare_transfer),
    StepKind.BOND: TaskSpec(prepare=prepare_bond),
    StepKind.UNBOND: TaskSpec(prepare=prepare_unbond),
    StepKind.WITHDRAW: TaskSpec(prepare=prepare_withdraw),
    StepKind.REDELEGATE: TaskSpec(prepare=prepare_redelegate),
    StepKind.CLAIM_REWARDS: TaskSpec(prepare=prepare_claim_rewards),
    StepKind.INIT_DEFAULT_PROPOSAL: _proposal,
    StepKind.INIT_PGF_STEWARD_PROPOSAL: _proposal,
    StepKind.INIT_PGF_FUNDING_PROPOSAL: _proposal,
    StepKind.VOTE_PROPOSAL: TaskSpec(prepare=prepare_vote),
    StepKind.BECOME_VALIDATOR: TaskSpec(prepare=prepare_become_validator, generates_keys=True),
    StepKind.DEACTIVATE_VALIDATOR: TaskSpec(prepare=prepare_validator_state),
    StepKind.REACTIVATE_VALIDATOR: TaskSpec(prepare=prepare_validator_state),
    StepKind.CHANGE_METADATA: TaskSpec(prepare=prepare_change_metadata),
    StepKind.CHANGE_CONSENSUS_KEY: TaskSpec(prepare=prepare_change_consensus_key, generates_keys=True),
    StepKind.BATCH: TaskSpec(execute=execute_batch),
    StepKind.BOND_BATCH: TaskSpec(execute=execute_batch),
    StepKind.REDELEGATE_BATCH: TaskSpec(execute=execute_batch),
    StepKind.TRANSPARENT_TRANSFER_BATCH: TaskSpec(execute=execute_batch),
    StepKind.SHIELDING_BATCH: TaskSpec(execute=execute_batch),
    StepKind.QUERY_VALIDATORS: TaskSpec(execute=execute_query_validators),
    StepKind.QUERY_BALANCE: TaskSpec(execute=execute_query_balance),
    StepKind.QUERY_PROPOSALS: TaskSpec(execute=execute_query_proposals),
    StepKind.QUERY_PROPOSAL: TaskSpec(execute=execute_query_proposal),
    StepKind.QUERY_BONDED_STAKE: TaskSpec(execute=execute_query_bonded_stake),
    StepKind.QUERY_ACCOUNT: TaskSpec(execute=execute_query_account),
    StepKind.CHECK_BALANCE: TaskSpec(execute=execute_check_balance),
    StepKind.CHECK_BONDS: TaskSpec(execute=execute_check_bonds),
    StepKind.CHECK_REVEAL_PK: TaskSpec(execute=execute_check_reveal_pk),
    StepKind.CHECK_STEP: TaskSpec(execute=execute_check_step),
    StepKind.CHECK_STORAGE: TaskSpec(execute=execute_check_storage),
    StepKind.WAIT_EPOCH: TaskSpec(execute=execute_wait_epoch),
    StepKind.WAIT_HEIGHT: TaskSpec(execute=execute_wait_height),
}


def execute_step(ctx: StepContext, config: StepConfig) -> StepResult:
    spec = REGISTRY.get(config.kind)
    if spec is None:
        raise KeyError(f"no handler registered for {config.kind.value}")
    try:
        if spec.execute is None:
            return run_tx(ctx, spec, config)
        return spec.execute(ctx, config)
    except MissingReference as e:
        return StepResult.noop(str(e))
    except BuildError as e:
        return StepResult.noop(f"build error: {e}")
    except SubmissionTimeout:
        raise
    except RpcError as e:
        logger.warning("step %d (%s) rpc error: %s", ctx.step_id, config.kind.value, e)
        return StepResult.fail(canonical_json({"rpc_error": str(e)}))
