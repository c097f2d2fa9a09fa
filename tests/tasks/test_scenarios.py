from __future__ import annotations

import pytest

from src.gen.builder import GeneratorConfig, ScenarioBuilder
from src.gen.constants import DEFAULT_GAS_LIMIT, NATIVE_SCALE, fee_for
from src.gen.feasibility import TaskType
from src.scenario.document import StepConfig
from src.scenario.fields import TARGET_I, VALIDATOR_ADDRESS, indexed
from src.scenario.kinds import StepKind
from src.scenario.value import Fuzz, Literal, ref, v
from src.state.storage import Outcome
from tests.conftest import Harness

FUNDS = 10 * NATIVE_SCALE


def _funded_key(h: Harness, amount: int = FUNDS) -> int:
    key = len(h.storage)
    assert h.step(StepKind.WALLET_NEW_KEY).outcome is Outcome.SUCCESS
    transfer = h.step(
        StepKind.TRANSPARENT_TRANSFER, source=v("faucet"), target=ref(key, "alias"), token=v("nam"), amount=v(amount)
    )
    assert transfer.outcome is Outcome.SUCCESS
    return key


def test_faucet_then_bond(harness: Harness) -> None:
    outcomes = [
        harness.step(StepKind.WALLET_NEW_KEY),
        harness.step(StepKind.QUERY_VALIDATORS),
        harness.step(StepKind.TRANSPARENT_TRANSFER, source=v("faucet"), target=ref(0, "alias"), token=v("nam"), amount=v(1000000)),
        harness.step(StepKind.BOND, source=ref(0, "alias"), validator=Fuzz(1), amount=v(500000)),
        harness.step(StepKind.CHECK_STEP, id=v(3), outcome=v("success")),
    ]
    assert [r.outcome for r in outcomes] == [Outcome.SUCCESS] * 5
    assert harness.field(0, "alias").startswith("load-tester-")
    assert harness.field(1, "total-validators") == "3"

    validator = harness.field(3, "validator-address")
    delegator = harness.field(3, "source-address")
    assert validator in {harness.field(1, f"validator-{i}-address") for i in range(3)}
    assert harness.chain.ledger.bonds[(delegator, validator)] == 500000


def test_fuzz_seeded_by_failed_step_is_noop(harness: Harness) -> None:
    harness.step(StepKind.WALLET_NEW_KEY)
    failed = harness.step(StepKind.CHECK_BALANCE, address=v("faucet"), token=v("nam"), amount=v(0))
    assert failed.outcome is Outcome.FAIL
    bond = harness.step(StepKind.BOND, source=ref(0, "alias"), validator=Fuzz(1), amount=v(500000))
    assert bond.outcome is Outcome.NOOP
    assert "missing reference" in bond.error
    # A skipped step is not a failed one.
    assert harness.step(StepKind.CHECK_STEP, id=v(2), outcome=v("success")).outcome is Outcome.SUCCESS
    assert harness.step(StepKind.CHECK_STEP, id=v(1), outcome=v("fail")).outcome is Outcome.SUCCESS
    assert harness.chain.submitted == []


def test_unbond_after_bond(harness: Harness) -> None:
    key = _funded_key(harness)
    harness.step(StepKind.QUERY_VALIDATORS)
    bond_id = len(harness.storage)
    harness.step(StepKind.BOND, source=ref(key, "alias"), validator=Fuzz(2), amount=v(500000))
    harness.step(StepKind.QUERY_BALANCE, address=ref(key, "alias"), token=v("nam"))
    unbond = harness.step(
        StepKind.UNBOND, source=ref(key, "alias"), validator=ref(bond_id, VALIDATOR_ADDRESS), amount=v(200000)
    )
    assert unbond.outcome is Outcome.SUCCESS
    assert unbond.fields["validator-address"] == harness.field(bond_id, VALIDATOR_ADDRESS)
    check = harness.step(
        StepKind.CHECK_BONDS,
        delegator=ref(key, "alias"),
        delegate=ref(bond_id, VALIDATOR_ADDRESS),
        amount=v(300000),
    )
    assert check.outcome is Outcome.SUCCESS


def test_unbond_model_entries_are_keyed_by_step() -> None:
    builder = ScenarioBuilder(GeneratorConfig(steps=0, seed=3))
    builder.add_task(TaskType.NEW_WALLET_KEY)
    (alias,) = builder.model.implicit_accounts()
    builder.model.credit(alias, FUNDS)
    entry = builder.model.insert_bond(alias, 4, 500000)
    unbond = builder.model.insert_unbond(entry, 200000, 6)
    assert builder.model.bonds[alias][4].amount == 300000
    assert builder.model.unbonds[alias][6] is unbond
    assert unbond.amount == 200000


@pytest.mark.parametrize("seed", range(5))
def test_redelegate_picks_a_different_validator(seed: int) -> None:
    h = Harness(seed=seed)
    key = _funded_key(h)
    query = len(h.storage)
    h.step(StepKind.QUERY_VALIDATORS)
    bond_id = len(h.storage)
    assert h.step(StepKind.BOND, source=ref(key, "alias"), validator=Fuzz(query), amount=v(1000000)).outcome is Outcome.SUCCESS
    result = h.step(
        StepKind.REDELEGATE,
        source=ref(key, "alias"),
        src_validator=ref(bond_id, VALIDATOR_ADDRESS),
        dest_validator=Fuzz(query),
        amount=v(400000),
    )
    assert result.outcome is Outcome.SUCCESS
    src = result.fields["src-validator-address"]
    dest = result.fields["dest-validator-address"]
    assert src == h.field(bond_id, VALIDATOR_ADDRESS)
    assert dest != src
    delegator = result.fields["source-address"]
    assert h.chain.ledger.bonds[(delegator, src)] == 600000
    assert h.chain.ledger.bonds[(delegator, dest)] == 400000


def test_proposal_then_vote(harness: Harness) -> None:
    key = _funded_key(harness)
    harness.step(StepKind.QUERY_VALIDATORS)
    harness.step(StepKind.BOND, source=ref(key, "alias"), validator=Fuzz(2), amount=v(1000000))
    proposal_id = len(harness.storage)
    proposal = harness.step(StepKind.INIT_DEFAULT_PROPOSAL, signer=v("faucet"))
    assert proposal.outcome is Outcome.SUCCESS
    assert proposal.fields["proposal-id"] == "0"
    assert proposal.fields["proposal-start-epoch"] == "1000"

    wait = harness.step(StepKind.WAIT_EPOCH, to=ref(proposal_id, "proposal-start-epoch"))
    assert int(wait.fields["epoch"]) >= 1000

    vote_id = len(harness.storage)
    vote = harness.step(
        StepKind.VOTE_PROPOSAL,
        proposal_id=ref(proposal_id, "proposal-id"),
        vote=v("yay"),
        voter=ref(key, "alias"),
    )
    assert vote.outcome is Outcome.SUCCESS, vote.error
    assert harness.step(StepKind.CHECK_STEP, id=v(vote_id)).outcome is Outcome.SUCCESS
    assert harness.chain.ledger.proposals[0].votes == {vote.fields["voter-address"]: "yay"}


def test_vote_before_voting_opens_fails(harness: Harness) -> None:
    key = _funded_key(harness)
    harness.step(StepKind.QUERY_VALIDATORS)
    harness.step(StepKind.BOND, source=ref(key, "alias"), validator=Fuzz(2), amount=v(1000000))
    proposal_id = len(harness.storage)
    harness.step(StepKind.INIT_DEFAULT_PROPOSAL, signer=v("faucet"))
    vote = harness.step(
        StepKind.VOTE_PROPOSAL, proposal_id=ref(proposal_id, "proposal-id"), vote=v("nay"), voter=ref(key, "alias")
    )
    # Client-side checks reject it before submission.
    assert vote.outcome is Outcome.NOOP
    assert "not open for voting" in vote.error


def _bond_batch(h: Harness, keys, query: int, atomic: str = "true", amounts=None):
    amounts = amounts or [1000000] * len(keys)
    txs = [
        StepConfig(StepKind.BOND, {"source": ref(k, "alias"), "validator": Fuzz(query), "amount": v(a)})
        for k, a in zip(keys, amounts)
    ]
    return h.step(StepKind.BOND_BATCH, txs=txs, atomic=Literal(atomic))


def test_bond_batch(harness: Harness) -> None:
    keys = [_funded_key(harness) for _ in range(3)]
    query = len(harness.storage)
    harness.step(StepKind.QUERY_VALIDATORS)
    batch_id = len(harness.storage)
    result = _bond_batch(harness, keys, query)
    assert result.outcome is Outcome.SUCCESS, result.error
    assert result.fields["batch-size"] == "3"
    assert result.fields["batch-atomic"] == "true"
    targets = {result.fields[indexed(TARGET_I, i)] for i in range(3)}
    assert len(targets) == 1
    assert all(result.fields[f"kind-{i}"] == "tx-bond" for i in range(3))

    check = harness.step(StepKind.CHECK_STORAGE, step=v(batch_id), field=v("batch-atomic"), value=v("true"))
    assert check.outcome is Outcome.SUCCESS
    (validator,) = targets
    for i in range(3):
        assert harness.chain.ledger.bonds[(result.fields[f"source-{i}"], validator)] == 1000000


def test_atomic_batch_applies_nothing_when_one_inner_fails(harness: Harness) -> None:
    keys = [_funded_key(harness) for _ in range(2)]
    query = len(harness.storage)
    harness.step(StepKind.QUERY_VALIDATORS)
    # The first source also pays the wrapper fee, after which it can no
    # longer cover its own bond.
    sources = {harness.field(k, "address") for k in keys}
    first = harness.field(keys[0], "address")
    result = _bond_batch(harness, keys, query, amounts=[FUNDS - 100, 1000000])
    assert result.outcome is Outcome.FAIL
    assert "insufficient balance" in result.error
    assert not any(d in sources for (d, _) in harness.chain.ledger.bonds)
    assert harness.chain.token_balance(harness.chain.native_token, first) == FUNDS - fee_for(DEFAULT_GAS_LIMIT)


def test_bond_batch_model_entries_keyed_to_batch_step() -> None:
    builder = ScenarioBuilder(GeneratorConfig(steps=0, seed=11))
    for _ in range(3):
        builder.add_task(TaskType.NEW_WALLET_KEY)
    for alias in builder.model.implicit_accounts():
        builder.model.credit(alias, 10 * FUNDS)
        builder.model.reveal(alias)
    main_id = builder.add_task(TaskType.BOND_BATCH)

    batch = builder.configs[main_id]
    assert batch.kind is StepKind.BOND_BATCH
    size = len(batch.param("txs"))
    entries = [
        (alias, builder.model.bonds[alias][main_id])
        for alias in builder.model.implicit_accounts()
        if main_id in builder.model.bonds.get(alias, {})
    ]
    assert len(entries) == size
    assert sorted(e.validator_field for _, e in entries) == [indexed(TARGET_I, i) for i in range(size)]
    # The post-hooks assert the batch succeeded atomically.
    post = builder.configs[main_id + 1 :]
    assert post[0].kind is StepKind.CHECK_STEP
    assert post[1].kind is StepKind.CHECK_STORAGE
    assert post[1].param("value") == v("true")
