from __future__ import annotations

import pytest

from src.core.errors import GenerationStalled, ModelInvariantError
from src.gen import (
    DEFAULT_WEIGHTS,
    GeneratorConfig,
    GeneratorModel,
    ScenarioBuilder,
    TaskType,
    generate_scenario,
    is_feasible,
    parse_task_type,
    parse_weights,
)
from src.gen.constants import DEFAULT_GAS_LIMIT, MIN_FEE, NATIVE_SCALE, fee_for
from src.gen.feasibility import withdrawable_unbonds
from src.integration.mock_chain import MockChain
from src.integration.runner import ScenarioRunner
from src.scenario.document import Scenario, validate_references
from src.scenario.fields import DEST_VALIDATOR_ADDRESS, VALIDATOR_ADDRESS
from src.scenario.kinds import StepKind
from src.scenario.value import Fuzz
from src.state.storage import Outcome


def test_same_seed_same_document() -> None:
    a = generate_scenario(GeneratorConfig(steps=30, seed=7))
    b = generate_scenario(GeneratorConfig(steps=30, seed=7))
    c = generate_scenario(GeneratorConfig(steps=30, seed=8))
    assert a.to_json() == b.to_json()
    assert a.to_json() != c.to_json()


@pytest.mark.parametrize("seed", [1, 2, 3, 4])
def test_generated_documents_are_well_formed(seed: int) -> None:
    scenario = generate_scenario(GeneratorConfig(steps=60, seed=seed, retry_for=120))
    assert [s.id for s in scenario.steps] == list(range(len(scenario)))
    assert validate_references(scenario) == []
    assert scenario.settings.retry_for == 120
    again = Scenario.from_json(scenario.to_json())
    assert again.to_dict() == scenario.to_dict()


def test_first_task_is_always_a_new_key() -> None:
    builder = ScenarioBuilder(GeneratorConfig(steps=0, seed=5))
    # Nothing but key generation is feasible on an empty model.
    assert [t for t in TaskType if is_feasible(builder.model, t)] == [TaskType.NEW_WALLET_KEY]
    assert builder.next_task() is TaskType.NEW_WALLET_KEY


def test_hooks_surround_the_main_step() -> None:
    builder = ScenarioBuilder(GeneratorConfig(steps=0, seed=2))
    builder.add_task(TaskType.NEW_WALLET_KEY)
    transfer_id = builder.add_task(TaskType.FAUCET_TRANSFER)
    kinds = [c.kind for c in builder.configs]
    assert kinds[transfer_id - 1] is StepKind.QUERY_BALANCE
    assert kinds[transfer_id] is StepKind.TRANSPARENT_TRANSFER
    assert kinds[transfer_id + 1 :] == [
        StepKind.CHECK_STEP,
        StepKind.CHECK_BALANCE,
        StepKind.REVEAL_PK,
        StepKind.CHECK_REVEAL_PK,
    ]
    (alias,) = builder.model.implicit_accounts()
    assert builder.model.account(alias).pk_revealed

    bond_id = builder.add_task(TaskType.BOND)
    assert builder.configs[bond_id - 1].kind is StepKind.QUERY_VALIDATORS
    assert builder.configs[bond_id].param("validator") == Fuzz(bond_id - 1)
    assert builder.model.bonds[alias][bond_id].amount > 0


def test_infeasible_task_is_rejected() -> None:
    builder = ScenarioBuilder(GeneratorConfig(steps=0, seed=1))
    with pytest.raises(ValueError):
        builder.add_task(TaskType.UNBOND)


def test_stalls_when_no_weighted_task_is_feasible() -> None:
    config = GeneratorConfig(steps=5, seed=1, weights=parse_weights({"unbond": 1}))
    with pytest.raises(GenerationStalled):
        generate_scenario(config)


def test_zero_weight_tasks_are_never_drawn() -> None:
    weights = parse_weights({"new-wallet-key": 1, "faucet_transfer": 3})
    builder = ScenarioBuilder(GeneratorConfig(steps=40, seed=9, weights=weights))
    builder.build()
    assert set(builder.drawn) == {TaskType.NEW_WALLET_KEY, TaskType.FAUCET_TRANSFER}


def test_parse_weights() -> None:
    weights = parse_weights({"bond": 2, "NEW_WALLET_KEY": 1})
    assert weights[TaskType.BOND] == 2
    assert weights[TaskType.NEW_WALLET_KEY] == 1
    assert weights[TaskType.UNBOND] == 0
    assert set(weights) == set(TaskType)
    assert set(DEFAULT_WEIGHTS) == set(TaskType)


@pytest.mark.parametrize(
    "raw",
    [
        {"bond": -1},
        {"bond": 1.5},
        {"bond": True},
        {"teleport": 1},
        {"bond": 0},
        ["bond"],
    ],
)
def test_parse_weights_rejects(raw) -> None:
    with pytest.raises(ValueError):
        parse_weights(raw)


def test_parse_task_type_accepts_underscores() -> None:
    assert parse_task_type(" Init_Default_Proposal ") is TaskType.INIT_DEFAULT_PROPOSAL


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        GeneratorConfig(steps=-1)
    with pytest.raises(ValueError):
        GeneratorConfig(retry_for=-5)


def test_model_rejects_negative_quantities() -> None:
    model = GeneratorModel()
    model.add_implicit("a", 0)
    model.credit("a", 10)
    with pytest.raises(ModelInvariantError):
        model.debit("a", 11)
    entry = model.insert_bond("a", 1, 5)
    with pytest.raises(ModelInvariantError):
        model.insert_unbond(entry, 6, 2)
    with pytest.raises(ModelInvariantError):
        model.add_implicit("a", 3)
    assert model.violations() == []


POS_GOVERNANCE_WEIGHTS = parse_weights(
    {
        "new-wallet-key": 2,
        "faucet-transfer": 3,
        "bond": 5,
        "unbond": 5,
        "withdraw": 5,
        "redelegate": 3,
        "claim-rewards": 1,
        "init-default-proposal": 2,
        "vote-proposal": 4,
        "bond-batch": 2,
        "redelegate-batch": 2,
    }
)


@pytest.mark.parametrize("weights", [DEFAULT_WEIGHTS, POS_GOVERNANCE_WEIGHTS], ids=["default", "pos-governance"])
@pytest.mark.parametrize("seed", range(11, 21))
def test_generated_scenario_runs_clean_on_mock_chain(seed: int, weights) -> None:
    builder = ScenarioBuilder(GeneratorConfig(steps=40, seed=seed, weights=weights))
    main_ids = [builder.add_task(builder.next_task()) for _ in range(40)]
    scenario = builder.scenario()
    chain = MockChain()
    report = ScenarioRunner(chain, seed=seed, sleep=chain.sleep).run_once(scenario)
    assert len(report.steps) == len(scenario)
    assert report.ok, [s.to_dict() for s in report.failures()]
    outcomes = {s.id: s for s in report.steps}
    skipped = [outcomes[i].to_dict() for i in main_ids if outcomes[i].outcome is Outcome.NOOP]
    assert skipped == []


def _bond_then_unbond(seed: int) -> ScenarioBuilder:
    builder = ScenarioBuilder(GeneratorConfig(steps=0, seed=seed))
    for task in (TaskType.NEW_WALLET_KEY, TaskType.FAUCET_TRANSFER, TaskType.BOND, TaskType.UNBOND):
        builder.add_task(task)
    return builder


def _can_unbond_and_withdraw(builder: ScenarioBuilder) -> bool:
    (alias,) = builder.model.implicit_accounts()
    fees = MIN_FEE + 2 * fee_for(DEFAULT_GAS_LIMIT)
    return is_feasible(builder.model, TaskType.UNBOND) and builder.model.native_balance(alias) >= fees


def test_withdraw_pays_out_every_unbond_of_the_validator() -> None:
    # Bond and unbond amounts are drawn; take the first seed leaving room for another unbond.
    builder = next(b for b in map(_bond_then_unbond, range(50)) if _can_unbond_and_withdraw(b))
    second = builder.add_task(TaskType.UNBOND)
    (alias,) = builder.model.implicit_accounts()
    unbonded = sum(u.amount for u in builder.model.non_zero_unbonds())
    before = builder.model.native_balance(alias)

    withdraw = builder.add_task(TaskType.WITHDRAW)
    assert builder.model.native_balance(alias) == before - fee_for(DEFAULT_GAS_LIMIT) + unbonded
    assert builder.model.non_zero_unbonds() == []
    assert not is_feasible(builder.model, TaskType.WITHDRAW)

    # A later unbond of the same bond is withdrawable again on its own.
    third = builder.add_task(TaskType.UNBOND) if is_feasible(builder.model, TaskType.UNBOND) else None
    again = builder.add_task(TaskType.WITHDRAW) if is_feasible(builder.model, TaskType.WITHDRAW) else None

    chain = MockChain()
    report = ScenarioRunner(chain, seed=0, sleep=chain.sleep).run_once(builder.scenario())
    assert report.ok, [s.to_dict() for s in report.failures()]
    outcomes = {s.id: s.outcome for s in report.steps}
    for step_id in (second, withdraw, third, again):
        if step_id is not None:
            assert outcomes[step_id] is Outcome.SUCCESS, report.steps[step_id].to_dict()
    if third is None or again is not None:
        assert not chain.ledger.unbonds


def test_unbonds_keep_the_origin_of_their_bond() -> None:
    n = NATIVE_SCALE
    model = GeneratorModel()
    model.add_implicit("a", 0)
    model.reveal("a")
    model.credit("a", 100 * n)
    first = model.insert_bond("a", 1, 50 * n)
    u1 = model.insert_unbond(first, 10 * n, 2)
    u2 = model.insert_unbond(first, 15 * n, 3)
    other = model.insert_bond("a", 4, 20 * n)
    u3 = model.insert_unbond(other, 5 * n, 5)
    moved = model.redelegate(first, 5 * n, 6, DEST_VALIDATOR_ADDRESS)
    u4 = model.insert_unbond(moved, 5 * n, 7)

    assert u1.origin == u2.origin == (1, VALIDATOR_ADDRESS)
    assert u3.origin == (4, VALIDATOR_ADDRESS)
    assert u4.origin == (6, DEST_VALIDATOR_ADDRESS)
    assert u4.validator_value().step_id == 6
    assert withdrawable_unbonds(model) == [u1, u3, u4]

    # Same-origin unbonds are paid together; the others may share the
    # validator on chain, so they are dropped without credit.
    assert model.withdraw(u1) == 25 * n
    assert model.native_balance("a") == 55 * n
    assert model.non_zero_unbonds() == []
    assert withdrawable_unbonds(model) == []
    assert model.violations() == []
    with pytest.raises(ModelInvariantError):
        model.withdraw(u1)
