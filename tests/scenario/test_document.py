from __future__ import annotations

import json

import pytest

from src.core.errors import DocumentError
from src.scenario.document import Scenario, StepConfig, load_scenario, save_scenario, validate_references
from src.scenario.kinds import StepKind, parse_kind
from src.scenario.value import Fuzz, Literal, Ref


def _doc(*configs, settings=None):
    obj = {"steps": [{"id": i, "config": c} for i, c in enumerate(configs)]}
    if settings is not None:
        obj["settings"] = settings
    return obj


def test_parses_values_and_settings() -> None:
    scenario = Scenario.from_dict(
        _doc(
            {"type": "wallet-new-key", "parameters": {}},
            {"type": "query-validators", "parameters": {}},
            {
                "type": "tx-bond",
                "parameters": {
                    "source": {"type": "ref", "value": 0, "field": "alias"},
                    "validator": {"type": "fuzz", "value": 1},
                    "amount": {"type": "value", "value": "10"},
                },
                "settings": {"signers": ["faucet"], "gas-payer": "faucet", "gas_limit": 300000},
            },
            settings={"retry-for": 600},
        )
    )
    assert len(scenario) == 3
    assert scenario.settings.retry_for == 600
    bond = scenario.steps[2].config
    assert bond.kind is StepKind.BOND
    assert bond.param("source") == Ref(0, "alias")
    assert bond.param("validator") == Fuzz(1)
    assert bond.param("amount") == Literal("10")
    assert bond.settings.signers == ("faucet",)
    assert bond.settings.gas_payer == "faucet"
    assert bond.settings.gas_limit == 300000
    assert validate_references(scenario) == []


def test_synonyms_are_normalized() -> None:
    scenario = Scenario.from_dict(
        _doc(
            {"type": "tx-init-proposal", "parameters": {"author": "faucet", "start-epoch": 3}},
            {
                "type": "check-storage",
                "parameters": {"step": "0", "field": "proposal-proposer-address", "value": "x"},
            },
        )
    )
    proposal = scenario.steps[0].config
    assert proposal.kind is StepKind.INIT_DEFAULT_PROPOSAL
    assert proposal.param("signer") == Literal("faucet")
    assert proposal.param("start_epoch") == Literal("3")
    assert scenario.steps[1].config.param("field") == Literal("proposer-address")

    written = scenario.to_dict()
    assert written["steps"][0]["config"]["type"] == "tx-init-default-proposal"
    assert "signer" in written["steps"][0]["config"]["parameters"]


def test_json_round_trip_is_stable(tmp_path) -> None:
    scenario = Scenario.from_dict(
        _doc(
            {"type": "wallet-new-key", "parameters": {}},
            {
                "type": "tx-bond-batch",
                "parameters": {
                    "txs": [
                        {"type": "tx-bond", "parameters": {"source": "faucet", "validator": "tnam1v", "amount": "1"}},
                        {"type": "tx-bond", "parameters": {"source": "faucet", "validator": "tnam1v", "amount": "2"}},
                    ],
                    "atomic": {"type": "value", "value": "true"},
                },
            },
            settings={"retry_for": 30},
        )
    )
    path = save_scenario(tmp_path / "nested" / "s.json", scenario)
    again = load_scenario(path)
    assert again.to_dict() == scenario.to_dict()
    inner = again.steps[1].config.param("txs")
    assert [c.kind for c in inner] == [StepKind.BOND, StepKind.BOND]
    assert isinstance(inner[0], StepConfig)


def test_non_contiguous_ids_rejected() -> None:
    obj = {
        "steps": [
            {"id": 0, "config": {"type": "wallet-new-key", "parameters": {}}},
            {"id": 2, "config": {"type": "wallet-new-key", "parameters": {}}},
        ]
    }
    with pytest.raises(DocumentError):
        Scenario.from_dict(obj)


@pytest.mark.parametrize(
    "obj",
    [
        [],
        {"steps": "nope"},
        {"steps": [{"id": 0, "config": {"type": "tx-teleport", "parameters": {}}}]},
        {"steps": [{"id": -1, "config": {"type": "wallet-new-key", "parameters": {}}}]},
        {"steps": [{"id": 0, "config": {"type": "tx-bond", "parameters": {"amount": {"type": "wat"}}}}]},
        {"steps": [{"id": 0, "config": {"type": "tx-bond", "parameters": {"amount": {"type": "ref", "value": 0}}}}]},
    ],
)
def test_malformed_documents_rejected(obj) -> None:
    with pytest.raises(DocumentError):
        Scenario.from_dict(obj)


def test_invalid_json_is_document_error() -> None:
    with pytest.raises(DocumentError):
        Scenario.from_json("{not json")
    with pytest.raises(ValueError):
        parse_kind("tx-unknown")


def test_validate_references_reports_violations() -> None:
    scenario = Scenario.from_dict(
        _doc(
            {"type": "wallet-new-key", "parameters": {}},
            {"type": "tx-bond", "parameters": {"source": {"type": "ref", "value": 0, "field": "validator-address"}}},
            {"type": "tx-bond", "parameters": {"validator": {"type": "fuzz", "value": 0}}},
            {"type": "tx-bond", "parameters": {"source": {"type": "ref", "value": 5, "field": "alias"}}},
            {"type": "check-step", "parameters": {"id": "9", "outcome": "success"}},
        )
    )
    violations = validate_references(scenario)
    assert len(violations) == 4
    assert any("does not publish 'validator-address'" in v for v in violations)
    assert any("publishes no list" in v for v in violations)
    assert any("ref to step 5" in v for v in violations)
    assert any("checks step 9" in v for v in violations)


def test_indexed_fields_are_publishable() -> None:
    scenario = Scenario.from_dict(
        _doc(
            {"type": "query-validators", "parameters": {}},
            {"type": "tx-bond", "parameters": {"validator": {"type": "ref", "value": 0, "field": "validator-2-address"}}},
        )
    )
    assert validate_references(scenario) == []


def test_written_json_uses_canonical_shape() -> None:
    scenario = Scenario.from_dict(_doc({"type": "tx-withdraw", "parameters": {"source": "faucet"}}))
    obj = json.loads(scenario.to_json())
    assert obj == {
        "settings": {},
        "steps": [
            {
                "id": 0,
                "config": {"type": "tx-withdraw", "parameters": {"source": {"type": "value", "value": "faucet"}}},
            }
        ],
    }
