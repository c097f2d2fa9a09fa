"""
Scenario document format shared by the generator and the runner.
"""

from .kinds import StepKind, parse_kind
from .value import Fuzz, Literal, Ref, Value, fuzz, ref, v, value_from_dict, value_to_dict
from .settings import ScenarioSettings, TxSettings
from .document import (
    Scenario,
    Step,
    StepConfig,
    load_scenario,
    save_scenario,
    validate_references,
)

__all__ = [
    "StepKind",
    "parse_kind",
    "Fuzz",
    "Literal",
    "Ref",
    "Value",
    "fuzz",
    "ref",
    "v",
    "value_from_dict",
    "value_to_dict",
    "ScenarioSettings",
    "TxSettings",
    "Scenario",
    "Step",
    "StepConfig",
    "load_scenario",
    "save_scenario",
    "validate_references",
]
