"""
Scenario generator: a chain-state model, per-task feasibility and synthesis,
and the builder that splices tasks and hooks into a document.
"""

from .builder import DEFAULT_WEIGHTS, GeneratorConfig, ScenarioBuilder, generate_scenario, parse_weights
from .feasibility import TaskType, is_feasible, parse_task_type
from .model import GeneratorModel

__all__ = [
    "DEFAULT_WEIGHTS",
    "GeneratorConfig",
    "GeneratorModel",
    "ScenarioBuilder",
    "TaskType",
    "generate_scenario",
    "is_feasible",
    "parse_task_type",
    "parse_weights",
]
