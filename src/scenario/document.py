"""
Scenario document model and JSON codec.

On disk a scenario is::

    {
      "settings": {"retry_for": 600},
      "steps": [
        {"id": 0, "config": {"type": "wallet-new-key", "parameters": {}}},
        ...
      ]
    }

Parameter values are ``Value`` objects (see ``value.py``), lists of values,
or, for the ``txs`` parameter of batch steps, lists of inner step configs.
Older documents may use synonym tags, field names, kebab-case parameter keys
and bare literals; parsing normalizes all of them, so serializing a parsed
document only ever writes canonical names.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..core.errors import DocumentError
from .fields import canonical_field, canonical_param, fuzz_list, publishes
from .kinds import StepKind, parse_kind
from .settings import ScenarioSettings, TxSettings
from .value import Fuzz, Literal, Ref, Value, value_from_dict, value_to_dict

BATCH_TXS = "txs"
STORAGE_FIELD = "field"

Param = Union[Value, List[Value], List["StepConfig"]]


@dataclass
class StepConfig:
    kind: StepKind
    parameters: Dict[str, Any] = field(default_factory=dict)
    settings: Optional[TxSettings] = None

    def param(self, key: str) -> Any:
        return self.parameters.get(key)

    def to_dict(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        for key, raw in self.parameters.items():
            params[key] = _param_to_json(raw)
        out: Dict[str, Any] = {"type": self.kind.value, "parameters": params}
        if self.settings is not None:
            out["settings"] = self.settings.to_dict()
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> "StepConfig":
        if not isinstance(obj, dict):
            raise DocumentError("step config must be an object")
        kind = parse_kind(obj.get("type"))
        raw_params = obj.get("parameters") or {}
        if not isinstance(raw_params, dict):
            raise DocumentError(f"{kind.value}: parameters must be an object")
        params: Dict[str, Any] = {}
        for key, raw in raw_params.items():
            if raw is None:
                continue
            name = canonical_param(str(key))
            if name == BATCH_TXS and kind.is_batch:
                if not isinstance(raw, list):
                    raise DocumentError(f"{kind.value}: txs must be a list")
                params[name] = [cls.from_dict(inner) for inner in raw]
            else:
                params[name] = _param_from_json(raw)
        if kind is StepKind.CHECK_STORAGE and isinstance(params.get(STORAGE_FIELD), Literal):
            params[STORAGE_FIELD] = Literal(canonical_field(params[STORAGE_FIELD].value))
        settings = obj.get("settings")
        return cls(
            kind=kind,
            parameters=params,
            settings=TxSettings.from_dict(settings) if settings is not None else None,
        )


def _param_to_json(raw: Any) -> Any:
    if isinstance(raw, list):
        return [item.to_dict() if isinstance(item, StepConfig) else value_to_dict(item) for item in raw]
    return value_to_dict(raw)


def _param_from_json(raw: Any) -> Any:
    if isinstance(raw, list):
        return [value_from_dict(item) for item in raw]
    return value_from_dict(raw)


@dataclass
class Step:
    id: int
    config: StepConfig

    @property
    def kind(self) -> StepKind:
        return self.config.kind

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "config": self.config.to_dict()}

    @classmethod
    def from_dict(cls, obj: Any) -> "Step":
        if not isinstance(obj, dict):
            raise DocumentError("step must be an object")
        step_id = obj.get("id")
        if isinstance(step_id, bool) or not isinstance(step_id, int) or step_id < 0:
            raise DocumentError(f"step id must be a non-negative integer, got {step_id!r}")
        return cls(id=step_id, config=StepConfig.from_dict(obj.get("config")))


@dataclass
class Scenario:
    steps: List[Step] = field(default_factory=list)
    settings: ScenarioSettings = field(default_factory=ScenarioSettings)

    def __len__(self) -> int:
        return len(self.steps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": self.settings.to_dict(),
            "steps": [step.to_dict() for step in self.steps],
        }

    def to_json(self, *, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, allow_nan=False)

    @classmethod
    def from_dict(cls, obj: Any) -> "Scenario":
        if not isinstance(obj, dict):
            raise DocumentError("scenario must be an object")
        raw_steps = obj.get("steps")
        if not isinstance(raw_steps, list):
            raise DocumentError("scenario.steps must be a list")
        steps = []
        for i, raw in enumerate(raw_steps):
            try:
                steps.append(Step.from_dict(raw))
            except DocumentError as e:
                raise DocumentError(f"Failed to parse step {i}: {e}") from e
        scenario = cls(steps=steps, settings=ScenarioSettings.from_dict(obj.get("settings")))
        check_contiguous(scenario)
        return scenario

    @classmethod
    def from_json(cls, text: str) -> "Scenario":
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as e:
            raise DocumentError(f"invalid scenario JSON: {e}") from e
        return cls.from_dict(obj)


def load_scenario(path: Union[str, Path]) -> Scenario:
    return Scenario.from_json(Path(path).read_text(encoding="utf-8"))


def save_scenario(path: Union[str, Path], scenario: Scenario) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(scenario.to_json() + "\n", encoding="utf-8")
    return out


def check_contiguous(scenario: Scenario) -> None:
    for expected, step in enumerate(scenario.steps):
        if step.id != expected:
            raise DocumentError(f"step ids must be contiguous from 0: position {expected} has id {step.id}")


def iter_values(config: StepConfig) -> Iterator[Value]:
    """Every symbolic value in a config, including inner batch configs."""
    for raw in config.parameters.values():
        if isinstance(raw, list):
            for item in raw:
                if isinstance(item, StepConfig):
                    yield from iter_values(item)
                else:
                    yield item
        else:
            yield raw


def validate_references(scenario: Scenario) -> List[str]:
    """
    Check that every reference points backwards at a step able to satisfy it.

    Returns a list of human-readable violations (empty when the document is
    well formed).
    """
    violations: List[str] = []
    kinds = {step.id: step.kind for step in scenario.steps}
    for step in scenario.steps:
        for value in iter_values(step.config):
            if isinstance(value, Ref):
                target = kinds.get(value.step_id)
                if value.step_id >= step.id or target is None:
                    violations.append(f"step {step.id}: ref to step {value.step_id} is not earlier")
                elif not publishes(target, value.field):
                    violations.append(
                        f"step {step.id}: step {value.step_id} ({target.value}) does not publish {value.field!r}"
                    )
            elif isinstance(value, Fuzz) and value.seed is not None:
                target = kinds.get(value.seed)
                if value.seed >= step.id or target is None:
                    violations.append(f"step {step.id}: fuzz seed {value.seed} is not earlier")
                elif fuzz_list(target) is None:
                    violations.append(f"step {step.id}: fuzz seed {value.seed} ({target.value}) publishes no list")
        if step.kind in (StepKind.CHECK_STEP, StepKind.CHECK_STORAGE):
            key = "id" if step.kind is StepKind.CHECK_STEP else "step"
            raw = step.config.param(key)
            if not isinstance(raw, Literal) or not raw.value.isdigit():
                violations.append(f"step {step.id}: {key} must be a literal step id")
                continue
            target_id = int(raw.value)
            if target_id >= step.id:
                violations.append(f"step {step.id}: checks step {target_id} which is not earlier")
            elif step.kind is StepKind.CHECK_STORAGE:
                name = step.config.param(STORAGE_FIELD)
                if isinstance(name, Literal) and not publishes(kinds[target_id], name.value):
                    violations.append(
                        f"step {step.id}: step {target_id} ({kinds[target_id].value}) does not publish {name.value!r}"
                    )
    return violations
