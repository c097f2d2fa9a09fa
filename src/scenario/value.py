"""Symbolic step parameters.

A parameter is exactly one of:

- ``Literal(text)``: a concrete string
- ``Ref(step_id, field)``: a field published by an earlier step
- ``Fuzz(seed)``: a random element of a list published by step ``seed``

On the wire they are ``{"type": "value", "value": ...}``,
``{"type": "ref", "value": step_id, "field": ...}`` and
``{"type": "fuzz", "value": step_id}`` (``value`` omitted for a seedless fuzz).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ..core.errors import DocumentError
from .fields import canonical_field


@dataclass(frozen=True)
class Literal:
    value: str


@dataclass(frozen=True)
class Ref:
    step_id: int
    field: str


@dataclass(frozen=True)
class Fuzz:
    seed: Optional[int] = None


Value = Union[Literal, Ref, Fuzz]


def v(value: Any) -> Literal:
    """Literal shorthand; integers are stored in decimal form."""
    if isinstance(value, bool):
        return Literal("true" if value else "false")
    return Literal(str(value))


def ref(step_id: int, field: str) -> Ref:
    return Ref(int(step_id), field)


def fuzz(seed: Optional[int] = None) -> Fuzz:
    return Fuzz(seed)


def value_to_dict(value: Value) -> Dict[str, Any]:
    if isinstance(value, Literal):
        return {"type": "value", "value": value.value}
    if isinstance(value, Ref):
        return {"type": "ref", "value": value.step_id, "field": value.field}
    if isinstance(value, Fuzz):
        if value.seed is None:
            return {"type": "fuzz"}
        return {"type": "fuzz", "value": value.seed}
    raise TypeError(f"not a Value: {value!r}")


def _require_step_id(raw: Any, what: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise DocumentError(f"{what} must be a non-negative integer step id, got {raw!r}")
    return raw


def value_from_dict(obj: Any) -> Value:
    """Parse one wire value. Bare strings and integers are read as literals."""
    if isinstance(obj, str):
        return Literal(obj)
    if isinstance(obj, int) and not isinstance(obj, bool):
        return Literal(str(obj))
    if not isinstance(obj, dict):
        raise DocumentError(f"value must be an object, got {type(obj).__name__}")

    tag = obj.get("type")
    if tag == "value":
        raw = obj.get("value")
        if isinstance(raw, bool) or not isinstance(raw, (str, int)):
            raise DocumentError(f"literal value must be a string, got {raw!r}")
        return Literal(str(raw))
    if tag == "ref":
        field = obj.get("field")
        if not isinstance(field, str) or not field:
            raise DocumentError("ref.field must be a non-empty string")
        return Ref(_require_step_id(obj.get("value"), "ref.value"), canonical_field(field))
    if tag == "fuzz":
        raw = obj.get("value")
        if raw is None:
            return Fuzz(None)
        return Fuzz(_require_step_id(raw, "fuzz.value"))
    raise DocumentError(f"unknown value type: {tag!r}")


def referenced_steps(value: Value) -> list[int]:
    if isinstance(value, Ref):
        return [value.step_id]
    if isinstance(value, Fuzz) and value.seed is not None:
        return [value.seed]
    return []
