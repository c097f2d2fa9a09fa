"""
Run-time resolution of symbolic step parameters.

``Literal`` values resolve to themselves. ``Ref`` values read a field
published by an earlier successful step. ``Fuzz`` values pick a random
element from a list published by their seed step (for example the
validator set published by ``query-validators``), or call a per-parameter
generator when they carry no seed.

A resolver lives for one step. Within that step every ``Fuzz`` that shares
a seed, list and exclusion set resolves to the same element, so a batch of
bonds built from one fuzzed validator targets one validator.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum, unique
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple

from ..scenario.fields import (
    ALIAS,
    PUBLIC_KEY,
    SPENDING_KEY,
    STATE,
    TOTAL_PROPOSALS,
    TOTAL_VALIDATORS,
    PROPOSAL_I_ID,
    VALIDATOR_I_ADDRESS,
    VALIDATOR_I_STATE,
    indexed,
)
from ..scenario.value import Fuzz, Literal, Ref, Value
from ..state.storage import Outcome, StepStorage
from .errors import BuildError, MissingField, MissingReference

ADDRESS_PREFIX = "tnam"
PAYMENT_ADDRESS_PREFIX = "znam"
PUBLIC_KEY_PREFIX = "tpknam"

CONSENSUS = "consensus"
BELOW_CAPACITY = "below-capacity"
BELOW_THRESHOLD = "below-threshold"
INACTIVE = "inactive"
JAILED = "jailed"

VALIDATOR_STATES = (CONSENSUS, BELOW_CAPACITY, BELOW_THRESHOLD, INACTIVE, JAILED)


@unique
class AddressKind(Enum):
    ALIAS = "alias"
    PUBLIC_KEY = "public-key"
    STATE = "state"
    ADDRESS = "address"


@dataclass(frozen=True)
class Resolved:
    text: str
    kind: AddressKind


@dataclass(frozen=True)
class FuzzList:
    """Where a fuzzed value draws from: ``total_field`` items named ``item_field``."""

    total_field: str
    item_field: str
    state_field: Optional[str] = None
    allowed_states: Optional[FrozenSet[str]] = None


ALL_VALIDATORS = FuzzList(TOTAL_VALIDATORS, VALIDATOR_I_ADDRESS)
BONDABLE_VALIDATORS = FuzzList(
    TOTAL_VALIDATORS,
    VALIDATOR_I_ADDRESS,
    VALIDATOR_I_STATE,
    frozenset({CONSENSUS, BELOW_CAPACITY, BELOW_THRESHOLD}),
)
CONSENSUS_VALIDATORS = FuzzList(TOTAL_VALIDATORS, VALIDATOR_I_ADDRESS, VALIDATOR_I_STATE, frozenset({CONSENSUS}))
PROPOSAL_IDS = FuzzList(TOTAL_PROPOSALS, PROPOSAL_I_ID)

FuzzGenerator = Callable[[random.Random], str]

_FIELD_KINDS: Dict[str, AddressKind] = {
    ALIAS: AddressKind.ALIAS,
    SPENDING_KEY: AddressKind.ALIAS,
    PUBLIC_KEY: AddressKind.PUBLIC_KEY,
    STATE: AddressKind.STATE,
}


def literal_kind(text: str) -> AddressKind:
    if text.startswith(PUBLIC_KEY_PREFIX):
        return AddressKind.PUBLIC_KEY
    if text.startswith(ADDRESS_PREFIX) or text.startswith(PAYMENT_ADDRESS_PREFIX):
        return AddressKind.ADDRESS
    return AddressKind.ALIAS


def field_kind(field: str) -> AddressKind:
    return _FIELD_KINDS.get(field.lower(), AddressKind.ADDRESS)


class Resolver:
    def __init__(self, storage: StepStorage, rng: Optional[random.Random] = None) -> None:
        self._storage = storage
        self._rng = rng if rng is not None else random.Random()
        self._draws: Dict[Tuple[int, FuzzList, FrozenSet[str]], str] = {}

    @property
    def storage(self) -> StepStorage:
        return self._storage

    def resolve(
        self,
        value: Value,
        *,
        fuzz_from: FuzzList = ALL_VALIDATORS,
        exclude: Iterable[str] = (),
        generator: Optional[FuzzGenerator] = None,
    ) -> str:
        if isinstance(value, Literal):
            return value.value
        if isinstance(value, Ref):
            return self._storage.get(value.step_id, value.field)
        if isinstance(value, Fuzz):
            if value.seed is None:
                if generator is None:
                    raise BuildError("seedless fuzz value has no generator for this parameter")
                return generator(self._rng)
            return self._draw(value.seed, fuzz_from, frozenset(exclude))
        raise TypeError(f"not a Value: {value!r}")

    def resolve_optional(self, value: Optional[Value], **kwargs) -> Optional[str]:
        if value is None:
            return None
        return self.resolve(value, **kwargs)

    def resolve_account(self, value: Value, **kwargs) -> Resolved:
        """Resolve and tag the result with how it names an account."""
        text = self.resolve(value, **kwargs)
        if isinstance(value, Literal):
            return Resolved(text, literal_kind(text))
        if isinstance(value, Ref):
            return Resolved(text, field_kind(value.field))
        return Resolved(text, AddressKind.ADDRESS)

    def resolve_int(self, value: Value, **kwargs) -> int:
        text = self.resolve(value, **kwargs)
        try:
            out = int(text)
        except ValueError:
            raise BuildError(f"expected an integer, got {text!r}") from None
        if out < 0:
            raise BuildError(f"expected a non-negative integer, got {out}")
        return out

    def resolve_optional_int(self, value: Optional[Value]) -> Optional[int]:
        if value is None:
            return None
        return self.resolve_int(value)

    def _draw(self, seed: int, fuzz_from: FuzzList, exclude: FrozenSet[str]) -> str:
        key = (seed, fuzz_from, exclude)
        if key in self._draws:
            return self._draws[key]
        rec = self._storage.record(seed)
        if rec.outcome is not Outcome.SUCCESS:
            raise MissingReference(seed, fuzz_from.total_field, f"seed step outcome is {rec.outcome.value}")
        raw_total = rec.fields.get(fuzz_from.total_field)
        if raw_total is None:
            raise MissingField(seed, fuzz_from.total_field)
        try:
            total = int(raw_total)
        except ValueError:
            raise MissingReference(seed, fuzz_from.total_field, f"not a count: {raw_total!r}") from None

        candidates = []
        for i in range(total):
            item = rec.fields.get(indexed(fuzz_from.item_field, i))
            if item is None or item in exclude:
                continue
            if fuzz_from.allowed_states is not None and fuzz_from.state_field is not None:
                state = rec.fields.get(indexed(fuzz_from.state_field, i))
                if state not in fuzz_from.allowed_states:
                    continue
            candidates.append(item)
        if not candidates:
            raise MissingReference(seed, fuzz_from.item_field, "no eligible element")
        choice = candidates[self._rng.randrange(len(candidates))]
        self._draws[key] = choice
        return choice
