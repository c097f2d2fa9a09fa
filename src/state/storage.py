"""
Per-run step storage.

Maps ``step_id -> (outcome, fields, error)``. Entries are written exactly
once, in step order; the resolver reads from it to materialize references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from ..core.errors import MissingField, MissingReference, StorageError


@unique
class Outcome(Enum):
    SUCCESS = "success"
    FAIL = "fail"
    NOOP = "noop"


@dataclass(frozen=True)
class StepRecord:
    outcome: Outcome
    fields: Mapping[str, str] = field(default_factory=dict)
    error: Optional[str] = None


class StepStorage:
    """Append-only record of what each attempted step produced."""

    def __init__(self) -> None:
        self._records: Dict[int, StepRecord] = {}
        # Established accounts created during the run: alias -> address.
        self._accounts: Dict[str, str] = {}

    def save(
        self,
        step_id: int,
        outcome: Outcome,
        fields: Optional[Mapping[str, str]] = None,
        error: Optional[str] = None,
    ) -> None:
        if step_id in self._records:
            raise StorageError(f"step {step_id} already saved")
        if step_id != len(self._records):
            raise StorageError(f"step {step_id} saved out of order (expected {len(self._records)})")
        stored = {str(k): str(v) for k, v in (fields or {}).items()}
        self._records[step_id] = StepRecord(outcome=outcome, fields=stored, error=error)

    def __contains__(self, step_id: int) -> bool:
        return step_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def record(self, step_id: int) -> StepRecord:
        try:
            return self._records[step_id]
        except KeyError:
            raise MissingReference(step_id, reason="step not executed") from None

    def get(self, step_id: int, field_name: str) -> str:
        rec = self.record(step_id)
        if rec.outcome is not Outcome.SUCCESS:
            raise MissingReference(step_id, field_name, f"step outcome is {rec.outcome.value}")
        try:
            return rec.fields[field_name]
        except KeyError:
            raise MissingField(step_id, field_name) from None

    def is_success(self, step_id: int) -> bool:
        rec = self._records.get(step_id)
        return rec is not None and rec.outcome is Outcome.SUCCESS

    def is_noop(self, step_id: int) -> bool:
        rec = self._records.get(step_id)
        return rec is not None and rec.outcome is Outcome.NOOP

    def error(self, step_id: int) -> Optional[str]:
        rec = self._records.get(step_id)
        return rec.error if rec is not None else None

    def overall_outcome(self) -> Outcome:
        if all(rec.outcome is not Outcome.FAIL for rec in self._records.values()):
            return Outcome.SUCCESS
        return Outcome.FAIL

    def outcomes(self) -> List[Tuple[int, Outcome]]:
        return [(step_id, rec.outcome) for step_id, rec in sorted(self._records.items())]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._records))

    def save_account(self, alias: str, address: str) -> None:
        self._accounts[alias] = address

    def get_account(self, alias: str) -> str:
        try:
            return self._accounts[alias]
        except KeyError:
            raise MissingReference(-1, alias, "unknown account alias") from None
