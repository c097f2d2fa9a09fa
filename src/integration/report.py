"""Per-run step outcome report, rendered as Markdown or JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..scenario.document import Scenario
from ..state.storage import Outcome, StepStorage


@dataclass(frozen=True)
class StepReport:
    id: int
    kind: str
    outcome: Outcome
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "kind": self.kind, "outcome": self.outcome.value}
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass
class RunReport:
    steps: List[StepReport] = field(default_factory=list)
    # Scenario executions needed, counting restarts after submission timeouts.
    attempts: int = 1

    @classmethod
    def from_storage(cls, scenario: Scenario, storage: StepStorage, *, attempts: int = 1) -> "RunReport":
        steps = []
        for step in scenario.steps:
            if step.id not in storage:
                continue
            rec = storage.record(step.id)
            steps.append(StepReport(step.id, step.kind.value, rec.outcome, rec.error))
        return cls(steps=steps, attempts=attempts)

    @property
    def ok(self) -> bool:
        """True iff every step succeeded or was a noop."""
        return all(s.outcome is not Outcome.FAIL for s in self.steps)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for s in self.steps if s.outcome is outcome)

    def failures(self) -> List[StepReport]:
        return [s for s in self.steps if s.outcome is Outcome.FAIL]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "attempts": self.attempts,
            "totals": {o.value: self.count(o) for o in Outcome},
            "steps": [s.to_dict() for s in self.steps],
        }

    def to_json(self, *, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    def render_markdown(self, title: str = "Scenario run") -> str:
        md: List[str] = [f"# {title}\n"]
        totals = ", ".join(f"{o.value}: {self.count(o)}" for o in Outcome)
        md.append(f"Result: **{'ok' if self.ok else 'failed'}** ({totals}; attempts: {self.attempts})\n")
        rows = [["step", "kind", "outcome", "error"]]
        for s in self.steps:
            rows.append([str(s.id), s.kind, s.outcome.value, _cell(s.error)])
        md.append(_markdown_table(rows))
        return "\n".join(md).strip() + "\n"


def _cell(text: Optional[str]) -> str:
    if not text:
        return ""
    return text.replace("|", "\\|").replace("\n", " ")


def _markdown_table(rows: Iterable[List[str]]) -> str:
    rows = list(rows)
    if not rows:
        return ""
    header = rows[0]
    out = ["| " + " | ".join(header) + " |", "| " + " | ".join(["---"] * len(header)) + " |"]
    for r in rows[1:]:
        out.append("| " + " | ".join(r) + " |")
    return "\n".join(out) + "\n"


def all_ok(reports: Iterable[RunReport]) -> bool:
    return all(r.ok for r in reports)
