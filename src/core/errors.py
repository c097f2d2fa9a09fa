"""Exception types shared by the scenario generator and runner.

Chain-side failures (``BuildError``, ``AppliedInvalid``, ``RpcError``,
``ShieldedSyncError``) and unresolvable references (``MissingReference``)
are converted into step outcomes by the task lifecycle. ``SubmissionTimeout``
is the one transient error; it escapes the step and is handled by the
runner's retry envelope. The remaining classes signal programmer errors and
are never caught.
"""

from __future__ import annotations


class ScenarioError(Exception):
    """Base class for every error raised by this package."""


class MissingReference(ScenarioError):
    """A ``Ref`` or ``Fuzz`` value points at a step that did not succeed."""

    def __init__(self, step_id: int, field: str | None = None, reason: str = "") -> None:
        self.step_id = step_id
        self.field = field
        detail = f"step {step_id}"
        if field is not None:
            detail += f" field {field!r}"
        if reason:
            detail += f": {reason}"
        super().__init__(f"missing reference to {detail}")


class MissingField(MissingReference):
    """The referenced step succeeded but did not publish the requested field."""

    def __init__(self, step_id: int, field: str) -> None:
        super().__init__(step_id, field, "field not published")


class BuildError(ScenarioError):
    """The transaction could not be constructed."""


class AppliedInvalid(ScenarioError):
    """The chain accepted the transaction but reported inner errors."""

    def __init__(self, errors: str) -> None:
        self.errors = errors
        super().__init__(errors)


class RpcError(ScenarioError):
    """Non-transient network or node error."""


class SubmissionTimeout(RpcError):
    """The node did not confirm a submitted transaction in time."""


class ShieldedSyncError(ScenarioError):
    """The shielded context could not be synchronized."""


class DocumentError(ScenarioError, ValueError):
    """A scenario document is malformed."""


class StorageError(ScenarioError):
    """A step id was written to step storage more than once."""


class ModelInvariantError(ScenarioError):
    """Raised when the generator model would hold a negative quantity."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"model invariant violations: {', '.join(violations)}")


class GenerationStalled(ScenarioError):
    """No positively weighted task is feasible in the current model state."""
