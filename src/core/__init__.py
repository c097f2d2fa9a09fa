"""
Core building blocks: error taxonomy, reference resolution and weighted draws.
"""

from .errors import (
    AppliedInvalid,
    BuildError,
    DocumentError,
    GenerationStalled,
    MissingField,
    MissingReference,
    ModelInvariantError,
    RpcError,
    ScenarioError,
    ShieldedSyncError,
    StorageError,
    SubmissionTimeout,
)
from .walker import WalkerTable

__all__ = [
    "AppliedInvalid",
    "BuildError",
    "DocumentError",
    "GenerationStalled",
    "MissingField",
    "MissingReference",
    "ModelInvariantError",
    "RpcError",
    "ScenarioError",
    "ShieldedSyncError",
    "StorageError",
    "SubmissionTimeout",
    "WalkerTable",
]
