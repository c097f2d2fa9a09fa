"""
Step handlers: the build / sign / submit lifecycle for transactions plus
wallet operations and queries. The dispatch table lives in ``registry``.
"""

from .base import Prepared, StepContext, StepResult, TaskSpec

__all__ = [
    "Prepared",
    "StepContext",
    "StepResult",
    "TaskSpec",
]
