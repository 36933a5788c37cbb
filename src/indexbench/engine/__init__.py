"""
Benchmark execution engine building blocks.

The scenario orchestrator lives in ``indexbench.engine.orchestrator`` and is
re-exported from the top-level package.
"""

from .diagnostics import PlanDiagnostics, parse_explain
from .indexes import IndexLifecycleManager
from .locks import CollectionLocks
from .shapes import IndexSpec, QueryShape, pretty
from .trial import TrialResult, TrialRunner

__all__ = [
    "PlanDiagnostics",
    "parse_explain",
    "IndexLifecycleManager",
    "CollectionLocks",
    "IndexSpec",
    "QueryShape",
    "pretty",
    "TrialResult",
    "TrialRunner",
]
