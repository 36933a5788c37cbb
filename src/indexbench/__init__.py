"""
indexbench - Index and query-plan benchmarking for MongoDB.

Measures how index presence, field order, compound prefixes, sort strategy
and index direction change the latency and the plan of a query:
- Repeated, sequential timed trials per index configuration
- Index reset between trials so every leg is attributable to one index
- executionStats diagnostics from the final run of every leg

Quick Start:
    ```python
    from indexbench import create_orchestrator

    orchestrator = create_orchestrator()
    response = await orchestrator.run(
        "scenario1",
        {"filter": {"category": "Electronics"}, "index": {"category": 1}, "data_size": "1m"},
    )
    ```

For CLI usage:
    ```bash
    indexbench run scenario1 --filter '{"category": "Electronics"}' --index '{"category": 1}' --size 1m
    ```
"""

from .config.settings import Settings, get_settings
from .engine import (
    CollectionLocks,
    IndexLifecycleManager,
    IndexSpec,
    PlanDiagnostics,
    QueryShape,
    TrialResult,
    TrialRunner,
)
from .engine.orchestrator import ScenarioOrchestrator, create_orchestrator
from .errors import (
    BenchmarkError,
    IndexOperationError,
    QueryExecutionError,
    StoreConnectionError,
    UnknownScenarioError,
)
from .models import (
    CollectionStatistics,
    IndexPairRequest,
    IndexVsScanRequest,
    ScenarioResponse,
    ScenarioResult,
    SortedIndexPairRequest,
)
from .storage import Endpoint, StorageGateway

__version__ = "0.1.0"
__all__ = [
    # Engine
    "ScenarioOrchestrator",
    "create_orchestrator",
    "IndexLifecycleManager",
    "TrialRunner",
    "TrialResult",
    "PlanDiagnostics",
    "CollectionLocks",
    "IndexSpec",
    "QueryShape",
    # Storage
    "Endpoint",
    "StorageGateway",
    # Config
    "Settings",
    "get_settings",
    # Models
    "IndexVsScanRequest",
    "IndexPairRequest",
    "SortedIndexPairRequest",
    "ScenarioResult",
    "ScenarioResponse",
    "CollectionStatistics",
    # Errors
    "BenchmarkError",
    "StoreConnectionError",
    "IndexOperationError",
    "QueryExecutionError",
    "UnknownScenarioError",
]
