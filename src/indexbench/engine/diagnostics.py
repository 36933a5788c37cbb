"""
Explain-output reduction.

MongoDB's ``explain`` (verbosity ``executionStats``) returns a nested stage
tree. The benchmark only reports a handful of numbers from it: how many
documents and keys were examined, which access stage fed the plan, which
index it used, and in which direction the index was walked.

The classic engine nests stages under ``inputStage`` / ``inputStages``; the
slot-based engine wraps the winning plan in ``queryPlan``. Both shapes are
handled.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

COLLECTION_SCAN = "COLLSCAN"
INDEX_SCAN = "IXSCAN"

ACCESS_STAGES = frozenset(
    {
        COLLECTION_SCAN,
        INDEX_SCAN,
        "COUNT_SCAN",
        "DISTINCT_SCAN",
        "IDHACK",
        "EXPRESS_IXSCAN",
        "EXPRESS_CLUSTERED_IXSCAN",
        "EXPRESS_IDHACK",
        "CLUSTERED_IXSCAN",
        "TEXT_MATCH",
        "GEO_NEAR_2D",
        "GEO_NEAR_2DSPHERE",
    }
)


class PlanDiagnostics(BaseModel):
    """Snapshot of the plan the server chose for one query execution."""

    model_config = ConfigDict(frozen=True)

    stage: str = Field(..., description="Access stage feeding the plan (COLLSCAN, IXSCAN, ...)")
    winning_stage: str = Field(default="", description="Top-level stage of the winning plan")
    docs_examined: int = Field(default=0, description="totalDocsExamined")
    keys_examined: int = Field(default=0, description="totalKeysExamined")
    n_returned: int = Field(default=0, description="Documents returned by the explained run")
    execution_time_ms: int = Field(default=0, description="Server-side executionTimeMillis")
    index_names: list[str] = Field(default_factory=list, description="Indexes used by the access stages")
    direction: str | None = Field(default=None, description="Index scan direction: forward or backward")
    execution_stats: dict[str, Any] = Field(default_factory=dict, description="Raw executionStats document")

    @property
    def index_name(self) -> str | None:
        return self.index_names[0] if self.index_names else None

    @property
    def is_collection_scan(self) -> bool:
        return self.stage == COLLECTION_SCAN

    @property
    def is_reversed(self) -> bool:
        return self.direction == "backward"


def iter_stages(stage: dict[str, Any] | None) -> Iterator[dict[str, Any]]:
    """Walk a plan stage tree depth-first, parents before children."""
    if not stage:
        return
    yield stage
    if "queryPlan" in stage:
        yield from iter_stages(stage["queryPlan"])
    if "inputStage" in stage:
        yield from iter_stages(stage["inputStage"])
    for child in stage.get("inputStages", []):
        yield from iter_stages(child)


def _access_stages(stage: dict[str, Any] | None) -> list[dict[str, Any]]:
    return [s for s in iter_stages(stage) if s.get("stage") in ACCESS_STAGES]


def _winning_plan(explain: dict[str, Any]) -> dict[str, Any]:
    planner = explain.get("queryPlanner", {})
    plan = planner.get("winningPlan", {})
    return plan.get("queryPlan", plan)


def parse_explain(explain: dict[str, Any]) -> PlanDiagnostics:
    """
    Reduce an ``executionStats`` explain document to :class:`PlanDiagnostics`.

    Args:
        explain: Raw reply of the ``explain`` command

    Returns:
        PlanDiagnostics for the winning plan
    """
    stats = explain.get("executionStats", {})
    winning = _winning_plan(explain)

    access = _access_stages(stats.get("executionStages"))
    if not access:
        access = _access_stages(winning)

    top_stage = winning.get("stage") or stats.get("executionStages", {}).get("stage", "")

    index_names: list[str] = []
    for stage in access:
        name = stage.get("indexName")
        if name and name not in index_names:
            index_names.append(name)

    direction = next((s["direction"] for s in access if "direction" in s), None)

    return PlanDiagnostics(
        stage=access[0]["stage"] if access else top_stage or "UNKNOWN",
        winning_stage=top_stage,
        docs_examined=int(stats.get("totalDocsExamined", 0)),
        keys_examined=int(stats.get("totalKeysExamined", 0)),
        n_returned=int(stats.get("nReturned", 0)),
        execution_time_ms=int(stats.get("executionTimeMillis", 0)),
        index_names=index_names,
        direction=direction,
        execution_stats=stats,
    )
