"""
Trial runner: repeated, sequential, timed execution of one query shape.

Iterations never overlap; concurrent runs would contend for the same
collection and make the numbers incomparable. Only the final iteration is
followed by an ``explain`` so the diagnostic does not double the cost of
every run. Outliers are not trimmed: the reported figure is the plain mean of
whatever repetitions the caller asked for.
"""

from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import PyMongoError

from ..errors import QueryExecutionError
from .diagnostics import PlanDiagnostics, parse_explain
from .shapes import QueryShape

if TYPE_CHECKING:
    from pymongo.asynchronous.collection import AsyncCollection

logger = logging.getLogger("indexbench.trial")


class TrialResult(BaseModel):
    """Outcome of running one query shape N times under one index configuration."""

    model_config = ConfigDict(frozen=True)

    execution_time_ms: int = Field(..., description="Mean latency rounded half-up to whole milliseconds")
    average_ms: float = Field(..., description="Unrounded mean latency")
    timings_ms: list[float] = Field(default_factory=list, description="Latency of every timed iteration")
    repetitions: int = Field(..., ge=1)
    result_count: int = Field(..., description="Documents returned by the final timed iteration")
    diagnostics: PlanDiagnostics


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def build_explain_command(collection_name: str, query: QueryShape) -> dict[str, Any]:
    """``explain`` command for the exact find the trial times."""
    find: dict[str, Any] = {"find": collection_name, "filter": query.filter_document()}
    if query.sort:
        find["sort"] = query.sort_document()
    find["limit"] = query.limit
    return {"explain": find, "verbosity": "executionStats"}


class TrialRunner:
    """
    Executes a query shape repeatedly and aggregates its timings.

    Args:
        clock: Monotonic clock returning seconds (``time.perf_counter``)
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self._clock = clock

    async def _execute(self, collection: AsyncCollection, query: QueryShape) -> list[dict[str, Any]]:
        cursor = collection.find(query.filter_document())
        if query.sort:
            cursor = cursor.sort(list(query.sort))
        cursor = cursor.limit(query.limit)
        try:
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise QueryExecutionError(f"Query on {collection.name} failed: {e}") from e

    async def explain(self, collection: AsyncCollection, query: QueryShape) -> PlanDiagnostics:
        """Explain ``query`` with ``executionStats`` verbosity."""
        command = build_explain_command(collection.name, query)
        try:
            reply = await collection.database.command(command)
        except PyMongoError as e:
            raise QueryExecutionError(f"Explain on {collection.name} failed: {e}") from e
        return parse_explain(reply)

    async def warm_up(self, collection: AsyncCollection, query: QueryShape, iterations: int = 1) -> None:
        """Run untimed single-document queries to populate caches."""
        single = query.with_limit(1)
        for _ in range(iterations):
            await self._execute(collection, single)
        if iterations:
            logger.debug(f"[TRIAL] Ran {iterations} warm-up iteration(s) on {collection.name}")

    async def run(self, collection: AsyncCollection, query: QueryShape, repetitions: int) -> TrialResult:
        """
        Time ``query`` ``repetitions`` times and explain the final run.

        Args:
            collection: Target collection
            query: Query shape to execute
            repetitions: Number of timed iterations

        Returns:
            TrialResult with the mean latency and the final run's diagnostics
        """
        if repetitions < 1:
            raise ValueError(f"repetitions must be at least 1, got {repetitions}")

        timings: list[float] = []
        total = 0.0
        documents: list[dict[str, Any]] = []
        diagnostics: PlanDiagnostics | None = None

        for i in range(repetitions):
            start = self._clock()
            documents = await self._execute(collection, query)
            elapsed_ms = (self._clock() - start) * 1000.0
            timings.append(elapsed_ms)
            total += elapsed_ms
            if i == repetitions - 1:
                diagnostics = await self.explain(collection, query)

        average = total / repetitions
        result = TrialResult(
            execution_time_ms=round_half_up(average),
            average_ms=average,
            timings_ms=timings,
            repetitions=repetitions,
            result_count=len(documents),
            diagnostics=diagnostics,
        )
        logger.info(
            f"[TRIAL] {collection.name}: avg={result.execution_time_ms}ms over {repetitions} runs, "
            f"stage={result.diagnostics.stage}, docsExamined={result.diagnostics.docs_examined}"
        )
        return result
