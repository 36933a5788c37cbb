"""
Scenario orchestration: the five index comparison protocols.

Every protocol has the same shape: lock the target collection, then for each
leg reset the indexes, optionally build one candidate index, warm up, and
time. Legs never share an index, so the plan chosen in each leg is
attributable to exactly one index definition (or to none).

Protocols:
    scenario1: no index vs one index (5 timed runs per leg)
    scenario2: index A vs index B over the same filter (3 runs per leg)
    scenario3: compound-prefix A vs B, structurally identical to scenario2
    scenario4: index A vs B over a sorted query
    scenario5: no index vs index A vs index B over a sorted query
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError
from pymongo.errors import PyMongoError

from ..config.settings import Settings, get_settings
from ..errors import QueryExecutionError, UnknownScenarioError
from ..models import (
    CollectionStatistics,
    IndexPairRequest,
    IndexVsScanRequest,
    ScenarioRequest,
    ScenarioResponse,
    ScenarioResult,
    SortedIndexPairRequest,
)
from ..storage.gateway import Endpoint, StorageGateway
from .indexes import IndexLifecycleManager
from .locks import CollectionLocks
from .shapes import IndexSpec, QueryShape, pretty
from .trial import TrialResult, TrialRunner

if TYPE_CHECKING:
    from pymongo.asynchronous.collection import AsyncCollection

logger = logging.getLogger("indexbench.orchestrator")


class ScenarioOrchestrator:
    """
    Sequences index lifecycle and trial runs into comparison scenarios.

    Example:
        ```python
        orchestrator = create_orchestrator()
        response = await orchestrator.run(
            "scenario1",
            {"filter": {"category": "Electronics"}, "index": {"category": 1}, "data_size": "1m"},
        )
        print(response.result.leg("with_index").execution_time_ms)
        ```
    """

    def __init__(
        self,
        gateway: StorageGateway,
        settings: Settings | None = None,
        indexes: IndexLifecycleManager | None = None,
        runner: TrialRunner | None = None,
        locks: CollectionLocks | None = None,
    ):
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.indexes = indexes or IndexLifecycleManager(
            settle_delay=self.settings.index_settle_delay_ms / 1000,
            ready_timeout=self.settings.index_ready_timeout_ms / 1000,
            poll_interval=self.settings.index_poll_interval_ms / 1000,
        )
        self.runner = runner or TrialRunner()
        self.locks = locks or CollectionLocks()

        self._scenarios: dict[str, tuple[type[ScenarioRequest], Callable[..., Awaitable[ScenarioResult]]]] = {
            "scenario1": (IndexVsScanRequest, self.scenario1),
            "scenario2": (IndexPairRequest, self.scenario2),
            "scenario3": (IndexPairRequest, self.scenario3),
            "scenario4": (SortedIndexPairRequest, self.scenario4),
            "scenario5": (SortedIndexPairRequest, self.scenario5),
        }

    @property
    def scenario_names(self) -> list[str]:
        return list(self._scenarios)

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _target(self, collection_name: str, endpoint: Endpoint | None) -> AsyncIterator[AsyncCollection]:
        """Lease the client and hold the collection lock for the whole block."""
        endpoint = endpoint or self.settings.endpoint()
        async with self.gateway.lease(endpoint) as database:
            async with self.locks.hold(f"{endpoint.database}.{collection_name}"):
                yield database[collection_name]

    async def _leg(
        self,
        collection: AsyncCollection,
        query: QueryShape,
        repetitions: int,
        index: IndexSpec | None = None,
    ) -> TrialResult:
        """Reset indexes, build at most one index, warm up, then time."""
        await self.indexes.clear_indexes(collection)
        if index is None:
            warmups = self.settings.unindexed_warmup_iterations
        else:
            await self.indexes.ensure_index(collection, index)
            warmups = self.settings.indexed_warmup_iterations
        await self.runner.warm_up(collection, query, warmups)
        return await self.runner.run(collection, query, repetitions)

    def _mql(self, query: QueryShape, **indexes: IndexSpec) -> dict[str, str | None]:
        sort = query.sort_document()
        mql: dict[str, str | None] = {
            "query": pretty(query.filter),
            "sort": pretty(sort) if sort else None,
        }
        for name, spec in indexes.items():
            mql[name] = spec.pretty()
        return mql

    async def _compare_pair(
        self,
        scenario: str,
        request: IndexPairRequest,
        sort: dict[str, int] | None,
        endpoint: Endpoint | None,
    ) -> ScenarioResult:
        collection_name = self.settings.collection_for(request.data_size)
        query = request.query_shape(self.settings.default_limit, sort)
        repetitions = self.settings.comparison_repetitions

        logger.info(f"[SCENARIO] {scenario} on {collection_name}: {request.index1} vs {request.index2}")
        async with self._target(collection_name, endpoint) as collection:
            first = await self._leg(collection, query, repetitions, request.index1)
            second = await self._leg(collection, query, repetitions, request.index2)

        return ScenarioResult(
            scenario=scenario,
            collection=collection_name,
            mql=self._mql(query, index1=request.index1, index2=request.index2),
            legs={"index1": first, "index2": second},
        )

    # ------------------------------------------------------------------
    # Protocols
    # ------------------------------------------------------------------

    async def scenario1(self, request: IndexVsScanRequest, endpoint: Endpoint | None = None) -> ScenarioResult:
        """No index vs one candidate index."""
        collection_name = self.settings.collection_for(request.data_size)
        query = request.query_shape(self.settings.default_limit)
        repetitions = self.settings.baseline_repetitions

        logger.info(f"[SCENARIO] scenario1 on {collection_name}: no index vs {request.index}")
        async with self._target(collection_name, endpoint) as collection:
            no_index = await self._leg(collection, query, repetitions)
            with_index = await self._leg(collection, query, repetitions, request.index)

        return ScenarioResult(
            scenario="scenario1",
            collection=collection_name,
            mql=self._mql(query, index=request.index),
            legs={"no_index": no_index, "with_index": with_index},
        )

    async def scenario2(self, request: IndexPairRequest, endpoint: Endpoint | None = None) -> ScenarioResult:
        """Index choice: two independent index definitions over the same query."""
        return await self._compare_pair("scenario2", request, None, endpoint)

    async def scenario3(self, request: IndexPairRequest, endpoint: Endpoint | None = None) -> ScenarioResult:
        """Compound prefix: two compound indexes differing in field order."""
        return await self._compare_pair("scenario3", request, None, endpoint)

    async def scenario4(self, request: SortedIndexPairRequest, endpoint: Endpoint | None = None) -> ScenarioResult:
        """Sort strategy: two index field orders over a sorted query."""
        return await self._compare_pair("scenario4", request, request.sort, endpoint)

    async def scenario5(self, request: SortedIndexPairRequest, endpoint: Endpoint | None = None) -> ScenarioResult:
        """Direction: no index vs two index directions over a sorted query."""
        collection_name = self.settings.collection_for(request.data_size)
        query = request.query_shape(self.settings.default_limit, request.sort)
        repetitions = self.settings.comparison_repetitions

        logger.info(
            f"[SCENARIO] scenario5 on {collection_name}: no index vs {request.index1} vs {request.index2}"
        )
        async with self._target(collection_name, endpoint) as collection:
            no_index = await self._leg(collection, query, repetitions)
            first = await self._leg(collection, query, repetitions, request.index1)
            second = await self._leg(collection, query, repetitions, request.index2)

        return ScenarioResult(
            scenario="scenario5",
            collection=collection_name,
            mql=self._mql(query, index1=request.index1, index2=request.index2),
            legs={"no_index": no_index, "index1": first, "index2": second},
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(
        self,
        scenario: str,
        payload: dict[str, Any] | BaseModel,
        endpoint: Endpoint | None = None,
    ) -> ScenarioResponse:
        """
        Validate ``payload``, run ``scenario`` and wrap the outcome.

        Any failure aborts the whole scenario; the response then carries the
        error message and no partial legs.
        """
        try:
            if scenario not in self._scenarios:
                raise UnknownScenarioError(
                    f"Unknown scenario '{scenario}', expected one of: {', '.join(self._scenarios)}"
                )
            request_model, protocol = self._scenarios[scenario]
            if isinstance(payload, request_model):
                request = payload
            else:
                if isinstance(payload, BaseModel):
                    payload = payload.model_dump()
                request = request_model.model_validate(payload)
            result = await protocol(request, endpoint)
        except ValidationError as e:
            logger.warning(f"[SCENARIO] Invalid {scenario} request: {e}")
            return ScenarioResponse(success=False, error=str(e))
        except Exception as e:
            logger.error(f"[SCENARIO] {scenario} failed: {e}")
            return ScenarioResponse(success=False, error=str(e))

        return ScenarioResponse(success=True, result=result)

    async def measure_once(
        self,
        collection_name: str,
        filter: dict[str, Any] | None = None,
        index: IndexSpec | None = None,
        limit: int | None = None,
        endpoint: Endpoint | None = None,
    ) -> TrialResult:
        """Single timed query, with or without one index, plus its diagnostics."""
        query = QueryShape.build(filter, limit=limit or self.settings.default_limit)
        async with self._target(collection_name, endpoint) as collection:
            await self.indexes.clear_indexes(collection)
            if index is not None:
                await self.indexes.ensure_index(collection, index)
            return await self.runner.run(collection, query, 1)

    async def collection_statistics(self, endpoint: Endpoint | None = None) -> CollectionStatistics:
        """Document counts of the small and large collections plus every collection name."""
        endpoint = endpoint or self.settings.endpoint()
        counts: dict[str, int] = {}
        async with self.gateway.lease(endpoint) as database:
            try:
                for name in (self.settings.small_collection, self.settings.large_collection):
                    counts[name] = await database[name].count_documents({})
                names = await database.list_collection_names()
            except PyMongoError as e:
                raise QueryExecutionError(f"Failed to read collection statistics: {e}") from e

        return CollectionStatistics(
            document_count=sum(counts.values()),
            collections=counts,
            all_collections=sorted(names),
        )


def create_orchestrator(settings: Settings | None = None) -> ScenarioOrchestrator:
    """Build an orchestrator with its own gateway from ``settings``."""
    settings = settings or get_settings()
    gateway = StorageGateway(server_selection_timeout_ms=settings.server_selection_timeout_ms)
    return ScenarioOrchestrator(gateway=gateway, settings=settings)
