"""
Pydantic models for scenario requests and results.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_serializer, field_validator

from .engine.shapes import IndexSpec, QueryShape
from .engine.trial import TrialResult


def _to_index_spec(value: Any) -> Any:
    if value is None or isinstance(value, IndexSpec):
        return value
    if isinstance(value, str):
        return IndexSpec.parse(value)
    return IndexSpec.from_mapping(value)


class ScenarioRequest(BaseModel):
    """Fields shared by every scenario request."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    filter: dict[str, Any] = Field(
        default_factory=dict,
        description="Query filter (MQL)",
    )
    limit: int | None = Field(
        default=None,
        ge=1,
        description="Result cap (defaults to the configured default_limit)",
    )
    data_size: str | None = Field(
        default=None,
        description="Collection size tag: '1m' selects the small collection, anything else the large one",
    )

    def query_shape(self, default_limit: int, sort: dict[str, Any] | None = None) -> QueryShape:
        return QueryShape.build(self.filter, sort, self.limit or default_limit)


class IndexVsScanRequest(ScenarioRequest):
    """No index vs one candidate index."""

    index: IndexSpec = Field(..., description="Candidate index key pattern")

    @field_validator("index", mode="before")
    @classmethod
    def coerce_index(cls, value: Any) -> Any:
        return _to_index_spec(value)

    @field_serializer("index")
    def dump_index(self, value: IndexSpec) -> dict[str, Any]:
        return value.as_dict()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"filter": {"category": "Electronics"}, "index": {"category": 1}, "limit": 100, "data_size": "1m"}
        }
    )


class IndexPairRequest(ScenarioRequest):
    """Two candidate indexes over the same query."""

    index1: IndexSpec = Field(..., description="First candidate index key pattern")
    index2: IndexSpec = Field(..., description="Second candidate index key pattern")

    @field_validator("index1", "index2", mode="before")
    @classmethod
    def coerce_indexes(cls, value: Any) -> Any:
        return _to_index_spec(value)

    @field_serializer("index1", "index2")
    def dump_indexes(self, value: IndexSpec) -> dict[str, Any]:
        return value.as_dict()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "filter": {"category": "Electronics", "price": {"$gte": 500}},
                "index1": {"category": 1, "price": 1},
                "index2": {"price": 1, "category": 1},
                "data_size": "1m",
            }
        }
    )


class SortedIndexPairRequest(IndexPairRequest):
    """Two candidate indexes over a sorted query."""

    sort: dict[str, StrictInt] = Field(..., min_length=1, description="Sort order applied to every run")

    @field_validator("sort")
    @classmethod
    def check_sort(cls, value: dict[str, int]) -> dict[str, int]:
        QueryShape.build({}, value)
        return value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "filter": {"category": "Electronics"},
                "sort": {"price": -1},
                "index1": {"price": -1},
                "index2": {"price": 1},
                "data_size": "1m",
            }
        }
    )


class ScenarioResult(BaseModel):
    """Comparison produced by one scenario run."""

    scenario: str
    collection: str
    mql: dict[str, str | None] = Field(
        default_factory=dict,
        description="Echoed query, sort and index specs as pretty-printed JSON",
    )
    legs: dict[str, TrialResult] = Field(default_factory=dict)

    def leg(self, name: str) -> TrialResult:
        return self.legs[name]


class ScenarioResponse(BaseModel):
    """Success flag plus either a result or an error message."""

    success: bool
    result: ScenarioResult | None = None
    error: str | None = None


class CollectionStatistics(BaseModel):
    """Document counts of the benchmark collections."""

    document_count: int
    collections: dict[str, int]
    all_collections: list[str] = Field(default_factory=list)
