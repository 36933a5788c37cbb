"""
Exception hierarchy for the benchmark engine.

Driver errors (``pymongo.errors.PyMongoError``) are wrapped at the component
that observes them, so callers only need to handle ``BenchmarkError``.
"""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for every failure raised by indexbench."""


class StoreConnectionError(BenchmarkError):
    """The endpoint is unreachable, rejected the credentials, or the URI is invalid."""


class IndexOperationError(BenchmarkError):
    """An index could not be created, inspected, or dropped."""


class QueryExecutionError(BenchmarkError):
    """A timed query or its explain failed on the server."""


class UnknownScenarioError(BenchmarkError, KeyError):
    """No scenario is registered under the requested name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
