"""Connection management for the benchmark engine."""

from .gateway import Endpoint, StorageGateway, default_client_factory

__all__ = ["Endpoint", "StorageGateway", "default_client_factory"]
