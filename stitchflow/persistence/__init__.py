"""Persistence layer for production orders."""

from __future__ import annotations

import os
from typing import Optional

from ..config import StitchflowConfig, load_config
from .inmemory import InMemoryOrderRepository
from .models import StoredOrder
from .repository import (
    ConcurrentModification,
    DuplicateOrder,
    OrderNotFound,
    OrderRepository,
    RepositoryError,
)
from .sqlite import SQLiteOrderRepository

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresOrderRepository
except ImportError:  # pragma: no cover - optional dependency
    PostgresOrderRepository = None  # type: ignore

_repository_instance: OrderRepository | None = None


def get_repository(
    database_url: Optional[str] = None, config: Optional[StitchflowConfig] = None
) -> OrderRepository:
    """Factory function to obtain an order repository.

    The repository backend is selected based on ``database_url`` which can be
    provided explicitly, via environment variable ``STITCHFLOW_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, an in-memory repository is returned.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("STITCHFLOW_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or getattr(config, "database_url", None)
    )

    if not database_url:
        _repository_instance = InMemoryOrderRepository()
        return _repository_instance

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _repository_instance = SQLiteOrderRepository(path)
    elif database_url.startswith("postgres://") or database_url.startswith(
        "postgresql://"
    ):
        if PostgresOrderRepository is None:
            raise RuntimeError("Postgres support not available")
        _repository_instance = PostgresOrderRepository(database_url)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _repository_instance


__all__ = [
    "StoredOrder",
    "OrderRepository",
    "RepositoryError",
    "OrderNotFound",
    "DuplicateOrder",
    "ConcurrentModification",
    "SQLiteOrderRepository",
    "PostgresOrderRepository",
    "InMemoryOrderRepository",
    "get_repository",
]
