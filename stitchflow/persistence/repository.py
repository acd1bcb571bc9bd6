"""Repository abstraction for order persistence."""

from __future__ import annotations

from typing import Protocol

from ..models import ProductionOrder
from .models import StoredOrder


class RepositoryError(RuntimeError):
    """Base exception for repository errors."""


class OrderNotFound(RepositoryError):
    """Raised when a requested order is missing."""


class DuplicateOrder(RepositoryError):
    """Raised when an order id or code is already taken."""


class ConcurrentModification(RepositoryError):
    """Raised when saving against a version that is no longer current."""


class OrderRepository(Protocol):
    """Protocol for order persistence backends.

    Every save states the version it was derived from; a backend must reject
    the write when another writer got there first. This gives callers
    single-writer-per-order semantics without holding locks across I/O.
    """

    async def create_order(self, order: ProductionOrder) -> StoredOrder:
        """Persist a new order at version 1."""

    async def get_order(self, order_id: str) -> StoredOrder | None:
        """Retrieve an order by id."""

    async def get_order_by_code(self, code: str) -> StoredOrder | None:
        """Retrieve an order by its human-readable code."""

    async def save_order(
        self, order: ProductionOrder, expected_version: int
    ) -> StoredOrder:
        """Replace the order if its stored version equals ``expected_version``."""

    async def list_orders(self) -> list[StoredOrder]:
        """Return all persisted orders."""
