"""In-memory implementation of the order repository."""

from __future__ import annotations

from typing import Dict

from ..models import ProductionOrder
from .models import StoredOrder
from .repository import (
    ConcurrentModification,
    DuplicateOrder,
    OrderNotFound,
    OrderRepository,
)


class InMemoryOrderRepository(OrderRepository):
    """Store orders in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Snapshots are copied on the way in
    and out so callers never share mutable state with the store.
    """

    def __init__(self) -> None:
        self._orders: Dict[str, StoredOrder] = {}

    # ------------------------------------------------------------------
    async def create_order(self, order: ProductionOrder) -> StoredOrder:
        if order.order_id in self._orders:
            raise DuplicateOrder(f"Order with id {order.order_id!r} already exists")
        if any(s.order.code == order.code for s in self._orders.values()):
            raise DuplicateOrder(f"Order with code {order.code!r} already exists")
        stored = StoredOrder(order=order.model_copy(deep=True), version=1)
        self._orders[order.order_id] = stored
        return stored.model_copy(deep=True)

    async def get_order(self, order_id: str) -> StoredOrder | None:
        stored = self._orders.get(order_id)
        return stored.model_copy(deep=True) if stored else None

    async def get_order_by_code(self, code: str) -> StoredOrder | None:
        for stored in self._orders.values():
            if stored.order.code == code:
                return stored.model_copy(deep=True)
        return None

    async def save_order(
        self, order: ProductionOrder, expected_version: int
    ) -> StoredOrder:
        current = self._orders.get(order.order_id)
        if current is None:
            raise OrderNotFound(f"Order with id {order.order_id!r} not found")
        if current.version != expected_version:
            raise ConcurrentModification(
                f"Order {order.order_id!r} is at version {current.version}, "
                f"expected {expected_version}"
            )
        stored = StoredOrder(
            order=order.model_copy(deep=True), version=current.version + 1
        )
        self._orders[order.order_id] = stored
        return stored.model_copy(deep=True)

    async def list_orders(self) -> list[StoredOrder]:
        return [stored.model_copy(deep=True) for stored in self._orders.values()]
