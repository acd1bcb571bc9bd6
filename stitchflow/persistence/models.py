"""Data models for persisted order state."""

from __future__ import annotations

from pydantic import BaseModel

from ..models import ProductionOrder


class StoredOrder(BaseModel):
    """An order snapshot together with its optimistic-concurrency version."""

    order: ProductionOrder
    version: int = 1

    @property
    def order_id(self) -> str:
        return self.order.order_id
