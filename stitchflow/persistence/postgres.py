"""PostgreSQL implementation of the order repository."""

from __future__ import annotations

import json

import asyncpg

from ..codec import OrderCodec
from ..models import ProductionOrder
from .models import StoredOrder
from .repository import (
    ConcurrentModification,
    DuplicateOrder,
    OrderNotFound,
    OrderRepository,
)


class PostgresOrderRepository(OrderRepository):
    """Persist orders as JSONB documents using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS production_orders (
                order_id TEXT PRIMARY KEY,
                code TEXT NOT NULL UNIQUE,
                version INTEGER NOT NULL,
                document JSONB NOT NULL
            )
            """
        )

    @staticmethod
    def _to_stored(row: asyncpg.Record) -> StoredOrder:
        document = row["document"]
        if isinstance(document, str):
            document = json.loads(document)
        order = OrderCodec.decode_order(row["order_id"], document)
        return StoredOrder(order=order, version=row["version"])

    # ------------------------------------------------------------------
    async def create_order(self, order: ProductionOrder) -> StoredOrder:
        conn = await self._connect()
        try:
            await conn.execute(
                "INSERT INTO production_orders (order_id, code, version, document) "
                "VALUES ($1, $2, $3, $4)",
                order.order_id,
                order.code,
                1,
                json.dumps(OrderCodec.encode_order(order)),
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateOrder(
                f"Order {order.order_id!r} or code {order.code!r} already exists"
            ) from exc
        finally:
            await conn.close()
        return StoredOrder(order=order.model_copy(deep=True), version=1)

    async def get_order(self, order_id: str) -> StoredOrder | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT order_id, version, document FROM production_orders WHERE order_id = $1",
                order_id,
            )
        finally:
            await conn.close()
        return self._to_stored(row) if row else None

    async def get_order_by_code(self, code: str) -> StoredOrder | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT order_id, version, document FROM production_orders WHERE code = $1",
                code,
            )
        finally:
            await conn.close()
        return self._to_stored(row) if row else None

    async def save_order(
        self, order: ProductionOrder, expected_version: int
    ) -> StoredOrder:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                """
                UPDATE production_orders
                SET document = $1, version = version + 1
                WHERE order_id = $2 AND version = $3
                RETURNING version
                """,
                json.dumps(OrderCodec.encode_order(order)),
                order.order_id,
                expected_version,
            )
            if row is None:
                current = await conn.fetchval(
                    "SELECT version FROM production_orders WHERE order_id = $1",
                    order.order_id,
                )
        finally:
            await conn.close()
        if row is None:
            if current is None:
                raise OrderNotFound(f"Order with id {order.order_id!r} not found")
            raise ConcurrentModification(
                f"Order {order.order_id!r} is at version {current}, "
                f"expected {expected_version}"
            )
        return StoredOrder(order=order.model_copy(deep=True), version=row["version"])

    async def list_orders(self) -> list[StoredOrder]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT order_id, version, document FROM production_orders ORDER BY order_id"
            )
        finally:
            await conn.close()
        return [self._to_stored(r) for r in rows]
