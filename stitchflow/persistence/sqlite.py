"""SQLite implementation of the order repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from pathlib import Path
from typing import Any

from ..codec import OrderCodec
from ..models import ProductionOrder
from .models import StoredOrder
from .repository import (
    ConcurrentModification,
    DuplicateOrder,
    OrderNotFound,
    OrderRepository,
)


class SQLiteOrderRepository(OrderRepository):
    """Persist orders as encoded documents using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS orders (
                order_id TEXT PRIMARY KEY,
                code TEXT NOT NULL UNIQUE,
                version INTEGER NOT NULL,
                document TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()
        return cur.rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    @staticmethod
    def _to_stored(row: sqlite3.Row) -> StoredOrder:
        order = OrderCodec.decode_order(row["order_id"], json.loads(row["document"]))
        return StoredOrder(order=order, version=row["version"])

    # ------------------------------------------------------------------
    # Repository API
    async def create_order(self, order: ProductionOrder) -> StoredOrder:
        try:
            await asyncio.to_thread(
                self._execute,
                "INSERT INTO orders (order_id, code, version, document) VALUES (?, ?, ?, ?)",
                order.order_id,
                order.code,
                1,
                json.dumps(OrderCodec.encode_order(order)),
            )
        except sqlite3.IntegrityError as exc:
            raise DuplicateOrder(
                f"Order {order.order_id!r} or code {order.code!r} already exists"
            ) from exc
        return StoredOrder(order=order.model_copy(deep=True), version=1)

    async def get_order(self, order_id: str) -> StoredOrder | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT order_id, version, document FROM orders WHERE order_id = ?",
            order_id,
        )
        return self._to_stored(row) if row else None

    async def get_order_by_code(self, code: str) -> StoredOrder | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT order_id, version, document FROM orders WHERE code = ?",
            code,
        )
        return self._to_stored(row) if row else None

    async def save_order(
        self, order: ProductionOrder, expected_version: int
    ) -> StoredOrder:
        updated = await asyncio.to_thread(
            self._execute,
            "UPDATE orders SET document = ?, version = version + 1 "
            "WHERE order_id = ? AND version = ?",
            json.dumps(OrderCodec.encode_order(order)),
            order.order_id,
            expected_version,
        )
        if updated == 0:
            row = await asyncio.to_thread(
                self._fetchone,
                "SELECT version FROM orders WHERE order_id = ?",
                order.order_id,
            )
            if row is None:
                raise OrderNotFound(f"Order with id {order.order_id!r} not found")
            raise ConcurrentModification(
                f"Order {order.order_id!r} is at version {row['version']}, "
                f"expected {expected_version}"
            )
        return StoredOrder(
            order=order.model_copy(deep=True), version=expected_version + 1
        )

    async def list_orders(self) -> list[StoredOrder]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT order_id, version, document FROM orders ORDER BY order_id",
        )
        return [self._to_stored(row) for row in rows]
