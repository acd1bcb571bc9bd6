"""Order tracking service: load, apply, persist, publish."""

from __future__ import annotations

import asyncio
import logging
import random
import string
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, Optional

from .constants import DEFAULT_MAX_RETRIES, ORDER_CODE_PREFIX
from .contracts import (
    AddProduct,
    AssignEmployees,
    Command,
    CommandOutcome,
    EventMessage,
    SetOrderStatus,
    UpdateProgress,
    WorkflowEvent,
)
from .engine import WorkflowEngine, new_order
from .models import OrderLifecycle, ProductionOrder, StepStatus, utcnow
from .persistence import (
    ConcurrentModification,
    DuplicateOrder,
    OrderNotFound,
    OrderRepository,
    StoredOrder,
)
from .progress import OrderSummary, StepAssignment, assignments_for, summarize
from .transports import BaseTransport
from .utils.retry import schedule_retry

logger = logging.getLogger(__name__)


def generate_order_code() -> str:
    """Return a human-readable order code such as ``ORD482913K7Q``."""
    millis = str(int(utcnow().timestamp() * 1000))[-6:]
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=3))
    return f"{ORDER_CODE_PREFIX}{millis}{suffix}"


class OrderTracker:
    """Runs engine commands against persisted orders.

    Commands for the same order are serialised by an in-process lock, and
    each save is checked against the version it was derived from. A save that
    loses a race with another process is retried on a fresh snapshot up to
    ``max_retries`` times; engine validation errors are never retried.
    """

    def __init__(
        self,
        repository: OrderRepository,
        engine: WorkflowEngine,
        transport: BaseTransport | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = 0.05,
    ) -> None:
        self._repository = repository
        self._engine = engine
        self._transport = transport
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @property
    def engine(self) -> WorkflowEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Orders
    async def create_order(
        self,
        customer_name: str,
        created_by: str,
        code: Optional[str] = None,
        notes: str = "",
        order_id: Optional[str] = None,
        customer_phone: Optional[str] = None,
        customer_address: Optional[str] = None,
        lifecycle: OrderLifecycle | str = OrderLifecycle.ACTIVE,
    ) -> StoredOrder:
        """Create and persist an empty order.

        When ``code`` is omitted one is generated; a generated code that
        collides with an existing order is regenerated. A clash on an
        explicit ``code`` or ``order_id`` is raised as :class:`DuplicateOrder`.
        """
        attempts = 0
        while True:
            order = new_order(
                order_id=order_id or str(uuid.uuid4()),
                code=code or generate_order_code(),
                customer_name=customer_name,
                created_by=created_by,
                roster=self._engine.roster,
                notes=notes,
                customer_phone=customer_phone,
                customer_address=customer_address,
                lifecycle=OrderLifecycle(lifecycle),
            )
            try:
                stored = await self._repository.create_order(order)
            except DuplicateOrder:
                if code is not None or attempts >= self._max_retries:
                    raise
                if order_id is not None and (
                    await self._repository.get_order(order_id) is not None
                ):
                    raise
                attempts += 1
                logger.debug(f"Order code {order.code} taken, generating another")
                continue
            logger.info(f"Created order {order.order_id} ({order.code})")
            return stored

    async def get_order(self, order_id: str) -> ProductionOrder:
        stored = await self._repository.get_order(order_id)
        if stored is None:
            raise OrderNotFound(f"Order with id {order_id!r} not found")
        return stored.order

    async def list_orders(self) -> List[ProductionOrder]:
        return [stored.order for stored in await self._repository.list_orders()]

    # ------------------------------------------------------------------
    # Commands
    async def submit(self, order_id: str, command: Command) -> CommandOutcome:
        """Apply ``command`` to the stored order and persist the result.

        Raises:
            OrderNotFound: If the order does not exist.
            WorkflowError: If the engine rejects the command.
            ConcurrentModification: If retries are exhausted.
        """
        async with self._order_lock(order_id):
            attempt = 0
            while True:
                stored = await self._repository.get_order(order_id)
                if stored is None:
                    raise OrderNotFound(f"Order with id {order_id!r} not found")
                outcome = self._engine.apply(stored.order, command)
                if outcome.order == stored.order:
                    return outcome
                try:
                    await self._repository.save_order(outcome.order, stored.version)
                except ConcurrentModification as e:
                    if attempt >= self._max_retries:
                        raise
                    logger.warning(
                        f"Retrying {command.kind} on order {order_id} "
                        f"(attempt {attempt + 1}/{self._max_retries}): {e}"
                    )
                    await schedule_retry(attempt, initial=self._retry_delay)
                    attempt += 1
                    continue
                break

        await self._publish(order_id, outcome.events)
        return outcome

    @asynccontextmanager
    async def _order_lock(self, order_id: str) -> AsyncIterator[None]:
        # entries live only while a command for the order holds or awaits the lock
        lock = self._locks.setdefault(order_id, asyncio.Lock())
        self._lock_users[order_id] = self._lock_users.get(order_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[order_id] -= 1
            if not self._lock_users[order_id]:
                del self._lock_users[order_id]
                del self._locks[order_id]

    async def add_product(
        self,
        order_id: str,
        product_id: str,
        name: str,
        quantity: int,
        workflow_ids: Iterable[str],
        actor_id: Optional[str] = None,
        price: Optional[float] = None,
    ) -> CommandOutcome:
        command = AddProduct(
            product_id=product_id,
            name=name,
            quantity=quantity,
            workflow_ids=list(workflow_ids),
            price=price,
            actor_id=actor_id,
        )
        return await self.submit(order_id, command)

    async def set_order_status(
        self,
        order_id: str,
        status: OrderLifecycle | str,
        actor_id: Optional[str] = None,
    ) -> CommandOutcome:
        command = SetOrderStatus(status=OrderLifecycle(status), actor_id=actor_id)
        return await self.submit(order_id, command)

    async def assign_employees(
        self,
        order_id: str,
        product_id: str,
        step_id: str,
        employee_ids: Iterable[str],
        actor_id: Optional[str] = None,
    ) -> CommandOutcome:
        command = AssignEmployees(
            product_id=product_id,
            step_id=step_id,
            employee_ids=set(employee_ids),
            actor_id=actor_id,
        )
        return await self.submit(order_id, command)

    async def update_progress(
        self,
        order_id: str,
        product_id: str,
        step_id: str,
        status: StepStatus | str,
        completed_quantity: int,
        actor_id: Optional[str] = None,
    ) -> CommandOutcome:
        command = UpdateProgress(
            product_id=product_id,
            step_id=step_id,
            status=StepStatus(status),
            completed_quantity=completed_quantity,
            actor_id=actor_id,
        )
        return await self.submit(order_id, command)

    # ------------------------------------------------------------------
    # Queries
    async def summary(self, order_id: str) -> OrderSummary:
        return summarize(await self.get_order(order_id))

    async def worker_queue(self, employee_id: str) -> List[StepAssignment]:
        self._engine.roster.get(employee_id)
        return assignments_for(await self.list_orders(), employee_id)

    # ------------------------------------------------------------------
    async def _publish(self, order_id: str, events: List[WorkflowEvent]) -> None:
        if self._transport is None or not events:
            return
        messages = [EventMessage(order_id=order_id, event=event) for event in events]
        await self._transport.publish(messages)
        logger.info(
            f"Published {', '.join(m.topic for m in messages)} for order {order_id}"
        )


__all__ = ["OrderTracker", "generate_order_code"]
