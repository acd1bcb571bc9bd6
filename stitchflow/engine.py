"""Workflow engine applying production commands to order snapshots."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from .constants import STEP_ID_PREFIX
from .contracts import (
    AddProduct,
    AssignEmployees,
    Command,
    CommandOutcome,
    EmployeesAssigned,
    OrderCompleted,
    OrderStatusChanged,
    ProductAdded,
    ProductCompleted,
    SetOrderStatus,
    StepCompleted,
    StepReopened,
    UpdateProgress,
    WorkflowEvent,
)
from .errors import (
    DuplicateProduct,
    InvalidPrice,
    InvalidQuantity,
    InvalidStatusTransition,
    OrderCancelled,
    ProductNotFound,
    QuantityStatusMismatch,
    StepNotFound,
    UnknownEmployee,
    UnknownWorkflow,
    WorkflowError,
)
from .models import (
    OrderLifecycle,
    ProductEntry,
    ProductionOrder,
    StepProgress,
    StepStatus,
    utcnow,
)
from .progress import is_order_complete, is_product_complete
from .registry.catalog import WorkflowCatalog
from .registry.roster import Roster

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Identity transitions are accepted so that reapplying a command is a no-op.
ALLOWED_TRANSITIONS: Dict[StepStatus, FrozenSet[StepStatus]] = {
    StepStatus.PENDING: frozenset({StepStatus.PENDING, StepStatus.IN_PROGRESS}),
    StepStatus.IN_PROGRESS: frozenset({StepStatus.IN_PROGRESS, StepStatus.COMPLETED}),
    StepStatus.COMPLETED: frozenset({StepStatus.COMPLETED, StepStatus.IN_PROGRESS}),
}


ORDER_TRANSITIONS: Dict[OrderLifecycle, FrozenSet[OrderLifecycle]] = {
    OrderLifecycle.DRAFT: frozenset({OrderLifecycle.ACTIVE, OrderLifecycle.CANCELLED}),
    OrderLifecycle.ACTIVE: frozenset(
        {OrderLifecycle.DRAFT, OrderLifecycle.COMPLETED, OrderLifecycle.CANCELLED}
    ),
    OrderLifecycle.COMPLETED: frozenset({OrderLifecycle.ACTIVE}),
    OrderLifecycle.CANCELLED: frozenset({OrderLifecycle.ACTIVE}),
}


def can_transition(current: StepStatus, target: StepStatus) -> bool:
    """Return ``True`` when a step may move from ``current`` to ``target``."""
    return target in ALLOWED_TRANSITIONS[current]


def new_order(
    order_id: str,
    code: str,
    customer_name: str,
    created_by: str,
    roster: Roster,
    created_at: Optional[datetime] = None,
    notes: str = "",
    customer_phone: Optional[str] = None,
    customer_address: Optional[str] = None,
    lifecycle: OrderLifecycle = OrderLifecycle.ACTIVE,
) -> ProductionOrder:
    """Create an empty production order attributed to ``created_by``."""
    roster.get(created_by)
    created_at = created_at or utcnow()
    return ProductionOrder(
        order_id=order_id,
        code=code,
        customer_name=customer_name,
        customer_phone=customer_phone,
        customer_address=customer_address,
        created_by=created_by,
        created_at=created_at,
        updated_at=created_at,
        lifecycle=lifecycle,
        notes=notes,
    )


class WorkflowEngine:
    """Apply one validated command to a production order.

    The engine holds only read-only reference data and a clock. Every call is
    given the full order snapshot, which it never mutates: commands operate on
    a deep copy that is returned on success. A failed command raises a
    :class:`~stitchflow.errors.WorkflowError` subclass and leaves the input
    untouched.
    """

    def __init__(
        self,
        catalog: WorkflowCatalog,
        roster: Roster,
        clock: Optional[Clock] = None,
    ) -> None:
        self._catalog = catalog
        self._roster = roster
        self._clock = clock or utcnow

    @property
    def catalog(self) -> WorkflowCatalog:
        return self._catalog

    @property
    def roster(self) -> Roster:
        return self._roster

    def apply(self, order: ProductionOrder, command: Command) -> CommandOutcome:
        """Apply ``command`` to ``order`` and return the new snapshot and events.

        Raises:
            WorkflowError: If the command is invalid for the given snapshot.
        """
        updated = order.model_copy(deep=True)
        if order.is_cancelled and not isinstance(command, SetOrderStatus):
            raise OrderCancelled(f"Order {order.order_id!r} is cancelled")
        if isinstance(command, AddProduct):
            events = self._add_product(updated, command)
        elif isinstance(command, AssignEmployees):
            events = self._assign_employees(updated, command)
        elif isinstance(command, UpdateProgress):
            events = self._update_progress(updated, command)
        elif isinstance(command, SetOrderStatus):
            events = self._set_order_status(updated, command)
        else:
            raise TypeError(f"Unsupported command type: {type(command).__name__}")

        logger.info(
            f"Applied {command.kind} to order {order.order_id} "
            f"({len(events)} event(s))"
        )
        return CommandOutcome(order=updated, events=events)

    def try_apply(self, order: ProductionOrder, command: Command) -> CommandOutcome:
        """Like :meth:`apply` but report failures in ``CommandOutcome.error``."""
        try:
            return self.apply(order, command)
        except WorkflowError as e:
            logger.info(f"Rejected {command.kind} on order {order.order_id}: {e}")
            return CommandOutcome(order=order, error=e)

    # ------------------------------------------------------------------
    # Command handlers
    def _add_product(
        self, order: ProductionOrder, command: AddProduct
    ) -> List[WorkflowEvent]:
        if command.quantity <= 0:
            raise InvalidQuantity(
                f"Quantity must be positive, got {command.quantity}"
            )
        if command.product_id in order.products:
            raise DuplicateProduct(
                f"Product {command.product_id!r} already exists in order {order.order_id!r}"
            )
        missing = [wf_id for wf_id in command.workflow_ids if wf_id not in self._catalog]
        if missing:
            raise UnknownWorkflow(f"Unknown workflow id(s): {', '.join(missing)}")
        if command.price is not None and command.price < 0:
            raise InvalidPrice(f"Price must not be negative, got {command.price}")

        now = self._clock()
        steps: List[StepProgress] = []
        for position, workflow_id in enumerate(command.workflow_ids, start=1):
            workflow = self._catalog.get(workflow_id)
            assigned = self._roster.known_ids(workflow.default_employee_ids)
            dropped = workflow.default_employee_ids - assigned
            if dropped:
                logger.debug(
                    f"Dropping unknown default employees {sorted(dropped)} "
                    f"of workflow {workflow_id}"
                )
            steps.append(
                StepProgress(
                    step_id=f"{STEP_ID_PREFIX}{position}",
                    workflow_id=workflow_id,
                    name=workflow.name,
                    assigned_employees=assigned,
                    updated_at=now,
                    updated_by=command.actor_id,
                )
            )

        order.products[command.product_id] = ProductEntry(
            product_id=command.product_id,
            name=command.name,
            quantity=command.quantity,
            price=command.price,
            steps=steps,
        )
        order.updated_at = now
        return [
            ProductAdded(
                order_id=order.order_id,
                product_id=command.product_id,
                step_ids=[step.step_id for step in steps],
                actor_id=command.actor_id,
            )
        ]

    def _assign_employees(
        self, order: ProductionOrder, command: AssignEmployees
    ) -> List[WorkflowEvent]:
        product, step = self._resolve(order, command.product_id, command.step_id)
        unknown = sorted(
            emp_id
            for emp_id in command.employee_ids
            if not self._roster.is_eligible(emp_id, step.workflow_id)
        )
        if unknown:
            raise UnknownEmployee(f"Unknown employee id(s): {', '.join(unknown)}")
        step.assigned_employees = set(command.employee_ids)
        step.updated_at = order.updated_at = self._clock()
        step.updated_by = command.actor_id
        return [
            EmployeesAssigned(
                order_id=order.order_id,
                product_id=product.product_id,
                step_id=step.step_id,
                employee_ids=sorted(step.assigned_employees),
                actor_id=command.actor_id,
            )
        ]

    def _update_progress(
        self, order: ProductionOrder, command: UpdateProgress
    ) -> List[WorkflowEvent]:
        product, step = self._resolve(order, command.product_id, command.step_id)
        target = command.status
        quantity = command.completed_quantity

        if quantity < 0 or quantity > product.quantity:
            raise InvalidQuantity(
                f"Completed quantity {quantity} is outside 0..{product.quantity}"
            )
        if not can_transition(step.status, target):
            raise InvalidStatusTransition(
                f"Step {step.step_id!r} cannot move from {step.status.value} to {target.value}"
            )
        if target is StepStatus.PENDING and quantity != 0:
            raise QuantityStatusMismatch(
                f"A pending step must have completed quantity 0, got {quantity}"
            )
        if target is StepStatus.COMPLETED and quantity != product.quantity:
            raise QuantityStatusMismatch(
                f"A completed step must have completed quantity {product.quantity}, got {quantity}"
            )

        if step.status is target and step.completed_quantity == quantity:
            logger.debug(
                f"Step {step.step_id} of {product.product_id} already {target.value}/{quantity}"
            )
            return []

        previous = step.status
        product_was_complete = is_product_complete(product)
        order_was_complete = is_order_complete(order)

        step.status = target
        step.completed_quantity = quantity
        step.updated_at = order.updated_at = self._clock()
        step.updated_by = command.actor_id

        events: List[WorkflowEvent] = []
        if target is StepStatus.COMPLETED and previous is not StepStatus.COMPLETED:
            events.append(
                StepCompleted(
                    order_id=order.order_id,
                    product_id=product.product_id,
                    step_id=step.step_id,
                    workflow_id=step.workflow_id,
                    completed_quantity=quantity,
                    actor_id=command.actor_id,
                )
            )
        elif previous is StepStatus.COMPLETED and target is not StepStatus.COMPLETED:
            events.append(
                StepReopened(
                    order_id=order.order_id,
                    product_id=product.product_id,
                    step_id=step.step_id,
                    workflow_id=step.workflow_id,
                    completed_quantity=quantity,
                    actor_id=command.actor_id,
                )
            )
        if not product_was_complete and is_product_complete(product):
            events.append(
                ProductCompleted(
                    order_id=order.order_id,
                    product_id=product.product_id,
                    actor_id=command.actor_id,
                )
            )
        if not order_was_complete and is_order_complete(order):
            events.append(
                OrderCompleted(
                    order_id=order.order_id, code=order.code, actor_id=command.actor_id
                )
            )
        return events

    def _set_order_status(
        self, order: ProductionOrder, command: SetOrderStatus
    ) -> List[WorkflowEvent]:
        previous = order.lifecycle
        target = command.status
        if previous is target:
            return []
        if target not in ORDER_TRANSITIONS[previous]:
            raise InvalidStatusTransition(
                f"Order {order.order_id!r} cannot move from {previous.value} to {target.value}"
            )
        if target is OrderLifecycle.COMPLETED and not is_order_complete(order):
            raise InvalidStatusTransition(
                f"Order {order.order_id!r} still has unfinished steps"
            )

        order.lifecycle = target
        order.updated_at = self._clock()
        return [
            OrderStatusChanged(
                order_id=order.order_id,
                previous=previous,
                status=target,
                actor_id=command.actor_id,
            )
        ]

    # ------------------------------------------------------------------
    @staticmethod
    def _resolve(
        order: ProductionOrder, product_id: str, step_id: str
    ) -> Tuple[ProductEntry, StepProgress]:
        product = order.get_product(product_id)
        if product is None:
            raise ProductNotFound(
                f"Product {product_id!r} not found in order {order.order_id!r}"
            )
        step = product.get_step(step_id)
        if step is None:
            raise StepNotFound(
                f"Step {step_id!r} not found in product {product_id!r}"
            )
        return product, step


__all__ = [
    "WorkflowEngine",
    "ALLOWED_TRANSITIONS",
    "ORDER_TRANSITIONS",
    "can_transition",
    "new_order",
]
