"""Derived completion state for production orders.

Completion is always computed from step statuses on read and never stored,
so it cannot drift from the steps it summarises.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from .models import (
    OrderLifecycle,
    ProductEntry,
    ProductionOrder,
    StepProgress,
    StepStatus,
)


class OrderState(str, Enum):
    """Overall state of an order as shown in listings."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def is_product_complete(product: ProductEntry) -> bool:
    """A product is complete when every one of its steps is completed."""
    return all(step.is_completed for step in product.steps)


def is_order_complete(order: ProductionOrder) -> bool:
    """An order is complete when it has products and all of them are complete."""
    return bool(order.products) and all(
        is_product_complete(product) for product in order.products.values()
    )


def order_status(order: ProductionOrder) -> OrderState:
    """Collapse all step statuses into one state for the order.

    A cancelled order reports ``cancelled`` whatever its steps say.
    """
    if order.is_cancelled:
        return OrderState.CANCELLED
    if is_order_complete(order):
        return OrderState.COMPLETED
    started = any(
        step.status is not StepStatus.PENDING or step.completed_quantity > 0
        for product in order.products.values()
        for step in product.steps
    )
    return OrderState.IN_PROGRESS if started else OrderState.PENDING


def current_step(product: ProductEntry) -> Optional[StepProgress]:
    """Return the step the product is currently at, if any remains."""
    active = next(
        (step for step in product.steps if step.status is StepStatus.IN_PROGRESS), None
    )
    if active is not None:
        return active
    return next(
        (step for step in product.steps if step.status is not StepStatus.COMPLETED),
        None,
    )


def _percent(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole > 0 else 0.0


class ProductSummary(BaseModel):
    product_id: str
    name: str
    quantity: int
    price: Optional[float] = None
    amount: float = 0.0
    total_steps: int
    completed_steps: int
    progress_percent: float
    units_completed_percent: float
    current_step_id: Optional[str] = None
    is_complete: bool = False


class OrderSummary(BaseModel):
    order_id: str
    code: str
    customer_name: str
    status: OrderState
    lifecycle: OrderLifecycle
    total_amount: float
    total_products: int
    total_steps: int
    completed_steps: int
    progress_percent: float
    products: List[ProductSummary] = Field(default_factory=list)


def summarize_product(product: ProductEntry) -> ProductSummary:
    completed = sum(1 for step in product.steps if step.is_completed)
    units_done = sum(step.completed_quantity for step in product.steps)
    active = current_step(product)
    return ProductSummary(
        product_id=product.product_id,
        name=product.name,
        quantity=product.quantity,
        price=product.price,
        amount=product.amount,
        total_steps=len(product.steps),
        completed_steps=completed,
        progress_percent=_percent(completed, len(product.steps)),
        units_completed_percent=_percent(
            units_done, product.quantity * len(product.steps)
        ),
        current_step_id=active.step_id if active else None,
        is_complete=is_product_complete(product),
    )


def summarize(order: ProductionOrder) -> OrderSummary:
    """Build the progress overview shown on the order detail page."""
    products = [summarize_product(p) for p in order.products.values()]
    total_steps = sum(p.total_steps for p in products)
    completed_steps = sum(p.completed_steps for p in products)
    return OrderSummary(
        order_id=order.order_id,
        code=order.code,
        customer_name=order.customer_name,
        status=order_status(order),
        lifecycle=order.lifecycle,
        total_amount=order.total_amount,
        total_products=len(products),
        total_steps=total_steps,
        completed_steps=completed_steps,
        progress_percent=_percent(completed_steps, total_steps),
        products=products,
    )


class StepAssignment(BaseModel):
    """A step awaiting work from a given employee."""

    order_id: str
    order_code: str
    product_id: str
    product_name: str
    product_quantity: int
    step_id: str
    step_name: str
    status: StepStatus
    completed_quantity: int
    updated_at: datetime


def assignments_for(
    orders: Iterable[ProductionOrder], employee_id: str
) -> List[StepAssignment]:
    """List every unfinished step assigned to ``employee_id``.

    Cancelled orders are skipped. Results are ordered by order creation time,
    then product insertion order, then step order.
    """
    result: List[StepAssignment] = []
    for order in sorted(orders, key=lambda o: (o.created_at, o.order_id)):
        if order.is_cancelled:
            continue
        for product in order.products.values():
            for step in product.steps:
                if step.status is StepStatus.COMPLETED:
                    continue
                if employee_id not in step.assigned_employees:
                    continue
                result.append(
                    StepAssignment(
                        order_id=order.order_id,
                        order_code=order.code,
                        product_id=product.product_id,
                        product_name=product.name,
                        product_quantity=product.quantity,
                        step_id=step.step_id,
                        step_name=step.name,
                        status=step.status,
                        completed_quantity=step.completed_quantity,
                        updated_at=step.updated_at,
                    )
                )
    return result


__all__ = [
    "OrderState",
    "is_product_complete",
    "is_order_complete",
    "order_status",
    "current_step",
    "ProductSummary",
    "OrderSummary",
    "summarize_product",
    "summarize",
    "StepAssignment",
    "assignments_for",
]
