"""Production order data model."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmployeeRole(str, Enum):
    """Closed set of roles an employee can hold."""

    WORKER = "worker"
    QC = "qc"
    SPECIALIST = "specialist"
    SALE = "sale"
    MANAGER = "manager"


class StepStatus(str, Enum):
    """Status of one production step."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class OrderLifecycle(str, Enum):
    """Administrative status of an order, set explicitly by staff."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Employee(BaseModel):
    """Roster entry for a member of staff."""

    id: str
    name: str
    role: EmployeeRole = EmployeeRole.WORKER


class WorkflowDefinition(BaseModel):
    """A named production activity usable as a step template."""

    id: str
    name: str
    default_employee_ids: Set[str] = Field(default_factory=set)
    created_at: datetime = Field(default_factory=utcnow)


class StepProgress(BaseModel):
    """State of one production step for one product."""

    step_id: str
    workflow_id: str
    # snapshot of the workflow name when the step was created
    name: str
    assigned_employees: Set[str] = Field(default_factory=set)
    status: StepStatus = StepStatus.PENDING
    completed_quantity: int = 0
    updated_at: datetime = Field(default_factory=utcnow)
    updated_by: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status is StepStatus.COMPLETED


class ProductEntry(BaseModel):
    """A product line of an order and its ordered step sequence."""

    product_id: str
    name: str
    quantity: int
    price: Optional[float] = None
    steps: List[StepProgress] = Field(default_factory=list)

    @property
    def amount(self) -> float:
        """Line total, zero when the product has no price."""
        return (self.price or 0) * self.quantity

    def get_step(self, step_id: str) -> Optional[StepProgress]:
        """Return the step with ``step_id`` or ``None``."""
        return next((step for step in self.steps if step.step_id == step_id), None)


class ProductionOrder(BaseModel):
    """Customer order decomposed into products tracked through their steps."""

    order_id: str
    code: str
    customer_name: str
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    lifecycle: OrderLifecycle = OrderLifecycle.ACTIVE
    notes: str = ""
    products: Dict[str, ProductEntry] = Field(default_factory=dict)

    @property
    def total_amount(self) -> float:
        return sum(product.amount for product in self.products.values())

    @property
    def is_cancelled(self) -> bool:
        return self.lifecycle is OrderLifecycle.CANCELLED

    def get_product(self, product_id: str) -> Optional[ProductEntry]:
        """Return the product with ``product_id`` or ``None``."""
        return self.products.get(product_id)


__all__ = [
    "EmployeeRole",
    "OrderLifecycle",
    "StepStatus",
    "Employee",
    "WorkflowDefinition",
    "StepProgress",
    "ProductEntry",
    "ProductionOrder",
    "utcnow",
]
