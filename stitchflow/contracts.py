"""Command, event and envelope contracts for the stitchflow engine."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import WorkflowError
from .models import OrderLifecycle, ProductionOrder, StepStatus


class AddProduct(BaseModel):
    """Add a product to an order with one step per workflow id."""

    kind: Literal["add_product"] = "add_product"
    product_id: str
    name: str
    quantity: int
    workflow_ids: List[str] = Field(default_factory=list)
    price: Optional[float] = None
    actor_id: Optional[str] = None


class AssignEmployees(BaseModel):
    """Replace the employee set assigned to a step."""

    kind: Literal["assign_employees"] = "assign_employees"
    product_id: str
    step_id: str
    employee_ids: Set[str] = Field(default_factory=set)
    actor_id: Optional[str] = None


class UpdateProgress(BaseModel):
    """Set the status and completed quantity of a step."""

    kind: Literal["update_progress"] = "update_progress"
    product_id: str
    step_id: str
    status: StepStatus
    completed_quantity: int
    actor_id: Optional[str] = None


class SetOrderStatus(BaseModel):
    """Move the order to another lifecycle status."""

    kind: Literal["set_order_status"] = "set_order_status"
    status: OrderLifecycle
    actor_id: Optional[str] = None


Command = Annotated[
    Union[AddProduct, AssignEmployees, UpdateProgress, SetOrderStatus],
    Field(discriminator="kind"),
]


class ProductAdded(BaseModel):
    type: Literal["product_added"] = "product_added"
    order_id: str
    product_id: str
    step_ids: List[str] = Field(default_factory=list)
    actor_id: Optional[str] = None


class EmployeesAssigned(BaseModel):
    type: Literal["employees_assigned"] = "employees_assigned"
    order_id: str
    product_id: str
    step_id: str
    employee_ids: List[str] = Field(default_factory=list)
    actor_id: Optional[str] = None


class StepCompleted(BaseModel):
    type: Literal["step_completed"] = "step_completed"
    order_id: str
    product_id: str
    step_id: str
    workflow_id: str
    completed_quantity: int
    actor_id: Optional[str] = None


class StepReopened(BaseModel):
    type: Literal["step_reopened"] = "step_reopened"
    order_id: str
    product_id: str
    step_id: str
    workflow_id: str
    completed_quantity: int
    actor_id: Optional[str] = None


class ProductCompleted(BaseModel):
    type: Literal["product_completed"] = "product_completed"
    order_id: str
    product_id: str
    actor_id: Optional[str] = None


class OrderCompleted(BaseModel):
    type: Literal["order_completed"] = "order_completed"
    order_id: str
    code: str
    actor_id: Optional[str] = None


class OrderStatusChanged(BaseModel):
    type: Literal["order_status_changed"] = "order_status_changed"
    order_id: str
    previous: OrderLifecycle
    status: OrderLifecycle
    actor_id: Optional[str] = None


WorkflowEvent = Annotated[
    Union[
        ProductAdded,
        EmployeesAssigned,
        StepCompleted,
        StepReopened,
        ProductCompleted,
        OrderCompleted,
        OrderStatusChanged,
    ],
    Field(discriminator="type"),
]


class CommandOutcome(BaseModel):
    """Result of applying one command.

    ``order`` is the resulting snapshot; on failure it is the untouched input
    snapshot and ``error`` holds the typed error.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    order: ProductionOrder
    events: List[WorkflowEvent] = Field(default_factory=list)
    error: Optional[WorkflowError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EventMessage(BaseModel):
    """Envelope published over an event transport."""

    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    order_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event: WorkflowEvent
    spec_version: str = "1.0"

    @property
    def topic(self) -> str:
        return self.event.type

    def to_json(self) -> str:
        """Serialize message to JSON."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "EventMessage":
        """Deserialize message from JSON."""
        return cls.model_validate_json(data)


__all__ = [
    "AddProduct",
    "AssignEmployees",
    "UpdateProgress",
    "SetOrderStatus",
    "Command",
    "ProductAdded",
    "EmployeesAssigned",
    "StepCompleted",
    "StepReopened",
    "ProductCompleted",
    "OrderCompleted",
    "OrderStatusChanged",
    "WorkflowEvent",
    "CommandOutcome",
    "EventMessage",
]
