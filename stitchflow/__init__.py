"""stitchflow: production workflow tracking for garment orders."""

from .contracts import (
    AddProduct,
    AssignEmployees,
    CommandOutcome,
    EventMessage,
    SetOrderStatus,
    UpdateProgress,
)
from .engine import WorkflowEngine, new_order
from .models import (
    Employee,
    EmployeeRole,
    OrderLifecycle,
    ProductEntry,
    ProductionOrder,
    StepProgress,
    StepStatus,
    WorkflowDefinition,
)
from .persistence import get_repository
from .progress import is_order_complete, is_product_complete, summarize
from .registry import Roster, WorkflowCatalog, get_reference_data
from .tracker import OrderTracker
from .transports import get_transport

__version__ = "0.1.0"
__all__ = [
    "AddProduct",
    "AssignEmployees",
    "UpdateProgress",
    "SetOrderStatus",
    "CommandOutcome",
    "EventMessage",
    "WorkflowEngine",
    "new_order",
    "Employee",
    "EmployeeRole",
    "OrderLifecycle",
    "ProductEntry",
    "ProductionOrder",
    "StepProgress",
    "StepStatus",
    "WorkflowDefinition",
    "WorkflowCatalog",
    "Roster",
    "get_reference_data",
    "get_repository",
    "get_transport",
    "is_order_complete",
    "is_product_complete",
    "summarize",
    "OrderTracker",
]
