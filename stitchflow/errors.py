"""Typed errors raised by the workflow engine and its collaborators."""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for command validation failures.

    Every subclass carries a stable ``code`` so callers can report or branch
    on the failure without matching on message text. None of these are
    retried by the engine: they signal caller misuse or a stale snapshot.
    """

    code = "workflow_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InvalidQuantity(WorkflowError):
    code = "invalid_quantity"


class DuplicateProduct(WorkflowError):
    code = "duplicate_product"


class UnknownWorkflow(WorkflowError):
    code = "unknown_workflow"


class ProductNotFound(WorkflowError):
    code = "product_not_found"


class StepNotFound(WorkflowError):
    code = "step_not_found"


class UnknownEmployee(WorkflowError):
    code = "unknown_employee"


class InvalidStatusTransition(WorkflowError):
    code = "invalid_status_transition"


class QuantityStatusMismatch(WorkflowError):
    code = "quantity_status_mismatch"


class InvalidPrice(WorkflowError):
    code = "invalid_price"


class OrderCancelled(WorkflowError):
    """Raised for product or step changes on a cancelled order."""

    code = "order_cancelled"


__all__ = [
    "WorkflowError",
    "InvalidQuantity",
    "DuplicateProduct",
    "UnknownWorkflow",
    "ProductNotFound",
    "StepNotFound",
    "UnknownEmployee",
    "InvalidStatusTransition",
    "QuantityStatusMismatch",
    "InvalidPrice",
    "OrderCancelled",
]
