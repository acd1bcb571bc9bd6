"""Encoding between domain models and the hierarchical document layout.

The document store keeps orders keyed by id, each with a ``products`` map
keyed by product id, each with a ``steps`` map keyed by step id. Employee
sets are stored as ``{employee_id: true}`` maps and timestamps as Unix
seconds. This module is the only place that knows about that shape.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple

import yaml

from .models import (
    Employee,
    ProductEntry,
    ProductionOrder,
    StepProgress,
    WorkflowDefinition,
)
from .registry.catalog import WorkflowCatalog
from .registry.roster import Roster

# Timestamps above this are treated as milliseconds (year ~5138 in seconds).
_MILLISECONDS_THRESHOLD = 100_000_000_000

_STEP_ORDINAL = re.compile(r"(\d+)$")


def encode_timestamp(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def decode_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if not isinstance(value, (int, float)):
        raise ValueError(f"Cannot decode timestamp from {value!r}")
    if value > _MILLISECONDS_THRESHOLD:
        value = value / 1000
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _step_sort_key(item: Tuple[str, dict]) -> Tuple[int, int]:
    step_id, data = item
    if data.get("order") is not None:
        return 0, int(data["order"])
    match = _STEP_ORDINAL.search(step_id)
    return 1, int(match.group(1)) if match else 0


def _first(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present in ``data``.

    Documents written by the first generation of the order screens use
    ``stages``/``stageId``/``staff`` where current ones use
    ``steps``/``workflowId``/``employees``; both are read.
    """
    for key in keys:
        if key in data:
            return data[key]
    return default


class OrderCodec:
    """Convert orders to and from their document representation."""

    @staticmethod
    def encode_step(step: StepProgress, position: int) -> dict:
        return {
            "workflowId": step.workflow_id,
            "name": step.name,
            "employees": {emp_id: True for emp_id in sorted(step.assigned_employees)},
            "status": step.status.value,
            "completedQuantity": step.completed_quantity,
            "updatedAt": encode_timestamp(step.updated_at),
            "updatedBy": step.updated_by,
            "order": position,
        }

    @staticmethod
    def decode_step(step_id: str, data: dict) -> StepProgress:
        employees = _first(data, "employees", "staff") or {}
        # older documents store a plain list of ids
        if isinstance(employees, dict):
            assigned = {emp_id for emp_id, flag in employees.items() if flag}
        else:
            assigned = set(employees)
        workflow_id = _first(data, "workflowId", "stageId")
        if workflow_id is None:
            raise ValueError(f"Step {step_id!r} is missing field 'workflowId'")
        try:
            return StepProgress(
                step_id=step_id,
                workflow_id=workflow_id,
                name=data.get("name", ""),
                assigned_employees=assigned,
                status=data.get("status", "pending"),
                completed_quantity=int(data.get("completedQuantity", 0)),
                updated_at=decode_timestamp(data["updatedAt"]),
                updated_by=data.get("updatedBy"),
            )
        except KeyError as e:
            raise ValueError(f"Step {step_id!r} is missing field {e}")

    @classmethod
    def encode_product(cls, product: ProductEntry) -> dict:
        return {
            "name": product.name,
            "quantity": product.quantity,
            "price": product.price,
            "steps": {
                step.step_id: cls.encode_step(step, position)
                for position, step in enumerate(product.steps)
            },
        }

    @classmethod
    def decode_product(cls, product_id: str, data: dict) -> ProductEntry:
        raw_steps = _first(data, "steps", "stages") or {}
        steps = sorted(raw_steps.items(), key=_step_sort_key)
        price = data.get("price")
        try:
            return ProductEntry(
                product_id=product_id,
                name=data.get("name", ""),
                quantity=int(data["quantity"]),
                price=float(price) if price is not None else None,
                steps=[cls.decode_step(step_id, step) for step_id, step in steps],
            )
        except KeyError as e:
            raise ValueError(f"Product {product_id!r} is missing field {e}")

    @classmethod
    def encode_order(cls, order: ProductionOrder) -> dict:
        # totalAmount is derived from product prices and only written for readers
        return {
            "code": order.code,
            "customerName": order.customer_name,
            "customerPhone": order.customer_phone,
            "customerAddress": order.customer_address,
            "createdBy": order.created_by,
            "createdAt": encode_timestamp(order.created_at),
            "updatedAt": encode_timestamp(order.updated_at or order.created_at),
            "status": order.lifecycle.value,
            "totalAmount": order.total_amount,
            "notes": order.notes,
            "products": {
                product_id: cls.encode_product(product)
                for product_id, product in order.products.items()
            },
        }

    @classmethod
    def decode_order(cls, order_id: str, data: dict) -> ProductionOrder:
        try:
            created_at = decode_timestamp(data["createdAt"])
            updated_at = data.get("updatedAt")
            return ProductionOrder(
                order_id=order_id,
                code=data["code"],
                customer_name=data.get("customerName", ""),
                customer_phone=data.get("customerPhone"),
                customer_address=data.get("customerAddress"),
                created_by=data["createdBy"],
                created_at=created_at,
                updated_at=(
                    decode_timestamp(updated_at) if updated_at is not None else created_at
                ),
                lifecycle=data.get("status") or "active",
                notes=data.get("notes") or "",
                products={
                    product_id: cls.decode_product(product_id, product)
                    for product_id, product in (data.get("products") or {}).items()
                },
            )
        except KeyError as e:
            raise ValueError(f"Order {order_id!r} is missing field {e}")

    @classmethod
    def encode_orders(cls, orders: Iterable[ProductionOrder]) -> Dict[str, dict]:
        return {order.order_id: cls.encode_order(order) for order in orders}

    @classmethod
    def decode_orders(cls, data: Dict[str, dict]) -> list[ProductionOrder]:
        return [cls.decode_order(order_id, doc) for order_id, doc in data.items()]


def encode_workflow(workflow: WorkflowDefinition) -> dict:
    return {
        "name": workflow.name,
        "defaultEmployees": sorted(workflow.default_employee_ids),
        "createdAt": encode_timestamp(workflow.created_at),
    }


def decode_workflow(workflow_id: str, data: dict) -> WorkflowDefinition:
    created_at = data.get("createdAt")
    return WorkflowDefinition(
        id=workflow_id,
        name=data["name"],
        default_employee_ids=set(_first(data, "defaultEmployees", "defaultStaff") or []),
        created_at=(
            decode_timestamp(created_at)
            if created_at is not None
            else datetime.fromtimestamp(0, tz=timezone.utc)
        ),
    )


def encode_employee(employee: Employee) -> dict:
    return {"name": employee.name, "role": employee.role.value}


def decode_employee(employee_id: str, data: dict) -> Employee:
    return Employee(id=employee_id, name=data["name"], role=data.get("role", "worker"))


def decode_reference_data(data: dict) -> Tuple[WorkflowCatalog, Roster]:
    """Build a catalog and roster from a ``{workflows, employees}`` document.

    The legacy ``{stages, staff}`` root keys are accepted as well.
    """
    workflows = _first(data, "workflows", "stages") or {}
    employees = _first(data, "employees", "staff") or {}
    catalog = WorkflowCatalog(
        decode_workflow(wf_id, wf) for wf_id, wf in workflows.items()
    )
    roster = Roster(decode_employee(emp_id, emp) for emp_id, emp in employees.items())
    return catalog, roster


def load_document(path: str | Path) -> dict:
    """Read a YAML or JSON document from ``path``."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text) or {}
    return yaml.safe_load(text) or {}


def load_reference_data(path: str | Path) -> Tuple[WorkflowCatalog, Roster]:
    """Load the workflow catalog and employee roster from a file."""
    return decode_reference_data(load_document(path))


__all__ = [
    "OrderCodec",
    "encode_timestamp",
    "decode_timestamp",
    "encode_workflow",
    "decode_workflow",
    "encode_employee",
    "decode_employee",
    "decode_reference_data",
    "load_document",
    "load_reference_data",
]
