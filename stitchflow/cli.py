"""Command line interface for inspecting and updating production orders."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import typer

from stitchflow import (
    OrderTracker,
    WorkflowEngine,
    get_reference_data,
    get_repository,
    get_transport,
)
from stitchflow.config import load_config
from stitchflow.contracts import CommandOutcome
from stitchflow.errors import WorkflowError
from stitchflow.models import OrderLifecycle, StepStatus
from stitchflow.persistence import RepositoryError
from stitchflow.progress import summarize

app = typer.Typer(help="CLI for stitchflow production orders")

# Command groups
catalog_app = typer.Typer(help="Commands for the workflow catalog")
roster_app = typer.Typer(help="Commands for the employee roster")
order_app = typer.Typer(help="Commands for managing orders")
product_app = typer.Typer(help="Commands for products inside an order")
step_app = typer.Typer(help="Commands for production steps")
worker_app = typer.Typer(help="Commands for workers")

app.add_typer(catalog_app, name="catalog")
app.add_typer(roster_app, name="roster")
app.add_typer(order_app, name="order")
app.add_typer(product_app, name="product")
app.add_typer(step_app, name="step")
app.add_typer(worker_app, name="worker")


@app.callback()
def main() -> None:
    """stitchflow CLI entry point."""
    config = load_config()
    logging.basicConfig(level=config.log_level.upper())


def _tracker() -> OrderTracker:
    config = load_config()
    reference = get_reference_data()
    engine = WorkflowEngine(reference.catalog, reference.roster)
    return OrderTracker(
        get_repository(),
        engine,
        transport=get_transport(config=config),
        max_retries=config.max_retries,
    )


def _fail(error: Exception) -> None:
    typer.secho(str(error), fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _report(outcome: CommandOutcome) -> None:
    if not outcome.events:
        typer.echo("No changes")
    for event in outcome.events:
        typer.echo(f"Event: {event.type}")


@catalog_app.command("list")
def catalog_list() -> None:
    """List workflows in creation order with their default employees."""
    catalog = get_reference_data().catalog
    if not len(catalog):
        typer.echo("No workflows found")
        return
    for wf in catalog.list():
        defaults = ", ".join(sorted(wf.default_employee_ids)) or "-"
        typer.echo(f"{wf.id}\t{wf.name}\t{defaults}")


@roster_app.command("list")
def roster_list() -> None:
    """List employees with their roles."""
    roster = get_reference_data().roster
    if not len(roster):
        typer.echo("No employees found")
        return
    for emp in roster.list():
        typer.echo(f"{emp.id}\t{emp.name}\t{emp.role.value}")


@order_app.command("list")
def order_list() -> None:
    """
    List all orders with their derived status and progress.

    Example:
        stitchflow order list
        # Output: orderId001    ORD001    in_progress    37.5%
    """
    orders = asyncio.run(_tracker().list_orders())
    if not orders:
        typer.echo("No orders found")
        return
    for order in orders:
        summary = summarize(order)
        typer.echo(
            f"{order.order_id}\t{order.code}\t{summary.status.value}\t{summary.progress_percent}%"
        )


@order_app.command("show")
def order_show(order_id: str) -> None:
    """
    Show products and step progress for a single order.

    Args:
        order_id: Order to inspect (get from 'order list')

    Example:
        stitchflow order show orderId001
        # Output: Order orderId001 (ORD001): in_progress
        #         - productId001 Hoodie x100: 1/2 steps
        #             step1 Cutting: completed 100/100 [NV001, NV002]
    """
    try:
        order = asyncio.run(_tracker().get_order(order_id))
    except RepositoryError:
        typer.echo("Order not found")
        raise typer.Exit(code=1)
    summary = summarize(order)
    typer.echo(f"Order {order.order_id} ({order.code}): {summary.status.value}")
    typer.echo(f"Customer: {order.customer_name}")
    if order.customer_phone:
        typer.echo(f"Phone: {order.customer_phone}")
    if order.customer_address:
        typer.echo(f"Address: {order.customer_address}")
    typer.echo(f"Lifecycle: {order.lifecycle.value}")
    typer.echo(
        f"Progress: {summary.completed_steps}/{summary.total_steps} steps "
        f"({summary.progress_percent}%)"
    )
    if order.total_amount:
        typer.echo(f"Total: {order.total_amount:.2f}")
    for product, product_summary in zip(order.products.values(), summary.products):
        typer.echo(
            f"- {product.product_id} {product.name} x{product.quantity}: "
            f"{product_summary.completed_steps}/{product_summary.total_steps} steps"
        )
        for step in product.steps:
            employees = ", ".join(sorted(step.assigned_employees)) or "unassigned"
            typer.echo(
                f"    {step.step_id} {step.name}: {step.status.value} "
                f"{step.completed_quantity}/{product.quantity} [{employees}]"
            )


@order_app.command("create")
def order_create(
    customer: str = typer.Option(..., help="Customer name"),
    created_by: str = typer.Option(..., help="Employee id of the sales person"),
    code: Optional[str] = typer.Option(None, help="Order code (generated when omitted)"),
    notes: str = typer.Option("", help="Free-form notes"),
    phone: Optional[str] = typer.Option(None, help="Customer phone number"),
    address: Optional[str] = typer.Option(None, help="Customer delivery address"),
    draft: bool = typer.Option(False, "--draft", help="Create the order as a draft"),
) -> None:
    """Create an empty order and print its id and code."""
    try:
        stored = asyncio.run(
            _tracker().create_order(
                customer_name=customer,
                created_by=created_by,
                code=code,
                notes=notes,
                customer_phone=phone,
                customer_address=address,
                lifecycle=OrderLifecycle.DRAFT if draft else OrderLifecycle.ACTIVE,
            )
        )
    except (WorkflowError, RepositoryError) as e:
        _fail(e)
    typer.echo(f"Order created: {stored.order.order_id}\t{stored.order.code}")


@order_app.command("status")
def order_status(
    order_id: str,
    status: OrderLifecycle,
    actor: Optional[str] = typer.Option(None, help="Employee id performing the change"),
) -> None:
    """
    Move an order through draft, active, completed and cancelled.

    Example:
        stitchflow order status orderId001 cancelled --actor NV010
    """
    try:
        outcome = asyncio.run(_tracker().set_order_status(order_id, status, actor))
    except (WorkflowError, RepositoryError) as e:
        _fail(e)
    _report(outcome)


@product_app.command("add")
def product_add(
    order_id: str,
    product_id: str,
    name: str,
    quantity: int,
    workflow: List[str] = typer.Option([], help="Workflow id, repeat in execution order"),
    price: Optional[float] = typer.Option(None, help="Unit price"),
    actor: Optional[str] = typer.Option(None, help="Employee id performing the change"),
) -> None:
    """
    Add a product routed through the given workflows.

    Example:
        stitchflow product add orderId001 p1 Hoodie 100 --workflow cutting --workflow sewing
    """
    try:
        outcome = asyncio.run(
            _tracker().add_product(
                order_id, product_id, name, quantity, workflow, actor, price=price
            )
        )
    except (WorkflowError, RepositoryError) as e:
        _fail(e)
    _report(outcome)


@step_app.command("assign")
def step_assign(
    order_id: str,
    product_id: str,
    step_id: str,
    employee: List[str] = typer.Option([], help="Employee id, repeat for several"),
    actor: Optional[str] = typer.Option(None, help="Employee id performing the change"),
) -> None:
    """Replace the employees assigned to a step."""
    try:
        outcome = asyncio.run(
            _tracker().assign_employees(order_id, product_id, step_id, employee, actor)
        )
    except (WorkflowError, RepositoryError) as e:
        _fail(e)
    _report(outcome)


@step_app.command("progress")
def step_progress(
    order_id: str,
    product_id: str,
    step_id: str,
    status: StepStatus,
    quantity: int,
    actor: Optional[str] = typer.Option(None, help="Employee id performing the change"),
) -> None:
    """
    Record the status and completed quantity of a step.

    Example:
        stitchflow step progress orderId001 p1 step1 in_progress 40
    """
    try:
        outcome = asyncio.run(
            _tracker().update_progress(
                order_id, product_id, step_id, status, quantity, actor
            )
        )
    except (WorkflowError, RepositoryError) as e:
        _fail(e)
    _report(outcome)


@worker_app.command("queue")
def worker_queue(employee_id: str) -> None:
    """List unfinished steps assigned to an employee."""
    try:
        assignments = asyncio.run(_tracker().worker_queue(employee_id))
    except WorkflowError as e:
        _fail(e)
    if not assignments:
        typer.echo("Nothing assigned")
        return
    for item in assignments:
        typer.echo(
            f"{item.order_code}\t{item.product_name}\t{item.step_id} {item.step_name}\t"
            f"{item.status.value}\t{item.completed_quantity}/{item.product_quantity}"
        )


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
