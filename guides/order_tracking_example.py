"""Walk a hoodie order from creation to completion."""

import asyncio

from stitchflow import (
    Employee,
    OrderTracker,
    Roster,
    WorkflowCatalog,
    WorkflowDefinition,
    WorkflowEngine,
    get_repository,
    get_transport,
    summarize,
)


def build_reference_data():
    catalog = WorkflowCatalog(
        [
            WorkflowDefinition(id="cutting", name="Cutting", default_employee_ids={"NV001", "NV002"}),
            WorkflowDefinition(id="sewing", name="Sewing", default_employee_ids={"NV001"}),
            WorkflowDefinition(id="qc", name="Quality Control", default_employee_ids={"NV004"}),
        ]
    )
    roster = Roster(
        [
            Employee(id="NV001", name="Nguyen Van A", role="worker"),
            Employee(id="NV002", name="Tran Thi B", role="worker"),
            Employee(id="NV004", name="Pham Thi D", role="qc"),
            Employee(id="NV009", name="Do Van Sale", role="sale"),
        ]
    )
    return catalog, roster


async def main():
    """Create an order, add a product and record progress on each step."""
    catalog, roster = build_reference_data()
    transport = get_transport()
    await transport.connect()

    tracker = OrderTracker(get_repository(), WorkflowEngine(catalog, roster), transport=transport)

    stored = await tracker.create_order(customer_name="Linh", created_by="NV009")
    order_id = stored.order_id
    print(f"✅ Order created: {stored.order.code}")

    await tracker.add_product(
        order_id, "p1", "Hoodie", 100, ["cutting", "sewing", "qc"], actor_id="NV009", price=12.0
    )

    for step_id in ("step1", "step2", "step3"):
        await tracker.update_progress(order_id, "p1", step_id, "in_progress", 50, actor_id="NV001")
        outcome = await tracker.update_progress(order_id, "p1", step_id, "completed", 100, actor_id="NV001")
        print(f"🔗 {step_id}: {[event.type for event in outcome.events]}")

    summary = summarize(await tracker.get_order(order_id))
    print(f"📋 Status: {summary.status.value} ({summary.progress_percent}%)")

    await tracker.set_order_status(order_id, "completed", actor_id="NV009")
    order = await tracker.get_order(order_id)
    print(f"📦 Closed as {order.lifecycle.value}, total {order.total_amount:.2f}")
    if hasattr(transport, "history"):
        print(f"📨 Events: {[m.topic for m in transport.history(order_id)]}")

    await transport.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
