"""AssignEmployees command tests."""

import pytest

from stitchflow.contracts import AddProduct, AssignEmployees, EmployeesAssigned
from stitchflow.errors import ProductNotFound, StepNotFound, UnknownEmployee


@pytest.fixture
def with_product(engine, order):
    return engine.apply(
        order,
        AddProduct(product_id="p1", name="Hoodie", quantity=100, workflow_ids=["cutting", "sewing"]),
    ).order


def test_assign_replaces_employee_set(engine, with_product, clock):
    before = with_product.products["p1"].steps[0]
    assert before.assigned_employees == {"NV001", "NV002"}

    outcome = engine.apply(
        with_product,
        AssignEmployees(product_id="p1", step_id="step1", employee_ids={"NV003", "NV006"}, actor_id="NV010"),
    )
    step = outcome.order.products["p1"].steps[0]
    assert step.assigned_employees == {"NV003", "NV006"}
    assert step.updated_at == clock.now
    assert step.updated_at > before.updated_at
    assert step.updated_by == "NV010"
    assert outcome.events == [
        EmployeesAssigned(
            order_id="orderX",
            product_id="p1",
            step_id="step1",
            employee_ids=["NV003", "NV006"],
            actor_id="NV010",
        )
    ]


def test_assign_accepts_employee_outside_default_set(engine, with_product):
    outcome = engine.apply(
        with_product, AssignEmployees(product_id="p1", step_id="step2", employee_ids={"NV010"})
    )
    assert outcome.order.products["p1"].steps[1].assigned_employees == {"NV010"}


def test_assign_empty_set_clears_assignment(engine, with_product):
    outcome = engine.apply(
        with_product, AssignEmployees(product_id="p1", step_id="step1", employee_ids=set())
    )
    assert outcome.order.products["p1"].steps[0].assigned_employees == set()


def test_assign_same_set_still_touches_step(engine, with_product, clock):
    command = AssignEmployees(
        product_id="p1", step_id="step1", employee_ids={"NV001", "NV002"}, actor_id="NV010"
    )
    outcome = engine.apply(with_product, command)
    step = outcome.order.products["p1"].steps[0]
    assert step.assigned_employees == {"NV001", "NV002"}
    assert step.updated_at == outcome.order.updated_at == clock.now
    assert step.updated_by == "NV010"
    assert [e.type for e in outcome.events] == ["employees_assigned"]


def test_assign_unknown_employee_leaves_step_unchanged(engine, with_product):
    with pytest.raises(UnknownEmployee) as exc_info:
        engine.apply(
            with_product,
            AssignEmployees(product_id="p1", step_id="step1", employee_ids={"NV001", "NV404"}),
        )
    assert "NV404" in str(exc_info.value)
    step = with_product.products["p1"].steps[0]
    assert step.assigned_employees == {"NV001", "NV002"}


def test_assign_unknown_product(engine, with_product):
    with pytest.raises(ProductNotFound):
        engine.apply(
            with_product, AssignEmployees(product_id="p9", step_id="step1", employee_ids={"NV001"})
        )


def test_assign_unknown_step(engine, with_product):
    with pytest.raises(StepNotFound):
        engine.apply(
            with_product, AssignEmployees(product_id="p1", step_id="step7", employee_ids={"NV001"})
        )
