"""UpdateProgress command and step state machine tests."""

import pytest

from stitchflow.contracts import (
    AddProduct,
    OrderCompleted,
    ProductCompleted,
    StepCompleted,
    StepReopened,
    UpdateProgress,
)
from stitchflow.engine import can_transition
from stitchflow.errors import (
    InvalidQuantity,
    InvalidStatusTransition,
    ProductNotFound,
    QuantityStatusMismatch,
    StepNotFound,
)
from stitchflow.models import StepStatus

PENDING = StepStatus.PENDING
IN_PROGRESS = StepStatus.IN_PROGRESS
COMPLETED = StepStatus.COMPLETED


def progress(step_id, status, quantity, product_id="p1"):
    return UpdateProgress(
        product_id=product_id, step_id=step_id, status=status, completed_quantity=quantity
    )


@pytest.fixture
def hoodie_order(engine, order):
    return engine.apply(
        order,
        AddProduct(product_id="p1", name="Hoodie", quantity=100, workflow_ids=["cutting", "sewing"]),
    ).order


def test_start_step(engine, hoodie_order, clock):
    outcome = engine.apply(hoodie_order, progress("step1", IN_PROGRESS, 40))
    step = outcome.order.products["p1"].steps[0]
    assert step.status is IN_PROGRESS
    assert step.completed_quantity == 40
    assert step.updated_at == clock.now
    assert outcome.events == []


def test_complete_step_emits_step_completed(engine, hoodie_order):
    started = engine.apply(hoodie_order, progress("step1", IN_PROGRESS, 40)).order
    outcome = engine.apply(started, progress("step1", COMPLETED, 100))

    step = outcome.order.products["p1"].steps[0]
    assert step.status is COMPLETED
    assert step.completed_quantity == 100
    assert [type(e) for e in outcome.events] == [StepCompleted]
    assert outcome.events[0].step_id == "step1"
    assert outcome.events[0].workflow_id == "cutting"


def test_full_quantity_tolerated_while_in_progress(engine, hoodie_order):
    outcome = engine.apply(hoodie_order, progress("step1", IN_PROGRESS, 100))
    step = outcome.order.products["p1"].steps[0]
    assert step.status is IN_PROGRESS
    assert step.completed_quantity == 100
    assert outcome.events == []


@pytest.mark.parametrize("quantity", [0, 50, 100])
def test_pending_to_completed_is_always_rejected(engine, hoodie_order, quantity):
    with pytest.raises(InvalidStatusTransition):
        engine.apply(hoodie_order, progress("step1", COMPLETED, quantity))


def test_in_progress_cannot_return_to_pending(engine, hoodie_order):
    started = engine.apply(hoodie_order, progress("step1", IN_PROGRESS, 10)).order
    with pytest.raises(InvalidStatusTransition):
        engine.apply(started, progress("step1", PENDING, 0))


@pytest.mark.parametrize("quantity", [-1, 101])
def test_quantity_out_of_range(engine, hoodie_order, quantity):
    with pytest.raises(InvalidQuantity):
        engine.apply(hoodie_order, progress("step1", IN_PROGRESS, quantity))


def test_pending_with_quantity_is_mismatch(engine, hoodie_order):
    with pytest.raises(QuantityStatusMismatch):
        engine.apply(hoodie_order, progress("step1", PENDING, 5))


def test_completed_requires_full_quantity(engine, hoodie_order):
    started = engine.apply(hoodie_order, progress("step1", IN_PROGRESS, 40)).order
    with pytest.raises(QuantityStatusMismatch):
        engine.apply(started, progress("step1", COMPLETED, 99))


def test_unknown_product_and_step(engine, hoodie_order):
    with pytest.raises(ProductNotFound):
        engine.apply(hoodie_order, progress("step1", IN_PROGRESS, 1, product_id="p2"))
    with pytest.raises(StepNotFound):
        engine.apply(hoodie_order, progress("step3", IN_PROGRESS, 1))


def test_reopen_completed_step(engine, hoodie_order):
    order = engine.apply(hoodie_order, progress("step1", IN_PROGRESS, 40)).order
    order = engine.apply(order, progress("step1", COMPLETED, 100)).order

    outcome = engine.apply(order, progress("step1", IN_PROGRESS, 80))
    step = outcome.order.products["p1"].steps[0]
    assert step.status is IN_PROGRESS
    assert step.completed_quantity == 80
    assert [type(e) for e in outcome.events] == [StepReopened]

    again = engine.apply(outcome.order, progress("step1", COMPLETED, 100))
    assert [type(e) for e in again.events] == [StepCompleted]


def test_product_and_order_completion_events(engine, order):
    order = engine.apply(
        order, AddProduct(product_id="p1", name="Tank Top", quantity=10, workflow_ids=["cutting"])
    ).order
    order = engine.apply(
        order, AddProduct(product_id="p2", name="Shorts", quantity=5, workflow_ids=["sewing", "qc"])
    ).order

    for product_id in ("p1", "p2"):
        order = engine.apply(order, progress("step1", IN_PROGRESS, 1, product_id)).order

    outcome = engine.apply(order, progress("step1", COMPLETED, 10, "p1"))
    assert [type(e) for e in outcome.events] == [StepCompleted, ProductCompleted]
    order = outcome.order

    outcome = engine.apply(order, progress("step1", COMPLETED, 5, "p2"))
    assert [type(e) for e in outcome.events] == [StepCompleted]
    order = engine.apply(outcome.order, progress("step2", IN_PROGRESS, 5, "p2")).order

    outcome = engine.apply(order, progress("step2", COMPLETED, 5, "p2"))
    assert [type(e) for e in outcome.events] == [StepCompleted, ProductCompleted, OrderCompleted]
    assert outcome.events[-1].code == "ORD001"


def test_reapplying_update_is_a_no_op(engine, hoodie_order):
    command = progress("step1", IN_PROGRESS, 40)
    once = engine.apply(hoodie_order, command)
    twice = engine.apply(once.order, command)

    assert twice.order == once.order
    assert twice.events == []

    completed = engine.apply(once.order, progress("step1", COMPLETED, 100))
    repeated = engine.apply(completed.order, progress("step1", COMPLETED, 100))
    assert repeated.order == completed.order
    assert repeated.events == []


def test_failed_update_leaves_snapshot_unchanged(engine, hoodie_order):
    snapshot = hoodie_order.model_copy(deep=True)
    outcome = engine.try_apply(hoodie_order, progress("step1", COMPLETED, 100))
    assert isinstance(outcome.error, InvalidStatusTransition)
    assert hoodie_order == snapshot


def test_transition_table():
    assert can_transition(PENDING, IN_PROGRESS)
    assert can_transition(IN_PROGRESS, IN_PROGRESS)
    assert can_transition(IN_PROGRESS, COMPLETED)
    assert can_transition(COMPLETED, IN_PROGRESS)
    assert not can_transition(PENDING, COMPLETED)
    assert not can_transition(IN_PROGRESS, PENDING)
    assert not can_transition(COMPLETED, PENDING)
