"""Transport tests."""

import pytest

from stitchflow.config import StitchflowConfig
from stitchflow.contracts import EventMessage, OrderCompleted, StepCompleted
from stitchflow.transports import get_transport, order_topic, route
from stitchflow.transports.inmemory import InMemoryTransport


def _message(order_id: str = "orderX", step_id: str = "step1") -> EventMessage:
    return EventMessage(
        order_id=order_id,
        event=StepCompleted(
            order_id=order_id,
            product_id="p1",
            step_id=step_id,
            workflow_id="cutting",
            completed_quantity=100,
        ),
    )


def _completed(order_id: str = "orderX") -> EventMessage:
    return EventMessage(
        order_id=order_id, event=OrderCompleted(order_id=order_id, code="ORD001")
    )


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def lpush(self, name, *values):
        self.commands.append(("lpush", name, values))

    def ltrim(self, name, start, end):
        self.commands.append(("ltrim", name, start, end))

    async def execute(self):
        self.client.executed.append(self.commands)


class FakeRedis:
    def __init__(self):
        self.executed = []
        self.transaction = None

    def pipeline(self, transaction=True):
        self.transaction = transaction
        return FakePipeline(self)


def test_route_fans_out_to_event_and_order_topics():
    first, second, done = _message(step_id="step1"), _message(step_id="step2"), _completed()
    routes = route([first, second, done])

    assert list(routes) == ["step_completed", "order.orderX", "order_completed"]
    assert routes["step_completed"] == [first, second]
    assert routes["order.orderX"] == [first, second, done]
    assert routes["order_completed"] == [done]
    assert order_topic("orderX") == "order.orderX"


@pytest.mark.asyncio
async def test_inmemory_transport_keeps_order_history():
    transport = InMemoryTransport()
    await transport.publish([_message(), _completed()])
    await transport.publish([_message(order_id="orderY")])

    assert transport.pending("step_completed") == 2
    assert transport.pending("order_completed") == 1
    assert [m.topic for m in transport.history("orderX")] == [
        "step_completed",
        "order_completed",
    ]
    assert [m.order_id for m in transport.history("orderY")] == ["orderY"]


@pytest.mark.asyncio
async def test_inmemory_drain_empties_topic():
    transport = InMemoryTransport()
    await transport.publish([_message()])

    drained = transport.drain("step_completed")
    assert [m.event.step_id for m in drained] == ["step1"]
    assert transport.pending("step_completed") == 0
    assert transport.drain("step_completed") == []
    # other topics are untouched
    assert transport.pending(order_topic("orderX")) == 1


@pytest.mark.asyncio
async def test_inmemory_max_events_drops_oldest():
    transport = InMemoryTransport(max_events=2)
    await transport.publish([_message(step_id=f"step{i}") for i in range(1, 4)])
    assert [m.event.step_id for m in transport.messages("step_completed")] == [
        "step2",
        "step3",
    ]


@pytest.mark.asyncio
async def test_publish_nothing_is_a_no_op():
    transport = InMemoryTransport()
    await transport.publish([])
    assert transport.pending("step_completed") == 0


def test_event_message_json_round_trip():
    message = _message()
    restored = EventMessage.from_json(message.to_json())
    assert isinstance(restored.event, StepCompleted)
    assert restored.message_id == message.message_id
    assert restored.topic == "step_completed"


def test_redis_transport_defaults():
    from stitchflow.transports.redis import RedisTransport

    transport = RedisTransport()
    assert transport.host == "localhost"
    assert transport.port == 6379
    assert transport.max_events == 1000
    assert transport.queue_name("step_completed") == "stitchflow:step_completed"


@pytest.mark.asyncio
async def test_redis_publish_writes_one_trimmed_batch():
    from stitchflow.transports.redis import RedisTransport

    transport = RedisTransport(max_events=50)
    client = FakeRedis()
    transport._redis = client
    step, done = _message(), _completed()

    await transport.publish([step, done])

    assert client.transaction is True
    assert len(client.executed) == 1
    commands = client.executed[0]
    assert commands == [
        ("lpush", "stitchflow:step_completed", (step.to_json(),)),
        ("ltrim", "stitchflow:step_completed", 0, 49),
        ("lpush", "stitchflow:order.orderX", (step.to_json(), done.to_json())),
        ("ltrim", "stitchflow:order.orderX", 0, 49),
        ("lpush", "stitchflow:order_completed", (done.to_json(),)),
        ("ltrim", "stitchflow:order_completed", 0, 49),
    ]


def test_get_transport_passes_max_events():
    config = StitchflowConfig.model_validate(
        {"transport": {"backend": "redis", "redis": {"max_events": 10}}}
    )
    transport = get_transport(config=config)
    assert transport.max_events == 10
