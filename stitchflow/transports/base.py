"""Publishing side of the event transport."""

from __future__ import annotations

import abc
from typing import Dict, List, Sequence

from ..constants import ORDER_TOPIC_PREFIX
from ..contracts import EventMessage


def order_topic(order_id: str) -> str:
    """Topic carrying every event of one order, in emission order."""
    return f"{ORDER_TOPIC_PREFIX}.{order_id}"


def route(messages: Sequence[EventMessage]) -> Dict[str, List[EventMessage]]:
    """Group ``messages`` by destination topic.

    Each message goes to its event-type topic (``step_completed``,
    ``order_completed``...) and to the topic of the order it belongs to.
    Relative order within a topic is preserved.
    """
    routes: Dict[str, List[EventMessage]] = {}
    for message in messages:
        for topic in (message.topic, order_topic(message.order_id)):
            routes.setdefault(topic, []).append(message)
    return routes


class BaseTransport(metaclass=abc.ABCMeta):
    """Delivers the events produced by one command to a broker."""

    async def connect(self) -> None:
        """Open connection to broker (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to broker (no-op by default)."""
        pass

    async def publish(self, messages: Sequence[EventMessage]) -> None:
        """Publish one command's events as a single batch."""
        if not messages:
            return
        await self._deliver(route(messages))

    @abc.abstractmethod
    async def _deliver(self, routes: Dict[str, List[EventMessage]]) -> None:
        """Append each topic's messages to that topic."""
        raise NotImplementedError
