"""In-memory event transport for tests and single-process use."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Deque, Dict, List

from ..contracts import EventMessage
from .base import BaseTransport, order_topic


class InMemoryTransport(BaseTransport):
    """Keeps published events in a bounded deque per topic."""

    def __init__(self, max_events: int | None = None) -> None:
        self._topics: Dict[str, Deque[EventMessage]] = defaultdict(
            lambda: deque(maxlen=max_events)
        )

    async def _deliver(self, routes: Dict[str, List[EventMessage]]) -> None:
        for topic, messages in routes.items():
            self._topics[topic].extend(messages)

    def pending(self, topic: str) -> int:
        """Number of undrained messages on ``topic``."""
        return len(self._topics.get(topic, ()))

    def messages(self, topic: str) -> List[EventMessage]:
        """Messages on ``topic`` oldest first, without removing them."""
        return list(self._topics.get(topic, ()))

    def history(self, order_id: str) -> List[EventMessage]:
        return self.messages(order_topic(order_id))

    def drain(self, topic: str) -> List[EventMessage]:
        """Remove and return every message on ``topic``."""
        queue = self._topics.pop(topic, None)
        return list(queue) if queue else []
