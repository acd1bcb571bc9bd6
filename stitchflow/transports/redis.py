"""Redis transport for cross-process event delivery."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from ..constants import DEFAULT_MAX_EVENTS, EVENT_QUEUE_PREFIX
from ..contracts import EventMessage
from .base import BaseTransport

logger = logging.getLogger(__name__)


class RedisTransport(BaseTransport):
    """Pushes events onto Redis lists, one list per topic.

    Lists are written with ``LPUSH`` so consumers read them with ``BRPOP`` in
    publish order. Each list is trimmed to the newest ``max_events`` entries
    so order topics nobody consumes stay bounded.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        max_events: int = DEFAULT_MAX_EVENTS,
    ) -> None:
        if redis is None:
            raise ImportError("redis package is required for RedisTransport")

        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self.max_events = max_events
        self._redis: Optional[Any] = None

    @staticmethod
    def queue_name(topic: str) -> str:
        return f"{EVENT_QUEUE_PREFIX}:{topic}"

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def _deliver(self, routes: Dict[str, List[EventMessage]]) -> None:
        if not self._redis:
            await self.connect()

        # one MULTI/EXEC so a command's events land on every topic or none
        async with self._redis.pipeline(transaction=True) as pipe:
            for topic, messages in routes.items():
                queue_name = self.queue_name(topic)
                pipe.lpush(queue_name, *(message.to_json() for message in messages))
                pipe.ltrim(queue_name, 0, self.max_events - 1)
            await pipe.execute()
        logger.debug(f"Pushed events to {len(routes)} Redis list(s)")
