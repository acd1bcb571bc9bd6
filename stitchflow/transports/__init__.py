"""Event transport factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import StitchflowConfig, load_config
from .base import BaseTransport, order_topic, route
from .inmemory import InMemoryTransport


def get_transport(
    backend: Optional[str] = None, config: Optional[StitchflowConfig] = None
) -> BaseTransport:
    """Factory function to get the configured transport."""

    config = config or load_config()
    backend = (
        backend
        or os.getenv("STITCHFLOW_TRANSPORT")
        or config.transport.backend
    ).lower()

    if backend == "inmemory":
        return InMemoryTransport()
    elif backend == "redis":
        from .redis import RedisTransport

        redis_conf = config.transport.redis
        return RedisTransport(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
            max_events=redis_conf.max_events,
        )
    else:
        raise ValueError(f"Unsupported transport backend: {backend}")


__all__ = [
    "BaseTransport",
    "InMemoryTransport",
    "get_transport",
    "order_topic",
    "route",
]
