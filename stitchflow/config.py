from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel

from .constants import DEFAULT_MAX_EVENTS, DEFAULT_MAX_RETRIES


class RedisConfig(BaseModel):
    """Configuration for Redis transport."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    max_events: int = DEFAULT_MAX_EVENTS


class TransportConfig(BaseModel):
    """Event transport configuration settings."""

    backend: Literal["inmemory", "redis"] = "inmemory"
    redis: RedisConfig = RedisConfig()


class StitchflowConfig(BaseModel):
    """Top-level configuration model."""

    transport: TransportConfig = TransportConfig()
    database_url: Optional[str] = None
    reference_data: Optional[str] = None
    max_retries: int = DEFAULT_MAX_RETRIES
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> StitchflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to STITCHFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("STITCHFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = StitchflowConfig(**data)
    else:
        config = StitchflowConfig()

    env_db_url = os.getenv("STITCHFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_reference = os.getenv("STITCHFLOW_REFERENCE_DATA")
    if env_reference:
        config.reference_data = env_reference
    return config
