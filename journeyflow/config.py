from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel

from .constants import DEFAULT_KEY_PREFIX


class RedisConfig(BaseModel):
    """Configuration for the Redis state store."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    ttl_seconds: Optional[int] = None


class StoreConfig(BaseModel):
    """State store configuration settings."""

    backend: Literal["inmemory", "sqlite", "postgres", "redis"] = "inmemory"
    redis: RedisConfig = RedisConfig()


class JourneyFlowConfig(BaseModel):
    """Top-level configuration model."""

    store: StoreConfig = StoreConfig()
    database_url: Optional[str] = None
    key_prefix: str = DEFAULT_KEY_PREFIX
    soft_delete: bool = False


def load_config(path: Optional[str] = None) -> JourneyFlowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to JOURNEYFLOW_CONFIG env
            variable or 'journeyflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("JOURNEYFLOW_CONFIG", "journeyflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = JourneyFlowConfig(**data)
    else:
        config = JourneyFlowConfig()

    env_db_url = os.getenv("JOURNEYFLOW_DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
