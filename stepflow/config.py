from __future__ import annotations

import os
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field


class RedisConfig(BaseModel):
    """Connection settings for Redis."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None


class KafkaConfig(BaseModel):
    """Connection settings for the Kafka event producer."""

    brokers: List[str] = Field(default_factory=lambda: ["localhost:9092"])
    client_id: str = "stepflow"


class TransportConfig(BaseModel):
    """Event publisher settings."""

    backend: Literal["inmemory", "redis", "kafka"] = "inmemory"
    topic: str = "workflow_events"
    redis: RedisConfig = RedisConfig()
    kafka: KafkaConfig = KafkaConfig()


class StoreConfig(BaseModel):
    """Instance store settings."""

    key_prefix: str = "instance:"
    instance_ttl_seconds: Optional[int] = None


class DefinitionsConfig(BaseModel):
    """Definition registry settings."""

    backend: Literal["inmemory", "redis"] = "inmemory"
    redis: RedisConfig = RedisConfig()
    load_samples: bool = True
    files: List[str] = Field(default_factory=list)


class FunctionsConfig(BaseModel):
    """Modules whose import registers step functions."""

    modules: List[str] = Field(default_factory=lambda: ["stepflow.functions.signup"])


class StepflowConfig(BaseModel):
    """Top-level configuration model."""

    log_level: str = "INFO"
    database_url: Optional[str] = None
    store: StoreConfig = StoreConfig()
    transport: TransportConfig = TransportConfig()
    definitions: DefinitionsConfig = DefinitionsConfig()
    functions: FunctionsConfig = FunctionsConfig()


def load_config(path: Optional[str] = None) -> StepflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to STEPFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("STEPFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = StepflowConfig(**data)
    else:
        config = StepflowConfig()

    env_db_url = os.getenv("STEPFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_transport = os.getenv("STEPFLOW_TRANSPORT")
    if env_transport:
        config.transport.backend = env_transport.lower()
    return config
