"""Workflow definition registry."""

from __future__ import annotations

from typing import Optional

from ..config import StepflowConfig, load_config
from .base import DefinitionRegistry
from .inmemory import InMemoryDefinitionRegistry
from .models import WorkflowDefinitionDraft, load_definition_file, parse_definition

_registry_instance: DefinitionRegistry | None = None


def get_definition_registry(
    config: Optional[StepflowConfig] = None,
) -> DefinitionRegistry:
    """Factory function to obtain the configured definition registry.

    The registry is cached for the process unless an explicit ``config`` is
    given.
    """

    global _registry_instance
    if _registry_instance is not None and config is None:
        return _registry_instance

    config = config or load_config()
    backend = config.definitions.backend
    if backend == "inmemory":
        _registry_instance = InMemoryDefinitionRegistry()
    elif backend == "redis":
        from .redis import RedisDefinitionRegistry

        redis_conf = config.definitions.redis
        _registry_instance = RedisDefinitionRegistry(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
        )
    else:
        raise ValueError(f"Unsupported definition registry backend: {backend}")
    return _registry_instance


__all__ = [
    "DefinitionRegistry",
    "InMemoryDefinitionRegistry",
    "WorkflowDefinitionDraft",
    "get_definition_registry",
    "load_definition_file",
    "parse_definition",
]
