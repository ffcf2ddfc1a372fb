"""Redis implementation of the instance store."""

from __future__ import annotations

import logging
from typing import Any, Optional

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from ..contracts import WorkflowInstance
from .repository import InstanceStore, instance_key

logger = logging.getLogger(__name__)


class RedisInstanceStore(InstanceStore):
    """Persist instance documents as JSON strings in Redis."""

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        key_prefix: str = "instance:",
        ttl_seconds: Optional[int] = None,
        client: Optional[Any] = None,
    ) -> None:
        if redis is None and client is None:
            raise ImportError("redis package is required for RedisInstanceStore")

        self.url = url
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self._redis: Optional[Any] = client

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis.from_url(self.url, decode_responses=True)
        await self._redis.ping()

    async def close(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def _client(self) -> Any:
        if not self._redis:
            await self.connect()
        return self._redis

    # ------------------------------------------------------------------
    async def save(self, instance: WorkflowInstance) -> None:
        client = await self._client()
        key = instance_key(self.key_prefix, instance.instance_id)
        if self.ttl_seconds:
            await client.set(key, instance.to_json(), ex=self.ttl_seconds)
        else:
            await client.set(key, instance.to_json())

    async def load(self, instance_id: str) -> WorkflowInstance | None:
        client = await self._client()
        document = await client.get(instance_key(self.key_prefix, instance_id))
        if document is None:
            return None
        return WorkflowInstance.from_json(document)

    async def list_instances(self) -> list[WorkflowInstance]:
        client = await self._client()
        instances: list[WorkflowInstance] = []
        async for key in client.scan_iter(match=f"{self.key_prefix}*"):
            document = await client.get(key)
            if document is None:
                # expired between scan and get
                continue
            try:
                instances.append(WorkflowInstance.from_json(document))
            except ValueError as e:
                logger.warning(f"Skipping unreadable instance document {key}: {e}")
        return instances
