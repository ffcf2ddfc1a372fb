"""Redis-backed definition registry."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from ..contracts import WorkflowDefinition
from ..exceptions import DefinitionConflictError, DefinitionNotFoundError
from .base import DefinitionRegistry
from .models import parse_definition

logger = logging.getLogger(__name__)


class RedisDefinitionRegistry(DefinitionRegistry):
    """Store definitions as JSON documents in Redis.

    Layout:
        ``<prefix>definition:<id>``       serialized definition
        ``<prefix>definition-name:<name>`` id owning that name

    Names are claimed with ``SET NX`` before the definition is written, which
    makes the uniqueness check atomic across processes.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        prefix: str = "stepflow:",
        client: Optional[Any] = None,
    ) -> None:
        if redis is None and client is None:
            raise ImportError("redis package is required for RedisDefinitionRegistry")

        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self.prefix = prefix
        self._redis: Optional[Any] = client

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

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def _client(self) -> Any:
        if not self._redis:
            await self.connect()
        return self._redis

    def _definition_key(self, definition_id: str) -> str:
        return f"{self.prefix}definition:{definition_id}"

    def _name_key(self, name: str) -> str:
        return f"{self.prefix}definition-name:{name}"

    # ------------------------------------------------------------------
    async def get_by_id(self, definition_id: str) -> WorkflowDefinition | None:
        client = await self._client()
        document = await client.get(self._definition_key(definition_id))
        if document is None:
            return None
        return WorkflowDefinition.from_json(document)

    async def get_by_name(self, name: str) -> WorkflowDefinition | None:
        client = await self._client()
        definition_id = await client.get(self._name_key(name))
        if definition_id is None:
            return None
        return await self.get_by_id(definition_id)

    async def list_definitions(self) -> list[WorkflowDefinition]:
        client = await self._client()
        definitions: list[WorkflowDefinition] = []
        async for key in client.scan_iter(match=self._definition_key("*")):
            document = await client.get(key)
            if document is not None:
                definitions.append(WorkflowDefinition.from_json(document))
        return definitions

    async def create(
        self, draft: Any, definition_id: Optional[str] = None
    ) -> WorkflowDefinition:
        draft = parse_definition(draft)
        client = await self._client()
        definition_id = definition_id or str(uuid.uuid4())
        claimed = await client.set(self._name_key(draft.name), definition_id, nx=True)
        if not claimed:
            raise DefinitionConflictError(draft.name)
        definition = draft.to_definition(definition_id)
        stored = await client.set(
            self._definition_key(definition_id), definition.to_json(), nx=True
        )
        if not stored:
            await client.delete(self._name_key(draft.name))
            raise DefinitionConflictError(draft.name)
        logger.info(f"Created workflow definition: {definition.id} - {definition.name}")
        return definition

    async def replace(self, definition_id: str, draft: Any) -> WorkflowDefinition:
        draft = parse_definition(draft)
        client = await self._client()
        current = await self.get_by_id(definition_id)
        if current is None:
            raise DefinitionNotFoundError(definition_id)
        if draft.name != current.name:
            claimed = await client.set(
                self._name_key(draft.name), definition_id, nx=True
            )
            if not claimed:
                raise DefinitionConflictError(draft.name)
            await client.delete(self._name_key(current.name))
        definition = draft.to_definition(definition_id)
        await client.set(self._definition_key(definition_id), definition.to_json())
        logger.info(f"Replaced workflow definition: {definition.id} - {definition.name}")
        return definition

    async def delete(self, definition_id: str) -> None:
        client = await self._client()
        current = await self.get_by_id(definition_id)
        if current is None:
            raise DefinitionNotFoundError(definition_id)
        await client.delete(
            self._definition_key(definition_id), self._name_key(current.name)
        )
        logger.info(f"Deleted workflow definition: {definition_id}")
