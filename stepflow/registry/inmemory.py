"""In-memory definition registry."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from ..contracts import WorkflowDefinition
from ..exceptions import DefinitionConflictError, DefinitionNotFoundError
from .base import DefinitionRegistry
from .models import parse_definition

logger = logging.getLogger(__name__)


class InMemoryDefinitionRegistry(DefinitionRegistry):
    """Keep definitions in a process-local dict.

    The name-uniqueness check and the write happen under one lock, so two
    concurrent creations with the same name cannot both succeed.
    """

    def __init__(self) -> None:
        self._definitions: Dict[str, WorkflowDefinition] = {}
        self._lock = asyncio.Lock()

    def _find_by_name(self, name: str) -> Optional[WorkflowDefinition]:
        return next(
            (d for d in self._definitions.values() if d.name == name), None
        )

    # ------------------------------------------------------------------
    async def get_by_id(self, definition_id: str) -> WorkflowDefinition | None:
        return self._definitions.get(definition_id)

    async def get_by_name(self, name: str) -> WorkflowDefinition | None:
        return self._find_by_name(name)

    async def list_definitions(self) -> list[WorkflowDefinition]:
        return list(self._definitions.values())

    async def create(
        self, draft: Any, definition_id: Optional[str] = None
    ) -> WorkflowDefinition:
        draft = parse_definition(draft)
        async with self._lock:
            if self._find_by_name(draft.name) is not None:
                raise DefinitionConflictError(draft.name)
            definition_id = definition_id or str(uuid.uuid4())
            if definition_id in self._definitions:
                raise DefinitionConflictError(draft.name)
            definition = draft.to_definition(definition_id)
            self._definitions[definition_id] = definition
        logger.info(f"Created workflow definition: {definition.id} - {definition.name}")
        return definition

    async def replace(self, definition_id: str, draft: Any) -> WorkflowDefinition:
        draft = parse_definition(draft)
        async with self._lock:
            if definition_id not in self._definitions:
                raise DefinitionNotFoundError(definition_id)
            holder = self._find_by_name(draft.name)
            if holder is not None and holder.id != definition_id:
                raise DefinitionConflictError(draft.name)
            definition = draft.to_definition(definition_id)
            self._definitions[definition_id] = definition
        logger.info(f"Replaced workflow definition: {definition.id} - {definition.name}")
        return definition

    async def delete(self, definition_id: str) -> None:
        async with self._lock:
            if self._definitions.pop(definition_id, None) is None:
                raise DefinitionNotFoundError(definition_id)
        logger.info(f"Deleted workflow definition: {definition_id}")
