"""Repository abstraction for workflow definitions."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from ..contracts import WorkflowDefinition


class DefinitionRegistry(Protocol):
    """Protocol for definition storage backends.

    Definitions are immutable once stored; ``replace`` swaps the whole
    record. Names are unique across the registry.
    """

    async def get_by_id(self, definition_id: str) -> WorkflowDefinition | None:
        """Return the definition with ``definition_id`` or ``None``."""

    async def get_by_name(self, name: str) -> WorkflowDefinition | None:
        """Return the definition called ``name`` or ``None``."""

    async def list_definitions(self) -> list[WorkflowDefinition]:
        """Return all stored definitions."""

    async def create(
        self, draft: Any, definition_id: Optional[str] = None
    ) -> WorkflowDefinition:
        """Store a new definition; raise on a duplicate name."""

    async def replace(self, definition_id: str, draft: Any) -> WorkflowDefinition:
        """Replace an existing definition wholesale."""

    async def delete(self, definition_id: str) -> None:
        """Remove a definition."""
