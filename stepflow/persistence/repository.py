"""Store abstraction for workflow instance persistence."""

from __future__ import annotations

from typing import Protocol

from ..contracts import WorkflowInstance


class InstanceStore(Protocol):
    """Protocol for durable key-value storage of instance documents.

    Each instance is kept as one serialized document under
    ``<key_prefix><instance_id>``. Stores never delete instances.
    """

    key_prefix: str

    async def save(self, instance: WorkflowInstance) -> None:
        """Persist the full instance document, replacing any previous one."""

    async def load(self, instance_id: str) -> WorkflowInstance | None:
        """Return the stored instance or ``None``."""

    async def list_instances(self) -> list[WorkflowInstance]:
        """Return all stored instances."""

    async def close(self) -> None:
        """Release connections held by the store."""


def instance_key(prefix: str, instance_id: str) -> str:
    return f"{prefix}{instance_id}"
