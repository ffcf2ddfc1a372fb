"""In-memory implementation of the instance store."""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Tuple

from ..contracts import WorkflowInstance
from .repository import InstanceStore, instance_key


class InMemoryInstanceStore(InstanceStore):
    """Store instance documents in local memory.

    Useful for tests or when no database is configured. Documents are kept
    serialized so callers never share state with the stored copy. Data is
    not persisted across process restarts.
    """

    def __init__(
        self,
        key_prefix: str = "instance:",
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._documents: Dict[str, Tuple[str, Optional[float]]] = {}

    def _expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and expires_at <= self._clock()

    # ------------------------------------------------------------------
    async def save(self, instance: WorkflowInstance) -> None:
        expires_at = self._clock() + self.ttl_seconds if self.ttl_seconds else None
        key = instance_key(self.key_prefix, instance.instance_id)
        self._documents[key] = (instance.to_json(), expires_at)

    async def load(self, instance_id: str) -> WorkflowInstance | None:
        key = instance_key(self.key_prefix, instance_id)
        entry = self._documents.get(key)
        if entry is None:
            return None
        document, expires_at = entry
        if self._expired(expires_at):
            del self._documents[key]
            return None
        return WorkflowInstance.from_json(document)

    async def list_instances(self) -> list[WorkflowInstance]:
        return [
            WorkflowInstance.from_json(document)
            for document, expires_at in list(self._documents.values())
            if not self._expired(expires_at)
        ]

    async def close(self) -> None:
        pass
