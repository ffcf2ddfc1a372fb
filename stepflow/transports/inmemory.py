"""In-memory transport for testing."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Dict, List

from ..contracts import EventType, WorkflowEvent
from .base import BaseTransport


class InMemoryTransport(BaseTransport):
    """Keeps published events in process, per topic."""

    def __init__(self) -> None:
        self._topics: Dict[str, List[WorkflowEvent]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def publish(self, topic: str, event: WorkflowEvent) -> None:
        """Append event to the topic's log."""
        async with self._lock:
            self._topics[topic].append(event)

    def events(self, topic: str) -> List[WorkflowEvent]:
        """Return a copy of the events published to ``topic``."""
        return list(self._topics.get(topic, []))

    def event_types(self, topic: str, instance_id: str | None = None) -> List[EventType]:
        return [
            e.type
            for e in self.events(topic)
            if instance_id is None or e.instance_id == instance_id
        ]

    def clear(self) -> None:
        self._topics.clear()
