"""Base transport interface for stepflow event publishing."""

from __future__ import annotations

import abc

from ..contracts import WorkflowEvent


class BaseTransport(metaclass=abc.ABCMeta):
    """Abstract publish-only transport for lifecycle events.

    Delivery is at-most-once; nothing is retried.
    """

    async def connect(self) -> None:
        """Open connection to broker (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to broker (no-op by default)."""
        pass

    @abc.abstractmethod
    async def publish(self, topic: str, event: WorkflowEvent) -> None:
        """Hand an event to the broker without waiting for delivery."""
        raise NotImplementedError
