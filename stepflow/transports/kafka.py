"""Kafka transport implementation using aiokafka."""

from __future__ import annotations

from typing import Iterable, Optional

try:
    from aiokafka import AIOKafkaProducer
except Exception:  # pragma: no cover - aiokafka not installed
    AIOKafkaProducer = None  # type: ignore

from ..contracts import WorkflowEvent
from .base import BaseTransport


class KafkaTransport(BaseTransport):
    """Kafka-based event producer.

    Events are keyed by instance id so that one instance's events land on a
    single partition in publish order.
    """

    def __init__(
        self,
        brokers: Iterable[str] | str = "localhost:9092",
        client_id: str = "stepflow",
    ) -> None:
        if AIOKafkaProducer is None:
            raise ImportError("aiokafka package is required for KafkaTransport")

        self.brokers = [brokers] if isinstance(brokers, str) else list(brokers)
        self.client_id = client_id
        self._producer: Optional[AIOKafkaProducer] = None

    async def connect(self) -> None:
        self._producer = AIOKafkaProducer(
            bootstrap_servers=self.brokers, client_id=self.client_id
        )
        await self._producer.start()

    async def disconnect(self) -> None:
        if self._producer:
            await self._producer.stop()
            self._producer = None

    async def publish(self, topic: str, event: WorkflowEvent) -> None:
        if not self._producer:
            await self.connect()
        await self._producer.send_and_wait(
            topic,
            value=event.to_json().encode(),
            key=event.instance_id.encode(),
        )
