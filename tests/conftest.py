"""Shared fixtures for stepflow tests."""

from __future__ import annotations

import fnmatch
from typing import Any, Dict, List, Optional, Tuple

import pytest

import stepflow.persistence as persistence
import stepflow.registry as registry


class FakeRedis:
    """Small async stand-in for the subset of redis.asyncio.Redis we use."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.expiry: Dict[str, Optional[int]] = {}
        self.published: List[Tuple[str, str]] = []
        self.closed = False

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(
        self, key: str, value: str, ex: Optional[int] = None, nx: bool = False
    ) -> Optional[bool]:
        if nx and key in self.data:
            return None
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match: str = "*") -> Any:
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 0

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture(autouse=True)
def _reset_singletons(monkeypatch, tmp_path):
    """Isolate cached factories and config lookup between tests."""
    monkeypatch.setattr(persistence, "_store_instance", None)
    monkeypatch.setattr(registry, "_registry_instance", None)
    monkeypatch.setenv("STEPFLOW_CONFIG", str(tmp_path / "missing-config.yaml"))
    monkeypatch.delenv("STEPFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("STEPFLOW_TRANSPORT", raising=False)
