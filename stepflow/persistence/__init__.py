"""Persistence layer for stepflow workflow instances."""

from __future__ import annotations

import os
from typing import Optional

from ..config import StepflowConfig, load_config
from .inmemory import InMemoryInstanceStore
from .repository import InstanceStore, instance_key
from .sqlite import SQLiteInstanceStore

_store_instance: InstanceStore | None = None

SQLITE_SCHEME = "sqlite://"
REDIS_SCHEMES = ("redis://", "rediss://")


def _store_for_url(database_url: Optional[str], config: StepflowConfig) -> InstanceStore:
    options = config.store
    if not database_url:
        return InMemoryInstanceStore(options.key_prefix, options.instance_ttl_seconds)
    if database_url.startswith(SQLITE_SCHEME):
        return SQLiteInstanceStore(
            database_url[len(SQLITE_SCHEME):],
            options.key_prefix,
            options.instance_ttl_seconds,
        )
    if database_url.startswith(REDIS_SCHEMES):
        from .redis import RedisInstanceStore

        return RedisInstanceStore(
            database_url, options.key_prefix, options.instance_ttl_seconds
        )
    raise ValueError(f"Unsupported database backend: {database_url}")


def get_store(
    database_url: Optional[str] = None, config: Optional[StepflowConfig] = None
) -> InstanceStore:
    """Return the instance store for ``database_url``.

    The URL falls back to ``STEPFLOW_DATABASE_URL``, ``DATABASE_URL`` and then
    the configured ``database_url``. ``sqlite://<path>`` and ``redis://``
    URLs select those stores; no URL at all gives an in-memory store. The
    result is cached and reused by calls that pass neither argument.
    """

    global _store_instance
    if _store_instance is not None and database_url is None and config is None:
        return _store_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("STEPFLOW_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.database_url
    )
    _store_instance = _store_for_url(database_url, config)
    return _store_instance


__all__ = [
    "InstanceStore",
    "InMemoryInstanceStore",
    "SQLiteInstanceStore",
    "get_store",
    "instance_key",
]
