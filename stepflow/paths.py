"""Dotted key-path access into nested payload documents.

Paths look like ``$.user.profile`` or ``user.profile``. The root marker on
its own (``$`` or ``$.``), an empty string or ``None`` address the whole
document. Only mapping keys are supported; there is no list indexing or
escaping.
"""

from __future__ import annotations

from typing import Any, Optional

ROOT_MARKERS = ("", "$", "$.")


def is_root_path(path: Optional[str]) -> bool:
    """Return ``True`` when ``path`` addresses the whole document."""
    return path is None or path in ROOT_MARKERS


def split_path(path: Optional[str]) -> list[str]:
    """Return the key segments of ``path`` (empty for the root)."""
    if is_root_path(path):
        return []
    if path.startswith("$."):
        path = path[2:]
    elif path.startswith("$"):
        path = path[1:]
    return path.split(".")


def get_path(document: Any, path: Optional[str], default: Any = None) -> Any:
    """Return the value at ``path`` inside ``document``.

    ``default`` is returned when any segment is missing or a non-mapping
    value is reached before the last segment.
    """
    current = document
    for key in split_path(path):
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return default
    return current


def set_path(document: Any, path: Optional[str], value: Any) -> Any:
    """Write ``value`` at ``path`` and return the resulting document.

    For the root path a mapping ``value`` is shallow-merged over a mapping
    document, while any other value replaces the document. Otherwise
    missing or non-mapping intermediate nodes are replaced with new dicts
    and ``document`` is mutated in place.
    """
    keys = split_path(path)
    if not keys:
        if isinstance(value, dict):
            base = document if isinstance(document, dict) else {}
            return {**base, **value}
        return value

    if not isinstance(document, dict):
        document = {}

    current = document
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value
    return document
