"""Filesystem helpers for the dashboard."""

from __future__ import annotations

import re
from pathlib import Path

from ..core.config import Settings

_SAFE_KEY = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9_.-]*")


def store_dir(settings: Settings) -> Path:
    """Directory storing one JSON document per namespace key."""
    root = settings.store_dir
    root.mkdir(parents=True, exist_ok=True)
    return root


def key_filename(key: str) -> str:
    """Return ``<key>.json``; keys that are not plain file names are rejected."""
    if not _SAFE_KEY.fullmatch(key):
        raise ValueError(f"Invalid store key: {key!r}")
    return f"{key}.json"
