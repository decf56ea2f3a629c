"""Personal dashboard core."""

from __future__ import annotations

from typing import Any

__version__ = "1.0.0"

__all__ = ["build_dashboard", "__version__"]


def build_dashboard(*args: Any, **kwargs: Any) -> Any:
    """Build a dashboard (lazy import)."""
    from .app import build_dashboard as _build

    return _build(*args, **kwargs)
