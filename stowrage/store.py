"""Factory function for stores."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from .codec import Codec
from .core import DEFAULT_PATH, Stowrage


def store(
    name: str | None = None,
    *,
    storage: Literal["memory", "sqlite", "disk"] = "memory",
    path: str | Path = DEFAULT_PATH,
    max_entries: int | None = None,
    codec: Codec | None = None,
) -> Stowrage[Any]:
    """Create a Stowrage with sensible defaults.

    Args:
        name: Store name. Required for ``"sqlite"`` and ``"disk"``.
        storage: ``"memory"`` (default) for an in-memory store,
            ``"sqlite"`` or ``"disk"`` for a persistent one.
        path: Base directory for the mirror files.
        max_entries: Optional cap on the number of entries.
        codec: Value codec for the mirror (JSON by default).

    Returns:
        A ``Stowrage``. Persistent stores come back already
        initialized, with their stored entries loaded.
    """
    if storage == "memory":
        return Stowrage(name, max_entries=max_entries, path=path, codec=codec)

    if storage in ("sqlite", "disk"):
        if not name:
            raise ValueError(f"name is required when storage={storage!r}")
        s: Stowrage[Any] = Stowrage(
            name,
            max_entries=max_entries,
            persistent=True,
            path=path,
            storage=storage,
            codec=codec,
        )
        s.init()
        return s

    raise ValueError(f"Unknown storage: {storage!r}")
