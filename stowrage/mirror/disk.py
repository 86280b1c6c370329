"""Disk mirror using diskcache."""

from pathlib import Path
from typing import Any, Iterable, cast

from .base import Mirror


class DiskMirror(Mirror):
    """Mirror backed by a diskcache directory (SQLite + files).

    Rows are kept under their integer id as ``(name, data)`` tuples.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.store: Any = None

    @property
    def is_open(self) -> bool:
        return self.store is not None

    def _cache(self):
        if self.store is None:
            raise RuntimeError(f"Disk mirror {self.directory} is not open")
        return self.store

    def open(self) -> None:
        if self.store is not None:
            return
        from diskcache import Cache as DiskCache

        self.store = DiskCache(str(self.directory))

    def close(self) -> None:
        if self.store is not None:
            self.store.close()
            self.store = None

    def rows(self) -> Iterable[tuple[int, str, str]]:
        cache = self._cache()
        result = []
        for key in sorted(cache.iterkeys()):
            row = cast(tuple[str, str] | None, cache.get(key))
            if row is not None:
                name, data = row
                result.append((int(key), name, data))
        return result

    def insert(self, id: int, name: str, data: str) -> None:
        self._cache()[id] = (name, data)

    def replace(self, id: int, name: str, data: str) -> None:
        self._cache()[id] = (name, data)

    def delete(self, id: int) -> None:
        self._cache().delete(id, retry=False)

    def delete_name(self, name: str) -> None:
        cache = self._cache()
        with cache.transact():
            for key in list(cache.iterkeys()):
                row = cache.get(key)
                if row is not None and row[0] == name:
                    cache.delete(key, retry=False)

    def delete_range(self, start: int, end: int) -> None:
        cache = self._cache()
        with cache.transact():
            for key in list(cache.iterkeys()):
                if start <= key <= end:
                    cache.delete(key, retry=False)

    def clear(self) -> None:
        self._cache().clear()
