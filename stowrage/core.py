"""Stowrage: named entries with auto-assigned ids and an optional mirror."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator, Mapping, MutableMapping, MutableSequence, Sequence
from pathlib import Path
from typing import Any, Generic, Literal, TypeVar

from .codec import Codec, json_codec
from .entry import Entry, FilterFunc
from .errors import (
    IDNotFoundError,
    InvalidKeyError,
    KeyUndefinedError,
    NameDuplicationError,
    NameNotFoundError,
    NonPersistentError,
)
from .mirror.base import Mirror
from .mirror.null import NullMirror

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PATH = "./stowrage/"
UNNAMED = "unnamed db"


class Stowrage(Generic[T]):
    """In-process store indexed by name and by id.

    Entries live in two synchronized indices: name -> entry and
    id -> name. Ids come from a per-instance counter and are never
    reused until a full clear resets it.

    A named, persistent store mirrors every mutation to a durable
    ``Mirror`` once ``init()`` has been called. Without persistence
    the store works purely in memory.

    Args:
        name: Store identifier. Required for persistence; when set,
            ``path`` is created on construction.
        max_entries: Optional cap. When an insert pushes the count
            past it, the entry ``max_entries`` ids older than the
            newest one is evicted.
        persistent: Request durable mirroring (see ``init()``).
        path: Base directory for mirror files.
        storage: ``"sqlite"`` (default, ``<path>/<name>.db``) or
            ``"disk"`` (diskcache directory ``<path>/<name>/``).
        mirror: Explicit mirror to use instead of ``storage``.
        codec: Encodes values into the mirror's text column.
            Defaults to JSON.
    """

    def __init__(
        self,
        name: str | None = None,
        *,
        max_entries: int | None = None,
        persistent: bool = False,
        path: str | Path = DEFAULT_PATH,
        storage: Literal["sqlite", "disk"] = "sqlite",
        mirror: Mirror | None = None,
        codec: Codec | None = None,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        if storage not in ("sqlite", "disk"):
            raise ValueError(f"Unknown storage: {storage!r}")
        self.name = name
        self.max_entries = max_entries
        self.persistent = persistent
        self.path = Path(path)
        self.storage = storage
        self._codec = codec if codec is not None else json_codec()
        self._configured_mirror = mirror
        self._mirror: Mirror = NullMirror()
        self._next_id = 0
        self._by_name: dict[str, Entry[T]] = {}
        self._by_id: dict[int, str] = {}
        self._synced = False
        if name:
            try:
                self.path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning("Could not create storage directory %s: %s", self.path, e)

    @property
    def next_id(self) -> int:
        """Id the next added entry will receive."""
        return self._next_id

    @property
    def is_persistent(self) -> bool:
        """True while a durable mirror is open."""
        return self._mirror.is_open

    @property
    def _label(self) -> str:
        return self.name or UNNAMED

    # -- Persistence --

    def init(self) -> None:
        """Open the mirror and load its rows into memory.

        The first ``init()`` replays stored rows in id order through
        the regular insert path, keeping their stored ids, so eviction
        applies to them as it does to fresh entries. A row whose id is
        already held by an entry added before ``init()`` is moved to a
        fresh id. Entries added before ``init()`` are then written to
        the mirror.

        Reopening after ``close()`` treats memory as the source of
        truth: the mirror is cleared and rewritten from the current
        entries.

        Raises:
            NonPersistentError: The store has no name or was not
                configured as persistent.
            NameDuplicationError: A stored row has the name of an entry
                added before ``init()``. Nothing is loaded or deleted.
        """
        name = self.name
        if not (name and self.persistent):
            raise NonPersistentError(self._label, "initiated")
        if self._mirror.is_open:
            return

        mirror = self._build_mirror(name)
        mirror.open()
        if self._synced:
            self._mirror = mirror
            self._rewrite()
            return

        try:
            rows = [(id, row_name, self._codec.decode(data)) for id, row_name, data in mirror.rows()]
            seen: set[str] = set()
            for _, row_name, _ in rows:
                if row_name in self._by_name or row_name in seen:
                    raise NameDuplicationError(row_name)
                seen.add(row_name)
        except Exception:
            mirror.close()
            raise
        self._mirror = mirror

        unsaved = list(self._by_name.values())
        moved = []
        for id, row_name, value in rows:
            if id in self._by_id:
                moved.append((id, row_name, value))
                continue
            self._insert(row_name, value, entry_id=id, replay=True)

        for id, row_name, value in moved:
            mirror.delete(id)
            entry = self._insert(row_name, value)
            logger.debug("Moved %r from id %d to %d in %s", row_name, id, entry.id, name)

        for entry in unsaved:
            if self._by_id.get(entry.id) == entry.name:
                mirror.replace(entry.id, entry.name, self._codec.encode(entry.data))

        self._synced = True
        logger.debug("Loaded %d entries into %s", len(rows), name)

    def close(self) -> None:
        """Close the mirror. The store keeps working in memory only.

        Raises:
            NonPersistentError: There is no open mirror.
        """
        if not self._mirror.is_open:
            raise NonPersistentError(self._label, "closed")
        self._mirror.close()
        self._mirror = NullMirror()

    def _rewrite(self) -> None:
        self._mirror.clear()
        for entry in self._by_name.values():
            self._mirror.insert(entry.id, entry.name, self._codec.encode(entry.data))
        logger.debug("Rewrote %d entries to %s", len(self._by_name), self.name)

    def _build_mirror(self, name: str) -> Mirror:
        if self._configured_mirror is not None:
            return self._configured_mirror
        if self.storage == "disk":
            from .mirror.disk import DiskMirror

            return DiskMirror(self.path / name)

        from .mirror.sqlite import SQLiteMirror

        return SQLiteMirror(self.path / f"{name}.db")

    def _encode(self, value: T) -> str | None:
        """Encoded value, or None when nothing is mirrored."""
        if not self._mirror.is_open:
            return None
        return self._codec.encode(value)

    # -- Insertion --

    def add(self, name: str, value: T) -> None:
        """Add a new entry.

        Raises:
            NameDuplicationError: ``name`` is already taken.
        """
        self._insert(name, value)

    def ensure(self, name: str, value: T) -> Entry[T]:
        """Add a new entry and return it.

        Raises:
            NameDuplicationError: ``name`` is already taken.
        """
        return self._insert(name, value)

    def _insert(
        self,
        name: str,
        value: T,
        *,
        entry_id: int | None = None,
        replay: bool = False,
    ) -> Entry[T]:
        if name in self._by_name:
            raise NameDuplicationError(name)
        data = None if replay else self._encode(value)
        if entry_id is None:
            entry_id = self._next_id
        entry = Entry(entry_id, name, value)

        self._by_name[name] = entry
        self._by_id[entry_id] = name
        self._next_id = max(self._next_id, entry_id + 1)
        if data is not None:
            self._mirror.insert(entry_id, name, data)

        self._evict(entry_id)
        return entry

    def _evict(self, newest_id: int) -> None:
        if self.max_entries is None or len(self._by_name) <= self.max_entries:
            return
        victim = self._by_id.pop(newest_id - self.max_entries, None)
        if victim is None:
            return
        del self._by_name[victim]
        logger.debug("Evicted %r from %s", victim, self._label)
        self._mirror.delete_name(victim)

    # -- Removal --

    def delete(self, name: str) -> None:
        """Delete the entry named ``name``.

        Raises:
            NameNotFoundError: No such entry.
        """
        entry = self._by_name.get(name)
        if entry is None:
            raise NameNotFoundError(name)
        self._remove(entry)

    def delete_by_id(self, id: int) -> None:
        """Delete the entry with ``id``.

        Raises:
            IDNotFoundError: No such entry.
        """
        name = self._by_id.get(id)
        if name is None:
            raise IDNotFoundError(id)
        self._remove(self._by_name[name])

    def _remove(self, entry: Entry[T]) -> None:
        del self._by_name[entry.name]
        del self._by_id[entry.id]
        self._mirror.delete(entry.id)

    def delete_by_range(self, start: int, length: int) -> None:
        """Delete entries with ids in ``[start, start + length]``.

        When ``start + length`` reaches the number of entries, the
        whole store is cleared and ids start over at 0, whatever ids
        the entries actually carry.
        """
        end = start + length
        if end >= len(self._by_name):
            self.delete_stowrage()
            return
        doomed = [entry for entry in self._by_name.values() if start <= entry.id <= end]
        for entry in doomed:
            del self._by_name[entry.name]
            del self._by_id[entry.id]
        logger.debug("Deleted %d entries in ids %d..%d from %s", len(doomed), start, end, self._label)
        self._mirror.delete_range(start, end)

    def delete_stowrage(self) -> None:
        """Delete every entry and reset the id counter."""
        self._by_name.clear()
        self._by_id.clear()
        self._next_id = 0
        logger.debug("Cleared %s", self._label)
        self._mirror.clear()

    # -- Mutation --

    def override(self, name: str, value: T) -> None:
        """Replace the value of an existing entry, keeping its id.

        Raises:
            NameNotFoundError: No such entry.
        """
        current = self._by_name.get(name)
        if current is None:
            raise NameNotFoundError(name)
        data = self._encode(value)
        entry = Entry(current.id, name, value)
        self._by_name[name] = entry
        if data is not None:
            self._mirror.replace(entry.id, name, data)

    def override_by_id(self, id: int, value: T) -> None:
        """Replace the value of the entry with ``id``.

        Raises:
            IDNotFoundError: No such entry.
        """
        name = self._by_id.get(id)
        if name is None:
            raise IDNotFoundError(id)
        self.override(name, value)

    def set_value(self, name: str, value: Any, *, key: Any = None) -> None:
        """Change all or part of an entry's data.

        For structured data (any mapping, or any sequence other than
        text and bytes) only ``key`` is replaced, and it must already
        exist; sequences take an integer index. Read-only mappings
        come back as a ``dict`` and tuples as a plain ``tuple``. Any
        other data is replaced whole and ``key`` is ignored.

        Raises:
            NameNotFoundError: No such entry.
            KeyUndefinedError: Structured data and no ``key``.
            InvalidKeyError: ``key`` is not in the data.
        """
        entry = self.fetch(name)
        self.override(name, self._changed(entry.data, key, value))

    def set_value_by_id(self, id: int, value: Any, *, key: Any = None) -> None:
        """Like ``set_value``, addressing the entry by id."""
        entry = self.fetch_by_id(id)
        self.override(entry.name, self._changed(entry.data, key, value))

    def _changed(self, data: Any, key: Any, value: Any) -> Any:
        if isinstance(data, (str, bytes, bytearray)):
            return value
        if isinstance(data, Mapping):
            if key is None:
                raise KeyUndefinedError()
            if key not in data:
                raise InvalidKeyError(key, self._label)
            changed = copy.copy(data) if isinstance(data, MutableMapping) else dict(data)
        elif isinstance(data, Sequence):
            if key is None:
                raise KeyUndefinedError()
            if not isinstance(key, int) or isinstance(key, bool) or not 0 <= key < len(data):
                raise InvalidKeyError(key, self._label)
            changed = copy.copy(data) if isinstance(data, MutableSequence) else list(data)
        else:
            return value
        changed[key] = value
        if isinstance(data, tuple):
            return tuple(changed)
        return changed

    # -- Lookup --

    def fetch(self, name: str) -> Entry[T]:
        """Return the entry named ``name``.

        Raises:
            NameNotFoundError: No such entry.
        """
        entry = self._by_name.get(name)
        if entry is None:
            raise NameNotFoundError(name)
        return entry

    def fetch_by_id(self, id: int) -> Entry[T]:
        """Return the entry with ``id``.

        Raises:
            IDNotFoundError: No such entry.
        """
        name = self._by_id.get(id)
        if name is None:
            raise IDNotFoundError(id)
        return self._by_name[name]

    def fetch_by_range(self, start: int, length: int) -> list[Entry[T]]:
        """Entries with ids in ``[start, start + length)``.

        Returns every entry when ``start + length`` reaches the number
        of entries.
        """
        end = start + length
        if end >= len(self._by_name):
            return list(self._by_name.values())
        return [entry for entry in self._by_name.values() if start <= entry.id < end]

    def filter(self, func: FilterFunc[T]) -> list[Entry[T]]:
        """All entries matching ``func``, in insertion order."""
        return [entry for entry in self._by_name.values() if func(entry)]

    def find(self, func: FilterFunc[T]) -> Entry[T] | None:
        """First entry matching ``func``, or None."""
        return next((entry for entry in self._by_name.values() if func(entry)), None)

    def has(self, name: str) -> bool:
        return name in self._by_name

    def total_entries(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[Entry[T]]:
        return iter(list(self._by_name.values()))

    def __repr__(self) -> str:
        return f"Stowrage(name={self.name!r}, entries={len(self._by_name)}, persistent={self.is_persistent})"
