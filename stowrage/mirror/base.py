"""Abstract persistence mirror interface."""

from abc import ABC, abstractmethod
from typing import Iterable


class Mirror(ABC):
    """Durable shadow of a store's entries, one row per entry.

    Rows are ``(id, name, data)`` where ``data`` is already encoded
    text. Serialization is handled by the store's codec.
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the underlying handle is open."""

    @abstractmethod
    def open(self) -> None:
        """Open the handle, creating the backing file and schema if needed."""

    @abstractmethod
    def close(self) -> None:
        """Close the handle."""

    @abstractmethod
    def rows(self) -> Iterable[tuple[int, str, str]]:
        """Iterate over all stored rows, ordered by id."""

    @abstractmethod
    def insert(self, id: int, name: str, data: str) -> None:
        """Insert a new row."""

    @abstractmethod
    def replace(self, id: int, name: str, data: str) -> None:
        """Insert or replace the row keyed by ``id``."""

    @abstractmethod
    def delete(self, id: int) -> None:
        """Delete the row with ``id`` if present."""

    @abstractmethod
    def delete_name(self, name: str) -> None:
        """Delete the row named ``name`` if present."""

    @abstractmethod
    def delete_range(self, start: int, end: int) -> None:
        """Delete every row whose id lies in ``[start, end]``."""

    @abstractmethod
    def clear(self) -> None:
        """Delete all rows."""
