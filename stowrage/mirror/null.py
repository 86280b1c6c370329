"""No-op mirror for stores without persistence."""

from typing import Iterable

from .base import Mirror


class NullMirror(Mirror):
    """A mirror that stores nothing and is never open."""

    @property
    def is_open(self) -> bool:
        return False

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def rows(self) -> Iterable[tuple[int, str, str]]:
        return ()

    def insert(self, id: int, name: str, data: str) -> None:
        pass

    def replace(self, id: int, name: str, data: str) -> None:
        pass

    def delete(self, id: int) -> None:
        pass

    def delete_name(self, name: str) -> None:
        pass

    def delete_range(self, start: int, end: int) -> None:
        pass

    def clear(self) -> None:
        pass
