"""Entry record stored by ``Stowrage``."""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Entry(Generic[T]):
    """A stored record.

    Attributes:
        id: Assigned once on creation; kept across overrides.
        name: Unique name of the entry.
        data: The stored value.
    """

    id: int
    name: str
    data: T


FilterFunc = Callable[[Entry[T]], bool]
