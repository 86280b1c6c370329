"""stowrage: keyed in-process store with optional persistence."""

from .codec import Codec, json_codec, pickle_codec
from .core import Stowrage
from .entry import Entry, FilterFunc
from .errors import (
    IDNotFoundError,
    InvalidKeyError,
    KeyUndefinedError,
    NameDuplicationError,
    NameNotFoundError,
    NonPersistentError,
    StowrageError,
)
from .mirror import DiskMirror, Mirror, NullMirror, SQLiteMirror
from .store import store

__all__ = [
    "Codec",
    "DiskMirror",
    "Entry",
    "FilterFunc",
    "IDNotFoundError",
    "InvalidKeyError",
    "KeyUndefinedError",
    "Mirror",
    "NameDuplicationError",
    "NameNotFoundError",
    "NonPersistentError",
    "NullMirror",
    "SQLiteMirror",
    "Stowrage",
    "StowrageError",
    "json_codec",
    "pickle_codec",
    "store",
]
