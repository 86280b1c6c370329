"""Persistence mirrors."""

from .base import Mirror
from .disk import DiskMirror
from .null import NullMirror
from .sqlite import SQLiteMirror

__all__ = ["DiskMirror", "Mirror", "NullMirror", "SQLiteMirror"]
