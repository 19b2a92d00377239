"""Repository layer for fragment storage."""

from fragments.repositories.base import FragmentBackend
from fragments.repositories.data_storage import FragmentDataStorage
from fragments.repositories.memory_repository import MemoryBackend
from fragments.repositories.sqlite_repository import SQLiteBackend

__all__ = [
    "FragmentBackend",
    "FragmentDataStorage",
    "MemoryBackend",
    "SQLiteBackend",
]
