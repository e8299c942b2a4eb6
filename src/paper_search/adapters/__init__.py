"""Adapters layer - library store implementations.

Abstracts read access to a host's document store behind an injected capability.
"""

from .library_store import AbstractLibraryStore
from .memory_store import InMemoryLibraryStore, LibrarySnapshot


__all__ = [
    "AbstractLibraryStore",
    "InMemoryLibraryStore",
    "LibrarySnapshot",
]
