"""
Storage Services Package

Provides the abstract storage interface and its implementations.
Currently implements a JSON local storage document as the backend.
"""

from visionboard.services.storage.interface import (
    NotFoundError,
    StorageError,
    WishStorageInterface,
)
from visionboard.services.storage.local_storage import (
    InMemoryWishStorage,
    LocalStorageFile,
    LocalStorageWishStorage,
)

__all__ = [
    # Interface
    "WishStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryWishStorage",
    "LocalStorageFile",
    "LocalStorageWishStorage",
]
