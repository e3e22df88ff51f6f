"""Services package."""

from visionboard.services.image import (
    FallbackBucket,
    FallbackImageSelector,
)
from visionboard.services.storage import (
    InMemoryWishStorage,
    LocalStorageFile,
    LocalStorageWishStorage,
    NotFoundError,
    StorageError,
    WishStorageInterface,
)

__all__ = [
    # Image services
    "FallbackBucket",
    "FallbackImageSelector",
    # Storage services
    "InMemoryWishStorage",
    "LocalStorageFile",
    "LocalStorageWishStorage",
    "NotFoundError",
    "StorageError",
    "WishStorageInterface",
]
