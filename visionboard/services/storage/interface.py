"""
Abstract Storage Interface

DESIGN DECISION: The whole wish collection is one JSON array under one key.
Loading reads everything, saving overwrites everything. There is no
per-record API because the store owns the collection and is the only
writer.

The interface allows us to:
1. Swap the on-disk local storage for something else later
2. Use in-memory storage for testing
"""

from abc import ABC, abstractmethod

from visionboard.models.wish import Wish


class WishStorageInterface(ABC):
    """
    Abstract interface for wish persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load_wishes(self) -> list[Wish]:
        """
        Read the full wish collection.

        Returns:
            All stored wishes in stored order (empty list if nothing saved)

        Raises:
            StorageError: If the stored data can't be read or parsed
        """
        pass

    @abstractmethod
    def save_wishes(self, wishes: list[Wish]) -> None:
        """
        Overwrite the stored collection.

        Args:
            wishes: The complete collection, in display order

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
