"""Input validation package."""

from visionboard.validation.validator import WishInputError, WishValidator

__all__ = ["WishInputError", "WishValidator"]
