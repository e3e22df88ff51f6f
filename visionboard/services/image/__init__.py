"""Image services package."""

from visionboard.services.image.fallback_selector import (
    CATEGORIZED_FALLBACKS,
    FallbackBucket,
    FallbackImageSelector,
    match_bucket,
    prompt_hash,
)

__all__ = [
    "CATEGORIZED_FALLBACKS",
    "FallbackBucket",
    "FallbackImageSelector",
    "match_bucket",
    "prompt_hash",
]
