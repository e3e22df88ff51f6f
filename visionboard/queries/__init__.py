"""Board query helpers."""

from visionboard.queries.board import (
    active_wishes,
    filter_by_category,
    filter_categories,
    format_amount,
    hero_wish,
    summarize,
)

__all__ = [
    "active_wishes",
    "filter_by_category",
    "filter_categories",
    "format_amount",
    "hero_wish",
    "summarize",
]
