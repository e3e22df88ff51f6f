"""
Board Queries

Deterministic read-side helpers over the wish collection: category filter,
active wishes for the hero carousel, totals, and amount formatting.

None of these mutate anything; they work on whatever sequence of wishes
they are handed (normally WishStore.wishes).
"""

from typing import Iterable, Optional, Sequence, Union

from visionboard.models.wish import (
    ALL_CATEGORIES_FILTER,
    BoardSummary,
    Wish,
    WishCategory,
)


CategoryFilter = Union[WishCategory, str]


def filter_categories() -> list[str]:
    """Options for the segmented category control: TODOS first."""
    return [ALL_CATEGORIES_FILTER] + [category.value for category in WishCategory]


def filter_by_category(wishes: Iterable[Wish], category: CategoryFilter) -> list[Wish]:
    """
    Wishes in one category. TODOS (or an empty filter) returns everything.

    Unknown category labels match nothing.
    """
    wishes = list(wishes)
    if not category or category == ALL_CATEGORIES_FILTER:
        return wishes

    value = category.value if isinstance(category, WishCategory) else str(category)
    return [wish for wish in wishes if wish.category.value == value]


def active_wishes(wishes: Iterable[Wish]) -> list[Wish]:
    """Wishes not completed yet, in board order."""
    return [wish for wish in wishes if not wish.is_completed]


def hero_wish(wishes: Sequence[Wish], index: int) -> Optional[Wish]:
    """
    Wish shown in the hero carousel at a rotation step.

    The carousel cycles over active wishes only; None means the empty state.
    """
    active = active_wishes(wishes)
    if not active:
        return None
    return active[index % len(active)]


def summarize(wishes: Iterable[Wish]) -> BoardSummary:
    """Totals across every wish, completed ones included."""
    wishes = list(wishes)
    total_target = sum(wish.target_amount for wish in wishes)
    total_saved = sum(wish.saved_amount for wish in wishes)
    total_progress = (total_saved / total_target) * 100 if total_target > 0 else 0.0
    completed = sum(1 for wish in wishes if wish.is_completed)

    return BoardSummary(
        total_target=total_target,
        total_saved=total_saved,
        total_progress=total_progress,
        wish_count=len(wishes),
        active_count=len(wishes) - completed,
        completed_count=completed,
    )


def format_amount(amount: float) -> str:
    """$1,234 for whole amounts, $1,234.50 otherwise."""
    if float(amount).is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"
