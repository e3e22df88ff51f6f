"""
Wish Store

DESIGN DECISION: The wish collection has exactly one owner. Consumers get
read-only snapshots; every write goes through the mutation API below and
ends in _commit(), the single point where the collection is serialized
and the stored array is overwritten.

INVARIANTS enforced here:
- saved_amount is clamped to [0, target_amount] on every mutation
- is_completed only ever goes False -> True
"""

import math
from typing import Optional

from visionboard.audit import AuditLogger
from visionboard.models.wish import BoardSummary, Wish, WishDraft, new_wish_id, now_ms
from visionboard.queries import board
from visionboard.services.storage import NotFoundError, WishStorageInterface


_EDITABLE_FIELDS = (
    "title",
    "description",
    "target_amount",
    "category",
    "importance",
    "image_url",
    "target_date",
    "action_plan",
)


class WishStore:
    """
    Owns the list of wishes and mirrors it to storage.

    Storage write failures propagate to the caller.
    """

    def __init__(
        self,
        storage: WishStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._wishes: list[Wish] = storage.load_wishes()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def wishes(self) -> tuple[Wish, ...]:
        """Snapshot of the collection, newest first."""
        return tuple(self._wishes)

    def get(self, wish_id: str) -> Wish:
        for wish in self._wishes:
            if wish.id == wish_id:
                return wish
        raise NotFoundError(f"Wish {wish_id} not found")

    def filter_by_category(self, category) -> list[Wish]:
        return board.filter_by_category(self._wishes, category)

    def active_wishes(self) -> list[Wish]:
        return board.active_wishes(self._wishes)

    def summary(self) -> BoardSummary:
        return board.summarize(self._wishes)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _commit(self, wishes: list[Wish]) -> None:
        """Persist first, then swap in memory, so a failed write changes nothing."""
        self._storage.save_wishes(wishes)
        self._wishes = wishes

    def _index_of(self, wish_id: str) -> int:
        for index, wish in enumerate(self._wishes):
            if wish.id == wish_id:
                return index
        raise NotFoundError(f"Wish {wish_id} not found")

    def _replace(self, index: int, wish: Wish) -> None:
        wishes = list(self._wishes)
        wishes[index] = wish
        self._commit(wishes)

    def create(self, draft: WishDraft, image_url: str) -> Wish:
        """Add a new wish at the top of the board."""
        wish = Wish(
            id=new_wish_id(),
            title=draft.title,
            description=draft.description,
            target_amount=draft.target_amount,
            saved_amount=0.0,
            image_url=image_url,
            category=draft.category,
            importance=draft.importance,
            created_at=now_ms(),
            is_completed=False,
            target_date=draft.target_date,
            action_plan=draft.action_plan,
        )
        self._commit([wish] + list(self._wishes))

        if self._audit_logger:
            self._audit_logger.log_wish_created(wish.id, wish.title, wish.target_amount)
        return wish

    def update(self, wish_id: str, draft: WishDraft, image_url: str) -> Wish:
        """
        Apply the edit form to an existing wish.

        Identity, creation time, savings and completion are kept; savings
        are re-clamped when the target goes below what is already saved.
        """
        index = self._index_of(wish_id)
        current = self._wishes[index]

        updated = Wish(
            id=current.id,
            title=draft.title,
            description=draft.description,
            target_amount=draft.target_amount,
            saved_amount=min(current.saved_amount, draft.target_amount),
            image_url=image_url,
            category=draft.category,
            importance=draft.importance,
            created_at=current.created_at,
            is_completed=current.is_completed,
            target_date=draft.target_date,
            action_plan=draft.action_plan,
        )
        self._replace(index, updated)

        if self._audit_logger:
            changed = [
                name for name in _EDITABLE_FIELDS
                if getattr(current, name) != getattr(updated, name)
            ]
            self._audit_logger.log_wish_updated(wish_id, changed)
        return updated

    def add_savings(self, wish_id: str, amount: float) -> Wish:
        """Add money to a wish; the total never goes past the target."""
        amount = float(amount)
        if not math.isfinite(amount) or amount <= 0:
            raise ValueError("Savings amount must be a positive number")

        index = self._index_of(wish_id)
        current = self._wishes[index]
        new_saved = min(current.saved_amount + amount, current.target_amount)
        updated = current.model_copy(update={"saved_amount": new_saved})
        self._replace(index, updated)

        if self._audit_logger:
            self._audit_logger.log_savings_added(
                wish_id,
                requested=amount,
                applied=new_saved - current.saved_amount,
                saved_amount=new_saved,
            )
        return updated

    def complete(self, wish_id: str) -> Wish:
        """Mark a wish as achieved. Amounts are left untouched."""
        index = self._index_of(wish_id)
        current = self._wishes[index]
        if current.is_completed:
            return current

        updated = current.model_copy(update={"is_completed": True})
        self._replace(index, updated)

        if self._audit_logger:
            self._audit_logger.log_wish_completed(wish_id, current.title)
        return updated

    def delete(self, wish_id: str) -> None:
        index = self._index_of(wish_id)
        wishes = list(self._wishes)
        del wishes[index]
        self._commit(wishes)

        if self._audit_logger:
            self._audit_logger.log_wish_deleted(wish_id)
