"""
Main Orchestrator for Vision Board

This module ties together all the components and defines the end-to-end
flows behind every control on the board:
1. Submit (validate -> resolve image -> create/update)
2. Regenerate image (validate -> generate a fresh variant)
3. Generate action plan (validate -> plan)
4. Card actions (add savings, complete, delete)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Invalid input is rejected before any network call
- The image is resolved BEFORE the wish is persisted
- AI failures never surface here; the agents always return something usable
"""

from typing import Optional

import structlog

from visionboard.agents import ActionPlanGenerator, ImageGenerationOrchestrator
from visionboard.audit import AuditLogger, configure_logging
from visionboard.config import ApiKeyResolver, get_settings
from visionboard.models.wish import Wish, WishDraft
from visionboard.services.storage import (
    InMemoryWishStorage,
    LocalStorageFile,
    LocalStorageWishStorage,
    WishStorageInterface,
)
from visionboard.store import WishStore
from visionboard.validation import WishValidator


logger = structlog.get_logger(__name__)


class WishBoardFlow:
    """
    Orchestrates user actions on the board.

    Flow for submit:
    1. Validate the form (no network call if invalid)
    2. If no image was chosen yet, generate one from prompt/description/title
       using the stable fallback (same text -> same picture)
    3. Create the wish, or update it when editing
    """

    def __init__(
        self,
        store: WishStore,
        image_orchestrator: Optional[ImageGenerationOrchestrator] = None,
        plan_generator: Optional[ActionPlanGenerator] = None,
        validator: Optional[WishValidator] = None,
        key_resolver: Optional[ApiKeyResolver] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._key_resolver = key_resolver or ApiKeyResolver()
        self._audit_logger = audit_logger
        self._image_orchestrator = image_orchestrator or ImageGenerationOrchestrator(
            key_resolver=self._key_resolver,
            audit_logger=audit_logger,
        )
        self._plan_generator = plan_generator or ActionPlanGenerator(
            key_resolver=self._key_resolver,
            audit_logger=audit_logger,
        )
        self._validator = validator or WishValidator()

    @property
    def store(self) -> WishStore:
        return self._store

    def is_ai_online(self) -> bool:
        """Status indicator: a usable key exists."""
        return self._key_resolver.is_online()

    def masked_api_key(self) -> str:
        """Redacted key for the settings page."""
        return self._key_resolver.masked_key()

    def _check(self, action: str, result) -> None:
        if result.is_valid:
            return
        if self._audit_logger:
            self._audit_logger.log_input_rejected(
                action,
                [{"field": i.field, "type": i.issue_type} for i in result.issues],
            )
        self._validator.raise_for_result(action, result)

    async def submit(self, draft: WishDraft, editing_id: Optional[str] = None) -> Wish:
        """
        Save the create/edit form.

        Raises:
            WishInputError: If title or cost are missing/invalid
            NotFoundError: If editing_id doesn't exist
        """
        self._check("submit", self._validator.validate_draft(draft))

        image_url = draft.image_url
        if not image_url:
            image_url = await self._image_orchestrator.generate(
                draft.image_prompt(),
                force_fresh_on_failure=False,
            )

        if editing_id:
            return self._store.update(editing_id, draft, image_url)
        return self._store.create(draft, image_url)

    async def regenerate_image(self, draft: WishDraft) -> str:
        """
        User asked for a new picture.

        A fresh fallback variant is used if generation degrades, so the
        change is always visible.
        """
        self._check("regenerate_image", self._validator.validate_regenerate_request(draft))
        return await self._image_orchestrator.generate(
            draft.image_prompt(),
            force_fresh_on_failure=True,
        )

    async def generate_plan(self, title: str, target_amount: Optional[float]) -> str:
        self._check("generate_plan", self._validator.validate_plan_request(title, target_amount))
        return await self._plan_generator.generate_plan(title.strip(), float(target_amount))

    def add_savings(self, wish_id: str, amount) -> Wish:
        self._check("add_savings", self._validator.validate_savings_amount(amount))
        return self._store.add_savings(wish_id, float(amount))

    def complete(self, wish_id: str) -> Wish:
        return self._store.complete(wish_id)

    def delete(self, wish_id: str) -> None:
        """Called only after the user confirmed the deletion."""
        self._store.delete(wish_id)


def create_app_components(
    use_storage: bool = True,
) -> tuple[WishBoardFlow, WishStore]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to persist to the local storage file.
                    Set to False to keep everything in memory.

    Returns:
        (wish_board_flow, wish_store)
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging(app_settings.effective_log_level)
    audit_logger = AuditLogger()

    storage: WishStorageInterface
    store: Optional[WishStore] = None
    if use_storage:
        try:
            storage = LocalStorageWishStorage(
                LocalStorageFile(settings.storage.storage_path),
                key=settings.storage.storage_key,
            )
            store = WishStore(storage, audit_logger)
        except Exception as e:
            # Unreadable storage - continue in memory rather than not starting
            logger.warning("storage_unavailable_using_memory", error=str(e))
            audit_logger.log_error("storage_unavailable", str(e))
            store = None

    if store is None:
        store = WishStore(InMemoryWishStorage(), audit_logger)

    flow = WishBoardFlow(store=store, audit_logger=audit_logger)
    logger.info(
        "app_components_created",
        environment=app_settings.app_environment,
        debug_mode=app_settings.debug_mode,
        ai_online=flow.is_ai_online(),
    )
    return flow, store
