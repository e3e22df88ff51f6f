"""
Core Data Models for Vision Board

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce the savings invariants at construction time
2. Serialize to the exact camelCase shape of the persisted wish array
3. Provide clear validation error messages

DESIGN DECISION: Wish records are persisted with camelCase keys
(targetAmount, savedAmount, ...) so the stored blob keeps the shape the
board has always used. Python code works with snake_case attributes.
"""

import time
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class WishCategory(str, Enum):
    """
    Wish categories shown in the board filter.

    Values are the Spanish display labels and are what gets persisted.
    """
    TRAVEL = "Viajes"
    VEHICLE = "Vehículos"
    HOME = "Hogar"
    GADGETS = "Tecnología"
    PERSONAL = "Personal"
    OTHER = "Otros"


class Importance(str, Enum):
    """How much the user cares about a wish."""
    HIGH = "Alta"
    MEDIUM = "Media"
    LOW = "Baja"


# Longest title a wish can carry
TITLE_MAX_LENGTH = 200

# Pseudo-category used by the filter to mean "everything"
ALL_CATEGORIES_FILTER = "TODOS"


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def new_wish_id() -> str:
    return str(uuid4())


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


# =============================================================================
# CORE WISH MODEL
# =============================================================================

class Wish(BaseModel):
    """
    A savings goal on the board.

    INVARIANTS:
    - 0 <= saved_amount <= target_amount
    - is_completed only ever goes from False to True
      (enforced by the store: there is no un-complete operation)
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=new_wish_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="What the user wants"
    )
    description: str = Field(
        default="",
        description="Free text description"
    )
    target_amount: float = Field(
        ...,
        gt=0,
        description="Cost of the wish"
    )
    saved_amount: float = Field(
        default=0.0,
        ge=0,
        description="Money put aside so far"
    )
    image_url: str = Field(
        default="",
        description="Data URI or external image URL"
    )
    category: WishCategory = Field(
        default=WishCategory.OTHER,
        description="Board category"
    )
    importance: Optional[Importance] = None
    created_at: int = Field(
        default_factory=now_ms,
        description="Creation time in epoch milliseconds"
    )
    is_completed: bool = Field(
        default=False,
        description="Set once the wish has been achieved"
    )
    target_date: Optional[str] = Field(
        default=None,
        description="Target date (YYYY-MM-DD)"
    )
    action_plan: Optional[str] = Field(
        default=None,
        description="AI generated (or generic) 3-step plan"
    )

    @field_validator('target_date', 'action_plan', 'importance', mode='before')
    @classmethod
    def empty_strings_are_missing(cls, v):
        """The form sends '' for untouched optional fields."""
        return _blank_to_none(v)

    @model_validator(mode='after')
    def validate_savings(self) -> 'Wish':
        """Saved amount can never exceed the target."""
        if self.saved_amount > self.target_amount:
            raise ValueError("Saved amount cannot exceed target amount")
        return self

    @property
    def remaining_amount(self) -> float:
        return max(self.target_amount - self.saved_amount, 0.0)

    @property
    def progress_percent(self) -> float:
        """Progress toward the target, 0-100."""
        return min(self.saved_amount / self.target_amount * 100, 100.0)

    @property
    def is_fully_funded(self) -> bool:
        """The UI only offers 'complete' once nothing is left to save."""
        return self.remaining_amount <= 0

    def to_storage_dict(self) -> dict:
        """Serialize with the persisted camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_storage_dict(cls, record: dict) -> 'Wish':
        """
        Load a persisted record.

        Older boards never clamped savings on edit, so a stored savedAmount
        can be above targetAmount (or negative). It is clamped back into
        [0, targetAmount] instead of rejecting the record.
        """
        if isinstance(record, dict):
            target = record.get("targetAmount", record.get("target_amount"))
            saved_key = "savedAmount" if "savedAmount" in record else "saved_amount"
            saved = record.get(saved_key)
            if _is_number(target) and _is_number(saved):
                record = {**record, saved_key: min(max(saved, 0), target)}
        return cls.model_validate(record)


class WishDraft(BaseModel):
    """
    The create/edit form payload.

    Fields are permissive on purpose: a missing title or cost is a
    user input problem reported by WishValidator, not a type error.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = ""
    description: str = ""
    target_amount: Optional[float] = None
    category: WishCategory = WishCategory.OTHER
    importance: Importance = Importance.MEDIUM

    # Custom prompt for image generation (not persisted)
    prompt: str = ""

    # Already chosen image (e.g. after a manual regeneration)
    image_url: str = ""

    target_date: Optional[str] = None
    action_plan: Optional[str] = None

    @field_validator('target_date', 'action_plan', mode='before')
    @classmethod
    def empty_strings_are_missing(cls, v):
        return _blank_to_none(v)

    def image_prompt(self) -> str:
        """Text used to generate the wish image: prompt, then description, then title."""
        for candidate in (self.prompt, self.description, self.title):
            if candidate and candidate.strip():
                return candidate.strip()
        return ""

    @classmethod
    def from_wish(cls, wish: Wish) -> 'WishDraft':
        """Pre-fill the edit form from an existing wish."""
        return cls(
            title=wish.title,
            description=wish.description,
            target_amount=wish.target_amount,
            category=wish.category,
            importance=wish.importance or Importance.MEDIUM,
            image_url=wish.image_url,
            target_date=wish.target_date,
            action_plan=wish.action_plan,
        )


# =============================================================================
# BOARD SUMMARY
# =============================================================================

class BoardSummary(BaseModel):
    """Totals shown in the hero section."""

    total_target: float = Field(ge=0)
    total_saved: float = Field(ge=0)
    total_progress: float = Field(
        ge=0,
        description="Percent of all targets saved (0 when there are no wishes)"
    )
    wish_count: int = Field(ge=0)
    active_count: int = Field(ge=0)
    completed_count: int = Field(ge=0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'past_date')"
    )
    message: str = Field(
        ...,
        description="User-facing description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating a user action before anything else happens."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        """Non-blocking messages."""
        return [i.message for i in self.issues if i.severity == "warning"]

    @property
    def error_messages(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "error"]
