"""
Data Models Package

This package contains all Pydantic models used in Vision Board.
All data flowing through the system must conform to these schemas.
"""

from visionboard.models.wish import (
    ALL_CATEGORIES_FILTER,
    BoardSummary,
    Importance,
    ValidationIssue,
    ValidationResult,
    Wish,
    WishCategory,
    WishDraft,
)
from visionboard.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Wish models
    "ALL_CATEGORIES_FILTER",
    "BoardSummary",
    "Importance",
    "ValidationIssue",
    "ValidationResult",
    "Wish",
    "WishCategory",
    "WishDraft",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
