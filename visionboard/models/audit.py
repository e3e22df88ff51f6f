"""
Audit Models for Vision Board

Every significant action on the board is logged as an audit event.
This provides:
1. Traceability of every change to the wish collection
2. Diagnostics when AI generation degrades to a fallback
3. A single shape for everything that reaches the structured log

DESIGN DECISION: Events never carry the API key, and image events carry
the payload size rather than the (potentially huge) data URI.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Wish lifecycle
    WISH_CREATED = "wish_created"
    WISH_UPDATED = "wish_updated"
    WISH_DELETED = "wish_deleted"
    SAVINGS_ADDED = "savings_added"
    WISH_COMPLETED = "wish_completed"

    # AI generation
    IMAGE_GENERATED = "image_generated"
    IMAGE_FALLBACK_USED = "image_fallback_used"
    PROMPT_ENHANCED = "prompt_enhanced"
    PLAN_GENERATED = "plan_generated"
    PLAN_FALLBACK_USED = "plan_fallback_used"

    # User input
    INPUT_REJECTED = "input_rejected"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'wish', 'image', 'plan')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.wish_created(wish_id, title, target)
        event = AuditEventBuilder.image_fallback_used(reason, bucket)
    """

    @staticmethod
    def wish_created(wish_id: str, title: str, target_amount: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WISH_CREATED,
            entity_type="wish",
            entity_id=wish_id,
            description=f"Wish created: {title}"[:500],
            details={"target_amount": target_amount},
            is_user_action=True,
        )

    @staticmethod
    def wish_updated(wish_id: str, changed_fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WISH_UPDATED,
            entity_type="wish",
            entity_id=wish_id,
            description=f"Wish updated ({len(changed_fields)} fields)",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def wish_deleted(wish_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WISH_DELETED,
            entity_type="wish",
            entity_id=wish_id,
            description="Wish deleted",
            is_user_action=True,
        )

    @staticmethod
    def savings_added(
        wish_id: str,
        requested: float,
        applied: float,
        saved_amount: float,
    ) -> AuditEvent:
        clamped = applied < requested
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_ADDED,
            entity_type="wish",
            entity_id=wish_id,
            description=(
                f"Savings added: {applied:g}"
                + (f" (clamped from {requested:g})" if clamped else "")
            ),
            details={
                "requested": requested,
                "applied": applied,
                "saved_amount": saved_amount,
                "clamped": clamped,
            },
            is_user_action=True,
        )

    @staticmethod
    def wish_completed(wish_id: str, title: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WISH_COMPLETED,
            entity_type="wish",
            entity_id=wish_id,
            description=f"Wish completed: {title}"[:500],
            is_user_action=True,
        )

    @staticmethod
    def image_generated(model: str, mime_type: str, payload_size: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_GENERATED,
            entity_type="image",
            description=f"Image generated with {model}",
            details={
                "model": model,
                "mime_type": mime_type,
                "payload_bytes": payload_size,
            },
        )

    @staticmethod
    def image_fallback_used(
        reason: str,
        bucket: str,
        fresh_variant: bool,
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        # Missing key is the demo path, not a problem
        severity = AuditSeverity.INFO if reason == "missing_api_key" else AuditSeverity.WARNING
        return AuditEvent(
            event_type=AuditEventType.IMAGE_FALLBACK_USED,
            severity=severity,
            entity_type="image",
            description=f"Fallback image used ({reason})",
            details={
                "reason": reason,
                "bucket": bucket,
                "fresh_variant": fresh_variant,
            },
            error_message=error_message,
        )

    @staticmethod
    def prompt_enhanced(original_words: int, enhanced_words: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROMPT_ENHANCED,
            severity=AuditSeverity.DEBUG,
            entity_type="prompt",
            description="Prompt enhanced for image generation",
            details={
                "original_words": original_words,
                "enhanced_words": enhanced_words,
            },
        )

    @staticmethod
    def plan_generated(model: str, title: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAN_GENERATED,
            entity_type="plan",
            description=f"Action plan generated for: {title}"[:500],
            details={"model": model},
        )

    @staticmethod
    def plan_fallback_used(reason: str, error_message: Optional[str] = None) -> AuditEvent:
        severity = AuditSeverity.INFO if reason == "missing_api_key" else AuditSeverity.WARNING
        return AuditEvent(
            event_type=AuditEventType.PLAN_FALLBACK_USED,
            severity=severity,
            entity_type="plan",
            description=f"Generic action plan used ({reason})",
            details={"reason": reason},
            error_message=error_message,
        )

    @staticmethod
    def input_rejected(action: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_REJECTED,
            severity=AuditSeverity.WARNING,
            description=f"Input rejected for {action} with {len(issues)} issues",
            details={"action": action, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(service: str, operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service} ({operation})",
            error_message=error_message,
            details={
                "service": service,
                "operation": operation,
            },
        )
