"""
Audit Logger

DESIGN DECISION: Every significant action on the board is logged.
This provides:
1. Complete traceability of wish changes
2. Visibility into AI degradations (fallback images, generic plans)
3. A recent-activity feed the UI can show

The audit logger:
- Logs through structlog as JSON lines
- Keeps a bounded in-memory buffer of recent events
- Never raises: a logging failure must not break a user action
"""

import logging
import sys
from collections import deque
from typing import Optional

import structlog

from visionboard.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output to stderr at the given level.

    Safe to call more than once; only the level changes after the first call.
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory ring buffer (for the activity feed)
    """

    def __init__(self, max_recent: int = 200):
        self._logger = structlog.get_logger("visionboard.audit")
        self._recent: deque[AuditEvent] = deque(maxlen=max_recent)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the structured log write failed.
        """
        self._recent.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False

        return True

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._recent))[:limit]

    def log_wish_created(self, wish_id: str, title: str, target_amount: float) -> None:
        self.log(AuditEventBuilder.wish_created(wish_id, title, target_amount))

    def log_wish_updated(self, wish_id: str, changed_fields: list[str]) -> None:
        self.log(AuditEventBuilder.wish_updated(wish_id, changed_fields))

    def log_wish_deleted(self, wish_id: str) -> None:
        self.log(AuditEventBuilder.wish_deleted(wish_id))

    def log_savings_added(
        self,
        wish_id: str,
        requested: float,
        applied: float,
        saved_amount: float,
    ) -> None:
        self.log(AuditEventBuilder.savings_added(wish_id, requested, applied, saved_amount))

    def log_wish_completed(self, wish_id: str, title: str) -> None:
        self.log(AuditEventBuilder.wish_completed(wish_id, title))

    def log_image_generated(self, model: str, mime_type: str, payload_size: int) -> None:
        self.log(AuditEventBuilder.image_generated(model, mime_type, payload_size))

    def log_image_fallback(
        self,
        reason: str,
        bucket: str,
        fresh_variant: bool,
        error_message: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.image_fallback_used(
            reason=reason,
            bucket=bucket,
            fresh_variant=fresh_variant,
            error_message=error_message,
        ))

    def log_prompt_enhanced(self, original: str, enhanced: str) -> None:
        self.log(AuditEventBuilder.prompt_enhanced(
            original_words=len(original.split()),
            enhanced_words=len(enhanced.split()),
        ))

    def log_plan_generated(self, model: str, title: str) -> None:
        self.log(AuditEventBuilder.plan_generated(model, title))

    def log_plan_fallback(self, reason: str, error_message: Optional[str] = None) -> None:
        self.log(AuditEventBuilder.plan_fallback_used(reason, error_message))

    def log_input_rejected(self, action: str, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.input_rejected(action, issues))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))

    def log_external_service_error(
        self,
        service: str,
        operation: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.external_service_error(service, operation, error_message))
