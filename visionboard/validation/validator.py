"""
User Input Validation

DESIGN DECISION: Every user action is validated synchronously BEFORE
anything else happens. An invalid form never triggers a Gemini request.

Errors block the action; warnings are shown but don't block.
Messages are user-facing and in Spanish, like the rest of the board.
"""

import math
from datetime import date, datetime
from typing import Optional

from visionboard.models.wish import (
    TITLE_MAX_LENGTH,
    ValidationIssue,
    ValidationResult,
    WishDraft,
)


class WishInputError(ValueError):
    """A user action was rejected by validation. Carries the result."""

    def __init__(self, action: str, result: ValidationResult):
        self.action = action
        self.result = result
        super().__init__(" ".join(result.error_messages) or "Entrada inválida")

    @property
    def messages(self) -> list[str]:
        return self.result.error_messages


def _error(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message, severity="error")


def _warning(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message, severity="warning")


def _is_positive_number(value: Optional[float]) -> bool:
    if value is None:
        return False
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0


def parse_target_date(value: str) -> date:
    """Target dates are stored as YYYY-MM-DD."""
    return datetime.strptime(value, "%Y-%m-%d").date()


class WishValidator:
    """
    Validates form submissions and card actions.

    Each validate_* method returns a ValidationResult; raise_for_result turns
    a failing result into a WishInputError.
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def _result(self, issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            is_valid=not any(i.severity == "error" for i in issues),
            issues=issues,
        )

    def validate_draft(self, draft: WishDraft) -> ValidationResult:
        """Create/edit form: title and cost are required."""
        issues = []

        if not draft.title:
            issues.append(_error("title", "missing", "El título es obligatorio."))
        elif len(draft.title) > TITLE_MAX_LENGTH:
            issues.append(_error(
                "title",
                "too_long",
                f"El título no puede superar {TITLE_MAX_LENGTH} caracteres.",
            ))

        if draft.target_amount is None:
            issues.append(_error("target_amount", "missing", "El costo es obligatorio."))
        elif not _is_positive_number(draft.target_amount):
            issues.append(_error(
                "target_amount",
                "invalid_value",
                "El costo debe ser un número mayor a cero.",
            ))

        if draft.target_date:
            try:
                target = parse_target_date(draft.target_date)
            except ValueError:
                issues.append(_error(
                    "target_date",
                    "invalid_format",
                    "La fecha objetivo debe tener el formato AAAA-MM-DD.",
                ))
            else:
                if target < self.today:
                    issues.append(_warning(
                        "target_date",
                        "past_date",
                        "La fecha objetivo ya pasó.",
                    ))

        return self._result(issues)

    def validate_plan_request(self, title: str, target_amount: Optional[float]) -> ValidationResult:
        """The plan needs to know what and how much."""
        if not (title or "").strip() or not _is_positive_number(target_amount):
            return self._result([_error(
                "title",
                "missing",
                "Por favor ingresa un título y costo primero.",
            )])
        return self._result([])

    def validate_regenerate_request(self, draft: WishDraft) -> ValidationResult:
        """Something to draw: prompt, description or title."""
        if not draft.image_prompt():
            return self._result([_error(
                "prompt",
                "missing",
                "Ingresa un título, descripción o prompt personalizado para generar la imagen.",
            )])
        return self._result([])

    def validate_savings_amount(self, amount) -> ValidationResult:
        if not _is_positive_number(amount):
            return self._result([_error(
                "amount",
                "invalid_value",
                "Ingresa un monto mayor a cero.",
            )])
        return self._result([])

    @staticmethod
    def raise_for_result(action: str, result: ValidationResult) -> None:
        if not result.is_valid:
            raise WishInputError(action, result)
