"""Exceptions raised by the EMI calculator outside of the engine itself."""

from __future__ import annotations

from typing import Dict, Optional


class InputValidationError(ValueError):
    """Raised when loan inputs fail the caller-side validation rules.

    ``errors`` maps a form field name (``principal``, ``rate``, ``tenure``,
    ``course_duration`` or ``loan_type``) to a short user-facing message.
    """

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        detail = ", ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(f"Invalid loan inputs ({detail})")


class AdvisorError(RuntimeError):
    """Raised by an advisor when the text service cannot produce a reply."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
