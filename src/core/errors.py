"""Domain errors raised by the scoring, lifecycle and token components.

Each error carries a stable ``code`` so callers (API layer, logs) can tell
failure modes apart without parsing messages.
"""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base class for all engine errors."""

    code = "engine_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(EngineError):
    """Input rejected before any state mutation."""

    code = "validation_error"


class IncompleteResponse(ValidationError):
    """Raised when a response set does not answer every template question."""

    code = "incomplete_response"

    def __init__(self, missing_question_ids: list[str]):
        super().__init__(
            f"{len(missing_question_ids)} question(s) left unanswered",
            {"missing_question_ids": missing_question_ids},
        )
        self.missing_question_ids = missing_question_ids


class InvalidAnswer(ValidationError):
    code = "invalid_answer"


class InvalidRecurrence(ValidationError):
    code = "invalid_recurrence"


class InvalidThresholds(ValidationError):
    code = "invalid_thresholds"


class InvalidPortalLink(ValidationError):
    code = "invalid_portal_link"


class InvalidTransition(EngineError):
    """Raised when an assessment lifecycle transition is not allowed."""

    code = "invalid_transition"


class TokenError(EngineError):
    """Base class for access token failures."""

    code = "token_error"


class TokenNotFound(TokenError):
    code = "token_not_found"

    def __init__(self):
        super().__init__("Access link is invalid")


class TokenMismatch(TokenError):
    code = "token_mismatch"

    def __init__(self):
        super().__init__("Access link does not match this assessment")


class TokenExpired(TokenError):
    code = "token_expired"

    def __init__(self):
        super().__init__("Access link has expired")


class TokenAlreadyUsed(TokenError):
    code = "token_already_used"

    def __init__(self):
        super().__init__("Assessment has already been completed with this link")
