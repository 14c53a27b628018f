"""Error response schemas."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response for domain errors.

    ``error`` is the stable code of the raised error, e.g. ``token_expired``.
    """

    error: str = Field(
        ...,
        description="Error type identifier",
        examples=["incomplete_response", "token_already_used", "invalid_transition"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["2 question(s) left unanswered", "Access link has expired"],
    )
    details: Optional[dict] = Field(
        None,
        description="Additional error context (missing questions, allowed transitions, etc.)",
        examples=[{"missing_question_ids": ["q3", "q4"]}],
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "token_already_used",
                    "message": "Assessment has already been completed with this link",
                },
                {
                    "error": "incomplete_response",
                    "message": "2 question(s) left unanswered",
                    "details": {"missing_question_ids": ["q3", "q4"]},
                },
                {
                    "error": "invalid_transition",
                    "message": "Cannot move assessment from completed to cancelled",
                    "details": {
                        "from_status": "completed",
                        "to_status": "cancelled",
                        "allowed": [],
                    },
                },
            ]
        }
    )
