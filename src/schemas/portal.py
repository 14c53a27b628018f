"""Pydantic schemas for the respondent portal."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import RiskTier
from src.schemas.assessment import CategoryScoreResponse


class PortalQuestion(BaseModel):
    key: str
    text: str
    category: str


class PortalQuestionnaire(BaseModel):
    """What the respondent sees after opening a valid link."""

    assessment_id: UUID
    template_id: UUID
    title: str
    scale_min: int
    scale_max: int
    questions: list[PortalQuestion]


class SubmitResponseRequest(BaseModel):
    """Answers keyed by question key."""

    model_config = ConfigDict(extra="forbid")

    answers: dict[str, int] = Field(..., min_length=1, max_length=500)


class SubmitResponseResult(BaseModel):
    assessment_id: UUID
    category_scores: list[CategoryScoreResponse]
    overall_score: int
    risk_tier: RiskTier
    dominant_category: str
    next_due_date: date | None = None
