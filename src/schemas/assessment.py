"""Pydantic schemas for assessment lifecycle endpoints."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.models.enums import AssessmentStatus, RecurrenceUnit, RiskTier


class ScheduleAssessmentRequest(BaseModel):
    """Request schema for scheduling an assessment."""

    model_config = ConfigDict(extra="forbid")

    employee_id: UUID
    template_id: UUID
    scheduled_date: date
    recurrence: RecurrenceUnit | None = Field(
        None,
        description="Overrides the company default; 'none' disables re-assessment",
    )
    recipients: list[EmailStr] = Field(default_factory=list, max_length=50)


class CancelAssessmentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str | None = Field(None, max_length=500)


class IssueLinkRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ttl_days: int | None = Field(None, ge=1, le=90)


class CategoryScoreResponse(BaseModel):
    category: str
    score: int


class AssessmentResponse(BaseModel):
    """Response schema for an assessment instance."""

    id: UUID
    company_id: UUID
    employee_id: UUID
    template_id: UUID
    status: AssessmentStatus
    scheduled_date: date
    recurrence: RecurrenceUnit | None = None
    previous_assessment_id: UUID | None = None
    sent_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    category_scores: list[CategoryScoreResponse] | None = None
    overall_score: int | None = None
    risk_tier: RiskTier | None = None
    dominant_category: str | None = None
    next_due_date: date | None = None

    model_config = ConfigDict(from_attributes=True)


class PortalLinkResponse(BaseModel):
    """Portal link returned once at issue time (the token is not stored)."""

    assessment_id: UUID
    link_url: str
    expires_at: datetime
    status: AssessmentStatus
