"""Pydantic schemas for questionnaire template endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuestionCreate(BaseModel):
    """Single question in a template creation request."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., min_length=1, max_length=100)
    text: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=255)
    weight: int = Field(1, ge=1)


class CreateTemplateRequest(BaseModel):
    """Request schema for creating a questionnaire template."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    scale_min: int = Field(1, ge=0)
    scale_max: int = Field(5, ge=1)
    questions: list[QuestionCreate] = Field(..., min_length=1, max_length=500)

    @model_validator(mode="after")
    def _check_scale_and_keys(self) -> "CreateTemplateRequest":
        if self.scale_max <= self.scale_min:
            raise ValueError("scale_max must be greater than scale_min")
        keys = [q.key for q in self.questions]
        if len(keys) != len(set(keys)):
            raise ValueError("question keys must be unique within a template")
        return self


class QuestionResponse(BaseModel):
    key: str
    position: int
    text: str
    category: str
    weight: int

    model_config = ConfigDict(from_attributes=True)


class TemplateResponse(BaseModel):
    """Response schema for a questionnaire template."""

    id: UUID
    company_id: UUID | None = None
    title: str
    description: str | None = None
    scale_min: int
    scale_max: int
    version: int
    parent_template_id: UUID | None = None
    questions: list[QuestionResponse]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
