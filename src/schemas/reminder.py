"""Pydantic schemas for reminder endpoints."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.models.enums import OwnerType, ReminderPriority, ReminderStatus, ReminderType


class ScheduleActionPlanRemindersRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    due_date: date
    recipients: list[EmailStr] = Field(..., min_length=1, max_length=50)
    title: str | None = Field(None, max_length=255)


class ScheduleRemindersResponse(BaseModel):
    owner_type: OwnerType
    owner_id: UUID
    created: int
    pending: int


class ReminderResponse(BaseModel):
    id: UUID
    owner_type: OwnerType
    owner_id: UUID
    reminder_type: ReminderType
    priority: ReminderPriority
    lead_days: int
    due_date: date
    fire_at: datetime
    status: ReminderStatus
    attempts: int
    last_error: str | None = None
    sent_at: datetime | None = None
    failed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
