"""SQLAlchemy models."""

from src.models.access_token import AccessToken
from src.models.assessment import AssessmentInstance
from src.models.audit_event import AuditEvent
from src.models.base import Base, BaseModel
from src.models.enums import (
    AssessmentStatus,
    AuditAction,
    OwnerType,
    RecurrenceUnit,
    ReminderPriority,
    ReminderStatus,
    ReminderType,
    RiskTier,
)
from src.models.questionnaire import Question, QuestionnaireTemplate
from src.models.reminder import ReminderWorkItem
from src.models.risk_settings import RiskSettings

__all__ = [
    "Base",
    "BaseModel",
    "AssessmentStatus",
    "AuditAction",
    "OwnerType",
    "RecurrenceUnit",
    "ReminderPriority",
    "ReminderStatus",
    "ReminderType",
    "RiskTier",
    "QuestionnaireTemplate",
    "Question",
    "AssessmentInstance",
    "AccessToken",
    "ReminderWorkItem",
    "RiskSettings",
    "AuditEvent",
]
