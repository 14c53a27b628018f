"""Enumerations for the assessment lifecycle, risk tiers and reminders."""

from enum import Enum


class RiskTier(str, Enum):
    """Risk tier derived from the overall score.

    Order (lowest to highest): LOW, MEDIUM, HIGH, CRITICAL.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def get_severity_level(cls, tier: "RiskTier") -> int:
        """Get numeric severity for tier comparison.

        Args:
            tier: RiskTier to get level for

        Returns:
            Integer level (higher = more severe)
        """
        levels = {
            cls.LOW: 1,
            cls.MEDIUM: 2,
            cls.HIGH: 3,
            cls.CRITICAL: 4,
        }
        return levels.get(tier, 0)

    def is_at_least(self, other: "RiskTier") -> bool:
        return self.get_severity_level(self) >= self.get_severity_level(other)


class RecurrenceUnit(str, Enum):
    """Re-assessment interval."""

    NONE = "none"
    MONTHLY = "monthly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"


class AssessmentStatus(str, Enum):
    """Assessment instance lifecycle status.

    Workflow:
    - SCHEDULED: Created, waiting for the scheduled date
    - SENT: Link delivered to the respondent (optional step)
    - COMPLETED: Response recorded, terminal
    - CANCELLED: Withdrawn before completion, terminal
    """

    SCHEDULED = "scheduled"
    SENT = "sent"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OwnerType(str, Enum):
    """Entity types that own reminder work items."""

    ASSESSMENT = "assessment"
    ACTION_PLAN = "action_plan"


class ReminderType(str, Enum):
    """Reminder notification types."""

    ASSESSMENT_DUE = "assessment_due"
    REASSESSMENT_DUE = "reassessment_due"
    ACTION_PLAN_OVERDUE = "action_plan_overdue"
    HIGH_RISK_ALERT = "high_risk_alert"


class ReminderPriority(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


class ReminderStatus(str, Enum):
    """Reminder work item delivery status.

    SCHEDULED items are claimed by flipping them to SENT before delivery.
    FAILED is terminal.
    """

    SCHEDULED = "scheduled"
    SENT = "sent"
    FAILED = "failed"


class AuditAction(str, Enum):
    """Audit action enumeration for tracking lifecycle actions."""

    # Assessment
    ASSESSMENT_SCHEDULE = "assessment.schedule"
    ASSESSMENT_SEND = "assessment.send"
    ASSESSMENT_COMPLETE = "assessment.complete"
    ASSESSMENT_CANCEL = "assessment.cancel"

    # Access token
    TOKEN_ISSUE = "token.issue"
    TOKEN_REDEEM = "token.redeem"

    # Template
    TEMPLATE_CREATE = "template.create"
    TEMPLATE_CLONE = "template.clone"

    # Settings
    RISK_SETTINGS_UPDATE = "risk_settings.update"
