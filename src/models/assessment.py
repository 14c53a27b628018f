"""Assessment instance model."""

from sqlalchemy import JSON, Column, Date, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from src.models.base import BaseModel, UTCDateTime
from src.models.enums import AssessmentStatus, RecurrenceUnit, RiskTier

JSONType = JSON().with_variant(JSONB, "postgresql")


class AssessmentInstance(BaseModel):
    """One scheduled questionnaire for one employee.

    Created in SCHEDULED, optionally moved to SENT when the portal link goes
    out, and finished as COMPLETED (with scores) or CANCELLED.
    """

    __tablename__ = "assessment_instances"

    company_id = Column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    employee_id = Column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    template_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("questionnaire_templates.id", ondelete="RESTRICT"),
        nullable=False,
    )
    status = Column(
        SQLEnum(
            AssessmentStatus,
            name="assessment_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=AssessmentStatus.SCHEDULED,
    )
    scheduled_date = Column(
        Date,
        nullable=False,
    )
    recurrence = Column(
        SQLEnum(
            RecurrenceUnit,
            name="recurrence_unit",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    recipients = Column(
        JSONType,
        nullable=False,
        default=list,
    )
    previous_assessment_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("assessment_instances.id", ondelete="SET NULL"),
        nullable=True,
    )
    sent_at = Column(
        UTCDateTime,
        nullable=True,
    )
    completed_at = Column(
        UTCDateTime,
        nullable=True,
    )
    cancelled_at = Column(
        UTCDateTime,
        nullable=True,
    )

    # Result (set on completion)
    response_json = Column(
        JSONType,
        nullable=True,
    )
    category_scores = Column(
        JSONType,
        nullable=True,
    )
    overall_score = Column(
        Integer,
        nullable=True,
    )
    risk_tier = Column(
        SQLEnum(
            RiskTier,
            name="risk_tier",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    dominant_category = Column(
        String(255),
        nullable=True,
    )
    next_due_date = Column(
        Date,
        nullable=True,
    )

    # Relationships
    template = relationship(
        "QuestionnaireTemplate",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_assessments_status", "status"),
        Index("idx_assessments_scheduled_date", "scheduled_date"),
    )

    def __repr__(self) -> str:
        return f"<AssessmentInstance(id={self.id}, status={self.status})>"
