"""Reminder work item model."""

from sqlalchemy import JSON, Column, Date, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB

from src.models.base import BaseModel, UTCDateTime
from src.models.enums import OwnerType, ReminderPriority, ReminderStatus, ReminderType


class ReminderWorkItem(BaseModel):
    """A single pending notification tied to a due entity.

    Rows are created in batches by the scheduler and consumed by the
    dispatcher. SENT and FAILED rows are never rescheduled for a new purpose.
    """

    __tablename__ = "reminder_work_items"

    owner_type = Column(
        SQLEnum(
            OwnerType,
            name="reminder_owner_type",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    owner_id = Column(
        Uuid(as_uuid=True),
        nullable=False,
    )
    company_id = Column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )
    reminder_type = Column(
        SQLEnum(
            ReminderType,
            name="reminder_type",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    priority = Column(
        SQLEnum(
            ReminderPriority,
            name="reminder_priority",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    lead_days = Column(
        Integer,
        nullable=False,
    )
    due_date = Column(
        Date,
        nullable=False,
    )
    fire_at = Column(
        UTCDateTime,
        nullable=False,
    )
    recipients = Column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=list,
    )
    title = Column(
        String(255),
        nullable=False,
    )
    message = Column(
        Text,
        nullable=False,
    )
    status = Column(
        SQLEnum(
            ReminderStatus,
            name="reminder_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=ReminderStatus.SCHEDULED,
    )
    attempts = Column(
        Integer,
        nullable=False,
        default=0,
    )
    last_error = Column(
        Text,
        nullable=True,
    )
    sent_at = Column(
        UTCDateTime,
        nullable=True,
    )
    failed_at = Column(
        UTCDateTime,
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint(
            "owner_type",
            "owner_id",
            "reminder_type",
            "lead_days",
            name="uq_reminder_owner_lead",
        ),
        Index("idx_reminders_status_fire_at", "status", "fire_at"),
    )

    def __repr__(self) -> str:
        return f"<ReminderWorkItem(id={self.id}, type={self.reminder_type}, status={self.status})>"
