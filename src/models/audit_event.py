"""AuditEvent model."""

from sqlalchemy import JSON, Column, Index, String, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB

from src.models.base import BaseModel
from src.models.enums import AuditAction


class AuditEvent(BaseModel):
    """Append-only trail of lifecycle actions.

    Written for scheduling, delivery, completion and cancellation of
    assessments, token issue/redemption and risk settings changes.
    """

    __tablename__ = "audit_events"

    company_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    actor = Column(String(255), nullable=True)
    action = Column(
        SQLEnum(
            AuditAction,
            name="audit_action",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Uuid(as_uuid=True), nullable=False)
    diff_json = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    __table_args__ = (
        Index("idx_audit_events_entity", "entity_type", "entity_id"),
    )

    def __repr__(self) -> str:
        return f"<AuditEvent(id={self.id}, action={self.action}, entity_type={self.entity_type})>"
