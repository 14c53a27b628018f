"""Audit service for logging lifecycle actions."""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.audit_event import AuditEvent
from src.models.enums import AuditAction


class AuditService:
    """Service for creating and reading audit trail entries."""

    def __init__(self, db: AsyncSession):
        """Initialize audit service.

        Args:
            db: Database session
        """
        self.db = db

    async def log(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: UUID,
        company_id: Optional[UUID] = None,
        actor: Optional[str] = None,
        diff_json: Optional[dict[str, Any]] = None,
    ) -> AuditEvent:
        """Create an audit log entry.

        Args:
            action: Action being performed
            entity_type: Type of entity being acted upon
            entity_id: ID of entity being acted upon
            company_id: Owning company (None for global entities)
            actor: Who triggered the action ("system", "respondent", an HR user id)
            diff_json: Details of the change

        Returns:
            Created AuditEvent instance
        """
        audit_event = AuditEvent(
            company_id=company_id,
            actor=actor,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            diff_json=diff_json,
        )
        self.db.add(audit_event)
        await self.db.flush()
        return audit_event

    async def list_for_entity(self, entity_type: str, entity_id: UUID) -> list[AuditEvent]:
        """Audit trail of one entity, oldest first."""
        result = await self.db.execute(
            select(AuditEvent)
            .where(AuditEvent.entity_type == entity_type, AuditEvent.entity_id == entity_id)
            .order_by(AuditEvent.created_at)
        )
        return list(result.scalars().all())
