"""Reminder scheduler: turns a due date into pending reminder work items."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.core.metrics import REMINDERS_SCHEDULED_TOTAL
from src.core.reminder_catalog import (
    LEAD_TIMES,
    fire_time,
    reminder_message,
    reminder_priority,
    reminder_title,
)
from src.core.structured_logging import log_json
from src.models.enums import OwnerType, ReminderStatus, ReminderType
from src.models.reminder import ReminderWorkItem

logger = logging.getLogger(__name__)

OWNER_CANCELLED = "owner_cancelled"
OWNER_COMPLETED = "owner_completed"
# Reasons that mark an item dropped with its owner rather than a delivery failure
DROPPED_REASONS = (OWNER_CANCELLED, OWNER_COMPLETED)


class ReminderScheduler:
    """Creates reminder work items, idempotently.

    A work item is unique on (owner_type, owner_id, reminder_type, lead_days);
    scheduling the same owner twice creates nothing the second time.
    """

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(ReminderWorkItem)
        if dialect == "sqlite":
            return sqlite_insert(ReminderWorkItem)
        raise RuntimeError(f"Unsupported database dialect for reminders: {dialect}")

    async def _insert_ignoring_duplicates(self, rows: Sequence[dict]) -> int:
        created = 0
        for row in rows:
            stmt = (
                self._insert()
                .values(**row)
                .on_conflict_do_nothing(
                    index_elements=["owner_type", "owner_id", "reminder_type", "lead_days"]
                )
            )
            result = await self.db.execute(stmt)
            created += max(result.rowcount or 0, 0)
        return created

    async def schedule(
        self,
        owner_type: OwnerType,
        owner_id: UUID,
        due_date: date,
        reminder_type: ReminderType,
        recipients: Sequence[str],
        company_id: UUID | None = None,
        lead_days: Sequence[int] | None = None,
        extra: str | None = None,
        now: datetime | None = None,
    ) -> int:
        """Create one work item per lead time still in the future.

        Args:
            owner_type: Kind of entity the reminders belong to
            owner_id: Id of that entity
            due_date: Date the entity is due
            reminder_type: Reminder vocabulary entry
            recipients: E-mail addresses to notify
            company_id: Owning company
            lead_days: Override of the owner type's lead table
            extra: Optional line appended to the message body
            now: Scheduling instant (defaults to the current time)

        Returns:
            Number of work items newly created
        """
        now = now or datetime.now(UTC)
        leads = tuple(lead_days) if lead_days is not None else LEAD_TIMES[owner_type]

        rows = []
        for lead in leads:
            fire_at = fire_time(due_date, lead, self.settings.reminder_fire_hour_utc)
            if fire_at <= now:
                continue
            rows.append(
                self._row(
                    owner_type, owner_id, company_id, reminder_type, lead,
                    due_date, fire_at, recipients, extra,
                )
            )

        created = await self._insert_ignoring_duplicates(rows)
        if created:
            REMINDERS_SCHEDULED_TOTAL.labels(reminder_type=reminder_type.value).inc(created)
        log_json(
            logger,
            logging.INFO,
            "reminders_scheduled",
            owner_type=owner_type.value,
            owner_id=str(owner_id),
            reminder_type=reminder_type.value,
            due_date=due_date.isoformat(),
            candidates=len(rows),
            created=created,
        )
        return created

    async def queue_immediate(
        self,
        owner_type: OwnerType,
        owner_id: UUID,
        reminder_type: ReminderType,
        recipients: Sequence[str],
        company_id: UUID | None = None,
        extra: str | None = None,
        now: datetime | None = None,
    ) -> int:
        """Queue a single work item due now (lead 0), e.g. a high-risk alert."""
        now = now or datetime.now(UTC)
        row = self._row(
            owner_type, owner_id, company_id, reminder_type, 0,
            now.date(), now, recipients, extra,
        )
        created = await self._insert_ignoring_duplicates([row])
        if created:
            REMINDERS_SCHEDULED_TOTAL.labels(reminder_type=reminder_type.value).inc(created)
        return created

    def _row(
        self,
        owner_type: OwnerType,
        owner_id: UUID,
        company_id: UUID | None,
        reminder_type: ReminderType,
        lead: int,
        due_date: date,
        fire_at: datetime,
        recipients: Sequence[str],
        extra: str | None,
    ) -> dict:
        return {
            "id": uuid4(),
            "owner_type": owner_type,
            "owner_id": owner_id,
            "company_id": company_id,
            "reminder_type": reminder_type,
            "priority": reminder_priority(reminder_type),
            "lead_days": lead,
            "due_date": due_date,
            "fire_at": fire_at,
            "recipients": list(recipients),
            "title": reminder_title(reminder_type),
            "message": reminder_message(reminder_type, owner_type, due_date, lead, extra),
            "status": ReminderStatus.SCHEDULED,
            "attempts": 0,
        }

    async def cancel_pending(
        self,
        owner_type: OwnerType,
        owner_id: UUID,
        reason: str = OWNER_CANCELLED,
        now: datetime | None = None,
    ) -> int:
        """Mark every still-scheduled work item of an owner as failed."""
        result = await self.db.execute(
            update(ReminderWorkItem)
            .where(
                ReminderWorkItem.owner_type == owner_type,
                ReminderWorkItem.owner_id == owner_id,
                ReminderWorkItem.status == ReminderStatus.SCHEDULED,
            )
            .values(
                status=ReminderStatus.FAILED,
                last_error=reason,
                failed_at=now or datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def pending_count(self, owner_type: OwnerType, owner_id: UUID) -> int:
        query = (
            select(func.count())
            .select_from(ReminderWorkItem)
            .where(
                ReminderWorkItem.owner_type == owner_type,
                ReminderWorkItem.owner_id == owner_id,
                ReminderWorkItem.status == ReminderStatus.SCHEDULED,
            )
        )
        return int((await self.db.scalar(query)) or 0)

    async def list_reminders(
        self,
        company_id: UUID | None = None,
        status: ReminderStatus | None = None,
        owner_id: UUID | None = None,
        limit: int = 100,
        include_cancelled: bool = False,
    ) -> list[ReminderWorkItem]:
        """List work items, soonest first.

        Listing failed items leaves out the ones dropped because their owner was
        cancelled or completed, unless ``include_cancelled`` is set.
        """
        query = select(ReminderWorkItem)
        if company_id is not None:
            query = query.where(ReminderWorkItem.company_id == company_id)
        if status is not None:
            query = query.where(ReminderWorkItem.status == status)
            if status is ReminderStatus.FAILED and not include_cancelled:
                query = query.where(
                    or_(
                        ReminderWorkItem.last_error.is_(None),
                        ReminderWorkItem.last_error.not_in(DROPPED_REASONS),
                    )
                )
        if owner_id is not None:
            query = query.where(ReminderWorkItem.owner_id == owner_id)
        query = (
            query.order_by(ReminderWorkItem.fire_at, ReminderWorkItem.lead_days.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
