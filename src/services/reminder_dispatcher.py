"""Reminder dispatcher: claims due work items and delivers them.

Each item is claimed with a conditional UPDATE (scheduled -> sent) and the
claim is committed before the notification goes out. A crash between claim
and delivery therefore loses at most that one notification instead of
sending it twice, and several dispatchers can run side by side.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.core.metrics import REMINDER_DISPATCH_DURATION_SECONDS, observe_reminder
from src.core.reminder_catalog import Notification, retry_deadline
from src.core.retry import RetryPolicy
from src.core.structured_logging import log_json
from src.models.enums import ReminderStatus
from src.models.reminder import ReminderWorkItem
from src.services.notification_channels import NotificationChannel, get_channel

logger = logging.getLogger(__name__)

RETRY_WINDOW_CLOSED = "retry_window_closed"


@dataclass
class DispatchReport:
    """Counters for one dispatch cycle."""

    claimed: int = 0
    sent: int = 0
    retried: int = 0
    failed: int = 0
    skipped: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "claimed": self.claimed,
            "sent": self.sent,
            "retried": self.retried,
            "failed": self.failed,
            "skipped": self.skipped,
        }


def build_notification(item: ReminderWorkItem) -> Notification:
    return Notification(
        reminder_id=str(item.id),
        reminder_type=item.reminder_type,
        priority=item.priority,
        recipients=tuple(item.recipients or ()),
        title=item.title,
        body=item.message,
        metadata={
            "owner_type": item.owner_type.value,
            "owner_id": str(item.owner_id),
            "due_date": item.due_date.isoformat(),
            "lead_days": item.lead_days,
        },
    )


class ReminderDispatcher:
    """Delivers due reminder work items through a notification channel."""

    def __init__(
        self,
        db: AsyncSession,
        channel: NotificationChannel | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.channel = channel or get_channel(self.settings)
        self.retry_policy = RetryPolicy(
            max_attempts=self.settings.reminder_max_attempts,
            delays=tuple(self.settings.reminder_retry_delays_seconds),
        )

    async def due_item_ids(self, now: datetime, limit: int) -> list[UUID]:
        result = await self.db.execute(
            select(ReminderWorkItem.id)
            .where(
                ReminderWorkItem.status == ReminderStatus.SCHEDULED,
                ReminderWorkItem.fire_at <= now,
            )
            .order_by(ReminderWorkItem.fire_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def claim(self, item_id: UUID, now: datetime) -> bool:
        """Flip one item from scheduled to sent; False if someone else did."""
        result = await self.db.execute(
            update(ReminderWorkItem)
            .where(
                ReminderWorkItem.id == item_id,
                ReminderWorkItem.status == ReminderStatus.SCHEDULED,
            )
            .values(
                status=ReminderStatus.SENT,
                sent_at=now,
                attempts=ReminderWorkItem.attempts + 1,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def _load(self, item_id: UUID) -> ReminderWorkItem:
        result = await self.db.execute(
            select(ReminderWorkItem)
            .where(ReminderWorkItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _record_failure(
        self,
        item: ReminderWorkItem,
        error: Exception,
        now: datetime,
        report: DispatchReport,
    ) -> None:
        message = f"{error.__class__.__name__}: {error}"[:2000]
        retry_at = None
        if self.retry_policy.can_retry(item.attempts):
            delay = self.retry_policy.delay_for(item.attempts)
            retry_at = now + timedelta(seconds=delay)
            # A retry may not fire after the owner's due date
            if retry_at >= retry_deadline(item.due_date):
                message = f"{RETRY_WINDOW_CLOSED}: {message}"[:2000]
                retry_at = None

        if retry_at is not None:
            values = {
                "status": ReminderStatus.SCHEDULED,
                "fire_at": retry_at,
                "sent_at": None,
                "last_error": message,
            }
            outcome = "retried"
            report.retried += 1
        else:
            delay = None
            values = {
                "status": ReminderStatus.FAILED,
                "failed_at": now,
                "sent_at": None,
                "last_error": message,
            }
            outcome = "failed"
            report.failed += 1

        await self.db.execute(
            update(ReminderWorkItem)
            .where(ReminderWorkItem.id == item.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        observe_reminder(item.reminder_type.value, outcome)
        log_json(
            logger,
            logging.WARNING if outcome == "retried" else logging.ERROR,
            "reminder_delivery_failed",
            reminder_id=str(item.id),
            reminder_type=item.reminder_type.value,
            attempts=item.attempts,
            outcome=outcome,
            retry_in_seconds=delay,
            error=message,
        )

    async def run_cycle(self, now: datetime | None = None, limit: int | None = None) -> DispatchReport:
        """Process one bounded batch of due work items.

        A delivery failure is recorded on its item and never stops the batch.
        """
        now = now or datetime.now(UTC)
        limit = limit or self.settings.reminder_batch_size
        report = DispatchReport()
        start = time.perf_counter()

        for item_id in await self.due_item_ids(now, limit):
            if not await self.claim(item_id, now):
                report.skipped += 1
                observe_reminder("unknown", "skipped")
                continue
            report.claimed += 1

            item = await self._load(item_id)
            try:
                await self.channel.send(build_notification(item))
            except Exception as exc:
                await self._record_failure(item, exc, now, report)
                continue

            report.sent += 1
            observe_reminder(item.reminder_type.value, "sent")

        REMINDER_DISPATCH_DURATION_SECONDS.observe(time.perf_counter() - start)
        return report
