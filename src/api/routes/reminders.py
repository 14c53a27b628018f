"""API routes for reminder review."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_company_id
from src.core.database import get_db
from src.models.enums import ReminderStatus
from src.schemas.reminder import ReminderResponse
from src.services.reminder_scheduler import ReminderScheduler

router = APIRouter()


@router.get(
    "",
    response_model=list[ReminderResponse],
    summary="List reminders",
)
async def list_reminders(
    status: ReminderStatus | None = Query(None),
    owner_id: UUID | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    include_cancelled: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
) -> list[ReminderResponse]:
    """List the company's reminder work items, soonest first.

    Filter by ``status=failed`` to review deliveries that gave up; items dropped
    with a cancelled or completed owner show up only with ``include_cancelled``.
    """
    scheduler = ReminderScheduler(db)
    items = await scheduler.list_reminders(
        company_id=company_id,
        status=status,
        owner_id=owner_id,
        limit=limit,
        include_cancelled=include_cancelled,
    )
    return [ReminderResponse.model_validate(item) for item in items]
