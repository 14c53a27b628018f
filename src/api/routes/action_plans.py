"""API routes for action plan reminders.

Action plans themselves live in another service; this engine only needs
their id and due date to schedule overdue reminders.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_company_id
from src.core.database import get_db
from src.models.enums import OwnerType, ReminderType
from src.schemas.reminder import ScheduleActionPlanRemindersRequest, ScheduleRemindersResponse
from src.services.reminder_scheduler import ReminderScheduler

router = APIRouter()


@router.post(
    "/{action_plan_id}/reminders",
    response_model=ScheduleRemindersResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule action plan reminders",
)
async def schedule_action_plan_reminders(
    action_plan_id: UUID,
    request: ScheduleActionPlanRemindersRequest,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
) -> ScheduleRemindersResponse:
    """Schedule reminders 14, 7, 3 and 1 days before the action plan is due.

    Calling this again for the same plan creates nothing new.
    """
    scheduler = ReminderScheduler(db)
    created = await scheduler.schedule(
        OwnerType.ACTION_PLAN,
        action_plan_id,
        request.due_date,
        ReminderType.ACTION_PLAN_OVERDUE,
        [str(r) for r in request.recipients],
        company_id=company_id,
        extra=f"Plano: {request.title}" if request.title else None,
    )
    pending = await scheduler.pending_count(OwnerType.ACTION_PLAN, action_plan_id)
    await db.commit()
    return ScheduleRemindersResponse(
        owner_type=OwnerType.ACTION_PLAN,
        owner_id=action_plan_id,
        created=created,
        pending=pending,
    )
