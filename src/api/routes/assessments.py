"""API routes for the assessment lifecycle."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_actor, get_company_id
from src.core.database import get_db
from src.schemas.assessment import (
    AssessmentResponse,
    CancelAssessmentRequest,
    IssueLinkRequest,
    PortalLinkResponse,
    ScheduleAssessmentRequest,
)
from src.services.assessment_service import AssessmentService

router = APIRouter()


@router.post(
    "",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule assessment",
)
async def schedule_assessment(
    request: ScheduleAssessmentRequest,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
    actor: str | None = Depends(get_actor),
) -> AssessmentResponse:
    """Schedule an assessment for one employee.

    Due-date reminders are created 7, 3 and 1 days before ``scheduled_date``
    (only those still in the future).
    """
    service = AssessmentService(db)
    instance = await service.schedule(company_id, request, actor=actor)
    response = AssessmentResponse.model_validate(instance)
    await db.commit()
    return response


@router.get(
    "/{assessment_id}",
    response_model=AssessmentResponse,
    summary="Get assessment",
)
async def get_assessment(
    assessment_id: UUID,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
) -> AssessmentResponse:
    service = AssessmentService(db)
    instance = await service.get(assessment_id, company_id)
    return AssessmentResponse.model_validate(instance)


@router.post(
    "/{assessment_id}/link",
    response_model=PortalLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate portal link",
)
async def generate_link(
    assessment_id: UUID,
    request: IssueLinkRequest | None = None,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
) -> PortalLinkResponse:
    """Issue a new single-use link. Earlier unused links stop working."""
    service = AssessmentService(db)
    instance = await service.get(assessment_id, company_id)
    link, access_token = await service.generate_link(
        instance, ttl_days=request.ttl_days if request else None
    )
    response = PortalLinkResponse(
        assessment_id=instance.id,
        link_url=link,
        expires_at=access_token.expires_at,
        status=instance.status,
    )
    await db.commit()
    return response


@router.post(
    "/{assessment_id}/send",
    response_model=PortalLinkResponse,
    summary="Send assessment",
)
async def send_assessment(
    assessment_id: UUID,
    request: IssueLinkRequest | None = None,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
    actor: str | None = Depends(get_actor),
) -> PortalLinkResponse:
    """Move a scheduled assessment to ``sent`` and return its portal link."""
    service = AssessmentService(db)
    instance = await service.get(assessment_id, company_id)
    link, access_token = await service.send(
        instance, ttl_days=request.ttl_days if request else None, actor=actor
    )
    response = PortalLinkResponse(
        assessment_id=instance.id,
        link_url=link,
        expires_at=access_token.expires_at,
        status=instance.status,
    )
    await db.commit()
    return response


@router.post(
    "/{assessment_id}/cancel",
    response_model=AssessmentResponse,
    summary="Cancel assessment",
)
async def cancel_assessment(
    assessment_id: UUID,
    request: CancelAssessmentRequest | None = None,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
    actor: str | None = Depends(get_actor),
) -> AssessmentResponse:
    """Cancel a scheduled or sent assessment.

    Its links are revoked and its pending reminders are dropped.
    """
    service = AssessmentService(db)
    instance = await service.get(assessment_id, company_id)
    instance = await service.cancel(
        instance, reason=request.reason if request else None, actor=actor
    )
    response = AssessmentResponse.model_validate(instance)
    await db.commit()
    return response
