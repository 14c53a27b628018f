"""Respondent portal routes.

Unauthenticated: access is granted by the single-use token carried in the
link query string.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.portal_links import validate_link_params
from src.schemas.assessment import CategoryScoreResponse
from src.schemas.portal import (
    PortalQuestion,
    PortalQuestionnaire,
    SubmitResponseRequest,
    SubmitResponseResult,
)
from src.services.assessment_service import AssessmentService

router = APIRouter()


@router.get(
    "/{template_id}",
    response_model=PortalQuestionnaire,
    summary="Open portal link",
)
async def open_portal(
    template_id: str,
    employee: str | None = Query(None),
    assessment: str | None = Query(None),
    token: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> PortalQuestionnaire:
    """Check the link and return the questionnaire. The token stays valid."""
    params = validate_link_params(template_id, employee, assessment, token)
    service = AssessmentService(db)
    instance = await service.open_portal(params)
    template = instance.template
    return PortalQuestionnaire(
        assessment_id=instance.id,
        template_id=template.id,
        title=template.title,
        scale_min=template.scale_min,
        scale_max=template.scale_max,
        questions=[
            PortalQuestion(key=q.key, text=q.text, category=q.category)
            for q in template.questions
        ],
    )


@router.post(
    "/{template_id}/responses",
    response_model=SubmitResponseResult,
    summary="Submit questionnaire response",
)
async def submit_response(
    template_id: str,
    request: SubmitResponseRequest,
    employee: str | None = Query(None),
    assessment: str | None = Query(None),
    token: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> SubmitResponseResult:
    """Redeem the link token and complete the assessment.

    A second submission with the same link fails with ``token_already_used``.
    """
    params = validate_link_params(template_id, employee, assessment, token)
    service = AssessmentService(db)
    instance = await service.submit_response(params, request.answers)
    response = SubmitResponseResult(
        assessment_id=instance.id,
        category_scores=[CategoryScoreResponse(**s) for s in instance.category_scores],
        overall_score=instance.overall_score,
        risk_tier=instance.risk_tier,
        dominant_category=instance.dominant_category,
        next_due_date=instance.next_due_date,
    )
    await db.commit()
    return response
