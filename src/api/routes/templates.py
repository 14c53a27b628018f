"""API routes for questionnaire templates."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_actor, get_company_id
from src.core.database import get_db
from src.schemas.questionnaire import CreateTemplateRequest, TemplateResponse
from src.services.template_service import TemplateService

router = APIRouter()


@router.post(
    "",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create questionnaire template",
)
async def create_template(
    request: CreateTemplateRequest,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
    actor: str | None = Depends(get_actor),
) -> TemplateResponse:
    """Create a template owned by the calling company.

    Questions keep the order in which they are sent; that order defines the
    category order of every score computed with the template.
    """
    service = TemplateService(db)
    template = await service.create_template(company_id, request, actor=actor)
    response = TemplateResponse.model_validate(template)
    await db.commit()
    return response


@router.get(
    "/{template_id}",
    response_model=TemplateResponse,
    summary="Get questionnaire template",
)
async def get_template(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
) -> TemplateResponse:
    service = TemplateService(db)
    template = await service.get_visible_template(template_id, company_id)
    return TemplateResponse.model_validate(template)


@router.post(
    "/{template_id}/clone",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Clone template into a new version",
)
async def clone_template(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
    actor: str | None = Depends(get_actor),
) -> TemplateResponse:
    """Copy a template (own or global) into a new company-owned version.

    This is how a template already used by a completed assessment gets edited.
    """
    service = TemplateService(db)
    clone = await service.clone_template(template_id, company_id, actor=actor)
    response = TemplateResponse.model_validate(clone)
    await db.commit()
    return response
