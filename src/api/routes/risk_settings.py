"""API routes for risk classification settings."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_actor, get_company_id
from src.core.database import get_db
from src.core.risk import CRITICAL_RISK_CEILING
from src.schemas.risk_settings import RiskSettingsPayload, RiskSettingsResponse
from src.services.risk_settings_service import RiskCriteria, RiskSettingsService

router = APIRouter()


def _criteria_to_response(criteria: RiskCriteria) -> RiskSettingsResponse:
    return RiskSettingsResponse(
        low_risk_threshold=criteria.config.low_risk_threshold,
        medium_risk_threshold=criteria.config.medium_risk_threshold,
        default_recurrence=criteria.policy.default,
        tier_recurrence=dict(criteria.policy.per_tier),
        critical_risk_ceiling=CRITICAL_RISK_CEILING,
    )


@router.get(
    "/risk",
    response_model=RiskSettingsResponse,
    summary="Get risk settings",
)
async def get_risk_settings(
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
) -> RiskSettingsResponse:
    """Effective settings: the company's own, else the global ones, else defaults."""
    criteria = await RiskSettingsService(db).load(company_id)
    return _criteria_to_response(criteria)


@router.put(
    "/risk",
    response_model=RiskSettingsResponse,
    summary="Update risk settings",
)
async def update_risk_settings(
    request: RiskSettingsPayload,
    db: AsyncSession = Depends(get_db),
    company_id: UUID = Depends(get_company_id),
    actor: str | None = Depends(get_actor),
) -> RiskSettingsResponse:
    service = RiskSettingsService(db)
    await service.update(
        company_id,
        request.low_risk_threshold,
        request.medium_risk_threshold,
        request.default_recurrence,
        {tier.value: unit.value for tier, unit in request.tier_recurrence.items()},
        actor=actor,
    )
    criteria = await service.load(company_id)
    await db.commit()
    return _criteria_to_response(criteria)
