"""Integration tests for risk settings."""
from datetime import UTC, date, datetime
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.assessment import AssessmentInstance
from src.models.enums import RecurrenceUnit, RiskTier
from src.models.risk_settings import RiskSettings
from src.services.assessment_service import AssessmentService
from src.services.risk_settings_service import RiskSettingsService


@pytest.mark.asyncio
async def test_defaults_without_stored_settings(client: AsyncClient, company_headers):
    response = await client.get("/api/settings/risk", headers=company_headers)

    assert response.status_code == 200
    assert response.json() == {
        "low_risk_threshold": 30,
        "medium_risk_threshold": 60,
        "default_recurrence": "none",
        "tier_recurrence": {},
        "critical_risk_ceiling": 80,
    }


@pytest.mark.asyncio
async def test_update_settings(client: AsyncClient, company_headers):
    payload = {
        "low_risk_threshold": 25,
        "medium_risk_threshold": 55,
        "default_recurrence": "annual",
        "tier_recurrence": {"critical": "monthly", "high": "semiannual"},
    }

    response = await client.put("/api/settings/risk", json=payload, headers=company_headers)

    assert response.status_code == 200
    assert response.json() == {**payload, "critical_risk_ceiling": 80}

    read_back = await client.get("/api/settings/risk", headers=company_headers)
    assert read_back.json()["low_risk_threshold"] == 25

    other = await client.get("/api/settings/risk", headers={"X-Company-ID": str(uuid4())})
    assert other.json()["low_risk_threshold"] == 30


@pytest.mark.asyncio
async def test_update_rejects_inverted_thresholds(client: AsyncClient, company_headers):
    response = await client.put(
        "/api/settings/risk",
        json={"low_risk_threshold": 60, "medium_risk_threshold": 30},
        headers=company_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_rejects_unknown_recurrence(client: AsyncClient, company_headers):
    response = await client.put(
        "/api/settings/risk",
        json={
            "low_risk_threshold": 30,
            "medium_risk_threshold": 60,
            "tier_recurrence": {"critical": "weekly"},
        },
        headers=company_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_global_settings_apply_to_every_company(db: AsyncSession, company_id):
    service = RiskSettingsService(db)
    await service.update(None, 20, 50, RecurrenceUnit.ANNUAL, {"critical": "monthly"})

    criteria = await service.load(company_id)

    assert criteria.config.low_risk_threshold == 20
    assert criteria.config.medium_risk_threshold == 50
    assert criteria.policy.resolve(RiskTier.CRITICAL) is RecurrenceUnit.MONTHLY
    assert criteria.policy.resolve(RiskTier.LOW) is RecurrenceUnit.ANNUAL


@pytest.mark.asyncio
async def test_company_settings_win_over_global(db: AsyncSession, company_id):
    service = RiskSettingsService(db)
    await service.update(None, 20, 50, RecurrenceUnit.ANNUAL, {})
    await service.update(company_id, 35, 70, RecurrenceUnit.SEMIANNUAL, {})

    criteria = await service.load(company_id)

    assert criteria.config.low_risk_threshold == 35
    assert criteria.policy.default is RecurrenceUnit.SEMIANNUAL


@pytest.mark.asyncio
async def test_corrupt_stored_thresholds_fall_back_to_defaults(db: AsyncSession, company_id):
    """A row written around the API with low >= medium is ignored."""
    db.add(
        RiskSettings(
            company_id=company_id,
            low_risk_threshold=70,
            medium_risk_threshold=40,
            default_recurrence=RecurrenceUnit.ANNUAL,
            tier_recurrence={},
        )
    )
    await db.flush()

    criteria = await RiskSettingsService(db).load(company_id)

    assert criteria.config.low_risk_threshold == 30
    assert criteria.config.medium_risk_threshold == 60
    assert criteria.policy.default is RecurrenceUnit.ANNUAL


@pytest.mark.asyncio
async def test_corrupt_stored_periodicity_falls_back_to_default(db: AsyncSession, company_id):
    """An unknown tier recurrence drops the overrides and keeps the default."""
    db.add(
        RiskSettings(
            company_id=company_id,
            low_risk_threshold=35,
            medium_risk_threshold=65,
            default_recurrence=RecurrenceUnit.ANNUAL,
            tier_recurrence={"critical": "weekly"},
        )
    )
    await db.flush()

    criteria = await RiskSettingsService(db).load(company_id)

    assert criteria.config.low_risk_threshold == 35
    assert criteria.policy.default is RecurrenceUnit.ANNUAL
    assert criteria.policy.per_tier == {}


@pytest.mark.asyncio
async def test_completion_survives_corrupt_periodicity(
    db: AsyncSession, company_id, test_assessment: AssessmentInstance
):
    db.add(
        RiskSettings(
            company_id=company_id,
            low_risk_threshold=30,
            medium_risk_threshold=60,
            default_recurrence=RecurrenceUnit.MONTHLY,
            tier_recurrence={"extreme": "monthly"},
        )
    )
    await db.flush()
    completed_at = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)

    completed = await AssessmentService(db).complete(
        test_assessment, {"q1": 5, "q2": 4, "q3": 2, "q4": 1}, now=completed_at
    )

    assert completed.risk_tier is RiskTier.CRITICAL
    assert completed.next_due_date == date(2025, 4, 10)
