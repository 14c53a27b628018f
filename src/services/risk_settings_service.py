"""Risk settings service: load once, hand out explicit config values."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.core.errors import InvalidRecurrence
from src.core.recurrence import PeriodicityPolicy, parse_recurrence
from src.core.risk import RiskConfig
from src.core.structured_logging import log_json
from src.models.enums import AuditAction, RecurrenceUnit
from src.models.risk_settings import RiskSettings
from src.services.audit_service import AuditService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskCriteria:
    """Thresholds and periodicity resolved for one company."""

    config: RiskConfig
    policy: PeriodicityPolicy


def default_risk_config(settings: Settings | None = None) -> RiskConfig:
    settings = settings or get_settings()
    return RiskConfig.validated(
        settings.default_low_risk_threshold,
        settings.default_medium_risk_threshold,
        default=RiskConfig(),
    )


class RiskSettingsService:
    """Reads and updates stored risk criteria."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.audit_service = AuditService(db)

    async def _get_row(self, company_id: UUID | None) -> RiskSettings | None:
        query = select(RiskSettings).where(
            RiskSettings.company_id.is_(None)
            if company_id is None
            else RiskSettings.company_id == company_id
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def load(self, company_id: UUID | None) -> RiskCriteria:
        """Resolve criteria: company row, else global row, else defaults.

        Stored thresholds that violate the ordering invariant, and stored
        recurrence values that do not parse, are ignored (logged) and the
        defaults are used instead.
        """
        row = None
        if company_id is not None:
            row = await self._get_row(company_id)
        if row is None:
            row = await self._get_row(None)

        defaults = default_risk_config(self.settings)
        if row is None:
            return RiskCriteria(config=defaults, policy=PeriodicityPolicy())

        return RiskCriteria(
            config=RiskConfig.validated(
                row.low_risk_threshold,
                row.medium_risk_threshold,
                default=defaults,
            ),
            policy=self._stored_policy(row),
        )

    def _stored_policy(self, row: RiskSettings) -> PeriodicityPolicy:
        try:
            return PeriodicityPolicy.from_values(row.default_recurrence, row.tier_recurrence)
        except InvalidRecurrence as exc:
            log_json(
                logger,
                logging.WARNING,
                "risk_periodicity_invalid",
                risk_settings_id=str(row.id),
                company_id=str(row.company_id) if row.company_id else None,
                tier_recurrence=row.tier_recurrence,
                error=exc.message,
            )
            # The stored default is an enum column and always parses
            return PeriodicityPolicy(default=parse_recurrence(row.default_recurrence))

    async def update(
        self,
        company_id: UUID | None,
        low_risk_threshold: int,
        medium_risk_threshold: int,
        default_recurrence: RecurrenceUnit | str,
        tier_recurrence: dict[str, str],
        actor: str | None = None,
    ) -> RiskSettings:
        """Create or replace the company's criteria.

        Raises:
            InvalidThresholds: when 0 <= low < medium < 100 does not hold
            InvalidRecurrence: for unknown recurrence values or tiers
        """
        config = RiskConfig(low_risk_threshold, medium_risk_threshold)
        policy = PeriodicityPolicy.from_values(default_recurrence, tier_recurrence)

        row = await self._get_row(company_id)
        before = None
        if row is None:
            row = RiskSettings(company_id=company_id)
            self.db.add(row)
        else:
            before = {
                "low_risk_threshold": row.low_risk_threshold,
                "medium_risk_threshold": row.medium_risk_threshold,
                "default_recurrence": row.default_recurrence.value if row.default_recurrence else None,
                "tier_recurrence": row.tier_recurrence,
            }

        row.low_risk_threshold = config.low_risk_threshold
        row.medium_risk_threshold = config.medium_risk_threshold
        row.default_recurrence = parse_recurrence(default_recurrence)
        row.tier_recurrence = policy.to_json()["per_tier"]
        await self.db.flush()

        await self.audit_service.log(
            action=AuditAction.RISK_SETTINGS_UPDATE,
            entity_type="risk_settings",
            entity_id=row.id,
            company_id=company_id,
            actor=actor,
            diff_json={
                "before": before,
                "after": {
                    "low_risk_threshold": row.low_risk_threshold,
                    "medium_risk_threshold": row.medium_risk_threshold,
                    **policy.to_json(),
                },
            },
        )
        return row
