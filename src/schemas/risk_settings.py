"""Pydantic schemas for risk settings endpoints."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.enums import RecurrenceUnit, RiskTier


class RiskSettingsPayload(BaseModel):
    """Thresholds (percent) and periodicity for a company."""

    model_config = ConfigDict(extra="forbid")

    low_risk_threshold: int = Field(..., ge=0, le=99)
    medium_risk_threshold: int = Field(..., ge=1, le=99)
    default_recurrence: RecurrenceUnit = RecurrenceUnit.ANNUAL
    tier_recurrence: dict[RiskTier, RecurrenceUnit] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_order(self) -> "RiskSettingsPayload":
        if self.low_risk_threshold >= self.medium_risk_threshold:
            raise ValueError("low_risk_threshold must be lower than medium_risk_threshold")
        return self


class RiskSettingsResponse(RiskSettingsPayload):
    critical_risk_ceiling: int = 80
