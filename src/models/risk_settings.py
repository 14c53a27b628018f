"""Risk settings model (thresholds and periodicity per company)."""

from sqlalchemy import JSON, Column, Integer, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB

from src.models.base import BaseModel
from src.models.enums import RecurrenceUnit


class RiskSettings(BaseModel):
    """Stored risk criteria for one company.

    The row with ``company_id`` NULL is the global default. Values are read
    once per request/job and turned into ``RiskConfig`` and
    ``PeriodicityPolicy`` values; the row itself is never consulted
    mid-computation.
    """

    __tablename__ = "risk_settings"

    company_id = Column(
        Uuid(as_uuid=True),
        nullable=True,
        unique=True,
    )
    low_risk_threshold = Column(
        Integer,
        nullable=False,
        default=30,
    )
    medium_risk_threshold = Column(
        Integer,
        nullable=False,
        default=60,
    )
    default_recurrence = Column(
        SQLEnum(
            RecurrenceUnit,
            name="recurrence_unit",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=RecurrenceUnit.ANNUAL,
    )
    # {"critical": "monthly", "high": "semiannual", ...}
    tier_recurrence = Column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        return (
            f"<RiskSettings(company_id={self.company_id}, "
            f"low={self.low_risk_threshold}, medium={self.medium_risk_threshold})>"
        )
