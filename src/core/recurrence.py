"""Re-assessment date planning."""

from __future__ import annotations

import calendar
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date

from src.core.errors import InvalidRecurrence
from src.models.enums import RecurrenceUnit, RiskTier

MONTHS_PER_UNIT: dict[RecurrenceUnit, int] = {
    RecurrenceUnit.MONTHLY: 1,
    RecurrenceUnit.SEMIANNUAL: 6,
    RecurrenceUnit.ANNUAL: 12,
}


def parse_recurrence(value: object) -> RecurrenceUnit:
    """Parse a persisted/config recurrence value.

    Raises:
        InvalidRecurrence: if the value is not one of none|monthly|semiannual|annual
    """
    if isinstance(value, RecurrenceUnit):
        return value
    try:
        return RecurrenceUnit(str(value).strip().lower())
    except ValueError:
        raise InvalidRecurrence(
            f"Unknown recurrence value: {value!r}",
            {"allowed": [u.value for u in RecurrenceUnit]},
        ) from None


@dataclass(frozen=True)
class PeriodicityPolicy:
    """Default recurrence plus optional per-tier overrides."""

    default: RecurrenceUnit = RecurrenceUnit.NONE
    per_tier: Mapping[RiskTier, RecurrenceUnit] = field(default_factory=dict)

    @classmethod
    def from_values(cls, default: object, per_tier: Mapping[str, object] | None) -> PeriodicityPolicy:
        """Build a policy from stored strings, rejecting unknown values."""
        overrides: dict[RiskTier, RecurrenceUnit] = {}
        for tier_value, unit_value in (per_tier or {}).items():
            try:
                tier = RiskTier(tier_value)
            except ValueError:
                raise InvalidRecurrence(
                    f"Unknown risk tier in periodicity policy: {tier_value!r}",
                    {"allowed": [t.value for t in RiskTier]},
                ) from None
            overrides[tier] = parse_recurrence(unit_value)
        return cls(default=parse_recurrence(default), per_tier=overrides)

    def resolve(self, tier: RiskTier) -> RecurrenceUnit:
        return self.per_tier.get(tier, self.default)

    def with_default(self, default: RecurrenceUnit) -> PeriodicityPolicy:
        return PeriodicityPolicy(default=default, per_tier=dict(self.per_tier))

    def to_json(self) -> dict:
        return {
            "default": self.default.value,
            "per_tier": {tier.value: unit.value for tier, unit in self.per_tier.items()},
        }


def add_months(anchor: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month.

    Examples:
        >>> add_months(date(2025, 1, 31), 1)
        datetime.date(2025, 2, 28)
        >>> add_months(date(2024, 1, 31), 1)
        datetime.date(2024, 2, 29)
    """
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance(anchor: date, unit: RecurrenceUnit) -> date | None:
    """Move an anchor date forward by one recurrence unit (None for NONE)."""
    months = MONTHS_PER_UNIT.get(unit)
    if months is None:
        return None
    return add_months(anchor, months)


def next_due_date(
    tier: RiskTier,
    policy: PeriodicityPolicy,
    anchor: date,
) -> date | None:
    """Compute the next re-assessment date.

    The tier-specific unit wins when the policy has one, otherwise the policy
    default applies. Returns None when the resolved unit is NONE.
    """
    return advance(anchor, policy.resolve(tier))


def plan_for_instance(
    tier: RiskTier,
    policy: PeriodicityPolicy,
    anchor: date,
    instance_recurrence: RecurrenceUnit | None,
) -> date | None:
    """Next due date for an assessment instance.

    An instance-level recurrence replaces the policy default (tier overrides
    still apply); an instance-level NONE disables recurrence entirely.
    """
    if instance_recurrence is RecurrenceUnit.NONE:
        return None
    if instance_recurrence is not None:
        policy = policy.with_default(instance_recurrence)
    return next_due_date(tier, policy, anchor)
