"""Risk classification.

Tiers are derived from the overall score (the worst category) with an
explicit ``RiskConfig``:

    score > 80                     -> critical
    score > medium_risk_threshold  -> high
    score > low_risk_threshold     -> medium
    otherwise                      -> low

A value equal to a threshold resolves to the lower tier.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from src.core.errors import InvalidThresholds
from src.core.scoring import CategoryScore
from src.core.structured_logging import log_json
from src.models.enums import RiskTier

logger = logging.getLogger(__name__)

CRITICAL_RISK_CEILING = 80
DEFAULT_LOW_RISK_THRESHOLD = 30
DEFAULT_MEDIUM_RISK_THRESHOLD = 60


@dataclass(frozen=True)
class RiskConfig:
    """Classification thresholds (percentages).

    Invariant: 0 <= low_risk_threshold < medium_risk_threshold < 100.
    """

    low_risk_threshold: int = DEFAULT_LOW_RISK_THRESHOLD
    medium_risk_threshold: int = DEFAULT_MEDIUM_RISK_THRESHOLD

    def __post_init__(self) -> None:
        if not is_valid_thresholds(self.low_risk_threshold, self.medium_risk_threshold):
            raise InvalidThresholds(
                "Thresholds must satisfy 0 <= low < medium < 100",
                {
                    "low_risk_threshold": self.low_risk_threshold,
                    "medium_risk_threshold": self.medium_risk_threshold,
                },
            )

    @classmethod
    def validated(
        cls,
        low_risk_threshold: int | None,
        medium_risk_threshold: int | None,
        default: RiskConfig | None = None,
    ) -> RiskConfig:
        """Build a config from stored values, falling back on bad input.

        Missing or out-of-order thresholds are ignored (logged) and the
        default config is returned instead.
        """
        fallback = default or cls()
        if low_risk_threshold is None or medium_risk_threshold is None:
            return fallback
        if not is_valid_thresholds(low_risk_threshold, medium_risk_threshold):
            log_json(
                logger,
                logging.WARNING,
                "risk_config_invalid",
                low_risk_threshold=low_risk_threshold,
                medium_risk_threshold=medium_risk_threshold,
                fallback_low=fallback.low_risk_threshold,
                fallback_medium=fallback.medium_risk_threshold,
            )
            return fallback
        return cls(int(low_risk_threshold), int(medium_risk_threshold))


@dataclass(frozen=True)
class RiskAssessment:
    overall_score: int
    tier: RiskTier
    dominant_category: str
    category_scores: tuple[CategoryScore, ...]


def is_valid_thresholds(low: object, medium: object) -> bool:
    if isinstance(low, bool) or isinstance(medium, bool):
        return False
    if not isinstance(low, int) or not isinstance(medium, int):
        return False
    return 0 <= low < medium < 100


def calculate_risk_level(score: float, config: RiskConfig) -> RiskTier:
    """Map a score to a risk tier.

    Examples:
        >>> calculate_risk_level(30, RiskConfig(30, 60))
        <RiskTier.LOW: 'low'>
        >>> calculate_risk_level(61, RiskConfig(30, 60))
        <RiskTier.HIGH: 'high'>
        >>> calculate_risk_level(81, RiskConfig(30, 60))
        <RiskTier.CRITICAL: 'critical'>
    """
    if score > CRITICAL_RISK_CEILING:
        return RiskTier.CRITICAL
    if score > config.medium_risk_threshold:
        return RiskTier.HIGH
    if score > config.low_risk_threshold:
        return RiskTier.MEDIUM
    return RiskTier.LOW


def dominant_category(scores: Sequence[CategoryScore]) -> CategoryScore:
    """Highest-scoring category; on a tie the earliest declared one wins."""
    if not scores:
        raise ValueError("At least one category score is required")
    best = scores[0]
    for entry in scores[1:]:
        if entry.score > best.score:
            best = entry
    return best


def classify(scores: Sequence[CategoryScore], config: RiskConfig) -> RiskAssessment:
    """Classify a scored response.

    The overall score is the maximum category score, so the most acute
    dimension decides the tier.
    """
    dominant = dominant_category(scores)
    return RiskAssessment(
        overall_score=dominant.score,
        tier=calculate_risk_level(dominant.score, config),
        dominant_category=dominant.category,
        category_scores=tuple(scores),
    )
