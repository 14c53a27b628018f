"""Unit tests for risk classification."""
import logging

import pytest

from src.core.errors import InvalidThresholds
from src.core.risk import (
    RiskConfig,
    calculate_risk_level,
    classify,
    dominant_category,
    is_valid_thresholds,
)
from src.core.scoring import CategoryScore
from src.models.enums import RiskTier


class TestRiskLevel:
    """Tests for the score -> tier rule."""

    @pytest.mark.parametrize(
        ("score", "tier"),
        [
            (0, RiskTier.LOW),
            (30, RiskTier.LOW),
            (31, RiskTier.MEDIUM),
            (60, RiskTier.MEDIUM),
            (61, RiskTier.HIGH),
            (80, RiskTier.HIGH),
            (81, RiskTier.CRITICAL),
            (100, RiskTier.CRITICAL),
        ],
    )
    def test_boundaries_with_defaults(self, score, tier):
        assert calculate_risk_level(score, RiskConfig(30, 60)) is tier

    def test_monotonic(self):
        """A higher score never yields a lower tier."""
        config = RiskConfig(25, 50)
        levels = [RiskTier.get_severity_level(calculate_risk_level(s, config)) for s in range(101)]
        assert levels == sorted(levels)

    def test_custom_thresholds(self):
        config = RiskConfig(10, 20)
        assert calculate_risk_level(15, config) is RiskTier.MEDIUM
        assert calculate_risk_level(21, config) is RiskTier.HIGH

    def test_critical_ceiling_is_fixed(self):
        """Medium threshold above 80 never produces HIGH above the ceiling."""
        config = RiskConfig(30, 90)
        assert calculate_risk_level(85, config) is RiskTier.CRITICAL
        assert calculate_risk_level(80, config) is RiskTier.MEDIUM


class TestRiskConfig:
    """Tests for threshold validation."""

    @pytest.mark.parametrize(("low", "medium"), [(60, 30), (30, 30), (-1, 60), (30, 100)])
    def test_invalid_thresholds_raise(self, low, medium):
        with pytest.raises(InvalidThresholds):
            RiskConfig(low, medium)

    def test_validated_falls_back_to_defaults(self, caplog):
        with caplog.at_level(logging.WARNING, logger="src.core.risk"):
            config = RiskConfig.validated(70, 40)
        assert config == RiskConfig(30, 60)
        assert "risk_config_invalid" in caplog.text

    def test_validated_uses_given_fallback(self):
        fallback = RiskConfig(20, 40)
        assert RiskConfig.validated(None, 40, default=fallback) == fallback

    def test_validated_accepts_good_values(self):
        assert RiskConfig.validated(10, 20) == RiskConfig(10, 20)

    def test_is_valid_thresholds_rejects_bools(self):
        assert is_valid_thresholds(True, 60) is False
        assert is_valid_thresholds(0, 99) is True


class TestClassify:
    """Tests for overall classification."""

    def test_overall_is_max_and_dominant_first_max(self):
        scores = [CategoryScore("A", 90), CategoryScore("B", 30)]
        result = classify(scores, RiskConfig())
        assert result.overall_score == 90
        assert result.tier is RiskTier.CRITICAL
        assert result.dominant_category == "A"
        assert result.category_scores == tuple(scores)

    def test_tie_goes_to_first_declared(self):
        scores = [CategoryScore("B", 50), CategoryScore("A", 70), CategoryScore("C", 70)]
        assert dominant_category(scores).category == "A"

    def test_empty_scores_rejected(self):
        with pytest.raises(ValueError):
            dominant_category([])
