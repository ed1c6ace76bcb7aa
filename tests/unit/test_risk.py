"""
Unit tests for risk scoring.

Tests penalties, clamping, tier mapping and risk level filtering.
"""

from decimal import Decimal

import pytest

from crossarb.core.types import RecommendationTier
from crossarb.strategy.risk import RiskScorer, RiskScorerConfig, is_acceptable


class TestRiskScorerConfig:
    """Tests for RiskScorerConfig dataclass."""

    def test_default_config(self) -> None:
        """Test default thresholds."""
        config = RiskScorerConfig()

        assert config.base_score == 15
        assert config.spread_threshold_pct == Decimal("0.3")
        assert config.anomaly_profit_pct == Decimal("5")
        assert config.safe_max == 30
        assert config.caution_max == 60

    def test_from_settings(self, settings) -> None:  # type: ignore[no-untyped-def]
        """Test thresholds are read from settings."""
        tuned = settings.model_copy(
            update={
                "risk_spread_threshold_pct": Decimal("0.5"),
                "risk_anomaly_profit_pct": Decimal("3"),
            }
        )

        config = RiskScorerConfig.from_settings(tuned)

        assert config.spread_threshold_pct == Decimal("0.5")
        assert config.anomaly_profit_pct == Decimal("3")


class TestRiskScorer:
    """Tests for RiskScorer."""

    @pytest.fixture
    def scorer(self) -> RiskScorer:
        """Create scorer with default config."""
        return RiskScorer()

    def test_quiet_market_is_safe(self, scorer: RiskScorer) -> None:
        """Test no warning signs gives the base score."""
        assessment = scorer.score(
            book_spread_pct=Decimal("0.05"),
            net_profit_quote=Decimal("10"),
            trade_amount_quote=Decimal("1000"),
            wallets_healthy=True,
        )

        assert assessment.score == 15
        assert assessment.tier == RecommendationTier.SAFE
        assert assessment.reasons == ()

    def test_wide_spread_penalty(self, scorer: RiskScorer) -> None:
        """Test a wide book spread adds the spread penalty."""
        assessment = scorer.score(
            book_spread_pct=Decimal("1.0"),
            net_profit_quote=Decimal("10"),
            trade_amount_quote=Decimal("1000"),
            wallets_healthy=True,
        )

        assert assessment.score == 35
        assert assessment.tier == RecommendationTier.CAUTION
        assert len(assessment.reasons) == 1

    def test_implausible_profit_penalty(self, scorer: RiskScorer) -> None:
        """Test profit above the anomaly limit is penalized."""
        assessment = scorer.score(
            book_spread_pct=Decimal("0.05"),
            net_profit_quote=Decimal("80"),
            trade_amount_quote=Decimal("1000"),
            wallets_healthy=True,
        )

        assert assessment.score == 55
        assert assessment.tier == RecommendationTier.CAUTION

    def test_all_penalties_clamped(self, scorer: RiskScorer) -> None:
        """Test the score never exceeds 100."""
        assessment = scorer.score(
            book_spread_pct=Decimal("2"),
            net_profit_quote=Decimal("100"),
            trade_amount_quote=Decimal("1000"),
            wallets_healthy=False,
        )

        assert assessment.score == 100
        assert assessment.tier == RecommendationTier.HIGH_RISK
        assert len(assessment.reasons) == 3

    @pytest.mark.parametrize(
        ("score", "tier"),
        [
            (0, RecommendationTier.SAFE),
            (30, RecommendationTier.SAFE),
            (31, RecommendationTier.CAUTION),
            (60, RecommendationTier.CAUTION),
            (61, RecommendationTier.HIGH_RISK),
            (100, RecommendationTier.HIGH_RISK),
        ],
    )
    def test_tier_boundaries(self, scorer: RiskScorer, score: int, tier: RecommendationTier) -> None:
        """Test tier mapping at the boundaries."""
        assert scorer.tier_for(score) == tier


class TestIsAcceptable:
    """Tests for is_acceptable."""

    def test_low_risk_level_only_accepts_safe(self) -> None:
        """Test low appetite."""
        assert is_acceptable(RecommendationTier.SAFE, "low")
        assert not is_acceptable(RecommendationTier.CAUTION, "low")
        assert not is_acceptable(RecommendationTier.HIGH_RISK, "low")

    def test_medium_risk_level(self) -> None:
        """Test medium appetite."""
        assert is_acceptable(RecommendationTier.CAUTION, "medium")
        assert not is_acceptable(RecommendationTier.HIGH_RISK, "medium")

    def test_high_risk_level_accepts_everything(self) -> None:
        """Test high appetite."""
        assert all(is_acceptable(tier, "high") for tier in RecommendationTier)

    def test_unknown_level_falls_back_to_medium(self) -> None:
        """Test unknown levels behave like medium."""
        assert is_acceptable(RecommendationTier.CAUTION, "extreme")
        assert not is_acceptable(RecommendationTier.HIGH_RISK, "extreme")
