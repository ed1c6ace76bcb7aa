"""
Risk scoring for cross-exchange opportunities.

Produces a bounded 0-100 score from observable warning signs: a wide
top-of-book spread (volatile or thin market), a profit too large to be
plausible (likely stale or bad data), and wallets that cannot move funds.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from crossarb.config.constants import (
    RISK_ANOMALY_PENALTY,
    RISK_ANOMALY_PROFIT_PCT,
    RISK_BASE_SCORE,
    RISK_CAUTION_MAX,
    RISK_SAFE_MAX,
    RISK_SPREAD_PENALTY,
    RISK_SPREAD_THRESHOLD_PCT,
    RISK_UNHEALTHY_WALLET_PENALTY,
)
from crossarb.core.types import RecommendationTier
from crossarb.utils.math import percent_of


if TYPE_CHECKING:
    from crossarb.config.settings import Settings


# Highest tier each configured risk level will act on
RISK_LEVEL_TIERS: dict[str, frozenset[RecommendationTier]] = {
    "low": frozenset({RecommendationTier.SAFE}),
    "medium": frozenset({RecommendationTier.SAFE, RecommendationTier.CAUTION}),
    "high": frozenset(RecommendationTier),
}


@dataclass(slots=True, frozen=True)
class RiskScorerConfig:
    """Thresholds and penalties for risk scoring."""

    base_score: int = RISK_BASE_SCORE
    spread_threshold_pct: Decimal = RISK_SPREAD_THRESHOLD_PCT
    spread_penalty: int = RISK_SPREAD_PENALTY
    anomaly_profit_pct: Decimal = RISK_ANOMALY_PROFIT_PCT
    anomaly_penalty: int = RISK_ANOMALY_PENALTY
    unhealthy_wallet_penalty: int = RISK_UNHEALTHY_WALLET_PENALTY
    safe_max: int = RISK_SAFE_MAX
    caution_max: int = RISK_CAUTION_MAX

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RiskScorerConfig":
        """Build config from application settings."""
        return cls(
            spread_threshold_pct=settings.risk_spread_threshold_pct,
            anomaly_profit_pct=settings.risk_anomaly_profit_pct,
        )


@dataclass(slots=True, frozen=True)
class RiskAssessment:
    """Outcome of scoring one candidate."""

    score: int
    tier: RecommendationTier
    reasons: tuple[str, ...] = ()


class RiskScorer:
    """
    Scores candidates on a 0-100 scale.

    Starts from a base score and adds a fixed penalty per warning sign.
    The result is clamped and mapped to a recommendation tier.
    """

    __slots__ = ("_config",)

    def __init__(self, config: RiskScorerConfig | None = None) -> None:
        self._config = config or RiskScorerConfig()

    @property
    def config(self) -> RiskScorerConfig:
        return self._config

    def score(
        self,
        book_spread_pct: Decimal,
        net_profit_quote: Decimal,
        trade_amount_quote: Decimal,
        wallets_healthy: bool,
    ) -> RiskAssessment:
        """
        Score one candidate.

        Args:
            book_spread_pct: Widest top-of-book spread of the two venues, in percent.
            net_profit_quote: Profit after costs.
            trade_amount_quote: Simulated notional.
            wallets_healthy: Whether both venues can move the asset.

        Returns:
            RiskAssessment with clamped score and tier.
        """
        cfg = self._config
        score = cfg.base_score
        reasons: list[str] = []

        if book_spread_pct > cfg.spread_threshold_pct:
            score += cfg.spread_penalty
            reasons.append(f"book spread {book_spread_pct:.4f}% above {cfg.spread_threshold_pct}%")

        profit_pct = percent_of(net_profit_quote, trade_amount_quote)
        if profit_pct > cfg.anomaly_profit_pct:
            score += cfg.anomaly_penalty
            reasons.append(f"profit {profit_pct:.4f}% above plausibility limit")

        if not wallets_healthy:
            score += cfg.unhealthy_wallet_penalty
            reasons.append("wallet transfers unavailable")

        score = max(0, min(100, score))
        return RiskAssessment(score=score, tier=self.tier_for(score), reasons=tuple(reasons))

    def tier_for(self, score: int) -> RecommendationTier:
        """Map a score to its recommendation tier."""
        if score <= self._config.safe_max:
            return RecommendationTier.SAFE
        if score <= self._config.caution_max:
            return RecommendationTier.CAUTION
        return RecommendationTier.HIGH_RISK


def is_acceptable(tier: RecommendationTier, risk_level: str) -> bool:
    """
    Check if a tier is within the user's risk appetite.

    Args:
        tier: Tier of an opportunity.
        risk_level: Configured level, "low", "medium" or "high".

    Returns:
        True if the tier should be acted on.
    """
    return tier in RISK_LEVEL_TIERS.get(risk_level, RISK_LEVEL_TIERS["medium"])
