"""Strategy module: VWAP estimation, cost accounting, risk scoring and evaluation."""

from crossarb.strategy.evaluator import OpportunityEvaluator, select_common_network, sort_by_profit
from crossarb.strategy.fees import FeeModel, ResolvedFees, compute_costs
from crossarb.strategy.risk import RiskAssessment, RiskScorer, RiskScorerConfig, is_acceptable
from crossarb.strategy.vwap import estimate_vwap


__all__ = [
    "FeeModel",
    "OpportunityEvaluator",
    "ResolvedFees",
    "RiskAssessment",
    "RiskScorer",
    "RiskScorerConfig",
    "compute_costs",
    "estimate_vwap",
    "is_acceptable",
    "select_common_network",
    "sort_by_profit",
]
