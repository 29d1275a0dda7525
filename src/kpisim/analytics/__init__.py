"""
Statistics and risk analytics over simulated scenarios.

This module provides:
- compute_distribution_statistics: Mean, median, mode, moments, percentiles
- compute_probabilities: Target, joint and confidence-interval estimates
- compute_risk_metrics: VaR, CVaR, drawdown, Sharpe-like ratio, Beta,
  correlation risk
- compute_timeline_statistics: Per-day bands across scenarios
"""

from kpisim.analytics.statistics import (
    DistributionStatistics,
    PERCENTILE_LEVELS,
    compute_distribution_statistics,
)
from kpisim.analytics.probability import (
    ConfidenceInterval,
    DEFAULT_JOINT_CONDITIONS,
    JointCondition,
    JointProbability,
    ProbabilityDistribution,
    TargetProbability,
    compute_probabilities,
)
from kpisim.analytics.risk import RiskMetrics, compute_risk_metrics
from kpisim.analytics.paths import TimelineStatistics, compute_timeline_statistics

__all__ = [
    "DistributionStatistics",
    "PERCENTILE_LEVELS",
    "compute_distribution_statistics",
    "ConfidenceInterval",
    "DEFAULT_JOINT_CONDITIONS",
    "JointCondition",
    "JointProbability",
    "ProbabilityDistribution",
    "TargetProbability",
    "compute_probabilities",
    "RiskMetrics",
    "compute_risk_metrics",
    "TimelineStatistics",
    "compute_timeline_statistics",
]
