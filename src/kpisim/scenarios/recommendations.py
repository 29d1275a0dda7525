"""
Rule-based recommendations from statistics and risk metrics.

Rules (thresholds live in RecommendationThresholds):

    hedge     VaR above ``value_at_risk``                          high
    focus     P(score >= focus_target) below ``focus_probability``  high
    monitor   final-score std above ``std_dev``, or configured
              annual volatility at or above ``configured_volatility`` medium
    optimize  correlation risk above ``correlation_risk`` (overall) high
    optimize  p95 - initial above ``upside`` and the lower
              confidence bound above the initial score              high

Output is ordered by impact (high first), then confidence.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import numpy as np
from numpy.typing import NDArray

from kpisim.analytics.probability import ProbabilityDistribution
from kpisim.analytics.risk import RiskMetrics
from kpisim.analytics.statistics import DistributionStatistics
from kpisim.axes import AXES, Axis, to_plain

OVERALL = "overall"


class RecommendationType(str, Enum):
    HEDGE = "hedge"
    FOCUS = "focus"
    MONITOR = "monitor"
    OPTIMIZE = "optimize"


class Impact(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


@dataclass
class Recommendation:
    """
    One actionable recommendation.

    Attributes:
        type: hedge, focus, monitor or optimize
        axis: Affected axis, or "overall"
        action: Human-readable action
        impact: high, medium or low
        confidence: Confidence score in [0, 1]
    """
    type: RecommendationType
    axis: Union[Axis, str]
    action: str
    impact: Impact
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(asdict(self))


@dataclass
class RecommendationThresholds:
    """
    Trigger thresholds for the recommendation rules.

    Attributes:
        value_at_risk: VaR (score points) above which to hedge
        focus_target: Target score for the focus rule
        focus_probability: Probability of reaching focus_target below which to focus
        std_dev: Final-score standard deviation above which to monitor
        configured_volatility: Annualized volatility at or above which to monitor
        correlation_risk: Correlation risk above which to diversify
        upside: p95 minus initial score above which growth is flagged
    """
    value_at_risk: float = 15.0
    focus_target: float = 80.0
    focus_probability: float = 0.3
    std_dev: float = 20.0
    configured_volatility: float = 0.2
    correlation_risk: float = 0.7
    upside: float = 25.0


def _focus_probabilities(probabilities: ProbabilityDistribution, target: float):
    for entry in probabilities.target_probabilities:
        if entry.target == target:
            return entry.probabilities
    return None


def synthesize_recommendations(
    statistics: DistributionStatistics,
    probabilities: ProbabilityDistribution,
    risk: RiskMetrics,
    initial_scores: NDArray[np.float64],
    volatility: NDArray[np.float64],
    thresholds: Optional[RecommendationThresholds] = None,
) -> List[Recommendation]:
    """
    Build the ranked recommendation list.

    Parameters
    ----------
    statistics : DistributionStatistics
        Final-score statistics
    probabilities : ProbabilityDistribution
        Target probabilities and confidence intervals
    risk : RiskMetrics
        Risk metrics
    initial_scores : NDArray[np.float64]
        Initial scores in ``AXES`` order, shape (5,)
    volatility : NDArray[np.float64]
        Configured annualized volatility in ``AXES`` order, shape (5,)
    thresholds : RecommendationThresholds, optional
        Trigger thresholds. Defaults to RecommendationThresholds().

    Returns
    -------
    List[Recommendation]
        Sorted by impact, then confidence, both descending
    """
    thresholds = thresholds or RecommendationThresholds()
    recs: List[Recommendation] = []
    focus = _focus_probabilities(probabilities, thresholds.focus_target)

    for j, axis in enumerate(AXES):
        if risk.value_at_risk[axis] > thresholds.value_at_risk:
            recs.append(Recommendation(
                RecommendationType.HEDGE, axis,
                f"{axis.value} ({axis.label}) carries high downside risk "
                f"(VaR {risk.value_at_risk[axis]:.1f} points). Put a mitigation plan in place.",
                Impact.HIGH, 0.9,
            ))

        if focus is not None and focus[axis] < thresholds.focus_probability:
            recs.append(Recommendation(
                RecommendationType.FOCUS, axis,
                f"{axis.value} ({axis.label}) has a {focus[axis]:.0%} chance of reaching "
                f"{thresholds.focus_target:g}. Concentrate improvement effort here.",
                Impact.HIGH, 0.85,
            ))

        if statistics.std_dev[axis] > thresholds.std_dev:
            recs.append(Recommendation(
                RecommendationType.MONITOR, axis,
                f"{axis.value} ({axis.label}) outcomes are widely spread "
                f"(std {statistics.std_dev[axis]:.1f}). Monitor closely.",
                Impact.MEDIUM, 0.8,
            ))
        elif volatility[j] >= thresholds.configured_volatility:
            recs.append(Recommendation(
                RecommendationType.MONITOR, axis,
                f"{axis.value} ({axis.label}) is a volatile axis "
                f"({volatility[j]:.0%} annualized). Monitor closely.",
                Impact.MEDIUM, 0.75,
            ))

    if risk.correlation_risk > thresholds.correlation_risk:
        recs.append(Recommendation(
            RecommendationType.OPTIMIZE, OVERALL,
            f"Axes are strongly correlated (mean |ρ| {risk.correlation_risk:.2f}), so "
            f"spreading effort diversifies little. Plan independent improvements per axis.",
            Impact.HIGH, 0.75,
        ))

    for j, axis in enumerate(AXES):
        upside = statistics.percentile(95, axis) - initial_scores[j]
        lower = probabilities.confidence_intervals[axis].lower
        if upside > thresholds.upside and lower > initial_scores[j]:
            recs.append(Recommendation(
                RecommendationType.OPTIMIZE, axis,
                f"{axis.value} ({axis.label}) has large upside (+{upside:.1f} points at p95). "
                f"Consider investing more aggressively.",
                Impact.HIGH, 0.7,
            ))

    return sorted(recs, key=lambda r: (r.impact.rank, r.confidence), reverse=True)
