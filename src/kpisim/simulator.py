"""
Monte Carlo simulator for the five performance axes.

Single entry point that wires the pipeline together:

    BatchRunner          → scenarios
    statistics / probabilities / risk / timeline bands over the scenarios
    classify_scenarios   → category and likelihood per scenario
    synthesize_recommendations

Every call builds fresh state from its arguments, so independent
simulations can run concurrently on separate (or the same) simulator
instances.
"""

from dataclasses import dataclass
import logging
import threading
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from kpisim.analytics.paths import TimelineStatistics, compute_timeline_statistics
from kpisim.analytics.probability import ProbabilityDistribution, compute_probabilities
from kpisim.analytics.risk import RiskMetrics, compute_risk_metrics
from kpisim.analytics.statistics import DistributionStatistics, compute_distribution_statistics
from kpisim.axes import Axis, AxisKey, axis_array, axis_dict, to_plain
from kpisim.config import SimulationConfig
from kpisim.scenarios.classifier import category_counts, classify_scenarios
from kpisim.scenarios.recommendations import (
    Recommendation,
    RecommendationThresholds,
    synthesize_recommendations,
)
from kpisim.simulation.batch import DEFAULT_BATCH_SIZE, BatchRunner, ProgressCallback
from kpisim.simulation.factors import ExternalFactor, apply_external_factors
from kpisim.simulation.path import Scenario, ScenarioCategory

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """
    Everything one run produces. Plain data, no handles or callbacks.

    Attributes:
        scenarios: Classified scenarios, ordered by iteration
        statistics: Distribution statistics of final scores
        probabilities: Target, joint and interval estimates
        risk_metrics: VaR, CVaR, drawdown, Sharpe-like ratio, Beta, correlation risk
        recommendations: Ranked recommendations
        timeline_statistics: Per-day bands across scenarios
        initial_scores: Starting scores after external factors
    """
    scenarios: List[Scenario]
    statistics: DistributionStatistics
    probabilities: ProbabilityDistribution
    risk_metrics: RiskMetrics
    recommendations: List[Recommendation]
    timeline_statistics: TimelineStatistics
    initial_scores: Dict[Axis, float]

    def category_counts(self) -> Dict[ScenarioCategory, int]:
        return category_counts(self.scenarios)

    def scenarios_in(self, category: ScenarioCategory) -> List[Scenario]:
        category = ScenarioCategory(category)
        return [s for s in self.scenarios if s.category is category]

    def to_dict(self, include_timelines: bool = True) -> Dict[str, Any]:
        """
        JSON-safe representation.

        Args:
            include_timelines: If False, scenario timelines are omitted,
                which keeps large runs small.
        """
        scenarios = []
        for s in self.scenarios:
            d = s.to_dict()
            if not include_timelines:
                d.pop("timeline")
            scenarios.append(d)

        return {
            "scenarios": scenarios,
            "statistics": self.statistics.to_dict(),
            "probabilities": self.probabilities.to_dict(),
            "risk_metrics": self.risk_metrics.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "timeline_statistics": self.timeline_statistics.to_dict(),
            "initial_scores": to_plain(self.initial_scores),
        }


class MonteCarloSimulator:
    """
    Monte Carlo simulator for correlated, bounded axis scores.

    Example:
        >>> simulator = MonteCarloSimulator(max_workers=4)
        >>> result = simulator.run_simulation(
        ...     {"GO": 75, "EC": 72, "PT": 78, "PF": 70, "TO": 73},
        ...     SimulationConfig(iterations=2000, time_horizon=30, random_seed=1),
        ... )
        >>> result.risk_metrics.value_at_risk[Axis.EC]

    Attributes
    ----------
    runner : BatchRunner
        Executes the iterations
    thresholds : RecommendationThresholds
        Recommendation trigger thresholds
    """

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_workers: int = 1,
        thresholds: Optional[RecommendationThresholds] = None,
        use_processes: bool = False,
    ) -> None:
        """
        Initialize the simulator.

        Parameters
        ----------
        batch_size : int
            Iterations per batch. Default 100.
        max_workers : int
            Workers used to run batches. Default 1 (inline).
        thresholds : RecommendationThresholds, optional
            If None, uses the default thresholds.
        use_processes : bool
            Run batches on worker processes instead of threads. Default False.
        """
        self.runner = BatchRunner(
            batch_size=batch_size, max_workers=max_workers, use_processes=use_processes
        )
        self.thresholds = thresholds or RecommendationThresholds()

    def run_simulation(
        self,
        initial_scores: Mapping[AxisKey, float],
        config: Optional[SimulationConfig] = None,
        external_factors: Sequence[ExternalFactor] = (),
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SimulationResult:
        """
        Run the full simulation and analysis.

        Parameters
        ----------
        initial_scores : Mapping[AxisKey, float]
            Current score of every axis. Values outside [0, 100] are not
            rejected; paths re-enter the range at the first clamp.
        config : SimulationConfig, optional
            If None, uses SimulationConfig() defaults.
        external_factors : Sequence[ExternalFactor]
            Factors shifting the initial scores before the run
        cancel_event : threading.Event, optional
            Set to abandon the run between batches
        progress_callback : callable, optional
            Called as ``progress_callback(completed, total)`` per batch

        Returns
        -------
        SimulationResult

        Raises
        ------
        ConfigurationError
            If ``initial_scores`` does not cover every axis.
        SimulationCancelled
            If ``cancel_event`` was set before all batches finished.
        """
        config = config or SimulationConfig()
        initial = apply_external_factors(
            axis_array(initial_scores, name="initial_scores"), external_factors
        )

        logger.info(
            f"Starting Monte Carlo simulation: iterations={config.iterations}, "
            f"horizon={config.time_horizon}d, confidence={config.confidence_level}"
        )
        start = time.time()

        scenarios = self.runner.run(config, initial, cancel_event, progress_callback)
        finals = np.array([s.final_array() for s in scenarios])

        statistics = compute_distribution_statistics(finals)
        probabilities = compute_probabilities(finals, config.confidence_level, config.targets)
        risk = compute_risk_metrics(finals, initial, config.confidence_level)
        timeline = compute_timeline_statistics(scenarios)

        classify_scenarios(scenarios, statistics)
        recommendations = synthesize_recommendations(
            statistics,
            probabilities,
            risk,
            initial,
            config.volatility_array,
            self.thresholds,
        )

        logger.info(
            f"Monte Carlo simulation completed in {time.time() - start:.2f}s: "
            f"{len(scenarios)} scenarios, {len(recommendations)} recommendations"
        )

        return SimulationResult(
            scenarios=scenarios,
            statistics=statistics,
            probabilities=probabilities,
            risk_metrics=risk,
            recommendations=recommendations,
            timeline_statistics=timeline,
            initial_scores=axis_dict(initial),
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"MonteCarloSimulator(batch_size={self.runner.batch_size}, "
            f"max_workers={self.runner.max_workers})"
        )
