"""
Scenario classification and likelihood scoring.

Each scenario's overall score is the mean of its five final axis scores.
Boundaries come from the distribution of those overall scores:

    best     overall >= p95(overall)
    worst    overall <= p5(overall)
    outlier  |overall - mean(overall)| > 2 σ(overall)
    likely   otherwise

The checks run in that order, so every scenario gets exactly one label.

The likelihood of a scenario is the geometric mean of per-axis Gaussian
densities of its final scores (axes treated as independent for this step):

    p = exp( (1/5) Σ_a log max(φ(x_a; μ_a, σ_a), 1e-10) )
"""

from collections import Counter
import logging
from typing import Dict, List, Sequence
import numpy as np
from numpy.typing import NDArray
from scipy.stats import norm

from kpisim.analytics.statistics import DistributionStatistics
from kpisim.axes import AXES
from kpisim.simulation.path import Scenario, ScenarioCategory

logger = logging.getLogger(__name__)

DENSITY_FLOOR = 1e-10
OUTLIER_SIGMAS = 2.0


def scenario_probabilities(
    final_scores: NDArray[np.float64],
    statistics: DistributionStatistics,
) -> NDArray[np.float64]:
    """
    Geometric mean of per-axis Gaussian densities for every scenario row.

    Densities are floored in log space. An axis with zero standard
    deviation is a point mass and contributes a density of 1.

    Parameters
    ----------
    final_scores : NDArray[np.float64]
        Final scores, shape (n_scenarios, 5)
    statistics : DistributionStatistics
        Statistics of the final scores

    Returns
    -------
    NDArray[np.float64]
        Probability per scenario, shape (n_scenarios,)
    """
    mean = np.array([statistics.mean[a] for a in AXES])
    std = np.array([statistics.std_dev[a] for a in AXES])
    point_mass = std <= 0

    log_density = norm.logpdf(final_scores, loc=mean, scale=np.where(point_mass, 1.0, std))
    log_density[:, point_mass] = 0.0
    log_density = np.maximum(log_density, np.log(DENSITY_FLOOR))
    return np.exp(np.mean(log_density, axis=1))


def scenario_probability(scenario: Scenario, statistics: DistributionStatistics) -> float:
    """Likelihood of a single scenario; see ``scenario_probabilities``."""
    return float(scenario_probabilities(scenario.final_array()[np.newaxis, :], statistics)[0])


def classify_scenarios(
    scenarios: Sequence[Scenario],
    statistics: DistributionStatistics,
) -> List[Scenario]:
    """
    Assign a category and probability to every scenario, in place.

    Parameters
    ----------
    scenarios : Sequence[Scenario]
        Completed scenarios
    statistics : DistributionStatistics
        Statistics of the same scenarios' final scores

    Returns
    -------
    List[Scenario]
        The same scenario objects, in the same order
    """
    if not scenarios:
        return []

    overall = np.array([s.overall_score for s in scenarios])
    p5, p95 = np.percentile(overall, [5, 95])
    mean = float(np.mean(overall))
    std = float(np.std(overall))
    probabilities = scenario_probabilities(
        np.array([s.final_array() for s in scenarios]), statistics
    )

    for scenario, score, probability in zip(scenarios, overall, probabilities):
        if score >= p95:
            scenario.category = ScenarioCategory.BEST
        elif score <= p5:
            scenario.category = ScenarioCategory.WORST
        elif abs(score - mean) > OUTLIER_SIGMAS * std:
            scenario.category = ScenarioCategory.OUTLIER
        else:
            scenario.category = ScenarioCategory.LIKELY

        scenario.probability = float(probability)

    logger.debug(f"Classified scenarios: {category_counts(scenarios)}")
    return list(scenarios)


def category_counts(scenarios: Sequence[Scenario]) -> Dict[ScenarioCategory, int]:
    """Number of scenarios per category, every category present."""
    counts = Counter(s.category for s in scenarios)
    return {category: counts.get(category, 0) for category in ScenarioCategory}
