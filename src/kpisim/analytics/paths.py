"""
Per-day statistics across scenario timelines (fan-chart bands).

Unlike the distribution statistics, which summarize final scores only,
these summarize every day of the horizon across scenarios.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import AXES, Axis
from kpisim.simulation.path import Scenario


@dataclass
class TimelineStatistics:
    """
    Across-scenario statistics for each simulated day.

    Each array has shape (horizon + 1, 5), columns in ``AXES`` order.
    """
    days: List[int]
    mean: NDArray[np.float64]
    std: NDArray[np.float64]
    quantile_5: NDArray[np.float64]
    median: NDArray[np.float64]
    quantile_95: NDArray[np.float64]

    def band(self, axis: Axis) -> Dict[str, List[float]]:
        """Lower, median and upper series for one axis."""
        j = AXES.index(axis)
        return {
            "lower": self.quantile_5[:, j].tolist(),
            "median": self.median[:, j].tolist(),
            "upper": self.quantile_95[:, j].tolist(),
        }

    def to_dict(self) -> Dict[str, Any]:
        def per_axis(arr):
            return {a.value: arr[:, j].tolist() for j, a in enumerate(AXES)}

        return {
            "days": list(self.days),
            "mean": per_axis(self.mean),
            "std": per_axis(self.std),
            "quantile_5": per_axis(self.quantile_5),
            "median": per_axis(self.median),
            "quantile_95": per_axis(self.quantile_95),
        }


def timeline_array(scenarios: Sequence[Scenario]) -> NDArray[np.float64]:
    """Scores of every scenario, shape (n_scenarios, horizon + 1, 5)."""
    return np.array(
        [[[tp.scores[a] for a in AXES] for tp in s.timeline] for s in scenarios],
        dtype=np.float64,
    )


def compute_timeline_statistics(scenarios: Sequence[Scenario]) -> TimelineStatistics:
    """
    Mean, std and 5/50/95 quantiles per day and axis.

    Parameters
    ----------
    scenarios : Sequence[Scenario]
        Scenarios with equal-length timelines

    Returns
    -------
    TimelineStatistics
    """
    paths = timeline_array(scenarios)

    return TimelineStatistics(
        days=[tp.day for tp in scenarios[0].timeline],
        mean=np.mean(paths, axis=0),
        std=np.std(paths, axis=0),
        quantile_5=np.percentile(paths, 5, axis=0),
        median=np.median(paths, axis=0),
        quantile_95=np.percentile(paths, 95, axis=0),
    )
