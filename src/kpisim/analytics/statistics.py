"""
Distribution statistics of final axis scores.

All statistics are population statistics over the n final scores of each
axis (one per scenario):

    variance  = Σ (x - x̄)² / n
    skewness  = Σ ((x - x̄) / σ)³ / n
    kurtosis  = Σ ((x - x̄) / σ)⁴ / n - 3        (excess)

Percentiles use linear interpolation on the sorted sample. When σ = 0
(e.g. a single iteration) skewness and kurtosis are undefined and are
reported as 0.
"""

from dataclasses import asdict, dataclass
import logging
from typing import Any, Dict, Tuple
import numpy as np
from numpy.typing import NDArray
from scipy import stats

from kpisim.axes import AXES, Axis, axis_dict, to_plain

logger = logging.getLogger(__name__)

PERCENTILE_LEVELS: Tuple[int, ...] = (5, 25, 50, 75, 95)

# σ below this is treated as a degenerate (constant) sample
_ZERO_STD = 1e-12


@dataclass
class DistributionStatistics:
    """
    Per-axis summary of final scores.

    Attributes:
        mean, median, mode, variance, std_dev, skewness, kurtosis:
            Per-axis values
        percentiles: Maps "p5", "p25", "p50", "p75", "p95" to per-axis values
        n_samples: Number of scenarios summarized
    """
    mean: Dict[Axis, float]
    median: Dict[Axis, float]
    mode: Dict[Axis, float]
    variance: Dict[Axis, float]
    std_dev: Dict[Axis, float]
    skewness: Dict[Axis, float]
    kurtosis: Dict[Axis, float]
    percentiles: Dict[str, Dict[Axis, float]]
    n_samples: int

    def percentile(self, level: int, axis: Axis) -> float:
        return self.percentiles[f"p{level}"][axis]

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(asdict(self))


def approximate_mode(values: NDArray[np.float64]) -> float:
    """
    Most frequent integer bucket of ``values``.

    Values are rounded half-up to the nearest integer; ties go to the
    first bucket encountered in sorted order (the lowest).
    """
    if values.size == 0:
        return 0.0
    buckets = np.floor(np.sort(values) + 0.5)
    unique, counts = np.unique(buckets, return_counts=True)
    # np.unique sorts ascending and argmax returns the first maximum
    return float(unique[int(np.argmax(counts))])


def standardized_moments(values: NDArray[np.float64]) -> Tuple[float, float]:
    """
    Population skewness and excess kurtosis, 0 for a constant sample.

    Parameters
    ----------
    values : NDArray[np.float64]
        Sample, shape (n,)

    Returns
    -------
    skewness : float
    kurtosis : float
        Excess (Fisher) kurtosis
    """
    if values.size == 0 or np.std(values) <= _ZERO_STD:
        logger.debug("Degenerate sample: reporting skewness and kurtosis as 0")
        return 0.0, 0.0

    skew = float(stats.skew(values, bias=True))
    kurt = float(stats.kurtosis(values, fisher=True, bias=True))
    return (
        skew if np.isfinite(skew) else 0.0,
        kurt if np.isfinite(kurt) else 0.0,
    )


def compute_distribution_statistics(final_scores: NDArray[np.float64]) -> DistributionStatistics:
    """
    Summarize the final-score sample.

    Parameters
    ----------
    final_scores : NDArray[np.float64]
        Final scores, shape (n_scenarios, 5), columns in ``AXES`` order

    Returns
    -------
    DistributionStatistics
        Per-axis statistics

    Raises
    ------
    ValueError
        If the sample is empty or not (n, 5).
    """
    if final_scores.ndim != 2 or final_scores.shape[1] != len(AXES) or final_scores.shape[0] == 0:
        raise ValueError(
            f"final_scores must have shape (n_scenarios>0, {len(AXES)}). Got {final_scores.shape}"
        )

    mean = np.mean(final_scores, axis=0)
    variance = np.var(final_scores, axis=0)
    std = np.sqrt(variance)
    median = np.median(final_scores, axis=0)

    moments = [standardized_moments(final_scores[:, j]) for j in range(len(AXES))]
    mode = [approximate_mode(final_scores[:, j]) for j in range(len(AXES))]
    pct = np.percentile(final_scores, PERCENTILE_LEVELS, axis=0)

    return DistributionStatistics(
        mean=axis_dict(mean),
        median=axis_dict(median),
        mode=axis_dict(np.array(mode)),
        variance=axis_dict(variance),
        std_dev=axis_dict(std),
        skewness=axis_dict(np.array([m[0] for m in moments])),
        kurtosis=axis_dict(np.array([m[1] for m in moments])),
        percentiles={f"p{level}": axis_dict(pct[i]) for i, level in enumerate(PERCENTILE_LEVELS)},
        n_samples=int(final_scores.shape[0]),
    )
