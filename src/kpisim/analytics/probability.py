"""
Probabilities of reaching targets, joint conditions and confidence intervals.

All estimates are empirical frequencies over the final-score sample.
Confidence intervals use the percentile method on the sorted sample:

    lower = x_(⌊n(1 - l)/2⌋),    upper = x_(⌊n(1 + l)/2⌋)
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Sequence
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import AXES, Axis, axis_dict, to_plain
from kpisim.config import DEFAULT_TARGETS, EQ_TOLERANCE, Comparison


@dataclass(frozen=True)
class JointCondition:
    """
    Condition evaluated on every axis of a scenario.

    Attributes:
        label: Human-readable name, e.g. "All axes > 70"
        comparison: ``gt`` or ``lt`` applied to each axis score
        threshold: Score compared against
        quantifier: ``all`` (every axis) or ``any`` (at least one)
    """
    label: str
    comparison: Comparison
    threshold: float
    quantifier: str = "all"

    def __post_init__(self):
        if self.quantifier not in ("all", "any"):
            raise ValueError(f"quantifier must be 'all' or 'any'. Got {self.quantifier!r}")
        object.__setattr__(self, "comparison", Comparison(self.comparison))

    def evaluate(self, final_scores: NDArray[np.float64]) -> float:
        """Fraction of scenario rows satisfying the condition."""
        if self.comparison is Comparison.GT:
            hits = final_scores > self.threshold
        elif self.comparison is Comparison.LT:
            hits = final_scores < self.threshold
        else:
            hits = np.abs(final_scores - self.threshold) < EQ_TOLERANCE

        per_row = hits.all(axis=1) if self.quantifier == "all" else hits.any(axis=1)
        return float(np.mean(per_row))


DEFAULT_JOINT_CONDITIONS = (
    JointCondition("All axes > 70", Comparison.GT, 70.0, "all"),
    JointCondition("All axes > 80", Comparison.GT, 80.0, "all"),
    JointCondition("Any axis < 60", Comparison.LT, 60.0, "any"),
)


@dataclass
class TargetProbability:
    target: float
    probabilities: Dict[Axis, float]


@dataclass
class JointProbability:
    condition: str
    probability: float


@dataclass
class ConfidenceInterval:
    lower: float
    upper: float


@dataclass
class ProbabilityDistribution:
    """
    Probability estimates over the final-score sample.

    Attributes:
        target_probabilities: P(score >= target) per axis, one entry per target
        joint_probabilities: Frequencies of cross-axis conditions
        confidence_intervals: Empirical interval per axis
        confidence_level: Level the intervals were computed at
    """
    target_probabilities: List[TargetProbability]
    joint_probabilities: List[JointProbability]
    confidence_intervals: Dict[Axis, ConfidenceInterval]
    confidence_level: float

    def probability_of(self, target: float, axis: Axis) -> float:
        """
        P(final score >= target) for one axis.

        Raises:
            KeyError: If ``target`` was not among the evaluated targets
        """
        for entry in self.target_probabilities:
            if entry.target == target:
                return entry.probabilities[axis]
        raise KeyError(f"Target {target} was not evaluated")

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(asdict(self))


def confidence_interval(sorted_values: NDArray[np.float64], level: float) -> ConfidenceInterval:
    """Percentile-method interval on an ascending sample."""
    n = sorted_values.size
    lower_idx = min(int(np.floor(n * (1 - level) / 2)), n - 1)
    upper_idx = min(int(np.floor(n * (1 + level) / 2)), n - 1)
    return ConfidenceInterval(
        lower=float(sorted_values[lower_idx]),
        upper=float(sorted_values[upper_idx]),
    )


def compute_probabilities(
    final_scores: NDArray[np.float64],
    confidence_level: float,
    targets: Sequence[float] = DEFAULT_TARGETS,
    joint_conditions: Sequence[JointCondition] = DEFAULT_JOINT_CONDITIONS,
) -> ProbabilityDistribution:
    """
    Empirical probabilities over the final-score sample.

    Parameters
    ----------
    final_scores : NDArray[np.float64]
        Final scores, shape (n_scenarios, 5). Rows are scenarios.
    confidence_level : float
        Interval level in (0, 1)
    targets : Sequence[float]
        Score thresholds; P(score >= target) is computed per axis
    joint_conditions : Sequence[JointCondition]
        Cross-axis conditions evaluated per scenario

    Returns
    -------
    ProbabilityDistribution
    """
    target_probabilities = [
        TargetProbability(
            target=float(target),
            probabilities=axis_dict(np.mean(final_scores >= target, axis=0)),
        )
        for target in targets
    ]

    joint_probabilities = [
        JointProbability(condition=c.label, probability=c.evaluate(final_scores))
        for c in joint_conditions
    ]

    sorted_scores = np.sort(final_scores, axis=0)
    intervals = {
        axis: confidence_interval(sorted_scores[:, j], confidence_level)
        for j, axis in enumerate(AXES)
    }

    return ProbabilityDistribution(
        target_probabilities=target_probabilities,
        joint_probabilities=joint_probabilities,
        confidence_intervals=intervals,
        confidence_level=confidence_level,
    )
