"""
External factors that shift the starting state before a run.

A factor carries a per-axis impact in [-1, 1] and a probability of
occurring. Its expected effect on each axis is

    Δ = impact · probability · 10

so a certain, fully negative factor moves an axis down by at most 10
points. Shifted scores are clamped to [0, 100].
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import AXES, AxisKey, axis_array
from kpisim.config import SCORE_MAX, SCORE_MIN
from kpisim.exceptions import ConfigurationError

MAX_FACTOR_SHIFT = 10.0


class FactorKind(str, Enum):
    MARKET = "market"
    ECONOMIC = "economic"
    TECHNOLOGY = "technology"
    REGULATION = "regulation"
    COMPETITION = "competition"


@dataclass(frozen=True)
class ExternalFactor:
    """
    Outside event expected to move the axes.

    Attributes:
        name: Human-readable name
        impact: Per-axis impact in [-1, 1]. Missing axes are unaffected.
        probability: Probability the factor materializes, in [0, 1]
        kind: Category of the factor
    """
    name: str
    impact: Mapping[AxisKey, float] = field(default_factory=dict)
    probability: float = 1.0
    kind: FactorKind = FactorKind.MARKET

    def __post_init__(self):
        if not (0.0 <= self.probability <= 1.0):
            raise ConfigurationError(
                f"probability of factor {self.name!r} must be in [0, 1]. Got {self.probability}"
            )
        object.__setattr__(self, "kind", FactorKind(self.kind))

    def shift(self) -> NDArray[np.float64]:
        """Expected per-axis score shift, shape (5,)."""
        impact = axis_array(self.impact, defaults=dict.fromkeys(AXES, 0.0), name="impact")
        return np.clip(impact, -1.0, 1.0) * self.probability * MAX_FACTOR_SHIFT


def apply_external_factors(
    scores: NDArray[np.float64],
    factors: Sequence[ExternalFactor] = (),
) -> NDArray[np.float64]:
    """
    Shift scores by every factor in turn, clamping after each one.

    Parameters
    ----------
    scores : NDArray[np.float64]
        Scores in ``AXES`` order, shape (5,). Not modified.
    factors : Sequence[ExternalFactor]
        Factors to apply, in order

    Returns
    -------
    NDArray[np.float64]
        Adjusted scores, shape (5,)
    """
    adjusted = np.array(scores, dtype=np.float64)
    for factor in factors:
        adjusted = np.clip(adjusted + factor.shift(), SCORE_MIN, SCORE_MAX)
    return adjusted
