"""
Per-axis bounds and conditional dependency rules.

Applied once per simulated day, after the stochastic step:

1. Clamp every axis to its [minimum, maximum] bounds.
2. For each dependency rule, in declaration order: if the condition axis
   satisfies the comparison, add the adjustment to the target axis and
   reclamp that axis. Later rules see the effect of earlier ones.
"""

from typing import Optional
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import AXES
from kpisim.config import ConstraintSet

_AXIS_INDEX = {axis: i for i, axis in enumerate(AXES)}


class ConstraintEnforcer:
    """
    Pure function of (constraints, scores); keeps no history of fired rules.

    Attributes
    ----------
    constraints : ConstraintSet
        Bounds and rules in force. Defaults to [0, 100] with no rules.
    """

    def __init__(self, constraints: Optional[ConstraintSet] = None) -> None:
        self.constraints = constraints if constraints is not None else ConstraintSet()
        self._rules = [
            (
                rule,
                _AXIS_INDEX[rule.if_axis],
                _AXIS_INDEX[rule.then_axis],
            )
            for rule in self.constraints.rules
        ]

    def apply(self, scores: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Enforce bounds and dependency rules.

        Parameters
        ----------
        scores : NDArray[np.float64]
            Scores in ``AXES`` order, shape (5,). Not modified.

        Returns
        -------
        NDArray[np.float64]
            Constrained scores, shape (5,)
        """
        lower = self.constraints.lower
        upper = self.constraints.upper
        out = np.minimum(np.maximum(scores, lower), upper)

        for rule, if_idx, then_idx in self._rules:
            if rule.holds(out[if_idx]):
                out[then_idx] = min(
                    max(out[then_idx] + rule.adjustment, lower[then_idx]),
                    upper[then_idx],
                )

        return out

    def __repr__(self) -> str:
        """String representation."""
        return f"ConstraintEnforcer(n_rules={len(self._rules)})"
