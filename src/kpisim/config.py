"""
Simulation configuration and default parameter tables.

The default tables are plain module constants so callers can override any
of them per run without touching the engine:

    config = SimulationConfig(
        iterations=2000,
        volatility={"EC": 0.3},          # merged over DEFAULT_VOLATILITY
        correlation_matrix=None,         # independent axes
        random_seed=7,
    )
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import numbers
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import AXES, N_AXES, Axis, AxisKey, axis_array, to_axis
from kpisim.exceptions import ConfigurationError


DAYS_PER_YEAR = 365

DEFAULT_ITERATIONS = 10000
DEFAULT_TIME_HORIZON = 30
DEFAULT_CONFIDENCE_LEVEL = 0.95
DEFAULT_TARGETS: Tuple[float, ...] = (70.0, 80.0, 85.0, 90.0)

SCORE_MIN = 0.0
SCORE_MAX = 100.0

# Annualized
DEFAULT_VOLATILITY: Dict[Axis, float] = {
    Axis.GO: 0.15,
    Axis.EC: 0.20,
    Axis.PT: 0.18,
    Axis.PF: 0.22,
    Axis.TO: 0.25,
}

DEFAULT_DRIFT: Dict[Axis, float] = {
    Axis.GO: 0.05,
    Axis.EC: 0.03,
    Axis.PT: 0.04,
    Axis.PF: 0.06,
    Axis.TO: 0.02,
}

DEFAULT_CORRELATION: Dict[Axis, Dict[Axis, float]] = {
    Axis.GO: {Axis.GO: 1.0, Axis.EC: 0.3, Axis.PT: 0.4, Axis.PF: 0.5, Axis.TO: 0.3},
    Axis.EC: {Axis.GO: 0.3, Axis.EC: 1.0, Axis.PT: 0.5, Axis.PF: 0.3, Axis.TO: 0.6},
    Axis.PT: {Axis.GO: 0.4, Axis.EC: 0.5, Axis.PT: 1.0, Axis.PF: 0.4, Axis.TO: 0.5},
    Axis.PF: {Axis.GO: 0.5, Axis.EC: 0.3, Axis.PT: 0.4, Axis.PF: 1.0, Axis.TO: 0.4},
    Axis.TO: {Axis.GO: 0.3, Axis.EC: 0.6, Axis.PT: 0.5, Axis.PF: 0.4, Axis.TO: 1.0},
}

PERFORMANCE_MODES: Dict[str, int] = {
    "fast": 500,
    "balanced": 1000,
    "accurate": 2000,
}

CorrelationInput = Union[Mapping[AxisKey, Mapping[AxisKey, float]], Sequence[Sequence[float]], NDArray[np.float64]]


class Comparison(str, Enum):
    """Condition operator of a dependency rule."""

    GT = "gt"
    LT = "lt"
    EQ = "eq"


EQ_TOLERANCE = 0.1


@dataclass(frozen=True)
class DependencyRule:
    """
    Conditional adjustment: if ``if_axis`` compares true against
    ``threshold``, add ``adjustment`` to ``then_axis`` and reclamp it.

    Attributes:
        if_axis: Axis whose current value is tested
        comparison: ``gt``, ``lt`` or ``eq`` (absolute tolerance 0.1)
        threshold: Value compared against
        then_axis: Axis receiving the adjustment
        adjustment: Delta added when the condition holds
    """
    if_axis: Axis
    comparison: Comparison
    threshold: float
    then_axis: Axis
    adjustment: float

    def __post_init__(self):
        object.__setattr__(self, "if_axis", to_axis(self.if_axis))
        object.__setattr__(self, "then_axis", to_axis(self.then_axis))
        try:
            object.__setattr__(self, "comparison", Comparison(self.comparison))
        except ValueError:
            raise ConfigurationError(
                f"comparison must be one of {[c.value for c in Comparison]}. "
                f"Got {self.comparison!r}"
            ) from None

    def holds(self, value: float) -> bool:
        """Evaluate the rule's condition against ``value``."""
        if self.comparison is Comparison.GT:
            return value > self.threshold
        if self.comparison is Comparison.LT:
            return value < self.threshold
        return abs(value - self.threshold) < EQ_TOLERANCE


@dataclass
class ConstraintSet:
    """
    Per-axis bounds and ordered dependency rules.

    Attributes:
        minimum: Lower bound per axis. Missing axes default to 0.
        maximum: Upper bound per axis. Missing axes default to 100.
        rules: Dependency rules, evaluated in declaration order each day.
    """
    minimum: Mapping[AxisKey, float] = field(default_factory=dict)
    maximum: Mapping[AxisKey, float] = field(default_factory=dict)
    rules: Sequence[DependencyRule] = ()

    lower: NDArray[np.float64] = field(init=False, repr=False, compare=False)
    upper: NDArray[np.float64] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.lower = axis_array(
            self.minimum, defaults=dict.fromkeys(AXES, SCORE_MIN), name="minimum"
        )
        self.upper = axis_array(
            self.maximum, defaults=dict.fromkeys(AXES, SCORE_MAX), name="maximum"
        )
        if np.any(self.lower > self.upper):
            raise ConfigurationError(
                f"minimum must not exceed maximum. Got minimum={self.lower}, "
                f"maximum={self.upper}"
            )
        self.rules = tuple(self.rules)


@dataclass
class SimulationConfig:
    """
    Configuration for one Monte Carlo run.

    Attributes:
        iterations: Number of scenarios to simulate. Must be >= 1.
        time_horizon: Days simulated per scenario. Must be >= 0.
        confidence_level: Confidence used for VaR and intervals, in (0, 1).
        correlation_matrix: 5x5 axis correlation, as a mapping of mappings
            or an array in ``AXES`` order. None means independent axes.
        volatility: Annualized volatility per axis, merged over
            ``DEFAULT_VOLATILITY``.
        drift: Annualized drift per axis, merged over ``DEFAULT_DRIFT``.
        constraints: Optional bounds and dependency rules.
        targets: Score thresholds for target probabilities.
        random_seed: Optional seed for reproducible results. Default None.
    """
    iterations: int = DEFAULT_ITERATIONS
    time_horizon: int = DEFAULT_TIME_HORIZON
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL
    correlation_matrix: Optional[CorrelationInput] = field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_CORRELATION.items()}
    )
    volatility: Mapping[AxisKey, float] = field(default_factory=lambda: dict(DEFAULT_VOLATILITY))
    drift: Mapping[AxisKey, float] = field(default_factory=lambda: dict(DEFAULT_DRIFT))
    constraints: Optional[ConstraintSet] = None
    targets: Sequence[float] = DEFAULT_TARGETS
    random_seed: Optional[int] = None

    correlation_array: Optional[NDArray[np.float64]] = field(init=False, repr=False, compare=False)
    volatility_array: NDArray[np.float64] = field(init=False, repr=False, compare=False)
    drift_array: NDArray[np.float64] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.iterations = _as_count("iterations", self.iterations)
        self.time_horizon = _as_count("time_horizon", self.time_horizon)
        if self.iterations < 1:
            raise ConfigurationError(f"iterations must be at least 1. Got {self.iterations}")
        if self.time_horizon < 0:
            raise ConfigurationError(f"time_horizon must be >= 0. Got {self.time_horizon}")
        if not (0.0 < self.confidence_level < 1.0):
            raise ConfigurationError(
                f"confidence_level must be in (0, 1). Got {self.confidence_level}"
            )

        self.correlation_array = _correlation_to_array(self.correlation_matrix)
        self.volatility_array = axis_array(self.volatility, DEFAULT_VOLATILITY, name="volatility")
        self.drift_array = axis_array(self.drift, DEFAULT_DRIFT, name="drift")
        self.targets = tuple(float(t) for t in self.targets)

    @classmethod
    def for_mode(cls, mode: str, **overrides: Any) -> "SimulationConfig":
        """
        Build a config preset for a performance mode.

        Args:
            mode: ``fast`` (500 iterations), ``balanced`` (1000) or
                ``accurate`` (2000)
            **overrides: Any other SimulationConfig field

        Raises:
            ConfigurationError: If mode is unknown
        """
        if mode not in PERFORMANCE_MODES:
            raise ConfigurationError(
                f"Unknown performance mode {mode!r}. Available: {list(PERFORMANCE_MODES)}"
            )
        overrides.setdefault("iterations", PERFORMANCE_MODES[mode])
        return cls(**overrides)

    def with_confidence(self, confidence_level: float) -> "SimulationConfig":
        """Copy of this config with a different confidence level."""
        return replace(self, confidence_level=confidence_level)


def _as_count(name: str, value: Any) -> int:
    """Coerce an integral value (including 5.0) to int."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer. Got {value!r}")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real) and float(value).is_integer():
        return int(value)
    raise ConfigurationError(f"{name} must be an integer. Got {value!r}")


def _correlation_to_array(matrix: Optional[CorrelationInput]) -> Optional[NDArray[np.float64]]:
    """Normalize a correlation input to a (5, 5) array, or None for independence."""
    if matrix is None:
        return None

    if isinstance(matrix, Mapping):
        rows = {to_axis(k): v for k, v in matrix.items()}
        missing_rows = [a.value for a in AXES if a not in rows]
        if missing_rows:
            raise ConfigurationError(
                f"correlation_matrix must cover all axes. Missing rows {missing_rows}"
            )
        out = np.zeros((N_AXES, N_AXES))
        for i, row_axis in enumerate(AXES):
            row = {to_axis(k): float(v) for k, v in rows[row_axis].items()}
            missing = [a.value for a in AXES if a not in row]
            if missing:
                raise ConfigurationError(
                    f"correlation_matrix row {row_axis.value} must cover all axes. "
                    f"Missing {missing}"
                )
            out[i, :] = [row[a] for a in AXES]
        return out

    out = np.asarray(matrix, dtype=np.float64)
    if out.shape != (N_AXES, N_AXES):
        raise ConfigurationError(
            f"correlation_matrix must have shape ({N_AXES}, {N_AXES}). Got {out.shape}"
        )
    return out
