"""
Day-by-day path simulation for one scenario.

Each day every axis takes a discretized geometric-Brownian-motion step:

    r_t = μ / 365 + σ · z_t · sqrt(1 / 365)
    x_t = clip(x_{t-1} · (1 + r_t), 0, 100)

where z_t is the axis component of a correlated standard-normal vector.
The stepped vector then goes through the ConstraintEnforcer.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import AXES, N_AXES, Axis, AxisKey, axis_array, axis_dict, to_plain
from kpisim.config import DAYS_PER_YEAR, SCORE_MAX, SCORE_MIN, SimulationConfig
from kpisim.exceptions import ConfigurationError
from kpisim.sampling.correlation import CorrelationTransform
from kpisim.sampling.random_source import RandomVariateSource
from kpisim.simulation.constraints import ConstraintEnforcer


class ScenarioCategory(str, Enum):
    """Label assigned to a completed scenario."""

    BEST = "best"
    WORST = "worst"
    LIKELY = "likely"
    OUTLIER = "outlier"


@dataclass
class TimePoint:
    """
    One simulated day.

    Attributes:
        day: Day index, 0 is the initial state
        scores: Per-axis scores after the day's step and constraints
        volatility: Per-axis relative change |Δ| / max(previous, 1)
    """
    day: int
    scores: Dict[Axis, float]
    volatility: Dict[Axis, float]

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(asdict(self))


@dataclass
class Scenario:
    """
    One Monte Carlo iteration.

    ``probability`` and ``category`` are assigned after the whole batch is
    known, by ``kpisim.scenarios.classify_scenarios``.
    """
    id: str
    iteration: int
    timeline: List[TimePoint]
    final_scores: Dict[Axis, float]
    probability: float = 0.0
    category: ScenarioCategory = ScenarioCategory.LIKELY

    @property
    def overall_score(self) -> float:
        """Mean of the five final axis scores."""
        return float(np.mean([self.final_scores[a] for a in AXES]))

    def final_array(self) -> NDArray[np.float64]:
        """Final scores in ``AXES`` order, shape (5,)."""
        return np.array([self.final_scores[a] for a in AXES])

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(asdict(self))


class PathSimulator:
    """
    Simulates scenario timelines from a fixed configuration.

    The configuration is read-only; all per-path state lives in the
    returned Scenario. A simulator owns one RandomVariateSource and must not
    be shared between threads.

    Attributes
    ----------
    config : SimulationConfig
        Run configuration
    source : RandomVariateSource
        Source of independent normal draws
    transform : CorrelationTransform
        Correlation factor for the config's matrix
    enforcer : ConstraintEnforcer
        Bounds and dependency rules for the config's constraints
    """

    def __init__(
        self,
        config: SimulationConfig,
        source: Optional[RandomVariateSource] = None,
    ) -> None:
        self.config = config
        self.source = source if source is not None else RandomVariateSource(config.random_seed)
        self.transform = CorrelationTransform(config.correlation_array)
        self.enforcer = ConstraintEnforcer(config.constraints)

        self._daily_drift = config.drift_array / DAYS_PER_YEAR
        self._daily_vol = config.volatility_array * np.sqrt(1.0 / DAYS_PER_YEAR)

    def correlated_shocks(self, n_days: int) -> NDArray[np.float64]:
        """Correlated standard normals for ``n_days`` days, shape (n_days, 5)."""
        z = self.source.normal(size=(n_days, N_AXES))
        return self.transform.correlate(z)

    def step_day(
        self,
        current: NDArray[np.float64],
        z: Optional[NDArray[np.float64]] = None,
    ) -> NDArray[np.float64]:
        """
        Advance one day.

        Parameters
        ----------
        current : NDArray[np.float64]
            Scores in ``AXES`` order, shape (5,)
        z : NDArray[np.float64], optional
            Correlated shocks for the day, shape (5,). Drawn if None.

        Returns
        -------
        NDArray[np.float64]
            New scores after the step, the [0, 100] clamp and constraints
        """
        if z is None:
            z = self.correlated_shocks(1)[0]

        daily_return = self._daily_drift + self._daily_vol * z
        stepped = np.clip(current * (1.0 + daily_return), SCORE_MIN, SCORE_MAX)
        return self.enforcer.apply(stepped)

    def simulate_scenario(
        self,
        initial_scores: Union[Mapping[AxisKey, float], NDArray[np.float64]],
        horizon: Optional[int] = None,
        iteration: int = 0,
    ) -> Scenario:
        """
        Simulate one full timeline.

        Parameters
        ----------
        initial_scores : Mapping or NDArray
            Starting scores, a complete per-axis map or a (5,) array
        horizon : int, optional
            Days to simulate. Defaults to ``config.time_horizon``.
        iteration : int
            Iteration index, used for the scenario id

        Returns
        -------
        Scenario
            Timeline of ``horizon + 1`` points (day 0 included)

        Raises
        ------
        ConfigurationError
            If horizon is negative or the initial map is incomplete.
        """
        horizon = self.config.time_horizon if horizon is None else horizon
        if horizon < 0:
            raise ConfigurationError(f"horizon must be >= 0. Got {horizon}")

        if isinstance(initial_scores, Mapping):
            current = axis_array(initial_scores, name="initial_scores")
        else:
            current = np.asarray(initial_scores, dtype=np.float64)

        shocks = self.correlated_shocks(horizon)
        timeline = [TimePoint(0, axis_dict(current), axis_dict(np.zeros(N_AXES)))]

        for day in range(1, horizon + 1):
            new = self.step_day(current, shocks[day - 1])
            daily_vol = np.abs(new - current) / np.maximum(current, 1.0)
            timeline.append(TimePoint(day, axis_dict(new), axis_dict(daily_vol)))
            current = new

        return Scenario(
            id=f"sim-{iteration}",
            iteration=iteration,
            timeline=timeline,
            final_scores=axis_dict(current),
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"PathSimulator(horizon={self.config.time_horizon}, "
            f"correlated={not self.transform.is_identity})"
        )
