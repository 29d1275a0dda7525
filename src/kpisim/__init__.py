"""
Monte Carlo projection and risk analytics for five bounded performance axes.

Given current axis scores, kpisim simulates correlated day-by-day paths,
then reports the distribution of outcomes, the probability of reaching
targets, VaR-style risk metrics, scenario labels and ranked
recommendations.

**Usage:**
```python
from kpisim import MonteCarloSimulator, SimulationConfig

result = MonteCarloSimulator().run_simulation(
    {"GO": 75, "EC": 72, "PT": 78, "PF": 70, "TO": 73},
    SimulationConfig(iterations=1000, time_horizon=30, random_seed=42),
)
print(result.statistics.mean)
print([r.action for r in result.recommendations])
```
"""

from kpisim.axes import AXES, Axis
from kpisim.config import (
    Comparison,
    ConstraintSet,
    DEFAULT_CORRELATION,
    DEFAULT_DRIFT,
    DEFAULT_VOLATILITY,
    DependencyRule,
    SimulationConfig,
)
from kpisim.exceptions import ConfigurationError, KpiSimError, SimulationCancelled
from kpisim.logging_config import configure_logging
from kpisim.scenarios.recommendations import RecommendationThresholds
from kpisim.simulation.factors import ExternalFactor
from kpisim.simulation.path import ScenarioCategory
from kpisim.simulator import MonteCarloSimulator, SimulationResult

__version__ = "0.1.0"

__all__ = [
    "AXES",
    "Axis",
    "Comparison",
    "ConstraintSet",
    "DEFAULT_CORRELATION",
    "DEFAULT_DRIFT",
    "DEFAULT_VOLATILITY",
    "DependencyRule",
    "SimulationConfig",
    "ConfigurationError",
    "KpiSimError",
    "SimulationCancelled",
    "configure_logging",
    "RecommendationThresholds",
    "ExternalFactor",
    "ScenarioCategory",
    "MonteCarloSimulator",
    "SimulationResult",
]
