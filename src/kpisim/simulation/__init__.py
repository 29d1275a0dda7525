"""
Monte Carlo path generation for the five performance axes.

This module provides forward-looking scenario generation:
- ConstraintEnforcer: Per-axis bounds and conditional dependency rules
- PathSimulator: Correlated GBM step per day, one scenario timeline per call
- BatchRunner: Batched execution on threads or processes
- External factors: Expected shifts of the starting state
"""

from kpisim.simulation.constraints import ConstraintEnforcer
from kpisim.simulation.path import PathSimulator, Scenario, ScenarioCategory, TimePoint
from kpisim.simulation.batch import BatchRunner, DEFAULT_BATCH_SIZE
from kpisim.simulation.factors import ExternalFactor, FactorKind, apply_external_factors

__all__ = [
    "ConstraintEnforcer",
    "PathSimulator",
    "Scenario",
    "ScenarioCategory",
    "TimePoint",
    "BatchRunner",
    "DEFAULT_BATCH_SIZE",
    "ExternalFactor",
    "FactorKind",
    "apply_external_factors",
]
