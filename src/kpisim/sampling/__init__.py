"""
Random variates and correlation for axis shocks.

This module provides:
- RandomVariateSource: Seedable Box-Muller normal, uniform and exponential draws
- CorrelationTransform: Clamped Cholesky factor turning independent draws
  into correlated axis shocks
"""

from kpisim.sampling.random_source import RandomVariateSource
from kpisim.sampling.correlation import CorrelationTransform, clamped_cholesky

__all__ = [
    "RandomVariateSource",
    "CorrelationTransform",
    "clamped_cholesky",
]
