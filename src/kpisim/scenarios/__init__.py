"""
Scenario labelling and decision support.

This module provides:
- classify_scenarios: scenario labels and likelihoods
- synthesize_recommendations: Ranked hedge / focus / monitor / optimize actions
"""

from kpisim.scenarios.classifier import (
    category_counts,
    classify_scenarios,
    scenario_probabilities,
    scenario_probability,
)
from kpisim.scenarios.recommendations import (
    Impact,
    Recommendation,
    RecommendationThresholds,
    RecommendationType,
    synthesize_recommendations,
)

__all__ = [
    "category_counts",
    "classify_scenarios",
    "scenario_probabilities",
    "scenario_probability",
    "Impact",
    "Recommendation",
    "RecommendationThresholds",
    "RecommendationType",
    "synthesize_recommendations",
]
