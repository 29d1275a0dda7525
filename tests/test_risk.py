"""
Unit tests for risk metrics.

Tests cover:
- VaR and CVaR indexing, empty-tail fallback
- Monotonicity of VaR in the confidence level
- Sorted-sample drawdown
- Sharpe-like ratio, Beta and correlation risk, including degenerate inputs
"""

import numpy as np
from numpy.testing import assert_allclose

from kpisim.analytics.risk import (
    beta,
    compute_risk_metrics,
    conditional_value_at_risk,
    correlation_risk,
    pearson,
    sharpe_like_ratio,
    sorted_sample_drawdown,
    value_at_risk,
)
from kpisim.axes import AXES, Axis

ONE_TO_HUNDRED = np.arange(1, 101, dtype=np.float64)


def same_columns(values) -> np.ndarray:
    return np.tile(np.asarray(values, dtype=np.float64)[:, None], (1, len(AXES)))


class TestValueAtRisk:
    """Tests for VaR and CVaR."""

    def test_var_index(self) -> None:
        """Test VaR reads the floor(n(1-c))-th sorted sample."""
        assert_allclose(value_at_risk(ONE_TO_HUNDRED, 50.0, 0.95), 44.0)
        assert_allclose(value_at_risk(ONE_TO_HUNDRED, 50.0, 0.75), 24.0)

    def test_cvar_tail_mean(self) -> None:
        """Test CVaR averages the samples below the VaR index."""
        assert_allclose(conditional_value_at_risk(ONE_TO_HUNDRED, 50.0, 0.95), 47.0)

    def test_cvar_empty_tail_falls_back_to_var(self) -> None:
        """Test small samples with an empty tail."""
        sample = np.arange(10, 20, dtype=np.float64)
        assert value_at_risk(sample, 50.0, 0.95) == 40.0
        assert conditional_value_at_risk(sample, 50.0, 0.95) == 40.0

    def test_cvar_at_least_var(self) -> None:
        """Test CVaR >= VaR on a random sample."""
        sample = np.sort(np.random.default_rng(1).normal(60, 10, 1000))
        assert conditional_value_at_risk(sample, 60.0, 0.95) >= value_at_risk(sample, 60.0, 0.95)

    def test_var_monotonic_in_confidence(self) -> None:
        """Test VaR at 0.99 is at least VaR at 0.90 for every axis."""
        sample = np.random.default_rng(2).uniform(30, 90, size=(2000, 5))
        initial = np.full(5, 60.0)
        low = compute_risk_metrics(sample, initial, 0.90)
        high = compute_risk_metrics(sample, initial, 0.99)
        for axis in AXES:
            assert high.value_at_risk[axis] >= low.value_at_risk[axis]

    def test_gain_gives_negative_var(self) -> None:
        """Test every outcome above the initial score gives a negative VaR."""
        assert value_at_risk(np.array([60.0, 70.0, 80.0]), 50.0, 0.95) < 0


class TestDrawdown:
    """Tests for sorted_sample_drawdown."""

    def test_peak_seeded_at_initial(self) -> None:
        """Test drawdown relative to the initial score."""
        assert_allclose(sorted_sample_drawdown(np.array([40.0, 45.0, 60.0, 70.0]), 50.0), 20.0)

    def test_all_above_initial(self) -> None:
        """Test no drawdown when every sample exceeds the initial score."""
        assert sorted_sample_drawdown(np.array([55.0, 60.0]), 50.0) == 0.0

    def test_full_range(self) -> None:
        """Test drawdown over 1..100 from an initial 50."""
        assert_allclose(sorted_sample_drawdown(ONE_TO_HUNDRED, 50.0), 98.0)

    def test_zero_initial(self) -> None:
        """Test a zero peak contributes no drawdown."""
        assert sorted_sample_drawdown(np.array([0.0, 0.0]), 0.0) == 0.0


class TestRatios:
    """Tests for the Sharpe-like ratio, Beta and correlation helpers."""

    def test_sharpe(self) -> None:
        """Test mean / std of returns."""
        assert_allclose(sharpe_like_ratio(np.array([0.1, 0.3])), 2.0)

    def test_sharpe_zero_std(self) -> None:
        """Test constant returns give 0."""
        assert sharpe_like_ratio(np.full(5, 0.2)) == 0.0

    def test_beta(self) -> None:
        """Test Cov / Var against the market."""
        market = np.array([0.1, -0.2, 0.3, 0.0])
        assert_allclose(beta(market, market), 1.0)
        assert_allclose(beta(market, 2 * market), 0.5)

    def test_beta_constant_market(self) -> None:
        """Test zero market variance gives 1."""
        assert beta(np.array([0.1, 0.2]), np.array([0.0, 0.0])) == 1.0

    def test_pearson_constant(self) -> None:
        """Test a constant sample gives 0."""
        assert pearson(np.ones(5), np.arange(5.0)) == 0.0

    def test_pearson_perfect(self) -> None:
        """Test perfect positive and negative correlation."""
        x = np.arange(10.0)
        assert_allclose(pearson(x, 3 * x + 1), 1.0)
        assert_allclose(pearson(x, -x), -1.0)

    def test_correlation_risk_identical_columns(self) -> None:
        """Test co-moving axes give correlation risk 1."""
        assert_allclose(correlation_risk(same_columns(np.arange(20.0))), 1.0)

    def test_correlation_risk_independent(self) -> None:
        """Test independent columns give correlation risk near 0."""
        sample = np.random.default_rng(3).normal(size=(20000, 5))
        assert correlation_risk(sample) < 0.03


class TestComputeRiskMetrics:
    """Tests for compute_risk_metrics."""

    def test_full_metrics(self) -> None:
        """Test per-axis metrics on a known sample."""
        risk = compute_risk_metrics(same_columns(ONE_TO_HUNDRED), np.full(5, 50.0), 0.95)
        returns = (ONE_TO_HUNDRED - 50.0) / 50.0
        for axis in AXES:
            assert_allclose(risk.value_at_risk[axis], 44.0)
            assert_allclose(risk.conditional_value_at_risk[axis], 47.0)
            assert_allclose(risk.max_drawdown[axis], 98.0)
            assert_allclose(risk.sharpe_ratio[axis], returns.mean() / returns.std())
            assert_allclose(risk.beta[axis], 1.0)
        assert_allclose(risk.correlation_risk, 1.0)
        assert risk.confidence_level == 0.95

    def test_zero_initial_is_finite(self) -> None:
        """Test a zero initial score produces finite metrics."""
        sample = np.random.default_rng(4).uniform(0, 10, size=(100, 5))
        risk = compute_risk_metrics(sample, np.zeros(5), 0.95)
        for axis in AXES:
            assert np.isfinite(risk.sharpe_ratio[axis])
            assert np.isfinite(risk.beta[axis])

    def test_single_scenario(self) -> None:
        """Test one scenario does not raise."""
        risk = compute_risk_metrics(np.array([[50.0, 60.0, 70.0, 80.0, 90.0]]), np.full(5, 60.0), 0.95)
        assert risk.value_at_risk[Axis.GO] == 10.0
        assert risk.sharpe_ratio[Axis.GO] == 0.0
        assert risk.correlation_risk == 0.0

    def test_to_dict(self) -> None:
        """Test serialized keys."""
        d = compute_risk_metrics(same_columns([40.0, 60.0]), np.full(5, 50.0), 0.95).to_dict()
        assert set(d["value_at_risk"]) == {"GO", "EC", "PT", "PF", "TO"}
        assert isinstance(d["correlation_risk"], float)
