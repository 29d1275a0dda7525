"""
End-to-end tests for MonteCarloSimulator.

Tests cover:
- Result shape, bounds and classification completeness
- Degenerate single-iteration runs
- Independence fallback and default correlation
- Seeded reproducibility across worker counts
- External factors, cancellation and serialization
"""

import json
import logging
import threading

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from kpisim import (
    AXES,
    Axis,
    ConfigurationError,
    ConstraintSet,
    DependencyRule,
    ExternalFactor,
    MonteCarloSimulator,
    RecommendationThresholds,
    ScenarioCategory,
    SimulationCancelled,
    SimulationConfig,
)
from kpisim.analytics import compute_risk_metrics
from kpisim.scenarios import RecommendationType

INITIAL = {"GO": 75.0, "EC": 72.0, "PT": 78.0, "PF": 70.0, "TO": 73.0}


def final_matrix(result) -> np.ndarray:
    return np.array([s.final_array() for s in result.scenarios])


@pytest.fixture(scope="module")
def example_result():
    config = SimulationConfig(iterations=200, time_horizon=10, random_seed=42)
    return MonteCarloSimulator().run_simulation(INITIAL, config)


class TestRunSimulation:
    """Tests for MonteCarloSimulator.run_simulation."""

    def test_scenario_count_and_timeline(self, example_result) -> None:
        """Test one scenario per iteration with horizon + 1 points."""
        assert len(example_result.scenarios) == 200
        assert all(len(s.timeline) == 11 for s in example_result.scenarios)

    def test_final_scores_bounded(self, example_result) -> None:
        """Test every final score lies in [0, 100]."""
        finals = final_matrix(example_result)
        assert np.all(finals >= 0.0)
        assert np.all(finals <= 100.0)

    def test_recommends_monitoring_volatile_axes(self, example_result) -> None:
        """Test EC and TO, the most volatile axes, are flagged."""
        flagged = {
            r.axis for r in example_result.recommendations
            if r.type in (RecommendationType.MONITOR, RecommendationType.HEDGE)
        }
        assert {Axis.EC, Axis.TO} <= flagged

    def test_classification_complete(self, example_result) -> None:
        """Test category counts sum to the iterations."""
        counts = example_result.category_counts()
        assert sum(counts.values()) == 200
        assert counts[ScenarioCategory.BEST] >= 1
        assert counts[ScenarioCategory.WORST] >= 1
        best = example_result.scenarios_in("best")
        assert len(best) == counts[ScenarioCategory.BEST]

    def test_percentiles_monotonic(self, example_result) -> None:
        """Test percentile ordering on every axis."""
        stats = example_result.statistics
        for axis in AXES:
            levels = [stats.percentile(p, axis) for p in (5, 25, 50, 75, 95)]
            assert levels == sorted(levels)

    def test_statistics_from_final_scores(self, example_result) -> None:
        """Test statistics summarize final scores only."""
        finals = final_matrix(example_result)
        assert_allclose(example_result.statistics.mean[Axis.PT], finals[:, 2].mean())

    def test_probabilities_in_unit_interval(self, example_result) -> None:
        """Test every probability is in [0, 1]."""
        for entry in example_result.probabilities.target_probabilities:
            assert all(0.0 <= p <= 1.0 for p in entry.probabilities.values())
        assert all(s.probability > 0 for s in example_result.scenarios)

    def test_initial_scores_recorded(self, example_result) -> None:
        """Test the result carries the starting state."""
        assert example_result.initial_scores[Axis.GO] == 75.0

    def test_to_dict_is_json_serializable(self, example_result) -> None:
        """Test the serialized result passes through json."""
        text = json.dumps(example_result.to_dict())
        data = json.loads(text)
        assert len(data["scenarios"]) == 200
        assert data["scenarios"][0]["timeline"][0]["day"] == 0
        assert "timeline" not in example_result.to_dict(include_timelines=False)["scenarios"][0]

    def test_to_dict_uses_plain_values(self, example_result) -> None:
        """Test enums and axis keys serialize to their string values."""
        data = example_result.to_dict(include_timelines=False)
        assert data["scenarios"][0]["category"] in {c.value for c in ScenarioCategory}
        assert set(data["scenarios"][0]["final_scores"]) == {a.value for a in AXES}
        assert set(data["initial_scores"]) == {a.value for a in AXES}
        assert all(isinstance(r["type"], str) for r in data["recommendations"])
        assert json.loads(json.dumps(data))["initial_scores"]["GO"] == 75.0

    def test_float_horizon_runs(self) -> None:
        """Test a whole-number float horizon is accepted as days."""
        config = SimulationConfig(iterations=3, time_horizon=5.0, random_seed=0)
        result = MonteCarloSimulator().run_simulation(INITIAL, config)
        assert all(len(s.timeline) == 6 for s in result.scenarios)

    def test_process_pool_matches_serial(self) -> None:
        """Test the process-backed runner reproduces the serial result."""
        config = SimulationConfig(iterations=40, time_horizon=3, random_seed=7)
        serial = MonteCarloSimulator(batch_size=10).run_simulation(INITIAL, config)
        processes = MonteCarloSimulator(batch_size=10, max_workers=2, use_processes=True).run_simulation(
            INITIAL, config
        )
        assert_array_equal(final_matrix(serial), final_matrix(processes))

    def test_single_iteration(self) -> None:
        """Test a single iteration runs without error."""
        config = SimulationConfig(iterations=1, time_horizon=5, random_seed=0)
        result = MonteCarloSimulator().run_simulation(INITIAL, config)
        assert result.statistics.variance[Axis.GO] == 0.0
        assert result.statistics.skewness[Axis.GO] == 0.0
        assert result.risk_metrics.sharpe_ratio[Axis.GO] == 0.0
        assert result.scenarios[0].category is ScenarioCategory.BEST

    def test_zero_horizon(self) -> None:
        """Test horizon 0 keeps the initial scores."""
        config = SimulationConfig(iterations=10, time_horizon=0, random_seed=0)
        result = MonteCarloSimulator().run_simulation(INITIAL, config)
        assert_allclose(result.statistics.mean[Axis.EC], 72.0)
        assert_allclose(result.risk_metrics.value_at_risk[Axis.EC], 0.0)

    def test_constraints_respected(self) -> None:
        """Test configured bounds hold on every scenario."""
        config = SimulationConfig(
            iterations=100,
            time_horizon=20,
            volatility=dict.fromkeys(AXES, 1.5),
            constraints=ConstraintSet(
                minimum={"GO": 60},
                maximum={"TO": 80},
                rules=[DependencyRule("GO", "gt", 80, "EC", 2)],
            ),
            random_seed=3,
        )
        finals = final_matrix(MonteCarloSimulator().run_simulation(INITIAL, config))
        assert np.all(finals[:, 0] >= 60.0)
        assert np.all(finals[:, 4] <= 80.0)

    def test_independence_fallback(self) -> None:
        """Test correlation risk is near zero with independent axes."""
        config = SimulationConfig(
            iterations=5000, time_horizon=5, correlation_matrix=None, random_seed=11
        )
        result = MonteCarloSimulator().run_simulation(INITIAL, config)
        assert result.risk_metrics.correlation_risk < 0.05

    def test_default_correlation_is_visible(self) -> None:
        """Test the default matrix produces clearly correlated outcomes."""
        config = SimulationConfig(iterations=1000, time_horizon=20, random_seed=12)
        result = MonteCarloSimulator().run_simulation(INITIAL, config)
        assert result.risk_metrics.correlation_risk > 0.2

    def test_var_ordering_across_confidence(self) -> None:
        """Test VaR at 0.99 is at least VaR at 0.90 on the same sample."""
        base = SimulationConfig(iterations=500, time_horizon=15, random_seed=8)
        simulator = MonteCarloSimulator()
        low = simulator.run_simulation(INITIAL, base.with_confidence(0.90))
        high = simulator.run_simulation(INITIAL, base.with_confidence(0.99))
        assert_array_equal(final_matrix(low), final_matrix(high))
        for axis in AXES:
            assert high.risk_metrics.value_at_risk[axis] >= low.risk_metrics.value_at_risk[axis]

        initial = np.array([INITIAL[a.value] for a in AXES])
        direct = compute_risk_metrics(final_matrix(low), initial, 0.99)
        assert direct.value_at_risk == high.risk_metrics.value_at_risk

    def test_seeded_reproducible_across_workers(self) -> None:
        """Test seed determinism is independent of worker count."""
        config = SimulationConfig(iterations=300, time_horizon=5, random_seed=99)
        serial = MonteCarloSimulator(batch_size=50).run_simulation(INITIAL, config)
        threaded = MonteCarloSimulator(batch_size=50, max_workers=3).run_simulation(INITIAL, config)
        assert_array_equal(final_matrix(serial), final_matrix(threaded))
        assert serial.statistics.mean == threaded.statistics.mean

    def test_external_factors_shift_start(self) -> None:
        """Test factors move the initial state before simulating."""
        config = SimulationConfig(iterations=5, time_horizon=0, random_seed=0)
        factor = ExternalFactor("Market upswing", impact={"GO": 1.0, "TO": -0.4}, probability=0.5)
        result = MonteCarloSimulator().run_simulation(INITIAL, config, external_factors=[factor])
        assert_allclose(result.initial_scores[Axis.GO], 80.0)
        assert_allclose(result.initial_scores[Axis.TO], 71.0)
        assert_allclose(result.scenarios[0].final_scores[Axis.GO], 80.0)

    def test_incomplete_initial_raises(self) -> None:
        """Test a missing axis raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="initial_scores"):
            MonteCarloSimulator().run_simulation({"GO": 50, "EC": 50}, SimulationConfig(iterations=1))

    def test_cancelled_run_raises(self) -> None:
        """Test cancellation propagates and yields no result."""
        event = threading.Event()
        event.set()
        with pytest.raises(SimulationCancelled):
            MonteCarloSimulator().run_simulation(
                INITIAL, SimulationConfig(iterations=200, time_horizon=2), cancel_event=event
            )

    def test_progress_callback(self) -> None:
        """Test progress reaches the total."""
        seen = []
        MonteCarloSimulator(batch_size=25).run_simulation(
            INITIAL,
            SimulationConfig(iterations=100, time_horizon=1, random_seed=0),
            progress_callback=lambda done, total: seen.append((done, total)),
        )
        assert seen[-1] == (100, 100)
        assert len(seen) == 4

    def test_custom_thresholds(self) -> None:
        """Test simulator-level thresholds reach the synthesizer."""
        thresholds = RecommendationThresholds(configured_volatility=1.0, std_dev=1000.0)
        simulator = MonteCarloSimulator(thresholds=thresholds)
        result = simulator.run_simulation(
            INITIAL, SimulationConfig(iterations=50, time_horizon=5, random_seed=1)
        )
        assert not [r for r in result.recommendations if r.type is RecommendationType.MONITOR]

    def test_logs_start_and_completion(self, caplog) -> None:
        """Test INFO logging around a run."""
        caplog.set_level(logging.INFO, logger="kpisim")
        MonteCarloSimulator().run_simulation(
            INITIAL, SimulationConfig(iterations=10, time_horizon=1, random_seed=0)
        )
        messages = [r.getMessage() for r in caplog.records]
        assert any("Starting Monte Carlo simulation" in m for m in messages)
        assert any("completed" in m for m in messages)

    def test_concurrent_runs_are_independent(self) -> None:
        """Test two runs on one simulator from different threads."""
        simulator = MonteCarloSimulator()
        config = SimulationConfig(iterations=100, time_horizon=5, random_seed=4)
        results = {}

        def run(key):
            results[key] = simulator.run_simulation(INITIAL, config)

        threads = [threading.Thread(target=run, args=(k,)) for k in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert_array_equal(final_matrix(results["a"]), final_matrix(results["b"]))
