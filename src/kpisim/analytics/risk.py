"""
Risk metrics over the final-score sample.

For each axis with initial score x₀ and final scores x₁ … xₙ:

    returns     r_i  = (x_i - x₀) / x₀               (x₀ = 0 uses a base of 1)
    VaR              = x₀ - x_(k),  k = ⌊n (1 - c)⌋   on the ascending sample
    CVaR             = x₀ - mean(x_(0) … x_(k-1))     (empty tail → x_(k))
    Sharpe-like      = mean(r) √365 / (std(r) √365)
    Beta             = Cov(r, m) / Var(m)             m = cross-axis average return

Max drawdown walks the *sorted* final-score sample as if it were a running
series, with the peak seeded at x₀. That is a cross-sectional proxy, not a
chronological drawdown; it is kept because downstream dashboards read it
that way.

Correlation risk is the mean absolute Pearson correlation over the ten
axis pairs of final scores. High values mean the axes move together and
spreading effort across them diversifies little.
"""

from dataclasses import asdict, dataclass
from itertools import combinations
import logging
from typing import Any, Dict
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import AXES, Axis, axis_dict, to_plain
from kpisim.config import DAYS_PER_YEAR

logger = logging.getLogger(__name__)

_ZERO = 1e-12


@dataclass
class RiskMetrics:
    """
    Per-axis risk metrics and the cross-axis correlation risk.

    Attributes:
        value_at_risk: Loss from the initial score at the confidence percentile
        conditional_value_at_risk: Mean loss beyond VaR
        max_drawdown: Largest peak-to-trough drop over the sorted sample, in percent
        sharpe_ratio: Annualized mean return over annualized return std
        beta: Sensitivity to the cross-axis average return
        correlation_risk: Mean |ρ| over all axis pairs
        confidence_level: Level VaR and CVaR were computed at
    """
    value_at_risk: Dict[Axis, float]
    conditional_value_at_risk: Dict[Axis, float]
    max_drawdown: Dict[Axis, float]
    sharpe_ratio: Dict[Axis, float]
    beta: Dict[Axis, float]
    correlation_risk: float
    confidence_level: float

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(asdict(self))


def _return_base(initial: float) -> float:
    return initial if initial != 0 else 1.0


def tail_index(n: int, confidence_level: float) -> int:
    """Index of the VaR sample in an ascending sample of size n."""
    return min(int(np.floor(n * (1 - confidence_level))), n - 1)


def value_at_risk(sorted_scores: NDArray[np.float64], initial: float, confidence_level: float) -> float:
    """Loss from ``initial`` to the score at the worst-case percentile."""
    k = tail_index(sorted_scores.size, confidence_level)
    return float(initial - sorted_scores[k])


def conditional_value_at_risk(
    sorted_scores: NDArray[np.float64],
    initial: float,
    confidence_level: float,
) -> float:
    """Mean loss over the tail strictly below the VaR index."""
    k = tail_index(sorted_scores.size, confidence_level)
    tail = sorted_scores[:k]
    tail_mean = float(np.mean(tail)) if tail.size > 0 else float(sorted_scores[k])
    return float(initial - tail_mean)


def sorted_sample_drawdown(sorted_scores: NDArray[np.float64], initial: float) -> float:
    """
    Largest peak-to-trough drop, in percent, walking the ascending sample.

    The running peak starts at ``initial``. Non-positive peaks contribute
    no drawdown.
    """
    if sorted_scores.size == 0:
        return 0.0
    peaks = np.maximum.accumulate(np.concatenate(([initial], sorted_scores)))[1:]
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdowns = np.where(peaks > 0, (peaks - sorted_scores) / peaks, 0.0)
    return float(max(0.0, np.max(drawdowns)) * 100.0)


def sharpe_like_ratio(returns: NDArray[np.float64]) -> float:
    """Annualized mean over annualized std of returns; 0 when std is 0."""
    std = float(np.std(returns))
    if std <= _ZERO:
        return 0.0
    annualization = np.sqrt(DAYS_PER_YEAR)
    return float((np.mean(returns) * annualization) / (std * annualization))


def beta(returns: NDArray[np.float64], market_returns: NDArray[np.float64]) -> float:
    """Cov(returns, market) / Var(market); 1 when market variance is 0."""
    dm = market_returns - np.mean(market_returns)
    market_var = float(np.sum(dm * dm))
    if market_var <= _ZERO:
        return 1.0
    dr = returns - np.mean(returns)
    return float(np.sum(dr * dm) / market_var)


def pearson(x: NDArray[np.float64], y: NDArray[np.float64]) -> float:
    """Pearson correlation; 0 when either sample is constant."""
    dx = x - np.mean(x)
    dy = y - np.mean(y)
    denom = np.sqrt(np.sum(dx * dx) * np.sum(dy * dy))
    if denom <= _ZERO:
        return 0.0
    return float(np.sum(dx * dy) / denom)


def correlation_risk(final_scores: NDArray[np.float64]) -> float:
    """Mean absolute pairwise correlation of final scores across axes."""
    pairs = list(combinations(range(final_scores.shape[1]), 2))
    return float(np.mean([abs(pearson(final_scores[:, i], final_scores[:, j])) for i, j in pairs]))


def compute_risk_metrics(
    final_scores: NDArray[np.float64],
    initial_scores: NDArray[np.float64],
    confidence_level: float,
) -> RiskMetrics:
    """
    Risk metrics for every axis.

    Parameters
    ----------
    final_scores : NDArray[np.float64]
        Final scores, shape (n_scenarios, 5). Rows are scenarios; row
        alignment across axes is used for Beta and correlation risk.
    initial_scores : NDArray[np.float64]
        Initial scores in ``AXES`` order, shape (5,)
    confidence_level : float
        Confidence in (0, 1)

    Returns
    -------
    RiskMetrics
    """
    n_axes = len(AXES)
    var = np.zeros(n_axes)
    cvar = np.zeros(n_axes)
    drawdown = np.zeros(n_axes)
    sharpe = np.zeros(n_axes)
    betas = np.ones(n_axes)

    market_scores = np.mean(final_scores, axis=1)

    for j in range(n_axes):
        initial = float(initial_scores[j])
        base = _return_base(initial)
        if initial == 0:
            logger.debug(f"Initial score of {AXES[j].value} is 0; using a return base of 1")

        column = final_scores[:, j]
        sorted_column = np.sort(column)
        returns = (column - initial) / base
        market_returns = (market_scores - initial) / base

        var[j] = value_at_risk(sorted_column, initial, confidence_level)
        cvar[j] = conditional_value_at_risk(sorted_column, initial, confidence_level)
        drawdown[j] = sorted_sample_drawdown(sorted_column, initial)
        sharpe[j] = sharpe_like_ratio(returns)
        betas[j] = beta(returns, market_returns)

    return RiskMetrics(
        value_at_risk=axis_dict(var),
        conditional_value_at_risk=axis_dict(cvar),
        max_drawdown=axis_dict(drawdown),
        sharpe_ratio=axis_dict(sharpe),
        beta=axis_dict(betas),
        correlation_risk=correlation_risk(final_scores),
        confidence_level=confidence_level,
    )
