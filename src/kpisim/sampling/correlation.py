"""
Correlation transform for axis shocks.

A correlation matrix Ω is factored into a lower-triangular L with
L Lᵀ ≈ Ω, so independent standard normals z become correlated draws L z.

The factorization is the row-by-row Cholesky recurrence, made tolerant of
matrices that are not positive definite:

    L_ii = sqrt(max(0, Ω_ii - Σ_{k<i} L_ik²))
    L_ij = (Ω_ij - Σ_{k<j} L_ik L_jk) / L_jj      (L_jj = 0 → divide by 1)

so an invalid user matrix degrades to an approximate factor instead of
raising mid-simulation.
"""

from typing import Optional
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import N_AXES
from kpisim.exceptions import ConfigurationError


def clamped_cholesky(matrix: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Lower-triangular factor with clamped radicands.

    Parameters
    ----------
    matrix : NDArray[np.float64]
        Square correlation matrix, shape (n, n)

    Returns
    -------
    NDArray[np.float64]
        Lower-triangular L, shape (n, n)
    """
    n = matrix.shape[0]
    L = np.zeros((n, n))

    for i in range(n):
        for j in range(i + 1):
            s = float(np.dot(L[i, :j], L[j, :j]))
            if i == j:
                L[i, j] = np.sqrt(max(0.0, matrix[i, i] - s))
            else:
                pivot = L[j, j] if L[j, j] != 0 else 1.0
                L[i, j] = (matrix[i, j] - s) / pivot

    return L


class CorrelationTransform:
    """
    Turns independent standard normals into correlated axis shocks.

    Attributes
    ----------
    lower : NDArray[np.float64]
        Lower-triangular factor L, shape (5, 5). Identity when no matrix
        was supplied.
    """

    def __init__(self, correlation_matrix: Optional[NDArray[np.float64]] = None) -> None:
        """
        Initialize the transform.

        Parameters
        ----------
        correlation_matrix : NDArray[np.float64], optional
            Correlation matrix in ``AXES`` order, shape (5, 5).
            If None, axes are independent.

        Raises
        ------
        ConfigurationError
            If the matrix is not (5, 5).
        """
        if correlation_matrix is None:
            self.lower = np.eye(N_AXES)
            return

        matrix = np.asarray(correlation_matrix, dtype=np.float64)
        if matrix.shape != (N_AXES, N_AXES):
            raise ConfigurationError(
                f"correlation_matrix must have shape ({N_AXES}, {N_AXES}). Got {matrix.shape}"
            )
        self.lower = clamped_cholesky(matrix)

    @property
    def is_identity(self) -> bool:
        return bool(np.array_equal(self.lower, np.eye(N_AXES)))

    def correlate(self, z: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Apply L to independent normals.

        Parameters
        ----------
        z : NDArray[np.float64]
            Independent draws, shape (5,) or (n, 5)

        Returns
        -------
        NDArray[np.float64]
            Correlated draws with the same shape
        """
        if z.ndim == 1:
            return self.lower @ z
        return z @ self.lower.T

    def reconstruct(self) -> NDArray[np.float64]:
        """L Lᵀ, the correlation matrix the factor actually realizes."""
        return self.lower @ self.lower.T

    def __repr__(self) -> str:
        """String representation."""
        return f"CorrelationTransform(identity={self.is_identity})"
