"""
Random variate source for Monte Carlo paths.

Standard normals are produced with the Box-Muller transform:

    z = sqrt(-2 ln u1) cos(2π u2),    u1 ∈ (0, 1], u2 ∈ [0, 1)

Uniforms come from a ``numpy.random.Generator`` so a source is fully
reproducible from its seed. Concurrent batches each get their own child
source via ``spawn``; a source is never shared between threads.
"""

from typing import List, Tuple, Union
import numpy as np
from numpy.typing import NDArray

SeedLike = Union[None, int, np.random.SeedSequence]
Size = Union[None, int, Tuple[int, ...]]


class RandomVariateSource:
    """
    Seedable source of normal, uniform and exponential variates.

    Attributes
    ----------
    seed_sequence : np.random.SeedSequence
        Seed sequence the underlying generator was built from.
    """

    def __init__(self, seed: SeedLike = None) -> None:
        """
        Initialize the source.

        Parameters
        ----------
        seed : int, np.random.SeedSequence or None
            Seed for reproducibility. None draws fresh OS entropy.
        """
        if isinstance(seed, np.random.SeedSequence):
            self.seed_sequence = seed
        else:
            self.seed_sequence = np.random.SeedSequence(seed)
        self._rng = np.random.default_rng(self.seed_sequence)

    def spawn(self, n: int) -> List["RandomVariateSource"]:
        """
        Derive ``n`` statistically independent child sources.

        Parameters
        ----------
        n : int
            Number of children

        Returns
        -------
        List[RandomVariateSource]
            Child sources, deterministic given this source's seed.
        """
        return [RandomVariateSource(child) for child in self.seed_sequence.spawn(n)]

    def uniform(
        self,
        low: float = 0.0,
        high: float = 1.0,
        size: Size = None,
    ) -> Union[float, NDArray[np.float64]]:
        """Uniform draws on [low, high)."""
        u = self._rng.random(size)
        return u * (high - low) + low

    def normal(
        self,
        mean: float = 0.0,
        stddev: float = 1.0,
        size: Size = None,
    ) -> Union[float, NDArray[np.float64]]:
        """
        Normal draws via Box-Muller, two uniforms consumed per variate.

        Parameters
        ----------
        mean : float
            Mean of the distribution
        stddev : float
            Standard deviation of the distribution
        size : int or tuple, optional
            Output shape. None returns a float.

        Returns
        -------
        float or NDArray[np.float64]
            Normal variates
        """
        # 1 - [0, 1) keeps u1 away from 0 so the log is finite
        u1 = 1.0 - self._rng.random(size)
        u2 = self._rng.random(size)
        z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
        out = z * stddev + mean
        return float(out) if size is None else out

    def exponential(
        self,
        rate: float = 1.0,
        size: Size = None,
    ) -> Union[float, NDArray[np.float64]]:
        """
        Exponential draws by inverse transform.

        Raises
        ------
        ValueError
            If rate is not positive.
        """
        if rate <= 0:
            raise ValueError(f"rate must be positive. Got {rate}")
        u = self._rng.random(size)
        out = -np.log1p(-u) / rate
        return float(out) if size is None else out

    def __repr__(self) -> str:
        """String representation."""
        return f"RandomVariateSource(entropy={self.seed_sequence.entropy})"
