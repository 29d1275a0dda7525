"""
Batched execution of independent Monte Carlo iterations.

Iterations are grouped into fixed-size batches. Batches only exist for
progress reporting, cancellation and parallelism; they never change the
numbers. Each batch draws from its own child of
``SeedSequence(config.random_seed)``, so a seeded run gives identical
scenarios whether it runs serially, on threads or on processes.

The daily step is a handful of small numpy operations and holds the GIL
most of the time, so worker threads add little throughput. Use
``use_processes=True`` for CPU parallelism.
"""

from concurrent.futures import (
    FIRST_COMPLETED,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
import logging
import threading
from typing import Callable, Dict, List, Mapping, Optional, Union
import numpy as np
from numpy.typing import NDArray

from kpisim.axes import AxisKey, axis_array
from kpisim.config import SimulationConfig
from kpisim.exceptions import ConfigurationError, SimulationCancelled
from kpisim.sampling.random_source import RandomVariateSource
from kpisim.simulation.path import PathSimulator, Scenario

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
PROGRESS_LOG_EVERY = 10

ProgressCallback = Callable[[int, int], None]


class BatchRunner:
    """
    Runs ``config.iterations`` scenarios in batches.

    Attributes
    ----------
    batch_size : int
        Iterations per batch
    max_workers : int
        Workers. 1 runs batches inline.
    use_processes : bool
        Run batches on a ProcessPoolExecutor instead of threads
    """

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_workers: int = 1,
        use_processes: bool = False,
    ) -> None:
        if batch_size <= 0 or max_workers <= 0:
            raise ConfigurationError(
                f"batch_size and max_workers must be positive. Got "
                f"batch_size={batch_size}, max_workers={max_workers}"
            )
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.use_processes = use_processes

    def batch_bounds(self, iterations: int) -> List[range]:
        """Iteration index ranges, one per batch."""
        return [
            range(start, min(start + self.batch_size, iterations))
            for start in range(0, iterations, self.batch_size)
        ]

    def run(
        self,
        config: SimulationConfig,
        initial_scores: Union[Mapping[AxisKey, float], NDArray[np.float64]],
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[Scenario]:
        """
        Simulate every iteration of ``config``.

        Parameters
        ----------
        config : SimulationConfig
            Run configuration, shared read-only by all batches
        initial_scores : Mapping or NDArray
            Starting scores for every scenario
        cancel_event : threading.Event, optional
            Checked between batches. When set, the run is abandoned.
        progress_callback : callable, optional
            Called as ``progress_callback(completed_iterations, total)``
            after each batch.

        Returns
        -------
        List[Scenario]
            ``config.iterations`` scenarios ordered by iteration index

        Raises
        ------
        SimulationCancelled
            If ``cancel_event`` was set before all batches completed.
        """
        if isinstance(initial_scores, Mapping):
            initial = axis_array(initial_scores, name="initial_scores")
        else:
            initial = np.asarray(initial_scores, dtype=np.float64)

        batches = self.batch_bounds(config.iterations)
        sources = RandomVariateSource(config.random_seed).spawn(len(batches))

        logger.debug(
            f"Running {config.iterations} iterations in {len(batches)} batches "
            f"(batch_size={self.batch_size}, max_workers={self.max_workers})"
        )

        if self.max_workers == 1:
            results = self._run_serial(
                config, initial, batches, sources, cancel_event, progress_callback
            )
        else:
            results = self._run_parallel(
                config, initial, batches, sources, cancel_event, progress_callback
            )

        return [scenario for idx in range(len(batches)) for scenario in results[idx]]

    def _run_serial(self, config, initial, batches, sources, cancel_event, progress_callback):
        results: Dict[int, List[Scenario]] = {}
        completed = 0

        for idx, (bounds, source) in enumerate(zip(batches, sources)):
            _check_cancelled(cancel_event, completed, config.iterations)
            results[idx] = _run_batch(config, initial, bounds, source)
            completed += len(bounds)
            self._report(idx, completed, config.iterations, progress_callback)

        return results

    def _run_parallel(self, config, initial, batches, sources, cancel_event, progress_callback):
        # At most max_workers batches are in flight; cancel is checked before each submit
        results: Dict[int, List[Scenario]] = {}
        pending: Dict[Future, int] = {}
        queue = iter(enumerate(zip(batches, sources)))
        completed = 0
        n_done = 0
        executor_cls = ProcessPoolExecutor if self.use_processes else ThreadPoolExecutor

        with executor_cls(max_workers=self.max_workers) as executor:
            while True:
                while len(pending) < self.max_workers:
                    item = next(queue, None)
                    if item is None:
                        break
                    _check_cancelled(cancel_event, completed, config.iterations)
                    idx, (bounds, source) = item
                    pending[executor.submit(_run_batch, config, initial, bounds, source)] = idx

                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    idx = pending.pop(future)
                    results[idx] = future.result()
                    completed += len(batches[idx])
                    self._report(n_done, completed, config.iterations, progress_callback)
                    n_done += 1

        return results

    @staticmethod
    def _report(batch_idx, completed, total, progress_callback):
        if progress_callback is not None:
            progress_callback(completed, total)
        if (batch_idx + 1) % PROGRESS_LOG_EVERY == 0:
            logger.info(f"Completed {completed}/{total} iterations")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"BatchRunner(batch_size={self.batch_size}, max_workers={self.max_workers}, "
            f"use_processes={self.use_processes})"
        )


def _run_batch(
    config: SimulationConfig,
    initial: NDArray[np.float64],
    bounds: range,
    source: RandomVariateSource,
) -> List[Scenario]:
    """Simulate one batch with its own source. Safe to call from a worker thread."""
    simulator = PathSimulator(config, source)
    return [simulator.simulate_scenario(initial, iteration=i) for i in bounds]


def _check_cancelled(cancel_event, completed, total):
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"Cancellation requested after {completed}/{total} iterations")
        raise SimulationCancelled(
            f"Simulation cancelled after {completed} of {total} iterations"
        )
