'''
Parallel fan-out over independent units of work.

This module provides :class:`WorkerPool`, an explicit and scoped pool that the
critical value simulators and the batch driver accept as an argument. Units
(simulation replications or series) are independent and carry their own
random state, so results do not depend on the backend, the number of workers
or the chunk size.

Example:
    >>> from exuber.utils.parallel import WorkerPool
    >>> with WorkerPool(max_workers=4) as pool:
    ...     cv = mc_cv(200, nrep=2000, seed=1, pool=pool)
'''

import logging
import math
import os
from concurrent.futures import (
    Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, wait, FIRST_COMPLETED
)
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from exuber.core.config import get_config
from exuber.core.exceptions import SimulationError
from exuber.core.types import PoolBackend, ProgressCallback
from exuber.core.validation import validate_option, validate_positive_int

# Set up module-level logger
logger = logging.getLogger("exuber.utils.parallel")

BACKENDS = ("process", "thread", "sequential")


def default_workers() -> int:
    """Number of workers used when none is requested: CPU count minus one, at least one."""
    return max(1, (os.cpu_count() or 1) - 1)


def _run_chunk(func: Callable[[Any], Any], offset: int,
               items: Sequence[Any]) -> Tuple[List[Any], Optional[Tuple[int, BaseException]]]:
    """Run a chunk of units; stop at the first failing unit and return it."""
    out = []
    for i, item in enumerate(items):
        try:
            out.append(func(item))
        except Exception as e:
            return out, (offset + i, e)
    return out, None


class WorkerPool:
    """
    Scoped pool of workers for data-parallel fan-out.

    The pool is acquired and released with a ``with`` block. Calling
    :meth:`map` outside a ``with`` block starts and stops a pool for that
    call only.

    Args:
        max_workers: Number of workers; None uses the ``performance.max_workers``
            option, falling back to the CPU count minus one
        backend: "process", "thread" or "sequential"; None uses the
            ``performance.backend`` option
        chunksize: Units per submitted task; None uses the
            ``performance.chunksize`` option, falling back to about four tasks
            per worker

    Raises:
        ParameterError: If an argument is invalid
    """

    def __init__(self,
                 max_workers: Optional[int] = None,
                 backend: Optional[PoolBackend] = None,
                 chunksize: Optional[int] = None) -> None:
        if max_workers is None:
            max_workers = get_config("performance", "max_workers") or default_workers()
        if backend is None:
            backend = get_config("performance", "backend")
        if chunksize is None:
            chunksize = get_config("performance", "chunksize")

        self.max_workers = validate_positive_int(max_workers, "max_workers")
        self.backend = validate_option(backend, "backend", BACKENDS)
        self.chunksize = None if chunksize is None else validate_positive_int(chunksize, "chunksize")
        self._executor: Optional[Executor] = None

    def __repr__(self) -> str:
        return (f"WorkerPool(max_workers={self.max_workers}, backend='{self.backend}', "
                f"chunksize={self.chunksize})")

    def __enter__(self) -> 'WorkerPool':
        if self.backend == "process":
            self._executor = ProcessPoolExecutor(max_workers=self.max_workers)
        elif self.backend == "thread":
            self._executor = ThreadPoolExecutor(max_workers=self.max_workers)
        logger.debug(f"Started {self!r}")
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close(cancel=exc_type is not None)

    def close(self, cancel: bool = False) -> None:
        """Release the workers, cancelling queued work when ``cancel`` is set."""
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=cancel)
            self._executor = None
            logger.debug(f"Stopped {self!r}")

    @property
    def active(self) -> bool:
        """Whether the pool currently holds workers."""
        return self._executor is not None

    def _chunks(self, n_items: int) -> Iterator[Tuple[int, int]]:
        size = self.chunksize
        if size is None:
            size = max(1, math.ceil(n_items / (self.max_workers * 4)))
        for start in range(0, n_items, size):
            yield start, min(start + size, n_items)

    def map(self,
            func: Callable[[Any], Any],
            items: Iterable[Any],
            progress_callback: Optional[ProgressCallback] = None,
            description: str = "units") -> List[Any]:
        """
        Apply ``func`` to every item and return the results in submission order.

        Args:
            func: Function of one item. For the process backend it must be
                picklable (a module-level function or a ``functools.partial``
                of one)
            items: Independent units of work
            progress_callback: Optional callback receiving the completed
                fraction and a message after each chunk
            description: Name of the units used in log and progress messages

        Returns:
            List[Any]: One result per item, in the order of ``items``

        Raises:
            SimulationError: If any unit fails; remaining work is cancelled,
                partial results are discarded and the original exception is
                chained as the cause
        """
        items = list(items)
        n_items = len(items)
        if n_items == 0:
            return []

        if self.backend != "sequential" and self._executor is None:
            with self:
                return self.map(func, items, progress_callback, description)

        chunks = list(self._chunks(n_items))
        results: List[Optional[List[Any]]] = [None] * len(chunks)
        done = 0

        def finish(position: int, outcome: Tuple[List[Any], Optional[Tuple[int, BaseException]]],
                   pending: Sequence[Future] = ()) -> None:
            nonlocal done
            out, failure = outcome
            if failure is not None:
                unit, error = failure
                for future in pending:
                    future.cancel()
                logger.error(f"Unit {unit} of {n_items} {description} failed: {error!r}")
                raise SimulationError(
                    f"Unit {unit} of {n_items} {description} failed: {error}",
                    simulation_type=description,
                    unit=unit,
                    issue=type(error).__name__
                ) from error
            results[position] = out
            done += len(out)
            logger.debug(f"Completed {done}/{n_items} {description}")
            if progress_callback is not None:
                progress_callback(done / n_items, f"Completed {done}/{n_items} {description}")

        if self._executor is None:
            for position, (start, stop) in enumerate(chunks):
                finish(position, _run_chunk(func, start, items[start:stop]))
        else:
            futures = {
                self._executor.submit(_run_chunk, func, start, items[start:stop]): position
                for position, (start, stop) in enumerate(chunks)
            }
            pending = set(futures)
            while pending:
                completed, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in sorted(completed, key=futures.get):
                    try:
                        outcome = future.result()
                    except Exception as e:
                        for other in pending:
                            other.cancel()
                        start = chunks[futures[future]][0]
                        logger.error(f"Worker running {description} from unit {start} failed: {e!r}")
                        raise SimulationError(
                            f"Worker running {description} from unit {start} failed: {e}",
                            simulation_type=description,
                            unit=start,
                            issue=type(e).__name__
                        ) from e
                    finish(futures[future], outcome, list(pending))

        return [result for chunk in results for result in chunk]


@contextmanager
def pool_scope(pool: Optional[WorkerPool] = None,
               parallel: Optional[bool] = None) -> Iterator[WorkerPool]:
    """
    Yield the pool a simulator should use.

    A supplied pool is borrowed and left running. Otherwise a pool is created
    from the ``performance`` configuration when ``parallel`` (or the
    ``performance.parallel`` option when ``parallel`` is None) is set, and a
    sequential pool when it is not; a created pool is released on exit.
    """
    if pool is not None:
        yield pool
        return

    if parallel is None:
        parallel = get_config("performance", "parallel")

    owned = WorkerPool() if parallel else WorkerPool(max_workers=1, backend="sequential")
    with owned:
        yield owned
