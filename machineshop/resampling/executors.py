"""
Executors for mapping partition evaluations.

An executor is passed explicitly to the resample driver and tuner; there is
no global "parallel backend is registered" state. Both executors return
results in input order.
"""

from typing import Callable, Iterable, List, Optional

from joblib import Parallel, delayed


class SequentialExecutor:
    """Evaluate tasks one after another in the calling process."""

    def map(self, func: Callable, items: Iterable) -> List:
        return [func(item) for item in items]

    def __repr__(self) -> str:
        return "SequentialExecutor()"


class JoblibExecutor:
    """
    Evaluate tasks in parallel with joblib.

    Parameters
    ----------
    n_jobs : int, default=-1
        Number of parallel jobs (-1 uses all processors).
    backend : str, optional
        joblib backend ('loky', 'threading', 'multiprocessing'). Process
        backends require picklable adapters and metrics.
    verbose : int, default=0
        joblib verbosity level.
    timeout : float, optional
        Seconds allowed for each task. A task that runs longer aborts the
        whole run with a TimeoutError.
    """

    def __init__(self, n_jobs: int = -1, backend: Optional[str] = None, verbose: int = 0,
                 timeout: Optional[float] = None):
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self.n_jobs = n_jobs
        self.backend = backend
        self.verbose = verbose
        self.timeout = timeout

    def map(self, func: Callable, items: Iterable) -> List:
        parallel = Parallel(
            n_jobs=self.n_jobs,
            backend=self.backend,
            verbose=self.verbose,
            timeout=self.timeout
        )
        return parallel(delayed(func)(item) for item in items)

    def __repr__(self) -> str:
        return (f"JoblibExecutor(n_jobs={self.n_jobs}, backend={self.backend!r}, "
                f"timeout={self.timeout})")
