"""
wlearn.parallel
===============

Fan-out of per-feature work over a joblib worker pool.

The weak learners try every candidate feature. The candidates are split into
contiguous shards, one per worker; every worker owns a single accumulator for
its whole shard, so nothing is shared or locked while accumulating. The
per-worker accumulators are then reduced to the best one with
:func:`min_reduce`, breaking score ties by the lowest feature index so the
result does not depend on the number of workers or on scheduling.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from joblib import Parallel, delayed, effective_n_jobs

from .config import Execution, as_execution, get_config

logger = logging.getLogger(__name__)


def n_workers(execution=None, n_jobs: Optional[int] = None) -> int:
    """Number of workers for ``execution`` (always 1 for sequential runs)."""
    config = get_config()
    execution = config.execution if execution is None else as_execution(execution)
    if execution == Execution.SEQ:
        return 1
    return max(1, effective_n_jobs(config.n_jobs if n_jobs is None else n_jobs))


def shards(size: int, workers: int) -> list[range]:
    """Split ``range(size)`` into at most ``workers`` contiguous, non-empty ranges."""
    workers = max(1, min(int(workers), int(size)))
    if size <= 0:
        return [range(0)]
    step, extra = divmod(size, workers)
    parts, begin = [], 0
    for w in range(workers):
        end = begin + step + (1 if w < extra else 0)
        parts.append(range(begin, end))
        begin = end
    return parts


def _run_shard(accumulator, part: range, visit: Callable):
    for index in part:
        visit(accumulator, index)
    return accumulator


def sweep(size: int, make_accumulator: Callable, visit: Callable, execution=None,
          n_jobs: Optional[int] = None) -> list:
    """Visit ``range(size)`` with one accumulator per worker.

    Parameters
    ----------
    size : int
        Number of items (candidate features) to visit.
    make_accumulator : callable
        Factory called once per worker.
    visit : callable
        ``visit(accumulator, index)``, updates the accumulator in place.
    execution : Execution or str, optional
        ``"par"`` or ``"seq"``; defaults to the configured policy.

    Returns
    -------
    list
        The per-worker accumulators, in shard order.
    """
    parts = shards(size, n_workers(execution, n_jobs))
    if len(parts) == 1:
        return [_run_shard(make_accumulator(), parts[0], visit)]

    logger.debug("sweeping %d items over %d workers", size, len(parts))
    return Parallel(n_jobs=len(parts), backend=get_config().backend)(
        delayed(_run_shard)(make_accumulator(), part, visit) for part in parts
    )


def parallel_map(fn: Callable, items: Iterable, execution=None, n_jobs: Optional[int] = None) -> list:
    """``[fn(item) for item in items]``, possibly evaluated by several workers."""
    items = list(items)
    workers = min(n_workers(execution, n_jobs), len(items))
    if workers <= 1:
        return [fn(item) for item in items]
    return Parallel(n_jobs=workers, backend=get_config().backend)(delayed(fn)(item) for item in items)


def min_reduce(accumulators: list):
    """Accumulator with the lowest ``score``, ties broken by the lowest ``feature``.

    Accumulators that never recorded a feature (``feature < 0``) lose against
    any accumulator that did.
    """
    return min(
        accumulators,
        key=lambda acc: (acc.feature < 0, acc.score, acc.feature),
    )
