"""
wlearn.config
=============

Runtime configuration for the parallel parts of the library.

The per-feature sweep of the weak learners runs on a joblib worker pool.
How many workers it uses and whether it runs at all in parallel is taken
from a process-wide configuration, following the ``get_config`` /
``set_config`` / ``config_context`` pattern of scikit-learn.
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace, asdict
from enum import Enum

from .exceptions import InvalidArgument


class Execution(str, Enum):
    """Execution policy of a sweep: parallel workers or a single thread."""

    PAR = "par"
    SEQ = "seq"


_BACKENDS = ("threading", "loky", "multiprocessing", "sequential")


@dataclass(frozen=True)
class Config:
    """Immutable snapshot of the runtime configuration.

    Attributes
    ----------
    n_jobs : int
        Number of joblib workers (``-1`` uses every core).
    backend : str
        joblib backend. Accumulators are shared by reference with the
        workers, so only ``"threading"`` and ``"sequential"`` see them
        mutated in place; the other backends are accepted for completeness
        and work because each worker returns its accumulator.
    execution : Execution
        Default execution policy when a call does not specify one.
    """

    n_jobs: int = -1
    backend: str = "threading"
    execution: Execution = Execution.PAR

    def __post_init__(self):
        if not isinstance(self.n_jobs, int) or self.n_jobs == 0:
            raise InvalidArgument(f"n_jobs must be a non-zero integer, got {self.n_jobs!r}")
        if self.backend not in _BACKENDS:
            raise InvalidArgument(f"backend must be one of {_BACKENDS}, got {self.backend!r}")
        object.__setattr__(self, "execution", as_execution(self.execution))


def as_execution(value) -> Execution:
    """Coerce ``value`` (an :class:`Execution` or its string) to :class:`Execution`."""
    try:
        return Execution(value)
    except ValueError:
        raise InvalidArgument(f"unknown execution policy {value!r}, expecting 'par' or 'seq'") from None


def _default_config() -> Config:
    n_jobs = os.environ.get("WLEARN_N_JOBS")
    if n_jobs is None:
        return Config()
    try:
        return Config(n_jobs=int(n_jobs))
    except ValueError:
        raise InvalidArgument(f"WLEARN_N_JOBS must be an integer, got {n_jobs!r}") from None


_lock = threading.Lock()
_config = _default_config()


def get_config() -> Config:
    """Return the current configuration."""
    return _config


def set_config(**kwargs) -> Config:
    """Update the global configuration and return the previous one.

    Unknown keys raise :class:`~wlearn.exceptions.InvalidArgument`.
    """
    global _config
    unknown = set(kwargs) - set(asdict(_config))
    if unknown:
        raise InvalidArgument(f"unknown configuration keys: {sorted(unknown)}")
    with _lock:
        previous = _config
        _config = replace(_config, **kwargs)
    return previous


@contextmanager
def config_context(**kwargs):
    """Temporarily change the configuration inside a ``with`` block."""
    global _config
    previous = set_config(**kwargs)
    try:
        yield get_config()
    finally:
        with _lock:
            _config = previous
