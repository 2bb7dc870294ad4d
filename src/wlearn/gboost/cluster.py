"""Sample to group assignments produced by ``WeakLearner.split``."""

from __future__ import annotations

import numpy as np

from ..exceptions import InvalidArgument


class Cluster:
    """Assignment of samples to one of ``groups`` groups (-1 = unassigned).

    Parameters
    ----------
    samples : int
        Number of samples (rows of the fold).
    groups : int
        Number of groups.
    """

    def __init__(self, samples: int, groups: int):
        self._groups = int(groups)
        self._assignment = np.full(int(samples), -1, dtype=np.int64)

    def assign(self, samples, group) -> None:
        """Assign ``samples`` (one index or an array) to ``group`` (scalar or per sample)."""
        group = np.asarray(group, dtype=np.int64)
        if group.size and (group.min() < 0 or group.max() >= self._groups):
            raise InvalidArgument(f"group index not in [0, {self._groups})")
        self._assignment[samples] = group

    def group(self, sample: int) -> int:
        return int(self._assignment[sample])

    @property
    def assignment(self) -> np.ndarray:
        return self._assignment

    def groups(self) -> int:
        return self._groups

    def samples(self) -> int:
        return self._assignment.size

    def count(self, group: int) -> int:
        return int(np.count_nonzero(self._assignment == group))

    def indices(self, group: int) -> np.ndarray:
        return np.flatnonzero(self._assignment == group)
