"""
Mapping tables of generated features.

A mapping table is an ``int64`` array with one row per generated feature.
Elementwise generators use six columns::

    (original, component, classes, dim0, dim1, dim2)

where ``original`` is the input feature index in the dataset, ``component``
selects a struct element or a class (``-1`` means the whole value), ``classes``
is the label count of categorical inputs and ``dim*`` the shape of the
selected value. Pairwise generators concatenate two such triples per row.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from ..exceptions import InvalidArgument
from ..feature import FeatureType

MAPPING_COLUMNS = 6


def _candidates(dataset, features: Optional[Sequence[int]]):
    if features is None:
        return range(dataset.features())
    indices = [int(f) for f in features]
    for index in indices:
        if not 0 <= index < dataset.features():
            raise InvalidArgument(f"input feature index {index} not in [0, {dataset.features()})")
    return indices


def _table(rows) -> np.ndarray:
    if not rows:
        return np.empty((0, MAPPING_COLUMNS), dtype=np.int64)
    return np.asarray(rows, dtype=np.int64)


def select_scalar(dataset, struct2scalar: bool = False, features=None) -> np.ndarray:
    """Map every scalar input (and every struct component if ``struct2scalar``)."""
    rows = []
    for index in _candidates(dataset, features):
        feature = dataset.feature(index)
        if feature.is_discrete:
            continue
        if feature.size == 1:
            rows.append((index, -1, 0, 1, 1, 1))
        elif struct2scalar:
            rows.extend((index, c, 0, 1, 1, 1) for c in range(feature.size))
    return _table(rows)


def select_struct(dataset, features=None) -> np.ndarray:
    """Map every structured (more than one component) continuous input."""
    rows = []
    for index in _candidates(dataset, features):
        feature = dataset.feature(index)
        if not feature.is_discrete and feature.size > 1:
            rows.append((index, -1, 0) + tuple(feature.dims))
    return _table(rows)


def _select_discrete(dataset, type: FeatureType, binary: bool, features) -> np.ndarray:
    rows = []
    for index in _candidates(dataset, features):
        feature = dataset.feature(index)
        if feature.type != type:
            continue
        if binary:
            rows.extend((index, c, feature.classes, 1, 1, 1) for c in range(feature.classes))
        else:
            rows.append((index, -1, feature.classes, 1, 1, 1))
    return _table(rows)


def select_sclass(dataset, sclass2binary: bool = False, features=None) -> np.ndarray:
    """Map every single-label input (one row per class if ``sclass2binary``)."""
    return _select_discrete(dataset, FeatureType.sclass, sclass2binary, features)


def select_mclass(dataset, mclass2binary: bool = False, features=None) -> np.ndarray:
    """Map every multi-label input (one row per class if ``mclass2binary``)."""
    return _select_discrete(dataset, FeatureType.mclass, mclass2binary, features)


def make_pairwise(mapping: np.ndarray) -> np.ndarray:
    """All unordered pairs (self-pairs included) of an elementwise mapping.

    Row ``k`` holds the pair ``(i, j), i <= j`` at row-major position ``k``,
    giving ``n * (n + 1) / 2`` rows of twelve columns.
    """
    mapping = np.asarray(mapping, dtype=np.int64).reshape(-1, MAPPING_COLUMNS)
    first, second = np.triu_indices(mapping.shape[0])
    return np.hstack([mapping[first], mapping[second]])
