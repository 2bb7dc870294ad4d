"""
Composition of generators over a dataset.

:class:`DatasetGenerator` concatenates the features of several generators
into a single index space. It is the dataset view the weak learners fit on:
generated features are selected by global index, flattened into one dense
matrix, and the target is exposed as a float tensor per sample.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..exceptions import InvalidArgument, NotFittedError
from ..feature import Feature, FeatureType
from .base import MCLASS, SCALAR, SCLASS, STRUCT, feature_kind

logger = logging.getLogger(__name__)


class DatasetGenerator:
    """Features generated from a :class:`~wlearn.dataset.MemoryDataset`.

    Parameters
    ----------
    dataset : MemoryDataset
        Source dataset, only read.

    Examples
    --------
    >>> generator = DatasetGenerator(dataset)
    >>> generator.add(ScalarIdentity).add(SLog1p).fit(np.arange(dataset.samples()))
    >>> values = generator.select(0, np.arange(10))
    """

    def __init__(self, dataset):
        self.dataset = dataset
        self.generators = []
        self._fitted = False
        self._owners = np.zeros((0, 2), dtype=np.int64)
        self._column_offsets = np.zeros(1, dtype=np.int64)

    def add(self, generator_cls, *args, **kwargs) -> "DatasetGenerator":
        """Append ``generator_cls(dataset, *args, **kwargs)``; call :meth:`fit` afterwards."""
        self.generators.append(generator_cls(self.dataset, *args, **kwargs))
        self._fitted = False
        return self

    def fit(self, samples, execution=None) -> "DatasetGenerator":
        """Fit every generator on ``samples`` and rebuild the global feature index."""
        samples = np.asarray(samples, dtype=np.int64).reshape(-1)
        for generator in self.generators:
            generator.fit(samples, execution)

        owners, columns = [], [0]
        for g, generator in enumerate(self.generators):
            owners.extend((g, f) for f in range(generator.features()))
            columns.append(columns[-1] + generator.columns())
        self._owners = np.asarray(owners, dtype=np.int64).reshape(-1, 2)
        self._column_offsets = np.asarray(columns, dtype=np.int64)
        self._fitted = True
        logger.debug(
            "fitted %d generators: %d features, %d columns",
            len(self.generators), self.features(), self.columns(),
        )
        return self

    # ------------------------------------------------------------------
    # Index space
    # ------------------------------------------------------------------
    def _owner(self, feature: int):
        if not self._fitted:
            raise NotFittedError(type(self).__name__)
        if not 0 <= feature < self.features():
            raise InvalidArgument(f"generated feature index {feature} not in [0, {self.features()})")
        g, f = self._owners[feature]
        return self.generators[int(g)], int(f)

    def features(self) -> int:
        return self._owners.shape[0]

    def feature(self, feature: int) -> Feature:
        generator, local = self._owner(feature)
        return generator.feature(local)

    def columns(self) -> int:
        return int(self._column_offsets[-1])

    def column2feature(self, column: int) -> int:
        """Global generated feature owning the dense column ``column``."""
        if not 0 <= column < self.columns():
            raise InvalidArgument(f"column {column} not in [0, {self.columns()})")
        g = int(np.searchsorted(self._column_offsets, column, side="right") - 1)
        local = self.generators[g].column2feature(column - int(self._column_offsets[g]))
        first = int(np.flatnonzero(self._owners[:, 0] == g)[0])
        return first + local

    def select_stats(self) -> dict:
        """Generated feature indices grouped by kind (``sclass``, ``mclass``, ``scalar``, ``struct``)."""
        groups = {SCLASS: [], MCLASS: [], SCALAR: [], STRUCT: []}
        for feature in range(self.features()):
            groups[feature_kind(self.feature(feature))].append(feature)
        return {kind: np.asarray(indices, dtype=np.int64) for kind, indices in groups.items()}

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------
    def select(self, feature: int, samples, out: Optional[np.ndarray] = None) -> np.ndarray:
        generator, local = self._owner(feature)
        return generator.select(local, samples, out)

    def flatten(self, samples, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Dense ``(len(samples), columns())`` matrix of every generated feature."""
        if not self._fitted:
            raise NotFittedError(type(self).__name__)
        samples = np.asarray(samples, dtype=np.int64).reshape(-1)
        if out is None:
            out = np.empty((samples.size, self.columns()), dtype=np.float64)
        column = 0
        for generator in self.generators:
            column = generator.flatten(samples, out, column)
        return out

    # ------------------------------------------------------------------
    # Target
    # ------------------------------------------------------------------
    def target(self) -> Optional[Feature]:
        return self.dataset.target()

    def target_dims(self) -> tuple:
        return self.dataset.target_dims()

    def targets(self, samples) -> np.ndarray:
        """Targets of ``samples`` as ``float64 (n, dim0, dim1, dim2)``.

        Single-label targets are encoded as +1 for the label and -1 elsewhere,
        multi-label targets as ``2 * hit - 1``; missing targets are NaN.
        """
        if self.dataset.target() is None:
            raise InvalidArgument("targets are not available for unsupervised datasets")
        samples = np.asarray(samples, dtype=np.int64).reshape(-1)

        def encode(feature, data, mask):
            given = mask[samples]
            out = np.empty((samples.size,) + tuple(self.target_dims()), dtype=np.float64)
            if feature.type == FeatureType.sclass:
                out[...] = -1.0
                rows = np.flatnonzero(given)
                out[rows, data[samples][rows].astype(np.int64), 0, 0] = 1.0
            elif feature.type == FeatureType.mclass:
                out[...] = (2.0 * data[samples] - 1.0).reshape(out.shape)
            else:
                out[...] = data[samples]
            out[~given] = np.nan
            return out

        return self.dataset.visit_target(encode)

    # ------------------------------------------------------------------
    # Drop / shuffle, routed to the owning generator
    # ------------------------------------------------------------------
    def drop(self, feature: int) -> None:
        generator, local = self._owner(feature)
        generator.drop(local)

    def undrop(self) -> None:
        for generator in self.generators:
            generator.undrop()

    def shuffle(self, feature: int) -> None:
        generator, local = self._owner(feature)
        generator.shuffle(local)

    def unshuffle(self) -> None:
        for generator in self.generators:
            generator.unshuffle()

    def shuffled(self, samples, feature: int) -> np.ndarray:
        generator, local = self._owner(feature)
        return generator.shuffled(samples, local)
