"""
Generator base class.

A generator derives new features from the input features of a
:class:`~wlearn.dataset.MemoryDataset`. ``fit`` builds its mapping table once
over a sample subset; afterwards the generated values of any samples can be
read either per feature (:meth:`Generator.select`, sparse columns with
missing sentinels) or all at once into a dense matrix
(:meth:`Generator.flatten`, missing values written as zero).

Subclasses provide the mapping (``_make_mapping``), the descriptors
(``feature``) and the raw computation (``_compute``). The base class applies
the missing-value, drop and shuffle policies uniformly.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..exceptions import InvalidArgument, NotFittedError
from ..feature import Feature, FeatureType

logger = logging.getLogger(__name__)

# select() buffers: (dtype, missing sentinel) per generated kind
SCLASS = "sclass"
MCLASS = "mclass"
SCALAR = "scalar"
STRUCT = "struct"

_SENTINELS = {
    SCLASS: (np.int32, -1),
    MCLASS: (np.int8, -1),
    SCALAR: (np.float64, np.nan),
    STRUCT: (np.float64, np.nan),
}

_KEEP, _DROP, _SHUFFLE = 0, 1, 2


def feature_kind(feature: Feature) -> str:
    if feature.type == FeatureType.sclass:
        return SCLASS
    if feature.type == FeatureType.mclass:
        return MCLASS
    return SCALAR if feature.size == 1 else STRUCT


def select_shape(feature: Feature, samples: int) -> tuple:
    kind = feature_kind(feature)
    if kind == SCLASS or kind == SCALAR:
        return (samples,)
    if kind == MCLASS:
        return (samples, feature.classes)
    return (samples,) + tuple(feature.dims)


def flatten_width(feature: Feature) -> int:
    """Dense columns taken by ``feature``: one per class or per struct component."""
    return feature.classes if feature.is_discrete else feature.size


class Generator:
    """Base class of the feature generators.

    Parameters
    ----------
    dataset : MemoryDataset
        Dataset whose inputs are transformed. It is only read.
    features : sequence of int, optional
        Restrict the generator to these input feature indices.
    """

    def __init__(self, dataset, features=None):
        self.dataset = dataset
        self.original_features = None if features is None else [int(f) for f in features]
        self._mapping: Optional[np.ndarray] = None
        self._features: list[Feature] = []
        self._offsets = np.zeros(1, dtype=np.int64)
        self._flags = np.zeros(0, dtype=np.uint8)

    # ------------------------------------------------------------------
    # To implement
    # ------------------------------------------------------------------
    def _make_mapping(self, samples: np.ndarray, execution) -> np.ndarray:
        raise NotImplementedError

    def _describe(self, index: int) -> Feature:
        raise NotImplementedError

    def _compute(self, index: int, samples: np.ndarray):
        """Return ``(values, given)`` for generated feature ``index``.

        ``values`` has the select buffer dtype and shape of the feature kind;
        entries where ``given`` is False are ignored.
        """
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------
    def fit(self, samples, execution=None) -> np.ndarray:
        """Build the mapping table over ``samples`` and reset the drop/shuffle flags.

        Refitting starts from scratch, so fitting twice on the same samples
        gives the same mapping.
        """
        samples = np.asarray(samples, dtype=np.int64).reshape(-1)
        if samples.size and (samples.min() < 0 or samples.max() >= self.dataset.samples()):
            raise InvalidArgument(f"sample indices not in [0, {self.dataset.samples()})")

        self._mapping = self._make_mapping(samples, execution)
        self._features = [self._describe(i) for i in range(self._mapping.shape[0])]
        widths = [flatten_width(f) for f in self._features]
        self._offsets = np.concatenate([[0], np.cumsum(widths, dtype=np.int64)]).astype(np.int64)
        self._flags = np.zeros(len(self._features), dtype=np.uint8)
        logger.debug("%s: fitted %d features over %d samples", type(self).__name__, self.features(), samples.size)
        return self._mapping

    @property
    def fitted(self) -> bool:
        return self._mapping is not None

    def _check_fitted(self):
        if self._mapping is None:
            raise NotFittedError(type(self).__name__)

    def _check(self, index: int):
        self._check_fitted()
        if not 0 <= index < len(self._features):
            raise InvalidArgument(
                f"{type(self).__name__}: generated feature index {index} not in [0, {len(self._features)})"
            )

    # ------------------------------------------------------------------
    # Descriptors
    # ------------------------------------------------------------------
    @property
    def mapping(self) -> np.ndarray:
        self._check_fitted()
        return self._mapping

    def features(self) -> int:
        """Number of generated features."""
        return 0 if self._mapping is None else self._mapping.shape[0]

    def feature(self, index: int) -> Feature:
        self._check(index)
        return self._features[index]

    def columns(self) -> int:
        """Number of dense columns written by :meth:`flatten`."""
        return int(self._offsets[-1])

    def column2feature(self, column: int) -> int:
        """Generated feature owning the dense column ``column``."""
        self._check_fitted()
        if not 0 <= column < self.columns():
            raise InvalidArgument(f"column {column} not in [0, {self.columns()})")
        return int(np.searchsorted(self._offsets, column, side="right") - 1)

    # ------------------------------------------------------------------
    # Drop / shuffle policies
    # ------------------------------------------------------------------
    def drop(self, index: int) -> None:
        """Replace the values of ``index`` with fillers, keeping its columns."""
        self._check(index)
        self._flags[index] = _DROP

    def undrop(self) -> None:
        self._flags[self._flags == _DROP] = _KEEP

    def shuffle(self, index: int) -> None:
        """Read the values of ``index`` from a fixed permutation of the samples."""
        self._check(index)
        self._flags[index] = _SHUFFLE

    def unshuffle(self) -> None:
        self._flags[self._flags == _SHUFFLE] = _KEEP

    def shuffled(self, samples, index: int) -> np.ndarray:
        """The permutation of ``samples`` used for a shuffled feature.

        The permutation only depends on the feature index and the number of
        samples, so repeated calls return the same result.
        """
        self._check(index)
        samples = np.asarray(samples, dtype=np.int64).reshape(-1)
        rng = np.random.default_rng(index)
        return samples[rng.permutation(samples.size)]

    def _source(self, index: int, samples: np.ndarray) -> np.ndarray:
        if self._flags[index] == _SHUFFLE:
            return self.shuffled(samples, index)
        return samples

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------
    def select(self, index: int, samples, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Generated values of feature ``index`` for ``samples``.

        Missing values are NaN for continuous features and -1 for categorical
        ones; a dropped feature is entirely missing.

        Parameters
        ----------
        index : int
            Generated feature index.
        samples : array-like of int
            Dataset sample indices.
        out : np.ndarray, optional
            Buffer of the right dtype and shape to write into.

        Returns
        -------
        np.ndarray
            ``int32 (n,)`` for single-label, ``int8 (n, classes)`` for
            multi-label, ``float64 (n,)`` for scalar and
            ``float64 (n, dim0, dim1, dim2)`` for structured features.
        """
        self._check(index)
        samples = np.asarray(samples, dtype=np.int64).reshape(-1)
        feature = self._features[index]
        dtype, sentinel = _SENTINELS[feature_kind(feature)]
        shape = select_shape(feature, samples.size)
        if out is None:
            out = np.empty(shape, dtype=dtype)
        elif out.shape != shape or out.dtype != dtype:
            raise InvalidArgument(
                f"select buffer for <{feature.name}> must be {np.dtype(dtype)} {shape}, "
                f"got {out.dtype} {out.shape}"
            )

        if self._flags[index] == _DROP:
            out[...] = sentinel
            return out

        values, given = self._compute(index, self._source(index, samples))
        out[...] = values
        out[~given] = sentinel
        return out

    def flatten(self, samples, out: np.ndarray, column: int) -> int:
        """Write every generated feature into ``out`` starting at ``column``.

        Single-label features take one column per class (+1 for the label,
        -1 otherwise), multi-label features one column per class
        (``2 * hit - 1``), continuous features one column per component.
        Missing values and dropped features are written as zero.

        Returns
        -------
        int
            The column following the last one written.
        """
        self._check_fitted()
        samples = np.asarray(samples, dtype=np.int64).reshape(-1)
        if out.ndim != 2 or out.shape[0] != samples.size or column + self.columns() > out.shape[1]:
            raise InvalidArgument(
                f"flatten buffer of shape {out.shape} cannot hold {self.columns()} columns at {column}"
            )

        for index, feature in enumerate(self._features):
            begin = column + int(self._offsets[index])
            block = out[:, begin:begin + flatten_width(feature)]
            if self._flags[index] == _DROP:
                block[...] = 0.0
                continue

            values, given = self._compute(index, self._source(index, samples))
            kind = feature_kind(feature)
            if kind == SCLASS:
                block[...] = -1.0
                rows = np.flatnonzero(given)
                block[rows, values[rows]] = 1.0
            elif kind == MCLASS:
                block[...] = 2.0 * values - 1.0
            else:
                block[...] = values.reshape(samples.size, -1)
            block[~given] = 0.0

        return column + self.columns()
