"""
Weak learner base classes.

A weak learner is fit on the negative gradients of a loss (the residuals) of
one fold of a :class:`~wlearn.generator.DatasetGenerator`. Every candidate
generated feature is tried (see :func:`wlearn.parallel.sweep`) and the one
with the lowest residual sum of squares is kept, together with a small
coefficient table.

Missing feature values are skipped while fitting and predicted as zero.
"""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass
from typing import Optional

import numpy as np
from sklearn.base import BaseEstimator

from ..dataset import fold_samples
from ..exceptions import IncompatibleDataset, InvalidArgument, NotFittedError
from ..parallel import min_reduce, sweep
from .cluster import Cluster

logger = logging.getLogger(__name__)

MODES = ("real", "discrete")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
@dataclass
class Accumulator:
    """Best candidate seen by one worker."""

    feature: int = -1
    score: float = math.inf
    tables: Optional[np.ndarray] = None
    threshold: float = 0.0

    def update(self, feature: int, score: float, tables: np.ndarray, threshold: float = 0.0) -> None:
        if score < self.score:
            self.feature = feature
            self.score = score
            self.tables = tables
            self.threshold = threshold


def prepare_fit(dataset, fold, gradients, indices):
    """Validate the fit inputs; return fold samples, residuals and fit positions.

    Residuals are the negative gradients, shape ``(len(fold), *target_dims)``.
    """
    samples = fold_samples(fold)
    tdims = tuple(dataset.target_dims())
    gradients = np.asarray(gradients, dtype=np.float64)
    if gradients.shape != (samples.size,) + tdims:
        raise InvalidArgument(
            f"gradients of shape {gradients.shape} do not match the fold {(samples.size,) + tdims}"
        )
    if indices is None:
        indices = np.arange(samples.size)
    indices = np.asarray(indices, dtype=np.int64).reshape(-1)
    if indices.size and (indices.min() < 0 or indices.max() >= samples.size):
        raise InvalidArgument(f"fit indices not in [0, {samples.size})")
    return samples, -gradients, indices


def write_field(stream, fmt: str, value) -> None:
    stream.write(struct.pack("<" + fmt, value))


def read_field(stream, fmt: str):
    size = struct.calcsize("<" + fmt)
    data = stream.read(size)
    if len(data) != size:
        raise InvalidArgument("weak learner: failed to read from stream")
    return struct.unpack("<" + fmt, data)[0]


# -----------------------------------------------------------------------------
# Base classes
# -----------------------------------------------------------------------------
class WeakLearner(BaseEstimator):
    """Common interface of the weak learners.

    Parameters
    ----------
    mode : {"real", "discrete"}, default="real"
        ``"real"`` outputs fitted real values, ``"discrete"`` only their sign.
        Not every learner supports both.
    """

    supported_modes = ("real",)

    def __init__(self, mode: str = "real"):
        self.mode = mode

    def _check_mode(self) -> None:
        if self.mode not in self.supported_modes:
            raise InvalidArgument(f"{type(self).__name__}: unhandled weak-learner mode {self.mode!r}")

    def fit(self, dataset, fold, gradients, indices=None, execution=None) -> float:
        raise NotImplementedError

    def predict(self, dataset, fold, out=None) -> np.ndarray:
        raise NotImplementedError

    def split(self, dataset, fold, indices=None) -> Cluster:
        raise NotImplementedError

    def scale(self, vector) -> None:
        raise NotImplementedError

    def features(self) -> np.ndarray:
        raise NotImplementedError

    def odim(self) -> tuple:
        raise NotImplementedError

    def compatible(self, dataset) -> None:
        raise NotImplementedError

    def write(self, stream) -> None:
        write_field(stream, "i", MODES.index(self.mode) if self.mode in MODES else -1)

    def read(self, stream) -> "WeakLearner":
        code = read_field(stream, "i")
        if not 0 <= code < len(MODES):
            raise InvalidArgument(f"weak learner: invalid mode code {code} in stream")
        self.mode = MODES[code]
        return self

    @staticmethod
    def _output(out, shape) -> np.ndarray:
        if out is None:
            return np.zeros(shape, dtype=np.float64)
        if out.shape != shape:
            raise InvalidArgument(f"prediction buffer must be of shape {shape}, got {out.shape}")
        out[...] = 0.0
        return out


class FeatureWeakLearner(WeakLearner):
    """Weak learner using a single generated feature and a coefficient table.

    Attributes
    ----------
    feature_ : int
        Selected generated feature, -1 if nothing was fit.
    tables_ : np.ndarray
        ``(groups, *target_dims)`` coefficients.
    labels_ : int
        Label count of the selected feature (0 for continuous features).
    score_ : float
        Residual sum of squares of the last fit.
    """

    def __init__(self, mode: str = "real"):
        super().__init__(mode)
        self.feature_ = -1
        self.tables_ = np.zeros((0, 0, 0, 0))
        self.labels_ = 0
        self.score_ = math.inf

    # ------------------------------------------------------------------
    # To implement
    # ------------------------------------------------------------------
    def _candidate(self, dataset, feature, values, residuals):
        """Fit one feature on its given values; return ``(score, tables[, threshold])`` or None."""
        raise NotImplementedError

    def _accepts(self, feature) -> bool:
        """Whether a generated feature descriptor is a candidate."""
        raise NotImplementedError

    def _groups(self, values: np.ndarray) -> np.ndarray:
        """Group (table row) of every given value."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------
    def fit(self, dataset, fold, gradients, indices=None, execution=None) -> float:
        """Select the best feature and its coefficients.

        Parameters
        ----------
        dataset : DatasetGenerator
            Fitted generator over the training data.
        fold : Fold or array-like of int
            Samples the ``gradients`` rows refer to.
        gradients : np.ndarray
            ``(len(fold), *target_dims)`` loss gradients.
        indices : array-like of int, optional
            Positions within the fold used for fitting (all by default).
        execution : {"par", "seq"}, optional
            Run the feature sweep on several workers or on one.

        Returns
        -------
        float
            Residual sum of squares of the chosen feature, ``inf`` when no
            feature had any given value (the learner is left empty).

        Raises
        ------
        InvalidArgument
            If ``mode`` is not supported or the inputs are inconsistent.
        """
        self._check_mode()
        samples, residuals, indices = prepare_fit(dataset, fold, gradients, indices)
        fit_samples = samples[indices]
        fit_residuals = residuals[indices]

        def visit(accumulator, feature):
            if not self._accepts(dataset.feature(feature)):
                return
            values = dataset.select(feature, fit_samples)
            given = self._given(values)
            if not np.any(given):
                return
            result = self._candidate(dataset, feature, values[given], fit_residuals[given])
            if result is not None:
                accumulator.update(feature, *result)

        best = min_reduce(sweep(dataset.features(), Accumulator, visit, execution))
        if best.feature < 0:
            logger.warning("%s: no feature could be fit", type(self).__name__)
            self._set(-1, np.zeros((0,) + tuple(dataset.target_dims())), 0)
            self.score_ = math.inf
            return self.score_

        self._set(best.feature, best.tables, dataset.feature(best.feature).classes)
        self._fitted_extra(best)
        self.score_ = float(best.score)
        logger.debug(
            "%s: selected feature %d <%s> with score %.6g",
            type(self).__name__, best.feature, dataset.feature(best.feature).name, best.score,
        )
        return self.score_

    def _fitted_extra(self, best: Accumulator) -> None:
        pass

    def _set(self, feature: int, tables: np.ndarray, labels: int) -> None:
        self.feature_ = int(feature)
        self.tables_ = np.asarray(tables, dtype=np.float64)
        self.labels_ = int(labels)

    @staticmethod
    def _given(values: np.ndarray) -> np.ndarray:
        if np.issubdtype(values.dtype, np.floating):
            return np.isfinite(values)
        return values >= 0

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def compatible(self, dataset) -> None:
        """Check the learner can be applied to ``dataset``.

        Raises
        ------
        IncompatibleDataset
            If the learner is empty, or the target shape, the feature index
            or the feature label count differ from the ones seen at fit time.
        """
        if self.tables_.shape[0] == 0 or self.feature_ < 0:
            raise IncompatibleDataset(f"{type(self).__name__}: empty weak learner")
        if (
            self.odim() != tuple(dataset.target_dims())
            or self.feature_ >= dataset.features()
            or dataset.feature(self.feature_).classes != self.labels_
        ):
            raise IncompatibleDataset(f"{type(self).__name__}: mis-matching dataset")

    def _evaluate(self, dataset, fold, indices=None):
        self.compatible(dataset)
        samples = fold_samples(fold)
        positions = np.arange(samples.size) if indices is None else np.asarray(indices, dtype=np.int64)
        values = dataset.select(self.feature_, samples[positions])
        given = self._given(values)
        return samples, positions[given], values[given]

    def predict(self, dataset, fold, out=None) -> np.ndarray:
        """Outputs ``(len(fold), *odim)``; samples with a missing value get zero."""
        samples, positions, values = self._evaluate(dataset, fold)
        out = self._output(out, (samples.size,) + self.odim())
        out[positions] = self._apply(values)
        return out

    def _apply(self, values: np.ndarray) -> np.ndarray:
        return self.tables_[self._groups(values)]

    def split(self, dataset, fold, indices=None) -> Cluster:
        """Group (table row) of the fold samples at ``indices``; missing values stay unassigned."""
        samples, positions, values = self._evaluate(dataset, fold, indices)
        cluster = Cluster(samples.size, self.groups())
        cluster.assign(positions, self._groups(values))
        return cluster

    def scale(self, vector) -> None:
        """Multiply the coefficient table by one factor, or one factor per group."""
        vector = np.asarray(vector, dtype=np.float64).reshape(-1)
        if vector.size not in (1, self.groups()) or not np.all(np.isfinite(vector)):
            raise InvalidArgument(
                f"{type(self).__name__}: invalid scale vector of size {vector.size} "
                f"for {self.groups()} groups"
            )
        if vector.size == 1:
            self.tables_ = self.tables_ * vector[0]
            return
        factors = vector.reshape((-1,) + (1,) * (self.tables_.ndim - 1))
        self.tables_ = self.tables_ * factors

    def groups(self) -> int:
        """Number of groups (clusters) the learner splits samples into."""
        return self.tables_.shape[0]

    def features(self) -> np.ndarray:
        return np.asarray([self.feature_], dtype=np.int64)

    def odim(self) -> tuple:
        return tuple(self.tables_.shape[1:])

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def write(self, stream) -> None:
        super().write(stream)
        write_field(stream, "q", self.feature_)
        write_field(stream, "q", self.labels_)
        np.save(stream, self.tables_, allow_pickle=False)

    def read(self, stream) -> "FeatureWeakLearner":
        super().read(stream)
        self.feature_ = read_field(stream, "q")
        self.labels_ = read_field(stream, "q")
        self.tables_ = np.load(stream, allow_pickle=False)
        return self

    # ------------------------------------------------------------------
    # Rule export
    # ------------------------------------------------------------------
    def describe(self, dataset) -> str:
        """Human readable rule, e.g. ``"3.5 * lin(x[0]) + -7.1"`` for an affine learner."""
        if self.feature_ < 0:
            raise NotFittedError(type(self).__name__)
        return self._describe(dataset.feature(self.feature_))

    def _describe(self, feature) -> str:
        raise NotImplementedError


def format_table(row: np.ndarray) -> str:
    """Compact text of one table row (a scalar when the target is scalar)."""
    row = np.asarray(row)
    if row.size == 1:
        return f"{float(row.reshape(-1)[0]):.6g}"
    return np.array2string(row.reshape(-1), precision=6, separator=",")
