"""
Table weak learner: one output per label of a single-label feature.

The output of a label is the mean residual of its samples (``"real"`` mode)
or the sign of their summed residual (``"discrete"`` mode).
"""

from __future__ import annotations

import numpy as np

from ..exceptions import InvalidArgument
from ..feature import FeatureType
from .base import FeatureWeakLearner, format_table


def table_outputs(mode: str, cnt: np.ndarray, res1: np.ndarray) -> np.ndarray:
    """Per-bin outputs from the bin counts and residual sums."""
    if mode == "real":
        shape = (-1,) + (1,) * (res1.ndim - 1)
        return res1 / np.maximum(cnt, 1.0).reshape(shape)
    return np.sign(res1)


def table_score(cnt: np.ndarray, res1: np.ndarray, res2: np.ndarray, outputs: np.ndarray) -> float:
    """Residual sum of squares ``sum(cnt * o^2 - 2 * o * res1 + res2)``."""
    shape = (-1,) + (1,) * (res1.ndim - 1)
    return float((cnt.reshape(shape) * outputs * outputs - 2.0 * outputs * res1 + res2).sum())


class TableWeakLearner(FeatureWeakLearner):
    """Look-up table on the best single-label feature.

    Parameters
    ----------
    mode : {"real", "discrete"}, default="real"
    """

    supported_modes = ("real", "discrete")

    def _accepts(self, feature) -> bool:
        return feature.type == FeatureType.sclass

    def _candidate(self, dataset, feature, values, residuals):
        labels = dataset.feature(feature).classes
        if values.max() >= labels:
            raise InvalidArgument(
                f"table weak learner: invalid feature value {values.max()}, expecting [0, {labels})"
            )
        r = residuals.reshape(values.size, -1)
        cnt = np.bincount(values, minlength=labels).astype(np.float64)
        res1 = np.zeros((labels, r.shape[1]))
        res2 = np.zeros((labels, r.shape[1]))
        np.add.at(res1, values, r)
        np.add.at(res2, values, r * r)

        outputs = table_outputs(self.mode, cnt, res1)
        score = table_score(cnt, res1, res2, outputs)
        return score, outputs.reshape((labels,) + residuals.shape[1:])

    def _groups(self, values):
        if values.size and values.max() >= self.tables_.shape[0]:
            raise InvalidArgument(
                f"table weak learner: invalid feature value {values.max()}, "
                f"expecting [0, {self.tables_.shape[0]})"
            )
        return values.astype(np.int64)

    def _describe(self, feature) -> str:
        rows = [
            f"{feature.name} == {label or index} -> {format_table(self.tables_[index])}"
            for index, label in enumerate(feature.labels)
        ]
        return "\n".join(rows)
