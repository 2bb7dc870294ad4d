"""
Decision stump weak learner: two outputs split by a threshold on a scalar feature.

Candidate thresholds are the midpoints between consecutive distinct sorted
values; all of them are scored in one pass with cumulative residual sums.
"""

from __future__ import annotations

import numpy as np

from .base import FeatureWeakLearner, format_table, read_field, write_field
from .table import table_outputs


class StumpWeakLearner(FeatureWeakLearner):
    """``tables_[0]`` below the threshold, ``tables_[1]`` at or above it.

    Parameters
    ----------
    mode : {"real", "discrete"}, default="real"

    Attributes
    ----------
    threshold_ : float
    """

    supported_modes = ("real", "discrete")

    def __init__(self, mode: str = "real"):
        super().__init__(mode)
        self.threshold_ = 0.0

    def _accepts(self, feature) -> bool:
        return not feature.is_discrete and feature.size == 1

    def _candidate(self, dataset, feature, values, residuals):
        order = np.argsort(values, kind="stable")
        x = values[order]
        r = residuals.reshape(values.size, -1)[order]

        # split after position i, for every i where the next value differs
        splits = np.flatnonzero(x[:-1] < x[1:])
        if splits.size == 0:
            return None

        cum1 = np.cumsum(r, axis=0)
        cum2 = np.cumsum(r * r, axis=0)
        sum1, sum2 = cum1[-1], cum2[-1]

        cnt_neg = (splits + 1).astype(np.float64)
        cnt_pos = x.size - cnt_neg
        neg1, neg2 = cum1[splits], cum2[splits]
        pos1, pos2 = sum1 - neg1, sum2 - neg2

        out_neg = table_outputs(self.mode, cnt_neg, neg1)
        out_pos = table_outputs(self.mode, cnt_pos, pos1)
        scores = (
            (cnt_neg[:, None] * out_neg * out_neg - 2.0 * out_neg * neg1 + neg2).sum(axis=1)
            + (cnt_pos[:, None] * out_pos * out_pos - 2.0 * out_pos * pos1 + pos2).sum(axis=1)
        )

        best = int(np.argmin(scores))
        split = splits[best]
        tdims = residuals.shape[1:]
        tables = np.stack([out_neg[best].reshape(tdims), out_pos[best].reshape(tdims)])
        return float(scores[best]), tables, 0.5 * (x[split] + x[split + 1])

    def _fitted_extra(self, best):
        self.threshold_ = float(best.threshold)

    def _groups(self, values):
        return np.where(values < self.threshold_, 0, 1)

    def write(self, stream) -> None:
        super().write(stream)
        write_field(stream, "d", self.threshold_)

    def read(self, stream) -> "StumpWeakLearner":
        super().read(stream)
        self.threshold_ = read_field(stream, "d")
        return self

    def _describe(self, feature) -> str:
        return (
            f"{feature.name} < {self.threshold_:.6g} -> {format_table(self.tables_[0])}\n"
            f"{feature.name} >= {self.threshold_:.6g} -> {format_table(self.tables_[1])}"
        )
