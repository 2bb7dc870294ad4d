"""
Affine weak learners: ``a * phi(x) + b`` on a single scalar feature.

``phi`` is a fixed reparametrization of the feature value (identity, signed
log, sine or cosine). The coefficients solve the normal equations of the
least-squares problem from the accumulated sums (count, sum phi, sum phi^2,
sum r, sum r * phi, sum r^2), one pair per target component.
"""

from __future__ import annotations

import numpy as np

from ..exceptions import InvalidArgument
from .base import FeatureWeakLearner, format_table

FUNCTIONS = {
    "lin": lambda x: x,
    "log": lambda x: np.sign(x) * np.log1p(np.abs(x)),
    "sin": np.sin,
    "cos": np.cos,
}


def _affine_fit(x: np.ndarray, residuals: np.ndarray):
    """Closed-form ``(a, b, score)`` of ``residuals ~ a * x + b``; None if ``x`` is constant."""
    cnt = float(x.size)
    x1 = x.sum()
    x2 = np.dot(x, x)
    r = residuals.reshape(x.size, -1)
    r1 = r.sum(axis=0)
    rx = x @ r
    r2 = (r * r).sum(axis=0)

    denominator = x2 * cnt - x1 * x1
    if not denominator > np.finfo(np.float64).eps * x2 * cnt:
        return None
    a = (rx * cnt - x1 * r1) / denominator
    b = (r1 * x2 - x1 * rx) / denominator
    score = (a * a * x2 + b * b * cnt + r2 + 2.0 * a * b * x1 - 2.0 * b * r1 - 2.0 * a * rx).sum()
    return a, b, float(score)


class AffineWeakLearner(FeatureWeakLearner):
    """``a * fun(x) + b`` fitted on the best scalar feature.

    Parameters
    ----------
    mode : {"real"}, default="real"
        Only real outputs are supported.
    fun : {"lin", "log", "sin", "cos"}, default="lin"
        Reparametrization of the feature value. ``"log"`` is the signed
        ``sign(x) * log(1 + |x|)``.
    """

    def __init__(self, mode: str = "real", fun: str = "lin"):
        super().__init__(mode)
        self.fun = fun

    def _phi(self, values):
        if self.fun not in FUNCTIONS:
            raise InvalidArgument(f"unknown affine function {self.fun!r}, expecting one of {sorted(FUNCTIONS)}")
        return FUNCTIONS[self.fun](values)

    def _accepts(self, feature) -> bool:
        return not feature.is_discrete and feature.size == 1

    def _candidate(self, dataset, feature, values, residuals):
        fitted = _affine_fit(self._phi(values), residuals)
        if fitted is None:
            return None
        a, b, score = fitted
        tdims = residuals.shape[1:]
        return score, np.stack([a.reshape(tdims), b.reshape(tdims)])

    def _groups(self, values):
        return np.zeros(values.size, dtype=np.int64)

    def _apply(self, values):
        x = self._phi(values).reshape((-1,) + (1,) * (self.tables_.ndim - 1))
        return self.tables_[0] * x + self.tables_[1]

    def groups(self) -> int:
        return 1

    def _describe(self, feature) -> str:
        return f"{format_table(self.tables_[0])} * {self.fun}({feature.name}) + {format_table(self.tables_[1])}"


class LinearWeakLearner(AffineWeakLearner):
    """``a * x + b`` fitted on the best scalar feature."""

    def __init__(self, mode: str = "real"):
        super().__init__(mode, fun="lin")
