"""
wlearn.histogram
================

One-dimensional histograms with pluggable bin boundaries.

Boundaries (thresholds) are either equidistant in value (ratios of the
observed range) or equidistant in rank (percentiles of the observed values).
A value equal to a threshold falls in the lower bin. Every bin keeps the
count, mean and median of the values it received; empty bins report NaN.
"""

from __future__ import annotations

import numpy as np


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def make_equidistant_ratios(bins: int) -> np.ndarray:
    """``bins - 1`` ratios splitting [0, 1] into ``bins`` equal parts."""
    bins = int(bins)
    if bins < 2:
        return np.empty(0)
    return np.linspace(1.0 / bins, 1.0 - 1.0 / bins, bins - 1)


def make_equidistant_percentiles(bins: int) -> np.ndarray:
    """``bins - 1`` percentiles splitting [0, 100] into ``bins`` equal parts."""
    return 100.0 * make_equidistant_ratios(bins)


def percentile(values, p: float) -> float:
    """Percentile ``p`` (in [0, 100]) of ``values``.

    The rank ``p * (n - 1) / 100`` is resolved by averaging the values at its
    floor and ceiling, so the median of an even-sized sample is the mean of
    its two central values.
    """
    values = np.sort(np.asarray(values, dtype=np.float64).reshape(-1))
    if values.size == 0:
        return float("nan")
    position = np.clip(p, 0.0, 100.0) * (values.size - 1) / 100.0
    lo = int(np.floor(position))
    hi = int(np.ceil(position))
    return float(0.5 * (values[lo] + values[hi]))


def median(values) -> float:
    return percentile(values, 50.0)


# -----------------------------------------------------------------------------
# Histogram
# -----------------------------------------------------------------------------
class Histogram:
    """Histogram of a set of values given its sorted thresholds.

    Parameters
    ----------
    values : array-like
        Observed values (missing values must be filtered out beforehand).
    thresholds : array-like
        Increasing bin boundaries; ``len(thresholds) + 1`` bins are created.

    Attributes
    ----------
    thresholds : np.ndarray
    counts : np.ndarray of int
    means : np.ndarray
    medians : np.ndarray
    """

    def __init__(self, values, thresholds):
        values = np.asarray(values, dtype=np.float64).reshape(-1)
        self.thresholds = np.asarray(thresholds, dtype=np.float64).reshape(-1)

        bins = self.thresholds.size + 1
        indices = np.searchsorted(self.thresholds, values, side="left")
        self.counts = np.bincount(indices, minlength=bins).astype(np.int64)
        self.means = np.full(bins, np.nan)
        self.medians = np.full(bins, np.nan)
        for b in range(bins):
            selected = values[indices == b]
            if selected.size:
                self.means[b] = selected.mean()
                self.medians[b] = median(selected)

    @classmethod
    def from_ratios(cls, values, ratios) -> "Histogram":
        """Thresholds at ``min + ratio * (max - min)`` of the observed values."""
        values = np.asarray(values, dtype=np.float64).reshape(-1)
        ratios = np.asarray(ratios, dtype=np.float64)
        if values.size == 0:
            return cls(values, np.full(ratios.size, np.nan))
        lo, hi = values.min(), values.max()
        return cls(values, lo + ratios * (hi - lo))

    @classmethod
    def from_percentiles(cls, values, percentiles) -> "Histogram":
        """Thresholds at the given percentiles of the observed values."""
        values = np.asarray(values, dtype=np.float64).reshape(-1)
        return cls(values, [percentile(values, p) for p in percentiles])

    @classmethod
    def from_thresholds(cls, values, thresholds) -> "Histogram":
        return cls(values, thresholds)

    @property
    def bins(self) -> int:
        return self.thresholds.size + 1

    def bin(self, value) -> np.ndarray:
        """Bin index of ``value`` (scalar or array)."""
        return np.searchsorted(self.thresholds, value, side="left")

    def median(self, value):
        """Median of the bin ``value`` falls in."""
        return self.medians[self.bin(value)]
