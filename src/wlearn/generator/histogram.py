"""
Histogram-median generators.

Every scalar input is discretized with a histogram built over the fit
samples, and each value is replaced by the median of the bin it falls in.
"""

from __future__ import annotations

import numpy as np

from ..histogram import Histogram, make_equidistant_percentiles, make_equidistant_ratios
from ..parallel import parallel_map
from .elemwise import ElemwiseGenerator
from .mapping import select_scalar


class HistogramMedians(ElemwiseGenerator):
    """Base class: bin boundaries are provided by ``_make_histogram``.

    Parameters
    ----------
    dataset : MemoryDataset
    features : sequence of int, optional
        Restrict to these input features.
    struct2scalar : bool, default=False
        Also map every component of structured inputs.
    bins : int, default=10
        Number of histogram bins.
    """

    prefix = ""

    def __init__(self, dataset, features=None, struct2scalar: bool = False, bins: int = 10):
        super().__init__(dataset, features)
        self.struct2scalar = struct2scalar
        self.bins = int(bins)
        self.histograms_: list[Histogram] = []

    def _make_histogram(self, values: np.ndarray) -> Histogram:
        raise NotImplementedError

    def _make_mapping(self, samples, execution):
        mapping = select_scalar(self.dataset, self.struct2scalar, self.original_features)

        def build(row):
            original, component = int(row[0]), max(int(row[1]), 0)
            values = self.dataset.visit_inputs(
                original,
                lambda feature, data, mask: data[samples][mask[samples]].reshape(-1, feature.size)[:, component],
            )
            return self._make_histogram(values.astype(np.float64))

        self.histograms_ = parallel_map(build, mapping, execution)
        return mapping

    def _describe(self, index):
        return self._make_scalar_feature(index, f"{self.prefix}[{self.bins}]")

    def _compute(self, index, samples):
        values, given = self._scalar_values(index, samples)
        medians = self.histograms_[index].median(values)
        # values falling in a bin left empty at fit time have no median
        return medians, given & np.isfinite(medians)


class RatioHistogramMedians(HistogramMedians):
    """Bins equidistant in value between the observed minimum and maximum."""

    prefix = "ratio_hist"

    def _make_histogram(self, values):
        return Histogram.from_ratios(values, make_equidistant_ratios(self.bins))


class PercentileHistogramMedians(HistogramMedians):
    """Bins holding (about) the same number of observed values."""

    prefix = "perc_hist"

    def _make_histogram(self, values):
        return Histogram.from_percentiles(values, make_equidistant_percentiles(self.bins))
