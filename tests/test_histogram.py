import numpy as np

from wlearn import Histogram
from wlearn.histogram import make_equidistant_percentiles, make_equidistant_ratios, median, percentile


def test_equidistant_ratios():
    np.testing.assert_allclose(make_equidistant_ratios(4), [0.25, 0.5, 0.75])
    np.testing.assert_allclose(make_equidistant_percentiles(2), [50.0])
    assert make_equidistant_ratios(1).size == 0


def test_percentile_averages_floor_and_ceil_ranks():
    assert median([3.0, 1.0, 2.0]) == 2.0
    assert median([4.0, 1.0, 3.0, 2.0]) == 2.5
    assert percentile([0.0, 10.0], 0.0) == 0.0
    assert percentile([0.0, 10.0], 100.0) == 10.0
    assert np.isnan(percentile([], 50.0))


def test_histogram_from_ratios():
    values = np.arange(11, dtype=np.float64)
    hist = Histogram.from_ratios(values, [0.15, 0.55, 0.85])
    np.testing.assert_allclose(hist.thresholds, [1.5, 5.5, 8.5])
    np.testing.assert_array_equal(hist.counts, [2, 4, 3, 2])
    np.testing.assert_allclose(hist.medians, [0.5, 3.5, 7.0, 9.5])
    np.testing.assert_allclose(hist.means, [0.5, 3.5, 7.0, 9.5])


def test_histogram_equidistant_bins():
    values = np.arange(11, dtype=np.float64)
    hist = Histogram.from_ratios(values, make_equidistant_ratios(4))
    assert hist.bins == 4
    np.testing.assert_allclose(hist.thresholds, [2.5, 5.0, 7.5])
    np.testing.assert_array_equal(hist.counts, [3, 3, 2, 3])
    np.testing.assert_allclose(hist.medians, [1.0, 4.0, 6.5, 9.0])

    # a value equal to a threshold falls in the lower bin
    assert hist.bin(2) == 0
    assert hist.bin(3) == 1
    assert hist.bin(5) == 1
    assert hist.bin(6) == 2
    assert hist.bin(8) == 3
    assert hist.bin(11) == 3
    np.testing.assert_allclose(hist.median(np.array([-1.0, 4.2, 100.0])), [1.0, 4.0, 9.0])


def test_histogram_percentiles_follow_ranks():
    values = [0.0, 1.0, 2.0, 3.0, 100.0]
    by_rank = Histogram.from_percentiles(values, make_equidistant_percentiles(2))
    np.testing.assert_allclose(by_rank.thresholds, [2.0])
    np.testing.assert_allclose(by_rank.medians, [1.0, 51.5])

    by_value = Histogram.from_ratios(values, make_equidistant_ratios(2))
    np.testing.assert_allclose(by_value.thresholds, [50.0])
    np.testing.assert_allclose(by_value.medians, [1.5, 100.0])


def test_empty_bins_report_nan():
    hist = Histogram.from_thresholds([0.0, 1.0, 10.0], [2.0, 5.0])
    np.testing.assert_array_equal(hist.counts, [2, 0, 1])
    assert np.isnan(hist.medians[1])
    assert np.isnan(hist.means[1])
