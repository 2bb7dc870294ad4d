import numpy as np
import pytest

from wlearn import Feature, FeatureType, MemoryDataset, InvalidArgument, TaskType, split_folds
from wlearn.storage import storage_dtype


def _make_features():
    return [
        Feature("mclass3").mclass(["m0", "m1", "m2"]),
        Feature("sclass2").sclass(["s0", "s1"]),
        Feature("f32").scalar(FeatureType.float32),
        Feature("u8s").scalar(FeatureType.uint8, dims=(2, 1, 2)),
        Feature("f64").scalar(FeatureType.float64),
    ]


def _make_dataset(samples=10, target=None):
    ds = MemoryDataset()
    ds.resize(samples, _make_features(), target)
    for s in range(0, samples, 3):
        ds.set(s, 0, [s % 2, 1 - (s % 2), int(s % 6 == 0)])
    for s in range(samples):
        ds.set(s, 1, 0 if s % 3 == 0 else 1)
        ds.set(s, 2, s)
        ds.set(s, 4, 1 - s)
    for s in range(0, samples, 2):
        ds.set(s, 3, np.array([s + 1, s, s, s]).reshape(2, 1, 2))
    return ds


def test_feature_equality_is_structural():
    a = Feature("x").scalar(FeatureType.float32)
    b = Feature("x").scalar(FeatureType.float32)
    assert a == b
    assert a != Feature("x").scalar(FeatureType.float64)
    assert a != Feature("x").scalar(FeatureType.float32).optional()
    assert Feature("c").sclass(["a", "b"]) != Feature("c").sclass(["a", "c"])


def test_feature_set_label_fills_empty_slots():
    feature = Feature("c").sclass(2)
    assert feature.set_label("red") == 0
    assert feature.set_label("blue") == 1
    assert feature.set_label("red") == 0
    assert feature.set_label("green") is None
    assert feature.set_label("") is None
    assert feature.labels == ["red", "blue"]


def test_feature_dims_rank():
    assert Feature("x").scalar(FeatureType.float32, dims=(28, 28)).dims == (28, 28, 1)
    with pytest.raises(InvalidArgument):
        Feature("x").scalar(FeatureType.float32, dims=(2, 2, 2, 2))
    with pytest.raises(InvalidArgument):
        Feature("x").scalar(FeatureType.sclass)


def test_storage_dtype_is_minimal():
    assert storage_dtype(Feature("a").sclass(255)) == np.uint8
    assert storage_dtype(Feature("a").sclass(256)) == np.uint16
    assert storage_dtype(Feature("a").sclass(65535)) == np.uint16
    with pytest.raises(InvalidArgument):
        storage_dtype(Feature("a").sclass(65536))
    assert storage_dtype(Feature("a").mclass(3)) == np.uint8
    assert storage_dtype(Feature("a").scalar(FeatureType.int16)) == np.int16


def test_everything_starts_missing():
    ds = MemoryDataset()
    ds.resize(4, _make_features())
    for s in range(4):
        for f in range(5):
            assert ds.missing(s, f)
            assert ds.get(s, f) is None


def test_missing_value_round_trip():
    ds = _make_dataset()
    # never written: every third sample has multi-label hits, every second a struct
    assert ds.missing(1, 0) and ds.get(1, 0) is None
    assert ds.missing(1, 3) and ds.get(1, 3) is None

    assert not ds.missing(0, 0)
    np.testing.assert_array_equal(ds.get(0, 0), [0, 1, 1])
    assert ds.get(4, 1) == 1
    assert ds.get(3, 1) == 0
    assert ds.get(7, 2) == np.float32(7)
    assert ds.get(7, 4) == -6.0
    np.testing.assert_array_equal(ds.get(4, 3).reshape(-1), [5, 4, 4, 4])

    ds.unset(7, 2)
    assert ds.missing(7, 2)
    assert ds.get(7, 2) is None


def test_set_accepts_label_names_and_numeric_strings():
    ds = _make_dataset()
    ds.set(2, 1, "s0")
    assert ds.get(2, 1) == 0
    ds.set(2, 1, "1")
    assert ds.get(2, 1) == 1
    ds.set(2, 2, "2.5")
    assert ds.get(2, 2) == np.float32(2.5)


@pytest.mark.parametrize(
    "sample, feature, value",
    [
        (10, 2, 1.0),        # sample out of range
        (0, 5, 1.0),         # feature out of range
        (0, 1, 2),           # label out of range
        (0, 1, "unknown"),   # unknown label
        (0, 0, [1, 0]),      # wrong number of hits
        (0, 3, [1, 2, 3]),   # wrong struct size
        (0, 2, np.nan),      # NaN is reserved for missing
        (0, 3, [300, 0, 0, 0]),  # out of uint8 range
    ],
)
def test_invalid_set(sample, feature, value):
    ds = _make_dataset()
    with pytest.raises(InvalidArgument):
        ds.set(sample, feature, value)


def test_optional_target_is_rejected():
    features = _make_features()
    features[2].optional()
    with pytest.raises(InvalidArgument):
        MemoryDataset().resize(10, features, target=2)


def test_inputs_exclude_target():
    ds = _make_dataset(target=1)
    assert ds.features() == 4
    assert [ds.feature(i).name for i in range(4)] == ["mclass3", "f32", "u8s", "f64"]
    assert ds.target().name == "sclass2"
    assert ds.target_dims() == (2, 1, 1)
    assert ds.task_type == TaskType.sclassification
    with pytest.raises(InvalidArgument):
        ds.feature(4)


def test_visit_inputs_gives_typed_view_and_mask():
    ds = _make_dataset(target=1)

    def check(feature, data, mask):
        assert feature.name == "u8s"
        assert data.dtype == np.uint8
        assert data.shape == (10, 2, 1, 2)
        np.testing.assert_array_equal(mask, np.arange(10) % 2 == 0)
        return data[2].reshape(-1).tolist()

    assert ds.visit_inputs(2, check) == [3, 2, 2, 2]


def test_split_folds_partitions_samples():
    train, valid, test = split_folds(100, valid_size=0.2, test_size=0.1, random_state=0)
    assert (train.name, valid.name, test.name) == ("train", "valid", "test")
    everything = np.concatenate([train.samples, valid.samples, test.samples])
    np.testing.assert_array_equal(np.sort(everything), np.arange(100))
    assert len(test) == 10
    assert len(valid) == 20
