import io

import numpy as np
import pytest

from wlearn import (
    DatasetGenerator,
    Feature,
    FeatureType,
    IncompatibleDataset,
    InvalidArgument,
    MemoryDataset,
    StumpWeakLearner,
    TableWeakLearner,
)
from wlearn.generator import ScalarIdentity, SClassIdentity

FOLD = np.arange(30)


def _make_table_generator(labels=("a", "b", "c"), samples=30):
    features = [
        Feature("c").sclass(list(labels)),
        Feature("x").scalar(FeatureType.float64),
        Feature("y").scalar(FeatureType.float64),
    ]
    ds = MemoryDataset()
    ds.resize(samples, features, target=2)
    for s in range(samples):
        ds.set(s, 0, s % 3)
        ds.set(s, 1, s)
        ds.set(s, 2, [-5.0, 0.0, 5.0][s % 3])
    return DatasetGenerator(ds).add(SClassIdentity).add(ScalarIdentity).fit(np.arange(samples))


def _make_stump_generator(samples=100):
    features = [
        Feature("c").scalar(FeatureType.float64),
        Feature("x").scalar(FeatureType.float64),
        Feature("y").scalar(FeatureType.float64),
    ]
    ds = MemoryDataset()
    ds.resize(samples, features, target=2)
    for s in range(samples):
        ds.set(s, 0, 1.0)
        ds.set(s, 1, s)
        ds.set(s, 2, -2.0 if s < 30 else 3.0)
    return DatasetGenerator(ds).add(ScalarIdentity).fit(np.arange(samples))


# -----------------------------------------------------------------------------
# Table
# -----------------------------------------------------------------------------
def test_table_real_outputs_are_label_means():
    gen = _make_table_generator()
    learner = TableWeakLearner()
    score = learner.fit(gen, FOLD, -gen.targets(FOLD))
    assert score == 0.0
    assert learner.feature_ == 0
    assert learner.tables_.shape == (3, 1, 1, 1)
    np.testing.assert_array_equal(learner.tables_.reshape(-1), [-5.0, 0.0, 5.0])
    np.testing.assert_array_equal(learner.predict(gen, [0, 1, 2]).reshape(-1), [-5.0, 0.0, 5.0])


def test_table_discrete_outputs_are_signs():
    gen = _make_table_generator()
    learner = TableWeakLearner(mode="discrete")
    learner.fit(gen, FOLD, -gen.targets(FOLD))
    np.testing.assert_array_equal(learner.tables_.reshape(-1), [-1.0, 0.0, 1.0])


def test_table_split_and_scale():
    gen = _make_table_generator()
    learner = TableWeakLearner()
    learner.fit(gen, FOLD, -gen.targets(FOLD))

    gen.dataset.unset(4, 0)
    cluster = learner.split(gen, np.arange(6))
    np.testing.assert_array_equal(cluster.assignment, [0, 1, 2, 0, -1, 2])
    assert learner.predict(gen, [4])[0, 0, 0, 0] == 0.0

    learner.scale([1.0, 2.0, 3.0])
    np.testing.assert_array_equal(learner.tables_.reshape(-1), [-5.0, 0.0, 15.0])
    learner.scale([2.0])
    np.testing.assert_array_equal(learner.tables_.reshape(-1), [-10.0, 0.0, 30.0])
    with pytest.raises(InvalidArgument):
        learner.scale([1.0, 2.0])


def test_table_rejects_other_label_counts():
    gen = _make_table_generator()
    learner = TableWeakLearner()
    learner.fit(gen, FOLD, -gen.targets(FOLD))

    other = _make_table_generator(labels=("a", "b", "c", "d"))
    with pytest.raises(IncompatibleDataset):
        learner.predict(other, FOLD)


def test_table_describe():
    gen = _make_table_generator()
    learner = TableWeakLearner()
    learner.fit(gen, FOLD, -gen.targets(FOLD))
    rows = learner.describe(gen).splitlines()
    assert len(rows) == 3
    assert rows[0].startswith("c == a")


def test_multi_output_table():
    ds = MemoryDataset()
    ds.resize(
        6,
        [Feature("c").sclass(["a", "b"]), Feature("y").scalar(FeatureType.float64, dims=(2,))],
        target=1,
    )
    for s in range(6):
        ds.set(s, 0, s % 2)
        ds.set(s, 1, [s % 2, 1.0 - s % 2])
    gen = DatasetGenerator(ds).add(SClassIdentity).fit(np.arange(6))
    learner = TableWeakLearner()
    learner.fit(gen, np.arange(6), -gen.targets(np.arange(6)))
    assert learner.odim() == (2, 1, 1)
    np.testing.assert_array_equal(learner.tables_.reshape(2, 2), [[0.0, 1.0], [1.0, 0.0]])


# -----------------------------------------------------------------------------
# Stump
# -----------------------------------------------------------------------------
def test_stump_finds_threshold():
    gen = _make_stump_generator()
    fold = np.arange(100)
    learner = StumpWeakLearner()
    score = learner.fit(gen, fold, -gen.targets(fold))
    assert score == 0.0
    assert learner.feature_ == 1
    assert learner.threshold_ == 29.5
    np.testing.assert_array_equal(learner.tables_.reshape(-1), [-2.0, 3.0])

    cluster = learner.split(gen, fold)
    assert cluster.groups() == 2
    np.testing.assert_array_equal(cluster.indices(0), np.arange(30))
    assert cluster.count(1) == 70


def test_stump_discrete():
    gen = _make_stump_generator()
    fold = np.arange(100)
    learner = StumpWeakLearner(mode="discrete")
    learner.fit(gen, fold, -gen.targets(fold))
    np.testing.assert_array_equal(learner.tables_.reshape(-1), [-1.0, 1.0])


def test_stump_write_read_round_trip():
    gen = _make_stump_generator()
    fold = np.arange(100)
    learner = StumpWeakLearner()
    learner.fit(gen, fold, -gen.targets(fold))

    stream = io.BytesIO()
    learner.write(stream)
    stream.seek(0)
    loaded = StumpWeakLearner().read(stream)
    assert loaded.threshold_ == learner.threshold_
    np.testing.assert_array_equal(loaded.predict(gen, fold), learner.predict(gen, fold))
