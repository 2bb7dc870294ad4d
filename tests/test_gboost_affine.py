import io
import logging

import numpy as np
import pytest

from wlearn import (
    AffineWeakLearner,
    DatasetGenerator,
    Feature,
    FeatureType,
    IncompatibleDataset,
    InvalidArgument,
    LinearWeakLearner,
    MemoryDataset,
    config_context,
)
from wlearn.gboost.affine import FUNCTIONS
from wlearn.generator import ScalarIdentity

TRAIN = np.arange(80)
TEST = np.arange(80, 100)


def _make_generator(fun="lin", samples=100, missing_x=False):
    features = [
        Feature("x").scalar(FeatureType.float64),
        Feature("c").scalar(FeatureType.float64),
        Feature("y").scalar(FeatureType.float64),
    ]
    ds = MemoryDataset()
    ds.resize(samples, features, target=2)
    x = (np.arange(samples) - 50) / 25.0
    y = 3.5 * FUNCTIONS[fun](x) - 7.1
    for s in range(samples):
        if not missing_x:
            ds.set(s, 0, x[s])
        ds.set(s, 1, 1.0)
        ds.set(s, 2, y[s])
    return DatasetGenerator(ds).add(ScalarIdentity).fit(np.arange(samples)), y


@pytest.mark.parametrize("fun", ["lin", "log", "sin", "cos"])
def test_affine_recovers_coefficients(fun):
    gen, y = _make_generator(fun)
    learner = AffineWeakLearner(fun=fun)
    score = learner.fit(gen, TRAIN, -gen.targets(TRAIN))

    assert abs(score) < 1e-8
    # the constant feature "c" is degenerate and never selected
    assert learner.feature_ == 0
    np.testing.assert_allclose(learner.tables_[0].reshape(-1), [3.5], atol=1e-8)
    np.testing.assert_allclose(learner.tables_[1].reshape(-1), [-7.1], atol=1e-8)

    outputs = learner.predict(gen, TEST)
    assert outputs.shape == (20, 1, 1, 1)
    np.testing.assert_allclose(outputs.reshape(-1), y[TEST], atol=1e-8)


def test_linear_alias():
    gen, y = _make_generator()
    learner = LinearWeakLearner()
    learner.fit(gen, TRAIN, -gen.targets(TRAIN))
    assert learner.fun == "lin"
    np.testing.assert_allclose(learner.predict(gen, TEST).reshape(-1), y[TEST], atol=1e-8)
    assert "lin(x)" in learner.describe(gen)


def test_fit_on_indices_subset():
    gen, y = _make_generator()
    learner = AffineWeakLearner()
    fold = np.arange(100)
    learner.fit(gen, fold, -gen.targets(fold), indices=np.arange(0, 100, 7))
    np.testing.assert_allclose(learner.predict(gen, fold).reshape(-1), y, atol=1e-8)


def test_missing_values_predict_zero():
    gen, _ = _make_generator()
    learner = AffineWeakLearner()
    learner.fit(gen, TRAIN, -gen.targets(TRAIN))

    gen.dataset.unset(85, 0)
    outputs = learner.predict(gen, TEST).reshape(-1)
    assert outputs[5] == 0.0
    assert np.all(outputs[np.arange(20) != 5] != 0.0)

    cluster = learner.split(gen, TEST)
    assert cluster.groups() == 1
    assert cluster.group(5) == -1
    assert cluster.count(0) == 19


def test_scale():
    gen, y = _make_generator()
    learner = AffineWeakLearner()
    learner.fit(gen, TRAIN, -gen.targets(TRAIN))
    learner.scale([0.5])
    np.testing.assert_allclose(learner.predict(gen, TEST).reshape(-1), 0.5 * y[TEST], atol=1e-8)
    with pytest.raises(InvalidArgument):
        learner.scale([1.0, 2.0])
    with pytest.raises(InvalidArgument):
        learner.scale([np.inf])


def test_parallel_and_sequential_sweeps_agree():
    rng = np.random.default_rng(0)
    samples, inputs = 200, 12
    features = [Feature(f"x{i}").scalar(FeatureType.float64) for i in range(inputs)]
    features.append(Feature("y").scalar(FeatureType.float64))
    ds = MemoryDataset()
    ds.resize(samples, features, target=inputs)
    data = rng.normal(size=(samples, inputs))
    # two identical columns tie: the lowest index wins
    data[:, 7] = data[:, 3]
    y = 2.0 * data[:, 3] + 0.01 * rng.normal(size=samples)
    for s in range(samples):
        for f in range(inputs):
            ds.set(s, f, data[s, f])
        ds.set(s, inputs, y[s])
    gen = DatasetGenerator(ds).add(ScalarIdentity).fit(np.arange(samples))
    fold = np.arange(samples)
    gradients = -gen.targets(fold)

    seq = AffineWeakLearner()
    seq_score = seq.fit(gen, fold, gradients, execution="seq")
    with config_context(n_jobs=4):
        par = AffineWeakLearner()
        par_score = par.fit(gen, fold, gradients, execution="par")

    assert seq.feature_ == par.feature_ == 3
    assert seq_score == par_score
    np.testing.assert_array_equal(seq.tables_, par.tables_)


def test_unsupported_mode():
    gen, _ = _make_generator()
    with pytest.raises(InvalidArgument, match="unhandled weak-learner mode"):
        AffineWeakLearner(mode="discrete").fit(gen, TRAIN, -gen.targets(TRAIN))


def test_unknown_function():
    gen, _ = _make_generator()
    with pytest.raises(InvalidArgument):
        AffineWeakLearner(fun="exp").fit(gen, TRAIN, -gen.targets(TRAIN))


def test_gradients_must_match_fold():
    gen, _ = _make_generator()
    with pytest.raises(InvalidArgument):
        AffineWeakLearner().fit(gen, TRAIN, np.zeros((10, 1, 1, 1)))


def test_no_usable_feature(caplog):
    gen, _ = _make_generator(missing_x=True)
    learner = AffineWeakLearner()
    with caplog.at_level(logging.WARNING, logger="wlearn"):
        score = learner.fit(gen, TRAIN, -gen.targets(TRAIN))
    assert np.isinf(score)
    assert learner.feature_ == -1
    assert "no feature could be fit" in caplog.text
    with pytest.raises(IncompatibleDataset):
        learner.predict(gen, TEST)


def test_incompatible_datasets():
    gen, _ = _make_generator()
    learner = AffineWeakLearner()
    learner.fit(gen, TRAIN, -gen.targets(TRAIN))
    learner.compatible(gen)

    # no generated feature at the fitted index
    empty = DatasetGenerator(gen.dataset).add(ScalarIdentity, features=[]).fit(TRAIN)
    with pytest.raises(IncompatibleDataset):
        learner.compatible(empty)

    # different target shape
    ds = MemoryDataset()
    ds.resize(4, [Feature("x").scalar(FeatureType.float64), Feature("y").scalar(FeatureType.float64, dims=(2,))], target=1)
    other = DatasetGenerator(ds).add(ScalarIdentity).fit(np.arange(4))
    with pytest.raises(IncompatibleDataset):
        learner.predict(other, np.arange(4))


def test_write_read_round_trip():
    gen, _ = _make_generator("sin")
    learner = AffineWeakLearner(fun="sin")
    learner.fit(gen, TRAIN, -gen.targets(TRAIN))

    stream = io.BytesIO()
    learner.write(stream)
    stream.seek(0)
    loaded = AffineWeakLearner(fun="sin").read(stream)

    assert loaded.feature_ == learner.feature_
    np.testing.assert_array_equal(loaded.tables_, learner.tables_)
    np.testing.assert_array_equal(loaded.predict(gen, TEST), learner.predict(gen, TEST))
