import numpy as np
import pytest

from wlearn import Execution, InvalidArgument, config_context, get_config, set_config
from wlearn.gboost.base import Accumulator
from wlearn.parallel import min_reduce, n_workers, parallel_map, shards, sweep


def test_config_context_restores_previous_values():
    before = get_config()
    with config_context(n_jobs=2, execution="seq") as config:
        assert config.n_jobs == 2
        assert config.execution is Execution.SEQ
        assert get_config() == config
    assert get_config() == before


def test_set_config_returns_previous():
    previous = set_config(n_jobs=3)
    try:
        assert get_config().n_jobs == 3
    finally:
        set_config(**vars(previous))
    assert get_config() == previous


@pytest.mark.parametrize(
    "kwargs",
    [{"n_jobs": 0}, {"backend": "dask"}, {"execution": "fast"}, {"workers": 2}],
)
def test_invalid_config(kwargs):
    with pytest.raises(InvalidArgument):
        set_config(**kwargs)


def test_sequential_runs_on_one_worker():
    assert n_workers("seq", n_jobs=8) == 1
    assert n_workers("par", n_jobs=3) == 3


def test_shards_are_contiguous_and_cover_everything():
    parts = shards(10, 3)
    assert [list(p) for p in parts] == [[0, 1, 2, 3], [4, 5, 6], [7, 8, 9]]
    assert len(shards(2, 8)) == 2
    assert list(shards(0, 4)[0]) == []


def test_min_reduce_breaks_ties_by_lowest_feature():
    accumulators = [
        Accumulator(feature=-1),
        Accumulator(feature=9, score=1.0),
        Accumulator(feature=4, score=1.0),
        Accumulator(feature=2, score=3.0),
    ]
    assert min_reduce(accumulators).feature == 4
    assert min_reduce([Accumulator(), Accumulator()]).feature == -1


def test_sweep_visits_every_item_once():
    def visit(accumulator, index):
        accumulator.update(index, float((index - 13) ** 2), np.zeros(1))

    for execution, n_jobs in [("seq", None), ("par", 4)]:
        accumulators = sweep(30, Accumulator, visit, execution, n_jobs)
        assert min_reduce(accumulators).feature == 13

    accumulators = sweep(30, list, lambda acc, index: acc.append(index), "par", 4)
    assert len(accumulators) == 4
    assert sorted(i for acc in accumulators for i in acc) == list(range(30))


def test_parallel_map_keeps_order():
    assert parallel_map(lambda x: x * x, range(10), "par", 4) == [x * x for x in range(10)]
    assert parallel_map(lambda x: x, [], "par") == []
