"""
wlearn.dataset
==============

In-memory dataset: typed sample storage plus missing-value tracking.

Loaders populate a :class:`MemoryDataset` in two steps: :meth:`~MemoryDataset.resize`
with the finalized feature descriptors, then element-wise
:meth:`~MemoryDataset.set` calls. Every value starts missing; writing a value
marks it as given.

Feature indices passed to ``set`` / ``get`` / ``missing`` refer to the full
feature list given to ``resize`` (target included). Accessors describing the
*inputs* (``features``, ``feature``, ``visit_inputs``) use input indices, which
skip the target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np
from sklearn.model_selection import train_test_split

from .exceptions import InvalidArgument
from .feature import Feature, TaskType
from .storage import allocate, clearbit, getbit, make_mask, setbit, unpack_mask

logger = logging.getLogger(__name__)


class MemoryDataset:
    """Samples stored in memory, one typed column per feature.

    Examples
    --------
    >>> ds = MemoryDataset()
    >>> ds.resize(3, [Feature("x").scalar(), Feature("y").scalar()], target=1)
    >>> ds.set(0, 0, 1.5)
    >>> float(ds.get(0, 0)), ds.missing(1, 0)
    (1.5, True)
    """

    def __init__(self):
        self._samples = 0
        self._all: list[Feature] = []
        self._storages = []
        self._mask = make_mask(0, 0)
        self._inputs: list[int] = []
        self._target: Optional[int] = None

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------
    def resize(self, samples: int, features: Sequence[Feature], target: Optional[int] = None) -> None:
        """Allocate storage for ``samples`` samples of the given features.

        Parameters
        ----------
        samples : int
            Number of samples.
        features : sequence of Feature
            Finalized descriptors of every feature, target included.
        target : int, optional
            Index into ``features`` of the target, ``None`` for unsupervised data.

        Raises
        ------
        InvalidArgument
            If the target index is out of range or the target is optional.
        """
        samples = int(samples)
        if samples < 0:
            raise InvalidArgument(f"invalid number of samples {samples}")
        features = list(features)
        if target is not None:
            target = int(target)
            if not 0 <= target < len(features):
                raise InvalidArgument(f"target index {target} not in [0, {len(features)})")
            if features[target].is_optional:
                raise InvalidArgument(
                    f"target feature <{features[target].name}> cannot be optional"
                )

        self._storages = allocate(features, samples)
        self._mask = make_mask(len(features), samples)
        self._samples = samples
        self._all = features
        self._target = target
        self._inputs = [i for i in range(len(features)) if i != target]
        logger.debug(
            "resized dataset: %d samples, %d inputs, target=%s",
            samples, len(self._inputs), None if target is None else features[target].name,
        )

    # ------------------------------------------------------------------
    # Element access (full feature indices)
    # ------------------------------------------------------------------
    def set(self, sample: int, feature: int, value) -> None:
        """Write ``value`` and mark it as given.

        Raises
        ------
        InvalidArgument
            On out-of-range indices or a value incompatible with the descriptor.
        """
        self._check(sample, feature)
        self._storages[feature].set(sample, value)
        setbit(self._mask, feature, sample)

    def get(self, sample: int, feature: int):
        """Stored value, or ``None`` when missing."""
        self._check(sample, feature)
        if not getbit(self._mask, feature, sample):
            return None
        return self._storages[feature].get(sample)

    def missing(self, sample: int, feature: int) -> bool:
        self._check(sample, feature)
        return not getbit(self._mask, feature, sample)

    def unset(self, sample: int, feature: int) -> None:
        """Mark a value as missing again."""
        self._check(sample, feature)
        clearbit(self._mask, feature, sample)
        self._storages[feature].clear(sample)

    def _check(self, sample, feature) -> None:
        if not 0 <= sample < self._samples:
            raise InvalidArgument(f"sample index {sample} not in [0, {self._samples})")
        if not 0 <= feature < len(self._all):
            raise InvalidArgument(f"feature index {feature} not in [0, {len(self._all)})")

    # ------------------------------------------------------------------
    # Input / target accessors
    # ------------------------------------------------------------------
    def samples(self) -> int:
        return self._samples

    def features(self) -> int:
        """Number of input features."""
        return len(self._inputs)

    def feature(self, index: int) -> Feature:
        """Descriptor of the input feature ``index``."""
        return self._all[self._input(index)]

    def target(self) -> Optional[Feature]:
        return None if self._target is None else self._all[self._target]

    def target_dims(self) -> tuple:
        """Shape of one target value: ``(classes, 1, 1)`` for categorical targets."""
        target = self.target()
        if target is None:
            return (0, 1, 1)
        if target.is_discrete:
            return (target.classes, 1, 1)
        return target.dims

    @property
    def task_type(self) -> TaskType:
        target = self.target()
        return TaskType.unsupervised if target is None else target.task_type

    def visit_inputs(self, index: int, fn: Callable):
        """Call ``fn(feature, data, mask)`` on the typed column of input ``index``.

        ``data`` is the typed numpy view (never copied, treat it as read-only)
        and ``mask`` a boolean vector, True where the value is given.
        """
        full = self._input(index)
        storage = self._storages[full]
        return fn(storage.feature, storage.data, unpack_mask(self._mask, full, self._samples))

    def visit_target(self, fn: Callable):
        """Same as :meth:`visit_inputs` for the target feature."""
        if self._target is None:
            raise InvalidArgument("the dataset has no target feature")
        storage = self._storages[self._target]
        return fn(storage.feature, storage.data, unpack_mask(self._mask, self._target, self._samples))

    def _input(self, index: int) -> int:
        if not 0 <= index < len(self._inputs):
            raise InvalidArgument(f"input feature index {index} not in [0, {len(self._inputs)})")
        return self._inputs[index]


# -----------------------------------------------------------------------------
# Folds
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Fold:
    """Named partition of sample indices (e.g. train/valid/test)."""

    name: str
    samples: np.ndarray

    def __len__(self):
        return len(self.samples)


def fold_samples(fold) -> np.ndarray:
    """Sample indices of a :class:`Fold` or of a plain index sequence."""
    samples = fold.samples if isinstance(fold, Fold) else fold
    samples = np.asarray(samples, dtype=np.int64).reshape(-1)
    return samples


def split_folds(samples: int, valid_size: float = 0.2, test_size: float = 0.2,
                random_state=None) -> tuple[Fold, Fold, Fold]:
    """Randomly partition ``range(samples)`` into train, valid and test folds."""
    if not 0 <= valid_size < 1 or not 0 <= test_size < 1 or valid_size + test_size >= 1:
        raise InvalidArgument(
            f"invalid fold proportions valid={valid_size}, test={test_size}"
        )
    indices = np.arange(samples)
    rest, test = (indices, indices[:0]) if test_size == 0 else \
        train_test_split(indices, test_size=test_size, random_state=random_state)
    if valid_size == 0:
        train, valid = rest, rest[:0]
    else:
        train, valid = train_test_split(
            rest, test_size=valid_size / (1.0 - test_size), random_state=random_state
        )
    return (
        Fold("train", np.sort(train)),
        Fold("valid", np.sort(valid)),
        Fold("test", np.sort(test)),
    )
