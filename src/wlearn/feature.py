"""
wlearn.feature
==============

Feature descriptors.

A :class:`Feature` describes one column of a dataset: its name, the kind of
values it holds (continuous scalar or fixed-shape tensor, single-label or
multi-label categorical), the shape of a value (up to rank 3), the ordered
list of labels for categorical features and whether the value may be missing.

Descriptors are built with chained calls, in the same spirit as the fluent
``set_params`` of scikit-learn estimators::

    Feature("age").scalar(FeatureType.float32)
    Feature("color").sclass(["red", "green", "blue"])
    Feature("image").scalar(FeatureType.uint8, dims=(28, 28, 1)).optional()
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from .exceptions import InvalidArgument


class FeatureType(str, Enum):
    """Storage/value kind of a feature."""

    sclass = "sclass"
    mclass = "mclass"
    float32 = "float32"
    float64 = "float64"
    int8 = "int8"
    int16 = "int16"
    int32 = "int32"
    int64 = "int64"
    uint8 = "uint8"
    uint16 = "uint16"
    uint32 = "uint32"
    uint64 = "uint64"

    @property
    def discrete(self) -> bool:
        return self in (FeatureType.sclass, FeatureType.mclass)

    @property
    def dtype(self) -> np.dtype:
        """numpy dtype of a continuous feature type."""
        if self.discrete:
            raise InvalidArgument(f"categorical feature type {self.value!r} has no fixed dtype")
        return np.dtype(self.value)


class TaskType(str, Enum):
    """Machine learning task implied by the target feature."""

    unsupervised = "unsupervised"
    regression = "regression"
    sclassification = "sclassification"
    mclassification = "mclassification"


Dims = tuple


def make_dims(dims) -> Dims:
    """Normalize ``dims`` to a 3-tuple of positive ints (missing trailing dims are 1)."""
    if isinstance(dims, (int, np.integer)):
        dims = (int(dims),)
    dims = tuple(int(d) for d in dims)
    if not 1 <= len(dims) <= 3 or any(d < 1 for d in dims):
        raise InvalidArgument(f"feature dimensions must be 1 to 3 positive sizes, got {dims}")
    return dims + (1,) * (3 - len(dims))


class Feature:
    """Description of a stored or generated feature.

    Parameters
    ----------
    name : str
        Feature name, used to build the names of generated features.

    Notes
    -----
    A freshly constructed feature is a float32 scalar. Equality is
    structural: two descriptors are equal when type, name, dims, labels and
    optionality all match.
    """

    def __init__(self, name: str = ""):
        self._name = str(name)
        self._type = FeatureType.float32
        self._dims: Dims = (1, 1, 1)
        self._labels: list[str] = []
        self._optional = False

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def scalar(self, type: Union[FeatureType, str] = FeatureType.float32, dims=(1, 1, 1)) -> "Feature":
        """Make the feature continuous with the given storage type and value shape."""
        type = FeatureType(type)
        if type.discrete:
            raise InvalidArgument(f"feature <{self._name}>: {type.value!r} is not a continuous type")
        self._type = type
        self._dims = make_dims(dims)
        self._labels = []
        return self

    def sclass(self, labels: Union[int, Sequence[str]]) -> "Feature":
        """Make the feature single-label categorical (``labels`` or a label count)."""
        return self._discrete(FeatureType.sclass, labels)

    def mclass(self, labels: Union[int, Sequence[str]]) -> "Feature":
        """Make the feature multi-label categorical (``labels`` or a label count)."""
        return self._discrete(FeatureType.mclass, labels)

    def optional(self, optional: bool = True) -> "Feature":
        self._optional = bool(optional)
        return self

    def _discrete(self, type: FeatureType, labels) -> "Feature":
        if isinstance(labels, (int, np.integer)):
            labels = [""] * int(labels)
        labels = [str(label) for label in labels]
        if not labels:
            raise InvalidArgument(f"categorical feature <{self._name}> needs at least one label")
        self._type = type
        self._dims = (1, 1, 1)
        self._labels = labels
        return self

    def set_label(self, label: str) -> Optional[int]:
        """Register ``label`` while loading data and return its index.

        A known label returns its current index; a new label takes the first
        empty slot. Returns ``None`` for an empty label or when every slot is
        already taken.
        """
        if not label:
            return None
        if label in self._labels:
            return self._labels.index(label)
        for index, current in enumerate(self._labels):
            if not current:
                self._labels[index] = label
                return index
        return None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> FeatureType:
        return self._type

    @property
    def dims(self) -> Dims:
        return self._dims

    @property
    def labels(self) -> list[str]:
        return list(self._labels)

    @property
    def classes(self) -> int:
        return len(self._labels)

    @property
    def is_optional(self) -> bool:
        return self._optional

    @property
    def is_discrete(self) -> bool:
        return self._type.discrete

    @property
    def size(self) -> int:
        """Number of scalar components of a continuous value."""
        return int(np.prod(self._dims))

    @property
    def is_scalar(self) -> bool:
        return not self.is_discrete and self.size == 1

    @property
    def is_struct(self) -> bool:
        return not self.is_discrete and self.size > 1

    @property
    def task_type(self) -> TaskType:
        """Task implied when this feature is the target."""
        if self._type == FeatureType.sclass:
            return TaskType.sclassification
        if self._type == FeatureType.mclass:
            return TaskType.mclassification
        return TaskType.regression

    def label(self, value) -> str:
        """Label string of a single-label value, empty for a missing (-1 / NaN) value."""
        if not self.is_discrete:
            raise InvalidArgument(f"feature <{self._name}>: labels are only available for categorical features")
        if value is None or (isinstance(value, float) and not np.isfinite(value)) or value < 0:
            return ""
        return self._labels[int(value)]

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------
    def _key(self):
        return (self._type, self._name, self._dims, tuple(self._labels), self._optional)

    def __eq__(self, other):
        if not isinstance(other, Feature):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        parts = [f"name={self._name!r}", f"type={self._type.value}"]
        if self.is_discrete:
            parts.append(f"labels={self._labels}")
        else:
            parts.append(f"dims={self._dims}")
        parts.append("optional" if self._optional else "mandatory")
        return f"Feature({', '.join(parts)})"
