"""
Non-linear transforms of scalar inputs.

Each generator maps every scalar input (and every struct component when
``struct2scalar`` is on) to one generated feature named
``"<op>(<input>[<component>])"``.
"""

from __future__ import annotations

import numpy as np

from .elemwise import ElemwiseGenerator
from .mapping import select_scalar


class Scalar2Scalar(ElemwiseGenerator):
    """Base class of scalar -> scalar transforms."""

    op = ""

    def __init__(self, dataset, features=None, struct2scalar: bool = False):
        super().__init__(dataset, features)
        self.struct2scalar = struct2scalar

    @staticmethod
    def transform(values: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _make_mapping(self, samples, execution):
        return select_scalar(self.dataset, self.struct2scalar, self.original_features)

    def _describe(self, index):
        return self._make_scalar_feature(index, self.op)

    def _compute(self, index, samples):
        values, given = self._scalar_values(index, samples)
        return self.transform(values), given


class Scalar2SClass(Scalar2Scalar):
    """Base class of scalar -> single-label transforms."""

    labels: tuple = ()

    def _describe(self, index):
        return self._make_sclass_feature(index, self.op, list(self.labels))

    def _compute(self, index, samples):
        values, given = self._scalar_values(index, samples)
        return self.transform(values).astype(np.int32), given


class SLog1p(Scalar2Scalar):
    """``sign(x) * log(1 + |x|)``."""

    op = "slog1p"

    @staticmethod
    def transform(values):
        return np.sign(values) * np.log1p(np.abs(values))


class Sign(Scalar2Scalar):
    """-1 for negative values, +1 otherwise."""

    op = "sign"

    @staticmethod
    def transform(values):
        return np.where(values < 0.0, -1.0, 1.0)


class SignClass(Scalar2SClass):
    """``neg`` for negative values, ``pos`` otherwise."""

    op = "sign_class"
    labels = ("neg", "pos")

    @staticmethod
    def transform(values):
        return np.where(values < 0.0, 0, 1)
