"""
Pairwise generators: two scalar inputs combined into one generated feature.

The candidate scalars are enumerated like an elementwise scalar mapping and
every unordered pair, self-pairs included, becomes a generated feature (see
:func:`~wlearn.generator.mapping.make_pairwise`). A generated value is missing
when either input is missing.
"""

from __future__ import annotations

import numpy as np

from ..feature import Feature
from .base import Generator
from .mapping import MAPPING_COLUMNS, make_pairwise, select_scalar


class PairwiseGenerator(Generator):
    """Generator whose rows map to two (input, component) pairs."""

    op = ""

    def __init__(self, dataset, features=None, struct2scalar: bool = False):
        super().__init__(dataset, features)
        self.struct2scalar = struct2scalar

    def _make_mapping(self, samples, execution):
        return make_pairwise(select_scalar(self.dataset, self.struct2scalar, self.original_features))

    def mapped_original1(self, index: int) -> int:
        return int(self.mapping[index, 0])

    def mapped_component1(self, index: int, clamp: bool = True) -> int:
        component = int(self.mapping[index, 1])
        return max(component, 0) if clamp else component

    def mapped_original2(self, index: int) -> int:
        return int(self.mapping[index, MAPPING_COLUMNS])

    def mapped_component2(self, index: int, clamp: bool = True) -> int:
        component = int(self.mapping[index, MAPPING_COLUMNS + 1])
        return max(component, 0) if clamp else component

    # ----------------------------- Helpers -----------------------------
    def _name(self, index: int) -> str:
        feature1 = self.dataset.feature(self.mapped_original1(index))
        feature2 = self.dataset.feature(self.mapped_original2(index))
        return (
            f"{self.op}({feature1.name}[{self.mapped_component1(index)}],"
            f"{feature2.name}[{self.mapped_component2(index)}])"
        )

    def _pair_values(self, index: int, samples: np.ndarray):
        def component(original, comp):
            return self.dataset.visit_inputs(
                original,
                lambda feature, data, mask: (
                    data[samples].reshape(samples.size, -1)[:, comp].astype(np.float64),
                    mask[samples],
                ),
            )

        values1, given1 = component(self.mapped_original1(index), self.mapped_component1(index))
        values2, given2 = component(self.mapped_original2(index), self.mapped_component2(index))
        return values1, values2, given1 & given2


class PairwiseProduct(PairwiseGenerator):
    """``x1 * x2``."""

    op = "product"

    def _describe(self, index):
        return Feature(self._name(index)).scalar("float64")

    def _compute(self, index, samples):
        values1, values2, given = self._pair_values(index, samples)
        return values1 * values2, given


class PairwiseProductSignClass(PairwiseGenerator):
    """``neg`` when ``x1 * x2`` is negative, ``pos`` otherwise."""

    op = "product_sign_class"

    def _describe(self, index):
        return Feature(self._name(index)).sclass(["neg", "pos"])

    def _compute(self, index, samples):
        values1, values2, given = self._pair_values(index, samples)
        return np.where(values1 * values2 < 0.0, 0, 1).astype(np.int32), given
