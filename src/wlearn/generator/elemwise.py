"""
Elementwise generators: one input feature to one or more generated features.

Includes the identity generators, which expose the stored inputs unchanged
(optionally splitting structs into scalars and categorical features into one
binary feature per class).
"""

from __future__ import annotations

import numpy as np

from ..feature import Feature
from .base import Generator
from .mapping import select_mclass, select_scalar, select_sclass, select_struct


class ElemwiseGenerator(Generator):
    """Generator whose rows map to a single (input, component) pair."""

    def mapped_original(self, index: int) -> int:
        return int(self.mapping[index, 0])

    def mapped_component(self, index: int, clamp: bool = True) -> int:
        """Component of the input; ``-1`` (whole value) is read as 0 unless ``clamp`` is off."""
        component = int(self.mapping[index, 1])
        return max(component, 0) if clamp else component

    def mapped_classes(self, index: int) -> int:
        return int(self.mapping[index, 2])

    def mapped_dims(self, index: int) -> tuple:
        return tuple(int(d) for d in self.mapping[index, 3:6])

    # ----------------------------- Helpers -----------------------------
    def original_feature(self, index: int) -> Feature:
        return self.dataset.feature(self.mapped_original(index))

    def _gather(self, index: int, samples: np.ndarray):
        """Stored values and given-mask of the mapped input for ``samples``."""
        return self.dataset.visit_inputs(
            self.mapped_original(index),
            lambda feature, data, mask: (data[samples], mask[samples]),
        )

    def _scalar_values(self, index: int, samples: np.ndarray):
        """``float64`` values of the mapped scalar component."""
        data, given = self._gather(index, samples)
        values = data.reshape(samples.size, -1)[:, self.mapped_component(index)]
        return values.astype(np.float64), given

    def _make_scalar_feature(self, index: int, op: str) -> Feature:
        original = self.original_feature(index)
        return Feature(f"{op}({original.name}[{self.mapped_component(index)}])").scalar("float64")

    def _make_sclass_feature(self, index: int, op: str, labels) -> Feature:
        original = self.original_feature(index)
        return Feature(f"{op}({original.name}[{self.mapped_component(index)}])").sclass(labels)


def _binary_feature(original: Feature, component: int) -> Feature:
    label = original.labels[component] or str(component)
    return Feature(f"{original.name}[{label}]").sclass(["neg", "pos"])


# -----------------------------------------------------------------------------
# Identity generators
# -----------------------------------------------------------------------------
class SClassIdentity(ElemwiseGenerator):
    """Single-label inputs as they are, or one ``neg``/``pos`` feature per class."""

    def __init__(self, dataset, features=None, sclass2binary: bool = False):
        super().__init__(dataset, features)
        self.sclass2binary = sclass2binary

    def _make_mapping(self, samples, execution):
        return select_sclass(self.dataset, self.sclass2binary, self.original_features)

    def _describe(self, index):
        original = self.original_feature(index)
        if self.mapped_component(index, clamp=False) < 0:
            return original
        return _binary_feature(original, self.mapped_component(index))

    def _compute(self, index, samples):
        labels, given = self._gather(index, samples)
        component = self.mapped_component(index, clamp=False)
        if component >= 0:
            return (labels == component).astype(np.int32), given
        return labels.astype(np.int32), given


class MClassIdentity(ElemwiseGenerator):
    """Multi-label inputs as they are, or one ``neg``/``pos`` feature per class."""

    def __init__(self, dataset, features=None, mclass2binary: bool = False):
        super().__init__(dataset, features)
        self.mclass2binary = mclass2binary

    def _make_mapping(self, samples, execution):
        return select_mclass(self.dataset, self.mclass2binary, self.original_features)

    def _describe(self, index):
        original = self.original_feature(index)
        if self.mapped_component(index, clamp=False) < 0:
            return original
        return _binary_feature(original, self.mapped_component(index))

    def _compute(self, index, samples):
        hits, given = self._gather(index, samples)
        component = self.mapped_component(index, clamp=False)
        if component >= 0:
            return hits[:, component].astype(np.int32), given
        return hits.astype(np.int8), given


class ScalarIdentity(ElemwiseGenerator):
    """Scalar inputs as ``float64``; with ``struct2scalar`` every struct component too."""

    def __init__(self, dataset, features=None, struct2scalar: bool = False):
        super().__init__(dataset, features)
        self.struct2scalar = struct2scalar

    def _make_mapping(self, samples, execution):
        return select_scalar(self.dataset, self.struct2scalar, self.original_features)

    def _describe(self, index):
        original = self.original_feature(index)
        if self.mapped_component(index, clamp=False) < 0:
            return original
        return Feature(f"{original.name}[{self.mapped_component(index)}]").scalar("float64")

    def _compute(self, index, samples):
        return self._scalar_values(index, samples)


class StructIdentity(ElemwiseGenerator):
    """Structured inputs as ``float64`` tensors."""

    def _make_mapping(self, samples, execution):
        return select_struct(self.dataset, self.original_features)

    def _describe(self, index):
        return self.original_feature(index)

    def _compute(self, index, samples):
        data, given = self._gather(index, samples)
        return data.astype(np.float64), given
