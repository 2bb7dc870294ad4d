"""
Image gradients of structured inputs.

Structured inputs of shape ``(rows, cols, channels)`` with at least 3 rows and
3 columns are filtered channel by channel with a 3x3 gradient kernel, giving
four generated features per channel: the horizontal (``gx``) and vertical
(``gy``) gradients, the gradient magnitude (``gg``) and its angle
(``theta``), each of shape ``(rows - 2, cols - 2, 1)``.
"""

from __future__ import annotations

import numpy as np

from ..exceptions import InvalidArgument
from ..feature import Feature
from .elemwise import ElemwiseGenerator
from .mapping import select_struct

KERNELS = {
    "sobel": np.array([1.0, 2.0, 1.0]) / 4.0,
    "scharr": np.array([3.0, 10.0, 3.0]) / 16.0,
    "prewitt": np.array([1.0, 1.0, 1.0]) / 3.0,
}

MODES = ("gx", "gy", "gg", "theta")


def gradient3x3(images: np.ndarray, kernel: np.ndarray, mode: str) -> np.ndarray:
    """Filter a batch of single-channel images ``(n, rows, cols)``.

    Returns
    -------
    np.ndarray
        ``(n, rows - 2, cols - 2)`` gradients for ``mode``.
    """
    rows, cols = images.shape[1] - 2, images.shape[2] - 2

    def gx():
        return sum(k * (images[:, i:i + rows, 2:] - images[:, i:i + rows, :cols]) for i, k in enumerate(kernel))

    def gy():
        return sum(k * (images[:, 2:, j:j + cols] - images[:, :rows, j:j + cols]) for j, k in enumerate(kernel))

    if mode == "gx":
        return gx()
    if mode == "gy":
        return gy()
    if mode == "gg":
        return np.sqrt(gx() ** 2 + gy() ** 2)
    if mode == "theta":
        return np.arctan2(gy(), gx())
    raise InvalidArgument(f"unknown gradient mode {mode!r}, expecting one of {MODES}")


class ElemwiseGradient(ElemwiseGenerator):
    """Gradient features of image-like structured inputs.

    Parameters
    ----------
    dataset : MemoryDataset
    kernel : {"sobel", "scharr", "prewitt"}, default="sobel"
    features : sequence of int, optional
        Restrict to these input features.

    Notes
    -----
    The mapping table extends the elementwise columns with the channel
    (column 6) and the mode index into ``("gx", "gy", "gg", "theta")``
    (column 7).
    """

    def __init__(self, dataset, kernel: str = "sobel", features=None):
        super().__init__(dataset, features)
        if kernel not in KERNELS:
            raise InvalidArgument(f"unknown gradient kernel {kernel!r}, expecting one of {sorted(KERNELS)}")
        self.kernel = kernel

    def mapped_channel(self, index: int) -> int:
        return int(self.mapping[index, 6])

    def mapped_mode(self, index: int) -> str:
        return MODES[int(self.mapping[index, 7])]

    def _make_mapping(self, samples, execution):
        rows = []
        for row in select_struct(self.dataset, self.original_features):
            if row[3] < 3 or row[4] < 3:
                continue
            for channel in range(int(row[5])):
                rows.extend(tuple(row) + (channel, mode) for mode in range(len(MODES)))
        if not rows:
            return np.empty((0, 8), dtype=np.int64)
        return np.asarray(rows, dtype=np.int64)

    def _describe(self, index):
        original = self.original_feature(index)
        rows, cols, _ = self.mapped_dims(index)
        name = f"{self.kernel}::{self.mapped_mode(index)}({original.name}[channel::{self.mapped_channel(index)}])"
        return Feature(name).scalar("float64", dims=(rows - 2, cols - 2, 1))

    def _compute(self, index, samples):
        data, given = self._gather(index, samples)
        images = data[..., self.mapped_channel(index)].astype(np.float64)
        values = gradient3x3(images, KERNELS[self.kernel], self.mapped_mode(index))
        return values[..., np.newaxis], given
