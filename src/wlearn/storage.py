"""
wlearn.storage
==============

Typed per-feature columns and the missing-value bitmap.

Each feature is stored in the smallest numpy dtype that fits its kind:

* single-label features use ``uint8`` (up to 255 labels) or ``uint16``
  (up to 65535 labels), one value per sample;
* multi-label features use an ``uint8`` hit matrix ``(samples, classes)``;
* continuous features use the dtype named by their type with shape
  ``(samples, dim0, dim1, dim2)``; floating columns are pre-filled with NaN.

Whether a value was given is tracked separately in a packed bitmap with one
row per feature and one bit per sample (bit set = value given). The bitmap
is the source of truth: a stored bit-pattern is never interpreted unless its
bit is set.
"""

from __future__ import annotations

import numpy as np

from .exceptions import InvalidArgument
from .feature import Feature, FeatureType


# -----------------------------------------------------------------------------
# Bitmap helpers
# -----------------------------------------------------------------------------
def make_mask(features: int, samples: int) -> np.ndarray:
    """Packed bitmap for ``features`` x ``samples`` values, all missing."""
    return np.zeros((features, (samples + 7) // 8), dtype=np.uint8)


def setbit(mask: np.ndarray, feature: int, sample: int) -> None:
    mask[feature, sample >> 3] |= np.uint8(1 << (sample & 7))


def clearbit(mask: np.ndarray, feature: int, sample: int) -> None:
    mask[feature, sample >> 3] &= np.uint8(~(1 << (sample & 7)) & 0xFF)


def getbit(mask: np.ndarray, feature: int, sample: int) -> bool:
    return bool(mask[feature, sample >> 3] & (1 << (sample & 7)))


def unpack_mask(mask: np.ndarray, feature: int, samples: int) -> np.ndarray:
    """Boolean vector of length ``samples``, True where the value is given."""
    return np.unpackbits(mask[feature], count=samples, bitorder="little").astype(bool)


# -----------------------------------------------------------------------------
# Storage layout
# -----------------------------------------------------------------------------
def storage_dtype(feature: Feature) -> np.dtype:
    """Minimal numpy dtype used to store ``feature``."""
    if feature.type == FeatureType.sclass:
        if feature.classes <= 0xFF:
            return np.dtype(np.uint8)
        if feature.classes <= 0xFFFF:
            return np.dtype(np.uint16)
        raise InvalidArgument(
            f"categorical feature <{feature.name}> has too many labels {feature.classes} vs. 65535"
        )
    if feature.type == FeatureType.mclass:
        if feature.classes > 0xFFFF:
            raise InvalidArgument(
                f"categorical feature <{feature.name}> has too many labels {feature.classes} vs. 65535"
            )
        return np.dtype(np.uint8)
    return feature.type.dtype


def value_shape(feature: Feature) -> tuple:
    """Shape of one stored value (without the sample axis)."""
    if feature.type == FeatureType.sclass:
        return ()
    if feature.type == FeatureType.mclass:
        return (feature.classes,)
    return feature.dims


class FeatureStorage:
    """Typed column of one feature, a view into a per-dtype block.

    Parameters
    ----------
    feature : Feature
        Descriptor of the stored values.
    data : np.ndarray
        Column view of shape ``(samples, *value_shape(feature))``.
    """

    def __init__(self, feature: Feature, data: np.ndarray):
        self.feature = feature
        self.data = data

    @property
    def floating(self) -> bool:
        return np.issubdtype(self.data.dtype, np.floating)

    def clear(self, sample: int) -> None:
        if self.floating:
            self.data[sample] = np.nan

    def set(self, sample: int, value) -> None:
        """Write ``value`` for ``sample`` after validating it against the descriptor."""
        feature = self.feature
        if feature.type == FeatureType.sclass:
            self.data[sample] = self._label(value)
        elif feature.type == FeatureType.mclass:
            hits = np.asarray(value)
            numeric = hits.dtype == bool or np.issubdtype(hits.dtype, np.number)
            if hits.ndim != 1 or hits.size != feature.classes or not numeric:
                raise InvalidArgument(
                    f"cannot set multi-label feature <{feature.name}>: expecting {feature.classes} hits"
                )
            self.data[sample] = (hits != 0).astype(np.uint8)
        else:
            self.data[sample] = self._continuous(value)

    def get(self, sample: int):
        value = self.data[sample]
        if self.feature.type == FeatureType.sclass:
            return int(value)
        if self.feature.type == FeatureType.mclass:
            return value.copy()
        if self.feature.is_scalar:
            return value.reshape(-1)[0]
        return value.copy()

    # ----------------------------- Helpers -----------------------------
    def _label(self, value) -> int:
        feature = self.feature
        if isinstance(value, str):
            if value in feature.labels:
                label = feature.labels.index(value)
            else:
                try:
                    label = int(value)
                except ValueError:
                    raise InvalidArgument(
                        f"cannot set single-label feature <{feature.name}>: unknown label {value!r}"
                    ) from None
        elif isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            label = int(value)
        else:
            raise InvalidArgument(f"cannot set single-label feature <{feature.name}> from {value!r}")
        if not 0 <= label < feature.classes:
            raise InvalidArgument(
                f"cannot set single-label feature <{feature.name}>: "
                f"invalid label {label} not in [0, {feature.classes})"
            )
        return label

    def _continuous(self, value) -> np.ndarray:
        feature = self.feature
        if isinstance(value, str):
            if not feature.is_scalar:
                raise InvalidArgument(
                    f"cannot set feature <{feature.name}> of dimensions {feature.dims} from a string"
                )
            try:
                value = float(value)
            except ValueError:
                raise InvalidArgument(
                    f"cannot set scalar feature <{feature.name}> from {value!r}"
                ) from None
        try:
            values = np.asarray(value, dtype=np.float64)
        except (TypeError, ValueError):
            raise InvalidArgument(f"cannot set feature <{feature.name}> from {value!r}") from None
        if values.size != feature.size:
            raise InvalidArgument(
                f"cannot set feature <{feature.name}>: invalid dimensions {values.shape} vs. {feature.dims}"
            )
        if not np.all(np.isfinite(values)):
            raise InvalidArgument(
                f"cannot set feature <{feature.name}>: non-finite values are reserved for missing"
            )
        dtype = self.data.dtype
        if np.issubdtype(dtype, np.integer):
            info = np.iinfo(dtype)
            if np.any(values < info.min) or np.any(values > info.max):
                raise InvalidArgument(
                    f"cannot set feature <{feature.name}>: values out of the {dtype} range"
                )
        return values.reshape(feature.dims).astype(dtype)


def allocate(features: list[Feature], samples: int) -> list[FeatureStorage]:
    """Allocate one column per feature, grouped into contiguous per-dtype blocks.

    Features sharing a storage dtype are laid side by side in a single
    ``(samples, width)`` block; every column is a view into its block.
    """
    layouts = []
    widths: dict[np.dtype, int] = {}
    for feature in features:
        dtype = storage_dtype(feature)
        shape = value_shape(feature)
        width = int(np.prod(shape)) if shape else 1
        layouts.append((dtype, shape, widths.get(dtype, 0), width))
        widths[dtype] = widths.get(dtype, 0) + width

    blocks = {}
    for dtype, width in widths.items():
        fill = np.nan if np.issubdtype(dtype, np.floating) else 0
        blocks[dtype] = np.full((samples, width), fill, dtype=dtype)

    storages = []
    for feature, (dtype, shape, offset, width) in zip(features, layouts):
        block = blocks[dtype]
        if shape:
            data = block[:, offset:offset + width].reshape((samples,) + shape)
        else:
            data = block[:, offset]
        storages.append(FeatureStorage(feature, data))
    return storages
