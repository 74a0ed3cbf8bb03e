"""
Tensor orientation strategies.

Detection heads export either channel-major ``(C, N)`` (e.g. 84 x 8400 for
YOLOv8) or detection-major ``(N, C)`` outputs. The layout is picked once per
shape by :func:`select_layout` and then applied to get per-candidate rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

from .config import DetectorConfig
from .errors import MalformedShapeError


@dataclass(frozen=True)
class ChannelMajorLayout:
    """(C, N): one column per candidate."""

    name = "channel_major"

    def rows(self, array2d: np.ndarray) -> np.ndarray:
        return array2d.T

    def split(self, shape2d: Tuple[int, int]) -> Tuple[int, int]:
        """Return (channels, candidates)."""
        return shape2d[0], shape2d[1]


@dataclass(frozen=True)
class DetectionMajorLayout:
    """(N, C): one row per candidate."""

    name = "detection_major"

    def rows(self, array2d: np.ndarray) -> np.ndarray:
        return array2d

    def split(self, shape2d: Tuple[int, int]) -> Tuple[int, int]:
        return shape2d[1], shape2d[0]


TensorLayout = Union[ChannelMajorLayout, DetectionMajorLayout]

CHANNEL_MAJOR = ChannelMajorLayout()
DETECTION_MAJOR = DetectionMajorLayout()


def squeeze_to_2d(shape: Sequence[int]) -> Tuple[int, int]:
    """
    Drop the batch dimension and any leading singleton dims.

    Raises MalformedShapeError for < 2 dims, batch > 1 or leftover extra dims.
    """

    dims = tuple(int(d) for d in shape)
    if len(dims) < 2:
        raise MalformedShapeError(f"Expected at least 2 dimensions, got shape {dims}", dims)
    if len(dims) >= 3 and dims[0] != 1:
        raise MalformedShapeError(f"Batch > 1 is not supported (got shape {dims}). Pass one image at a time.", dims)

    lead = dims[:-2]
    if any(d != 1 for d in lead):
        raise MalformedShapeError(f"Unsupported output shape: {dims}", dims)
    return dims[-2], dims[-1]


def select_layout(shape: Sequence[int], cfg: DetectorConfig) -> TensorLayout:
    """
    Pick the orientation for a tensor shape.

    Order: explicit ``cfg.layout``; the axis matching the expected channel
    count (``num_classes`` known); an axis too small to hold box + one score
    cannot be channels; otherwise the smaller axis is channels.
    """

    a, b = squeeze_to_2d(shape)

    if cfg.layout == "channel_major":
        return CHANNEL_MAJOR
    if cfg.layout == "detection_major":
        return DETECTION_MAJOR

    expected = cfg.expected_channels
    if expected is not None:
        if a == expected:
            return CHANNEL_MAJOR
        if b == expected:
            return DETECTION_MAJOR
        raise MalformedShapeError(
            f"Neither axis of shape {tuple(shape)} matches the expected {expected} channels", shape
        )

    minimum = cfg.min_channels
    if a >= minimum and b < minimum:
        return CHANNEL_MAJOR
    if b >= minimum and a < minimum:
        return DETECTION_MAJOR

    # Heuristic: channels are few (tens), candidates are many (thousands).
    return CHANNEL_MAJOR if a <= b else DETECTION_MAJOR
