from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .errors import MalformedShapeError


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned box in top-left + width/height form, destination pixels.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        if self.width <= 0 or self.height <= 0:
            return 0.0
        return self.width * self.height

    def as_xywh(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x2, self.y2


@dataclass(frozen=True)
class Detection:
    """
    One labeled box. Immutable: suppression filters, never edits.
    """

    box: Box
    class_index: int
    score: float
    label: str = ""

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box.as_xyxy()


@dataclass(frozen=True)
class RawTensor:
    """
    Flat numeric buffer plus the shape it was produced with.
    """

    data: np.ndarray
    shape: Tuple[int, ...]

    def __post_init__(self) -> None:
        expected = int(np.prod(self.shape)) if len(self.shape) > 0 else 1
        if int(np.asarray(self.data).size) != expected:
            raise MalformedShapeError(
                f"Buffer holds {np.asarray(self.data).size} values but shape {self.shape} needs {expected}",
                self.shape,
            )

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RawTensor":
        arr = np.asarray(array)
        return cls(data=arr.reshape(-1), shape=tuple(int(d) for d in arr.shape))

    @classmethod
    def from_buffer(cls, data: Sequence[float], shape: Sequence[int]) -> "RawTensor":
        return cls(data=np.asarray(data, dtype=np.float32).reshape(-1), shape=tuple(int(d) for d in shape))
