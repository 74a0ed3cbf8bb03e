from __future__ import annotations

from typing import Tuple

import numpy as np

from .types import Box


def iou(a: Box, b: Box) -> float:
    """
    Intersection over union of two top-left/width/height boxes.

    Zero-area boxes (width or height <= 0) overlap nothing and return 0.0.
    """

    if a.area <= 0.0 or b.area <= 0.0:
        return 0.0

    inter_w = max(0.0, min(a.x2, b.x2) - max(a.x, b.x))
    inter_h = max(0.0, min(a.y2, b.y2) - max(a.y, b.y))
    inter = inter_w * inter_h
    union = a.area + b.area - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    Vectorized IoU of one xyxy box (4,) against xyxy boxes (M, 4).
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.float64)

    area = _areas(box[None, :])[0]
    areas = _areas(boxes)

    xx1 = np.maximum(box[0], boxes[:, 0])
    yy1 = np.maximum(box[1], boxes[:, 1])
    xx2 = np.minimum(box[2], boxes[:, 2])
    yy2 = np.minimum(box[3], boxes[:, 3])

    w = np.maximum(0.0, xx2 - xx1)
    h = np.maximum(0.0, yy2 - yy1)
    inter = w * h
    union = area + areas - inter

    out = np.zeros(boxes.shape[0], dtype=np.float64)
    valid = (area > 0.0) & (areas > 0.0) & (union > 0.0)
    out[valid] = inter[valid] / union[valid]
    return out


def _areas(boxes_xyxy: np.ndarray) -> np.ndarray:
    w = boxes_xyxy[:, 2] - boxes_xyxy[:, 0]
    h = boxes_xyxy[:, 3] - boxes_xyxy[:, 1]
    return np.where((w > 0) & (h > 0), w * h, 0.0)


def cxcywh_to_xywh(boxes: np.ndarray) -> np.ndarray:
    cx, cy, w, h = boxes.T
    return np.stack([cx - w / 2, cy - h / 2, w, h], axis=1)


def xyxy_to_xywh(boxes: np.ndarray) -> np.ndarray:
    x1, y1, x2, y2 = boxes.T
    return np.stack([x1, y1, x2 - x1, y2 - y1], axis=1)


def xywh_to_xyxy(boxes: np.ndarray) -> np.ndarray:
    x, y, w, h = boxes.T
    return np.stack([x, y, x + w, y + h], axis=1)


def scale_xywh(boxes: np.ndarray, scale: Tuple[float, float]) -> np.ndarray:
    """
    Scale position and size: x/width by sx, y/height by sy.
    """

    sx, sy = scale
    out = boxes.astype(np.float64, copy=True)
    out[:, [0, 2]] *= sx
    out[:, [1, 3]] *= sy
    return out
