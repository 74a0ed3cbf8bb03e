from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .geometry import iou_one_to_many
from .types import Detection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    class_scoped: bool = True
    # None keeps every survivor.
    max_detections: Optional[int] = None


def nms(
    boxes: np.ndarray,
    scores: np.ndarray,
    cfg: NMSConfig,
    class_ids: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of boxes to keep, highest score first.

    Ties in score keep input order (stable sort). A candidate is dropped when
    its IoU with a kept box is >= ``cfg.iou_threshold`` and, when
    ``cfg.class_scoped`` is set and ``class_ids`` are given, it shares the
    kept box's class. Zero-area boxes never suppress and are never suppressed.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    boxes = np.asarray(boxes, dtype=np.float64)
    scores = np.asarray(scores, dtype=np.float64)
    widths = boxes[:, 2] - boxes[:, 0]
    heights = boxes[:, 3] - boxes[:, 1]
    has_area = (widths > 0) & (heights > 0)

    # NaN scores sort last.
    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []
    limit = cfg.max_detections

    while order.size > 0 and (limit is None or len(keep) < limit):
        i = int(order[0])
        keep.append(i)
        rest = order[1:]
        if rest.size == 0 or not has_area[i]:
            order = rest
            continue

        overlaps = iou_one_to_many(boxes[i], boxes[rest]) >= cfg.iou_threshold
        overlaps &= has_area[rest]
        if cfg.class_scoped and class_ids is not None:
            overlaps &= class_ids[rest] == class_ids[i]
        order = rest[~overlaps]

    return np.array(keep, dtype=np.int64)


class Suppressor:
    """
    Non-maximum suppression over Detection records.

    Returns a new list ordered by descending score; input detections are
    never modified.
    """

    def __init__(self, cfg: NMSConfig):
        self.cfg = cfg

    def suppress(self, detections: Sequence[Detection]) -> List[Detection]:
        if not detections:
            return []

        boxes = np.array([d.as_xyxy() for d in detections], dtype=np.float64)
        scores = np.array([d.score for d in detections], dtype=np.float64)
        class_ids = np.array([d.class_index for d in detections], dtype=np.int64)

        keep = nms(boxes, scores, self.cfg, class_ids=class_ids)
        survivors = [detections[int(i)] for i in keep]
        logger.debug("NMS kept %d of %d detections", len(survivors), len(detections))
        return survivors


def suppress(
    detections: Sequence[Detection],
    iou_threshold: float = 0.45,
    class_scoped: bool = True,
    max_detections: Optional[int] = None,
) -> List[Detection]:
    cfg = NMSConfig(iou_threshold=iou_threshold, class_scoped=class_scoped, max_detections=max_detections)
    return Suppressor(cfg).suppress(detections)
