from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import DetectorConfig
from .errors import LabelNotFoundError, MalformedShapeError
from .geometry import cxcywh_to_xywh, scale_xywh, xyxy_to_xywh
from .layout import select_layout
from .types import Box, Detection, RawTensor

logger = logging.getLogger(__name__)


def resolve_label(class_index: int, labels: Optional[Sequence[str]]) -> str:
    """
    Look up a label. Raises LabelNotFoundError for an index outside the table.
    """

    if labels is None:
        return str(class_index)
    if 0 <= class_index < len(labels):
        return labels[class_index]
    raise LabelNotFoundError(class_index, len(labels))


class Decoder:
    """
    Turns a raw detection-head tensor into candidate detections.

    Supported layouts (per image, batch dim optional):
    - (1, 4 + K, N): channel-major, e.g. 84 x 8400 for YOLOv8 exports
    - (1, N, 4 + K): detection-major
    - either of the above with an objectness channel (5 + K) when
      ``has_objectness`` is set

    Boxes come out in top-left + width/height form, rescaled to the
    destination image. Output order follows candidate index.
    """

    def __init__(self, cfg: DetectorConfig, labels: Optional[Sequence[str]] = None):
        self.cfg = cfg
        self.labels = tuple(labels) if labels is not None else cfg.class_labels

    def decode(
        self,
        tensor: Union[RawTensor, np.ndarray],
        dest_size: Tuple[int, int],
        scale: Optional[Tuple[float, float]] = None,
    ) -> List[Detection]:
        """
        Decode one frame.

        Args:
            tensor: RawTensor or NumPy array from the inference engine
            dest_size: (width, height) of the destination image
            scale: explicit (sx, sy) factors replacing dest/model ratios, for
                callers that letterboxed upstream and corrected the factors
        """

        raw = tensor if isinstance(tensor, RawTensor) else RawTensor.from_array(tensor)
        boxes_xywh, scores, class_ids = self._decode_arrays(raw)
        if scores.size == 0:
            return []

        keep = scores > self.cfg.confidence_threshold
        keep &= np.all(np.isfinite(boxes_xywh), axis=1)
        boxes_xywh, scores, class_ids = boxes_xywh[keep], scores[keep], class_ids[keep]
        if scores.size == 0:
            logger.debug("No candidates above confidence %.2f", self.cfg.confidence_threshold)
            return []

        if scale is None:
            dest_w, dest_h = dest_size
            scale = (dest_w / self.cfg.model_input_width, dest_h / self.cfg.model_input_height)
        boxes_xywh = scale_xywh(boxes_xywh, scale)

        detections = [
            Detection(
                box=Box(x=float(x), y=float(y), width=float(w), height=float(h)),
                class_index=int(cls_id),
                score=float(score),
                label=self._label_for(int(cls_id)),
            )
            for (x, y, w, h), score, cls_id in zip(boxes_xywh, scores, class_ids)
        ]
        logger.debug("Decoded %d candidates above confidence %.2f", len(detections), self.cfg.confidence_threshold)
        return detections

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _decode_arrays(self, raw: RawTensor) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Normalize to (N, C) rows and split into xywh boxes, best scores and class ids.
        """

        layout = select_layout(raw.shape, self.cfg)
        shape2d = (raw.shape[-2], raw.shape[-1])
        channels, candidates = layout.split(shape2d)

        if channels < self.cfg.min_channels:
            raise MalformedShapeError(
                f"Expected at least {self.cfg.min_channels} channels, got {channels} (shape {raw.shape})",
                raw.shape,
            )
        expected = self.cfg.expected_channels
        if expected is not None and channels != expected:
            raise MalformedShapeError(f"Expected {expected} channels, got {channels} (shape {raw.shape})", raw.shape)

        if candidates == 0:
            empty = np.empty((0,), dtype=np.float64)
            return np.empty((0, 4), dtype=np.float64), empty, np.empty((0,), dtype=np.int64)

        rows = layout.rows(np.asarray(raw.data, dtype=np.float64).reshape(shape2d))

        box_params = rows[:, 0:4]
        class_scores = rows[:, self.cfg.box_channels :]
        # NaN never wins argmax and never passes the threshold.
        class_scores = np.where(np.isnan(class_scores), -np.inf, class_scores)

        # np.argmax returns the first occurrence, so ties go to the lowest index.
        class_ids = np.argmax(class_scores, axis=1)
        scores = class_scores[np.arange(class_scores.shape[0]), class_ids]
        if self.cfg.has_objectness:
            objectness = rows[:, 4]
            valid = np.isfinite(scores) & ~np.isnan(objectness)
            scores = np.where(valid, objectness * np.where(valid, scores, 0.0), -np.inf)

        if self.cfg.box_format == "xyxy":
            boxes_xywh = xyxy_to_xywh(box_params)
        else:
            boxes_xywh = cxcywh_to_xywh(box_params)

        return boxes_xywh, scores, class_ids

    def _label_for(self, class_index: int) -> str:
        try:
            return resolve_label(class_index, self.labels)
        except LabelNotFoundError as exc:
            logger.debug("%s; using fallback label", exc)
            return str(class_index)


def decode(
    tensor: Union[RawTensor, np.ndarray],
    cfg: DetectorConfig,
    dest_size: Tuple[int, int],
    scale: Optional[Tuple[float, float]] = None,
) -> List[Detection]:
    return Decoder(cfg).decode(tensor, dest_size, scale=scale)
