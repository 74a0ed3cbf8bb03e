from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .context import DetectionContext
from .decoder import Decoder
from .errors import DecodeError, MalformedShapeError
from .nms import NMSConfig, Suppressor
from .preprocess import prompts_to_tensor, to_input_tensor
from .types import Detection, RawTensor

PathLike = Union[str, Path]
InferFn = Callable[[Mapping[str, np.ndarray]], Mapping[str, np.ndarray]]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    """
    Outcome of one inference cycle: survivors, or the error that dropped the frame.
    """

    detections: List[Detection] = field(default_factory=list)
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DetectionPipeline:
    """
    Per-frame glue: stretch-resize -> inference -> decode -> suppress.

    The pipeline expects BGR images (OpenCV-style) as `np.ndarray` and returns
    a FrameResult with detections in original image coordinates. A malformed
    output tensor drops that frame only.
    """

    def __init__(self, infer_fn: InferFn, context: DetectionContext = DetectionContext(), *, backend: Optional[object] = None):
        self._infer_fn = infer_fn
        self.backend = backend
        self.context = context
        cfg = context.config
        self.decoder = Decoder(cfg, labels=context.class_labels())
        self.suppressor = Suppressor(
            NMSConfig(
                iou_threshold=cfg.iou_threshold,
                class_scoped=cfg.class_scoped_suppression,
                max_detections=cfg.max_detections,
            )
        )
        self._prompt_tensor: Optional[np.ndarray] = None

    def build_feeds(self, image_bgr: np.ndarray) -> Dict[str, np.ndarray]:
        cfg = self.context.config
        feeds = {cfg.image_input_name: to_input_tensor(image_bgr, cfg.model_input_width, cfg.model_input_height)}
        if cfg.prompt_input_name is not None:
            if self._prompt_tensor is None:
                self._prompt_tensor = prompts_to_tensor(
                    self.context.prompt_images(), cfg.model_input_width, cfg.model_input_height
                )
            feeds[cfg.prompt_input_name] = self._prompt_tensor
        if cfg.embedding_input_name is not None:
            embeddings = self.context.embedding_tensor()
            if embeddings is None:
                raise ValueError(f"embedding_input_name is {cfg.embedding_input_name!r} but the context has no embeddings")
            feeds[cfg.embedding_input_name] = embeddings
        return feeds

    def process_outputs(
        self,
        outputs: Mapping[str, Union[np.ndarray, RawTensor]],
        dest_size: Tuple[int, int],
        scale: Optional[Tuple[float, float]] = None,
    ) -> FrameResult:
        """
        Decode + suppress an engine result keyed by output name.
        """

        name = self.context.config.output_tensor_name
        if name not in outputs:
            error = MalformedShapeError(f"Output {name!r} missing from engine result (got {sorted(outputs)})")
            logger.warning("Dropping frame: %s", error)
            return FrameResult(error=error)

        try:
            candidates = self.decoder.decode(outputs[name], dest_size, scale=scale)
        except MalformedShapeError as exc:
            logger.warning("Dropping frame: %s", exc)
            return FrameResult(error=exc)

        return FrameResult(detections=self.suppressor.suppress(candidates))

    def __call__(self, image_bgr: np.ndarray) -> FrameResult:
        feeds = self.build_feeds(image_bgr)
        outputs = self._infer_fn(feeds)
        orig_h, orig_w = image_bgr.shape[:2]
        return self.process_outputs(outputs, dest_size=(orig_w, orig_h))


def load_pipeline(
    model_path: PathLike,
    context: DetectionContext = DetectionContext(),
    *,
    providers: Optional[Sequence[str]] = None,
) -> DetectionPipeline:
    """
    Create a pipeline for an ONNX model on disk.

    Only the configured output tensor is fetched from the session.
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    ort_backend = OnnxRuntimeBackend(
        Path(model_path),
        OnnxRuntimeBackendConfig(providers=providers, output_names=[context.config.output_tensor_name]),
    )
    return DetectionPipeline(ort_backend.infer, context, backend=ort_backend)
