"""
Detection-head decoding and non-maximum suppression.

Framework-agnostic: works with NumPy arrays emitted by ONNX Runtime or any
engine whose output can be converted to NumPy. OpenCV is only needed for
preprocessing and ONNX Runtime only for the bundled backend.
"""

from .config import DetectorConfig, load_detector_config
from .context import DetectionContext, VisualPrompt
from .decoder import Decoder, decode, resolve_label
from .errors import DecodeError, LabelNotFoundError, MalformedShapeError
from .geometry import iou
from .layout import CHANNEL_MAJOR, DETECTION_MAJOR, select_layout
from .metadata import class_labels_from_names, load_class_names
from .nms import NMSConfig, Suppressor, nms, suppress
from .pipeline import DetectionPipeline, FrameResult, load_pipeline
from .preprocess import prompts_to_tensor, to_input_tensor
from .types import Box, Detection, RawTensor

__all__ = [
    "Box",
    "Detection",
    "RawTensor",
    "DetectorConfig",
    "load_detector_config",
    "DetectionContext",
    "VisualPrompt",
    "Decoder",
    "decode",
    "resolve_label",
    "DecodeError",
    "LabelNotFoundError",
    "MalformedShapeError",
    "iou",
    "CHANNEL_MAJOR",
    "DETECTION_MAJOR",
    "select_layout",
    "class_labels_from_names",
    "load_class_names",
    "NMSConfig",
    "Suppressor",
    "nms",
    "suppress",
    "DetectionPipeline",
    "FrameResult",
    "load_pipeline",
    "prompts_to_tensor",
    "to_input_tensor",
]
