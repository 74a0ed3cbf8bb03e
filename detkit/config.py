from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

BOX_FORMATS = ("cxcywh", "xyxy")
LAYOUTS = ("auto", "channel_major", "detection_major")


@dataclass(frozen=True)
class DetectorConfig:
    """
    Process-wide decode + suppression settings. Read-only after startup.
    """

    model_input_width: int = 640
    model_input_height: int = 640
    confidence_threshold: float = 0.50
    iou_threshold: float = 0.45
    class_labels: Optional[Tuple[str, ...]] = None
    class_scoped_suppression: bool = True
    # Box encoding at the tensor boundary; one per deployment.
    box_format: str = "cxcywh"
    layout: str = "auto"
    # Some exports carry an objectness channel before the class scores.
    has_objectness: bool = False
    num_classes: Optional[int] = None
    max_detections: Optional[int] = None
    output_tensor_name: str = "output0"
    image_input_name: str = "images"
    prompt_input_name: Optional[str] = None
    # Engine input for per-class embeddings (K, D); omitted when None.
    embedding_input_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.model_input_width <= 0:
            raise ValueError("model_input_width must be > 0")
        if self.model_input_height <= 0:
            raise ValueError("model_input_height must be > 0")
        if not 0.0 <= self.confidence_threshold < 1.0:
            raise ValueError("confidence_threshold must be in [0, 1)")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.box_format not in BOX_FORMATS:
            raise ValueError(f"box_format must be one of {BOX_FORMATS}")
        if self.layout not in LAYOUTS:
            raise ValueError(f"layout must be one of {LAYOUTS}")
        if self.num_classes is not None and self.num_classes <= 0:
            raise ValueError("num_classes must be > 0")
        if self.max_detections is not None and self.max_detections <= 0:
            raise ValueError("max_detections must be > 0")
        if self.class_labels is not None:
            # Accept any sequence but store a tuple so the config stays hashable.
            object.__setattr__(self, "class_labels", tuple(str(label) for label in self.class_labels))

    @property
    def box_channels(self) -> int:
        return 5 if self.has_objectness else 4

    @property
    def min_channels(self) -> int:
        return self.box_channels + 1

    @property
    def expected_channels(self) -> Optional[int]:
        if self.num_classes is None:
            return None
        return self.box_channels + self.num_classes


def _require_number(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    if payload.get(key) is None:
        return None
    return _require_int(payload, key)


def _optional_bool(payload: Dict[str, Any], key: str, default: bool) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _optional_str(payload: Dict[str, Any], key: str, default: Optional[str]) -> Optional[str]:
    value = payload.get(key, default)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value


def _optional_labels(payload: Dict[str, Any], key: str) -> Optional[Sequence[str]]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{key} must be a list of strings")
    return value


def load_detector_config(path: Path) -> DetectorConfig:
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")
    return detector_config_from_dict(payload)


def detector_config_from_dict(payload: Dict[str, Any]) -> DetectorConfig:
    allowed = {
        "model_input_width",
        "model_input_height",
        "confidence_threshold",
        "iou_threshold",
        "class_labels",
        "class_scoped_suppression",
        "box_format",
        "layout",
        "has_objectness",
        "num_classes",
        "max_detections",
        "output_tensor_name",
        "image_input_name",
        "prompt_input_name",
        "embedding_input_name",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    defaults = DetectorConfig()
    return DetectorConfig(
        model_input_width=_require_int(payload, "model_input_width"),
        model_input_height=_require_int(payload, "model_input_height"),
        confidence_threshold=(
            _require_number(payload, "confidence_threshold")
            if "confidence_threshold" in payload
            else defaults.confidence_threshold
        ),
        iou_threshold=_require_number(payload, "iou_threshold") if "iou_threshold" in payload else defaults.iou_threshold,
        class_labels=_optional_labels(payload, "class_labels"),
        class_scoped_suppression=_optional_bool(payload, "class_scoped_suppression", defaults.class_scoped_suppression),
        box_format=_optional_str(payload, "box_format", defaults.box_format),
        layout=_optional_str(payload, "layout", defaults.layout),
        has_objectness=_optional_bool(payload, "has_objectness", defaults.has_objectness),
        num_classes=_optional_int(payload, "num_classes"),
        max_detections=_optional_int(payload, "max_detections"),
        output_tensor_name=_optional_str(payload, "output_tensor_name", defaults.output_tensor_name),
        image_input_name=_optional_str(payload, "image_input_name", defaults.image_input_name),
        prompt_input_name=_optional_str(payload, "prompt_input_name", None),
        embedding_input_name=_optional_str(payload, "embedding_input_name", None),
    )
