import argparse
import json
import logging
from pathlib import Path

import cv2

from detkit import DetectionContext, DetectorConfig, class_labels_from_names, load_class_names, load_detector_config, load_pipeline


def read_image(path: str):
    img = cv2.imread(path)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    return img


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a detection model on an image and print surviving boxes as JSON lines.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--model", default="Models/model.onnx", help="Path to an ONNX model.")
    parser.add_argument("--config", default=None, help="Optional detector config JSON; CLI thresholds are ignored when set.")
    parser.add_argument("--metadata", default=None, help="Optional class metadata (names mapping).")
    parser.add_argument("--imgsz", type=int, default=640, help="Model input size (stretch resize).")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--global-nms", action="store_true", help="Suppress across classes (default is per-class).")
    parser.add_argument("--prompt", action="append", default=[], metavar="NAME=IMAGE", help="Visual prompt; repeatable.")
    parser.add_argument("--prompt-input", default=None, help="Model input name for visual prompts.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.imgsz < 32:
        raise ValueError("--imgsz must be >= 32")

    if args.config:
        cfg = load_detector_config(Path(args.config))
    else:
        labels = None
        if args.metadata:
            labels = class_labels_from_names(load_class_names(args.metadata))
        cfg = DetectorConfig(
            model_input_width=int(args.imgsz),
            model_input_height=int(args.imgsz),
            confidence_threshold=float(args.conf),
            iou_threshold=float(args.iou),
            class_labels=labels or None,
            class_scoped_suppression=not bool(args.global_nms),
            prompt_input_name=args.prompt_input,
        )

    context = DetectionContext(config=cfg)
    for item in args.prompt:
        if "=" not in item:
            raise ValueError(f"--prompt must look like NAME=IMAGE, got {item!r}")
        name, path = item.split("=", 1)
        context = context.with_prompt(name.strip(), read_image(path))

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    pipeline = load_pipeline(args.model, context, providers=onnx_providers)
    result = pipeline(read_image(args.image))
    if not result.ok:
        logging.getLogger(__name__).error("Frame dropped: %s", result.error)
        return 1

    for det in result.detections:
        x, y, w, h = det.box.as_xywh()
        print(
            json.dumps(
                {
                    "label": det.label,
                    "class_index": det.class_index,
                    "score": round(det.score, 4),
                    "box": [round(x, 2), round(y, 2), round(w, 2), round(h, 2)],
                }
            )
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
