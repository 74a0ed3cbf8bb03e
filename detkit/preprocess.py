from typing import Sequence

import numpy as np


def _require_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for preprocessing. Install with `pip install opencv-python`.") from e
    return cv2


def _check_bgr(image_bgr: np.ndarray) -> None:
    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")


def stretch_resize(image_bgr: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize to exactly (width, height) without keeping the aspect ratio.

    Decoded boxes are mapped back with plain per-axis ratios, which is only
    correct for this kind of resize (no letterbox padding).
    """

    cv2 = _require_cv2()
    _check_bgr(image_bgr)
    h, w = image_bgr.shape[:2]
    if (w, h) == (width, height):
        return image_bgr
    return cv2.resize(image_bgr, (width, height), interpolation=cv2.INTER_LINEAR)


def to_input_tensor(image_bgr: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    BGR image -> float32 (1, 3, height, width) tensor in [0, 1], RGB channel order.
    """

    img = stretch_resize(image_bgr, width, height)
    # BGR -> RGB, normalize, HWC -> CHW, add batch
    blob = img[:, :, ::-1].astype(np.float32) / 255.0
    return np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])


def prompts_to_tensor(images: Sequence[np.ndarray], width: int, height: int) -> np.ndarray:
    """
    Stack visual-prompt images into a (P, 3, height, width) batch.

    With no prompts the result is an empty (0, 3, height, width) tensor, which
    prompt-capable exports accept as "no prompts".
    """

    if not images:
        return np.zeros((0, 3, height, width), dtype=np.float32)
    return np.concatenate([to_input_tensor(img, width, height) for img in images], axis=0)
