from __future__ import annotations

import argparse
import logging
import statistics
import time
from dataclasses import dataclass
from typing import List

import numpy as np

from detkit import Decoder, DetectorConfig, NMSConfig, Suppressor


@dataclass(frozen=True)
class TimingSummary:
    n: int
    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float


def _percentile(sorted_values: List[float], q: float) -> float:
    if not sorted_values:
        raise ValueError("No values provided.")
    if q < 0.0 or q > 100.0:
        raise ValueError("q must be in [0, 100].")
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    # Linear interpolation between closest ranks.
    pos = (q / 100.0) * (len(sorted_values) - 1)
    lo = int(np.floor(pos))
    hi = int(np.ceil(pos))
    if lo == hi:
        return float(sorted_values[lo])
    t = pos - lo
    return float(sorted_values[lo] * (1.0 - t) + sorted_values[hi] * t)


def _summarize_ms(values_s: List[float]) -> TimingSummary:
    ms = [v * 1000.0 for v in values_s]
    ms_sorted = sorted(ms)
    return TimingSummary(
        n=len(ms_sorted),
        mean_ms=float(statistics.fmean(ms_sorted)) if ms_sorted else 0.0,
        p50_ms=_percentile(ms_sorted, 50.0) if ms_sorted else 0.0,
        p90_ms=_percentile(ms_sorted, 90.0) if ms_sorted else 0.0,
        p95_ms=_percentile(ms_sorted, 95.0) if ms_sorted else 0.0,
    )


def _format_summary(label: str, s: TimingSummary) -> str:
    return (
        f"{label}: n={s.n} mean={s.mean_ms:.3f}ms p50={s.p50_ms:.3f}ms "
        f"p90={s.p90_ms:.3f}ms p95={s.p95_ms:.3f}ms"
    )


def _synthetic_tensor(rng: np.random.Generator, anchors: int, classes: int, size: int) -> np.ndarray:
    """
    Channel-major (1, 4 + K, N) head output with clustered boxes so NMS has work to do.
    """

    centers = rng.uniform(0, size, size=(max(anchors // 20, 1), 2))
    picks = rng.integers(0, centers.shape[0], size=anchors)
    cxcy = centers[picks] + rng.normal(0.0, 4.0, size=(anchors, 2))
    wh = rng.uniform(20, 120, size=(anchors, 2))
    scores = rng.uniform(0.0, 1.0, size=(anchors, classes))
    rows = np.concatenate([cxcy, wh, scores], axis=1).astype(np.float32)
    return rows.T[None, ...]


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark decode + NMS latency on synthetic head outputs.")
    parser.add_argument("--anchors", type=int, default=8400, help="Candidates per frame (N).")
    parser.add_argument("--classes", type=int, default=80, help="Class scores per candidate (K).")
    parser.add_argument("--imgsz", type=int, default=640, help="Model input size.")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--global-nms", action="store_true", help="Suppress across classes (default is per-class).")
    parser.add_argument("--frames", type=int, default=200, help="Recorded frames.")
    parser.add_argument("--warmup", type=int, default=10, help="Warmup frames to run but not record.")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.anchors < 1:
        raise ValueError("--anchors must be >= 1")
    if args.classes < 1:
        raise ValueError("--classes must be >= 1")
    if args.frames < 1:
        raise ValueError("--frames must be >= 1")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")

    cfg = DetectorConfig(
        model_input_width=int(args.imgsz),
        model_input_height=int(args.imgsz),
        confidence_threshold=float(args.conf),
        iou_threshold=float(args.iou),
        class_scoped_suppression=not bool(args.global_nms),
        num_classes=int(args.classes),
    )
    decoder = Decoder(cfg)
    suppressor = Suppressor(NMSConfig(iou_threshold=cfg.iou_threshold, class_scoped=cfg.class_scoped_suppression))

    rng = np.random.default_rng(int(args.seed))
    t_decode: List[float] = []
    t_nms: List[float] = []
    candidates_seen: List[int] = []
    survivors_seen: List[int] = []

    for i in range(int(args.warmup) + int(args.frames)):
        tensor = _synthetic_tensor(rng, int(args.anchors), int(args.classes), int(args.imgsz))

        t0 = time.perf_counter()
        candidates = decoder.decode(tensor, dest_size=(int(args.imgsz), int(args.imgsz)))
        t1 = time.perf_counter()
        survivors = suppressor.suppress(candidates)
        t2 = time.perf_counter()

        if i < int(args.warmup):
            continue
        t_decode.append(t1 - t0)
        t_nms.append(t2 - t1)
        candidates_seen.append(len(candidates))
        survivors_seen.append(len(survivors))

    print(_format_summary("decode", _summarize_ms(t_decode)))
    print(_format_summary("nms", _summarize_ms(t_nms)))
    print(
        f"frames={len(t_decode)} mean_candidates={statistics.fmean(candidates_seen):.1f} "
        f"mean_survivors={statistics.fmean(survivors_seen):.1f}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
