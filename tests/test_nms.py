import itertools
import unittest

import numpy as np

from detkit.geometry import iou
from detkit.nms import NMSConfig, Suppressor, nms, suppress
from detkit.types import Box, Detection


def _det(x: float, y: float, w: float, h: float, score: float, cls: int = 0) -> Detection:
    return Detection(box=Box(x=x, y=y, width=w, height=h), class_index=cls, score=score, label=str(cls))


def _random_detections(rng: np.random.Generator, n: int, classes: int) -> list:
    out = []
    for _ in range(n):
        x, y = rng.uniform(0, 200, size=2)
        w, h = rng.uniform(5, 60, size=2)
        out.append(_det(float(x), float(y), float(w), float(h), float(rng.uniform(0.5, 1.0)), int(rng.integers(0, classes))))
    return out


class TestSuppressor(unittest.TestCase):
    def test_identical_boxes_keep_highest_score(self) -> None:
        low = _det(10, 10, 50, 50, 0.8)
        high = _det(10, 10, 50, 50, 0.9)
        self.assertEqual(suppress([low, high], iou_threshold=0.5), [high])

    def test_different_classes_survive_when_class_scoped(self) -> None:
        a = _det(10, 10, 50, 50, 0.9, cls=0)
        b = _det(10, 10, 50, 50, 0.8, cls=1)
        self.assertEqual(suppress([a, b], iou_threshold=0.5, class_scoped=True), [a, b])

    def test_different_classes_suppressed_when_global(self) -> None:
        a = _det(10, 10, 50, 50, 0.9, cls=0)
        b = _det(10, 10, 50, 50, 0.8, cls=1)
        self.assertEqual(suppress([a, b], iou_threshold=0.5, class_scoped=False), [a])

    def test_iou_equal_to_threshold_suppresses(self) -> None:
        a = _det(0, 0, 10, 10, 0.9)
        b = _det(0, 0, 10, 5, 0.8)  # IoU = 50 / 100
        self.assertAlmostEqual(iou(a.box, b.box), 0.5)
        self.assertEqual(suppress([a, b], iou_threshold=0.5), [a])
        self.assertEqual(suppress([a, b], iou_threshold=0.51), [a, b])

    def test_output_is_sorted_by_score_descending(self) -> None:
        dets = [_det(0, 0, 10, 10, 0.6), _det(100, 100, 10, 10, 0.9), _det(200, 200, 10, 10, 0.7)]
        out = suppress(dets, iou_threshold=0.5)
        self.assertEqual([d.score for d in out], [0.9, 0.7, 0.6])

    def test_equal_scores_keep_input_order(self) -> None:
        first = _det(0, 0, 10, 10, 0.7)
        second = _det(1, 1, 10, 10, 0.7)
        third = _det(300, 300, 10, 10, 0.7)
        self.assertEqual(suppress([first, second, third], iou_threshold=0.3), [first, third])
        self.assertEqual(suppress([second, first, third], iou_threshold=0.3), [second, third])

    def test_zero_area_boxes_pass_through(self) -> None:
        big = _det(0, 0, 10, 10, 0.5)
        flat = _det(0, 0, 10, 0, 0.9)
        negative = _det(2, 2, -3, 5, 0.8)
        self.assertEqual(suppress([big, flat, negative], iou_threshold=0.0001), [flat, negative, big])

    def test_empty_input(self) -> None:
        self.assertEqual(suppress([]), [])
        self.assertEqual(nms(np.empty((0, 4)), np.empty((0,)), NMSConfig()).shape, (0,))

    def test_max_detections_caps_output(self) -> None:
        dets = [_det(i * 100, 0, 10, 10, 0.9 - i * 0.01) for i in range(5)]
        out = suppress(dets, iou_threshold=0.5, max_detections=2)
        self.assertEqual(out, dets[:2])

    def test_inputs_are_not_mutated(self) -> None:
        dets = [_det(10, 10, 50, 50, 0.8), _det(10, 10, 50, 50, 0.9)]
        snapshot = list(dets)
        Suppressor(NMSConfig(iou_threshold=0.5)).suppress(dets)
        self.assertEqual(dets, snapshot)


class TestSuppressorProperties(unittest.TestCase):
    def test_no_surviving_pair_overlaps_beyond_threshold(self) -> None:
        rng = np.random.default_rng(0)
        for j, class_scoped in itertools.product((0.1, 0.3, 0.5, 0.9), (True, False)):
            dets = _random_detections(rng, 150, classes=3)
            out = suppress(dets, iou_threshold=j, class_scoped=class_scoped)
            for a, b in itertools.combinations(out, 2):
                if class_scoped and a.class_index != b.class_index:
                    continue
                self.assertLess(iou(a.box, b.box), j)

    def test_suppression_is_idempotent(self) -> None:
        rng = np.random.default_rng(1)
        for class_scoped in (True, False):
            dets = _random_detections(rng, 200, classes=4)
            once = suppress(dets, iou_threshold=0.45, class_scoped=class_scoped)
            twice = suppress(once, iou_threshold=0.45, class_scoped=class_scoped)
            self.assertEqual(once, twice)

    def test_survivors_are_a_subsequence_of_input(self) -> None:
        rng = np.random.default_rng(2)
        dets = _random_detections(rng, 100, classes=2)
        out = suppress(dets, iou_threshold=0.45)
        for d in out:
            self.assertIn(d, dets)


if __name__ == "__main__":
    unittest.main()
