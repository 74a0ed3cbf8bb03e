import unittest

import numpy as np

from detkit.config import DetectorConfig
from detkit.errors import MalformedShapeError
from detkit.layout import CHANNEL_MAJOR, DETECTION_MAJOR, select_layout, squeeze_to_2d


class TestSelectLayout(unittest.TestCase):
    def test_typical_yolov8_export_is_channel_major(self) -> None:
        self.assertIs(select_layout((1, 84, 8400), DetectorConfig()), CHANNEL_MAJOR)

    def test_transposed_export_is_detection_major(self) -> None:
        self.assertIs(select_layout((1, 8400, 84), DetectorConfig()), DETECTION_MAJOR)

    def test_axis_too_small_for_channels(self) -> None:
        # Fewer candidates than channels, but 4 cannot hold a box plus a score.
        self.assertIs(select_layout((1, 6, 4), DetectorConfig()), CHANNEL_MAJOR)
        self.assertIs(select_layout((1, 4, 6), DetectorConfig()), DETECTION_MAJOR)

    def test_known_class_count_picks_matching_axis(self) -> None:
        cfg = DetectorConfig(num_classes=2)
        self.assertIs(select_layout((1, 10, 6), cfg), DETECTION_MAJOR)
        self.assertIs(select_layout((1, 6, 10), cfg), CHANNEL_MAJOR)

    def test_objectness_counts_toward_expected_channels(self) -> None:
        cfg = DetectorConfig(num_classes=2, has_objectness=True)
        self.assertIs(select_layout((1, 20, 7), cfg), DETECTION_MAJOR)

    def test_explicit_layout_wins(self) -> None:
        self.assertIs(select_layout((1, 84, 8400), DetectorConfig(layout="detection_major")), DETECTION_MAJOR)
        self.assertIs(select_layout((1, 8400, 84), DetectorConfig(layout="channel_major")), CHANNEL_MAJOR)

    def test_unmatched_class_count_is_malformed(self) -> None:
        with self.assertRaises(MalformedShapeError):
            select_layout((1, 84, 8400), DetectorConfig(num_classes=1))

    def test_rows_transpose_channel_major(self) -> None:
        arr = np.arange(12).reshape(6, 2)
        self.assertEqual(CHANNEL_MAJOR.rows(arr).shape, (2, 6))
        self.assertEqual(DETECTION_MAJOR.rows(arr).shape, (6, 2))
        self.assertEqual(CHANNEL_MAJOR.split((6, 2)), (6, 2))
        self.assertEqual(DETECTION_MAJOR.split((6, 2)), (2, 6))


class TestSqueeze(unittest.TestCase):
    def test_drops_leading_singletons(self) -> None:
        self.assertEqual(squeeze_to_2d((1, 1, 84, 100)), (84, 100))
        self.assertEqual(squeeze_to_2d((84, 100)), (84, 100))

    def test_rejects_bad_shapes(self) -> None:
        for shape in [(), (5,), (2, 84, 100), (1, 3, 84, 100)]:
            with self.subTest(shape=shape):
                with self.assertRaises(MalformedShapeError):
                    squeeze_to_2d(shape)


if __name__ == "__main__":
    unittest.main()
