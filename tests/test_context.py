import unittest

import numpy as np

from detkit.config import DetectorConfig
from detkit.context import DetectionContext


class TestDetectionContext(unittest.TestCase):
    def test_with_prompt_returns_new_context(self) -> None:
        base = DetectionContext()
        ctx = base.with_prompt("Rex").with_prompt("Milo")
        self.assertEqual(base.prompts, ())
        self.assertEqual([p.name for p in ctx.prompts], ["Rex", "Milo"])

    def test_prompt_names_become_labels(self) -> None:
        ctx = DetectionContext().with_prompt("Rex").with_prompt("Milo")
        self.assertEqual(ctx.class_labels(), ("Rex", "Milo"))

    def test_configured_labels_win_over_prompts(self) -> None:
        ctx = DetectionContext(config=DetectorConfig(class_labels=("cat",))).with_prompt("Rex")
        self.assertEqual(ctx.class_labels(), ("cat",))

    def test_fed_prompts_only_count_prompts_with_images(self) -> None:
        img = np.zeros((4, 4, 3), dtype=np.uint8)
        cfg = DetectorConfig(prompt_input_name="visual_prompts")
        ctx = DetectionContext(config=cfg).with_prompt("Rex").with_prompt("Milo", img)
        self.assertEqual(ctx.class_labels(), ("Milo",))

    def test_no_labels(self) -> None:
        self.assertIsNone(DetectionContext().class_labels())

    def test_prompt_images_skip_missing(self) -> None:
        img = np.zeros((4, 4, 3), dtype=np.uint8)
        ctx = DetectionContext().with_prompt("Rex", img).with_prompt("Milo")
        self.assertEqual(len(ctx.prompt_images()), 1)

    def test_embeddings_are_read_only(self) -> None:
        emb = np.ones((2, 8), dtype=np.float32)
        ctx = DetectionContext(embeddings=emb)
        emb[0, 0] = 5.0
        self.assertEqual(ctx.embeddings[0, 0], 1.0)
        self.assertEqual(ctx.embedding_tensor().dtype, np.float32)
        with self.assertRaises(ValueError):
            ctx.embeddings[0, 0] = 3.0

    def test_embeddings_must_be_2d(self) -> None:
        with self.assertRaises(ValueError):
            DetectionContext(embeddings=np.ones((8,), dtype=np.float32))

    def test_with_config(self) -> None:
        ctx = DetectionContext().with_config(DetectorConfig(iou_threshold=0.7))
        self.assertEqual(ctx.config.iou_threshold, 0.7)


if __name__ == "__main__":
    unittest.main()
