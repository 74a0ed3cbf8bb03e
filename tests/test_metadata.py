import tempfile
import unittest
from pathlib import Path

from detkit.metadata import class_labels_from_names, load_class_names


class TestMetadata(unittest.TestCase):
    def _write(self, text: str) -> str:
        tmp = tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False, encoding="utf-8")
        with tmp:
            tmp.write(text)
        self.addCleanup(Path(tmp.name).unlink)
        return tmp.name

    def test_parses_names_block(self) -> None:
        path = self._write(
            "description: pets\n"
            "names:\n"
            "  0: cat\n"
            "  1: 'dog'\n"
            '  2: "hamster"\n'
            "imgsz: [640, 640]\n"
        )
        self.assertEqual(load_class_names(path), {0: "cat", 1: "dog", 2: "hamster"})

    def test_labels_fill_gaps_with_index(self) -> None:
        self.assertEqual(class_labels_from_names({0: "cat", 2: "dog"}), ("cat", "1", "dog"))
        self.assertEqual(class_labels_from_names({}), ())


if __name__ == "__main__":
    unittest.main()
