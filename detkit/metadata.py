from __future__ import annotations

from typing import Dict, Mapping, Tuple


def load_class_names(metadata_path: str) -> Dict[int, str]:
    """
    Load class names from the lightweight `metadata.yaml` format exported next
    to the model:

        names:
          0: person
          1: bicycle
          ...

    This function intentionally avoids adding a PyYAML dependency.
    """

    names: Dict[int, str] = {}
    in_names = False

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue

            # A new top-level key ends the names block.
            if not raw[:1].isspace() and not line.split(":", 1)[0].strip().isdigit():
                in_names = False
                continue

            # Parse "id: label"
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    return names


def class_labels_from_names(names: Mapping[int, str]) -> Tuple[str, ...]:
    """
    Dense label table indexed by class id. Missing ids get their stringified index.
    """

    if not names:
        return ()
    size = max(names) + 1
    return tuple(names.get(i, str(i)) for i in range(size))
