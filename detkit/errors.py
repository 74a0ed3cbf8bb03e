from __future__ import annotations

from typing import Optional, Sequence


class DecodeError(ValueError):
    """
    Base class for failures scoped to a single decode/suppress invocation.
    """


class MalformedShapeError(DecodeError):
    """
    Tensor shape is inconsistent with the expected box + class layout.

    Fatal for the current frame only: callers drop the frame and continue.
    """

    def __init__(self, message: str, shape: Optional[Sequence[int]] = None):
        super().__init__(message)
        self.shape = tuple(shape) if shape is not None else None


class LabelNotFoundError(DecodeError, LookupError):
    """
    Class index has no entry in the label table. Recoverable.
    """

    def __init__(self, class_index: int, num_labels: int):
        super().__init__(f"No label for class index {class_index} (label table has {num_labels} entries)")
        self.class_index = class_index
        self.num_labels = num_labels
