from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import numpy as np

from .config import DetectorConfig


@dataclass(frozen=True)
class VisualPrompt:
    """
    A named example image for an open-vocabulary (visual prompt) model.

    The prompt's position in the context is its class index.
    """

    name: str
    image: Optional[np.ndarray] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class DetectionContext:
    """
    Everything one decode call needs besides the tensor itself.

    Passed explicitly into the pipeline instead of living in module globals,
    so several pipelines (or threads) can share one read-only snapshot.
    """

    config: DetectorConfig = DetectorConfig()
    prompts: Tuple[VisualPrompt, ...] = ()
    # Optional per-class embeddings, shape (K, D), row i belongs to class i.
    embeddings: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.embeddings is not None:
            emb = np.asarray(self.embeddings)
            if emb.ndim != 2:
                raise ValueError(f"embeddings must be 2-D (classes, dims), got shape {emb.shape}")
            emb = emb.copy()
            emb.setflags(write=False)
            object.__setattr__(self, "embeddings", emb)

    def with_prompt(self, name: str, image: Optional[np.ndarray] = None) -> "DetectionContext":
        return replace(self, prompts=self.prompts + (VisualPrompt(name=name, image=image),))

    def with_config(self, config: DetectorConfig) -> "DetectionContext":
        return replace(self, config=config)

    def class_labels(self) -> Optional[Tuple[str, ...]]:
        """
        Configured labels win; otherwise prompt names in prompt order.

        When prompt images are fed to the engine, only prompts carrying an
        image count, so label i matches row i of the prompt tensor.
        """

        if self.config.class_labels is not None:
            return self.config.class_labels
        prompts = self.prompts
        if self.config.prompt_input_name is not None:
            prompts = tuple(p for p in prompts if p.image is not None)
        if prompts:
            return tuple(p.name for p in prompts)
        return None

    def prompt_images(self) -> Tuple[np.ndarray, ...]:
        return tuple(p.image for p in self.prompts if p.image is not None)

    def embedding_tensor(self) -> Optional[np.ndarray]:
        if self.embeddings is None:
            return None
        return self.embeddings.astype(np.float32, copy=False)
