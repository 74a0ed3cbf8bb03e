from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import numpy as np

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - output_names: outputs to fetch; None fetches all of them
    """

    providers: Optional[Sequence[str]] = None
    output_names: Optional[Sequence[str]] = None


class OnnxRuntimeBackend:
    """
    Minimal ONNX Runtime backend.

    Takes named input tensors (image blob, optional visual prompts) and
    returns every requested output as ``{name: ndarray}``.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        self.input_names = tuple(i.name for i in self.session.get_inputs())
        self.output_names = tuple(cfg.output_names) if cfg.output_names else tuple(
            o.name for o in self.session.get_outputs()
        )
        logger.info(
            "ONNX Runtime session ready for %s (inputs=%s, outputs=%s, providers=%s)",
            self.model_path,
            self.input_names,
            self.output_names,
            self.providers_in_use,
        )

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def infer(self, feeds: Mapping[str, np.ndarray]) -> Dict[str, Any]:
        # Exports without a prompt input reject unknown feeds.
        inputs = {name: value for name, value in feeds.items() if name in self.input_names}
        outputs = self.session.run(list(self.output_names), inputs)
        return dict(zip(self.output_names, outputs))
