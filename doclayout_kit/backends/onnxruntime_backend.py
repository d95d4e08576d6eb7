from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Union

import numpy as np

from ..errors import InferenceError, ModelLoadError


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - output_name: override the primary (detections) output if needed
    - serialize_runs: guard `session.run` with a lock for runtimes that are not thread-safe
    """

    providers: Optional[Sequence[str]] = None
    output_name: Optional[str] = None
    serialize_runs: bool = False


class OnnxRuntimeBackend:
    """
    ONNX Runtime backend owning one InferenceSession for its lifetime.

    The session and its I/O metadata never change after construction, so one
    instance can be shared by concurrent callers.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.is_file():
            raise ModelLoadError(f"Model file not found: {self.model_path}")

        sess_opts = ort.SessionOptions()
        sess_opts.log_severity_level = 2  # warnings and above
        providers = list(cfg.providers) if cfg.providers is not None else None
        try:
            self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)
        except Exception as e:
            raise ModelLoadError(f"Could not create ONNX Runtime session for {self.model_path}: {e}") from e

        self._input_names = tuple(i.name for i in self.session.get_inputs())
        self._output_names = tuple(o.name for o in self.session.get_outputs())
        if not self._output_names:
            raise ModelLoadError(f"Model declares no outputs: {self.model_path}")
        if cfg.output_name is not None and cfg.output_name not in self._output_names:
            raise ModelLoadError(f"Output {cfg.output_name!r} not in model outputs {self._output_names}")
        self.output_name = cfg.output_name or self._output_names[0]
        self._run_lock = threading.Lock() if cfg.serialize_runs else None

        logger.debug(
            "Loaded %s: inputs=%s outputs=%s providers=%s",
            self.model_path.name,
            self._input_names,
            self._output_names,
            self.providers_in_use,
        )

    @property
    def input_names(self) -> Sequence[str]:
        return self._input_names

    @property
    def output_names(self) -> Sequence[str]:
        return self._output_names

    @property
    def input_count(self) -> int:
        return len(self._input_names)

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    @property
    def available_providers(self) -> Sequence[str]:
        return tuple(self._ort.get_available_providers())

    def run(self, feeds: Mapping[str, np.ndarray]) -> Dict[str, np.ndarray]:
        try:
            if self._run_lock is not None:
                with self._run_lock:
                    outputs = self.session.run([self.output_name], dict(feeds))
            else:
                outputs = self.session.run([self.output_name], dict(feeds))
        except Exception as e:
            raise InferenceError(f"ONNX Runtime execution failed: {e}") from e
        if not outputs:
            raise InferenceError("ONNX Runtime returned no outputs")
        return {self.output_name: outputs[0]}
