"""
Boundary layer: image sources in, JSON text out.

Mirrors the host-application entry points (file path, raw pixel buffer,
encoded bytes). Only an unreadable image produces an error payload; every
pipeline failure is rendered as zero detections and logged.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from .config import DetectorConfig
from .errors import DocLayoutError, InvalidInputError, ModelLoadError
from .preprocess import ensure_bgr
from .runtime import DocLayoutPipeline, load_pipeline
from .serialize import error_to_json, result_to_json
from .taxonomy import DOC_CLASSES, load_class_names
from .types import DetectionResult

VERSION = "1.0.0"

logger = logging.getLogger(__name__)

PipelineFactory = Callable[[DetectorConfig], DocLayoutPipeline]


def pipeline_from_config(cfg: DetectorConfig) -> DocLayoutPipeline:
    """
    Build the pipeline described by `cfg`; every load failure surfaces as `ModelLoadError`.
    """

    try:
        class_names = load_class_names(cfg.metadata_path) if cfg.metadata_path else DOC_CLASSES
    except (OSError, ValueError) as e:
        raise ModelLoadError(f"Could not load class names from {cfg.metadata_path}: {e}") from e
    try:
        return load_pipeline(
            cfg.model_path,
            input_size=cfg.input_size,
            conf_threshold=cfg.conf_threshold,
            class_names=class_names,
            onnx_providers=cfg.providers,
            serialize_runs=cfg.serialize_runs,
        )
    except ImportError as e:
        raise ModelLoadError(f"Inference runtime unavailable: {e}") from e


class DocLayoutService:
    """
    Owns the configuration and one shared pipeline.

    The pipeline is built on first use (or eagerly via `warm_up`). A failed
    build is not cached: the next call tries again.
    """

    version = VERSION

    def __init__(
        self,
        config: Union[DetectorConfig, str, Path],
        *,
        pipeline_factory: PipelineFactory = pipeline_from_config,
    ):
        if not isinstance(config, DetectorConfig):
            config = DetectorConfig(model_path=str(config))
        self.config = config
        self._factory = pipeline_factory
        self._pipeline: Optional[DocLayoutPipeline] = None
        self._lock = threading.Lock()

    def warm_up(self) -> DocLayoutPipeline:
        """
        Build the pipeline now; raises `DocLayoutError` if the model cannot be used.
        """

        pipeline = self._pipeline
        if pipeline is not None:
            return pipeline
        with self._lock:
            if self._pipeline is None:
                logger.info("Loading layout model %s", self.config.model_path)
                self._pipeline = self._factory(self.config)
            return self._pipeline

    def run(self, image_bgr: Optional[np.ndarray], conf_threshold: Optional[float] = None) -> DetectionResult:
        try:
            pipeline = self.warm_up()
        except DocLayoutError as e:
            logger.warning("Layout model unavailable [%s]: %s", e.code, e)
            return self._unavailable(image_bgr, e)
        except Exception as e:
            logger.exception("Layout model could not be built")
            error = ModelLoadError(f"{type(e).__name__}: {e}")
            error.__cause__ = e
            return self._unavailable(image_bgr, error)
        return pipeline.run(image_bgr, conf_threshold)

    @staticmethod
    def _unavailable(image_bgr: Optional[np.ndarray], error: DocLayoutError) -> DetectionResult:
        ndim = getattr(image_bgr, "ndim", 0)
        h, w = image_bgr.shape[:2] if ndim >= 2 else (0, 0)
        return DetectionResult(image_width=int(w), image_height=int(h), error=error)

    def detect_file(self, path: Union[str, Path], conf_threshold: Optional[float] = None) -> str:
        import cv2  # type: ignore

        start = time.perf_counter()
        image = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if image is None or image.size == 0:
            logger.warning("Could not load image %s", path)
            return error_to_json("Could not load image", InvalidInputError.code)
        return self._render(image, conf_threshold, start)

    def detect_encoded(self, data: bytes, conf_threshold: Optional[float] = None) -> str:
        """
        Detect on encoded image bytes (PNG, JPEG, ... anything OpenCV decodes).
        """

        import cv2  # type: ignore

        start = time.perf_counter()
        buf = np.frombuffer(data, dtype=np.uint8)
        image = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
        if image is None or image.size == 0:
            return error_to_json("Could not decode image", InvalidInputError.code)
        return self._render(image, conf_threshold, start)

    def detect_bytes(
        self,
        data: bytes,
        width: int,
        height: int,
        channels: int,
        conf_threshold: Optional[float] = None,
    ) -> str:
        """
        Detect on a raw interleaved 8-bit pixel buffer (1 = gray, 3 = BGR, 4 = RGBA).
        """

        start = time.perf_counter()
        buf = np.frombuffer(data, dtype=np.uint8)
        expected = width * height * channels
        if width <= 0 or height <= 0 or channels not in (1, 3, 4) or buf.size != expected:
            return error_to_json(
                f"Pixel buffer of {buf.size} bytes does not match {width}x{height}x{channels}",
                InvalidInputError.code,
            )
        image = buf.reshape((height, width, channels))
        return self._render(ensure_bgr(image, four_channel_order="RGBA"), conf_threshold, start)

    def _render(self, image_bgr: np.ndarray, conf_threshold: Optional[float], start: float) -> str:
        result = self.run(image_bgr, conf_threshold)
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        return result_to_json(dataclasses.replace(result, inference_time_ms=elapsed_ms))
