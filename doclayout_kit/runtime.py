from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .backends import InferenceBackend
from .errors import DocLayoutError, InferenceError, InvalidInputError
from .postprocess import DocLayoutPostConfig, DocLayoutPostprocessor
from .preprocess import ensure_bgr, to_blob
from .resize import stretch_resize
from .schema import ModelSchema, classify_schema
from .taxonomy import DOC_CLASSES
from .types import DetectionBox, DetectionResult, ScaleFactor


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve relative model paths.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root` if provided, the project root otherwise.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]
    scale: ScaleFactor


class DocLayoutPipeline:
    """
    Synchronous pipeline: stretch resize -> NCHW blob -> schema feeds -> inference -> decode.

    Expects BGR images (OpenCV-style) as `np.ndarray`; grayscale and BGRA are
    converted. Holds no per-call state, so one instance can serve concurrent
    callers as long as its backend can.
    """

    def __init__(
        self,
        backend: InferenceBackend,
        *,
        input_size: Tuple[int, int] = (640, 640),
        post_cfg: DocLayoutPostConfig = DocLayoutPostConfig(),
    ):
        self.backend = backend
        self.input_size = input_size
        self.post = DocLayoutPostprocessor(post_cfg)

    @property
    def class_names(self) -> Sequence[str]:
        return self.post.cfg.class_names

    def schema(self) -> ModelSchema:
        return classify_schema(len(self.backend.input_names))

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        image_bgr = ensure_bgr(image_bgr)
        orig_h, orig_w = image_bgr.shape[:2]
        resized, scale = stretch_resize(image_bgr, new_shape=self.input_size)
        return PreprocessResult(blob=to_blob(resized), orig_size=(orig_w, orig_h), scale=scale)

    def detect_or_raise(self, image_bgr: np.ndarray, conf_threshold: Optional[float] = None) -> List[DetectionBox]:
        """
        Same as `detect` but lets `DocLayoutError`s propagate.
        """

        schema = self.schema()
        prep = self.preprocess(image_bgr)
        feeds = schema.build_feeds(prep.blob, prep.scale, prep.orig_size)
        logger.debug(
            "Running %s: orig=%dx%d scale=(%.4f, %.4f)",
            type(schema).__name__,
            prep.orig_size[0],
            prep.orig_size[1],
            prep.scale.sx,
            prep.scale.sy,
        )

        outputs = self.backend.run(feeds)
        if not outputs:
            raise InferenceError("Backend returned no outputs")
        preds = next(iter(outputs.values()))

        return self.post.process(
            preds,
            orig_size=prep.orig_size,
            scale=prep.scale,
            outputs_original_space=schema.outputs_original_space,
            conf_threshold=conf_threshold,
        )

    def run(self, image_bgr: Optional[np.ndarray], conf_threshold: Optional[float] = None) -> DetectionResult:
        """
        Detect layout regions and report the outcome explicitly.

        An empty image yields an empty, successful result. Pipeline failures are
        logged and returned in `DetectionResult.error` instead of raised.
        """

        start = time.perf_counter()
        if image_bgr is None or not hasattr(image_bgr, "shape") or image_bgr.size == 0:
            return DetectionResult()

        h = w = 0
        error: Optional[DocLayoutError] = None
        try:
            if image_bgr.ndim < 2:
                raise InvalidInputError(f"Expected an image array, got shape {image_bgr.shape}")
            h, w = image_bgr.shape[:2]
            detections = self.detect_or_raise(image_bgr, conf_threshold)
        except DocLayoutError as e:
            logger.warning("Layout detection failed [%s]: %s", e.code, e)
            detections, error = [], e
        except Exception as e:
            logger.exception("Layout detection failed unexpectedly")
            error = InferenceError(f"{type(e).__name__}: {e}")
            error.__cause__ = e
            detections = []

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        return DetectionResult(
            detections=detections,
            image_width=int(w),
            image_height=int(h),
            inference_time_ms=elapsed_ms,
            error=error,
        )

    def detect(self, image_bgr: Optional[np.ndarray], conf_threshold: Optional[float] = None) -> List[DetectionBox]:
        """
        Fail-soft detection: any pipeline failure yields an empty list.
        """

        return self.run(image_bgr, conf_threshold).detections

    def __call__(self, image_bgr: np.ndarray, conf_threshold: Optional[float] = None) -> List[DetectionBox]:
        return self.detect(image_bgr, conf_threshold)


def load_pipeline(
    model_path: PathLike,
    *,
    root: Optional[PathLike] = "auto",
    input_size: Tuple[int, int] = (640, 640),
    conf_threshold: float = 0.3,
    class_names: Sequence[str] = DOC_CLASSES,
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_output_name: Optional[str] = None,
    serialize_runs: bool = False,
) -> DocLayoutPipeline:
    """
    Create a pipeline for an ONNX model on disk.

    Typical usage:
        pipe = load_pipeline("models/pp_doclayout_m.onnx")  # resolves from project root by default

    Raises:
        ModelLoadError: the model file is missing or cannot be loaded.
        UnsupportedSchemaError: the model declares neither 2 nor 3 inputs.
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    resolved = resolve_path(model_path, root=root)
    backend = OnnxRuntimeBackend(
        resolved,
        OnnxRuntimeBackendConfig(
            providers=onnx_providers,
            output_name=onnx_output_name,
            serialize_runs=serialize_runs,
        ),
    )
    # Fail at startup rather than on the first call.
    classify_schema(backend.input_count)

    return DocLayoutPipeline(
        backend,
        input_size=input_size,
        post_cfg=DocLayoutPostConfig(conf_threshold=conf_threshold, class_names=tuple(class_names)),
    )
