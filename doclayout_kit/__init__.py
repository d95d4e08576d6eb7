"""
Document-layout detection on top of PP-DocLayout ONNX exports.

Stretch-resizes a page image, feeds whichever input schema the loaded model
declares (2-input or 3-input export), and decodes the detections back into
original image coordinates. Needs NumPy and OpenCV; ONNX Runtime is only
imported when a model is loaded.
"""

from .errors import (
    DocLayoutError,
    InferenceError,
    InvalidInputError,
    ModelLoadError,
    UnsupportedSchemaError,
)
from .types import DetectionBox, DetectionResult, ScaleFactor
from .taxonomy import DOC_CLASSES, class_id_for, class_name_for, load_class_names
from .resize import stretch_resize
from .preprocess import ensure_bgr, to_blob
from .schema import ModelSchema, ThreeInputSchema, TwoInputSchema, classify_schema
from .postprocess import DocLayoutPostConfig, DocLayoutPostprocessor
from .runtime import DocLayoutPipeline, load_pipeline, find_project_root, resolve_path
from .serialize import detections_to_json, error_to_json, parse_result_json, result_to_json
from .config import DetectorConfig, load_detector_config
from .service import DocLayoutService, VERSION
from .reading_order import sort_by_reading_order
from .visualize import draw_detections
from .html_export import generate_body, generate_html
from .form_export import generate_filled_html, generate_form_html

__version__ = VERSION

__all__ = [
    "DocLayoutError",
    "InferenceError",
    "InvalidInputError",
    "ModelLoadError",
    "UnsupportedSchemaError",
    "DetectionBox",
    "DetectionResult",
    "ScaleFactor",
    "DOC_CLASSES",
    "class_id_for",
    "class_name_for",
    "load_class_names",
    "stretch_resize",
    "ensure_bgr",
    "to_blob",
    "ModelSchema",
    "ThreeInputSchema",
    "TwoInputSchema",
    "classify_schema",
    "DocLayoutPostConfig",
    "DocLayoutPostprocessor",
    "DocLayoutPipeline",
    "load_pipeline",
    "find_project_root",
    "resolve_path",
    "detections_to_json",
    "error_to_json",
    "parse_result_json",
    "result_to_json",
    "DetectorConfig",
    "load_detector_config",
    "DocLayoutService",
    "VERSION",
    "sort_by_reading_order",
    "draw_detections",
    "generate_body",
    "generate_html",
    "generate_filled_html",
    "generate_form_html",
]
