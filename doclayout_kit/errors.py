from __future__ import annotations


class DocLayoutError(RuntimeError):
    """
    Base class for every failure the detection pipeline can report.

    `code` is the stable identifier used in boundary error payloads.
    """

    code = "DOCLAYOUT_ERROR"


class InvalidInputError(DocLayoutError, ValueError):
    code = "IMAGE_LOAD_FAILED"


class ModelLoadError(DocLayoutError):
    code = "MODEL_LOAD_FAILED"


class UnsupportedSchemaError(DocLayoutError):
    code = "UNSUPPORTED_SCHEMA"


class InferenceError(DocLayoutError):
    code = "INFERENCE_FAILED"
