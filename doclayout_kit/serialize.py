"""
Compact JSON rendering of detection results.

Field set and order are a wire contract with callers:

    {"detections":[{"x1":..,"y1":..,"x2":..,"y2":..,"score":..,"class_id":..,"class_name":".."}],"count":N}

Coordinates use 2 fixed decimals and scores 4, at every call site.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Sequence

from .errors import DocLayoutError
from .types import DetectionBox, DetectionResult

COORD_DECIMALS = 2
SCORE_DECIMALS = 4


def _box_to_json(box: DetectionBox) -> str:
    c = COORD_DECIMALS
    return (
        "{"
        f'"x1":{box.x1:.{c}f},'
        f'"y1":{box.y1:.{c}f},'
        f'"x2":{box.x2:.{c}f},'
        f'"y2":{box.y2:.{c}f},'
        f'"score":{box.score:.{SCORE_DECIMALS}f},'
        f'"class_id":{int(box.class_id)},'
        f'"class_name":{json.dumps(box.class_name)}'
        "}"
    )


def _detections_body(detections: Sequence[DetectionBox]) -> str:
    items = ",".join(_box_to_json(d) for d in detections)
    return f'"detections":[{items}],"count":{len(detections)}'


def detections_to_json(detections: Iterable[DetectionBox]) -> str:
    return "{" + _detections_body(list(detections)) + "}"


def result_to_json(result: DetectionResult) -> str:
    """
    Detections plus timing and source image size, appended after `count`.
    """

    return (
        "{"
        + _detections_body(result.detections)
        + f',"inference_time_ms":{int(result.inference_time_ms)}'
        + f',"image_width":{int(result.image_width)}'
        + f',"image_height":{int(result.image_height)}'
        + "}"
    )


def error_to_json(message: str, code: str) -> str:
    return "{" + f'"error":{json.dumps(message)},"code":{json.dumps(code)}' + "}"


class _ParsedError(DocLayoutError):
    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


def _box_from_dict(d: Dict[str, Any]) -> DetectionBox:
    return DetectionBox(
        x1=float(d["x1"]),
        y1=float(d["y1"]),
        x2=float(d["x2"]),
        y2=float(d["y2"]),
        score=float(d["score"]),
        class_id=int(d["class_id"]),
        class_name=str(d["class_name"]),
    )


def parse_result_json(text: str) -> DetectionResult:
    """
    Parse any payload produced by this module back into a DetectionResult.
    """

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid detection JSON") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detection JSON must be an object")

    if "error" in payload:
        return DetectionResult(error=_ParsedError(str(payload["error"]), str(payload.get("code") or "")))

    raw: List[Dict[str, Any]] = payload.get("detections") or []
    detections = [_box_from_dict(d) for d in raw]
    count = payload.get("count", len(detections))
    if count != len(detections):
        raise ValueError(f"count {count} does not match {len(detections)} detections")

    return DetectionResult(
        detections=detections,
        image_width=int(payload.get("image_width", 0)),
        image_height=int(payload.get("image_height", 0)),
        inference_time_ms=int(payload.get("inference_time_ms", 0)),
    )
