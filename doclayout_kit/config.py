from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class DetectorConfig:
    model_path: str
    input_size: Tuple[int, int] = (640, 640)
    conf_threshold: float = 0.3
    providers: Optional[Tuple[str, ...]] = None
    serialize_runs: bool = False
    metadata_path: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.model_path:
            raise ValueError("model_path must be a non-empty string")
        if len(self.input_size) != 2 or any(int(v) <= 0 for v in self.input_size):
            raise ValueError("input_size must be two positive integers (width, height)")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be within [0, 1]")


def _require_str(payload: Dict[str, Any], key: str) -> str:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_size(payload: Dict[str, Any], key: str, default: Tuple[int, int]) -> Tuple[int, int]:
    value = payload.get(key, default)
    if isinstance(value, int) and not isinstance(value, bool):
        return (value, value)
    if (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    ):
        return (int(value[0]), int(value[1]))
    raise ValueError(f"{key} must be an integer or a [width, height] pair")


def _optional_providers(payload: Dict[str, Any], key: str) -> Optional[Tuple[str, ...]]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        cleaned = [v.strip() for v in value]
        if not cleaned or any(not v for v in cleaned):
            raise ValueError(f"{key} must not contain empty strings")
        return tuple(cleaned)
    raise ValueError(f"{key} must be a string or list of strings")


def load_detector_config(path: Path) -> DetectorConfig:
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    allowed = {
        "model_path",
        "input_size",
        "conf_threshold",
        "providers",
        "serialize_runs",
        "metadata_path",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    serialize_runs = payload.get("serialize_runs", False)
    if not isinstance(serialize_runs, bool):
        raise ValueError("serialize_runs must be a boolean")
    metadata_path = payload.get("metadata_path")
    if metadata_path is not None and not isinstance(metadata_path, str):
        raise ValueError("metadata_path must be a string if provided")

    return DetectorConfig(
        model_path=_require_str(payload, "model_path"),
        input_size=_optional_size(payload, "input_size", (640, 640)),
        conf_threshold=_optional_number(payload, "conf_threshold", 0.3),
        providers=_optional_providers(payload, "providers"),
        serialize_runs=serialize_runs,
        metadata_path=metadata_path,
    )
