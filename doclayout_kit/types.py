from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .errors import DocLayoutError


@dataclass(frozen=True)
class DetectionBox:
    """
    One detected layout region in original image pixel coordinates.

    `class_name` is always resolved from the taxonomy by the decoder.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    score: float
    class_id: int
    class_name: str

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center_x(self) -> float:
        return (self.x1 + self.x2) / 2

    @property
    def center_y(self) -> float:
        return (self.y1 + self.y2) / 2

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2


@dataclass(frozen=True)
class ScaleFactor:
    """
    Resize ratio (normalized / original) per axis.
    """

    sx: float
    sy: float

    def invert(self, x: float, y: float) -> Tuple[float, float]:
        return x / self.sx, y / self.sy


@dataclass(frozen=True)
class DetectionResult:
    detections: List[DetectionBox] = field(default_factory=list)
    image_width: int = 0
    image_height: int = 0
    inference_time_ms: int = 0
    error: Optional[DocLayoutError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def count(self) -> int:
        return len(self.detections)

    @property
    def error_code(self) -> Optional[str]:
        return None if self.error is None else self.error.code

    def filter_by_class(self, cls: Union[int, str]) -> List[DetectionBox]:
        if isinstance(cls, str):
            return [d for d in self.detections if d.class_name == cls]
        return [d for d in self.detections if d.class_id == int(cls)]

    def filter_by_score(self, min_score: float) -> List[DetectionBox]:
        return [d for d in self.detections if d.score >= min_score]
