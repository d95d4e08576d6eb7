from __future__ import annotations

import math
from typing import Iterable, List

from .types import DetectionBox


def sort_by_reading_order(detections: Iterable[DetectionBox], row_tolerance: float = 50.0) -> List[DetectionBox]:
    """
    Return a new list ordered top-to-bottom, then left-to-right.

    Boxes whose vertical centers fall into the same `row_tolerance`-pixel band
    are treated as one row. The pipeline never applies this on its own.
    """

    if row_tolerance <= 0:
        raise ValueError("row_tolerance must be > 0")
    return sorted(detections, key=lambda d: (math.floor(d.center_y / row_tolerance), d.x1))
