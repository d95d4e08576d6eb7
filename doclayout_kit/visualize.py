from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .html_export import CLASS_COLORS, css_class_for
from .types import DetectionBox


def hex_to_bgr(color: str) -> Tuple[int, int, int]:
    r, g, b = (int(color[i : i + 2], 16) for i in (1, 3, 5))
    return b, g, r


def color_for_class(class_name: str) -> Tuple[int, int, int]:
    """
    BGR colour of a region class, shared with the HTML export's border colours.
    """

    return hex_to_bgr(CLASS_COLORS[css_class_for(class_name)])


def _draw_label(
    cv2,
    out: np.ndarray,
    label: str,
    origin: Tuple[int, int],
    color: Tuple[int, int, int],
    font_scale: float,
    thickness: int,
) -> None:
    h, w = out.shape[:2]
    x, y = origin
    (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, thickness)

    # Above the box when it fits, otherwise inside its top edge.
    top = y - th - baseline if y - th - baseline >= 0 else y
    cv2.rectangle(out, (x, top), (min(x + tw, w - 1), min(top + th + baseline, h - 1)), color, thickness=-1)
    cv2.putText(
        out,
        label,
        (x, min(top + th, h - 1)),
        cv2.FONT_HERSHEY_SIMPLEX,
        font_scale,
        (255, 255, 255),
        thickness=thickness,
        lineType=cv2.LINE_AA,
    )


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[DetectionBox],
    *,
    show_score: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw layout regions with `class_name score` labels on a copy of a BGR page.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]
    upper = np.array([w - 1, h - 1, w - 1, h - 1])

    for det in detections:
        x1, y1, x2, y2 = (int(v) for v in np.clip(np.round(det.as_xyxy()), 0, upper))
        color = color_for_class(det.class_name)
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=box_thickness)

        label = f"{det.class_name} {det.score:.2f}" if show_score else det.class_name
        _draw_label(cv2, out, label, (x1, y1), color, font_scale, font_thickness)

    return out
