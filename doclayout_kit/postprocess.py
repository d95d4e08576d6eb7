from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .errors import InferenceError
from .taxonomy import DOC_CLASSES
from .types import DetectionBox, ScaleFactor

logger = logging.getLogger(__name__)

ROW_WIDTH = 6


@dataclass(frozen=True)
class DocLayoutPostConfig:
    """
    Decoder settings. `class_names` must follow the model's trained class order.
    """

    conf_threshold: float = 0.3
    class_names: Sequence[str] = DOC_CLASSES


class DocLayoutPostprocessor:
    """
    Decode PP-DocLayout detections.

    Output layout (per image), already post-NMS:
    - (N, 6): [class_id, score, x1, y1, x2, y2]

    Class and score come first; reading it as [x1, y1, x2, y2, score, class]
    silently produces garbage. Rows keep the model's order; nothing is sorted.
    """

    def __init__(self, cfg: DocLayoutPostConfig = DocLayoutPostConfig()):
        self.cfg = cfg

    def process(
        self,
        preds: np.ndarray,
        orig_size: Tuple[int, int],
        scale: ScaleFactor = ScaleFactor(1.0, 1.0),
        outputs_original_space: bool = False,
        conf_threshold: Optional[float] = None,
    ) -> List[DetectionBox]:
        """
        Convert raw model rows into filtered detections in original image coordinates.

        Args:
            preds: primary output tensor for a single image
            orig_size: (width, height) of the original image
            scale: resize ratio used by preprocessing
            outputs_original_space: True when the model already emits original
                coordinates (3-input export); `scale` is then ignored
            conf_threshold: overrides the configured threshold for this call
        """

        threshold = self.cfg.conf_threshold if conf_threshold is None else conf_threshold
        rows = self._decode(preds)
        if rows.shape[0] == 0:
            return []

        raw_cls = np.trunc(rows[:, 0])
        scores = rows[:, 1]
        boxes = rows[:, 2:6].copy()

        num_classes = len(self.cfg.class_names)
        keep = (
            np.isfinite(scores)
            & (scores >= threshold)
            & np.isfinite(raw_cls)
            & (raw_cls >= 0)
            & (raw_cls < num_classes)
        )
        logger.debug("Decoded %d raw rows, %d kept at threshold %.3f", rows.shape[0], int(keep.sum()), threshold)
        if not keep.any():
            return []

        boxes, scores, class_ids = boxes[keep], scores[keep], raw_cls[keep].astype(np.int64)

        if not outputs_original_space:
            boxes = self._unscale_boxes(boxes, scale)
        boxes = self._clip_boxes(boxes, orig_size)

        names = self.cfg.class_names
        return [
            DetectionBox(
                x1=float(x1),
                y1=float(y1),
                x2=float(x2),
                y2=float(y2),
                score=float(score),
                class_id=int(cls_id),
                class_name=names[int(cls_id)],
            )
            for (x1, y1, x2, y2), score, cls_id in zip(boxes, scores, class_ids)
        ]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _decode(self, preds: np.ndarray) -> np.ndarray:
        p = np.asarray(preds, dtype=np.float64)
        if p.ndim == 3:
            if p.shape[0] != 1:
                raise InferenceError(f"Batch > 1 is not supported (got shape {p.shape}).")
            p = p[0]
        if p.ndim == 1 and p.size == 0:
            return np.empty((0, ROW_WIDTH), dtype=np.float64)
        if p.ndim != 2 or p.shape[1] < ROW_WIDTH:
            raise InferenceError(f"Unsupported detection output shape: {np.shape(preds)}")
        return p[:, :ROW_WIDTH]

    def _unscale_boxes(self, boxes: np.ndarray, scale: ScaleFactor) -> np.ndarray:
        """
        Map boxes from the resized network input back to the original image.
        """

        boxes[:, [0, 2]] = boxes[:, [0, 2]] / scale.sx
        boxes[:, [1, 3]] = boxes[:, [1, 3]] / scale.sy
        return boxes

    def _clip_boxes(self, boxes: np.ndarray, orig_size: Tuple[int, int]) -> np.ndarray:
        orig_w, orig_h = orig_size
        boxes[:, [0, 2]] = np.nan_to_num(boxes[:, [0, 2]], nan=0.0, posinf=orig_w, neginf=0.0)
        boxes[:, [1, 3]] = np.nan_to_num(boxes[:, [1, 3]], nan=0.0, posinf=orig_h, neginf=0.0)
        boxes[:, 0] = np.clip(boxes[:, 0], 0, orig_w)
        boxes[:, 2] = np.clip(boxes[:, 2], 0, orig_w)
        boxes[:, 1] = np.clip(boxes[:, 1], 0, orig_h)
        boxes[:, 3] = np.clip(boxes[:, 3], 0, orig_h)
        # Inverted corners collapse onto x1/y1.
        boxes[:, 2] = np.maximum(boxes[:, 2], boxes[:, 0])
        boxes[:, 3] = np.maximum(boxes[:, 3], boxes[:, 1])
        return boxes
