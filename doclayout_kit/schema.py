"""
Input schemas of the two supported PP-DocLayout exports.

- TwoInputSchema ("M" export): feeds `image` + the real `scale_factor`; boxes come
  back in the resized (network input) space and must be divided by the scale.
- ThreeInputSchema ("L" export): feeds `im_shape` + `image` + an identity
  `scale_factor`; the graph rescales internally and boxes come back in original
  image coordinates.

Tensor names are part of the exported graph and must match exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Tuple, Union

import numpy as np

from .errors import UnsupportedSchemaError
from .types import ScaleFactor


def _pair(a: float, b: float) -> np.ndarray:
    return np.array([[a, b]], dtype=np.float32)


@dataclass(frozen=True)
class TwoInputSchema:
    input_names: ClassVar[Tuple[str, ...]] = ("image", "scale_factor")
    outputs_original_space: ClassVar[bool] = False

    def build_feeds(self, blob: np.ndarray, scale: ScaleFactor, orig_size: Tuple[int, int]) -> Dict[str, np.ndarray]:
        # [sx, sy]: the same per-axis factors the decoder divides by
        return {
            "image": blob,
            "scale_factor": _pair(scale.sx, scale.sy),
        }


@dataclass(frozen=True)
class ThreeInputSchema:
    input_names: ClassVar[Tuple[str, ...]] = ("im_shape", "image", "scale_factor")
    outputs_original_space: ClassVar[bool] = True

    def build_feeds(self, blob: np.ndarray, scale: ScaleFactor, orig_size: Tuple[int, int]) -> Dict[str, np.ndarray]:
        # Identity scale; the graph rescales from im_shape itself.
        orig_w, orig_h = orig_size
        return {
            "im_shape": _pair(float(orig_h), float(orig_w)),
            "image": blob,
            "scale_factor": _pair(1.0, 1.0),
        }


ModelSchema = Union[TwoInputSchema, ThreeInputSchema]


def classify_schema(input_count: int) -> ModelSchema:
    if input_count == 3:
        return ThreeInputSchema()
    if input_count == 2:
        return TwoInputSchema()
    raise UnsupportedSchemaError(f"Model declares {input_count} inputs; only 2- and 3-input exports are supported")
