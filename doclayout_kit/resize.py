from typing import Tuple

import numpy as np

from .errors import InvalidInputError
from .types import ScaleFactor


def stretch_resize(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (640, 640),
) -> Tuple[np.ndarray, ScaleFactor]:
    """
    Stretch `image` to exactly `new_shape` (width, height), ignoring aspect ratio.

    PP-DocLayout exports are trained on plain resized inputs, so no padding is applied.

    Returns:
        resized: image of shape (new_h, new_w, C)
        scale: ScaleFactor(new_w / w, new_h / h)
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for stretch_resize(). Install with `pip install opencv-python`.") from e

    if image is None or not hasattr(image, "shape"):
        raise InvalidInputError("image must be a NumPy array.")
    if image.ndim < 2:
        raise InvalidInputError(f"Expected an image array, got shape {image.shape}")

    h, w = image.shape[:2]
    if h == 0 or w == 0:
        raise InvalidInputError("Empty image")

    if isinstance(new_shape, int):
        new_shape = (new_shape, new_shape)
    new_w, new_h = new_shape

    scale = ScaleFactor(sx=new_w / w, sy=new_h / h)
    if (w, h) != (new_w, new_h):
        image = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_LINEAR)

    return image, scale
