from __future__ import annotations

import numpy as np

from .errors import InvalidInputError


def ensure_bgr(image: np.ndarray, *, four_channel_order: str = "BGRA") -> np.ndarray:
    """
    Return a 3-channel BGR view of an 8-bit grayscale, BGR or 4-channel image.

    `four_channel_order` is "BGRA" for OpenCV-decoded images and "RGBA" for raw
    camera buffers.
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for ensure_bgr(). Install with `pip install opencv-python`.") from e

    if image is None or not hasattr(image, "shape"):
        raise InvalidInputError("image must be a NumPy array.")
    if image.dtype != np.uint8:
        raise InvalidInputError(f"Expected an 8-bit image, got dtype {image.dtype}")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.ndim != 3:
        raise InvalidInputError(f"Expected image shape (H, W) or (H, W, C), got {image.shape}")

    channels = image.shape[2]
    if channels == 3:
        return image
    if channels == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if channels == 4:
        if four_channel_order.upper() == "RGBA":
            return cv2.cvtColor(image, cv2.COLOR_RGBA2BGR)
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    raise InvalidInputError(f"Unsupported channel count: {channels}")


def to_blob(image_bgr: np.ndarray) -> np.ndarray:
    """
    Pack a resized BGR uint8 image into the model's NCHW float32 tensor.

    PP-DocLayout expects RGB scaled to [0, 1] with mean 0 / std 1.
    """

    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise InvalidInputError(f"Expected image shape (H, W, 3), got {image_bgr.shape}")

    # BGR -> RGB, normalize, HWC -> CHW, add batch
    blob = image_bgr[:, :, ::-1].astype(np.float32) / 255.0
    blob = np.transpose(blob, (2, 0, 1))[None, ...]
    return np.ascontiguousarray(blob)
