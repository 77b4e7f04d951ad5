"""
Image Codec
===========

Decoding of fetched images into RGBA buffers and lossless encoding of
final stills.

Design Rules:
    - This is the ONLY place in the codebase that decodes or encodes images
    - Decoded buffers are always RGBA, uint8, (H, W, 4)
    - Fails fast on corrupt input
"""

import logging

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class ImageDecodeError(Exception):
    """Raised when image decoding or encoding fails."""
    pass


def decode_image_rgba(data: bytes) -> np.ndarray:
    """
    Decode PNG/JPEG/etc. bytes into an RGBA buffer.

    Grayscale and BGR inputs are expanded; an existing alpha channel is
    kept.

    Args:
        data: Encoded image bytes

    Returns:
        RGBA image as np.ndarray (H, W, 4), dtype=uint8

    Raises:
        ImageDecodeError: If decoding fails or the image is invalid
    """
    if not data:
        raise ImageDecodeError("Empty image payload")

    nparr = np.frombuffer(data, np.uint8)
    decoded = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)

    if decoded is None:
        raise ImageDecodeError("cv2.imdecode returned None")

    if decoded.dtype == np.uint16:
        decoded = (decoded >> 8).astype(np.uint8)
    elif decoded.dtype != np.uint8:
        raise ImageDecodeError(f"Unsupported image dtype: {decoded.dtype}")

    if decoded.ndim == 2:
        return cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGBA)
    if decoded.ndim == 3 and decoded.shape[2] == 3:
        return cv2.cvtColor(decoded, cv2.COLOR_BGR2RGBA)
    if decoded.ndim == 3 and decoded.shape[2] == 4:
        return cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)

    raise ImageDecodeError(f"Invalid image shape: {decoded.shape}")


def encode_png(rgba: np.ndarray) -> bytes:
    """
    Encode an RGBA buffer as PNG.

    Raises:
        ImageDecodeError: If the buffer is not RGBA or encoding fails
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ImageDecodeError(f"Expected RGBA buffer, got shape {rgba.shape}")

    ok, encoded = cv2.imencode(".png", cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))
    if not ok:
        raise ImageDecodeError("cv2.imencode failed")
    return encoded.tobytes()
