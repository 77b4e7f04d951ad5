"""
Stereo Mask Compositing
=======================

Pure pixel-buffer transforms for applying a stereo occlusion mask.

Layouts:
    mask   side-by-side   [ left eye | right eye ]
    frame  top/bottom     [ left eye ]
                          [ right eye ]

Per eye:
    1. Take the eye's half of the mask, scaled to the eye's half of the frame
    2. Luminance (one channel) -> alpha, RGB forced to white
    3. Source-in: frame pixels keep their color, alpha *= mask alpha
    4. Paste into the matching half of a cleared output buffer

All buffers are RGBA, shape (H, W, 4), dtype uint8. No function here
touches a rendering surface.
"""

from typing import Tuple

import cv2
import numpy as np


def _check_rgba(buf: np.ndarray, name: str) -> None:
    if buf.ndim != 3 or buf.shape[2] != 4:
        raise ValueError(f"{name} must be RGBA (H, W, 4), got {buf.shape}")
    if buf.dtype != np.uint8:
        raise ValueError(f"{name} must be uint8, got {buf.dtype}")


def split_side_by_side(buf: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Split into (left, right) halves of equal width."""
    half = buf.shape[1] // 2
    return buf[:, :half], buf[:, half:2 * half]


def split_top_bottom(buf: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Split into (top, bottom) halves of equal height."""
    half = buf.shape[0] // 2
    return buf[:half], buf[half:2 * half]


def fit_to(buf: np.ndarray, width: int, height: int) -> np.ndarray:
    """Scale a buffer to exactly width x height."""
    if buf.shape[1] == width and buf.shape[0] == height:
        return buf
    return cv2.resize(
        np.ascontiguousarray(buf),
        (width, height),
        interpolation=cv2.INTER_LINEAR,
    )


def luminance_to_alpha(mask: np.ndarray, channel: int = 0) -> np.ndarray:
    """
    Convert a mask's luminance into an alpha channel.

    Args:
        mask: RGBA mask
        channel: Color channel read as luminance (0=R, 1=G, 2=B)

    Returns:
        RGBA buffer with RGB = 255 and alpha = mask[..., channel]
    """
    _check_rgba(mask, "mask")
    out = np.empty_like(mask)
    out[..., :3] = 255
    out[..., 3] = mask[..., channel]
    return out


def apply_alpha_mask(source: np.ndarray, alpha_mask: np.ndarray) -> np.ndarray:
    """
    Source-in compositing of source over an alpha mask.

    Result color is the source color; result alpha is
    source_alpha * mask_alpha / 255.
    """
    _check_rgba(source, "source")
    _check_rgba(alpha_mask, "alpha_mask")
    if source.shape != alpha_mask.shape:
        raise ValueError(
            f"shape mismatch: source {source.shape} vs mask {alpha_mask.shape}"
        )

    out = source.copy()
    alpha = source[..., 3].astype(np.uint16) * alpha_mask[..., 3].astype(np.uint16)
    out[..., 3] = ((alpha + 127) // 255).astype(np.uint8)
    return out


def composite_stereo_mask(
    frame: np.ndarray,
    mask: np.ndarray,
    channel: int = 0,
) -> np.ndarray:
    """
    Clip a top/bottom stereo frame with a side-by-side mask.

    Args:
        frame: RGBA frame, top half = left eye, bottom half = right eye
        mask: RGBA mask, left half = left eye, right half = right eye
        channel: Mask channel read as luminance

    Returns:
        New RGBA buffer of the frame's size where only mask-lit regions
        of each eye are opaque.

    Raises:
        ValueError: If either buffer is not RGBA, the frame has no
            room for two eyes or the mask cannot be split in two.
    """
    _check_rgba(frame, "frame")
    _check_rgba(mask, "mask")

    eye_height = frame.shape[0] // 2
    eye_width = frame.shape[1]
    if eye_height == 0:
        raise ValueError(f"frame of height {frame.shape[0]} cannot hold two eyes")
    if mask.shape[1] < 2:
        raise ValueError(f"mask of width {mask.shape[1]} cannot be split into two eyes")

    output = np.zeros_like(frame)

    frame_eyes = split_top_bottom(frame)
    mask_eyes = split_side_by_side(mask)

    for eye, (frame_half, mask_half) in enumerate(zip(frame_eyes, mask_eyes)):
        alpha_mask = luminance_to_alpha(fit_to(mask_half, eye_width, eye_height), channel)
        top = eye * eye_height
        output[top:top + eye_height] = apply_alpha_mask(frame_half, alpha_mask)

    return output
