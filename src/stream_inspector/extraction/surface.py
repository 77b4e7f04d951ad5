"""
Rendering Surface
=================

In-memory rendering surface used by the frame extraction pipeline.

A RenderSurface pairs:
    - VideoTarget: the decode target the media engine presents frames to
    - PixelCanvas: a 2-D drawable RGBA buffer

Origin Rules:
    Content drawn from a VideoTarget whose origin_clean flag is False
    taints the canvas. Reading back or exporting a tainted canvas raises
    CanvasSecurityError until the canvas is cleared.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import numpy as np

from stream_inspector.errors import CanvasSecurityError
from stream_inspector.extraction.compositing import fit_to
from stream_inspector.extraction.image_codec import encode_png


logger = logging.getLogger(__name__)


# (x, y, width, height)
Rect = Tuple[int, int, int, int]


class VideoTarget:
    """
    Decode target holding the most recently presented frame.

    Attributes:
        origin_clean: False when the content is cross-origin and not
            access-enabled
    """

    def __init__(self) -> None:
        self._frame: Optional[np.ndarray] = None
        self.origin_clean: bool = True

    @property
    def frame(self) -> Optional[np.ndarray]:
        return self._frame

    @property
    def width(self) -> int:
        return 0 if self._frame is None else int(self._frame.shape[1])

    @property
    def height(self) -> int:
        return 0 if self._frame is None else int(self._frame.shape[0])

    def present(self, rgba: np.ndarray, origin_clean: bool = True) -> None:
        """Replace the current frame (called by the media engine)."""
        self._frame = rgba
        self.origin_clean = origin_clean

    def clear(self) -> None:
        self._frame = None
        self.origin_clean = True


class PixelCanvas:
    """
    Drawable RGBA buffer.

    Supports clear, draw-image-region, read-back, write-back and PNG
    export.
    """

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self._buffer = np.zeros((height, width, 4), dtype=np.uint8)
        self._tainted: bool = False

    @property
    def width(self) -> int:
        return int(self._buffer.shape[1])

    @property
    def height(self) -> int:
        return int(self._buffer.shape[0])

    @property
    def tainted(self) -> bool:
        return self._tainted

    def resize(self, width: int, height: int) -> None:
        """Resize and clear, like assigning a canvas's width/height."""
        self._buffer = np.zeros((height, width, 4), dtype=np.uint8)
        self._tainted = False

    def clear(self) -> None:
        self._buffer[...] = 0
        self._tainted = False

    def draw_image(
        self,
        image: np.ndarray,
        src_rect: Rect,
        dst_rect: Rect,
        origin_clean: bool = True,
    ) -> None:
        """
        Copy image[src_rect] scaled into dst_rect.

        Regions are clipped to the canvas; an empty region is a no-op.
        """
        sx, sy, sw, sh = src_rect
        dx, dy, dw, dh = dst_rect
        region = image[sy:sy + sh, sx:sx + sw]
        if region.size == 0 or dw <= 0 or dh <= 0:
            return

        scaled = fit_to(region, dw, dh)
        x1, y1 = min(dx + dw, self.width), min(dy + dh, self.height)
        if x1 <= dx or y1 <= dy:
            return
        self._buffer[dy:y1, dx:x1] = scaled[: y1 - dy, : x1 - dx]

        if not origin_clean:
            self._tainted = True

    def draw_video(self, video: VideoTarget, src_rect: Rect, dst_rect: Rect) -> None:
        if video.frame is None:
            return
        self.draw_image(video.frame, src_rect, dst_rect, origin_clean=video.origin_clean)

    def read_pixels(self) -> np.ndarray:
        """
        Read back an owned copy of the pixel buffer.

        Raises:
            CanvasSecurityError: If cross-origin content was drawn
        """
        if self._tainted:
            raise CanvasSecurityError(
                "pixel read-back denied: canvas holds cross-origin content"
            )
        return self._buffer.copy()

    def write_pixels(self, rgba: np.ndarray) -> None:
        if rgba.shape != self._buffer.shape:
            raise ValueError(
                f"buffer shape {rgba.shape} does not match canvas {self._buffer.shape}"
            )
        self._buffer[...] = rgba

    def export_png(self) -> bytes:
        if self._tainted:
            raise CanvasSecurityError(
                "export denied: canvas holds cross-origin content"
            )
        return encode_png(self._buffer)


@dataclass
class RenderSurface:
    """Decode target + pixel canvas, owned by one pipeline run at a time."""

    video: VideoTarget = field(default_factory=VideoTarget)
    canvas: PixelCanvas = field(default_factory=PixelCanvas)

    def reset(self) -> None:
        """Detach: drop any presented frame and empty the canvas."""
        self.video.clear()
        self.canvas.resize(0, 0)


SurfaceProvider = Callable[[], Optional[RenderSurface]]
