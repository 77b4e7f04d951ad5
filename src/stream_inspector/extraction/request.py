"""
Extraction Request / Result
===========================

Typed inputs and outputs of the frame extraction pipeline.

Design Rules:
    - Every result carries the generation token it was computed under
    - A result is either a success (encoded still) or a labeled failure
    - Both are immutable
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from stream_inspector.errors import ErrorKind


class ExtractionStage(str, Enum):
    """Pipeline states, in execution order."""

    IDLE = "Idle"
    ATTACHING_SURFACE = "AttachingSurface"
    LOADING_MEDIA = "LoadingMedia"
    SEEKING_TO_START = "SeekingToStart"
    CAPTURING_PIXEL_BUFFER = "CapturingPixelBuffer"
    COMPOSITING_MASK = "CompositingMask"
    DONE = "Done"
    FAILED = "Failed"


@dataclass(frozen=True, slots=True)
class FrameExtractionRequest:
    """
    One still-frame request for a clip.

    Attributes:
        source_uri: Top-level manifest URL handed to the media engine
        mask_uri: Optional side-by-side stereo occlusion mask
    """

    source_uri: str
    mask_uri: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FrameExtractionResult:
    """
    Outcome of one extraction run.

    Attributes:
        generation: Token of the request this result belongs to
        image_png: Lossless still image (success only)
        width / height: Native frame size (success only)
        masked: Whether the stereo mask was composited
        error_kind / message: Failure label (failure only)
    """

    generation: int
    image_png: Optional[bytes] = None
    width: int = 0
    height: int = 0
    masked: bool = False
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None and self.image_png is not None

    @classmethod
    def failure(cls, generation: int, kind: ErrorKind, message: str) -> "FrameExtractionResult":
        return cls(generation=generation, error_kind=kind, message=message)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the image."""
        if self.ok:
            return (
                f"FrameExtractionResult(generation={self.generation}, "
                f"size={self.width}x{self.height}, masked={self.masked})"
            )
        return (
            f"FrameExtractionResult(generation={self.generation}, "
            f"error={self.error_kind.value if self.error_kind else None}: {self.message})"
        )
