"""
Extraction Module
=================

Representative still-frame extraction for adaptive streams.

Components:
    - FrameExtractionPipeline: LangGraph stage machine with generation tokens
    - MediaEngine / OpenCVMediaEngine: decoder driving the rendering surface
    - RenderSurface: decode target + pixel canvas
    - MaskLoader / composite_stereo_mask: stereo occlusion mask compositing
"""

from stream_inspector.extraction.compositing import (
    apply_alpha_mask,
    composite_stereo_mask,
    fit_to,
    luminance_to_alpha,
    split_side_by_side,
    split_top_bottom,
)
from stream_inspector.extraction.engine import (
    EngineFactory,
    EngineSignal,
    MediaEngine,
    OpenCVMediaEngine,
    SignalKind,
    make_opencv_engine_factory,
    opencv_engine_factory,
)
from stream_inspector.extraction.image_codec import (
    ImageDecodeError,
    decode_image_rgba,
    encode_png,
)
from stream_inspector.extraction.mask import MaskLoader, same_origin
from stream_inspector.extraction.pipeline import FrameExtractionPipeline
from stream_inspector.extraction.request import (
    ExtractionStage,
    FrameExtractionRequest,
    FrameExtractionResult,
)
from stream_inspector.extraction.surface import (
    PixelCanvas,
    RenderSurface,
    SurfaceProvider,
    VideoTarget,
)


__all__ = [
    # Pipeline
    "FrameExtractionPipeline",
    "FrameExtractionRequest",
    "FrameExtractionResult",
    "ExtractionStage",
    # Engine
    "MediaEngine",
    "EngineFactory",
    "EngineSignal",
    "SignalKind",
    "OpenCVMediaEngine",
    "opencv_engine_factory",
    "make_opencv_engine_factory",
    # Surface
    "RenderSurface",
    "SurfaceProvider",
    "VideoTarget",
    "PixelCanvas",
    # Masks and pixels
    "MaskLoader",
    "same_origin",
    "split_side_by_side",
    "split_top_bottom",
    "fit_to",
    "luminance_to_alpha",
    "apply_alpha_mask",
    "composite_stereo_mask",
    "decode_image_rgba",
    "encode_png",
    "ImageDecodeError",
]
