"""
StreamInspector
===============

Diagnostic toolkit for stereo sports video clips delivered as adaptive
(HLS) streams.

Components:
    - manifest: variant ladder parsing and stream summaries
    - registration: per-camera calibration facts and stereo comparison
    - extraction: cancelable still-frame extraction with mask compositing
    - catalog: source configuration documents (sports → games → clips)
    - inspector: one-call inspection of a clip

Example:
    from stream_inspector.config import settings
    from stream_inspector.inspector import ClipInspector

    # The HTTP service is started via main.py
"""

__version__ = "0.1.0"
__author__ = "StreamInspector Project"

__all__ = [
    "__version__",
]
