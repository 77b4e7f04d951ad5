"""
Data Models
===========

Pydantic models for StreamInspector.

Models:
    Manifest:
        - PlaylistVariant, Resolution: one rung of the variant ladder
        - MediaPlaylistFacts: facts of the first media playlist
        - SampleSegment, TimeSegment: probe result and capture range
        - StreamSummary: aggregate description of a stream

    Registration:
        - Intrinsics, RegistrationRecord: one camera's calibration
        - RegistrationSummary: derived per-camera facts
        - ComparisonResult: stereo pair comparison

    Catalog:
        - SportEntry, GameEntry, Clip: source configuration documents
"""

from stream_inspector.models.manifest import (
    MediaPlaylistFacts,
    PlaylistType,
    PlaylistVariant,
    Resolution,
    SampleSegment,
    StreamSummary,
    TimeSegment,
)
from stream_inspector.models.registration import (
    ComparisonResult,
    Intrinsics,
    RegistrationRecord,
    RegistrationSummary,
    Vec3,
)
from stream_inspector.models.catalog import (
    Clip,
    GameEntry,
    SportEntry,
    StereoRegistrationRefs,
)

__all__ = [
    # Manifest
    "Resolution",
    "PlaylistVariant",
    "MediaPlaylistFacts",
    "PlaylistType",
    "SampleSegment",
    "TimeSegment",
    "StreamSummary",
    # Registration
    "Vec3",
    "Intrinsics",
    "RegistrationRecord",
    "RegistrationSummary",
    "ComparisonResult",
    # Catalog
    "Clip",
    "GameEntry",
    "SportEntry",
    "StereoRegistrationRefs",
]
