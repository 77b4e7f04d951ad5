"""
Manifest Models
===============

Structured views of an adaptive streaming (HLS) manifest.

Example Summary:
    {
        "playlist_type": "MasterAdaptive",
        "variant_count": 3,
        "facts": {
            "version": 6,
            "target_duration_sec": null,
            "codecs": ["avc1.640028", "mp4a.40.2"],
            "segment_tags": []
        },
        "total_duration_sec": 90,
        "sample_segment": {
            "uri": "https://cdn.example.com/clip/1080p/seg_00000.ts",
            "size_bytes": 1843200,
            "content_type": "video/mp2t"
        }
    }

Design Rules:
    - Absence is not failure: every parsed field is optional
    - Summaries are immutable and rebuilt from scratch on each request
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


class Resolution(BaseModel):
    """Pixel dimensions of a video rendition or camera sensor."""

    width: int = Field(..., ge=0, description="Width in pixels")
    height: int = Field(..., ge=0, description="Height in pixels")

    @property
    def label(self) -> str:
        return f"{self.width}x{self.height}"

    class Config:
        frozen = True


class PlaylistVariant(BaseModel):
    """
    One rung of the variant ladder.

    Attributes:
        bandwidth_bps: Peak bandwidth from the BANDWIDTH attribute
        resolution: Rendition size from the RESOLUTION attribute
        uri: Sub-manifest URI exactly as written (trimmed)
    """

    bandwidth_bps: Optional[int] = Field(
        default=None,
        ge=0,
        description="Peak bandwidth in bits per second",
    )

    resolution: Optional[Resolution] = Field(
        default=None,
        description="Rendition resolution",
    )

    uri: str = Field(
        ...,
        description="Variant sub-manifest URI (possibly relative)",
    )

    class Config:
        frozen = True


class MediaPlaylistFacts(BaseModel):
    """
    Facts collected in a single pass over a manifest.

    Attributes:
        version: Value of #EXT-X-VERSION
        target_duration_sec: Value of #EXT-X-TARGETDURATION
        codecs: Distinct codec strings in first-occurrence order
        segment_tags: Every #EXTINF line, in order
    """

    version: Optional[int] = Field(default=None, ge=0)
    target_duration_sec: Optional[int] = Field(default=None, ge=0)
    codecs: List[str] = Field(default_factory=list)
    segment_tags: List[str] = Field(default_factory=list)

    @property
    def segment_count(self) -> int:
        return len(self.segment_tags)

    class Config:
        frozen = True


class PlaylistType(str, Enum):
    """Kind of manifest, inferred from its content."""

    UNKNOWN = "Unknown"
    MASTER_ADAPTIVE = "MasterAdaptive"
    MEDIA = "Media"


class SampleSegment(BaseModel):
    """Headers-only probe result for one media segment."""

    uri: str = Field(..., description="Absolute segment URI that was probed")
    size_bytes: Optional[int] = Field(default=None, ge=0)
    content_type: Optional[str] = Field(default=None)

    class Config:
        frozen = True


class TimeSegment(BaseModel):
    """Wall-clock range a clip was captured over."""

    start_wall_time: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("start_wall_time", "startWallTime"),
    )
    end_wall_time: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("end_wall_time", "endWallTime"),
    )

    class Config:
        frozen = True


class StreamSummary(BaseModel):
    """
    Human-facing summary of a stream.

    Built by ManifestSummarizer from the parsed manifest, the clip's time
    range and, for adaptive manifests, one probed media segment.
    """

    playlist_type: PlaylistType = Field(default=PlaylistType.UNKNOWN)
    variant_count: int = Field(default=0, ge=0)
    variants: List[PlaylistVariant] = Field(default_factory=list)
    facts: MediaPlaylistFacts = Field(default_factory=MediaPlaylistFacts)
    total_duration_sec: Optional[int] = Field(
        default=None,
        ge=0,
        description="floor(end - start) from the clip time segment",
    )
    start_time: Optional[datetime] = Field(default=None)
    end_time: Optional[datetime] = Field(default=None)
    sample_segment: Optional[SampleSegment] = Field(default=None)

    class Config:
        frozen = True
