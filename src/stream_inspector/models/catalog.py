"""
Catalog Models
==============

Source configuration documents listing sports, games and clips.

Input Contract (one source configuration):
    [
        {
            "sport": "basketball",
            "games": [
                {
                    "clips": [
                        {
                            "id": "c-1001",
                            "gid": "g-42",
                            "lid": "nba",
                            "sid": "2025",
                            "mediaType": "hls",
                            "strurl": "https://cdn.example.com/c-1001/master.m3u8",
                            "thumbnailUrl": "https://cdn.example.com/c-1001/thumb.jpg",
                            "maskUrl": "https://cdn.example.com/c-1001/mask.png",
                            "time_segment": {
                                "start_wall_time": "2024-01-01T00:00:00Z",
                                "end_wall_time": "2024-01-01T00:01:30Z"
                            },
                            "registration": {
                                "left": "https://cdn.example.com/rig/left.json",
                                "right": "https://cdn.example.com/rig/right.json"
                            }
                        }
                    ]
                }
            ]
        }
    ]

Unknown keys are preserved on every model so the raw clip can be shown as-is.
"""

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from stream_inspector.models.manifest import TimeSegment


class StereoRegistrationRefs(BaseModel):
    """URLs of the left/right registration documents of a stereo rig."""

    left: str = Field(..., description="Left camera registration URL")
    right: str = Field(..., description="Right camera registration URL")


class Clip(BaseModel):
    """
    A single capturable clip.

    Attributes:
        id: Clip identifier
        gid / lid / sid: Game, league and season identifiers
        media_type: Declared media type (e.g. "hls")
        strurl: Top-level manifest URL
        mask_url: Side-by-side stereo occlusion mask
        time_segment: Wall-clock capture range
        registration: Stereo registration document URLs
    """

    id: str = Field(..., description="Clip identifier")
    gid: Optional[str] = Field(default=None)
    lid: Optional[str] = Field(default=None)
    sid: Optional[str] = Field(default=None)
    media_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("mediaType", "media_type"),
    )
    strurl: Optional[str] = Field(default=None, description="Manifest URL")
    thumbnail_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("thumbnailUrl", "thumbnail_url"),
    )
    mask_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("maskUrl", "mask_url"),
    )
    time_segment: Optional[TimeSegment] = Field(
        default=None,
        validation_alias=AliasChoices("time_segment", "timeSegment"),
    )
    registration: Optional[StereoRegistrationRefs] = Field(default=None)

    @field_validator("id", "gid", "lid", "sid", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        """Identifiers are sometimes published as numbers."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    class Config:
        extra = "allow"


class GameEntry(BaseModel):
    """One game and its clips."""

    clips: List[Clip] = Field(default_factory=list)

    class Config:
        extra = "allow"


class SportEntry(BaseModel):
    """Top-level catalog entry grouping games by sport."""

    sport: str = Field(..., description="Sport name")
    games: List[GameEntry] = Field(default_factory=list)

    class Config:
        extra = "allow"
