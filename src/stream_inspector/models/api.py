"""
API Models
==========

Request bodies accepted by the HTTP service.
"""

from typing import Optional

from pydantic import BaseModel, Field

from stream_inspector.models.manifest import TimeSegment
from stream_inspector.models.registration import RegistrationRecord


class SummaryRequest(BaseModel):
    """Body of POST /summary."""

    manifest_uri: str = Field(..., description="Top-level manifest URL")
    time_segment: Optional[TimeSegment] = Field(default=None)


class CompareRequest(BaseModel):
    """Body of POST /registration/compare."""

    left: RegistrationRecord
    right: RegistrationRecord


class ExtractRequest(BaseModel):
    """Body of POST /extract."""

    source_uri: str = Field(..., description="Top-level manifest URL")
    mask_uri: Optional[str] = Field(default=None, description="Stereo occlusion mask URL")
