"""
Registration Models
===================

Camera registration (calibration) records and their derived views.

Input Contract (one camera of a stereo pair):
    {
        "intrinsics": {"fx": 1402.5, "fy": 1401.9, "cx": 960.0, "cy": 540.0},
        "resolution": {"width": 1920, "height": 1080},
        "distortion": {"k1": -0.12, "k2": 0.03},
        "world_position": [12.0, -30.5, 8.2],
        "world_view_direction": [0.1, 0.95, -0.3],
        "misc": "left eye, rig B"
    }

Coordinate Frame:
    World space is z-up. The ground plane is z = 0.

Design Rules:
    - Calibration parameters are summarized and compared, never estimated
    - Distortion coefficients are opaque; only their presence matters
    - Derived summaries are pure functions of the record
"""

from typing import Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from stream_inspector.models.manifest import Resolution


Vec3 = Tuple[float, float, float]


class Intrinsics(BaseModel):
    """Pinhole intrinsics in pixels."""

    fx: float = Field(..., description="Focal length along x (pixels)")
    fy: float = Field(..., description="Focal length along y (pixels)")
    cx: float = Field(..., description="Principal point x (pixels)")
    cy: float = Field(..., description="Principal point y (pixels)")

    class Config:
        frozen = True


class RegistrationRecord(BaseModel):
    """
    One solved camera registration, as published by the capture rig.

    Every field is optional; absent fields simply skip the derived values
    that depend on them.
    """

    intrinsics: Optional[Intrinsics] = Field(default=None)
    resolution: Optional[Resolution] = Field(default=None)
    distortion: Optional[Any] = Field(
        default=None,
        description="Opaque distortion model; only presence is inspected",
    )
    world_position: Optional[Vec3] = Field(
        default=None,
        description="Camera center in world coordinates [x, y, z]",
    )
    world_view_direction: Optional[Vec3] = Field(
        default=None,
        description="Optical axis direction in world coordinates [vx, vy, vz]",
    )
    misc: Optional[str] = Field(default=None)

    @property
    def has_distortion(self) -> bool:
        return self.distortion is not None

    class Config:
        frozen = True


class RegistrationSummary(BaseModel):
    """
    Derived geometric summary of one registration record.

    Attributes:
        resolution_label: "{width}x{height}"
        focal_length_label: fx / fy to 2 decimals
        principal_point_label: cx / cy to 2 decimals
        xy_distance: Ground distance of the camera from the world origin
        vertical_tilt_deg: Downward pitch from horizontal (90 = straight down)
        ground_plane_point: Where the optical axis meets z = 0
    """

    resolution_label: Optional[str] = Field(default=None)
    focal_length_label: Optional[str] = Field(default=None)
    principal_point_label: Optional[str] = Field(default=None)
    world_position: Optional[Vec3] = Field(default=None)
    world_view_direction: Optional[Vec3] = Field(default=None)
    xy_distance: Optional[float] = Field(default=None, ge=0.0)
    vertical_tilt_deg: Optional[float] = Field(default=None)
    ground_plane_point: Optional[Vec3] = Field(default=None)
    misc: Optional[str] = Field(default=None)

    class Config:
        frozen = True


class ComparisonResult(BaseModel):
    """
    Structured comparison of a stereo pair.

    Notes are emitted in a fixed order:
    resolution, focal length, camera distance, vergence, distortion.
    """

    resolution_match: bool = Field(default=False)
    focal_length_diff: Optional[float] = Field(default=None, ge=0.0)
    camera_distance: Optional[float] = Field(default=None, ge=0.0)
    vergence_angle_deg: Optional[Union[Literal["parallel"], float]] = Field(
        default=None,
        description="Angle between view directions, or 'parallel'",
    )
    notes: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
