"""
Registration Analyzer
=====================

Derives a geometric summary from one solved camera registration.

Formulas (z-up world frame):
    xy_distance        = sqrt(x^2 + y^2)                  (ground distance)
    vertical_tilt_deg  = atan2(-vz, sqrt(vx^2 + vy^2))    (0 = level, 90 = down)
    ground_plane_point = p + t * v,  t = -z / vz          (z forced to 0)

Design Rules:
    - Pure functions, no hidden state: same record -> equal summary
    - A missing input skips only the values that depend on it
    - A view ray parallel to the ground (vz == 0) has no intersection
"""

import logging
import math
from typing import Optional

from stream_inspector.models.registration import (
    RegistrationRecord,
    RegistrationSummary,
    Vec3,
)


logger = logging.getLogger(__name__)


def xy_distance(position: Vec3) -> float:
    x, y, _ = position
    return math.sqrt(x * x + y * y)


def vertical_tilt_deg(direction: Vec3) -> float:
    vx, vy, vz = direction
    return math.atan2(-vz, math.sqrt(vx * vx + vy * vy)) * 180.0 / math.pi


def ground_plane_intersection(position: Vec3, direction: Vec3) -> Optional[Vec3]:
    """
    Intersect the camera's view ray with the z = 0 plane.

    Returns:
        The intersection point, or None when the ray is parallel to
        the ground plane.
    """
    x, y, z = position
    vx, vy, vz = direction
    if vz == 0:
        return None

    t = -z / vz
    return (x + t * vx, y + t * vy, 0.0)


class RegistrationAnalyzer:
    """
    Turns a RegistrationRecord into a RegistrationSummary.

    Stateless; a single instance can be shared across requests.
    """

    def analyze(self, record: RegistrationRecord) -> RegistrationSummary:
        resolution_label = record.resolution.label if record.resolution else None

        focal_label: Optional[str] = None
        principal_label: Optional[str] = None
        if record.intrinsics is not None:
            k = record.intrinsics
            focal_label = f"fx: {k.fx:.2f}, fy: {k.fy:.2f}"
            principal_label = f"cx: {k.cx:.2f}, cy: {k.cy:.2f}"

        position = record.world_position
        direction = record.world_view_direction

        ground_point: Optional[Vec3] = None
        if position is not None and direction is not None:
            ground_point = ground_plane_intersection(position, direction)
            if ground_point is None:
                logger.debug("View direction parallel to ground plane, no intersection")

        return RegistrationSummary(
            resolution_label=resolution_label,
            focal_length_label=focal_label,
            principal_point_label=principal_label,
            world_position=position,
            world_view_direction=direction,
            xy_distance=xy_distance(position) if position is not None else None,
            vertical_tilt_deg=(
                vertical_tilt_deg(direction) if direction is not None else None
            ),
            ground_plane_point=ground_point,
            misc=record.misc,
        )
