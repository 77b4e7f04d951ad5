"""
Registration Module
===================

Stereo camera registration analysis.

    - RegistrationAnalyzer: one record -> RegistrationSummary
    - RegistrationComparator: two records -> ComparisonResult
"""

from stream_inspector.registration.analyzer import (
    RegistrationAnalyzer,
    ground_plane_intersection,
    vertical_tilt_deg,
    xy_distance,
)
from stream_inspector.registration.comparator import (
    PARALLEL,
    RegistrationComparator,
    StereoComparison,
    camera_distance,
    vergence_angle_deg,
)


__all__ = [
    "RegistrationAnalyzer",
    "RegistrationComparator",
    "StereoComparison",
    "PARALLEL",
    "xy_distance",
    "vertical_tilt_deg",
    "ground_plane_intersection",
    "camera_distance",
    "vergence_angle_deg",
]
