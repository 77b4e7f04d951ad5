"""
Registration Comparator
=======================

Compares the two cameras of a stereo pair.

Comparisons (each independently optional, notes in this order):
    1. Resolution       exact width/height equality
    2. Focal length     |fx_left - fx_right|, "nearly identical" below tolerance
    3. Camera distance  Euclidean distance between camera centers
    4. Vergence         angle between view directions, "parallel" below threshold
    5. Distortion       both corrected / no correction / asymmetric warning

Example:
    comparator = RegistrationComparator()
    result = comparator.compare(left_record, right_record)
    for note in result.notes:
        print(note)
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from stream_inspector.fetch import ByteFetcher
from stream_inspector.models.registration import (
    ComparisonResult,
    RegistrationRecord,
    RegistrationSummary,
    Vec3,
)
from stream_inspector.registration.analyzer import RegistrationAnalyzer


logger = logging.getLogger(__name__)


PARALLEL = "parallel"


def camera_distance(a: Vec3, b: Vec3) -> float:
    return math.sqrt(sum((pa - pb) ** 2 for pa, pb in zip(a, b)))


def vergence_angle_deg(a: Vec3, b: Vec3) -> Optional[float]:
    """
    Angle between two view directions in degrees.

    Returns:
        The angle, or None if either vector has zero length.
    """
    norm_a = math.sqrt(sum(c * c for c in a))
    norm_b = math.sqrt(sum(c * c for c in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return None

    cosine = sum(ca * cb for ca, cb in zip(a, b)) / (norm_a * norm_b)
    cosine = max(-1.0, min(1.0, cosine))
    return math.acos(cosine) * 180.0 / math.pi


@dataclass(frozen=True)
class StereoComparison:
    """Both per-camera summaries plus their comparison."""

    left: RegistrationSummary
    right: RegistrationSummary
    result: ComparisonResult


class RegistrationComparator:
    """
    Produces a ComparisonResult for a stereo pair.

    Attributes:
        focal_length_tolerance_px: Threshold for "nearly identical" focal lengths
        parallel_threshold_deg: Vergence below this is reported as parallel
    """

    def __init__(
        self,
        focal_length_tolerance_px: float = 1.0,
        parallel_threshold_deg: float = 0.01,
        analyzer: Optional[RegistrationAnalyzer] = None,
    ) -> None:
        self.focal_length_tolerance_px = focal_length_tolerance_px
        self.parallel_threshold_deg = parallel_threshold_deg
        self.analyzer = analyzer or RegistrationAnalyzer()

    def compare(
        self,
        left: RegistrationRecord,
        right: RegistrationRecord,
    ) -> ComparisonResult:
        """
        Compare two registration records.

        Raw fields (resolution, fx, distortion) come from the records;
        geometry comes from the analyzer's summaries.
        """
        return self._compare(
            left,
            right,
            self.analyzer.analyze(left),
            self.analyzer.analyze(right),
        )

    def _compare(
        self,
        left: RegistrationRecord,
        right: RegistrationRecord,
        left_summary: RegistrationSummary,
        right_summary: RegistrationSummary,
    ) -> ComparisonResult:
        notes: List[str] = []

        # 1. Resolution
        resolution_match = False
        if left.resolution is not None and right.resolution is not None:
            resolution_match = (
                left.resolution.width == right.resolution.width
                and left.resolution.height == right.resolution.height
            )
            if resolution_match:
                notes.append(f"Resolution match: {left.resolution.label}")
            else:
                notes.append(
                    f"Resolution mismatch: {left.resolution.label} "
                    f"vs {right.resolution.label}"
                )

        # 2. Focal length
        focal_diff: Optional[float] = None
        if left.intrinsics is not None and right.intrinsics is not None:
            focal_diff = abs(left.intrinsics.fx - right.intrinsics.fx)
            if focal_diff < self.focal_length_tolerance_px:
                notes.append(f"Focal length nearly identical ({focal_diff:.2f} px)")
            else:
                notes.append(f"Focal length difference: {focal_diff:.2f} px")

        # 3. Camera distance
        distance: Optional[float] = None
        if (
            left_summary.world_position is not None
            and right_summary.world_position is not None
        ):
            distance = camera_distance(
                left_summary.world_position, right_summary.world_position
            )
            notes.append(f"Camera distance: {distance:.3f}")

        # 4. Vergence
        vergence: Optional[Union[str, float]] = None
        if (
            left_summary.world_view_direction is not None
            and right_summary.world_view_direction is not None
        ):
            angle = vergence_angle_deg(
                left_summary.world_view_direction,
                right_summary.world_view_direction,
            )
            if angle is None:
                logger.warning("Zero-length view direction, vergence skipped")
            elif angle < self.parallel_threshold_deg:
                vergence = PARALLEL
                notes.append("Vergence: parallel")
            else:
                vergence = angle
                notes.append(f"Vergence angle: {angle:.2f}°")

        # 5. Distortion
        if left.has_distortion and right.has_distortion:
            notes.append("Distortion: both corrected")
        elif not left.has_distortion and not right.has_distortion:
            notes.append("Distortion: no correction")
        else:
            side = "left" if left.has_distortion else "right"
            notes.append(
                f"Warning: asymmetric distortion correction ({side} only)"
            )

        return ComparisonResult(
            resolution_match=resolution_match,
            focal_length_diff=focal_diff,
            camera_distance=distance,
            vergence_angle_deg=vergence,
            notes=notes,
        )

    async def compare_remote(
        self,
        fetcher: ByteFetcher,
        left_url: str,
        right_url: str,
    ) -> StereoComparison:
        """
        Fetch both registration documents concurrently and compare them.

        Raises:
            NetworkError: If either document cannot be fetched
        """
        left_doc, right_doc = await asyncio.gather(
            fetcher.fetch_json(left_url),
            fetcher.fetch_json(right_url),
        )
        left, right = self._load_pair(left_doc, right_doc)
        left_summary = self.analyzer.analyze(left)
        right_summary = self.analyzer.analyze(right)

        result = self._compare(left, right, left_summary, right_summary)
        logger.info(
            f"Compared registrations: resolution_match={result.resolution_match}, "
            f"notes={len(result.notes)}"
        )
        return StereoComparison(
            left=left_summary,
            right=right_summary,
            result=result,
        )

    @staticmethod
    def _load_pair(left_doc, right_doc) -> Tuple[RegistrationRecord, RegistrationRecord]:
        return (
            RegistrationRecord.model_validate(left_doc),
            RegistrationRecord.model_validate(right_doc),
        )
