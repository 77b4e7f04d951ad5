"""
Registration Tests
==================

Tests for per-camera summaries and stereo comparison.
"""

import asyncio

import pytest

from stream_inspector.errors import NetworkError
from stream_inspector.models.registration import RegistrationRecord
from stream_inspector.registration import (
    PARALLEL,
    RegistrationAnalyzer,
    RegistrationComparator,
    camera_distance,
    ground_plane_intersection,
    vergence_angle_deg,
    vertical_tilt_deg,
    xy_distance,
)

from conftest import FakeFetcher


class TestGeometry:
    """Tests for the free geometry functions."""

    def test_xy_distance(self):
        assert xy_distance((3.0, 4.0, 0.0)) == 5.0

    def test_tilt_straight_down(self):
        assert vertical_tilt_deg((0.0, 0.0, -1.0)) == pytest.approx(90.0)

    def test_tilt_horizontal(self):
        assert vertical_tilt_deg((1.0, 0.0, 0.0)) == 0.0

    def test_ground_point(self):
        assert ground_plane_intersection((0.0, 0.0, 10.0), (0.0, 0.0, -1.0)) == (0.0, 0.0, 0.0)

    def test_ground_point_oblique(self):
        point = ground_plane_intersection((0.0, 0.0, 10.0), (1.0, 0.0, -1.0))
        assert point == pytest.approx((10.0, 0.0, 0.0))

    def test_ground_point_parallel_to_plane(self):
        """A horizontal view ray never meets the ground plane."""
        assert ground_plane_intersection((0.0, 0.0, 10.0), (1.0, 0.0, 0.0)) is None

    def test_camera_distance(self):
        assert camera_distance((0.0, 0.0, 0.0), (1.0, 2.0, 2.0)) == pytest.approx(3.0)

    def test_vergence_zero_vector(self):
        assert vergence_angle_deg((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)) is None

    def test_vergence_right_angle(self):
        assert vergence_angle_deg((1.0, 0.0, 0.0), (0.0, 1.0, 0.0)) == pytest.approx(90.0)


class TestRegistrationAnalyzer:
    """Tests for RegistrationAnalyzer."""

    def test_summary_labels(self, left_record_document):
        record = RegistrationRecord.model_validate(left_record_document)

        summary = RegistrationAnalyzer().analyze(record)

        assert summary.resolution_label == "1920x1080"
        assert summary.focal_length_label == "fx: 1402.50, fy: 1401.90"
        assert summary.principal_point_label == "cx: 960.00, cy: 540.00"
        assert summary.xy_distance == 5.0
        assert summary.misc == "left eye"

    def test_empty_record(self):
        """Every derived field is optional."""
        summary = RegistrationAnalyzer().analyze(RegistrationRecord())

        assert summary.resolution_label is None
        assert summary.focal_length_label is None
        assert summary.xy_distance is None
        assert summary.vertical_tilt_deg is None
        assert summary.ground_plane_point is None

    def test_overhead_camera(self):
        record = RegistrationRecord(
            world_position=(0.0, 0.0, 10.0),
            world_view_direction=(0.0, 0.0, -1.0),
        )

        summary = RegistrationAnalyzer().analyze(record)

        assert summary.vertical_tilt_deg == pytest.approx(90.0)
        assert summary.ground_plane_point == (0.0, 0.0, 0.0)

    def test_idempotent(self, left_record_document):
        """Analyzing twice yields identical summaries."""
        analyzer = RegistrationAnalyzer()
        record = RegistrationRecord.model_validate(left_record_document)

        first = analyzer.analyze(record)
        second = analyzer.analyze(record)

        assert first == second
        assert first.model_dump() == second.model_dump()


class TestRegistrationComparator:
    """Tests for RegistrationComparator."""

    def test_matched_pair(self, left_record_document, right_record_document):
        """Verify notes and their fixed order."""
        left = RegistrationRecord.model_validate(left_record_document)
        right = RegistrationRecord.model_validate(right_record_document)

        result = RegistrationComparator().compare(left, right)

        assert result.resolution_match is True
        assert result.focal_length_diff == pytest.approx(0.4)
        assert result.camera_distance == pytest.approx(0.065)
        assert result.vergence_angle_deg == PARALLEL
        assert result.notes == [
            "Resolution match: 1920x1080",
            "Focal length nearly identical (0.40 px)",
            "Camera distance: 0.065",
            "Vergence: parallel",
            "Distortion: both corrected",
        ]

    def test_mismatched_pair(self, left_record_document, right_record_document):
        right_record_document["resolution"] = {"width": 1280, "height": 720}
        right_record_document["intrinsics"]["fx"] = 1000.0
        right_record_document["world_view_direction"] = [1.0, 1.0, 0.0]
        right_record_document.pop("distortion")
        left = RegistrationRecord.model_validate(left_record_document)
        right = RegistrationRecord.model_validate(right_record_document)

        result = RegistrationComparator().compare(left, right)

        assert result.resolution_match is False
        assert result.vergence_angle_deg == pytest.approx(45.0)
        assert result.notes == [
            "Resolution mismatch: 1920x1080 vs 1280x720",
            "Focal length difference: 402.50 px",
            "Camera distance: 0.065",
            "Vergence angle: 45.00°",
            "Warning: asymmetric distortion correction (left only)",
        ]

    def test_missing_direction_skips_vergence(self, left_record_document, right_record_document):
        """No view direction on one side means no vergence value or note."""
        right_record_document.pop("world_view_direction")
        left = RegistrationRecord.model_validate(left_record_document)
        right = RegistrationRecord.model_validate(right_record_document)

        result = RegistrationComparator().compare(left, right)

        assert result.vergence_angle_deg is None
        assert not any(note.startswith("Vergence") for note in result.notes)

    def test_empty_records(self):
        """Only the distortion note is unconditional."""
        result = RegistrationComparator().compare(RegistrationRecord(), RegistrationRecord())

        assert result.resolution_match is False
        assert result.notes == ["Distortion: no correction"]

    def test_compare_remote(self, left_record_document, right_record_document):
        """Both documents are fetched and summarized."""
        fetcher = FakeFetcher(documents={
            "https://rig/left.json": left_record_document,
            "https://rig/right.json": right_record_document,
        })

        comparison = asyncio.run(
            RegistrationComparator().compare_remote(fetcher, "https://rig/left.json", "https://rig/right.json")
        )

        assert comparison.left.misc == "left eye"
        assert comparison.right.misc == "right eye"
        assert comparison.result.resolution_match is True

    def test_compare_remote_network_error(self, left_record_document):
        fetcher = FakeFetcher(documents={"https://rig/left.json": left_record_document})

        with pytest.raises(NetworkError):
            asyncio.run(
                RegistrationComparator().compare_remote(fetcher, "https://rig/left.json", "https://rig/right.json")
            )
