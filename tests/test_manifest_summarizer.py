"""
Manifest Summarizer Tests
=========================

Tests for stream summaries, durations and the best-effort segment probe.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from stream_inspector.errors import NetworkError
from stream_inspector.fetch import SegmentProbe
from stream_inspector.manifest import (
    ManifestSummarizer,
    build_summary,
    compute_total_duration,
    resolve_uri,
)
from stream_inspector.models.manifest import PlaylistType, TimeSegment

from conftest import FakeFetcher


MASTER_URL = "https://cdn.example.com/c-1001/master.m3u8"
VARIANT_URL = "https://cdn.example.com/c-1001/v1080/index.m3u8"
SEGMENT_URL = "https://cdn.example.com/c-1001/v1080/seg0.ts"


class TestDuration:
    """Tests for total duration from the capture range."""

    def test_ninety_seconds(self, time_segment_document):
        """Verify the documented 90 s scenario."""
        segment = TimeSegment.model_validate(time_segment_document)
        assert compute_total_duration(segment) == 90

    def test_fractional_seconds_are_floored(self):
        segment = TimeSegment(
            start_wall_time=datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
            end_wall_time=datetime(2024, 1, 1, 0, 0, 59, 900000, tzinfo=timezone.utc),
        )
        assert compute_total_duration(segment) == 59

    def test_missing_end(self):
        segment = TimeSegment(start_wall_time=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert compute_total_duration(segment) is None

    def test_negative_range_is_unset(self):
        """An end before the start leaves the duration unset."""
        segment = TimeSegment.model_validate({
            "start_wall_time": "2024-01-01T00:01:00Z",
            "end_wall_time": "2024-01-01T00:00:00Z",
        })
        assert compute_total_duration(segment) is None

    def test_mixed_timezones_is_unset(self):
        segment = TimeSegment(
            start_wall_time=datetime(2024, 1, 1, 0, 0, 0),
            end_wall_time=datetime(2024, 1, 1, 0, 1, 0, tzinfo=timezone.utc),
        )
        assert compute_total_duration(segment) is None


class TestResolveUri:
    """Tests for manifest-relative URI resolution."""

    def test_relative(self):
        assert resolve_uri(MASTER_URL, "v1080/index.m3u8") == VARIANT_URL

    def test_parent_relative(self):
        assert resolve_uri(VARIANT_URL, "../audio/a.m3u8") == (
            "https://cdn.example.com/c-1001/audio/a.m3u8"
        )

    def test_absolute_unchanged(self):
        url = "https://other.example.com/x.m3u8"
        assert resolve_uri(MASTER_URL, url) == url


class TestBuildSummary:
    """Tests for the pure summary builder."""

    def test_master(self, master_manifest):
        summary = build_summary(master_manifest)

        assert summary.playlist_type == PlaylistType.MASTER_ADAPTIVE
        assert summary.variant_count == 3
        assert summary.total_duration_sec is None

    def test_media(self, media_manifest):
        summary = build_summary(media_manifest)

        assert summary.playlist_type == PlaylistType.MEDIA
        assert summary.variant_count == 0
        assert summary.facts.segment_count == 3

    def test_unknown(self):
        assert build_summary("not a manifest").playlist_type == PlaylistType.UNKNOWN

    def test_pure(self, master_manifest, time_segment_document):
        """The same inputs produce equal summaries."""
        segment = TimeSegment.model_validate(time_segment_document)
        assert build_summary(master_manifest, segment) == build_summary(master_manifest, segment)


class TestManifestSummarizer:
    """Tests for fetch + parse + probe."""

    def test_summarize_with_probe(self, master_manifest, media_manifest, time_segment_document):
        """Verify the sample segment is discovered through the first variant."""
        fetcher = FakeFetcher(
            texts={MASTER_URL: master_manifest, VARIANT_URL: media_manifest},
            probes={SEGMENT_URL: SegmentProbe(size_bytes=188000, content_type="video/mp2t")},
        )
        segment = TimeSegment.model_validate(time_segment_document)

        summary = asyncio.run(ManifestSummarizer(fetcher).summarize(MASTER_URL, segment))

        assert summary.playlist_type == PlaylistType.MASTER_ADAPTIVE
        assert summary.variant_count == 3
        assert summary.total_duration_sec == 90
        assert summary.sample_segment.uri == SEGMENT_URL
        assert summary.sample_segment.size_bytes == 188000
        assert summary.sample_segment.content_type == "video/mp2t"

    def test_probe_failure_is_swallowed(self, master_manifest, media_manifest):
        """A failing HEAD request leaves the sample segment unset."""
        fetcher = FakeFetcher(texts={MASTER_URL: master_manifest, VARIANT_URL: media_manifest})

        summary = asyncio.run(ManifestSummarizer(fetcher).summarize(MASTER_URL))

        assert summary.sample_segment is None
        assert summary.variant_count == 3

    def test_sub_manifest_failure_is_swallowed(self, master_manifest):
        fetcher = FakeFetcher(texts={MASTER_URL: master_manifest})

        summary = asyncio.run(ManifestSummarizer(fetcher).summarize(MASTER_URL))

        assert summary.sample_segment is None

    def test_media_playlist_skips_probe(self, media_manifest):
        """No variants means no sub-manifest fetch."""
        fetcher = FakeFetcher(texts={MASTER_URL: media_manifest})

        summary = asyncio.run(ManifestSummarizer(fetcher).summarize(MASTER_URL))

        assert summary.sample_segment is None
        assert fetcher.requested == [MASTER_URL]

    def test_top_level_failure_propagates(self):
        """The top-level manifest is required."""
        with pytest.raises(NetworkError):
            asyncio.run(ManifestSummarizer(FakeFetcher()).summarize(MASTER_URL))
