"""
Catalog Tests
=============

Tests for source configuration parsing and the clip inspector.
"""

import asyncio

import pytest

from stream_inspector.catalog import (
    CatalogError,
    fetch_catalog,
    find_clip,
    iter_clips,
    parse_catalog,
)
from stream_inspector.errors import ErrorKind
from stream_inspector.extraction import RenderSurface, FrameExtractionPipeline
from stream_inspector.inspector import ClipInspector
from stream_inspector.models.catalog import Clip

from conftest import FakeEngine, FakeFetcher, make_frame


CATALOG_URL = "https://cdn.example.com/sources.json"


class TestParseCatalog:
    """Tests for catalog validation and lookup."""

    def test_clips_in_document_order(self, catalog_document):
        sports = parse_catalog(catalog_document)

        pairs = [(sport, clip.id) for sport, clip in iter_clips(sports)]

        assert pairs == [
            ("basketball", "c-1001"),
            ("basketball", "c-1002"),
            ("hockey", "2001"),
        ]

    def test_camel_case_fields(self, catalog_document):
        clip = find_clip(parse_catalog(catalog_document), "c-1001")

        assert clip.gid == "42"
        assert clip.media_type == "hls"
        assert clip.mask_url == "https://cdn.example.com/c-1001/mask.png"
        assert clip.thumbnail_url == "https://cdn.example.com/c-1001/thumb.jpg"

    def test_unknown_keys_preserved(self, catalog_document):
        clip = find_clip(parse_catalog(catalog_document), "c-1001")
        assert clip.model_dump()["venue"] == "arena-7"

    def test_single_sport_object(self, catalog_document):
        sports = parse_catalog(catalog_document[1])
        assert [clip.id for _, clip in iter_clips(sports)] == ["2001"]

    def test_find_missing(self, catalog_document):
        assert find_clip(parse_catalog(catalog_document), "nope") is None

    def test_malformed(self):
        """A clip without an id is a labeled ParseError."""
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog([{"sport": "golf", "games": [{"clips": [{"strurl": "x"}]}]}])

        assert exc_info.value.kind == ErrorKind.PARSE
        assert "id" in exc_info.value.message

    def test_fetch_catalog(self, catalog_document):
        fetcher = FakeFetcher(documents={CATALOG_URL: catalog_document})

        sports = asyncio.run(fetch_catalog(fetcher, CATALOG_URL))

        assert [entry.sport for entry in sports] == ["basketball", "hockey"]


class TestClipInspector:
    """Tests for ClipInspector."""

    def test_all_sections(
        self,
        media_manifest,
        left_record_document,
        right_record_document,
    ):
        """Every section runs when its inputs are present."""
        fetcher = FakeFetcher(
            texts={"https://cdn/clip.m3u8": media_manifest},
            documents={
                "https://rig/left.json": left_record_document,
                "https://rig/right.json": right_record_document,
            },
        )
        surface = RenderSurface()
        pipeline = FrameExtractionPipeline(
            engine_factory=lambda target, signals: FakeEngine(target, signals, frame=make_frame()),
            surface_provider=lambda: surface,
            render_tick_seconds=0.0,
        )
        clip = Clip.model_validate({
            "id": "c-1",
            "strurl": "https://cdn/clip.m3u8",
            "registration": {"left": "https://rig/left.json", "right": "https://rig/right.json"},
        })

        inspection = asyncio.run(ClipInspector(fetcher, pipeline=pipeline).inspect(clip))

        assert inspection.summary.facts.segment_count == 3
        assert inspection.registration.result.resolution_match is True
        assert inspection.frame.ok

        payload = inspection.to_dict()
        assert payload["clip_id"] == "c-1"
        assert payload["frame"]["image_png_base64"]
        assert payload["registration"]["comparison"]["vergence_angle_deg"] == "parallel"

    def test_failing_section_is_isolated(self, left_record_document):
        """A failed summary does not fail the registration section."""
        fetcher = FakeFetcher(documents={
            "https://rig/left.json": left_record_document,
            "https://rig/right.json": left_record_document,
        })
        clip = Clip(
            id="c-2",
            strurl="https://cdn/missing.m3u8",
            registration={"left": "https://rig/left.json", "right": "https://rig/right.json"},
        )

        inspection = asyncio.run(ClipInspector(fetcher).inspect(clip))

        assert inspection.summary is None
        assert inspection.frame is None
        assert inspection.registration is not None

    def test_nothing_to_inspect(self):
        inspection = asyncio.run(ClipInspector(FakeFetcher()).inspect(Clip(id="bare")))

        assert inspection.to_dict() == {
            "clip_id": "bare",
            "summary": None,
            "registration": None,
            "frame": None,
        }
