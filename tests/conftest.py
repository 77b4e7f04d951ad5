"""
Test Configuration
==================

Pytest fixtures and in-memory collaborators for StreamInspector.
"""

import asyncio
from typing import Any, Dict, List, Optional

import numpy as np
import pytest

from stream_inspector.errors import NetworkError
from stream_inspector.extraction.engine import EngineSignal, SignalKind
from stream_inspector.extraction.surface import RenderSurface
from stream_inspector.fetch import SegmentProbe


# =============================================================================
# Fakes
# =============================================================================

class FakeFetcher:
    """ByteFetcher over dicts; unknown URLs raise NetworkError."""

    def __init__(
        self,
        texts: Optional[Dict[str, str]] = None,
        documents: Optional[Dict[str, Any]] = None,
        blobs: Optional[Dict[str, bytes]] = None,
        probes: Optional[Dict[str, SegmentProbe]] = None,
    ) -> None:
        self.texts = texts or {}
        self.documents = documents or {}
        self.blobs = blobs or {}
        self.probes = probes or {}
        self.requested: List[str] = []

    def _lookup(self, table: Dict[str, Any], url: str) -> Any:
        self.requested.append(url)
        if url not in table:
            raise NetworkError(f"GET {url} failed: 404")
        return table[url]

    async def fetch_text(self, url: str) -> str:
        return self._lookup(self.texts, url)

    async def fetch_json(self, url: str) -> Any:
        return self._lookup(self.documents, url)

    async def fetch_bytes(self, url: str) -> bytes:
        return self._lookup(self.blobs, url)

    async def probe(self, url: str) -> SegmentProbe:
        return self._lookup(self.probes, url)


class FakeEngine:
    """
    Scriptable MediaEngine.

    Modes:
        ok      manifest ready on load, frame presented on seek
        hang    never signals
        fatal   fatal error on load
        empty   seek completes without presenting a frame
        tainted frame presented from a non-clean origin
    """

    def __init__(
        self,
        surface: RenderSurface,
        signals: "asyncio.Queue[EngineSignal]",
        mode: str = "ok",
        frame: Optional[np.ndarray] = None,
    ) -> None:
        self.surface = surface
        self.signals = signals
        self.mode = mode
        self.frame = frame
        self.muted = False
        self.loaded: List[str] = []
        self.seeks: List[float] = []
        self.destroy_count = 0

    @property
    def video_width(self) -> int:
        return self.surface.video.width

    @property
    def video_height(self) -> int:
        return self.surface.video.height

    def load(self, uri: str) -> None:
        self.loaded.append(uri)
        if self.mode == "fatal":
            self.signals.put_nowait(EngineSignal.fatal("manifestLoadError", "404"))
        elif self.mode != "hang":
            self.signals.put_nowait(EngineSignal(SignalKind.MANIFEST_READY))

    def seek(self, position_sec: float) -> None:
        self.seeks.append(position_sec)
        if self.mode in ("ok", "tainted"):
            self.surface.video.present(self.frame, origin_clean=self.mode == "ok")
        self.signals.put_nowait(EngineSignal(SignalKind.SEEK_COMPLETED))

    def destroy(self) -> None:
        self.destroy_count += 1


def make_frame(width: int = 4, height: int = 4, value: int = 200) -> np.ndarray:
    """Opaque uniform RGBA frame."""
    frame = np.full((height, width, 4), value, dtype=np.uint8)
    frame[..., 3] = 255
    return frame


# =============================================================================
# Manifest Fixtures
# =============================================================================

@pytest.fixture
def master_manifest() -> str:
    return "\n".join([
        "#EXTM3U",
        "#EXT-X-VERSION:6",
        '#EXT-X-STREAM-INF:BANDWIDTH=5000000,AVERAGE-BANDWIDTH=4500000,RESOLUTION=1920x1080,CODECS="avc1.640028,mp4a.40.2"',
        "v1080/index.m3u8",
        "#EXT-X-STREAM-INF:BANDWIDTH=2500000,RESOLUTION=1280x720",
        "v720/index.m3u8",
        "#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360",
        "# placeholder rung, not published yet",
        "#EXT-X-STREAM-INF:BANDWIDTH=400000,RESOLUTION=480x270",
        "https://cdn.example.com/other/v270.m3u8",
        "",
    ])


@pytest.fixture
def media_manifest() -> str:
    return "\n".join([
        "#EXTM3U",
        "#EXT-X-VERSION:3",
        "#EXT-X-TARGETDURATION:6",
        "#EXTINF:6.000,",
        "seg0.ts",
        "#EXTINF:6.000,",
        "seg1.ts",
        "#EXTINF:4.500,",
        "seg2.ts",
        "#EXT-X-ENDLIST",
    ])


@pytest.fixture
def time_segment_document() -> Dict[str, str]:
    return {
        "startWallTime": "2024-01-01T00:00:00Z",
        "endWallTime": "2024-01-01T00:01:30Z",
    }


# =============================================================================
# Registration Fixtures
# =============================================================================

@pytest.fixture
def left_record_document() -> Dict[str, Any]:
    return {
        "intrinsics": {"fx": 1402.5, "fy": 1401.9, "cx": 960.0, "cy": 540.0},
        "resolution": {"width": 1920, "height": 1080},
        "distortion": {"k1": -0.12, "k2": 0.03},
        "world_position": [3.0, 4.0, 0.0],
        "world_view_direction": [0.0, 1.0, 0.0],
        "misc": "left eye",
    }


@pytest.fixture
def right_record_document() -> Dict[str, Any]:
    return {
        "intrinsics": {"fx": 1402.9, "fy": 1402.0, "cx": 958.5, "cy": 541.0},
        "resolution": {"width": 1920, "height": 1080},
        "distortion": {"k1": -0.11, "k2": 0.02},
        "world_position": [3.0, 4.0, 0.065],
        "world_view_direction": [0.0, 1.0, 0.0],
        "misc": "right eye",
    }


# =============================================================================
# Catalog Fixtures
# =============================================================================

@pytest.fixture
def catalog_document() -> List[Dict[str, Any]]:
    return [
        {
            "sport": "basketball",
            "games": [
                {
                    "clips": [
                        {
                            "id": "c-1001",
                            "gid": 42,
                            "lid": "nba",
                            "sid": "2025",
                            "mediaType": "hls",
                            "strurl": "https://cdn.example.com/c-1001/master.m3u8",
                            "thumbnailUrl": "https://cdn.example.com/c-1001/thumb.jpg",
                            "maskUrl": "https://cdn.example.com/c-1001/mask.png",
                            "venue": "arena-7",
                        },
                        {"id": "c-1002", "strurl": "https://cdn.example.com/c-1002/master.m3u8"},
                    ]
                },
            ],
        },
        {
            "sport": "hockey",
            "games": [{"clips": [{"id": 2001}]}],
        },
    ]
