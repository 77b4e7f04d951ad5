"""
HTTP Fetcher Tests
==================

Tests for HttpFetcher over an in-memory requests session.
"""

import asyncio
import json

import pytest
import requests

from stream_inspector.errors import NetworkError
from stream_inspector.fetch import HttpFetcher


class FakeResponse:
    def __init__(self, status: int = 200, body: str = "", headers=None):
        self.status_code = status
        self.text = body
        self.content = body.encode()
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """requests.Session stand-in; unknown URLs fail to connect."""

    def __init__(self, responses):
        self.headers = {}
        self.responses = responses
        self.closed = False

    def request(self, method, url, timeout=None, allow_redirects=True):
        if url not in self.responses:
            raise requests.ConnectionError(f"cannot reach {url}")
        return self.responses[url]

    def close(self):
        self.closed = True


def make_fetcher() -> HttpFetcher:
    return HttpFetcher(session=FakeSession({
        "https://cdn/clip.m3u8": FakeResponse(body="#EXTM3U\n"),
        "https://rig/left.json": FakeResponse(body='{"fov": 90}'),
        "https://rig/broken.json": FakeResponse(body="{not json"),
        "https://cdn/gone.ts": FakeResponse(status=404),
        "https://cdn/seg_0.ts": FakeResponse(
            headers={"Content-Length": "1024", "Content-Type": "video/mp2t"},
        ),
    }))


class TestHttpFetcher:
    """Tests for HttpFetcher."""

    def test_fetch_text_and_json(self):
        fetcher = make_fetcher()

        async def scenario():
            return (
                await fetcher.fetch_text("https://cdn/clip.m3u8"),
                await fetcher.fetch_json("https://rig/left.json"),
            )

        text, document = asyncio.run(scenario())

        assert text == "#EXTM3U\n"
        assert document == {"fov": 90}
        assert fetcher.get_metrics() == {"request_count": 2, "error_count": 0}

    def test_segment_headers(self):
        fetcher = make_fetcher()

        probed = asyncio.run(fetcher.probe("https://cdn/seg_0.ts"))

        assert probed.size_bytes == 1024
        assert probed.content_type == "video/mp2t"

    def test_http_status_is_network_error(self):
        fetcher = make_fetcher()

        with pytest.raises(NetworkError):
            asyncio.run(fetcher.fetch_bytes("https://cdn/gone.ts"))

        assert fetcher.get_metrics()["error_count"] == 1

    def test_invalid_json_counted(self):
        fetcher = make_fetcher()

        with pytest.raises(NetworkError):
            asyncio.run(fetcher.fetch_json("https://rig/broken.json"))

        assert fetcher.get_metrics() == {"request_count": 1, "error_count": 1}

    def test_concurrent_requests_counted_exactly(self):
        """Counters stay exact when many requests run in worker threads at once."""
        fetcher = make_fetcher()
        urls = ["https://cdn/clip.m3u8", "https://cdn/missing.m3u8"] * 50

        async def scenario():
            return await asyncio.gather(
                *(fetcher.fetch_text(url) for url in urls),
                return_exceptions=True,
            )

        outcomes = asyncio.run(scenario())

        assert sum(isinstance(outcome, NetworkError) for outcome in outcomes) == 50
        assert fetcher.get_metrics() == {"request_count": 100, "error_count": 50}

    def test_close(self):
        fetcher = make_fetcher()
        fetcher.close()
        assert fetcher._session.closed
