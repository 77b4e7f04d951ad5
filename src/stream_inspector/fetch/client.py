"""
HTTP Fetcher
============

Async facade over a requests.Session for manifests, registration
documents, mask images and headers-only segment probes.

This client:
    - Runs blocking requests calls off the event loop (asyncio.to_thread)
    - Wraps every transport or HTTP status failure into NetworkError
    - Never retries; callers decide whether a failure is fatal

Example:
    from stream_inspector.fetch import HttpFetcher

    fetcher = HttpFetcher(timeout_seconds=10.0)
    text = await fetcher.fetch_text("https://cdn.example.com/clip/master.m3u8")
    probe = await fetcher.probe("https://cdn.example.com/clip/seg_0.ts")
    fetcher.close()
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import requests

from stream_inspector.errors import NetworkError


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SegmentProbe:
    """
    Headers of a media segment, fetched without its body.

    Attributes:
        size_bytes: Content-Length, when the server sent one
        content_type: Content-Type, when the server sent one
    """

    size_bytes: Optional[int]
    content_type: Optional[str]


class ByteFetcher(Protocol):
    """
    Protocol for the fetch collaborator.

    Implementations raise NetworkError for any failure.
    """

    async def fetch_text(self, url: str) -> str:
        ...

    async def fetch_json(self, url: str) -> Any:
        ...

    async def fetch_bytes(self, url: str) -> bytes:
        ...

    async def probe(self, url: str) -> SegmentProbe:
        ...


class HttpFetcher:
    """
    requests-backed implementation of ByteFetcher.

    Attributes:
        timeout_seconds: Per-request timeout
        user_agent: User-Agent header value
    """

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        user_agent: str = "stream-inspector/0.1",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", user_agent)
        self._request_count: int = 0
        self._error_count: int = 0

    def _request(self, method: str, url: str) -> requests.Response:
        try:
            response = self._session.request(
                method,
                url,
                timeout=self.timeout_seconds,
                allow_redirects=True,
            )
            response.raise_for_status()
            return response
        except requests.RequestException as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

    async def _send(self, method: str, url: str) -> requests.Response:
        # Counters are only touched on the event loop thread
        self._request_count += 1
        try:
            return await asyncio.to_thread(self._request, method, url)
        except NetworkError:
            self._error_count += 1
            raise

    async def fetch_text(self, url: str) -> str:
        response = await self._send("GET", url)
        return response.text

    async def fetch_json(self, url: str) -> Any:
        response = await self._send("GET", url)
        try:
            return response.json()
        except ValueError as e:
            self._error_count += 1
            raise NetworkError(f"GET {url} returned invalid JSON: {e}") from e

    async def fetch_bytes(self, url: str) -> bytes:
        response = await self._send("GET", url)
        return response.content

    async def probe(self, url: str) -> SegmentProbe:
        """
        Issue a HEAD request and read size and content type.

        Args:
            url: Absolute segment URL

        Returns:
            SegmentProbe with whichever headers were present
        """
        response = await self._send("HEAD", url)

        size: Optional[int] = None
        length = response.headers.get("Content-Length")
        if length is not None and length.strip().isdigit():
            size = int(length)

        logger.debug(f"Probed {url}: size={size}")
        return SegmentProbe(
            size_bytes=size,
            content_type=response.headers.get("Content-Type"),
        )

    def close(self) -> None:
        self._session.close()

    def get_metrics(self) -> dict:
        """Get fetcher metrics for observability."""
        return {
            "request_count": self._request_count,
            "error_count": self._error_count,
        }
