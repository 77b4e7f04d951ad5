"""
Fetch Module
============

Network collaborator used by the summarizer, comparator, catalog and
mask loader. Everything here is I/O; no parsing happens in this layer.
"""

from stream_inspector.fetch.client import ByteFetcher, HttpFetcher, SegmentProbe


__all__ = [
    "ByteFetcher",
    "HttpFetcher",
    "SegmentProbe",
]
