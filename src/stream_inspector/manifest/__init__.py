"""
Manifest Module
===============

Adaptive streaming manifest parsing and summarization.

    - parse_variants / parse_media_facts: lenient line-oriented parsing
    - parse_strict / validate_manifest: opt-in strict validation
    - ManifestSummarizer: fetch + parse + probe into a StreamSummary
"""

from stream_inspector.manifest.parser import (
    first_segment_uri,
    parse_media_facts,
    parse_strict,
    parse_variants,
    validate_manifest,
)
from stream_inspector.manifest.summarizer import (
    ManifestSummarizer,
    build_summary,
    compute_total_duration,
    resolve_uri,
)


__all__ = [
    "parse_variants",
    "parse_media_facts",
    "first_segment_uri",
    "validate_manifest",
    "parse_strict",
    "ManifestSummarizer",
    "build_summary",
    "compute_total_duration",
    "resolve_uri",
]
