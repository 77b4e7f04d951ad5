"""
Manifest Summarizer
===================

Builds a StreamSummary from a manifest, the clip's capture range and a
headers-only probe of one media segment.

Summary Rules:
    playlist_type:
        MasterAdaptive  if at least one variant was parsed
        Media           else if any segment tag was found
        Unknown         otherwise
    total_duration_sec:
        floor(end_wall_time - start_wall_time), only from the time segment
    sample_segment:
        first variant -> sub-manifest -> first segment -> HEAD probe
        (best effort: any failure leaves it unset)

Example:
    summarizer = ManifestSummarizer(fetcher)
    summary = await summarizer.summarize(clip.strurl, clip.time_segment)
"""

import logging
import math
from typing import Optional
from urllib.parse import urljoin, urlparse

from stream_inspector.fetch import ByteFetcher
from stream_inspector.manifest.parser import (
    first_segment_uri,
    parse_media_facts,
    parse_variants,
)
from stream_inspector.models.manifest import (
    PlaylistType,
    SampleSegment,
    StreamSummary,
    TimeSegment,
)


logger = logging.getLogger(__name__)


def resolve_uri(base_uri: str, uri: str) -> str:
    """
    Resolve a manifest-relative URI.

    Absolute URIs are returned unchanged; relative ones are joined with
    the directory of base_uri.
    """
    if urlparse(uri).scheme:
        return uri
    return urljoin(base_uri, uri)


def compute_total_duration(time_segment: Optional[TimeSegment]) -> Optional[int]:
    """Whole seconds between the clip's wall-clock start and end."""
    if time_segment is None:
        return None
    start = time_segment.start_wall_time
    end = time_segment.end_wall_time
    if start is None or end is None:
        return None

    try:
        seconds = (end - start).total_seconds()
    except TypeError:
        # naive vs aware timestamps
        logger.warning("Time segment mixes naive and aware timestamps")
        return None

    if seconds < 0:
        logger.warning(f"Time segment ends before it starts ({seconds:.3f}s)")
        return None
    return math.floor(seconds)


def build_summary(
    manifest_text: str,
    time_segment: Optional[TimeSegment] = None,
    sample_segment: Optional[SampleSegment] = None,
) -> StreamSummary:
    """
    Assemble a StreamSummary from already-fetched inputs.

    Pure function: the same inputs always produce an equal summary.
    """
    variants = parse_variants(manifest_text)
    facts = parse_media_facts(manifest_text)

    if variants:
        playlist_type = PlaylistType.MASTER_ADAPTIVE
    elif facts.segment_tags:
        playlist_type = PlaylistType.MEDIA
    else:
        playlist_type = PlaylistType.UNKNOWN

    return StreamSummary(
        playlist_type=playlist_type,
        variant_count=len(variants),
        variants=variants,
        facts=facts,
        total_duration_sec=compute_total_duration(time_segment),
        start_time=time_segment.start_wall_time if time_segment else None,
        end_time=time_segment.end_wall_time if time_segment else None,
        sample_segment=sample_segment,
    )


class ManifestSummarizer:
    """
    Fetches a manifest and produces its StreamSummary.

    Attributes:
        fetcher: Network collaborator
    """

    def __init__(self, fetcher: ByteFetcher) -> None:
        self.fetcher = fetcher

    async def summarize(
        self,
        manifest_uri: str,
        time_segment: Optional[TimeSegment] = None,
    ) -> StreamSummary:
        """
        Fetch and summarize a manifest.

        Args:
            manifest_uri: Top-level manifest URL
            time_segment: Clip capture range, if known

        Returns:
            A freshly built StreamSummary

        Raises:
            NetworkError: If the top-level manifest cannot be fetched
        """
        text = await self.fetcher.fetch_text(manifest_uri)

        variants = parse_variants(text)
        sample: Optional[SampleSegment] = None
        if variants:
            sample = await self._probe_sample_segment(manifest_uri, variants[0].uri)

        summary = build_summary(text, time_segment, sample)
        logger.info(
            f"Summarized {manifest_uri}: type={summary.playlist_type.value}, "
            f"variants={summary.variant_count}, "
            f"segments={summary.facts.segment_count}"
        )
        return summary

    async def _probe_sample_segment(
        self,
        manifest_uri: str,
        variant_uri: str,
    ) -> Optional[SampleSegment]:
        """Best-effort probe of the first segment of the first variant."""
        variant_url = resolve_uri(manifest_uri, variant_uri)
        try:
            sub_manifest = await self.fetcher.fetch_text(variant_url)
            segment_uri = first_segment_uri(sub_manifest)
            if segment_uri is None:
                logger.info(f"No segment found in {variant_url}")
                return None

            segment_url = resolve_uri(variant_url, segment_uri)
            probe = await self.fetcher.probe(segment_url)
            return SampleSegment(
                uri=segment_url,
                size_bytes=probe.size_bytes,
                content_type=probe.content_type,
            )
        except Exception as e:
            logger.warning(f"Sample segment probe failed for {variant_url}: {e}")
            return None
