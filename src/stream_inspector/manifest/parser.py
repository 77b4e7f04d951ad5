"""
Manifest Parser
===============

Line-oriented parsing of HLS manifests into a variant ladder and a set
of media playlist facts.

Design Rules:
    - Lenient by default: never raises, malformed lines are skipped
    - Optional fields stay unset when their attribute is missing
    - A stream-info tag only yields a variant when the NEXT line is a URI
    - Strict validation is a separate entry point (parse_strict)

Example:
    from stream_inspector.manifest.parser import parse_variants, parse_media_facts

    variants = parse_variants(text)
    facts = parse_media_facts(text)
    print(len(variants), facts.codecs)
"""

import logging
import re
from typing import List, Optional, Tuple

from stream_inspector.errors import ManifestParseError
from stream_inspector.models.manifest import (
    MediaPlaylistFacts,
    PlaylistVariant,
    Resolution,
)


logger = logging.getLogger(__name__)


HEADER_TAG = "#EXTM3U"
STREAM_INF_TAG = "#EXT-X-STREAM-INF"
VERSION_TAG = "#EXT-X-VERSION:"
TARGET_DURATION_TAG = "#EXT-X-TARGETDURATION:"
SEGMENT_TAG = "#EXTINF"

# AVERAGE-BANDWIDTH must not be read as BANDWIDTH
_BANDWIDTH_RE = re.compile(r"(?<![A-Z-])BANDWIDTH=(\d+)")
_RESOLUTION_RE = re.compile(r"RESOLUTION=(\d+)x(\d+)")
_CODECS_RE = re.compile(r'CODECS="([^"]*)"')
_INTEGER_RE = re.compile(r"^\s*(\d+)\s*$")


def _is_uri_line(line: Optional[str]) -> bool:
    """A URI line is non-empty after trimming and is not a tag/comment."""
    if line is None:
        return False
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


def _parse_stream_inf(line: str, uri: str) -> PlaylistVariant:
    bandwidth: Optional[int] = None
    resolution: Optional[Resolution] = None

    match = _BANDWIDTH_RE.search(line)
    if match:
        bandwidth = int(match.group(1))

    match = _RESOLUTION_RE.search(line)
    if match:
        resolution = Resolution(width=int(match.group(1)), height=int(match.group(2)))

    return PlaylistVariant(bandwidth_bps=bandwidth, resolution=resolution, uri=uri)


def parse_variants(text: str) -> List[PlaylistVariant]:
    """
    Extract the variant ladder from a master manifest.

    Args:
        text: Raw manifest text

    Returns:
        Variants in order of appearance. A stream-info line whose next
        line is blank or a tag is dropped.
    """
    lines = text.splitlines()
    variants: List[PlaylistVariant] = []

    for index, line in enumerate(lines):
        if not line.strip().startswith(STREAM_INF_TAG):
            continue

        next_line = lines[index + 1] if index + 1 < len(lines) else None
        if not _is_uri_line(next_line):
            logger.debug(f"Stream-info on line {index + 1} has no URI, skipped")
            continue

        variants.append(_parse_stream_inf(line, next_line.strip()))

    return variants


def _tag_integer(line: str, tag: str) -> Optional[int]:
    match = _INTEGER_RE.match(line[len(tag):])
    return int(match.group(1)) if match else None


def parse_media_facts(text: str) -> MediaPlaylistFacts:
    """
    Collect version, target duration, codecs and segment tags in one pass.

    Segment tags are kept verbatim; durations are not parsed.
    """
    version: Optional[int] = None
    target_duration: Optional[int] = None
    codecs: List[str] = []
    segment_tags: List[str] = []

    for raw in text.splitlines():
        line = raw.strip()
        if not line.startswith("#"):
            continue

        if line.startswith(VERSION_TAG):
            parsed = _tag_integer(line, VERSION_TAG)
            if parsed is not None:
                version = parsed
        elif line.startswith(TARGET_DURATION_TAG):
            parsed = _tag_integer(line, TARGET_DURATION_TAG)
            if parsed is not None:
                target_duration = parsed
        elif line.startswith(SEGMENT_TAG):
            segment_tags.append(line)

        for attribute in _CODECS_RE.findall(line):
            for codec in attribute.split(","):
                codec = codec.strip()
                if codec and codec not in codecs:
                    codecs.append(codec)

    return MediaPlaylistFacts(
        version=version,
        target_duration_sec=target_duration,
        codecs=codecs,
        segment_tags=segment_tags,
    )


def first_segment_uri(text: str) -> Optional[str]:
    """
    Find the first segment URI that follows a segment-duration tag.

    Tag lines between #EXTINF and its URI (e.g. #EXT-X-BYTERANGE) are
    skipped.
    """
    awaiting_uri = False
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith(SEGMENT_TAG):
            awaiting_uri = True
        elif awaiting_uri and _is_uri_line(line):
            return line
    return None


# =============================================================================
# Strict Validation
# =============================================================================

def _segment_has_uri(lines: List[str], index: int) -> bool:
    """True if a URI appears after lines[index] before the next segment tag."""
    for raw in lines[index + 1:]:
        line = raw.strip()
        if line.startswith(SEGMENT_TAG):
            return False
        if _is_uri_line(line):
            return True
    return False


def validate_manifest(text: str) -> List[str]:
    """
    List structural problems the lenient parser silently tolerates.

    Returns:
        Human-readable issues, empty when the manifest looks well formed.
    """
    issues: List[str] = []
    lines = text.splitlines()

    first = next((line.strip() for line in lines if line.strip()), "")
    if first != HEADER_TAG:
        issues.append(f"missing {HEADER_TAG} header")

    for index, raw in enumerate(lines):
        line = raw.strip()
        line_no = index + 1

        if line.startswith(STREAM_INF_TAG):
            next_line = lines[index + 1] if index + 1 < len(lines) else None
            if not _is_uri_line(next_line):
                issues.append(f"line {line_no}: stream-info without URI")
        elif line.startswith(SEGMENT_TAG) and not _segment_has_uri(lines, index):
            issues.append(f"line {line_no}: segment tag without URI")
        elif line.startswith(VERSION_TAG) and _tag_integer(line, VERSION_TAG) is None:
            issues.append(f"line {line_no}: non-integer version")
        elif (
            line.startswith(TARGET_DURATION_TAG)
            and _tag_integer(line, TARGET_DURATION_TAG) is None
        ):
            issues.append(f"line {line_no}: non-integer target duration")

    return issues


def parse_strict(text: str) -> Tuple[List[PlaylistVariant], MediaPlaylistFacts]:
    """
    Parse a manifest, refusing input the lenient parser would degrade.

    Raises:
        ManifestParseError: If validate_manifest reports any issue
    """
    issues = validate_manifest(text)
    if issues:
        raise ManifestParseError(issues)
    return parse_variants(text), parse_media_facts(text)
