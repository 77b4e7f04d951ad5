"""
Clip Catalog
============

Loading and lookup over source configuration documents.

A source configuration is a JSON array of sport entries, each listing
games, each listing clips. Clips are yielded in document order.
"""

import logging
from typing import Any, Iterator, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from stream_inspector.errors import ManifestParseError
from stream_inspector.fetch import ByteFetcher
from stream_inspector.models.catalog import Clip, SportEntry


logger = logging.getLogger(__name__)


_CATALOG_ADAPTER = TypeAdapter(List[SportEntry])


class CatalogError(ManifestParseError):
    """Raised when a source configuration document is malformed."""
    pass


def parse_catalog(document: Any) -> List[SportEntry]:
    """
    Validate a source configuration document.

    A single sport object is accepted and wrapped in a list.

    Raises:
        CatalogError: If the document does not match the catalog schema
    """
    if isinstance(document, dict):
        document = [document]

    try:
        sports = _CATALOG_ADAPTER.validate_python(document)
    except ValidationError as e:
        issues = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise CatalogError(issues) from e

    logger.debug(f"Parsed catalog: {len(sports)} sports, {sum(1 for _ in iter_clips(sports))} clips")
    return sports


def iter_clips(sports: List[SportEntry]) -> Iterator[Tuple[str, Clip]]:
    """Yield (sport, clip) pairs in document order."""
    for entry in sports:
        for game in entry.games:
            for clip in game.clips:
                yield entry.sport, clip


def find_clip(sports: List[SportEntry], clip_id: str) -> Optional[Clip]:
    """Return the first clip with the given id, or None."""
    for _, clip in iter_clips(sports):
        if clip.id == clip_id:
            return clip
    return None


async def fetch_catalog(fetcher: ByteFetcher, url: str) -> List[SportEntry]:
    """
    Fetch and validate a source configuration.

    Raises:
        NetworkError: If the document cannot be fetched
        CatalogError: If it does not match the catalog schema
    """
    document = await fetcher.fetch_json(url)
    sports = parse_catalog(document)
    logger.info(f"Loaded catalog from {url}: {len(sports)} sports")
    return sports
