"""
Mask Loader
===========

Fetches and decodes the side-by-side stereo occlusion mask of a clip.
"""

import logging
from urllib.parse import urlparse

import numpy as np

from stream_inspector.errors import CanvasSecurityError
from stream_inspector.extraction.image_codec import decode_image_rgba
from stream_inspector.fetch import ByteFetcher


logger = logging.getLogger(__name__)


def same_origin(a: str, b: str) -> bool:
    """Scheme + host + port equality."""
    pa, pb = urlparse(a), urlparse(b)
    return (pa.scheme, pa.netloc.lower()) == (pb.scheme, pb.netloc.lower())


class MaskLoader:
    """
    Loads mask images as RGBA buffers.

    Attributes:
        enforce_same_origin: Refuse masks served from another origin than
            the stream they belong to
    """

    def __init__(self, fetcher: ByteFetcher, enforce_same_origin: bool = False) -> None:
        self.fetcher = fetcher
        self.enforce_same_origin = enforce_same_origin

    async def load(self, mask_uri: str, source_uri: str) -> np.ndarray:
        """
        Fetch and decode a mask.

        Raises:
            CanvasSecurityError: Cross-origin mask while same-origin is enforced
            NetworkError: If the fetch fails
            ImageDecodeError: If the payload is not an image
        """
        if self.enforce_same_origin and not same_origin(mask_uri, source_uri):
            raise CanvasSecurityError(f"mask {mask_uri} is not same-origin with {source_uri}")

        data = await self.fetcher.fetch_bytes(mask_uri)
        mask = decode_image_rgba(data)
        logger.debug(f"Loaded mask {mask_uri}: {mask.shape[1]}x{mask.shape[0]}")
        return mask
