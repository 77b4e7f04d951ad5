"""
Clip Inspector
==============

One-call inspection of a catalog clip.

Sections (run concurrently):
    - summary:      ManifestSummarizer over clip.strurl
    - registration: RegistrationComparator over clip.registration
    - frame:        FrameExtractionPipeline over clip.strurl + clip.mask_url

Design Rules:
    - A section whose inputs are missing is skipped (None)
    - A failing section is logged and left None; it never fails the others
    - Extraction failures are kept as labeled results, not exceptions
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Optional, TypeVar

from stream_inspector.extraction import (
    FrameExtractionPipeline,
    FrameExtractionRequest,
    FrameExtractionResult,
)
from stream_inspector.fetch import ByteFetcher
from stream_inspector.manifest import ManifestSummarizer
from stream_inspector.models.catalog import Clip
from stream_inspector.models.manifest import StreamSummary
from stream_inspector.registration import RegistrationComparator, StereoComparison


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ClipInspection:
    """Everything known about one clip."""

    clip_id: str
    summary: Optional[StreamSummary] = None
    registration: Optional[StereoComparison] = None
    frame: Optional[FrameExtractionResult] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation; the still is base64 encoded."""
        registration = None
        if self.registration is not None:
            registration = {
                "left": self.registration.left.model_dump(mode="json"),
                "right": self.registration.right.model_dump(mode="json"),
                "comparison": self.registration.result.model_dump(mode="json"),
            }
        return {
            "clip_id": self.clip_id,
            "summary": self.summary.model_dump(mode="json") if self.summary else None,
            "registration": registration,
            "frame": frame_result_to_dict(self.frame) if self.frame else None,
        }


def frame_result_to_dict(result: FrameExtractionResult) -> Dict[str, Any]:
    return {
        "generation": result.generation,
        "ok": result.ok,
        "width": result.width,
        "height": result.height,
        "masked": result.masked,
        "image_png_base64": (
            base64.b64encode(result.image_png).decode("ascii") if result.image_png else None
        ),
        "error_kind": result.error_kind.value if result.error_kind else None,
        "message": result.message,
    }


class ClipInspector:
    """
    Runs every applicable inspection section for a clip.

    Example:
        inspector = ClipInspector(fetcher, pipeline=pipeline)
        inspection = await inspector.inspect(clip)
    """

    def __init__(
        self,
        fetcher: ByteFetcher,
        summarizer: Optional[ManifestSummarizer] = None,
        comparator: Optional[RegistrationComparator] = None,
        pipeline: Optional[FrameExtractionPipeline] = None,
    ) -> None:
        """
        Args:
            fetcher: Network collaborator
            summarizer: Defaults to a ManifestSummarizer over `fetcher`
            comparator: Defaults to a RegistrationComparator with default tolerances
            pipeline: Frame extraction is skipped when None
        """
        self.fetcher = fetcher
        self.summarizer = summarizer or ManifestSummarizer(fetcher)
        self.comparator = comparator or RegistrationComparator()
        self.pipeline = pipeline

    async def inspect(self, clip: Clip) -> ClipInspection:
        summary, registration, frame = await asyncio.gather(
            self._section("summary", clip.id, self._summarize(clip)),
            self._section("registration", clip.id, self._compare(clip)),
            self._section("frame", clip.id, self._extract(clip)),
        )
        logger.info(
            f"Inspected clip {clip.id}: summary={summary is not None}, "
            f"registration={registration is not None}, frame={frame!r}"
        )
        return ClipInspection(
            clip_id=clip.id,
            summary=summary,
            registration=registration,
            frame=frame,
        )

    @staticmethod
    async def _section(name: str, clip_id: str, coro: Awaitable[Optional[T]]) -> Optional[T]:
        try:
            return await coro
        except Exception as e:
            logger.warning(f"Clip {clip_id}: {name} section failed: {e}")
            return None

    async def _summarize(self, clip: Clip) -> Optional[StreamSummary]:
        if not clip.strurl:
            return None
        return await self.summarizer.summarize(clip.strurl, clip.time_segment)

    async def _compare(self, clip: Clip) -> Optional[StereoComparison]:
        refs = clip.registration
        if refs is None:
            return None
        return await self.comparator.compare_remote(self.fetcher, refs.left, refs.right)

    async def _extract(self, clip: Clip) -> Optional[FrameExtractionResult]:
        if self.pipeline is None or not clip.strurl:
            return None
        return await self.pipeline.extract(
            FrameExtractionRequest(source_uri=clip.strurl, mask_uri=clip.mask_url)
        )
