#!/usr/bin/env python3
"""
Clip Inspection Script
======================

Standalone script to inspect one clip without running the HTTP service.

This script:
    1. Loads a source configuration (or takes URLs directly)
    2. Summarizes the clip's stream
    3. Compares its stereo registration documents
    4. Extracts a representative still and optionally writes it to disk

Usage:
    python scripts/inspect_clip.py --catalog https://cdn.example.com/sources.json --clip c-1001
    python scripts/inspect_clip.py --manifest https://cdn.example.com/c-1001/master.m3u8 --out still.png
    python scripts/inspect_clip.py --left left.json --right right.json
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from stream_inspector.catalog import fetch_catalog, find_clip
from stream_inspector.config import settings
from stream_inspector.extraction import (
    FrameExtractionPipeline,
    MaskLoader,
    RenderSurface,
    make_opencv_engine_factory,
)
from stream_inspector.fetch import HttpFetcher
from stream_inspector.inspector import ClipInspector
from stream_inspector.models.catalog import Clip, StereoRegistrationRefs
from stream_inspector.registration import RegistrationComparator


logger = logging.getLogger(__name__)


async def run_inspection(
    catalog_url: Optional[str],
    clip_id: Optional[str],
    manifest: Optional[str],
    mask: Optional[str],
    left: Optional[str],
    right: Optional[str],
    out_path: Optional[str],
) -> dict:
    """
    Run one inspection.

    Returns:
        The inspection as a JSON-ready dict
    """
    fetcher = HttpFetcher(
        timeout_seconds=settings.fetch.timeout_seconds,
        user_agent=settings.fetch.user_agent,
    )

    try:
        if catalog_url:
            sports = await fetch_catalog(fetcher, catalog_url)
            clip = find_clip(sports, clip_id)
            if clip is None:
                raise SystemExit(f"Clip {clip_id!r} not found in {catalog_url}")
        else:
            clip = Clip(
                id=clip_id or "adhoc",
                strurl=manifest,
                mask_url=mask,
                registration=(
                    StereoRegistrationRefs(left=left, right=right) if left and right else None
                ),
            )

        surface = RenderSurface()
        extraction = settings.extraction
        pipeline = FrameExtractionPipeline(
            engine_factory=make_opencv_engine_factory(extraction.load_timeout_seconds),
            surface_provider=lambda: surface,
            mask_loader=MaskLoader(fetcher, enforce_same_origin=extraction.enforce_same_origin_masks),
            load_timeout_seconds=extraction.load_timeout_seconds,
            surface_attach_attempts=extraction.surface_attach_attempts,
            surface_retry_delay_seconds=extraction.surface_retry_delay_ms / 1000.0,
            seek_offset_seconds=extraction.seek_offset_seconds,
            render_tick_seconds=extraction.render_tick_seconds,
            mask_luminance_channel=extraction.mask_luminance_channel,
        )
        inspector = ClipInspector(
            fetcher,
            comparator=RegistrationComparator(
                focal_length_tolerance_px=settings.comparison.focal_length_tolerance_px,
                parallel_threshold_deg=settings.comparison.parallel_threshold_deg,
            ),
            pipeline=pipeline,
        )

        inspection = await inspector.inspect(clip)
    finally:
        fetcher.close()

    if out_path and inspection.frame is not None and inspection.frame.ok:
        with open(out_path, "wb") as f:
            f.write(inspection.frame.image_png)
        logger.info(f"Wrote still to {out_path}")

    result = inspection.to_dict()
    if result["frame"] is not None:
        # Keep the console output readable
        result["frame"].pop("image_png_base64", None)
    return result


def main():
    parser = argparse.ArgumentParser(
        description="Inspect a stereo adaptive-stream clip"
    )
    parser.add_argument(
        "--catalog",
        type=str,
        default=os.environ.get("STREAMINSPECTOR_CATALOG_URL"),
        help="Source configuration URL (used with --clip)",
    )
    parser.add_argument("--clip", type=str, default=None, help="Clip id")
    parser.add_argument("--manifest", type=str, default=None, help="Top-level manifest URL")
    parser.add_argument("--mask", type=str, default=None, help="Stereo mask URL")
    parser.add_argument("--left", type=str, default=None, help="Left registration URL")
    parser.add_argument("--right", type=str, default=None, help="Right registration URL")
    parser.add_argument("--out", type=str, default=None, help="Write the still PNG here")

    args = parser.parse_args()

    if args.catalog and not args.clip:
        parser.error("--catalog requires --clip")
    if not args.catalog and not (args.manifest or (args.left and args.right)):
        parser.error("give --catalog/--clip, --manifest, or --left/--right")

    result = asyncio.run(run_inspection(
        catalog_url=args.catalog,
        clip_id=args.clip,
        manifest=args.manifest,
        mask=args.mask,
        left=args.left,
        right=args.right,
        out_path=args.out,
    ))

    print(json.dumps(result, indent=2))

    frame = result["frame"]
    sys.exit(0 if frame is None or frame["ok"] else 1)


if __name__ == "__main__":
    main()
