"""
StreamInspector Main Application
================================

FastAPI entry point for the clip inspection service.

Endpoints:
    GET  /                       - Service information
    GET  /health                 - Liveness probe
    GET  /ready                  - Readiness probe (components initialized?)
    GET  /metrics                - Fetcher and pipeline counters
    GET  /catalog?url=...        - Clips listed by a source configuration
    POST /summary                - Stream summary of a manifest
    POST /registration/analyze   - Per-camera registration summary
    POST /registration/compare   - Stereo pair comparison
    POST /extract                - Representative still (base64 PNG)
    POST /inspect                - All sections for one clip
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stream_inspector.catalog import fetch_catalog, iter_clips
from stream_inspector.config import Settings, settings
from stream_inspector.errors import ErrorKind, InspectorError
from stream_inspector.extraction import (
    FrameExtractionPipeline,
    FrameExtractionRequest,
    MaskLoader,
    RenderSurface,
    make_opencv_engine_factory,
)
from stream_inspector.fetch import HttpFetcher
from stream_inspector.inspector import ClipInspector, frame_result_to_dict
from stream_inspector.manifest import ManifestSummarizer
from stream_inspector.models.api import CompareRequest, ExtractRequest, SummaryRequest
from stream_inspector.models.catalog import Clip
from stream_inspector.models.registration import RegistrationRecord
from stream_inspector.registration import RegistrationAnalyzer, RegistrationComparator


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_fetcher: Optional[HttpFetcher] = None
_summarizer: Optional[ManifestSummarizer] = None
_analyzer: Optional[RegistrationAnalyzer] = None
_comparator: Optional[RegistrationComparator] = None
_surface: Optional[RenderSurface] = None
_pipeline: Optional[FrameExtractionPipeline] = None
_inspector: Optional[ClipInspector] = None
_startup_time: float = 0.0
_is_ready: bool = False


# Status code per labeled error kind
_STATUS_BY_KIND = {
    ErrorKind.NETWORK: 502,
    ErrorKind.PARSE: 422,
    ErrorKind.MEDIA: 422,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.CANVAS_SECURITY: 403,
    ErrorKind.INTERNAL: 500,
}


# =============================================================================
# Component Factory
# =============================================================================

def create_pipeline(config: Settings, fetcher: HttpFetcher) -> FrameExtractionPipeline:
    """Build the extraction pipeline over the shared rendering surface."""
    extraction = config.extraction
    return FrameExtractionPipeline(
        engine_factory=make_opencv_engine_factory(extraction.load_timeout_seconds),
        surface_provider=lambda: _surface,
        mask_loader=MaskLoader(
            fetcher,
            enforce_same_origin=extraction.enforce_same_origin_masks,
        ),
        load_timeout_seconds=extraction.load_timeout_seconds,
        surface_attach_attempts=extraction.surface_attach_attempts,
        surface_retry_delay_seconds=extraction.surface_retry_delay_ms / 1000.0,
        seek_offset_seconds=extraction.seek_offset_seconds,
        render_tick_seconds=extraction.render_tick_seconds,
        mask_luminance_channel=extraction.mask_luminance_channel,
    )


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _fetcher, _summarizer, _analyzer, _comparator
    global _surface, _pipeline, _inspector, _startup_time, _is_ready

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    _fetcher = HttpFetcher(
        timeout_seconds=settings.fetch.timeout_seconds,
        user_agent=settings.fetch.user_agent,
    )
    _summarizer = ManifestSummarizer(_fetcher)
    _analyzer = RegistrationAnalyzer()
    _comparator = RegistrationComparator(
        focal_length_tolerance_px=settings.comparison.focal_length_tolerance_px,
        parallel_threshold_deg=settings.comparison.parallel_threshold_deg,
        analyzer=_analyzer,
    )
    _surface = RenderSurface()
    _pipeline = create_pipeline(settings, _fetcher)
    _inspector = ClipInspector(
        _fetcher,
        summarizer=_summarizer,
        comparator=_comparator,
        pipeline=_pipeline,
    )
    _is_ready = True
    logger.info("All components started")

    yield

    logger.info("Shutting down gracefully...")
    _is_ready = False
    if _fetcher:
        _fetcher.close()
    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="StreamInspector",
    description="Diagnostics for stereo adaptive-stream clips",
    version=settings.service.version,
    lifespan=lifespan,
)


@app.exception_handler(InspectorError)
async def inspector_error_handler(request: Request, exc: InspectorError) -> JSONResponse:
    status = _STATUS_BY_KIND.get(exc.kind, 500)
    logger.warning(f"{request.method} {request.url.path} -> {status}: {exc}")
    return JSONResponse(
        {"error_kind": exc.kind.value, "message": exc.message},
        status_code=status,
    )


def _not_ready() -> JSONResponse:
    return JSONResponse({"error": "Service not initialized"}, status_code=503)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "StreamInspector",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe. Always 200 while the process is running."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """Readiness probe. 503 until every component is initialized."""
    if _is_ready and _pipeline is not None:
        return JSONResponse({"status": "ready"})
    return JSONResponse({"status": "not_ready"}, status_code=503)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "fetch": _fetcher.get_metrics() if _fetcher else {},
        "extraction": _pipeline.get_metrics() if _pipeline else {},
    })


@app.get("/catalog")
async def catalog(url: str) -> JSONResponse:
    """List the clips of a source configuration in document order."""
    if _fetcher is None:
        return _not_ready()

    sports = await fetch_catalog(_fetcher, url)
    clips = [
        {"sport": sport, "clip": clip.model_dump(mode="json")}
        for sport, clip in iter_clips(sports)
    ]
    return JSONResponse({"url": url, "clip_count": len(clips), "clips": clips})


@app.post("/summary")
async def summary(body: SummaryRequest) -> JSONResponse:
    if _summarizer is None:
        return _not_ready()

    result = await _summarizer.summarize(body.manifest_uri, body.time_segment)
    return JSONResponse(result.model_dump(mode="json"))


@app.post("/registration/analyze")
async def analyze_registration(record: RegistrationRecord) -> JSONResponse:
    if _analyzer is None:
        return _not_ready()
    return JSONResponse(_analyzer.analyze(record).model_dump(mode="json"))


@app.post("/registration/compare")
async def compare_registration(body: CompareRequest) -> JSONResponse:
    if _comparator is None:
        return _not_ready()
    return JSONResponse(_comparator.compare(body.left, body.right).model_dump(mode="json"))


@app.post("/extract")
async def extract(body: ExtractRequest) -> JSONResponse:
    """
    Extract a representative still.

    Returns 409 when a newer request superseded this one before it
    finished. A failed extraction is returned as a labeled result.
    """
    if _pipeline is None:
        return _not_ready()

    result = await _pipeline.extract(
        FrameExtractionRequest(source_uri=body.source_uri, mask_uri=body.mask_uri)
    )
    if result is None:
        return JSONResponse(
            {"error": "Superseded by a newer extraction request"},
            status_code=409,
        )
    return JSONResponse(frame_result_to_dict(result))


@app.post("/inspect")
async def inspect(clip: Clip) -> JSONResponse:
    if _inspector is None:
        return _not_ready()
    inspection = await _inspector.inspect(clip)
    return JSONResponse(inspection.to_dict())


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "stream_inspector.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
