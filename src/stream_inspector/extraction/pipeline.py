"""
Frame Extraction Pipeline
=========================

LangGraph state machine that produces one representative still per clip.

LangGraph is used for CONTROL FLOW only: each node is one stage, and
conditional edges route to `failed` as soon as a stage records an error.

Graph Structure:
    attach_surface → load_media → seek_to_start → capture_pixel_buffer
        → [composite_mask] → done → END
    any stage ──error──→ failed → END

Stage Rules:
    AttachingSurface      up to N attempts with a fixed delay → InternalError
    LoadingMedia          engine fatal error → MediaError
    SeekingToStart        load + seek share one wall-clock deadline → TimeoutError
    CapturingPixelBuffer  waits one render tick; zero-size frame → MediaError;
                          denied read-back → CanvasSecurityError
    CompositingMask       mask load failures are swallowed
    Done                  PNG encoding, tagged with the generation token

Cancellation:
    Every extract() call bumps the generation token. The previous run is
    sent a SUPERSEDED signal and its engine is destroyed immediately; that
    run still finishes its own teardown but its result is discarded.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, TypedDict

import numpy as np
from langgraph.graph import END, StateGraph

from stream_inspector.errors import (
    InspectorError,
    InternalError,
    MediaError,
    StageTimeoutError,
)
from stream_inspector.extraction.compositing import composite_stereo_mask
from stream_inspector.extraction.engine import (
    EngineFactory,
    EngineSignal,
    MediaEngine,
    SignalKind,
)
from stream_inspector.extraction.mask import MaskLoader
from stream_inspector.extraction.request import (
    ExtractionStage,
    FrameExtractionRequest,
    FrameExtractionResult,
)
from stream_inspector.extraction.surface import RenderSurface, SurfaceProvider


logger = logging.getLogger(__name__)


@dataclass
class ExtractionRun:
    """Per-request context shared by the graph nodes."""

    token: int
    request: FrameExtractionRequest
    signals: "asyncio.Queue[EngineSignal]" = field(default_factory=asyncio.Queue)
    surface: Optional[RenderSurface] = None
    engine: Optional[MediaEngine] = None
    engine_disposed: bool = False
    deadline: float = 0.0


class ExtractionGraphState(TypedDict):
    """
    State passed through the extraction graph.

    Attributes:
        run: Per-request context (token, engine, surface, signal queue)
        stage: Last stage entered
        pixels: Owned RGBA copy of the captured frame
        masked: Whether the stereo mask was composited
        result: Final result (set by `done` or `failed`)
        error: Terminal error recorded by a stage
    """
    run: ExtractionRun
    stage: ExtractionStage
    pixels: Optional[np.ndarray]
    masked: bool
    result: Optional[FrameExtractionResult]
    error: Optional[InspectorError]


class FrameExtractionPipeline:
    """
    Cancelable, retrying still-frame extractor.

    Only the most recently issued request's result is ever published
    (latest_result / on_result); results of superseded requests are
    returned as None to their callers.

    Example:
        pipeline = FrameExtractionPipeline(
            engine_factory=opencv_engine_factory,
            surface_provider=lambda: surface,
            mask_loader=MaskLoader(fetcher),
        )
        result = await pipeline.extract(
            FrameExtractionRequest(source_uri=clip.strurl, mask_uri=clip.mask_url)
        )
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        surface_provider: SurfaceProvider,
        mask_loader: Optional[MaskLoader] = None,
        load_timeout_seconds: float = 10.0,
        surface_attach_attempts: int = 3,
        surface_retry_delay_seconds: float = 0.1,
        seek_offset_seconds: float = 0.1,
        render_tick_seconds: float = 1.0 / 60.0,
        mask_luminance_channel: int = 0,
        on_result: Optional[Callable[[FrameExtractionResult], None]] = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            engine_factory: Creates a media engine bound to a surface + signal queue
            surface_provider: Returns the rendering surface, or None if unavailable
            mask_loader: Loads stereo masks; masks are skipped when None
            load_timeout_seconds: Deadline for media load + seek
            surface_attach_attempts: Attempts before InternalError
            surface_retry_delay_seconds: Fixed delay between attempts
            seek_offset_seconds: Small positive seek target
            render_tick_seconds: Wait after seek completion before capture
            mask_luminance_channel: Mask channel read as luminance
            on_result: Called with every published (non-stale) result
        """
        if surface_attach_attempts < 1:
            raise ValueError("surface_attach_attempts must be >= 1")
        if seek_offset_seconds <= 0:
            raise ValueError("seek_offset_seconds must be > 0")

        self._engine_factory = engine_factory
        self._surface_provider = surface_provider
        self._mask_loader = mask_loader
        self.load_timeout_seconds = load_timeout_seconds
        self.surface_attach_attempts = surface_attach_attempts
        self.surface_retry_delay_seconds = surface_retry_delay_seconds
        self.seek_offset_seconds = seek_offset_seconds
        self.render_tick_seconds = render_tick_seconds
        self.mask_luminance_channel = mask_luminance_channel
        self._on_result = on_result

        self._generation: int = 0
        self._active_run: Optional[ExtractionRun] = None
        self._latest_result: Optional[FrameExtractionResult] = None
        self._stage: ExtractionStage = ExtractionStage.IDLE
        self._discarded_count: int = 0

        self._graph = self._build_graph()

    # =========================================================================
    # Public API
    # =========================================================================

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def stage(self) -> ExtractionStage:
        """Stage of the current (most recent) run."""
        return self._stage

    @property
    def latest_result(self) -> Optional[FrameExtractionResult]:
        return self._latest_result

    async def extract(self, request: FrameExtractionRequest) -> Optional[FrameExtractionResult]:
        """
        Run one extraction.

        Args:
            request: Source (and optional mask) to extract from

        Returns:
            The result, or None if a newer request superseded this one
            before it finished.
        """
        self._generation += 1
        token = self._generation
        self._supersede_active()

        run = ExtractionRun(token=token, request=request)
        self._active_run = run
        self._stage = ExtractionStage.IDLE
        logger.info(f"Extraction {token} started: {request.source_uri}")

        try:
            final = await self._graph.ainvoke({
                "run": run,
                "stage": ExtractionStage.IDLE,
                "pixels": None,
                "masked": False,
                "result": None,
                "error": None,
            })
            result: FrameExtractionResult = final["result"]
        finally:
            self._teardown(run)

        if token != self._generation:
            self._discarded_count += 1
            logger.info(f"Extraction {token} superseded by {self._generation}, result discarded")
            return None

        self._latest_result = result
        if self._on_result is not None:
            self._on_result(result)
        return result

    def get_metrics(self) -> Dict[str, Any]:
        """Get pipeline metrics for observability."""
        return {
            "generation": self._generation,
            "stage": self._stage.value,
            "discarded_results": self._discarded_count,
            "last_result_ok": self._latest_result.ok if self._latest_result else None,
        }

    # =========================================================================
    # Ownership / Teardown
    # =========================================================================

    def _is_current(self, run: ExtractionRun) -> bool:
        return run.token == self._generation

    def _ensure_current(self, run: ExtractionRun) -> None:
        if not self._is_current(run):
            raise InternalError(f"extraction {run.token} superseded by a newer request")

    def _supersede_active(self) -> None:
        previous = self._active_run
        if previous is None:
            return
        previous.signals.put_nowait(EngineSignal(SignalKind.SUPERSEDED))
        self._dispose_engine(previous)

    def _dispose_engine(self, run: ExtractionRun) -> None:
        if run.engine is None or run.engine_disposed:
            return
        run.engine_disposed = True
        try:
            run.engine.destroy()
        except Exception as e:
            logger.error(f"Engine teardown failed (extraction {run.token}): {e}")

    def _teardown(self, run: ExtractionRun) -> None:
        """Dispose the run's engine and detach its surface."""
        self._dispose_engine(run)
        if self._active_run is run:
            if run.surface is not None:
                run.surface.reset()
            self._active_run = None
        run.surface = None

    # =========================================================================
    # Graph
    # =========================================================================

    def _build_graph(self):
        workflow = StateGraph(ExtractionGraphState)

        workflow.add_node("attach_surface", self._node(ExtractionStage.ATTACHING_SURFACE, self._attach_surface))
        workflow.add_node("load_media", self._node(ExtractionStage.LOADING_MEDIA, self._load_media))
        workflow.add_node("seek_to_start", self._node(ExtractionStage.SEEKING_TO_START, self._seek_to_start))
        workflow.add_node("capture_pixel_buffer", self._node(ExtractionStage.CAPTURING_PIXEL_BUFFER, self._capture))
        workflow.add_node("composite_mask", self._node(ExtractionStage.COMPOSITING_MASK, self._composite_mask))
        workflow.add_node("done", self._node(ExtractionStage.DONE, self._finish))
        workflow.add_node("failed", self._failed_node)

        workflow.set_entry_point("attach_surface")
        workflow.add_conditional_edges(
            "attach_surface", self._route_to("load_media"), {"load_media": "load_media", "failed": "failed"}
        )
        workflow.add_conditional_edges(
            "load_media", self._route_to("seek_to_start"), {"seek_to_start": "seek_to_start", "failed": "failed"}
        )
        workflow.add_conditional_edges(
            "seek_to_start",
            self._route_to("capture_pixel_buffer"),
            {"capture_pixel_buffer": "capture_pixel_buffer", "failed": "failed"},
        )
        workflow.add_conditional_edges(
            "capture_pixel_buffer",
            self._route_after_capture,
            {"composite_mask": "composite_mask", "done": "done", "failed": "failed"},
        )
        workflow.add_conditional_edges(
            "composite_mask", self._route_to("done"), {"done": "done", "failed": "failed"}
        )
        workflow.add_conditional_edges("done", self._route_to(END), {END: END, "failed": "failed"})
        workflow.add_edge("failed", END)

        return workflow.compile()

    @staticmethod
    def _route_to(next_node: str) -> Callable[[ExtractionGraphState], str]:
        def route(state: ExtractionGraphState) -> str:
            return "failed" if state.get("error") is not None else next_node
        return route

    @staticmethod
    def _route_after_capture(state: ExtractionGraphState) -> str:
        if state.get("error") is not None:
            return "failed"
        return "composite_mask" if state["run"].request.mask_uri else "done"

    def _node(self, stage: ExtractionStage, handler):
        """Wrap a stage handler: stale check, stage bookkeeping, error capture."""

        async def node(state: ExtractionGraphState) -> Dict[str, Any]:
            run = state["run"]
            if self._is_current(run):
                self._stage = stage
            logger.debug(f"Extraction {run.token}: {stage.value}")

            try:
                self._ensure_current(run)
                update = await handler(run, state) or {}
            except InspectorError as e:
                return {"stage": stage, "error": e}
            except Exception as e:
                logger.exception(f"Unexpected error in {stage.value} (extraction {run.token})")
                return {"stage": stage, "error": InternalError(f"{stage.value}: {e}")}

            update["stage"] = stage
            return update

        return node

    async def _failed_node(self, state: ExtractionGraphState) -> Dict[str, Any]:
        run = state["run"]
        error = state["error"] or InternalError("unknown failure")
        if self._is_current(run):
            self._stage = ExtractionStage.FAILED
        logger.warning(
            f"Extraction {run.token} failed in {state['stage'].value}: {error}"
        )
        return {
            "stage": ExtractionStage.FAILED,
            "result": FrameExtractionResult.failure(run.token, error.kind, error.message),
        }

    # =========================================================================
    # Stages
    # =========================================================================

    async def _attach_surface(self, run: ExtractionRun, state: ExtractionGraphState) -> None:
        attempts = self.surface_attach_attempts
        for attempt in range(1, attempts + 1):
            self._ensure_current(run)
            surface = self._surface_provider()
            if surface is not None:
                surface.reset()
                run.surface = surface
                return None

            logger.warning(f"Rendering surface unavailable (attempt {attempt}/{attempts})")
            if attempt < attempts:
                await asyncio.sleep(self.surface_retry_delay_seconds)

        raise InternalError(f"rendering surface unavailable after {attempts} attempts")

    async def _load_media(self, run: ExtractionRun, state: ExtractionGraphState) -> None:
        loop = asyncio.get_running_loop()
        run.deadline = loop.time() + self.load_timeout_seconds

        run.engine = self._engine_factory(run.surface, run.signals)
        run.engine.load(run.request.source_uri)

        await self._await_signal(run, SignalKind.MANIFEST_READY)

        run.engine.muted = True
        run.engine.seek(self.seek_offset_seconds)
        return None

    async def _seek_to_start(self, run: ExtractionRun, state: ExtractionGraphState) -> None:
        await self._await_signal(run, SignalKind.SEEK_COMPLETED)
        return None

    async def _capture(self, run: ExtractionRun, state: ExtractionGraphState) -> Dict[str, Any]:
        await asyncio.sleep(self.render_tick_seconds)
        self._ensure_current(run)

        width = run.engine.video_width
        height = run.engine.video_height
        if width <= 0 or height <= 0:
            raise MediaError(f"zero-dimension frame ({width}x{height})")

        canvas = run.surface.canvas
        canvas.resize(width, height)
        canvas.draw_video(run.surface.video, (0, 0, width, height), (0, 0, width, height))
        return {"pixels": canvas.read_pixels()}

    async def _composite_mask(self, run: ExtractionRun, state: ExtractionGraphState) -> Dict[str, Any]:
        mask_uri = run.request.mask_uri
        if self._mask_loader is None:
            logger.warning("Mask requested but no mask loader configured, skipping")
            return {}

        try:
            mask = await self._mask_loader.load(mask_uri, run.request.source_uri)
        except Exception as e:
            logger.warning(f"Mask {mask_uri} unavailable, keeping uncomposited frame: {e}")
            return {}

        self._ensure_current(run)
        try:
            pixels = composite_stereo_mask(state["pixels"], mask, self.mask_luminance_channel)
        except ValueError as e:
            logger.warning(f"Mask {mask_uri} unusable, keeping uncomposited frame: {e}")
            return {}
        return {"pixels": pixels, "masked": True}

    async def _finish(self, run: ExtractionRun, state: ExtractionGraphState) -> Dict[str, Any]:
        pixels = state["pixels"]
        canvas = run.surface.canvas
        canvas.write_pixels(pixels)
        image = canvas.export_png()

        result = FrameExtractionResult(
            generation=run.token,
            image_png=image,
            width=int(pixels.shape[1]),
            height=int(pixels.shape[0]),
            masked=state.get("masked", False),
        )
        logger.info(f"Extraction {run.token} done: {result.width}x{result.height}, masked={result.masked}")
        return {"result": result}

    async def _await_signal(self, run: ExtractionRun, expected: SignalKind) -> None:
        """
        Wait for `expected`, honoring the shared load/seek deadline.

        Raises:
            StageTimeoutError: Deadline passed
            MediaError: Engine reported a fatal error
            InternalError: The run was superseded
        """
        loop = asyncio.get_running_loop()
        while True:
            remaining = run.deadline - loop.time()
            if remaining <= 0:
                raise StageTimeoutError(
                    f"media load/seek exceeded {self.load_timeout_seconds:.1f}s"
                )
            try:
                signal = await asyncio.wait_for(run.signals.get(), timeout=remaining)
            except asyncio.TimeoutError:
                raise StageTimeoutError(
                    f"media load/seek exceeded {self.load_timeout_seconds:.1f}s"
                ) from None

            if signal.kind == SignalKind.SUPERSEDED:
                raise InternalError(f"extraction {run.token} superseded by a newer request")
            if signal.kind == SignalKind.FATAL_ERROR:
                raise MediaError(f"{signal.error_kind}: {signal.detail}")
            if signal.kind == expected:
                return
            logger.debug(f"Ignoring {signal.kind.value} while waiting for {expected.value}")
