"""
Media Engine
============

Adaptive media engine interface and an OpenCV-backed implementation.

Signals:
    The engine never calls back into the pipeline. It posts EngineSignal
    messages onto an asyncio.Queue owned by the pipeline run; the run's
    current stage decides what each message means.

        MANIFEST_READY             manifest parsed, media can be seeked
        FATAL_ERROR(kind, detail)  unrecoverable load/decode failure
        SEEK_COMPLETED             a frame at the seek target was presented
        SUPERSEDED                 posted by the pipeline itself when a newer
                                   request takes over the surface

Design Rules:
    - Blocking decoder calls run via asyncio.to_thread
    - destroy() is safe to call while a load or seek is in flight and
      never blocks the event loop on a decoder call
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol, Set

import cv2

from stream_inspector.extraction.surface import RenderSurface


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class SignalKind(str, Enum):
    MANIFEST_READY = "manifestReady"
    FATAL_ERROR = "fatalError"
    SEEK_COMPLETED = "seekCompleted"
    SUPERSEDED = "superseded"


@dataclass(frozen=True, slots=True)
class EngineSignal:
    """A discrete message from the media engine."""

    kind: SignalKind
    error_kind: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def fatal(cls, error_kind: str, detail: str) -> "EngineSignal":
        return cls(SignalKind.FATAL_ERROR, error_kind=error_kind, detail=detail)


class MediaEngine(Protocol):
    """
    Protocol for adaptive media engines.

    Implementations post EngineSignal messages to the queue they were
    created with and present decoded frames to the surface's VideoTarget.
    """

    muted: bool

    def load(self, uri: str) -> None:
        ...

    def seek(self, position_sec: float) -> None:
        ...

    @property
    def video_width(self) -> int:
        ...

    @property
    def video_height(self) -> int:
        ...

    def destroy(self) -> None:
        """
        Cancel pending work and release the decoder.

        The release waits for any decoder call in flight, so it runs on an
        executor thread instead of the event loop.
        """
        self._destroyed = True
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._release()
        else:
            loop.run_in_executor(None, self._release)
        logger.debug("OpenCVMediaEngine destroyed")

    # -------------------------------------------------------------------------

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _emit(self, signal: EngineSignal) -> None:
        if not self._destroyed:
            self._signals.put_nowait(signal)

    def _release(self) -> None:
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None

    def _open_capture(self, uri: str) -> Optional[cv2.VideoCapture]:
        capture = cv2.VideoCapture(uri, cv2.CAP_FFMPEG, self.capture_params())
        if not capture.isOpened():
            capture.release()
            return None
        with self._lock:
            if self._destroyed:
                capture.release()
                return None
            self._capture = capture
        return capture

    async def _open(self, uri: str) -> None:
        try:
            capture = await asyncio.to_thread(self._open_capture, uri)
        except cv2.error as e:
            self._emit(EngineSignal.fatal("manifestLoadError", str(e)))
            return

        if capture is None:
            self._emit(EngineSignal.fatal("manifestLoadError", f"could not open {uri}"))
            return

        logger.debug(f"Opened {uri}")
        self._emit(EngineSignal(SignalKind.MANIFEST_READY))

    def _read_at(self, position_sec: float):
        with self._lock:
            if self._capture is None:
                return False, None
            self._capture.set(cv2.CAP_PROP_POS_MSEC, position_sec * 1000.0)
            return self._capture.read()

    async def _seek(self, position_sec: float) -> None:
        try:
            ok, frame = await asyncio.to_thread(self._read_at, position_sec)
        except cv2.error as e:
            self._emit(EngineSignal.fatal("mediaError", str(e)))
            return

        if not ok or frame is None:
            self._emit(
                EngineSignal.fatal("mediaError", f"no frame decoded at {position_sec:.3f}s")
            )
            return

        if not self._destroyed:
            self._surface.video.present(cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA))
        self._emit(EngineSignal(SignalKind.SEEK_COMPLETED))


EngineFactory = Callable[[RenderSurface, "asyncio.Queue[EngineSignal]"], MediaEngine]


def make_opencv_engine_factory(timeout_seconds: float) -> EngineFactory:
    """Engine factory whose engines bound FFmpeg open/read calls by timeout_seconds."""

    def factory(
        surface: RenderSurface,
        signals: "asyncio.Queue[EngineSignal]",
    ) -> MediaEngine:
        return OpenCVMediaEngine(surface, signals, timeout_seconds=timeout_seconds)

    return factory


def opencv_engine_factory(
    surface: RenderSurface,
    signals: "asyncio.Queue[EngineSignal]",
) -> MediaEngine:
    return OpenCVMediaEngine(surface, signals)
