"""
Scanner - frame-scoped text recognition over one decoded image.

A Scanner binds a read-only image (and its properties) to a recognition
engine. Frames are submitted to the engine together; results stream back
in completion order and are folded into a name -> text mapping.
"""

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import AsyncIterator, Callable, Iterable, Sequence
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np

from .config import Settings, get_settings
from .engines import RecognitionEngine, create_engine
from .engines.base import Outcome
from .errors import FrameOutOfBoundsError, InvalidImageError, ScannerClosedError
from .image_io import load_image
from .models import Frame, FrameResult, ImageProperties

logger = logging.getLogger(__name__)

ResultHandler = Callable[[Optional[str], Optional[str]], Any]


class ResultCollector:
    """
    Thread-safe fold of frame results into a name -> text mapping.

    Later results for a name replace earlier ones. Unnamed results and
    results without text never touch the mapping, but every result is
    passed to the handler exactly once. Handler exceptions are logged and
    do not stop the fold.
    """

    def __init__(self, result_handler: Optional[ResultHandler] = None):
        self._handler = result_handler
        self._lock = threading.Lock()
        self._results: dict[str, str] = {}
        self.count = 0

    def add(self, result: FrameResult) -> None:
        with self._lock:
            self.count += 1
            if result.name is not None and result.text is not None:
                self._results[result.name] = result.text
            if self._handler is not None:
                try:
                    self._handler(result.name, result.text)
                except Exception:
                    logger.exception("Result handler failed for frame %r (#%d)", result.name, result.index)

    def results(self) -> dict[str, str]:
        with self._lock:
            return dict(self._results)


def _validate_image(image: Any) -> np.ndarray:
    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"Expected a numpy array, got {type(image).__name__}")
    if image.ndim not in (2, 3) or image.size == 0:
        raise InvalidImageError(f"Unusable image shape: {image.shape}")
    frozen = np.array(image, copy=True)
    frozen.setflags(write=False)
    return frozen


class Scanner:
    """
    Runs text recognition over frames of a single image.

    Attributes:
        image_path: Source path, for display only
        language_codes: Ordered language hints passed to the engine;
            None or empty means the engine default
    """

    def __init__(
        self,
        image: np.ndarray,
        properties: Union[ImageProperties, dict, None] = None,
        *,
        engine: Optional[RecognitionEngine] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Args:
            image: Decoded image (H x W or H x W x C ndarray), copied read-only
            properties: Image properties; derived from the array when None
            engine: Recognition engine; built from settings when None
            settings: Overrides ``get_settings()``

        Raises:
            InvalidImageError: The image or the given properties are unusable
        """
        self._image = _validate_image(image)

        if properties is None:
            self.properties = ImageProperties.from_array(self._image)
        else:
            props = ImageProperties.coerce(properties)
            if props is None:
                raise InvalidImageError("Image properties lack usable pixel dimensions")
            self.properties = props

        height, width = self._image.shape[:2]
        if self.properties.size != (width, height):
            logger.warning(
                "Image properties say %sx%s but image is %sx%s; frames are clipped to the image",
                self.properties.pixel_width, self.properties.pixel_height, width, height,
            )

        self.settings = settings or get_settings()
        self.engine = engine or create_engine(
            self.settings.engine,
            lang=self.settings.default_language,
            min_score=self.settings.min_score,
            max_concurrency=self.settings.max_concurrency,
        )

        self.image_path: Optional[str] = None
        self._language_codes: Optional[list[str]] = None
        self._closed = False
        self._active_lock = threading.Lock()
        self._active: set[tuple[asyncio.AbstractEventLoop, asyncio.Task]] = set()

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        *,
        engine: Optional[RecognitionEngine] = None,
        settings: Optional[Settings] = None,
    ) -> "Scanner":
        """Decode ``path`` upright and build a scanner for it."""
        image, props = load_image(path)
        scanner = cls(image, props, engine=engine, settings=settings)
        scanner.image_path = str(path)
        return scanner

    @property
    def image(self) -> np.ndarray:
        """Read-only decoded image."""
        return self._image

    @property
    def language_codes(self) -> Optional[list[str]]:
        return list(self._language_codes) if self._language_codes is not None else None

    @language_codes.setter
    def language_codes(self, codes: Optional[Sequence[str]]) -> None:
        self._language_codes = list(codes) if codes is not None else None

    @property
    def closed(self) -> bool:
        return self._closed

    def extent(self) -> Frame:
        """Frame covering the whole image."""
        return Frame.from_image_properties(self.properties)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ScannerClosedError()

    def _languages(self) -> Optional[list[str]]:
        codes = [c for c in (self._language_codes or []) if c and c.strip()]
        return codes or None

    def _to_result(self, index: int, frame: Frame, outcome: Outcome) -> FrameResult:
        if isinstance(outcome, BaseException):
            code = getattr(outcome, "error_code", "recognition_failed")
            logger.warning("Frame %r (#%d) failed: %s", frame.name, index, outcome)
            return FrameResult(
                index=index,
                name=frame.name,
                error_code=code,
                error_message=str(outcome),
            )
        text = outcome.strip() if isinstance(outcome, str) else None
        return FrameResult(index=index, name=frame.name, text=text or None)

    async def iter_results(self, frames: Iterable[Frame]) -> AsyncIterator[FrameResult]:
        """
        Yield one FrameResult per frame, in completion order.

        Every recognizable frame is handed to the engine before any result is
        awaited. Empty frames resolve to text None without touching the
        engine; frames entirely outside the image resolve to a
        ``frame_out_of_bounds`` error. Closing the iterator early cancels the
        frames still in flight.
        """
        self._ensure_open()
        frames = list(frames)
        height, width = self._image.shape[:2]

        pending: list[tuple[int, tuple[int, int, int, int]]] = []
        for index, frame in enumerate(frames):
            if frame.is_empty:
                yield FrameResult(index=index, name=frame.name)
                continue
            box = frame.to_pixel_box(width, height)
            if box is None:
                yield self._to_result(
                    index,
                    frame,
                    FrameOutOfBoundsError(f"Frame {frame.to_string()} lies outside {width}x{height}"),
                )
                continue
            pending.append((index, box))

        if not pending:
            return

        stream = self.engine.recognize_many(
            self._image, [box for _, box in pending], self._languages()
        )
        try:
            async for local_index, outcome in stream:
                index = pending[local_index][0]
                yield self._to_result(index, frames[index], outcome)
        finally:
            await stream.aclose()

    async def scan_frame_async(self, frame: Frame) -> Optional[str]:
        results = await self.scan_frames_detailed_async([frame])
        return results[0].text

    def scan_frame(self, frame: Frame) -> Optional[str]:
        """
        Recognize a single frame.

        Returns None for zero-area frames, frames outside the image, regions
        without text, and engine failures (which are logged).
        """
        return self._run(lambda: self.scan_frame_async(frame))

    @contextlib.asynccontextmanager
    async def _tracked(self) -> AsyncIterator[None]:
        """Register the current task so ``close()`` can cancel it."""
        task = asyncio.current_task()
        entry = (asyncio.get_running_loop(), task) if task is not None else None
        with self._active_lock:
            # close() sets _closed under the same lock
            if self._closed:
                raise ScannerClosedError()
            if entry is not None:
                self._active.add(entry)
        try:
            yield
        finally:
            if entry is not None:
                with self._active_lock:
                    self._active.discard(entry)

    async def scan_frames_async(
        self,
        frames: Iterable[Frame],
        result_handler: Optional[ResultHandler] = None,
    ) -> dict[str, str]:
        """
        Recognize ``frames`` and return a name -> text mapping.

        ``result_handler(name, text)`` runs once per frame as its result
        arrives, in completion order. For frames sharing a name, the mapping
        keeps the text of the last one to complete.
        """
        collector = ResultCollector(result_handler)
        started = time.perf_counter()
        async with self._tracked():
            async for result in self.iter_results(frames):
                collector.add(result)

        logger.info(
            "Scanned %d frame(s) of %s in %.1f ms",
            collector.count,
            self.image_path or "<image>",
            (time.perf_counter() - started) * 1000,
        )
        return collector.results()

    def scan_frames(
        self,
        frames: Iterable[Frame],
        result_handler: Optional[ResultHandler] = None,
    ) -> dict[str, str]:
        """Blocking form of ``scan_frames_async``; returns once every frame is done."""
        frames = list(frames)
        return self._run(lambda: self.scan_frames_async(frames, result_handler))

    async def scan_frames_detailed_async(self, frames: Iterable[Frame]) -> list[FrameResult]:
        async with self._tracked():
            results = [result async for result in self.iter_results(frames)]
        return sorted(results, key=lambda r: r.index)

    def scan_frames_detailed(self, frames: Iterable[Frame]) -> list[FrameResult]:
        """Every frame's outcome, including error codes, in input order."""
        frames = list(frames)
        return self._run(lambda: self.scan_frames_detailed_async(frames))

    def _run(self, make_coro):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError(
                "Blocking scan called from a running event loop; await the *_async variant"
            )
        self._ensure_open()
        try:
            return asyncio.run(make_coro())
        except asyncio.CancelledError as e:
            if self._closed:
                raise ScannerClosedError("Scanner closed during scan") from e
            raise

    def close(self) -> None:
        """Close the scanner, cancelling scans still in flight."""
        with self._active_lock:
            self._closed = True
            active = list(self._active)
            self._active.clear()
        for loop, task in active:
            if not loop.is_closed():
                loop.call_soon_threadsafe(task.cancel)
        if active:
            logger.info("Cancelled %d in-flight scan(s)", len(active))

    def __enter__(self) -> "Scanner":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"<Scanner {self.image_path or '<image>'} "
            f"{self.properties.pixel_width}x{self.properties.pixel_height} engine={self.engine!r}>"
        )
