"""Base recognition engine interface."""

import asyncio
import threading
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from typing import Optional, Union

import numpy as np

Box = tuple[int, int, int, int]
Outcome = Union[Optional[str], BaseException]


class RecognitionEngine(ABC):
    """
    Abstract recognition engine.

    Engines receive the full read-only image plus a pixel box and return the
    text found inside it, or None when there is none. Failures are raised.

    ``max_concurrency`` bounds how many ``recognize_region`` calls run at once
    across every event loop and thread sharing this engine.
    """

    def __init__(self, max_concurrency: int = 1):
        self.max_concurrency = max(1, int(max_concurrency))
        self._gate = threading.BoundedSemaphore(self.max_concurrency)

    @abstractmethod
    def recognize_region(
        self,
        image: np.ndarray,
        box: Box,
        languages: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        """Recognize text in ``box`` = (x1, y1, x2, y2). Blocking."""
        raise NotImplementedError

    def _recognize_gated(
        self,
        image: np.ndarray,
        box: Box,
        languages: Optional[Sequence[str]],
    ) -> Optional[str]:
        with self._gate:
            return self.recognize_region(image, box, languages)

    async def recognize(
        self,
        image: np.ndarray,
        box: Box,
        languages: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self._recognize_gated, image, box, languages
        )

    async def recognize_many(
        self,
        image: np.ndarray,
        boxes: Sequence[Box],
        languages: Optional[Sequence[str]] = None,
    ) -> AsyncIterator[tuple[int, Outcome]]:
        """
        Recognize several regions, yielding (index, outcome) as each finishes.

        Outcomes are text, None, or the exception raised for that region.
        Engines with a native batch call can override this; the default
        submits every region before waiting on any of them.
        """

        async def _one(index: int, box: Box) -> tuple[int, Outcome]:
            try:
                return index, await self.recognize(image, box, languages)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                return index, e

        tasks = [asyncio.ensure_future(_one(i, box)) for i, box in enumerate(boxes)]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
