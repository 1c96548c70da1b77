"""PaddleOCR engine implementation."""

import logging
from collections.abc import Sequence
from typing import Optional

import numpy as np

from ..errors import RecognitionError
from ..image_io import crop_region
from .base import Box, RecognitionEngine
from .cache import get_cached_ocr, normalize_language, pick_language

logger = logging.getLogger(__name__)


class PaddleOCREngine(RecognitionEngine):
    """
    Recognition engine using PaddleOCR.

    Each region is cropped from the shared image and run through the full
    detection + recognition pipeline; recognized lines are joined with a
    space in the order PaddleOCR reports them.
    """

    def __init__(
        self,
        lang: str = "en",
        min_score: float = 0.5,
        max_concurrency: int = 1,
    ):
        super().__init__(max_concurrency=max_concurrency)
        self.lang = normalize_language(lang)
        self.min_score = min_score

    def _init_ocr(self, lang: Optional[str] = None):
        return get_cached_ocr(lang or self.lang)

    @staticmethod
    def _coerce_score(score) -> Optional[float]:
        if score is None:
            return None
        if isinstance(score, (list, tuple, np.ndarray)):
            if len(score) == 0:
                return None
            score = score[0]
        try:
            return float(score)
        except (TypeError, ValueError):
            return None

    def _collect_lines(self, result) -> list[str]:
        """Pull recognized lines out of PaddleOCR 3.x or legacy 2.x output."""
        lines: list[str] = []

        def add_line(text, score):
            if text is None or not str(text).strip():
                return
            score_value = self._coerce_score(score)
            if score_value is None or score_value < self.min_score:
                return
            lines.append(str(text).strip())

        for item in result or []:
            if isinstance(item, dict):
                rec_texts = item.get("rec_texts", []) or []
                rec_scores = item.get("rec_scores", []) or []
                for text, score in zip(rec_texts, rec_scores):
                    add_line(text, score)
            elif isinstance(item, (list, tuple)):
                # Legacy output is a list of pages, or a flat list of entries
                entries = [item] if _is_legacy_entry(item) else item
                for entry in entries:
                    if _is_legacy_entry(entry):
                        add_line(entry[1][0], entry[1][1])
        return lines

    def recognize_region(
        self,
        image: np.ndarray,
        box: Box,
        languages: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        roi = crop_region(image, box)
        if roi.size == 0:
            return None

        lang = pick_language(languages, self.lang)
        try:
            ocr = self._init_ocr(lang)
            result = ocr.predict(np.ascontiguousarray(roi))
        except Exception as e:
            raise RecognitionError(f"PaddleOCR failed on region {box}: {e}") from e

        lines = self._collect_lines(result)
        logger.debug("Region %s (lang=%s): %d line(s)", box, lang, len(lines))
        if not lines:
            return None
        return " ".join(lines)


class MockOCREngine(RecognitionEngine):
    """Deterministic engine for environments without PaddleOCR."""

    def recognize_region(
        self,
        image: np.ndarray,
        box: Box,
        languages: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        x1, y1, x2, y2 = box
        if x2 <= x1 or y2 <= y1:
            return None
        return f"region {x1},{y1} {x2 - x1}x{y2 - y1}"


def _is_legacy_entry(entry) -> bool:
    """True for a PaddleOCR 2.x ``[points, (text, score)]`` entry."""
    return (
        isinstance(entry, (list, tuple))
        and len(entry) >= 2
        and isinstance(entry[1], (list, tuple))
        and len(entry[1]) >= 2
        and isinstance(entry[1][0], str)
    )
