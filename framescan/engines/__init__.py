"""Recognition engines and the factory used by Scanner."""

from .base import Box, RecognitionEngine
from .cache import get_cached_ocr, normalize_language, pick_language, suppress_native_stderr
from .paddle_engine import MockOCREngine, PaddleOCREngine

ENGINES = {
    "paddle": PaddleOCREngine,
    "mock": MockOCREngine,
}


def create_engine(
    name: str = "paddle",
    *,
    lang: str = "en",
    min_score: float = 0.5,
    max_concurrency: int = 1,
) -> RecognitionEngine:
    """
    Build an engine by name.

    PaddleOCR itself is only imported on the first recognition, so this
    succeeds even where paddleocr is not installed.
    """
    key = (name or "").strip().lower()
    if key not in ENGINES:
        raise ValueError(f"Unknown engine: {name!r} (expected one of {sorted(ENGINES)})")
    if key == "paddle":
        return PaddleOCREngine(lang=lang, min_score=min_score, max_concurrency=max_concurrency)
    return ENGINES[key](max_concurrency=max_concurrency)


__all__ = [
    "Box",
    "RecognitionEngine",
    "PaddleOCREngine",
    "MockOCREngine",
    "ENGINES",
    "create_engine",
    "get_cached_ocr",
    "normalize_language",
    "pick_language",
    "suppress_native_stderr",
]
