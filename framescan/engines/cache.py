"""PaddleOCR instance cache, language normalization and stderr suppression."""

import contextlib
import logging
import os
import sys
import threading
from collections.abc import Sequence
from typing import Optional

# Reduce PaddleOCR/PaddlePaddle log noise
os.environ.setdefault("PADDLE_PDX_LOG_LEVEL", "ERROR")
logging.getLogger("ppocr").setLevel(logging.ERROR)
logging.getLogger("paddlex").setLevel(logging.ERROR)

logger = logging.getLogger(__name__)

_ocr_cache: dict = {}
_ocr_lock = threading.Lock()

# BCP 47 primary subtags and common aliases -> PaddleOCR language names
_LANG_ALIASES = {
    "en": "en",
    "ko": "korean",
    "kr": "korean",
    "korean": "korean",
    "zh": "ch",
    "ch": "ch",
    "ja": "japan",
    "jp": "japan",
    "japan": "japan",
    "fr": "fr",
    "de": "german",
    "german": "german",
}

_PADDLE_LANGS = set(_LANG_ALIASES.values()) | {"chinese_cht"}

_REC_MODELS = {
    "en": "en_PP-OCRv5_mobile_rec",
    "korean": "korean_PP-OCRv5_mobile_rec",
}


def normalize_language(code: Optional[str], default: str = "en") -> str:
    """
    Map a language code ("en-US", "ko_KR", "zh-Hant") to a PaddleOCR name.

    Traditional Chinese maps to "chinese_cht"; unknown codes pass through
    lower-cased so PaddleOCR can reject them itself.
    """
    if not code or not code.strip():
        return default
    if code.strip().lower() in _PADDLE_LANGS:
        return code.strip().lower()
    raw = code.strip().lower().replace("_", "-")
    primary = raw.split("-", 1)[0]
    if primary == "zh" and ("hant" in raw or raw.endswith(("-tw", "-hk"))):
        return "chinese_cht"
    return _LANG_ALIASES.get(primary, primary)


def pick_language(codes: Optional[Sequence[str]], default: str = "en") -> str:
    """First usable language hint, normalized; ``default`` when none."""
    for code in codes or ():
        if code and code.strip():
            return normalize_language(code, default)
    return default


@contextlib.contextmanager
def suppress_native_stderr():
    """Suppress native stderr output during OCR model init."""
    if os.getenv("FRAMESCAN_SUPPRESS_NATIVE_STDERR", "1") == "0":
        yield
        return
    try:
        stderr_fd = sys.stderr.fileno()
        saved_stderr = os.dup(stderr_fd)
    except (AttributeError, ValueError, OSError):
        yield
        return

    redirected = False
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, stderr_fd)
        os.close(devnull)
        redirected = True
    except OSError:
        pass

    try:
        yield
    finally:
        # Never yield again in cleanup path; contextlib would mask the real exception.
        if redirected:
            try:
                os.dup2(saved_stderr, stderr_fd)
            except OSError:
                pass
        try:
            os.close(saved_stderr)
        except OSError:
            pass


def get_cached_ocr(lang: str = "en"):
    """
    Get or create the cached PaddleOCR instance for ``lang``.

    Document orientation/unwarping stages are disabled: frames are already
    cropped regions of an upright image.
    """
    lang = normalize_language(lang)
    rec_model = _REC_MODELS.get(lang)

    if lang not in _ocr_cache:
        with _ocr_lock:
            if lang not in _ocr_cache:
                logger.info("Loading PaddleOCR for lang=%s", lang)
                kwargs = dict(
                    lang=lang,
                    use_doc_orientation_classify=False,
                    use_doc_unwarping=False,
                    use_textline_orientation=False,
                    text_detection_model_name="PP-OCRv5_mobile_det",
                )
                if rec_model:
                    kwargs["text_recognition_model_name"] = rec_model
                with suppress_native_stderr():
                    from paddleocr import PaddleOCR

                    _ocr_cache[lang] = PaddleOCR(**kwargs)

    return _ocr_cache[lang]


def clear_ocr_cache() -> None:
    with _ocr_lock:
        _ocr_cache.clear()
