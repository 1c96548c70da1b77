import numpy as np
import pytest

import framescan.engines.paddle_engine as paddle_engine
from framescan.engines import MockOCREngine, PaddleOCREngine, create_engine
from framescan.errors import RecognitionError


class _FakeOCR:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.chunks = []

    def predict(self, chunk):
        self.chunks.append(chunk)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_ocr(monkeypatch):
    langs = []
    ocr = _FakeOCR()

    def _get_cached_ocr(lang):
        langs.append(lang)
        return ocr

    monkeypatch.setattr(paddle_engine, "get_cached_ocr", _get_cached_ocr)
    ocr.langs = langs
    return ocr


def test_recognize_region_joins_lines_above_min_score(fake_ocr):
    fake_ocr.result = [
        {
            "rec_texts": ["Invoice", "  No. 42 ", "smudge", ""],
            "rec_scores": [0.98, 0.91, 0.2, 0.99],
        }
    ]
    engine = PaddleOCREngine(lang="en", min_score=0.5)
    image = np.zeros((50, 80, 3), dtype=np.uint8)

    text = engine.recognize_region(image, (10, 5, 60, 25))

    assert text == "Invoice No. 42"
    assert fake_ocr.chunks[0].shape == (20, 50, 3)


def test_recognize_region_accepts_tuple_scores(fake_ocr):
    fake_ocr.result = [{"rec_texts": ["Hi"], "rec_scores": [(0.9, 0.1)]}]
    engine = PaddleOCREngine(lang="en")

    assert engine.recognize_region(np.zeros((10, 10, 3), np.uint8), (0, 0, 10, 10)) == "Hi"


def test_recognize_region_parses_legacy_output(fake_ocr):
    points = [[0, 0], [5, 0], [5, 5], [0, 5]]
    fake_ocr.result = [[[points, ("hello", 0.9)], [points, ("world", 0.8)]]]
    engine = PaddleOCREngine(lang="en")

    assert engine.recognize_region(np.zeros((10, 10), np.uint8), (0, 0, 10, 10)) == "hello world"


def test_recognize_region_without_text_is_none(fake_ocr):
    fake_ocr.result = [{"rec_texts": [], "rec_scores": []}]
    engine = PaddleOCREngine(lang="en")

    assert engine.recognize_region(np.zeros((10, 10), np.uint8), (0, 0, 10, 10)) is None


def test_empty_region_skips_ocr(fake_ocr):
    engine = PaddleOCREngine(lang="en")

    assert engine.recognize_region(np.zeros((10, 10), np.uint8), (5, 5, 5, 9)) is None
    assert fake_ocr.chunks == []


def test_predict_failure_raises_recognition_error(fake_ocr):
    fake_ocr.error = RuntimeError("paddle crashed")
    engine = PaddleOCREngine(lang="en")

    with pytest.raises(RecognitionError) as exc_info:
        engine.recognize_region(np.zeros((10, 10), np.uint8), (0, 0, 10, 10))

    assert exc_info.value.error_code == "recognition_failed"
    assert "paddle crashed" in str(exc_info.value)


def test_language_hint_overrides_engine_default(fake_ocr):
    fake_ocr.result = []
    engine = PaddleOCREngine(lang="en")
    image = np.zeros((10, 10), np.uint8)

    engine.recognize_region(image, (0, 0, 10, 10), ["", "ko-KR", "en"])
    engine.recognize_region(image, (0, 0, 10, 10), None)

    assert fake_ocr.langs == ["korean", "en"]


def test_mock_engine_describes_region():
    engine = MockOCREngine()

    assert engine.recognize_region(np.zeros((10, 10), np.uint8), (2, 3, 7, 9)) == "region 2,3 5x6"


def test_create_engine_by_name():
    assert isinstance(create_engine("mock"), MockOCREngine)
    paddle = create_engine(" Paddle ", lang="ko", min_score=0.7, max_concurrency=2)
    assert isinstance(paddle, PaddleOCREngine)
    assert paddle.lang == "korean"
    assert paddle.min_score == 0.7
    assert paddle.max_concurrency == 2

    with pytest.raises(ValueError):
        create_engine("tesseract")
