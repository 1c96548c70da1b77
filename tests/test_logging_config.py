import importlib
import logging
import sys
from datetime import datetime

import pytest


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_respects_env_log_dir(tmp_path, monkeypatch, restore_root_logger):
    monkeypatch.setenv("FRAMESCAN_LOG_DIR", str(tmp_path))

    import framescan.logging_config as logging_config
    importlib.reload(logging_config)

    logging_config.setup_logging(level=logging.INFO, log_file="scan.log")
    logging_config.get_logger("framescan.test").info("hello")

    date_str = datetime.now().strftime("%Y%m%d")
    expected = tmp_path / f"{date_str}_scan.log"
    assert expected.exists()
    for handler in restore_root_logger.handlers:
        handler.flush()
    assert "hello" in expected.read_text(encoding="utf-8")


def test_setup_logging_console_goes_to_stderr(restore_root_logger):
    from framescan.logging_config import setup_logging

    root = setup_logging(level=logging.DEBUG)

    stream_handlers = [h for h in root.handlers if isinstance(h, logging.StreamHandler)]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].stream is sys.stderr
    assert root.level == logging.DEBUG
    assert logging.getLogger("ppocr").level == logging.WARNING


def test_setup_logging_without_console(restore_root_logger):
    from framescan.logging_config import setup_logging

    root = setup_logging(console=False)

    assert root.handlers == []


@pytest.mark.parametrize(
    "value, expected",
    [
        ("DEBUG", logging.DEBUG),
        (" warning ", logging.WARNING),
        ("", logging.INFO),
        ("LOUD", logging.INFO),
        ("getLogger", logging.INFO),
    ],
)
def test_get_log_level_from_env(monkeypatch, value, expected):
    monkeypatch.setenv("FRAMESCAN_LOG_LEVEL", value)

    from framescan.logging_config import get_log_level

    assert get_log_level("FRAMESCAN_LOG_LEVEL") == expected
