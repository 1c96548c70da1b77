import json
from pathlib import Path

import pytest
from PIL import Image

import main


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    monkeypatch.setattr(main, "setup_logging", lambda level: None)


@pytest.fixture
def page(tmp_path):
    path = tmp_path / "page.png"
    Image.new("RGB", (120, 80), "white").save(path, dpi=(72, 72))
    return path


def test_scan_prints_json_mapping(page, capsys):
    main.main(["scan", str(page), "--engine", "mock", "-f", "a=0,0,10,10", "-f", "b:50%,50%,50%,50%", "--json"])

    out = capsys.readouterr().out
    assert json.loads(out) == {"a": "region 0,0 10x10", "b": "region 60,40 60x40"}


def test_scan_streams_lines_per_frame(page, capsys):
    main.main(["scan", str(page), "--engine", "mock", "-f", "a=0,0,10,10"])

    assert capsys.readouterr().out.strip() == "a: region 0,0 10x10"


def test_scan_without_frames_reads_whole_image(page, capsys):
    main.main(["scan", str(page), "--engine", "mock", "--json"])

    assert json.loads(capsys.readouterr().out) == {"extent": "region 0,0 120x80"}


def test_scan_uses_engine_from_settings(page, capsys, monkeypatch, mock_settings):
    monkeypatch.setattr(main, "get_settings", lambda: mock_settings)

    main.main(["scan", str(page), "--json"])

    assert json.loads(capsys.readouterr().out) == {"extent": "region 0,0 120x80"}


def test_invalid_frame_exits_with_usage_error(page, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main.main(["scan", str(page), "--engine", "mock", "-f", "a=0,0,50%,50%"])

    assert exc_info.value.code == 2
    assert "Invalid frame" in capsys.readouterr().err


def test_missing_image_exits_with_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main.main(["scan", str(tmp_path / "missing.png"), "--engine", "mock"])

    assert exc_info.value.code == 1
    assert "missing.png" in capsys.readouterr().err


def test_info_prints_image_properties(page, capsys):
    main.main(["info", str(page)])

    info = json.loads(capsys.readouterr().out)
    assert info["PixelWidth"] == 120
    assert info["PixelHeight"] == 80
    assert info["Orientation"] == 1
    assert info["ColorModel"] == "RGB"


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main.main([])

    assert exc_info.value.code == 1
    assert "scan" in capsys.readouterr().out


def test_native_log_quieting_flags_are_set_before_imports():
    content = Path(main.__file__).read_text(encoding="utf-8")
    assert content.index("PADDLE_PDX_DISABLE_MODEL_SOURCE_CHECK") < content.index("from framescan")
