import json
import sys

import cv2
import numpy as np
import pytest

from pixeltrack.cli import build_parser, main, run


@pytest.fixture
def image_dir(tmp_path):
    one = np.full((100, 100, 3), 255, dtype=np.uint8)
    one[35:65, 35:65] = (0, 0, 255)
    two = np.full((100, 100, 3), 255, dtype=np.uint8)
    two[10:30, 10:30] = (0, 0, 255)
    two[60:90, 60:90] = (255, 0, 0)
    cv2.imwrite(str(tmp_path / "one.png"), one)
    cv2.imwrite(str(tmp_path / "two.png"), two)
    (tmp_path / "notes.txt").write_text("ignored")
    return tmp_path


def test_parser_defaults():
    args = build_parser().parse_args(["--path", "x"])
    assert args.mode == "contour"
    assert args.fallback is False
    assert args.threshold == 40


def test_parser_rejects_unknown_mode():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--path", "x", "--mode", "sift"])


def test_directory_run_writes_counts_and_evaluates(image_dir, tmp_path, capsys):
    (image_dir / "ground_truth.json").write_text('{"one.png": 1, "two.png": 3}')
    counts_out = tmp_path / "counts.json"

    results = run([
        "--path", str(image_dir),
        "--mode", "color",
        "--width", "0",
        "--counts-out", str(counts_out),
    ])

    assert results == {"one.png": 1, "two.png": 2}
    assert json.loads(counts_out.read_text()) == results
    out = capsys.readouterr().out
    assert "MAE  = 0.50" in out


def test_single_image_with_overlay(image_dir, tmp_path):
    overlays = tmp_path / "ov"
    results = run([
        "--path", str(image_dir / "two.png"),
        "--mode", "color",
        "--width", "0",
        "--overlay-dir", str(overlays),
    ])
    assert results == {"two.png": 2}
    assert (overlays / "two_overlay.png").exists()


def test_missing_path(tmp_path):
    assert run(["--path", str(tmp_path / "missing")]) is None


def test_empty_directory(tmp_path):
    assert run(["--path", str(tmp_path)]) is None


def test_console_entry_exits_cleanly(image_dir):
    # console scripts wrap the entry point in sys.exit()
    with pytest.raises(SystemExit) as exc:
        sys.exit(main(["--path", str(image_dir), "--mode", "color", "--width", "0"]))
    assert exc.value.code is None


def test_console_entry_exits_cleanly_without_inputs(tmp_path):
    with pytest.raises(SystemExit) as exc:
        sys.exit(main(["--path", str(tmp_path)]))
    assert exc.value.code is None
