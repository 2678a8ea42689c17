"""
pixeltrack/counter.py
=====================

Coordinator for frames, images and videos: prepares the buffer for the
configured tracking mode, runs the tracker and logs the region count.

1.  `process_frame` is the per-frame entry point used by everything else.
2.  `process_image` reads with OpenCV, applies the global sanity veto
    (`MAX_REASONABLE_COUNT`) and can write an overlay for inspection.
3.  `process_video` is the per-frame loop over a video file, timed with
    imutils' FPS counter.
"""

from __future__ import annotations

import logging
import pathlib
from typing import List, Optional

import cv2
import imutils
import numpy as np
from imutils.video import FPS

from .config import DEFAULT_BLUR_DIAMETER, DEFAULT_RESIZE_WIDTH, MAX_REASONABLE_COUNT
from .mask_utils import create_coloured_overlay, regions_to_markers
from .preprocess import prepare_edges
from .tracker import Region, TrackerConfig, TrackingMode, track

log = logging.getLogger(__name__)


def bgr_to_rgba(img: np.ndarray) -> np.ndarray:
    """OpenCV BGR / BGRA / gray image → flat RGBA byte buffer."""
    if img.ndim == 2:
        code = cv2.COLOR_GRAY2RGBA
    elif img.shape[2] == 4:
        code = cv2.COLOR_BGRA2RGBA
    else:
        code = cv2.COLOR_BGR2RGBA
    return cv2.cvtColor(img, code).reshape(-1)


def _fit_width(img: np.ndarray, resize_width: Optional[int]) -> np.ndarray:
    if resize_width and img.shape[1] > resize_width:
        return imutils.resize(img, width=resize_width)
    return img


def process_frame(
    pixels: np.ndarray,
    width: int,
    height: int,
    config: Optional[TrackerConfig] = None,
    blur_diameter: Optional[float] = DEFAULT_BLUR_DIAMETER,
) -> List[Region]:
    """
    Track one RGBA frame.

    CONTOUR mode runs on the blurred Sobel edge frame; COLOR mode on the raw
    pixels. The caller's buffer is never modified.
    """
    config = config or TrackerConfig()
    if width <= 0 or height <= 0:
        return track(pixels, width, height, config)

    if config.mode is TrackingMode.CONTOUR:
        buffer = prepare_edges(pixels, width, height, blur_diameter)
    else:
        buffer = pixels
    return track(buffer, width, height, config)


def process_image(
    image_path: str | pathlib.Path,
    config: Optional[TrackerConfig] = None,
    resize_width: Optional[int] = DEFAULT_RESIZE_WIDTH,
    blur_diameter: Optional[float] = DEFAULT_BLUR_DIAMETER,
    overlay_dir: Optional[str | pathlib.Path] = None,
) -> Optional[int]:
    """
    Count regions in one image.

    Returns:
        • int  – number of regions
        • None – if the image failed to load or the sanity veto triggered
    """
    path = pathlib.Path(image_path)
    log.info("Processing image: %s", path.name)

    raw_img = cv2.imread(str(path))
    if raw_img is None:
        log.error("OpenCV failed to read image: %s", path)
        return None

    img = _fit_width(raw_img, resize_width)
    height, width = img.shape[:2]
    regions = process_frame(bgr_to_rgba(img), width, height, config, blur_diameter)
    total = len(regions)
    log.info("Detected %d regions in %s (%dx%d)", total, path.name, width, height)

    # --- sanity veto ----------------------------------------------------- #
    if total > MAX_REASONABLE_COUNT:
        log.error(
            "Global veto: unreasonable count (%d) for %s – result discarded",
            total,
            path.name,
        )
        return None

    if overlay_dir is not None:
        out_dir = pathlib.Path(overlay_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        overlay = create_coloured_overlay(img, regions_to_markers(regions, width, height))
        overlay_file = out_dir / f"{path.stem}_overlay.png"
        cv2.imwrite(str(overlay_file), overlay)
        log.debug("Overlay saved to %s", overlay_file)

    return total


def process_video(
    video_path: str | pathlib.Path,
    config: Optional[TrackerConfig] = None,
    resize_width: Optional[int] = DEFAULT_RESIZE_WIDTH,
    blur_diameter: Optional[float] = DEFAULT_BLUR_DIAMETER,
    max_frames: Optional[int] = None,
) -> Optional[List[int]]:
    """
    Track every frame of a video; regions are recomputed from scratch for
    each frame.

    Returns:
        • list[int] – region count per frame
        • None      – if the video could not be opened
    """
    path = pathlib.Path(video_path)
    capture = cv2.VideoCapture(str(path))
    if not capture.isOpened():
        log.error("OpenCV failed to open video: %s", path)
        return None

    counts: List[int] = []
    fps = FPS().start()
    try:
        while max_frames is None or len(counts) < max_frames:
            ok, frame = capture.read()
            if not ok:
                break
            frame = _fit_width(frame, resize_width)
            height, width = frame.shape[:2]
            regions = process_frame(bgr_to_rgba(frame), width, height, config, blur_diameter)
            counts.append(len(regions))
            log.debug("Frame %d: %d regions", len(counts), len(regions))
            fps.update()
    finally:
        fps.stop()
        capture.release()

    if counts:
        log.info(
            "Processed %d frames of %s at %.1f FPS (max %d regions)",
            len(counts),
            path.name,
            fps.fps(),
            max(counts),
        )
    else:
        log.warning("No frames decoded from %s", path.name)
    return counts
