# pixeltrack/cli.py
import argparse
import json
import logging
import pathlib
import time

from .config import (
    COLOR_DISTANCE_THRESHOLD,
    DEFAULT_BLUR_DIAMETER,
    DEFAULT_RESIZE_WIDTH,
    GROUND_TRUTH_FILENAME,
    IMAGE_GLOB_PATTERN,
    VIDEO_SUFFIXES,
    setup_logging,
)
from .counter import process_image, process_video
from .eval_counts import run_evaluation
from .tracker import TrackerConfig, TrackingMode

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Count objects in images and videos")
    parser.add_argument("--path", required=True, help="Image, video or directory of images")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in TrackingMode],
        default=TrackingMode.CONTOUR.value,
        help="Region tracking strategy",
    )
    parser.add_argument(
        "--fallback",
        action="store_true",
        help="Run the bounding-rectangle fallback when no contours are found",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=COLOR_DISTANCE_THRESHOLD,
        help="Lab colour distance below which pixels join a region",
    )
    parser.add_argument("--width", type=int, default=DEFAULT_RESIZE_WIDTH,
                        help="Downscale frames wider than this (0 keeps full size)")
    parser.add_argument("--blur", type=float, default=DEFAULT_BLUR_DIAMETER,
                        help="Gaussian blur diameter before edge detection (0 disables)")
    parser.add_argument("--overlay-dir", help="Write region overlays for images here")
    parser.add_argument("--counts-out", help="Write {image: count} JSON here")
    parser.add_argument("--max-frames", type=int, help="Stop videos after this many frames")
    return parser


def run(argv=None):
    """Process every input named on the command line; returns {image: count} or None."""
    args = build_parser().parse_args(argv)

    input_path = pathlib.Path(args.path)
    config = TrackerConfig(
        mode=TrackingMode(args.mode),
        contour_fallback=args.fallback,
        color_distance_threshold=args.threshold,
    )

    # Collect paths
    if input_path.is_dir():
        paths = sorted(input_path.glob(IMAGE_GLOB_PATTERN))
        log.info("Processing %d images from directory: %s", len(paths), input_path)
    elif input_path.is_file():
        paths = [input_path]
        log.info("Processing single file: %s", input_path)
    else:
        log.error("Path not found: %s", input_path)
        return None

    if not paths:
        log.warning("No images matching '%s' found at: %s", IMAGE_GLOB_PATTERN, input_path)
        return None

    results = {}
    start_time = time.time()

    for path in paths:
        try:
            if path.suffix.lower() in VIDEO_SUFFIXES:
                counts = process_video(
                    path, config, args.width, args.blur, max_frames=args.max_frames
                )
                if counts:
                    log.info("%s: %d frames, counts min=%d max=%d",
                             path.name, len(counts), min(counts), max(counts))
                continue
            count = process_image(path, config, args.width, args.blur, args.overlay_dir)
            if count is not None:
                results[path.name] = count
        except Exception as e:
            log.error("Error processing %s: %s", path.name, e, exc_info=True)

    if results:
        elapsed = time.time() - start_time
        log.info("Summary: %d images, %d regions total, %.1fs elapsed",
                 len(results), sum(results.values()), elapsed)

        if args.counts_out:
            counts_path = pathlib.Path(args.counts_out)
            counts_path.write_text(json.dumps(results, indent=2))
            log.info("Counts saved to: %s", counts_path)

        # --- auto-evaluation if a GT file is present ----
        gt_dir = input_path if input_path.is_dir() else input_path.parent
        gt_json_path = gt_dir / GROUND_TRUTH_FILENAME
        if gt_json_path.exists():
            log.info("Found %s – running evaluation.", GROUND_TRUTH_FILENAME)
            run_evaluation(gt_json_path, results)

    return results


def main(argv=None):
    setup_logging()
    run(argv)


if __name__ == "__main__":
    main()
