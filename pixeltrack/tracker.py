"""
Region tracking for object counting.

Segments one frame into connected regions with one of two strategies:

    • COLOR   – breadth-first flood fill gated by Lab colour distance
    • CONTOUR – single-path walks along near-white edge pixels of an
                edge-filtered frame (see preprocess.prepare_edges)

Both run once per frame; visited state lives in a per-call mask and nothing
is carried over between frames.

Dependencies: numpy
"""

from __future__ import annotations

import enum
import logging
import math
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Callable, Deque, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .colorspace import rgb_to_lab
from .config import (
    COLOR_DISTANCE_THRESHOLD,
    EDGE_CHANNEL_THRESHOLD,
    MIN_CONTOUR_LENGTH,
    NO_MATCH_DEPTH_LIMIT,
    get_adaptive_parameters,
)
from .luma import as_rgba

log = logging.getLogger(__name__)

# (dx, dy) steps; the order decides which neighbour is tried first
COLOR_NEIGHBOURS = ((-1, 0), (-1, -1), (0, -1), (-1, 1), (1, -1), (1, 0), (1, 1), (0, 1))
CONTOUR_NEIGHBOURS = ((-1, -1), (-1, 1), (1, -1), (1, 1), (0, -1), (0, 1), (1, 0), (-1, 0))


# --------------------------------------------------------------------------- #
# 1. data classes
# --------------------------------------------------------------------------- #

class TrackingMode(enum.Enum):
    COLOR = "color"
    CONTOUR = "contour"


@dataclass(frozen=True)
class TrackerConfig:
    """
    Tracker tunables.

    ``min_group_size`` / ``max_group_size`` left as None are resolved from
    the frame size by `for_frame` at the start of every `track` call.
    ``contour_fallback`` enables the bounding-rectangle flood fill when the
    contour tracer finds nothing; it is off by default, so a frame without
    contours yields no regions.
    """
    min_group_size: Optional[float] = None
    max_group_size: Optional[float] = None
    color_distance_threshold: float = COLOR_DISTANCE_THRESHOLD
    no_match_depth_limit: int = NO_MATCH_DEPTH_LIMIT
    mode: TrackingMode = TrackingMode.CONTOUR
    contour_fallback: bool = False
    edge_channel_threshold: int = EDGE_CHANNEL_THRESHOLD
    min_contour_length: int = MIN_CONTOUR_LENGTH

    def for_frame(self, width: int, height: int) -> "TrackerConfig":
        params = get_adaptive_parameters(width, height)
        return replace(
            self,
            min_group_size=(
                params["min_group_size"] if self.min_group_size is None else self.min_group_size
            ),
            max_group_size=(
                params["max_group_size"] if self.max_group_size is None else self.max_group_size
            ),
        )


@dataclass
class BoundingRect:
    """Axis-aligned extent of a region; width/height are max - min."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return (self.min_x + self.width * 0.5, self.min_y + self.height * 0.5)

    @classmethod
    def from_offsets(cls, offsets: Sequence[int], frame_width: int) -> "BoundingRect":
        """Create from RGBA byte offsets."""
        ys, xs = np.divmod(np.asarray(offsets, dtype=np.int64) // 4, frame_width)
        return cls(int(xs.min()), int(ys.min()), int(xs.max()), int(ys.max()))


@dataclass
class Region:
    """Connected set of pixels found in one frame."""
    id: int
    members: List[int] = field(default_factory=list)   # RGBA byte offsets
    depth: int = 0
    seed_color: Optional[Tuple[int, int, int]] = None
    bounds: Optional[BoundingRect] = None

    @property
    def size(self) -> int:
        return len(self.members)

    def coordinates(self, frame_width: int) -> List[Tuple[int, int]]:
        """Member pixels as (x, y)."""
        return [((m // 4) % frame_width, (m // 4) // frame_width) for m in self.members]


# --------------------------------------------------------------------------- #
# 2. helpers
# --------------------------------------------------------------------------- #

def _neighbours(index: int, width: int, height: int, steps) -> Iterator[int]:
    # 8-connected, no wrap across row ends
    y, x = divmod(index, width)
    for dx, dy in steps:
        nx, ny = x + dx, y + dy
        if 0 <= nx < width and 0 <= ny < height:
            yield ny * width + nx


def _make_region(
    region_id: int,
    indices: List[int],
    width: int,
    depth: int = 0,
    seed_color: Optional[Tuple[int, int, int]] = None,
) -> Region:
    members = [i * 4 for i in indices]
    return Region(
        id=region_id,
        members=members,
        depth=depth,
        seed_color=seed_color,
        bounds=BoundingRect.from_offsets(members, width),
    )


# --------------------------------------------------------------------------- #
# 3. colour flood fill
# --------------------------------------------------------------------------- #

def _flood_color(
    seed: int,
    lab: List[List[float]],
    claimed: NDArray[np.bool_],
    width: int,
    height: int,
    config: TrackerConfig,
) -> Tuple[Optional[List[int]], int]:
    """
    Grow one region from *seed*. Returns (member indices or None, depth).

    A ``None`` sentinel follows each accepted pixel's neighbour batch; it
    advances the depth and resets the no-match counter. The expansion halts
    once ``no_match_depth_limit`` non-matching pixels turn up within one
    layer. A batch only holds neighbours that were unclaimed when it was
    queued, so past the seed it has at most 7 entries and the default limit
    of 8 leaves the flood unbounded; lower limits cut off leaking floods.
    Pixels farther than the colour threshold from the seed are rejected for
    this expansion only.
    Once the region outgrows ``max_group_size`` it is background: the flood
    keeps claiming matching pixels but the result is None.
    """
    seed_lab = lab[seed]
    threshold = config.color_distance_threshold
    max_size = config.max_group_size

    queue: Deque[Optional[int]] = deque([seed, None])
    rejected = set()
    members: List[int] = []
    depth = 0
    no_match = 0
    background = False

    while queue:
        index = queue.popleft()
        if index is None:
            depth += 1
            no_match = 0
            continue
        if claimed[index] or index in rejected:
            continue

        if math.dist(seed_lab, lab[index]) >= threshold:
            rejected.add(index)
            no_match += 1
            if no_match >= config.no_match_depth_limit:
                break
            continue

        claimed[index] = True
        if not background:
            if len(members) > max_size:
                background = True
                members = []
            else:
                members.append(index)

        for n in _neighbours(index, width, height, COLOR_NEIGHBOURS):
            if not claimed[n] and n not in rejected:
                queue.append(n)
        queue.append(None)

    return (None if background else members), depth


def track_color(
    pixels: ArrayLike,
    width: int,
    height: int,
    config: TrackerConfig,
    claimed: Optional[NDArray[np.bool_]] = None,
) -> List[Region]:
    """
    Colour-similarity flood fill over every unclaimed pixel in row-major order.

    *config* must already be resolved with `TrackerConfig.for_frame`.
    *claimed* marks pixels that may neither seed nor join a region.
    """
    img = as_rgba(pixels, width, height)
    rgb = img[..., :3].reshape(-1, 3)
    # Lab for the whole frame once; per-pixel distance is then compare_rgb
    lab = rgb_to_lab(rgb).tolist()
    if claimed is None:
        claimed = np.zeros(width * height, dtype=bool)

    regions: List[Region] = []
    discarded = 0
    for seed in range(width * height):
        if claimed[seed]:
            continue
        members, depth = _flood_color(seed, lab, claimed, width, height, config)
        if members is None:
            discarded += 1
            continue
        if not members or len(members) < config.min_group_size:
            continue
        seed_color = tuple(int(c) for c in rgb[seed])
        regions.append(_make_region(len(regions) + 1, members, width, depth, seed_color))

    log.debug(
        "Colour flood fill: %d regions, %d oversized groups treated as background",
        len(regions),
        discarded,
    )
    return regions


# --------------------------------------------------------------------------- #
# 4. edge-contour tracer
# --------------------------------------------------------------------------- #

def edge_mask(pixels: ArrayLike, width: int, height: int, threshold: int) -> NDArray[np.bool_]:
    """Flat mask of pixels whose R, G and B all exceed *threshold*."""
    rgb = as_rgba(pixels, width, height)[..., :3]
    return np.all(rgb > threshold, axis=-1).reshape(-1)


def _next_on_contour(
    node: int,
    edge: NDArray[np.bool_],
    visited: NDArray[np.bool_],
    width: int,
    height: int,
) -> Optional[int]:
    candidates = [
        n for n in _neighbours(node, width, height, CONTOUR_NEIGHBOURS)
        if edge[n] and not visited[n]
    ]
    # prefer a step that can keep going; branch stubs and noise end the walk
    for n in candidates:
        for m in _neighbours(n, width, height, CONTOUR_NEIGHBOURS):
            if edge[m] and not visited[m]:
                return n
    return candidates[0] if candidates else None


def trace_contours(
    pixels: ArrayLike,
    width: int,
    height: int,
    config: TrackerConfig,
    visited: Optional[NDArray[np.bool_]] = None,
) -> Tuple[List[Region], NDArray[np.bool_]]:
    """
    Follow thin near-white edges with single-path walks.

    Returns (contours, edge mask). Walks shorter than
    ``config.min_contour_length`` are dropped. *visited* is filled in place
    when given.
    """
    edge = edge_mask(pixels, width, height, config.edge_channel_threshold)
    if visited is None:
        visited = np.zeros(width * height, dtype=bool)

    contours: List[Region] = []
    short = 0
    for start in range(width * height):
        path: List[int] = []
        node: Optional[int] = start
        while node is not None and not visited[node]:
            visited[node] = True
            if not edge[node]:
                break
            path.append(node)
            node = _next_on_contour(node, edge, visited, width, height)

        if not path:
            continue
        if len(path) < config.min_contour_length:
            short += 1
            continue
        contours.append(_make_region(len(contours) + 1, path, width))

    log.debug("Contour tracer: %d contours kept, %d short walks dropped", len(contours), short)
    return contours, edge


def find_blobs(
    pixels: ArrayLike,
    width: int,
    height: int,
    config: TrackerConfig,
    excluded: Optional[NDArray[np.bool_]] = None,
) -> List[Region]:
    """
    Bounding-rectangle fallback: colour flood fill of the pixels not in
    *excluded*, keeping groups inside ``[min_group_size, max_group_size]``.
    """
    claimed = np.zeros(width * height, dtype=bool) if excluded is None else excluded.copy()
    blobs = [
        r for r in track_color(pixels, width, height, config, claimed=claimed)
        if r.size <= config.max_group_size
    ]
    for region_id, blob in enumerate(blobs, 1):
        blob.id = region_id
    log.info("Fallback produced %d blobs", len(blobs))
    return blobs


# --------------------------------------------------------------------------- #
# 5. dispatch
# --------------------------------------------------------------------------- #

def track(
    pixels: ArrayLike,
    width: int,
    height: int,
    config: Optional[TrackerConfig] = None,
    handler: Optional[Callable[[List[Region]], object]] = None,
) -> List[Region]:
    """
    Segment one frame into regions.

    Args:
        pixels: RGBA frame. CONTOUR mode expects an edge-filtered frame.
        width, height: Frame size. Non-positive sizes give an empty result.
        config: Tracker settings; group-size defaults follow the frame size.
        handler: Optional consumer called with the region list.

    Returns:
        The regions, ids numbered from 1.
    """
    config = (config or TrackerConfig()).for_frame(width, height)

    if width <= 0 or height <= 0:
        log.warning("Malformed frame size %sx%s – no regions", width, height)
        regions: List[Region] = []
    elif config.mode is TrackingMode.COLOR:
        regions = track_color(pixels, width, height, config)
    else:
        regions, edge = trace_contours(pixels, width, height, config)
        if not regions and config.contour_fallback:
            log.info("No contours found – running bounding-rectangle fallback")
            regions = find_blobs(pixels, width, height, config, excluded=edge)

    log.debug("track(%dx%d, %s): %d regions", width, height, config.mode.value, len(regions))
    if handler is not None:
        handler(regions)
    return regions
