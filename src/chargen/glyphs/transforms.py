"""Geometric transforms for glyph grids.

A library of pure-function primitives over boolean numpy grids: rotation,
mirroring, wrap-around shifting, inversion, clear/fill, single-pixel
edits, anchored resize and anchored content scaling.  None of them write
to their input; every call returns a new array.

Each no-argument-capable primitive is registered in ``OPERATIONS`` so it
can be applied by name (``batch_apply``, ``apply_program``, the CLI).
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Iterable
from typing import Any, Callable, Literal, Sequence, get_args

import numpy as np

from chargen.glyphs.errors import InvalidArgumentError, OutOfBoundsError
from chargen.glyphs.grid import ANCHORS, Anchor, Grid, anchor_offset, bounding_box, place

logger = logging.getLogger(__name__)

# Type alias for a grid transformation function
Transform = Callable[..., Grid]

ScaleAlgorithm = Literal["nearest", "coverage"]
SCALE_ALGORITHMS: tuple[str, ...] = get_args(ScaleAlgorithm)

PixelState = Literal["on", "off", "mixed"]

# ---------------------------------------------------------------------------
# Orientation
# ---------------------------------------------------------------------------


def rotate(grid: Grid, clockwise: bool = True) -> Grid:
    """Rotate 90°.  A non-square glyph comes back with width and height swapped."""
    return np.rot90(grid, k=-1 if clockwise else 1).copy()


def rotate_clockwise(grid: Grid) -> Grid:
    return rotate(grid, clockwise=True)


def rotate_counterclockwise(grid: Grid) -> Grid:
    return rotate(grid, clockwise=False)


def flip_horizontal(grid: Grid) -> Grid:
    """Mirror left-right."""
    return np.fliplr(grid).copy()


def flip_vertical(grid: Grid) -> Grid:
    """Mirror top-bottom."""
    return np.flipud(grid).copy()


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


def invert(grid: Grid) -> Grid:
    return np.logical_not(grid)


def clear(grid: Grid) -> Grid:
    return np.zeros(grid.shape, dtype=bool)


def fill(grid: Grid) -> Grid:
    return np.ones(grid.shape, dtype=bool)


def shift(grid: Grid, dx: int = 0, dy: int = 0, wrap: bool = True) -> Grid:
    """Translate content by *dx* columns (right) and *dy* rows (down).

    With *wrap* (the default) pixels leaving one edge re-enter on the
    opposite edge, so ``shift(shift(g, dx, dy), -dx, -dy) == g``.
    Without it they are dropped and the vacated area is background.
    """
    if wrap:
        return np.roll(grid, (dy, dx), axis=(0, 1))
    height, width = grid.shape
    return place(grid, width, height, dy, dx)


def shift_left(grid: Grid, n: int = 1) -> Grid:
    return shift(grid, dx=-n)


def shift_right(grid: Grid, n: int = 1) -> Grid:
    return shift(grid, dx=n)


def shift_up(grid: Grid, n: int = 1) -> Grid:
    return shift(grid, dy=-n)


def shift_down(grid: Grid, n: int = 1) -> Grid:
    return shift(grid, dy=n)


def center(grid: Grid) -> Grid:
    """Move the foreground bounding box to the middle of the canvas.

    Odd leftover space goes to the right / bottom.  Empty glyphs are
    returned unchanged.
    """
    bbox = bounding_box(grid)
    if bbox is None:
        return grid.copy()
    height, width = grid.shape
    box_h, box_w = bbox.shape
    dy = (height - box_h) // 2 - bbox.min_row
    dx = (width - box_w) // 2 - bbox.min_col
    if dx == 0 and dy == 0:
        return grid.copy()
    return place(grid, width, height, dy, dx)


# ---------------------------------------------------------------------------
# Single pixel
# ---------------------------------------------------------------------------


def _check_pixel(grid: Grid, row: int, col: int) -> None:
    height, width = grid.shape
    if not (0 <= row < height and 0 <= col < width):
        raise OutOfBoundsError(
            f"Pixel ({row}, {col}) is outside a {width}x{height} grid."
        )


def set_pixel(grid: Grid, row: int, col: int, value: bool) -> Grid:
    _check_pixel(grid, row, col)
    result = grid.copy()
    result[row, col] = bool(value)
    return result


def toggle_pixel(grid: Grid, row: int, col: int) -> Grid:
    _check_pixel(grid, row, col)
    result = grid.copy()
    result[row, col] = not result[row, col]
    return result


# ---------------------------------------------------------------------------
# Resize / scale
# ---------------------------------------------------------------------------


def resize(grid: Grid, new_width: int, new_height: int, anchor: Anchor = "tl") -> Grid:
    """Change the canvas size, keeping content where *anchor* says.

    Growing adds background; shrinking silently crops.
    """
    for name, value in (("new_width", new_width), ("new_height", new_height)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidArgumentError(f"{name} must be a positive integer (got {value!r}).")

    height, width = grid.shape
    row, col = anchor_offset(anchor, new_width - width, new_height - height)
    logger.debug(
        "Resizing %dx%d -> %dx%d (anchor %s)", width, height, new_width, new_height, anchor,
    )
    return place(grid, new_width, new_height, row, col)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _scale_nearest(grid: Grid, factor: float, out_w: int, out_h: int) -> Grid:
    height, width = grid.shape
    rows = np.minimum(np.floor(np.arange(out_h) / factor).astype(int), height - 1)
    cols = np.minimum(np.floor(np.arange(out_w) / factor).astype(int), width - 1)
    return grid[np.ix_(rows, cols)]


def _overlap(size: int, out_size: int, factor: float) -> np.ndarray:
    """Overlap length of each output cell's source span with each source cell.

    Row ``o`` of the result covers ``[o / factor, (o + 1) / factor)``.
    """
    lo = np.arange(out_size) / factor
    hi = (np.arange(out_size) + 1) / factor
    cells = np.arange(size)
    return np.clip(
        np.minimum(hi[:, None], cells[None, :] + 1) - np.maximum(lo[:, None], cells[None, :]),
        0.0,
        None,
    )


def _scale_coverage(
    grid: Grid, factor: float, out_w: int, out_h: int, threshold: float = 0.5,
) -> Grid:
    height, width = grid.shape
    row_weights = _overlap(height, out_h, factor)
    col_weights = _overlap(width, out_w, factor)

    foreground = row_weights @ grid.astype(float) @ col_weights.T
    total = np.outer(row_weights.sum(axis=1), col_weights.sum(axis=1))
    coverage = np.divide(
        foreground, total, out=np.zeros_like(foreground), where=total > 0,
    )
    return coverage >= threshold


_SCALERS: dict[str, Callable[..., Grid]] = {
    "nearest": _scale_nearest,
    "coverage": _scale_coverage,
}


def scale(
    grid: Grid,
    factor: float,
    anchor: Anchor = "mc",
    algorithm: ScaleAlgorithm = "nearest",
    threshold: float = 0.5,
) -> Grid:
    """Resample the content by *factor* inside the unchanged canvas.

    The scaled content measures ``round(width * factor)`` by
    ``round(height * factor)`` and is placed per *anchor*, clipping
    overflow and leaving any shortfall as background.

    ``"nearest"`` maps each output pixel back to one source pixel.
    ``"coverage"`` maps it to a ``1/factor`` source box and turns it on
    when the foreground fraction of that box is at least *threshold*.
    """
    if isinstance(factor, bool) or not isinstance(factor, numbers.Real):
        raise InvalidArgumentError(f"Scale factor must be a number (got {factor!r}).")
    if not math.isfinite(factor) or factor <= 0:
        raise InvalidArgumentError(f"Scale factor must be positive (got {factor}).")
    if anchor not in ANCHORS:
        raise InvalidArgumentError(
            f"anchor must be one of {', '.join(ANCHORS)} (got {anchor!r})."
        )
    scaler = _SCALERS.get(algorithm)
    if scaler is None:
        raise InvalidArgumentError(
            f"Unknown scale algorithm {algorithm!r}; expected one of {', '.join(SCALE_ALGORITHMS)}."
        )
    if factor == 1:
        return grid.copy()

    height, width = grid.shape
    out_w = _round_half_up(width * factor)
    out_h = _round_half_up(height * factor)
    if algorithm == "coverage":
        content = scaler(grid, factor, out_w, out_h, threshold)
    else:
        content = scaler(grid, factor, out_w, out_h)

    row, col = anchor_offset(anchor, width - out_w, height - out_h)
    logger.debug(
        "Scaled %dx%d content by %s (%s) -> %dx%d at %s",
        width, height, factor, algorithm, out_w, out_h, anchor,
    )
    return place(content, width, height, row, col)


# ---------------------------------------------------------------------------
# Registry and composition
# ---------------------------------------------------------------------------

OPERATIONS: dict[str, Transform] = {
    "rotate": rotate,
    "rotate_clockwise": rotate_clockwise,
    "rotate_counterclockwise": rotate_counterclockwise,
    "flip_horizontal": flip_horizontal,
    "flip_vertical": flip_vertical,
    "invert": invert,
    "clear": clear,
    "fill": fill,
    "shift": shift,
    "shift_left": shift_left,
    "shift_right": shift_right,
    "shift_up": shift_up,
    "shift_down": shift_down,
    "center": center,
    "set_pixel": set_pixel,
    "toggle_pixel": toggle_pixel,
    "resize": resize,
    "scale": scale,
}


def get_operation(operation: str | Transform) -> Transform:
    """Resolve a registered operation name (or pass a callable through)."""
    if callable(operation):
        return operation
    fn = OPERATIONS.get(operation)
    if fn is None:
        raise InvalidArgumentError(f"Unknown operation: {operation!r}")
    return fn


def compose(*transforms: Transform) -> Transform:
    """Compose multiple transforms: f, g, h → h(g(f(grid)))."""
    def composed(grid: Grid) -> Grid:
        result = grid
        for fn in transforms:
            result = fn(result)
        return result
    return composed


def apply_program(program: list[dict[str, Any]], grid: Grid) -> Grid:
    """Execute a serialised program (list of step dicts) on a grid.

    Each step: ``{"op": "rotate"}`` or ``{"op": "shift", "args": {"dx": 1}}``.
    """
    result = grid.copy()
    for step in program:
        fn = get_operation(step.get("op", ""))
        result = fn(result, **step.get("args", {}))
    return result


# ---------------------------------------------------------------------------
# Batch operations
# ---------------------------------------------------------------------------


def _selection(collection: Sequence[Grid], indices: Iterable[int]) -> set[int]:
    selected = set(indices)
    for index in selected:
        if not 0 <= index < len(collection):
            raise OutOfBoundsError(
                f"Character index {index} is outside a collection of {len(collection)}."
            )
    return selected


def batch_apply(
    collection: Sequence[Grid],
    indices: Iterable[int],
    operation: str | Transform,
    *args: Any,
    **kwargs: Any,
) -> list[Grid]:
    """Apply *operation* to every selected character.

    Unselected entries are carried over as the very same objects.
    """
    fn = get_operation(operation)
    selected = _selection(collection, indices)
    logger.debug("Batch %s on %d of %d characters", getattr(fn, "__name__", fn), len(selected), len(collection))
    return [
        fn(grid, *args, **kwargs) if index in selected else grid
        for index, grid in enumerate(collection)
    ]


def pixel_state(
    collection: Sequence[Grid], indices: Iterable[int], row: int, col: int,
) -> PixelState:
    """Whether a pixel is on, off or mixed across the selected characters."""
    selected = sorted(_selection(collection, indices))
    if not selected:
        return "off"
    values = set()
    for index in selected:
        _check_pixel(collection[index], row, col)
        values.add(bool(collection[index][row, col]))
    if len(values) > 1:
        return "mixed"
    return "on" if values.pop() else "off"


def batch_toggle_pixel(
    collection: Sequence[Grid], indices: Iterable[int], row: int, col: int,
) -> list[Grid]:
    """Toggle one pixel across a selection.

    Turns it on everywhere unless it is already on in every selected
    character, in which case it is turned off everywhere.
    """
    selected = _selection(collection, indices)
    value = pixel_state(collection, selected, row, col) != "on"
    return batch_apply(collection, selected, set_pixel, row, col, value)
