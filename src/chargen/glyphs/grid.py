"""Pixel-grid data model for character ROM glyphs.

A glyph is a 2-D boolean numpy array (``True`` = foreground) of shape
``(height, width)``.  The dimensions a packed ROM uses are carried
separately by :class:`LayoutConfig`, together with the two bit-packing
axes (padding side and bit order) and the byte order of multi-byte rows.

Grids are treated as values: helpers here and in
:mod:`chargen.glyphs.transforms` always return new arrays.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, replace
from typing import Any, Literal, Sequence, get_args

import numpy as np

from chargen.glyphs.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

Grid = np.ndarray  # 2D array of bools, shape (height, width)

PaddingSide = Literal["left", "right"]
BitOrder = Literal["msb", "lsb"]
ByteOrder = Literal["big", "little"]
Anchor = Literal["tl", "tc", "tr", "ml", "mc", "mr", "bl", "bc", "br"]

PADDING_SIDES: tuple[str, ...] = get_args(PaddingSide)
BIT_ORDERS: tuple[str, ...] = get_args(BitOrder)
BYTE_ORDERS: tuple[str, ...] = get_args(ByteOrder)
ANCHORS: tuple[str, ...] = get_args(Anchor)

MAX_DIMENSION = 32

_SIZE_RE = re.compile(r"^(\d+)x(\d+)$")


# ---------------------------------------------------------------------------
# Layout configuration
# ---------------------------------------------------------------------------


def _check_choice(name: str, value: Any, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise InvalidArgumentError(
            f"{name} must be one of {', '.join(choices)} (got {value!r})."
        )


def _check_dimension(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer (got {value!r}).")
    if not 1 <= value <= MAX_DIMENSION:
        raise InvalidArgumentError(
            f"{name} must be between 1 and {MAX_DIMENSION} (got {value})."
        )


@dataclass(frozen=True)
class LayoutConfig:
    """How a character set is packed into bytes.

    ``padding`` names the end of a row's byte span that holds the unused
    bits when ``width`` is not a multiple of 8.  ``bit_order`` decides
    whether the leftmost pixel sits at the most- or least-significant end
    of the row's data bits.  ``byte_order`` only matters for rows wider
    than 8 pixels: ``"little"`` stores the row's bytes last-to-first.
    """

    width: int = 8
    height: int = 8
    padding: PaddingSide = "right"
    bit_order: BitOrder = "msb"
    byte_order: ByteOrder = "big"

    def __post_init__(self) -> None:
        _check_dimension("width", self.width)
        _check_dimension("height", self.height)
        _check_choice("padding", self.padding, PADDING_SIDES)
        _check_choice("bit_order", self.bit_order, BIT_ORDERS)
        _check_choice("byte_order", self.byte_order, BYTE_ORDERS)

    @property
    def shape(self) -> tuple[int, int]:
        """(height, width) of every glyph in this layout."""
        return (self.height, self.width)

    @property
    def bytes_per_line(self) -> int:
        return bytes_per_line(self.width)

    @property
    def bytes_per_character(self) -> int:
        return bytes_per_character(self)

    @property
    def padding_bits(self) -> int:
        """Unused bits at the padded end of every row."""
        return self.bytes_per_line * 8 - self.width

    def size_label(self) -> str:
        return f"{self.width}x{self.height}"

    def with_size(self, width: int, height: int) -> LayoutConfig:
        """Same packing conventions, different glyph size."""
        return replace(self, width=width, height=height)


def bytes_per_line(width: int) -> int:
    """Bytes needed to hold one row of *width* pixels."""
    return math.ceil(width / 8)


def bytes_per_character(config: LayoutConfig) -> int:
    """Bytes needed to hold one glyph under *config*."""
    return bytes_per_line(config.width) * config.height


def parse_size(label: str) -> tuple[int, int]:
    """Parse a ``"WxH"`` label into ``(width, height)``."""
    match = _SIZE_RE.match(label.strip())
    if match is None:
        raise InvalidArgumentError(f"Size must look like '8x8' (got {label!r}).")
    return int(match.group(1)), int(match.group(2))


def default_layout() -> LayoutConfig:
    """Layout built from the ``CHARGEN_LAYOUT_*`` settings."""
    from chargen.config.settings import get_settings

    defaults = get_settings().layout
    return LayoutConfig(
        width=defaults.width,
        height=defaults.height,
        padding=defaults.padding,
        bit_order=defaults.bit_order,
        byte_order=defaults.byte_order,
    )


# ---------------------------------------------------------------------------
# Grid construction
# ---------------------------------------------------------------------------


def as_grid(value: Grid | Sequence[Sequence[Any]]) -> Grid:
    """Return a fresh boolean grid built from an array or nested rows.

    Ragged rows, empty grids and anything that is not two-dimensional
    are rejected.
    """
    try:
        grid = np.array(value, dtype=bool)
    except ValueError as exc:
        raise InvalidArgumentError(f"Grid rows must all have the same length: {exc}") from exc
    if grid.ndim != 2:
        raise InvalidArgumentError(f"Grid must be two-dimensional (got {grid.ndim} dims).")
    if grid.shape[0] == 0 or grid.shape[1] == 0:
        raise InvalidArgumentError("Grid must have at least one row and one column.")
    return grid


def blank(width: int, height: int) -> Grid:
    """An all-background grid."""
    if width < 1 or height < 1:
        raise InvalidArgumentError(f"Grid size must be positive (got {width}x{height}).")
    return np.zeros((height, width), dtype=bool)


def filled(width: int, height: int) -> Grid:
    """An all-foreground grid."""
    if width < 1 or height < 1:
        raise InvalidArgumentError(f"Grid size must be positive (got {width}x{height}).")
    return np.ones((height, width), dtype=bool)


# ---------------------------------------------------------------------------
# Anchors
# ---------------------------------------------------------------------------


def anchor_offset(anchor: Anchor, delta_width: int, delta_height: int) -> tuple[int, int]:
    """(row, col) offset that places content inside a canvas per *anchor*.

    *delta_width* / *delta_height* are ``canvas - content`` and may be
    negative when the content is larger than the canvas.
    """
    _check_choice("anchor", anchor, ANCHORS)
    vertical, horizontal = anchor[0], anchor[1]

    if horizontal == "l":
        col = 0
    elif horizontal == "c":
        col = delta_width // 2
    else:
        col = delta_width

    if vertical == "t":
        row = 0
    elif vertical == "m":
        row = delta_height // 2
    else:
        row = delta_height

    return row, col


def place(content: Grid, width: int, height: int, row: int, col: int) -> Grid:
    """Copy *content* into a blank canvas at (row, col), clipping overflow."""
    canvas = np.zeros((height, width), dtype=bool)
    src_h, src_w = content.shape

    dst_r0, dst_c0 = max(row, 0), max(col, 0)
    dst_r1, dst_c1 = min(row + src_h, height), min(col + src_w, width)
    if dst_r0 >= dst_r1 or dst_c0 >= dst_c1:
        return canvas

    canvas[dst_r0:dst_r1, dst_c0:dst_c1] = content[
        dst_r0 - row: dst_r1 - row, dst_c0 - col: dst_c1 - col
    ]
    return canvas


# ---------------------------------------------------------------------------
# Bounding box
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive extent of the foreground pixels."""

    min_row: int
    min_col: int
    max_row: int
    max_col: int

    @property
    def shape(self) -> tuple[int, int]:
        """(height, width) of the box."""
        return (self.max_row - self.min_row + 1, self.max_col - self.min_col + 1)


def bounding_box(grid: Grid) -> BoundingBox | None:
    """Bounding box of the foreground, or ``None`` for an empty glyph."""
    rows = np.flatnonzero(grid.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(grid.any(axis=0))
    return BoundingBox(
        min_row=int(rows[0]),
        min_col=int(cols[0]),
        max_row=int(rows[-1]),
        max_col=int(cols[-1]),
    )


def trim(grid: Grid) -> Grid:
    """Crop to the foreground bounding box; an empty glyph becomes 1x1 off."""
    bbox = bounding_box(grid)
    if bbox is None:
        return np.zeros((1, 1), dtype=bool)
    return grid[bbox.min_row: bbox.max_row + 1, bbox.min_col: bbox.max_col + 1].copy()


# ---------------------------------------------------------------------------
# Text form
# ---------------------------------------------------------------------------


def format_grid(grid: Grid, on: str = "#", off: str = ".") -> str:
    """Render a glyph as one text line per row."""
    return "\n".join(
        "".join(on if cell else off for cell in row) for row in grid
    )


def parse_grid(text: str, on: str = "#", off: str = ".") -> Grid:
    """Inverse of :func:`format_grid`.  Blank lines are ignored."""
    rows: list[list[bool]] = []
    for line in text.strip().splitlines():
        line = line.strip()
        if not line:
            continue
        row: list[bool] = []
        for char in line:
            if char == on:
                row.append(True)
            elif char == off:
                row.append(False)
            else:
                raise InvalidArgumentError(f"Unexpected pixel character {char!r}.")
        rows.append(row)
    return as_grid(rows)
