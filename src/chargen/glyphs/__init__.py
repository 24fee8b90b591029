"""Character ROM glyph subsystem.

Provides the pixel-grid data model, the binary packing codec, pure
geometric transforms, pixel-level comparison, known chip formats and a
background glyph import runner.
"""

from __future__ import annotations

from chargen.glyphs.codec import decode, encode
from chargen.glyphs.errors import (
    CharsetError,
    DimensionMismatchError,
    InvalidArgumentError,
    MalformedLengthError,
    OutOfBoundsError,
)
from chargen.glyphs.grid import Grid, LayoutConfig

__all__ = [
    "CharsetError",
    "DimensionMismatchError",
    "Grid",
    "InvalidArgumentError",
    "LayoutConfig",
    "MalformedLengthError",
    "OutOfBoundsError",
    "decode",
    "encode",
]
