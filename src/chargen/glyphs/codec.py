"""Binary packing codec for character ROM images.

Converts between a packed byte buffer (the layout the hardware reads) and
an ordered list of glyph grids, given a :class:`LayoutConfig`.

Each row of a glyph occupies ``ceil(width / 8)`` bytes.  The row is read
as one bit span, most-significant bit of its first byte first (after the
bytes are reversed for ``byte_order="little"``).  The ``width`` data bits
start right after the padding for ``padding="left"`` and at bit 0 for
``padding="right"``; with ``bit_order="lsb"`` the leftmost pixel is the
last of those data bits.  Example for the 7-pixel row ``0001110``::

    msb, left padding   -> 00001110
    msb, right padding  -> 00011100
    lsb, left padding   -> 00111000
    lsb, right padding  -> 01110000

:func:`encode` always writes zero padding bits and :func:`decode` ignores
them, so ``decode(encode(c)) == c`` for every valid collection, while
``encode(decode(b)) == b`` only holds when :func:`has_clean_padding` is
true for ``b``.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence, Union

import numpy as np

from chargen.glyphs.errors import DimensionMismatchError, MalformedLengthError
from chargen.glyphs.grid import (
    Anchor,
    Grid,
    LayoutConfig,
    anchor_offset,
    as_grid,
    bytes_per_character,
    place,
)

logger = logging.getLogger(__name__)

ByteSource = Union[bytes, bytearray, memoryview, Sequence[int], np.ndarray]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_uint8(data: ByteSource) -> np.ndarray:
    if isinstance(data, np.ndarray):
        return np.asarray(data, dtype=np.uint8).ravel()
    return np.frombuffer(bytes(data), dtype=np.uint8)


def _data_start(config: LayoutConfig) -> int:
    """Index of the first data bit inside a row's bit span."""
    return config.padding_bits if config.padding == "left" else 0


def _unpack_rows(buf: np.ndarray, config: LayoutConfig) -> np.ndarray:
    """Split *buf* into characters and expand every row into its bit span.

    Returns a bool array of shape ``(count, height, bytes_per_line * 8)``.
    """
    size = bytes_per_character(config)
    if buf.size % size != 0:
        raise MalformedLengthError(int(buf.size), size)

    count = buf.size // size
    rows = buf.reshape(count, config.height, config.bytes_per_line)
    if config.byte_order == "little" and config.bytes_per_line > 1:
        rows = rows[..., ::-1]
    return np.unpackbits(rows, axis=-1).astype(bool)


def _validated(collection: Sequence[Grid], config: LayoutConfig) -> list[Grid]:
    grids: list[Grid] = []
    for index, glyph in enumerate(collection):
        grid = as_grid(glyph)
        if grid.shape != config.shape:
            raise DimensionMismatchError(
                f"Character {index} is {grid.shape[1]}x{grid.shape[0]}, "
                f"layout expects {config.size_label()}."
            )
        grids.append(grid)
    return grids


# ---------------------------------------------------------------------------
# Decode / encode
# ---------------------------------------------------------------------------


def decode(data: ByteSource, config: LayoutConfig) -> list[Grid]:
    """Unpack a ROM image into one grid per character, in buffer order.

    Raises :class:`MalformedLengthError` if the buffer does not hold a
    whole number of characters.
    """
    bits = _unpack_rows(_as_uint8(data), config)
    start = _data_start(config)
    pixels = bits[..., start: start + config.width]
    if config.bit_order == "lsb":
        pixels = pixels[..., ::-1]

    characters = [glyph.copy() for glyph in pixels]
    logger.debug(
        "Decoded %d characters (%s, %s padding, %s first)",
        len(characters), config.size_label(), config.padding, config.bit_order,
    )
    return characters


def encode(collection: Sequence[Grid], config: LayoutConfig) -> bytes:
    """Pack grids into a ROM image, zero-filling all padding bits.

    Raises :class:`DimensionMismatchError` if any grid's shape differs
    from the layout.
    """
    grids = _validated(collection, config)
    if not grids:
        return b""

    pixels = np.stack(grids)
    if config.bit_order == "lsb":
        pixels = pixels[..., ::-1]

    bits = np.zeros((len(grids), config.height, config.bytes_per_line * 8), dtype=bool)
    start = _data_start(config)
    bits[..., start: start + config.width] = pixels

    packed = np.packbits(bits, axis=-1)
    if config.byte_order == "little" and config.bytes_per_line > 1:
        packed = packed[..., ::-1]

    logger.debug("Encoded %d characters (%s)", len(grids), config.size_label())
    return packed.tobytes()


def decode_character(chunk: ByteSource, config: LayoutConfig) -> Grid:
    """Unpack exactly one character's bytes."""
    buf = _as_uint8(chunk)
    size = bytes_per_character(config)
    if buf.size != size:
        raise MalformedLengthError(int(buf.size), size)
    return decode(buf, config)[0]


def encode_character(grid: Grid, config: LayoutConfig) -> bytes:
    """Pack a single character."""
    return encode([grid], config)


# ---------------------------------------------------------------------------
# Buffer inspection
# ---------------------------------------------------------------------------


def character_count(length: int, config: LayoutConfig) -> int:
    """Whole characters that fit in a buffer of *length* bytes."""
    return length // bytes_per_character(config)


def has_clean_padding(data: ByteSource, config: LayoutConfig) -> bool:
    """True when every padding bit in *data* is zero.

    This is the precondition for ``encode(decode(data)) == data``.
    """
    bits = _unpack_rows(_as_uint8(data), config)
    if config.padding_bits == 0 or bits.size == 0:
        return True
    start = _data_start(config)
    padding = np.ones(bits.shape[-1], dtype=bool)
    padding[start: start + config.width] = False
    return not bool(bits[..., padding].any())


# ---------------------------------------------------------------------------
# Layout conversion
# ---------------------------------------------------------------------------


def convert(
    collection: Sequence[Grid],
    source: LayoutConfig,
    target: LayoutConfig,
    anchor: Anchor = "tl",
) -> list[Grid]:
    """Re-lay glyphs from *source* dimensions into *target* dimensions.

    Packing conventions need no work here (they only affect
    :func:`encode`); when the sizes differ each glyph is placed inside
    the new canvas per *anchor*, cropping or padding with background.
    """
    grids = _validated(collection, source)
    if source.shape == target.shape:
        return grids

    row, col = anchor_offset(
        anchor, target.width - source.width, target.height - source.height,
    )
    logger.debug(
        "Converting %d characters %s -> %s (anchor %s)",
        len(grids), source.size_label(), target.size_label(), anchor,
    )
    return [place(grid, target.width, target.height, row, col) for grid in grids]


def transcode(data: ByteSource, source: LayoutConfig, target: LayoutConfig, anchor: Anchor = "tl") -> bytes:
    """Decode under *source*, convert and encode under *target*."""
    return encode(convert(decode(data, source), source, target, anchor), target)


def describe(data: ByteSource, config: LayoutConfig) -> dict[str, Any]:
    """Summary of how a buffer lays out under *config*."""
    buf = _as_uint8(data)
    size = bytes_per_character(config)
    whole = buf.size % size == 0
    return {
        "size": config.size_label(),
        "bytes": int(buf.size),
        "bytes_per_line": config.bytes_per_line,
        "bytes_per_character": size,
        "characters": character_count(int(buf.size), config),
        "whole": whole,
        "clean_padding": has_clean_padding(buf, config) if whole else False,
    }
