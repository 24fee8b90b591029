"""Tests for the character ROM packing codec."""

from __future__ import annotations

import numpy as np
import pytest

from chargen.glyphs.codec import (
    character_count,
    convert,
    decode,
    decode_character,
    describe,
    encode,
    encode_character,
    has_clean_padding,
    transcode,
)
from chargen.glyphs.errors import DimensionMismatchError, MalformedLengthError
from chargen.glyphs.grid import Grid, LayoutConfig


def _row(config: LayoutConfig, byte: int) -> list[bool]:
    return decode(bytes([byte]), config)[0][0].tolist()


class TestDecode:
    def test_msb_first_right_padding(self) -> None:
        config = LayoutConfig(width=8, height=1)
        assert _row(config, 0b11110000) == [True] * 4 + [False] * 4

    def test_lsb_first_reverses_row(self) -> None:
        config = LayoutConfig(width=8, height=1, bit_order="lsb")
        assert _row(config, 0b11110000) == [False] * 4 + [True] * 4

    def test_left_padding_skips_high_bits(self) -> None:
        config = LayoutConfig(width=5, height=1, padding="left")
        assert _row(config, 0b00011111) == [True] * 5

    def test_right_padding_skips_low_bits(self) -> None:
        config = LayoutConfig(width=5, height=1, padding="right")
        assert _row(config, 0b00000111) == [False, False, False, False, False]
        assert _row(config, 0b11111000) == [True] * 5

    def test_buffer_order_is_collection_order(self, layout_8x8: LayoutConfig) -> None:
        data = bytes(8) + bytes([0xFF] * 8)
        glyphs = decode(data, layout_8x8)
        assert len(glyphs) == 2
        assert not glyphs[0].any()
        assert glyphs[1].all()

    def test_empty_buffer(self, layout_8x8: LayoutConfig) -> None:
        assert decode(b"", layout_8x8) == []

    def test_accepts_int_sequence(self) -> None:
        config = LayoutConfig(width=8, height=2)
        glyph = decode([0x80, 0x01], config)[0]
        assert glyph[0, 0] and glyph[1, 7]
        assert glyph.sum() == 2

    def test_malformed_length(self, layout_8x8: LayoutConfig) -> None:
        with pytest.raises(MalformedLengthError) as excinfo:
            decode(bytes(7), layout_8x8)
        assert excinfo.value.length == 7
        assert excinfo.value.bytes_per_character == 8

    def test_malformed_length_is_value_error(self, layout_5x7_left: LayoutConfig) -> None:
        with pytest.raises(ValueError):
            decode(bytes(15), layout_5x7_left)

    def test_returns_independent_copies(self, layout_8x8: LayoutConfig) -> None:
        glyphs = decode(bytes(16), layout_8x8)
        glyphs[0][0, 0] = True
        assert not glyphs[1].any()


class TestPackingTable:
    """The 7-pixel row 0001110 under every padding / bit-order pair."""

    ROW = [False, False, False, True, True, True, False]

    @pytest.mark.parametrize(
        ("padding", "bit_order", "byte"),
        [
            ("left", "msb", 0b00001110),
            ("right", "msb", 0b00011100),
            ("left", "lsb", 0b00111000),
            ("right", "lsb", 0b01110000),
        ],
    )
    def test_row_packing(self, padding: str, bit_order: str, byte: int) -> None:
        config = LayoutConfig(width=7, height=1, padding=padding, bit_order=bit_order)  # type: ignore[arg-type]
        assert encode([np.array([self.ROW])], config) == bytes([byte])
        assert _row(config, byte) == self.ROW


class TestWideRows:
    def test_big_endian_sixteen_wide(self) -> None:
        config = LayoutConfig(width=16, height=1)
        glyph = np.array([[True] * 8 + [False] * 8])
        assert encode([glyph], config) == b"\xff\x00"

    def test_little_endian_swaps_bytes(self) -> None:
        config = LayoutConfig(width=16, height=1, byte_order="little")
        glyph = np.array([[True] * 8 + [False] * 8])
        assert encode([glyph], config) == b"\x00\xff"
        assert np.array_equal(decode(b"\x00\xff", config)[0], glyph)

    def test_twelve_wide_right_padding(self) -> None:
        config = LayoutConfig(width=12, height=1)
        glyph = np.zeros((1, 12), dtype=bool)
        glyph[0, 11] = True
        assert encode([glyph], config) == b"\x00\x10"

    def test_twelve_wide_left_padding(self) -> None:
        config = LayoutConfig(width=12, height=1, padding="left")
        glyph = np.zeros((1, 12), dtype=bool)
        glyph[0, 0] = True
        assert encode([glyph], config) == b"\x08\x00"

    def test_twelve_wide_lsb_reverses_whole_row(self) -> None:
        config = LayoutConfig(width=12, height=1, bit_order="lsb")
        glyph = np.zeros((1, 12), dtype=bool)
        glyph[0, 0] = True
        assert encode([glyph], config) == b"\x00\x10"


class TestEncode:
    def test_empty_collection(self, layout_8x8: LayoutConfig) -> None:
        assert encode([], layout_8x8) == b""

    def test_output_length(self, sample_collection: list[Grid], layout_8x8: LayoutConfig) -> None:
        assert len(encode(sample_collection, layout_8x8)) == 4 * 8

    def test_letter_a_first_row(self, letter_a: Grid, layout_8x8: LayoutConfig) -> None:
        data = encode_character(letter_a, layout_8x8)
        assert data[0] == 0b00011000
        assert data[7] == 0

    def test_padding_is_zero(self, layout_5x7_left: LayoutConfig) -> None:
        data = encode([np.ones((7, 5), dtype=bool)], layout_5x7_left)
        assert data == bytes([0b00011111] * 7)

    def test_dimension_mismatch(self, layout_8x8: LayoutConfig) -> None:
        with pytest.raises(DimensionMismatchError, match="Character 1"):
            encode([np.zeros((8, 8), dtype=bool), np.zeros((7, 8), dtype=bool)], layout_8x8)


class TestRoundTrips:
    @pytest.mark.parametrize("padding", ["left", "right"])
    @pytest.mark.parametrize("bit_order", ["msb", "lsb"])
    def test_decode_encode_is_identity(self, padding: str, bit_order: str) -> None:
        config = LayoutConfig(width=11, height=5, padding=padding, bit_order=bit_order)  # type: ignore[arg-type]
        rng = np.random.default_rng(7)
        collection = list(rng.random((6, 5, 11)) > 0.5)
        assert all(
            np.array_equal(a, b)
            for a, b in zip(decode(encode(collection, config), config), collection)
        )

    def test_encode_decode_with_clean_padding(self, layout_5x7_left: LayoutConfig) -> None:
        data = bytes([0b00010101, 0b00001010] * 7)
        assert has_clean_padding(data, layout_5x7_left)
        assert encode(decode(data, layout_5x7_left), layout_5x7_left) == data

    def test_dirty_padding_is_dropped(self, layout_5x7_left: LayoutConfig) -> None:
        data = bytes([0b11111111] * 7)
        assert not has_clean_padding(data, layout_5x7_left)
        assert encode(decode(data, layout_5x7_left), layout_5x7_left) == bytes([0b00011111] * 7)


class TestSingleCharacter:
    def test_decode_character(self, letter_a: Grid, layout_8x8: LayoutConfig) -> None:
        data = encode_character(letter_a, layout_8x8)
        assert np.array_equal(decode_character(data, layout_8x8), letter_a)

    def test_decode_character_needs_exact_length(self, layout_8x8: LayoutConfig) -> None:
        with pytest.raises(MalformedLengthError):
            decode_character(bytes(16), layout_8x8)


class TestInspection:
    def test_character_count(self, layout_8x8: LayoutConfig) -> None:
        assert character_count(2048, layout_8x8) == 256
        assert character_count(2050, layout_8x8) == 256

    def test_clean_padding_without_padding_bits(self, layout_8x8: LayoutConfig) -> None:
        assert has_clean_padding(bytes([0xFF] * 8), layout_8x8)

    def test_describe(self, layout_5x7_left: LayoutConfig) -> None:
        summary = describe(bytes(14), layout_5x7_left)
        assert summary["size"] == "5x7"
        assert summary["characters"] == 2
        assert summary["whole"] is True
        assert summary["clean_padding"] is True

    def test_describe_partial_buffer(self, layout_8x8: LayoutConfig) -> None:
        summary = describe(bytes(10), layout_8x8)
        assert summary["characters"] == 1
        assert summary["whole"] is False


class TestConvert:
    def test_same_size_keeps_pixels(self, letter_a: Grid, layout_8x8: LayoutConfig) -> None:
        target = LayoutConfig(padding="left", bit_order="lsb")
        [converted] = convert([letter_a], layout_8x8, target)
        assert np.array_equal(converted, letter_a)

    def test_grow_anchored_top_left(self, letter_a: Grid, layout_8x8: LayoutConfig) -> None:
        target = layout_8x8.with_size(10, 12)
        [converted] = convert([letter_a], layout_8x8, target)
        assert converted.shape == (12, 10)
        assert np.array_equal(converted[:8, :8], letter_a)
        assert not converted[8:, :].any()

    def test_shrink_anchored_bottom_right(self, layout_8x8: LayoutConfig) -> None:
        glyph = np.zeros((8, 8), dtype=bool)
        glyph[7, 7] = True
        [converted] = convert([glyph], layout_8x8, layout_8x8.with_size(4, 4), anchor="br")
        assert converted.shape == (4, 4)
        assert converted[3, 3]

    def test_transcode_between_packings(self) -> None:
        source = LayoutConfig(width=5, height=1, padding="left")
        target = LayoutConfig(width=5, height=1, padding="right")
        assert transcode(b"\x1f", source, target) == b"\xf8"
