"""Packing formats of known character generator chips.

Chips without a documented format fall back to right padding with the
most-significant bit first, the most common arrangement.
"""

from __future__ import annotations

from dataclasses import dataclass

from chargen.glyphs.errors import InvalidArgumentError
from chargen.glyphs.grid import BitOrder, ByteOrder, LayoutConfig, PaddingSide


@dataclass(frozen=True)
class FormatPreset:
    """A character ROM chip and the layout its data uses."""

    id: str
    part_number: str
    manufacturer: str
    width: int
    height: int
    glyph_count: int
    padding: PaddingSide = "right"
    bit_order: BitOrder = "msb"
    byte_order: ByteOrder = "big"

    def layout(self) -> LayoutConfig:
        return LayoutConfig(
            width=self.width,
            height=self.height,
            padding=self.padding,
            bit_order=self.bit_order,
            byte_order=self.byte_order,
        )

    @property
    def rom_size(self) -> int:
        """Bytes in a full ROM image of this chip."""
        return self.layout().bytes_per_character * self.glyph_count


PRESETS: tuple[FormatPreset, ...] = (
    FormatPreset("atari-os-rom", "Atari OS ROM", "Atari", 8, 8, 128),
    FormatPreset("mos-901225-01", "901225-01", "MOS Technology", 8, 8, 256),
    FormatPreset("mos-901447-10", "901447-10", "MOS Technology", 8, 8, 256),
    FormatPreset("mos-901460-03", "901460-03", "MOS Technology", 8, 8, 256),
    FormatPreset("mc6847", "MC6847", "Motorola", 5, 7, 64, padding="left"),
    FormatPreset("mcm6673", "MCM6673", "Motorola", 5, 8, 128),
    FormatPreset("saa5050", "SAA5050", "Mullard/Philips", 5, 9, 96, padding="left", bit_order="lsb"),
    FormatPreset("signetics-2513", "2513", "Signetics", 5, 7, 64),
    FormatPreset("tms9918", "TMS9918A", "Texas Instruments", 8, 8, 256),
)

_BY_ID = {preset.id: preset for preset in PRESETS}


def get_preset(preset_id: str) -> FormatPreset:
    preset = _BY_ID.get(preset_id)
    if preset is None:
        raise InvalidArgumentError(f"Unknown preset: {preset_id!r}")
    return preset


def find_presets(
    padding: PaddingSide | None = None,
    bit_order: BitOrder | None = None,
    width: int | None = None,
    height: int | None = None,
) -> list[FormatPreset]:
    """Presets matching every given criterion, ordered by manufacturer."""
    matches = [
        p for p in PRESETS
        if (padding is None or p.padding == padding)
        and (bit_order is None or p.bit_order == bit_order)
        and (width is None or p.width == width)
        and (height is None or p.height == height)
    ]
    return sorted(matches, key=lambda p: (p.manufacturer, p.part_number))
