"""Tests for the chargen command line."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from chargen.cli import app

runner = CliRunner()


@pytest.fixture()
def rom(tmp_path: Path) -> Path:
    """Two 8x8 glyphs: a top-left pixel and a blank."""
    path = tmp_path / "font.rom"
    path.write_bytes(bytes([0x80] + [0] * 7) + bytes(8))
    return path


class TestInfo:
    def test_summary(self, rom: Path) -> None:
        result = runner.invoke(app, ["info", str(rom)])
        assert result.exit_code == 0
        assert "Characters:      2" in result.output
        assert "Clean padding:   yes" in result.output

    def test_preset_layout(self, rom: Path) -> None:
        result = runner.invoke(app, ["info", str(rom), "--preset", "mc6847"])
        assert result.exit_code == 0
        assert "5x7" in result.output
        assert "Characters:      2" in result.output

    def test_malformed_length(self, tmp_path: Path) -> None:
        path = tmp_path / "short.rom"
        path.write_bytes(bytes(7))
        result = runner.invoke(app, ["show", str(path)])
        assert result.exit_code == 1
        assert "not a multiple" in result.output

    def test_unknown_preset(self, rom: Path) -> None:
        result = runner.invoke(app, ["info", str(rom), "--preset", "nope"])
        assert result.exit_code == 1
        assert "Unknown preset" in result.output


class TestShow:
    def test_single_glyph(self, rom: Path) -> None:
        result = runner.invoke(app, ["show", str(rom), "--index", "0"])
        assert result.exit_code == 0
        assert "#......." in result.output
        assert "[1]" not in result.output

    def test_custom_characters(self, rom: Path) -> None:
        result = runner.invoke(app, ["show", str(rom), "-i", "0", "--on", "X", "--off", "-"])
        assert "X-------" in result.output

    def test_index_out_of_range(self, rom: Path) -> None:
        result = runner.invoke(app, ["show", str(rom), "--index", "5"])
        assert result.exit_code == 1


class TestTransform:
    def test_invert_selected(self, rom: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.rom"
        result = runner.invoke(app, ["transform", str(rom), str(out), "--op", "invert", "--indices", "1"])
        assert result.exit_code == 0, result.output
        data = out.read_bytes()
        assert data[:8] == rom.read_bytes()[:8]
        assert data[8:] == bytes([0xFF] * 8)

    def test_op_with_arguments(self, rom: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.rom"
        result = runner.invoke(
            app, ["transform", str(rom), str(out), "--op", "shift:dx=1,dy=1", "--op", "flip_horizontal"],
        )
        assert result.exit_code == 0, result.output
        data = out.read_bytes()
        assert data[0] == 0
        assert data[1] == 0b00000010

    def test_unknown_operation(self, rom: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.rom"
        result = runner.invoke(app, ["transform", str(rom), str(out), "--op", "explode"])
        assert result.exit_code == 1
        assert "Unknown operation" in result.output
        assert not out.exists()

    def test_bad_arguments(self, rom: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.rom"
        result = runner.invoke(app, ["transform", str(rom), str(out), "--op", "invert:amount=2"])
        assert result.exit_code == 1

    def test_index_out_of_range(self, rom: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.rom"
        result = runner.invoke(app, ["transform", str(rom), str(out), "--op", "invert", "--indices", "0-2"])
        assert result.exit_code == 1
        assert "outside" in result.output


class TestConvert:
    def test_repack_padding(self, tmp_path: Path) -> None:
        src = tmp_path / "in.rom"
        out = tmp_path / "out.rom"
        src.write_bytes(b"\xf8")
        result = runner.invoke(
            app,
            ["convert", str(src), str(out), "--width", "5", "--height", "1", "--to-padding", "left"],
        )
        assert result.exit_code == 0, result.output
        assert out.read_bytes() == b"\x1f"

    def test_resize_glyphs(self, rom: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.rom"
        result = runner.invoke(app, ["convert", str(rom), str(out), "--to-width", "5", "--to-height", "7"])
        assert result.exit_code == 0, result.output
        assert "8x8 -> 5x7" in result.output
        assert out.read_bytes() == bytes([0x80] + [0] * 6) + bytes(7)


class TestCompare:
    def test_identical(self, rom: Path) -> None:
        result = runner.invoke(app, ["compare", str(rom), str(rom)])
        assert result.exit_code == 0
        assert "Match:      100%" in result.output

    def test_details(self, rom: Path, tmp_path: Path) -> None:
        other = tmp_path / "other.rom"
        other.write_bytes(bytes(16))
        result = runner.invoke(app, ["compare", str(rom), str(other), "--details"])
        assert result.exit_code == 0
        assert "Match:      99%" in result.output
        assert "[0] 0x00  98%" in result.output
        assert "[1]" not in result.output


class TestPresets:
    def test_lists_presets(self) -> None:
        result = runner.invoke(app, ["presets"])
        assert result.exit_code == 0
        assert "saa5050" in result.output
        assert "tms9918" in result.output


class TestVerbose:
    def test_verbose_flag(self, rom: Path) -> None:
        result = runner.invoke(app, ["--verbose", "info", str(rom)])
        assert result.exit_code == 0
