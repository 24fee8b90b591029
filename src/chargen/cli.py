"""chargen CLI: Typer-based unified entry point.

Commands
--------
info        Describe how a ROM image lays out under a given format.
show        Print glyphs as text.
transform   Apply named transforms to selected glyphs and write a new image.
convert     Re-pack an image into another format / glyph size.
compare     Compare two images character by character.
presets     List known character generator chip formats.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from chargen.glyphs.codec import convert as convert_layout
from chargen.glyphs.codec import decode, describe, encode
from chargen.glyphs.compare import compare_collections
from chargen.glyphs.errors import CharsetError
from chargen.glyphs.grid import ANCHORS, Grid, LayoutConfig, default_layout, format_grid
from chargen.glyphs.presets import PRESETS, get_preset
from chargen.glyphs.transforms import apply_program, batch_apply

app = typer.Typer(
    name="chargen",
    help="chargen: character ROM codec and glyph transform engine",
    add_completion=False,
)

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    from chargen.config.settings import get_settings

    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
    )


def _abort(exc: Exception) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Option helpers
# ---------------------------------------------------------------------------

WidthOption = typer.Option(None, "--width", "-w", help="Glyph width in pixels.")
HeightOption = typer.Option(None, "--height", "-h", help="Glyph height in pixels.")
PaddingOption = typer.Option(None, "--padding", help="Padding side: left or right.")
BitOrderOption = typer.Option(None, "--bit-order", help="Bit order: msb or lsb.")
ByteOrderOption = typer.Option(None, "--byte-order", help="Byte order of wide rows: big or little.")
PresetOption = typer.Option(None, "--preset", "-p", help="Start from a chip preset (see `presets`).")


def _layout(
    width: Optional[int],
    height: Optional[int],
    padding: Optional[str],
    bit_order: Optional[str],
    byte_order: Optional[str],
    preset: Optional[str] = None,
) -> LayoutConfig:
    """Build a layout from a preset or the settings defaults plus overrides."""
    base = get_preset(preset).layout() if preset else default_layout()
    return LayoutConfig(
        width=width if width is not None else base.width,
        height=height if height is not None else base.height,
        padding=padding if padding is not None else base.padding,  # type: ignore[arg-type]
        bit_order=bit_order if bit_order is not None else base.bit_order,  # type: ignore[arg-type]
        byte_order=byte_order if byte_order is not None else base.byte_order,  # type: ignore[arg-type]
    )


def _read(path: Path, layout: LayoutConfig) -> list[Grid]:
    return decode(path.read_bytes(), layout)


def _parse_indices(text: str, count: int) -> list[int]:
    """Parse ``"0,3,8-11"`` into indices; empty means every glyph."""
    if not text.strip():
        return list(range(count))
    indices: list[int] = []
    for part in text.split(","):
        part = part.strip()
        try:
            if "-" in part:
                first, last = (int(p) for p in part.split("-", 1))
                indices.extend(range(first, last + 1))
            else:
                indices.append(int(part))
        except ValueError:
            raise typer.BadParameter(f"Bad index or range: {part!r}") from None
    return indices


def _parse_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            pass
    return raw


def _parse_step(text: str) -> dict[str, Any]:
    """``"shift:dx=1,dy=-2"`` → ``{"op": "shift", "args": {"dx": 1, "dy": -2}}``."""
    name, _, arg_text = text.partition(":")
    args: dict[str, Any] = {}
    for pair in filter(None, (p.strip() for p in arg_text.split(","))):
        key, sep, value = pair.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected key=value in {text!r}")
        args[key.strip()] = _parse_value(value.strip())
    return {"op": name.strip(), "args": args}


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    _setup_logging(verbose)


@app.command()
def info(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="ROM image."),
    width: Optional[int] = WidthOption,
    height: Optional[int] = HeightOption,
    padding: Optional[str] = PaddingOption,
    bit_order: Optional[str] = BitOrderOption,
    byte_order: Optional[str] = ByteOrderOption,
    preset: Optional[str] = PresetOption,
) -> None:
    """Describe how a ROM image lays out under a format."""
    try:
        layout = _layout(width, height, padding, bit_order, byte_order, preset)
        summary = describe(path.read_bytes(), layout)
    except CharsetError as exc:
        _abort(exc)

    typer.echo(f"File:            {path.name}")
    typer.echo(f"Glyph size:      {summary['size']}")
    typer.echo(f"Format:          {layout.padding} padding, {layout.bit_order} first, {layout.byte_order} endian")
    typer.echo(f"Bytes:           {summary['bytes']}")
    typer.echo(f"Bytes/line:      {summary['bytes_per_line']}")
    typer.echo(f"Bytes/character: {summary['bytes_per_character']}")
    typer.echo(f"Characters:      {summary['characters']}")
    if not summary["whole"]:
        typer.echo("Warning: length is not a whole number of characters.")
    else:
        typer.echo(f"Clean padding:   {'yes' if summary['clean_padding'] else 'no'}")


@app.command()
def show(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="ROM image."),
    index: Optional[int] = typer.Option(None, "--index", "-i", help="Only this glyph."),
    on: str = typer.Option("#", "--on", help="Character for foreground pixels."),
    off: str = typer.Option(".", "--off", help="Character for background pixels."),
    width: Optional[int] = WidthOption,
    height: Optional[int] = HeightOption,
    padding: Optional[str] = PaddingOption,
    bit_order: Optional[str] = BitOrderOption,
    byte_order: Optional[str] = ByteOrderOption,
    preset: Optional[str] = PresetOption,
) -> None:
    """Print glyphs as text."""
    try:
        layout = _layout(width, height, padding, bit_order, byte_order, preset)
        glyphs = _read(path, layout)
    except CharsetError as exc:
        _abort(exc)

    if index is not None:
        if not 0 <= index < len(glyphs):
            typer.echo(f"Index {index} out of range (0-{len(glyphs) - 1}).", err=True)
            raise typer.Exit(1)
        selected = [index]
    else:
        selected = list(range(len(glyphs)))

    for i in selected:
        typer.echo(f"[{i}] 0x{i:02X}")
        typer.echo(format_grid(glyphs[i], on=on, off=off))
        typer.echo("")


@app.command()
def transform(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="ROM image."),
    output: Path = typer.Argument(..., dir_okay=False, help="Where to write the result."),
    ops: list[str] = typer.Option(..., "--op", "-o", help="Operation, e.g. invert or shift:dx=1. Repeatable."),
    indices: str = typer.Option("", "--indices", help="Glyphs to change, e.g. 0,2,10-15 (default all)."),
    width: Optional[int] = WidthOption,
    height: Optional[int] = HeightOption,
    padding: Optional[str] = PaddingOption,
    bit_order: Optional[str] = BitOrderOption,
    byte_order: Optional[str] = ByteOrderOption,
    preset: Optional[str] = PresetOption,
) -> None:
    """Apply transforms to selected glyphs and write a new image."""
    program = [_parse_step(op) for op in ops]
    logger.debug("Transform program: %s", program)
    try:
        layout = _layout(width, height, padding, bit_order, byte_order, preset)
        glyphs = _read(path, layout)
        selected = _parse_indices(indices, len(glyphs))
        result = batch_apply(glyphs, selected, lambda grid: apply_program(program, grid))
        output.write_bytes(encode(result, layout))
    except (CharsetError, TypeError) as exc:
        # TypeError: op arguments that do not fit the primitive's signature
        _abort(exc)

    typer.echo(f"Transformed {len(set(selected))} of {len(glyphs)} glyphs -> {output}")


@app.command()
def convert(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="ROM image."),
    output: Path = typer.Argument(..., dir_okay=False, help="Where to write the result."),
    anchor: str = typer.Option("tl", "--anchor", help=f"Placement when sizes differ: {', '.join(ANCHORS)}."),
    width: Optional[int] = WidthOption,
    height: Optional[int] = HeightOption,
    padding: Optional[str] = PaddingOption,
    bit_order: Optional[str] = BitOrderOption,
    byte_order: Optional[str] = ByteOrderOption,
    preset: Optional[str] = PresetOption,
    to_width: Optional[int] = typer.Option(None, "--to-width", help="Target glyph width."),
    to_height: Optional[int] = typer.Option(None, "--to-height", help="Target glyph height."),
    to_padding: Optional[str] = typer.Option(None, "--to-padding", help="Target padding side."),
    to_bit_order: Optional[str] = typer.Option(None, "--to-bit-order", help="Target bit order."),
    to_byte_order: Optional[str] = typer.Option(None, "--to-byte-order", help="Target byte order."),
    to_preset: Optional[str] = typer.Option(None, "--to-preset", help="Target chip preset."),
) -> None:
    """Re-pack an image into another format or glyph size."""
    try:
        source = _layout(width, height, padding, bit_order, byte_order, preset)
        target_base = get_preset(to_preset).layout() if to_preset else source
        target = LayoutConfig(
            width=to_width if to_width is not None else target_base.width,
            height=to_height if to_height is not None else target_base.height,
            padding=to_padding if to_padding is not None else target_base.padding,  # type: ignore[arg-type]
            bit_order=to_bit_order if to_bit_order is not None else target_base.bit_order,  # type: ignore[arg-type]
            byte_order=to_byte_order if to_byte_order is not None else target_base.byte_order,  # type: ignore[arg-type]
        )
        glyphs = convert_layout(_read(path, source), source, target, anchor)  # type: ignore[arg-type]
        output.write_bytes(encode(glyphs, target))
    except CharsetError as exc:
        _abort(exc)

    typer.echo(
        f"Converted {len(glyphs)} glyphs {source.size_label()} -> {target.size_label()} -> {output}"
    )


@app.command()
def compare(
    first: Path = typer.Argument(..., exists=True, dir_okay=False, help="First ROM image."),
    second: Path = typer.Argument(..., exists=True, dir_okay=False, help="Second ROM image."),
    trim: bool = typer.Option(False, "--trim", help="Compare glyph shapes after trimming blank borders."),
    details: bool = typer.Option(False, "--details", help="List every character that differs."),
    width: Optional[int] = WidthOption,
    height: Optional[int] = HeightOption,
    padding: Optional[str] = PaddingOption,
    bit_order: Optional[str] = BitOrderOption,
    byte_order: Optional[str] = ByteOrderOption,
    preset: Optional[str] = PresetOption,
) -> None:
    """Compare two images character by character."""
    try:
        layout = _layout(width, height, padding, bit_order, byte_order, preset)
        result = compare_collections(_read(first, layout), _read(second, layout), trim=trim)
    except CharsetError as exc:
        _abort(exc)

    typer.echo(f"Compared:   {result.compared} of {result.source_length}/{result.target_length} characters")
    typer.echo(f"Match:      {result.match_percentage}%")
    typer.echo(f"Avg. diff:  {result.average_difference:.2f} pixels/character")
    if details:
        for index, pct in enumerate(result.per_character):
            if pct < 100:
                typer.echo(f"  [{index}] 0x{index:02X}  {pct}%")


@app.command()
def presets() -> None:
    """List known character generator chip formats."""
    table = Table(title="Character generator formats")
    table.add_column("ID", no_wrap=True)
    table.add_column("Part")
    table.add_column("Manufacturer")
    table.add_column("Size")
    table.add_column("Glyphs", justify="right")
    table.add_column("Padding")
    table.add_column("Bits")
    for preset in PRESETS:
        table.add_row(
            preset.id,
            preset.part_number,
            preset.manufacturer,
            f"{preset.width}x{preset.height}",
            str(preset.glyph_count),
            preset.padding,
            preset.bit_order,
        )
    Console().print(table)


def main() -> int:
    """Entry point for the ``chargen`` console script."""
    app()
    return 0
