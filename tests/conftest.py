"""Shared test fixtures for chargen.

Provides standard layouts and a few hand-drawn glyphs so individual test
modules stay focused.
"""

from __future__ import annotations

import numpy as np
import pytest

from chargen.glyphs.grid import Grid, LayoutConfig, parse_grid

# ---------------------------------------------------------------------------
# Layout fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def layout_8x8() -> LayoutConfig:
    """The default 8x8, right-padded, MSB-first layout."""
    return LayoutConfig()


@pytest.fixture()
def layout_5x7_left() -> LayoutConfig:
    """A 5x7 layout with the padding bits at the high end of each byte."""
    return LayoutConfig(width=5, height=7, padding="left")


# ---------------------------------------------------------------------------
# Glyph fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def letter_a() -> Grid:
    """An 8x8 capital A."""
    return parse_grid(
        """
        ...##...
        ..####..
        .##..##.
        .##..##.
        .######.
        .##..##.
        .##..##.
        ........
        """
    )


@pytest.fixture()
def corner_glyph() -> Grid:
    """A non-square 3x2 glyph with only its top-left pixel set."""
    return np.array([[True, False, False], [False, False, False]])


@pytest.fixture()
def sample_collection(letter_a: Grid) -> list[Grid]:
    """Four 8x8 glyphs: blank, A, full block, checkerboard."""
    checker = (np.indices((8, 8)).sum(axis=0) % 2).astype(bool)
    return [
        np.zeros((8, 8), dtype=bool),
        letter_a,
        np.ones((8, 8), dtype=bool),
        checker,
    ]
