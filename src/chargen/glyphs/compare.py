"""Pixel-level comparison of glyphs and character collections.

Read-only counterpart of :mod:`chargen.glyphs.transforms`: nothing here
modifies its inputs.  Same-size glyphs are compared cell by cell; glyphs of
different sizes are compared after trimming both to their foreground
bounding boxes and centring them in a common box.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from chargen.glyphs.errors import DimensionMismatchError
from chargen.glyphs.grid import Grid, place
from chargen.glyphs.grid import trim as trim_grid

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PixelComparison:
    """Differing and total pixel counts for one pair of glyphs."""

    differing: int
    total: int

    @property
    def matching(self) -> int:
        return self.total - self.differing

    @property
    def percentage(self) -> int:
        return _percentage(self.matching, self.total)


@dataclass
class CollectionComparison:
    """Index-aligned comparison of two character collections."""

    compared: int
    """Number of character slots actually compared (the shorter length)."""
    source_length: int
    target_length: int
    per_character: list[int] = field(default_factory=list)
    """Match percentage of each compared slot."""
    differing_pixels: int = 0
    total_pixels: int = 0

    @property
    def match_percentage(self) -> int:
        """Agreeing pixels over all compared pixels (100 if nothing compared)."""
        return _percentage(self.total_pixels - self.differing_pixels, self.total_pixels)

    @property
    def average_difference(self) -> float:
        """Mean differing pixels per compared character (lower = closer)."""
        if self.compared == 0:
            return 0.0
        return self.differing_pixels / self.compared


@dataclass
class SimilarityResult:
    """One candidate's score from :func:`rank_similar`."""

    name: str
    comparison: CollectionComparison


# ---------------------------------------------------------------------------
# Single glyphs
# ---------------------------------------------------------------------------


def _percentage(matching: int, total: int) -> int:
    if total == 0:
        return 100
    return int(math.floor(matching / total * 100 + 0.5))


def _require_same_shape(a: Grid, b: Grid) -> None:
    if a.shape != b.shape:
        raise DimensionMismatchError(
            f"Cannot compare a {a.shape[1]}x{a.shape[0]} grid with a "
            f"{b.shape[1]}x{b.shape[0]} grid."
        )


def grids_equal(a: Grid, b: Grid) -> bool:
    """Same shape and same pixels."""
    return a.shape == b.shape and bool(np.array_equal(a, b))


def differing_pixels(a: Grid, b: Grid) -> set[tuple[int, int]]:
    """Every ``(row, col)`` where two same-size glyphs disagree."""
    _require_same_shape(a, b)
    rows, cols = np.nonzero(a != b)
    return {(int(r), int(c)) for r, c in zip(rows, cols)}


def match_percentage(a: Grid, b: Grid) -> int:
    """Share of agreeing pixels, 0..100, rounded to the nearest integer."""
    _require_same_shape(a, b)
    return _percentage(int(np.count_nonzero(a == b)), a.size)


def compare_trimmed(a: Grid, b: Grid) -> PixelComparison:
    """Compare the foreground shapes of two glyphs of any size.

    Both are cropped to their bounding boxes and centred in a box as
    large as the bigger of the two on each axis.
    """
    a_trim, b_trim = trim_grid(a), trim_grid(b)
    height = max(a_trim.shape[0], b_trim.shape[0])
    width = max(a_trim.shape[1], b_trim.shape[1])

    def centred(grid: Grid) -> Grid:
        return place(
            grid, width, height,
            (height - grid.shape[0]) // 2, (width - grid.shape[1]) // 2,
        )

    diff = int(np.count_nonzero(centred(a_trim) != centred(b_trim)))
    return PixelComparison(differing=diff, total=width * height)


def compare_characters(a: Grid, b: Grid, trim_first: bool = False) -> PixelComparison:
    """Direct comparison for same-size glyphs, trimmed comparison otherwise."""
    if trim_first or a.shape != b.shape:
        return compare_trimmed(a, b)
    return PixelComparison(differing=int(np.count_nonzero(a != b)), total=a.size)


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def changed_indices(source: Sequence[Grid], target: Sequence[Grid]) -> set[int]:
    """Indices whose glyphs differ, including slots only one side has."""
    changed = set(range(min(len(source), len(target)), max(len(source), len(target))))
    for index, (a, b) in enumerate(zip(source, target)):
        if not grids_equal(a, b):
            changed.add(index)
    return changed


def compare_collections(
    source: Sequence[Grid], target: Sequence[Grid], trim: bool = False,
) -> CollectionComparison:
    """Pair characters by index and aggregate their pixel agreement."""
    result = CollectionComparison(
        compared=min(len(source), len(target)),
        source_length=len(source),
        target_length=len(target),
    )
    for a, b in zip(source, target):
        pair = compare_characters(a, b, trim_first=trim)
        result.per_character.append(pair.percentage)
        result.differing_pixels += pair.differing
        result.total_pixels += pair.total
    return result


def rank_similar(
    source: Sequence[Grid],
    candidates: Mapping[str, Sequence[Grid]],
    trim: bool = True,
) -> list[SimilarityResult]:
    """Score *source* against each candidate, most similar first.

    Candidates with no comparable characters are skipped.
    """
    results: list[SimilarityResult] = []
    for name, collection in candidates.items():
        comparison = compare_collections(source, collection, trim=trim)
        if comparison.compared == 0:
            logger.debug("Skipping %s: nothing to compare", name)
            continue
        results.append(SimilarityResult(name=name, comparison=comparison))
    results.sort(key=lambda r: r.comparison.average_difference)
    return results
