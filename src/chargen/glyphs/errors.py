"""Exceptions raised by the glyph codec, transforms and comparison helpers.

Every error is local and synchronous: it marks an *invalid call*, never a
lossy-but-valid one.  Each class also derives from the closest builtin so
callers that only know ``ValueError`` / ``IndexError`` still catch them.
"""

from __future__ import annotations


class CharsetError(Exception):
    """Base class for all character-set errors."""


class MalformedLengthError(CharsetError, ValueError):
    """Byte buffer length is not a multiple of the per-character size."""

    def __init__(self, length: int, bytes_per_character: int) -> None:
        self.length = length
        self.bytes_per_character = bytes_per_character
        super().__init__(
            f"Buffer of {length} bytes is not a multiple of "
            f"{bytes_per_character} bytes per character."
        )


class DimensionMismatchError(CharsetError, ValueError):
    """A grid's shape disagrees with the layout (or with another grid)."""


class OutOfBoundsError(CharsetError, IndexError):
    """A pixel or collection index falls outside its container."""


class InvalidArgumentError(CharsetError, ValueError):
    """A parameter is outside its valid domain."""
