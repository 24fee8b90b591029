"""chargen: character ROM codec and glyph transform engine.

Packs and unpacks pixel glyphs to the byte layouts vintage character
generator chips use, and edits glyph sets with pure geometric transforms.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
