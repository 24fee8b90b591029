"""Environment-driven application settings.

All values are loaded from environment variables (prefix ``CHARGEN_``) or a
``.env`` file in the working directory.  Library functions take their
configuration as explicit arguments; these settings only provide defaults
for the CLI, :func:`chargen.glyphs.grid.default_layout` and the glyph
import worker.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LayoutDefaults(BaseSettings):
    """Layout used when none is given on the command line."""

    model_config = SettingsConfigDict(env_prefix="CHARGEN_LAYOUT_")

    width: int = Field(default=8, ge=1, le=32)
    height: int = Field(default=8, ge=1, le=32)
    padding: Literal["left", "right"] = "right"
    bit_order: Literal["msb", "lsb"] = "msb"
    byte_order: Literal["big", "little"] = "big"


class ImportSettings(BaseSettings):
    """Glyph import worker tuning knobs."""

    model_config = SettingsConfigDict(env_prefix="CHARGEN_IMPORT_")

    chunk_size: int = Field(default=16, ge=1, le=1024)
    """Glyphs rendered between cancellation checks and progress messages."""
    blank_code_threshold: int = Field(default=33, ge=0)
    """Blank glyphs at or above this code point count as missing."""


class Settings(BaseSettings):
    """Top-level settings aggregator."""

    model_config = SettingsConfigDict(
        env_prefix="CHARGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    layout: LayoutDefaults = Field(default_factory=LayoutDefaults)
    importer: ImportSettings = Field(default_factory=ImportSettings)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


# Module-level singleton: import and use directly.
settings = Settings()


def get_settings() -> Settings:
    """Return the module-level Settings singleton."""
    return settings
