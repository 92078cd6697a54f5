"""Theme management for the melody CLI.

Colors come from the bundled ``data/theme.toml`` and can be partially
overridden by ``theme.toml`` in the user config directory.
"""

import logging
import sys
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, field_validator
from rich.theme import Theme

from melody.core.paths import get_config_dir

logger = logging.getLogger(__name__)


class ThemeColors(BaseModel):
    """Color configuration for the melody CLI.

    All colors must be valid hex codes (#RRGGBB or #RGB).
    """

    model_config = ConfigDict(extra="forbid")

    # Base colors
    text: str = "#ffffff"
    muted: str = "#9aa5ad"
    header: str = "#7fb4d9"
    border: str = "#33546e"

    # Semantic colors
    success: str = "#2bb673"
    warning: str = "#e9b949"
    error: str = "#e5484d"
    info: str = "#3ebdd0"

    # Outcome colors
    skipped: str = "#8a8f98"
    feature: str = "#b48ead"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        """Validate that all color values are valid hex codes."""
        if not isinstance(v, str):
            msg = f"{info.field_name}: color must be a string"
            raise ValueError(msg)
        color = v.strip()
        if not color.startswith("#"):
            msg = f"{info.field_name}: color must start with '#'"
            raise ValueError(msg)
        color_part = color[1:]
        if len(color_part) not in (3, 6):
            msg = f"{info.field_name}: color must be #RGB or #RRGGBB format"
            raise ValueError(msg)
        try:
            int(color_part, 16)
        except ValueError:
            msg = f"{info.field_name}: invalid hex color '{color}'"
            raise ValueError(msg) from None
        return color


def get_user_theme_path() -> Path:
    """Get the user theme configuration path (``<config_dir>/theme.toml``)."""
    return get_config_dir() / "theme.toml"


def _load_toml_colors(text: str, origin: str) -> dict[str, str] | None:
    """Extract the ``[colors]`` table from a theme document.

    Returns:
        Dictionary of color name to hex value, or None if parsing failed.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse theme file %s: %s", origin, e)
        return None

    colors_raw: object = data.get("colors", {})
    if not isinstance(colors_raw, dict):
        logger.warning("Invalid 'colors' section in %s", origin)
        return None
    return {
        key: value
        for key, value in cast(dict[str, object], colors_raw).items()
        if isinstance(value, str)
    }


def load_theme() -> ThemeColors:
    """Load theme colors with user override support.

    Returns:
        ThemeColors with bundled defaults overlaid by user colors.
    """
    bundled_text = resources.files("melody.data").joinpath("theme.toml").read_text("utf-8")
    merged = _load_toml_colors(bundled_text, "bundled theme.toml") or {}

    user_path = get_user_theme_path()
    try:
        user_text = user_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        user_text = None
    except OSError as e:
        logger.warning("Failed to read theme file %s: %s", user_path, e)
        user_text = None

    if user_text is not None:
        user_colors = _load_toml_colors(user_text, str(user_path))
        if user_colors is not None:
            logger.debug("Loaded user theme overrides from %s", user_path)
            merged = {**merged, **user_colors}

    try:
        return ThemeColors(**merged)
    except ValueError as e:
        logger.warning("Theme validation failed, using defaults: %s", e)
        print(f"Warning: Invalid theme configuration: {e}", file=sys.stderr)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Convert ThemeColors to a Rich Theme.

    Args:
        colors: ThemeColors instance to convert. If None, loads theme automatically.
    """
    if colors is None:
        colors = load_theme()

    return Theme(
        {
            "text": colors.text,
            "muted": colors.muted,
            "header": colors.header,
            "border": colors.border,
            "success": colors.success,
            "warning": colors.warning,
            "error": f"bold {colors.error}",
            "info": colors.info,
            "skipped": colors.skipped,
            "feature": f"bold {colors.feature}",
            "bold_header": f"bold {colors.header}",
            "dim": colors.muted,
        }
    )


# Module-level cached theme instance
_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Get the Rich theme, loading and caching it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
