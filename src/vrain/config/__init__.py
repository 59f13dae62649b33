"""
Configuration loading for books and canvases.

Exports the frozen configuration dataclasses and their loaders.
"""

from .book import (
    BookConfig,
    BookLineStyle,
    CoverStyle,
    FontMapping,
    FontSlot,
    PagerStyle,
    PunctuationConfig,
    ReplacementRules,
    TextModes,
    TitleStyle,
    book_config_from_raw,
    load_book_config,
)
from .canvas import BandLayout, CanvasConfig, canvas_config_from_raw, load_canvas_config
from .raw import RawConfig, parse_color, parse_line

__all__ = [
    "BookConfig",
    "BookLineStyle",
    "CoverStyle",
    "FontMapping",
    "FontSlot",
    "PagerStyle",
    "PunctuationConfig",
    "ReplacementRules",
    "TextModes",
    "TitleStyle",
    "book_config_from_raw",
    "load_book_config",
    "BandLayout",
    "CanvasConfig",
    "canvas_config_from_raw",
    "load_canvas_config",
    "RawConfig",
    "parse_color",
    "parse_line",
]
