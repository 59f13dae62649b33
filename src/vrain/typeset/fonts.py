"""
Module: vrain.typeset.fonts

Purpose:
    Font capability queried by the layout engine: glyph coverage and
    advance metrics per font slot. The TrueType implementation loads
    fonts through ReportLab so the same registered fonts are used when
    the PDF is written.

Key Classes:
    - GlyphMetrics: Advance width and line height of a glyph
    - FontCapability: Protocol the engine depends on
    - TTFontCatalog: ReportLab TTFont-backed capability

Key Functions:
    - pick_font(): First slot in a stack that has a glyph

Dependencies:
    - reportlab.pdfbase: TTFont loading, registration and metrics

Used By:
    - vrain.typeset.engine
    - vrain.output.renderer
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from vrain.config.book import FontMapping
from vrain.core.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlyphMetrics:
    advance: float
    height: float


class FontCapability(Protocol):
    def has_glyph(self, char: str, slot: int) -> bool: ...

    def advance_metrics(self, char: str, slot: int, size: float) -> GlyphMetrics: ...


def pick_font(fonts: FontCapability, char: str, stack: Sequence[int]) -> Optional[int]:
    """Return the first slot in ``stack`` that can draw ``char``."""
    for slot in stack:
        if fonts.has_glyph(char, slot):
            return slot
    return None


class TTFontCatalog:
    """
    TrueType fonts for slots 1-5, registered with ReportLab.

    Whitespace always counts as available: nothing visible is drawn
    for it.

    Usage:
        catalog = TTFontCatalog.load(book.fonts, Path("fonts"))
        catalog.has_glyph("永", 1)
        canvas.setFont(catalog.font_name(1), 48)
    """

    def __init__(self, fonts: Dict[int, TTFont]):
        self._fonts = dict(fonts)

    @classmethod
    def load(cls, mapping: FontMapping, fonts_dir: Path) -> "TTFontCatalog":
        """
        Load and register every configured slot.

        Raises:
            ConfigError: Missing or unreadable font file
        """
        fonts = {}
        for slot in mapping.slots:
            path = fonts_dir / slot.name
            if not path.exists():
                raise ConfigError(f"Font file not found for slot {slot.index}: {path}")
            name = f"vrain-{slot.index}-{path.stem}"
            try:
                font = TTFont(name, str(path))
            except TTFError as exc:
                raise ConfigError(f"Cannot load font {path}: {exc}") from exc
            pdfmetrics.registerFont(font)
            fonts[slot.index] = font
            logger.info(f"Font slot {slot.index}: {path.name}")
        return cls(fonts)

    def font_name(self, slot: int) -> str:
        return self._font(slot).fontName

    def slots(self) -> list[int]:
        return sorted(self._fonts)

    def has_glyph(self, char: str, slot: int) -> bool:
        font = self._fonts.get(slot)
        if font is None:
            return False
        if char.isspace():
            return True
        return font.face.charToGlyph.get(ord(char), 0) != 0

    def advance_metrics(self, char: str, slot: int, size: float) -> GlyphMetrics:
        font = self._font(slot)
        advance = pdfmetrics.stringWidth(char, font.fontName, size)
        height = (font.face.ascent - font.face.descent) * size / 1000.0
        return GlyphMetrics(advance=advance, height=height)

    def _font(self, slot: int) -> TTFont:
        try:
            return self._fonts[slot]
        except KeyError:
            raise ConfigError(f"Font slot {slot} is not loaded") from None
