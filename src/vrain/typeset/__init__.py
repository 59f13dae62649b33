"""
Typesetting: glyph classification, the pagination state machine and the
capabilities it queries (fonts, numerals, script variants).
"""

from .classifier import ClassifierContext, GlyphClassifier, PunctuationTable
from .corpus import TextCorpus, TextEntry, load_corpus, preprocess_text
from .cursor import Cursor, LayoutMode, Transition, apply_control
from .engine import LayoutEngine, Section
from .fonts import FontCapability, GlyphMetrics, TTFontCatalog, pick_font
from .numerals import NumeralMap
from .typesetter import Typesetter, TypesetOptions
from .variants import ScriptVariants

__all__ = [
    "ClassifierContext",
    "GlyphClassifier",
    "PunctuationTable",
    "TextCorpus",
    "TextEntry",
    "load_corpus",
    "preprocess_text",
    "Cursor",
    "LayoutMode",
    "Transition",
    "apply_control",
    "LayoutEngine",
    "Section",
    "FontCapability",
    "GlyphMetrics",
    "TTFontCatalog",
    "pick_font",
    "NumeralMap",
    "Typesetter",
    "TypesetOptions",
    "ScriptVariants",
]
