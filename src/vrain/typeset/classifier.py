"""
Module: vrain.typeset.classifier

Purpose:
    Resolve each source character to a rendering class.
    Pure and table-driven: punctuation behaviour comes from
    PunctuationTable data built from the book configuration, never from
    hard-coded branches per codepoint.

Key Classes:
    - ClassifierContext: Minimal preceding state (annotation depth,
      book-title flag)
    - PunctuationTable: Rotated and hanging marks for one text kind
    - GlyphClassifier: classify(char, context) -> TextUnit

Dependencies:
    - vrain.core.models: TextUnit, GlyphClass, ControlToken, MarkAdjust

Used By:
    - vrain.typeset.engine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from vrain.config.book import BookConfig
from vrain.core.models import ControlToken, GlyphClass, MarkAdjust, TextUnit

BOOK_TITLE_OPEN = "《"
BOOK_TITLE_CLOSE = "》"
ANNOTATION_OPEN = "【"
ANNOTATION_CLOSE = "】"
FALLBACK_GLYPH = "□"

CONTROL_TOKENS: Dict[str, ControlToken] = {token.value: token for token in ControlToken}


@dataclass(frozen=True)
class ClassifierContext:
    annotation_depth: int = 0
    book_title_active: bool = False

    @property
    def in_annotation(self) -> bool:
        return self.annotation_depth > 0


MAIN_TEXT = ClassifierContext()
ANNOTATION_TEXT = ClassifierContext(annotation_depth=1)


@dataclass(frozen=True)
class PunctuationTable:
    """
    Punctuation behaviour for one kind of text (main or annotation).

    Attributes:
        hanging: Non-placeholder marks drawn on the previous cell
        rotated: Marks turned 90° that occupy a cell
    """
    hanging: MarkAdjust = field(default_factory=MarkAdjust)
    rotated: MarkAdjust = field(default_factory=MarkAdjust)

    def lookup(self, char: str) -> tuple[GlyphClass, MarkAdjust | None]:
        if char in self.hanging:
            return GlyphClass.TRAILING_PUNCTUATION, self.hanging
        if char in self.rotated:
            return GlyphClass.LEADING_PUNCTUATION, self.rotated
        return GlyphClass.ORDINARY, None


class GlyphClassifier:
    """
    Classify characters for the layout engine.

    Control tokens and the annotation opener only act in main text;
    inside an annotation they are drawn literally. Book-title marks are
    layout marks only when side lines are enabled; otherwise they are
    ordinary glyphs.

    Example:
        >>> classifier = GlyphClassifier(text_table, comment_table, side_lines=True)
        >>> classifier.classify("%").control
        <ControlToken.PAGE_BREAK: '%'>
    """

    def __init__(
        self,
        text_table: PunctuationTable,
        comment_table: PunctuationTable,
        *,
        side_lines: bool = False,
    ):
        self.text_table = text_table
        self.comment_table = comment_table
        self.side_lines = side_lines

    @classmethod
    def from_book(cls, book: BookConfig) -> "GlyphClassifier":
        p = book.punctuation
        return cls(
            PunctuationTable(hanging=p.text_nop, rotated=p.text_rotate),
            PunctuationTable(hanging=p.comment_nop, rotated=p.comment_rotate),
            side_lines=book.book_line_enabled,
        )

    def classify(self, char: str, context: ClassifierContext = MAIN_TEXT) -> TextUnit:
        depth = context.annotation_depth
        if context.in_annotation:
            if char == ANNOTATION_CLOSE:
                return TextUnit(char, GlyphClass.ANNOTATION_CLOSE, depth)
        else:
            token = CONTROL_TOKENS.get(char)
            if token is not None:
                return TextUnit(char, GlyphClass.CONTROL, depth, control=token)
            if char == ANNOTATION_OPEN:
                return TextUnit(char, GlyphClass.ANNOTATION_OPEN, depth)

        if self.side_lines and char in (BOOK_TITLE_OPEN, BOOK_TITLE_CLOSE):
            return TextUnit(char, GlyphClass.BOOK_TITLE_MARK, depth)

        table = self.comment_table if context.in_annotation else self.text_table
        glyph_class, adjust = table.lookup(char)
        return TextUnit(char, glyph_class, depth, adjust=adjust)

    def consumes_cell(self, char: str, context: ClassifierContext = MAIN_TEXT) -> bool:
        """True if the character occupies a grid cell when drawn."""
        unit = self.classify(char, context)
        return unit.glyph_class in (GlyphClass.ORDINARY, GlyphClass.LEADING_PUNCTUATION)
