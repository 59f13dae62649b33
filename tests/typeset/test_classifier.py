"""
Tests for vrain.typeset.classifier
"""

import pytest

from vrain.config.book import BookLineStyle, PunctuationConfig
from vrain.core.models import ControlToken, GlyphClass, MarkAdjust
from vrain.typeset.classifier import (
    ANNOTATION_TEXT,
    MAIN_TEXT,
    GlyphClassifier,
)


@pytest.fixture
def punctuated_book(make_book):
    return make_book(
        punctuation=PunctuationConfig(
            text_nop=MarkAdjust(chars=("，", "。"), scale=0.5),
            text_rotate=MarkAdjust(chars=("「", "」")),
            comment_nop=MarkAdjust(chars=("、",)),
        ),
        book_line=BookLineStyle(width=1.0),
    )


class TestGlyphClassifier:
    """Tests for classify()."""

    @pytest.mark.parametrize("char,token", [
        ("%", ControlToken.PAGE_BREAK),
        ("$", ControlToken.HALF_PAGE),
        ("&", ControlToken.LAST_COLUMN),
        ("^", ControlToken.BAND_SKIP),
    ])
    def test_classify_when_control_char_in_main_text_then_control(self, book, char, token):
        unit = GlyphClassifier.from_book(book).classify(char)

        assert unit.is_control
        assert unit.control is token

    def test_classify_when_control_char_in_annotation_then_ordinary(self, book):
        unit = GlyphClassifier.from_book(book).classify("%", ANNOTATION_TEXT)

        assert unit.glyph_class is GlyphClass.ORDINARY
        assert unit.annotation_depth == 1

    def test_classify_when_hanging_mark_then_trailing_with_adjust(self, punctuated_book):
        unit = GlyphClassifier.from_book(punctuated_book).classify("。")

        assert unit.hanging
        assert unit.adjust.scale == 0.5

    def test_classify_when_rotated_mark_then_leading_punctuation(self, punctuated_book):
        unit = GlyphClassifier.from_book(punctuated_book).classify("「")

        assert unit.rotated
        assert not unit.hanging

    def test_classify_when_annotation_then_comment_table_used(self, punctuated_book):
        classifier = GlyphClassifier.from_book(punctuated_book)

        assert classifier.classify("、", ANNOTATION_TEXT).hanging
        assert not classifier.classify("、", MAIN_TEXT).hanging
        assert not classifier.classify("。", ANNOTATION_TEXT).hanging

    def test_classify_when_side_lines_enabled_then_book_marks_are_layout_marks(self, punctuated_book):
        classifier = GlyphClassifier.from_book(punctuated_book)

        assert classifier.classify("《").glyph_class is GlyphClass.BOOK_TITLE_MARK
        assert classifier.classify("》").glyph_class is GlyphClass.BOOK_TITLE_MARK

    def test_classify_when_side_lines_disabled_then_book_marks_are_ordinary(self, book):
        unit = GlyphClassifier.from_book(book).classify("《")

        assert unit.glyph_class is GlyphClass.ORDINARY

    def test_classify_when_annotation_delimiters_then_context_dependent(self, book):
        classifier = GlyphClassifier.from_book(book)

        assert classifier.classify("【").glyph_class is GlyphClass.ANNOTATION_OPEN
        assert classifier.classify("】").glyph_class is GlyphClass.ORDINARY
        assert classifier.classify("】", ANNOTATION_TEXT).glyph_class is GlyphClass.ANNOTATION_CLOSE
        assert classifier.classify("【", ANNOTATION_TEXT).glyph_class is GlyphClass.ORDINARY

    def test_consumes_cell_when_hanging_then_false(self, punctuated_book):
        classifier = GlyphClassifier.from_book(punctuated_book)

        assert classifier.consumes_cell("天")
        assert classifier.consumes_cell("「")
        assert not classifier.consumes_cell("，")
        assert not classifier.consumes_cell("%")
