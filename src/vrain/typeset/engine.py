"""
Module: vrain.typeset.engine

Purpose:
    Pagination state machine. Consumes text sections with embedded
    control characters and produces finished PageLayouts one at a time.

    Rules:
    - ordinary glyphs and rotated punctuation take one cell each in
      traversal order; the page flushes when the next such glyph finds
      the page full
    - hanging punctuation never takes a cell: it is drawn on the cell of
      the previous glyph, even across a page end
    - ``%`` ``$`` ``&`` swallow up to row_num - 1 padding spaces that
      preprocessing added after them
    - ``【...】`` is laid out as a double-row annotation: the rest of the
      current column is split into a right and a left sub-column, the
      right one filled top-to-bottom first
    - each section starts on a new page; empty pages are never emitted,
      but a page break on an empty page still uses up its page number
    - hanging marks in an annotation with no annotation glyph before them
      are dropped

Key Classes:
    - Section: One text entry with its running title
    - LayoutEngine: iter_pages() lazy, restartable generator

Dependencies:
    - vrain.grid: Cell geometry and traversal
    - vrain.typeset.classifier / cursor / fonts / numerals / variants

Used By:
    - vrain.typeset.typesetter
    - vrain.controller
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from vrain.config.book import BookConfig
from vrain.core.errors import GlyphFallbackWarning, WarningLog
from vrain.core.models import (
    CellAddress,
    ControlToken,
    GlyphClass,
    PageLayout,
    PlacedGlyph,
    Rect,
    SideLine,
    TextUnit,
)
from vrain.grid.model import GridModel

from .classifier import (
    ANNOTATION_CLOSE,
    ANNOTATION_TEXT,
    FALLBACK_GLYPH,
    MAIN_TEXT,
    GlyphClassifier,
)
from .cursor import (
    Cursor,
    apply_control,
    enter_annotation,
    exit_annotation,
    set_book_title,
)
from .fonts import FontCapability, pick_font
from .numerals import NumeralMap
from .variants import ScriptVariantSource

logger = logging.getLogger(__name__)

# Hanging marks are kept this far above the bottom margin
HANGING_MIN_Y = 10.0
# Side lines stop this far below the top margin
SIDE_LINE_TOP_GAP = 5.0


@dataclass(frozen=True)
class Section:
    """One text entry; every section starts on a fresh page."""
    text: str
    title: str = ""


@dataclass(frozen=True)
class _Anchor:
    """Cell (or annotation half cell) a glyph was placed in."""
    address: CellAddress
    rect: Rect
    x: float
    y: float
    sub_column: Optional[str] = None

    @property
    def annotation(self) -> bool:
        return self.sub_column is not None


class _CharStream:
    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    def pop(self) -> Optional[str]:
        if self._pos >= len(self._text):
            return None
        ch = self._text[self._pos]
        self._pos += 1
        return ch

    def peek(self) -> Optional[str]:
        return self._text[self._pos] if self._pos < len(self._text) else None

    def skip_spaces(self, limit: int) -> None:
        for _ in range(limit):
            if self.peek() != " ":
                return
            self._pos += 1

    def take_until(self, terminator: str) -> List[str]:
        """Characters up to (and consuming) ``terminator`` or the end."""
        taken = []
        while True:
            ch = self.pop()
            if ch is None or ch == terminator:
                return taken
            if ch not in "\r\n":
                taken.append(ch)


class LayoutEngine:
    """
    Lay out text onto pages.

    All inputs are read-only; each iter_pages() call starts a fresh pass,
    so repeated or limited runs never influence each other.

    Usage:
        engine = LayoutEngine(book, grid, classifier, fonts, numerals)
        for page in engine.iter_pages("天地玄黃%宇宙洪荒"):
            ...
        first_two = list(engine.iter_pages(text, max_pages=2))

    Attributes:
        warnings: Non-fatal conditions of every pass
        final_cursor: Cursor at the end of the last completed pass
    """

    def __init__(
        self,
        book: BookConfig,
        grid: GridModel,
        classifier: GlyphClassifier,
        fonts: FontCapability,
        numerals: NumeralMap,
        *,
        variants: Optional[ScriptVariantSource] = None,
        warnings: Optional[WarningLog] = None,
        verbose: bool = False,
    ):
        self.book = book
        self.grid = grid
        self.classifier = classifier
        self.fonts = fonts
        self.numerals = numerals
        self.variants = variants
        self.warnings = warnings if warnings is not None else WarningLog()
        self.verbose = verbose
        self.final_cursor: Optional[Cursor] = None

    def iter_pages(
        self,
        text: Union[str, Iterable[Section]],
        *,
        max_pages: Optional[int] = None,
    ) -> Iterator[PageLayout]:
        """
        Yield finished pages in order.

        Args:
            text: A plain string or a sequence of Sections
            max_pages: Stop after this many pages (--test-pages)

        Raises:
            NumberMappingError: Page number missing from the numeral table
        """
        sections = [Section(text)] if isinstance(text, str) else list(text)
        layout_pass = _LayoutPass(self)
        emitted = 0
        for page in layout_pass.run(sections):
            yield page
            emitted += 1
            if max_pages is not None and emitted >= max_pages:
                logger.info(f"Page limit {max_pages} reached")
                return
        self.final_cursor = layout_pass.cursor

    def layout(self, text: Union[str, Iterable[Section]], *, max_pages: Optional[int] = None) -> Tuple[PageLayout, ...]:
        return tuple(self.iter_pages(text, max_pages=max_pages))


class _LayoutPass:
    """Mutable state of one pass; owned by a single iter_pages() call."""

    def __init__(self, engine: LayoutEngine):
        self.engine = engine
        self.book = engine.book
        self.grid = engine.grid
        self.classifier = engine.classifier
        self.cursor = Cursor()
        self.glyphs: List[PlacedGlyph] = []
        self.lines: List[SideLine] = []
        self.last_anchor: Optional[_Anchor] = None
        self.section_index = 0
        self.title = ""
        self.page_title = ""
        self.page_section = 0

    # ------------------------------------------------------------------ run

    def run(self, sections: Sequence[Section]) -> Iterator[PageLayout]:
        for index, section in enumerate(sections):
            yield from self._flush()
            self.section_index = index
            self.title = section.title
            yield from self._run_section(section.text)
        yield from self._flush()

    def _run_section(self, text: str) -> Iterator[PageLayout]:
        stream = _CharStream(text)
        padding = self.book.row_num - 1
        while True:
            ch = stream.pop()
            if ch is None:
                return
            if ch in "\r\n":
                continue
            unit = self.classifier.classify(ch, MAIN_TEXT)
            kind = unit.glyph_class

            if kind is GlyphClass.CONTROL:
                if unit.control.value in "%$&":
                    stream.skip_spaces(padding)
                transition = apply_control(self.cursor, unit.control, self.grid)
                if transition.warning is not None:
                    self.engine.warnings.record(transition.warning)
                if unit.control is ControlToken.BAND_SKIP and transition.cursor.slot != self.cursor.slot:
                    self.last_anchor = None
                self.cursor = transition.cursor
                if transition.flush:
                    yield from self._flush(page_end=True)
                continue

            if kind is GlyphClass.BOOK_TITLE_MARK:
                self.cursor = set_book_title(self.cursor, ch == "《")
                continue

            if kind is GlyphClass.ANNOTATION_OPEN:
                chars = stream.take_until(ANNOTATION_CLOSE)
                if chars:
                    self.cursor = enter_annotation(self.cursor)
                    yield from self._layout_annotation(chars)
                    self.cursor = exit_annotation(self.cursor)
                    self.last_anchor = None
                continue

            if kind is GlyphClass.ANNOTATION_CLOSE:
                continue

            if kind is GlyphClass.TRAILING_PUNCTUATION:
                self._place_hanging(unit, self._hanging_anchor())
                continue

            if self.cursor.page_full(self.grid):
                yield from self._flush(page_end=True)
            anchor = self._place_in_cell(unit)
            self.last_anchor = anchor

            if self.cursor.page_full(self.grid):
                following = stream.peek()
                if following is not None:
                    next_unit = self.classifier.classify(following, MAIN_TEXT)
                    if next_unit.hanging:
                        stream.pop()
                        self._place_hanging(next_unit, anchor)

    # ---------------------------------------------------------- annotation

    def _layout_annotation(self, chars: List[str]) -> Iterator[PageLayout]:
        """
        Double-row layout of one annotation run.

        Each chunk fills the remaining rows of the current column:
        ``take = min(rows left, ceil(consuming / 2))`` rows, right
        sub-column first, then left. The cursor then advances by the
        number of rows actually used.
        """
        grid = self.grid
        rows = grid.rows_per_column
        remaining: Deque[str] = deque(chars)
        last: Optional[_Anchor] = None
        title_active = False

        while remaining:
            if self.cursor.page_full(grid):
                yield from self._flush(page_end=True)
                last = None
                continue

            needed = math.ceil(sum(1 for ch in remaining if self._annotation_consumes(ch)) / 2)
            if needed == 0:
                for ch in remaining:
                    unit = self.classifier.classify(ch, ANNOTATION_TEXT)
                    if unit.hanging and last is not None:
                        self._place_hanging(unit, last)
                return

            rows_left = rows - self.cursor.slot % rows
            take = min(rows_left, needed)
            chunk = self._take_chunk(remaining, take * 2)

            addresses = [grid.slot_address(self.cursor.slot + k) for k in range(take)]
            cells = [("right", a) for a in addresses] + [("left", a) for a in addresses]
            placed = 0
            for ch in chunk:
                unit = self.classifier.classify(ch, ANNOTATION_TEXT)
                if unit.glyph_class is GlyphClass.BOOK_TITLE_MARK:
                    title_active = ch == "《"
                    continue
                if unit.hanging:
                    # only hangs off an annotation glyph of this run
                    if last is not None:
                        self._place_hanging(unit, last)
                    continue
                side, address = cells[placed]
                placed += 1
                last = self._place_annotation(unit, address, side, title_active)

            self.cursor = self.cursor.advance(math.ceil(placed / 2))

    def _annotation_consumes(self, ch: str) -> bool:
        return self.classifier.consumes_cell(ch, ANNOTATION_TEXT)

    def _take_chunk(self, remaining: Deque[str], wanted: int) -> List[str]:
        """Pop characters until ``wanted`` cell-consuming ones are taken,
        plus any non-consuming marks directly after them."""
        chunk = []
        while remaining and wanted > 0:
            ch = remaining.popleft()
            chunk.append(ch)
            if self._annotation_consumes(ch):
                wanted -= 1
        while remaining and not self._annotation_consumes(remaining[0]):
            chunk.append(remaining.popleft())
        return chunk

    # ----------------------------------------------------------- placement

    def _hanging_anchor(self) -> _Anchor:
        if self.last_anchor is not None:
            return self.last_anchor
        slot = max(min(self.cursor.slot, self.grid.capacity), 1) - 1
        address = self.grid.slot_address(slot)
        x, y = self.grid.origin(address)
        return _Anchor(address, self.grid.rect_of(address), x, y)

    def _place_in_cell(self, unit: TextUnit) -> _Anchor:
        address = self.cursor.address(self.grid)
        x, y = self.grid.origin(address)
        anchor = _Anchor(address, self.grid.rect_of(address), x, y)
        side_line = self.cursor.book_title_active and self._draws_side_line(unit)
        self._emit(unit, anchor, side_line=side_line)
        if side_line:
            self._side_line(anchor)
        self.cursor = self.cursor.advance()
        return anchor

    def _place_annotation(self, unit: TextUnit, address: CellAddress, side: str, title_active: bool) -> _Anchor:
        rect = self.grid.half_rect(address, side)
        x, y = self.grid.origin(address)
        if side == "right":
            x = round(x + self.grid.cell_width / 2, 3)
        anchor = _Anchor(address, rect, x, y, sub_column=side)
        side_line = title_active and self._draws_side_line(unit)
        self._emit(unit, anchor, side_line=side_line)
        if side_line:
            self._side_line(anchor)
        return anchor

    def _place_hanging(self, unit: TextUnit, anchor: _Anchor) -> None:
        self._emit(unit, anchor, hanging=True)

    def _emit(
        self,
        unit: TextUnit,
        anchor: _Anchor,
        *,
        hanging: bool = False,
        side_line: bool = False,
    ) -> None:
        book = self.book
        grid = self.grid
        annotation = anchor.annotation
        rotated = unit.rotated and not hanging
        stack = book.fonts.comment_stack if annotation else book.fonts.text_stack
        char, slot, fallback = self._resolve_font(unit.char, stack)
        font = book.fonts.slot(slot)

        size = font.comment_size if annotation else font.text_size
        width = grid.cell_width / 2 if annotation else grid.cell_width
        x, y = anchor.x, anchor.y
        rotation = font.rotate
        color = book.comment_font_color if annotation else book.text_font_color
        if book.text_modes.only_period and char == "。" and book.text_modes.only_period_color:
            color = book.text_modes.only_period_color

        if not hanging and not rotated:
            x += (width - size) / 2
        if annotation:
            y += (grid.row_height - size) / 4
        if hanging and unit.adjust is not None:
            size *= unit.adjust.scale
            x += width * unit.adjust.offset_x
            y -= grid.row_height * unit.adjust.offset_y
            y = max(y, grid.canvas.margins_bottom + HANGING_MIN_Y)
        if rotated and unit.adjust is not None:
            size *= unit.adjust.scale
            x += width * unit.adjust.offset_x
            y += grid.row_height * unit.adjust.offset_y
            rotation = -90.0

        glyph = PlacedGlyph(
            char=char,
            source_char=unit.char,
            address=anchor.address,
            rect=anchor.rect,
            x=x,
            y=y,
            font_slot=slot,
            font_size=size,
            rotation=rotation,
            color=color,
            sub_column=anchor.sub_column,
            rotated=rotated,
            hanging=hanging,
            side_line=side_line,
            annotation=annotation,
            fallback=fallback,
        )
        self.glyphs.append(glyph)
        if len(self.glyphs) == 1:
            self.page_title = self.title
            self.page_section = self.section_index
        if self.engine.verbose:
            logger.debug(
                f"[page {self.cursor.page_index + 1} slot {self.cursor.slot}] char '{char}'"
            )

    def _draws_side_line(self, unit: TextUnit) -> bool:
        return self.book.book_line_enabled and unit.char != " "

    def _side_line(self, anchor: _Anchor) -> None:
        style = self.book.book_line
        rh = self.grid.row_height
        canvas = self.grid.canvas
        top_limit = canvas.canvas_height - canvas.margins_top - SIDE_LINE_TOP_GAP
        self.lines.append(SideLine(
            x=anchor.x - style.width,
            y1=anchor.y - rh * 0.3,
            y2=min(anchor.y + rh * 0.7, top_limit),
            width=style.width,
            color=style.color,
        ))

    def _resolve_font(self, char: str, stack: Tuple[int, ...]) -> Tuple[str, int, bool]:
        """
        Pick a font for ``char``: the stack in order, then (try_st) the
        traditional and simplified counterparts, then the placeholder.
        """
        fonts = self.engine.fonts
        slot = pick_font(fonts, char, stack)
        if slot is not None:
            return char, slot, False

        if self.book.try_st and self.engine.variants is not None:
            for alternate in self.engine.variants.alternates(char):
                slot = pick_font(fonts, alternate, stack)
                if slot is not None:
                    self.engine.warnings.record(GlyphFallbackWarning(
                        f"'{char}' missing from fonts {list(stack)}, drawn as '{alternate}'",
                        char=char,
                        substitute=alternate,
                    ))
                    return alternate, slot, True

        slot = pick_font(fonts, FALLBACK_GLYPH, stack)
        self.engine.warnings.record(GlyphFallbackWarning(
            f"'{char}' missing from fonts {list(stack)}, drawn as '{FALLBACK_GLYPH}'",
            char=char,
            substitute=FALLBACK_GLYPH,
        ))
        return FALLBACK_GLYPH, slot if slot is not None else stack[0], True

    # --------------------------------------------------------------- flush

    def _flush(self, *, page_end: bool = False) -> Iterator[PageLayout]:
        """
        Finish the current page.

        An empty page is never emitted. At a page end (``%`` or a full
        page) it still uses up its page number; at a section boundary it
        only resets the slot.
        """
        if not self.glyphs:
            self.cursor = self.cursor.next_page() if page_end else self.cursor.page_start()
            self.last_anchor = None
            return
        number = self.cursor.page_index + 1
        page = PageLayout(
            page_index=self.cursor.page_index,
            number=number,
            title=self.page_title,
            number_text=self.engine.numerals.to_chinese_numeral(number),
            glyphs=tuple(self.glyphs),
            lines=tuple(self.lines),
            section_index=self.page_section,
        )
        logger.debug(f"Page {number}: {len(page.glyphs)} glyphs")
        self.glyphs = []
        self.lines = []
        self.last_anchor = None
        self.cursor = self.cursor.next_page()
        yield page
