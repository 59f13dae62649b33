"""
Module: vrain.core.models

Purpose:
    Immutable data models shared by layout, seals and output.
    Geometry uses PDF user space: origin at the bottom-left corner of
    the page, x to the right, y upwards, one unit per canvas pixel.

Key Classes:
    - Rect: Axis-aligned rectangle
    - CellAddress: Logical (band, column, row) grid address
    - GlyphClass / ControlToken: Rendering class and control vocabulary
    - MarkAdjust: Punctuation size/offset adjustment table entry
    - TextUnit: Classified source character
    - PlacedGlyph / SideLine: Drawable items on a page
    - PageLayout: One finished page of the layout pass
    - SealRule / StampAsset / OverlayPlacement: Seal stamping
    - Page: Assembled page handed to a sink
    - DocumentPlan: Cover, pages and outline of a whole run

Dependencies:
    - PIL: Image type for stamp and background assets
    - dataclasses (std)

Used By:
    - vrain.grid, vrain.typeset, vrain.seals, vrain.output
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Tuple

from PIL import Image

Color = Tuple[int, int, int]

BLACK: Color = (0, 0, 0)


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle (immutable).

    Attributes:
        x: Left edge
        y: Bottom edge
        width: Horizontal extent
        height: Vertical extent
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    def overlaps(self, other: "Rect", tolerance: float = 1e-6) -> bool:
        """True if the interiors intersect (shared edges do not count)."""
        return (
            self.x < other.right - tolerance
            and other.x < self.right - tolerance
            and self.y < other.top - tolerance
            and other.y < self.top - tolerance
        )

    def union(self, other: "Rect") -> "Rect":
        """Smallest rectangle containing both."""
        left = min(self.x, other.x)
        bottom = min(self.y, other.y)
        right = max(self.right, other.right)
        top = max(self.top, other.top)
        return Rect(left, bottom, right - left, top - bottom)

    def contains(self, other: "Rect", tolerance: float = 1e-6) -> bool:
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.right <= self.right + tolerance
            and other.top <= self.top + tolerance
        )

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True, order=True)
class CellAddress:
    """Logical grid address; all indices are 0-based."""
    band: int
    column: int
    row: int


class GlyphClass(Enum):
    """Rendering class of a source character."""
    ORDINARY = "ordinary"
    LEADING_PUNCTUATION = "leading_punctuation"    # rotated 90°, occupies a cell
    TRAILING_PUNCTUATION = "trailing_punctuation"  # non-placeholder, hangs on previous glyph
    BOOK_TITLE_MARK = "book_title_mark"
    ANNOTATION_OPEN = "annotation_open"
    ANNOTATION_CLOSE = "annotation_close"
    CONTROL = "control"


class ControlToken(Enum):
    """In-stream layout commands."""
    PAGE_BREAK = "%"
    HALF_PAGE = "$"
    LAST_COLUMN = "&"
    BAND_SKIP = "^"


@dataclass(frozen=True)
class MarkAdjust:
    """
    Punctuation adjustment table entry (immutable).

    Attributes:
        chars: Characters the entry applies to
        scale: Font size multiplier
        offset_x: Horizontal offset as a fraction of the cell width
        offset_y: Vertical offset as a fraction of the row height
    """
    chars: Tuple[str, ...] = ()
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def __contains__(self, char: object) -> bool:
        return char in self.chars


@dataclass(frozen=True)
class TextUnit:
    """
    One source character with its resolved rendering class (immutable).

    Attributes:
        char: Source character
        glyph_class: Rendering class
        annotation_depth: 0 for main text, >0 inside an annotation
        control: Control token when glyph_class is CONTROL
        adjust: Punctuation adjustment for rotated/hanging marks
    """
    char: str
    glyph_class: GlyphClass
    annotation_depth: int = 0
    control: Optional[ControlToken] = None
    adjust: Optional[MarkAdjust] = None

    @property
    def is_control(self) -> bool:
        return self.glyph_class is GlyphClass.CONTROL

    @property
    def rotated(self) -> bool:
        return self.glyph_class is GlyphClass.LEADING_PUNCTUATION

    @property
    def hanging(self) -> bool:
        return self.glyph_class is GlyphClass.TRAILING_PUNCTUATION


@dataclass(frozen=True)
class PlacedGlyph:
    """
    A character bound to a grid cell (immutable).

    ``x``/``y`` is the text origin handed to the sink (baseline left),
    ``rect`` the cell, or half cell for annotations, the glyph belongs to.

    Attributes:
        char: Character actually drawn (after fallback)
        source_char: Character from the text stream
        address: Grid cell
        sub_column: "right"/"left" for annotation glyphs, else None
        rect: Cell rectangle
        x, y: Text origin
        font_slot: 1-based font slot
        font_size: Size in canvas units
        rotation: Degrees, counter-clockwise positive
        color: RGB 0-255
        rotated: Vertical-presentation punctuation
        hanging: Non-placeholder mark attached to the previous cell
        side_line: Inside an active book-title span
        annotation: Part of a double-row annotation
        fallback: Substituted by script variant or placeholder
    """
    char: str
    source_char: str
    address: CellAddress
    rect: Rect
    x: float
    y: float
    font_slot: int
    font_size: float
    rotation: float = 0.0
    color: Color = BLACK
    sub_column: Optional[str] = None
    rotated: bool = False
    hanging: bool = False
    side_line: bool = False
    annotation: bool = False
    fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "char": self.char,
            "source_char": self.source_char,
            "band": self.address.band,
            "column": self.address.column,
            "row": self.address.row,
            "sub_column": self.sub_column,
            "x": self.x,
            "y": self.y,
            "font_slot": self.font_slot,
            "font_size": self.font_size,
            "rotation": self.rotation,
            "color": list(self.color),
            "flags": [
                name for name in ("rotated", "hanging", "side_line", "annotation", "fallback")
                if getattr(self, name)
            ],
        }


@dataclass(frozen=True)
class SideLine:
    """Book-title side line segment next to one glyph."""
    x: float
    y1: float
    y2: float
    width: float
    color: Color = BLACK
    wavy: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x, "y1": self.y1, "y2": self.y2,
            "width": self.width, "color": list(self.color), "wavy": self.wavy,
        }


@dataclass(frozen=True)
class PageLayout:
    """
    One finished page of the layout pass (immutable).

    Attributes:
        page_index: 0-based position in the output sequence
        number: Printed page number
        title: Running title drawn in the centre fold
        number_text: Page number rendered as a Chinese numeral
        glyphs: Placed glyphs in placement order
        lines: Book-title side lines
        section_index: Text entry the page belongs to
    """
    page_index: int
    number: int
    title: str
    number_text: str
    glyphs: Tuple[PlacedGlyph, ...] = ()
    lines: Tuple[SideLine, ...] = ()
    section_index: int = 0

    @property
    def text(self) -> str:
        """Drawn characters in placement order."""
        return "".join(g.char for g in self.glyphs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_index": self.page_index,
            "number": self.number,
            "title": self.title,
            "number_text": self.number_text,
            "section_index": self.section_index,
            "glyphs": [g.to_dict() for g in self.glyphs],
            "lines": [line.to_dict() for line in self.lines],
        }


@dataclass(frozen=True)
class SealRule:
    """
    Parsed seal rule (immutable).

    Coordinates are 1-based as written in ``yins.cfg``: columns count
    right-to-left, rows count top-to-bottom.
    """
    target_pattern: str
    page_number: int
    start_column: int
    start_row: int
    column_span: int
    stamp_file: str
    line_number: Optional[int] = None

    WILDCARD = "*"

    def matches(self, output_name: str) -> bool:
        return self.target_pattern == self.WILDCARD or self.target_pattern == output_name

    def __str__(self) -> str:
        return (
            f"{self.target_pattern}|{self.page_number},{self.start_column},"
            f"{self.start_row},{self.column_span}|{self.stamp_file}"
        )


@dataclass(frozen=True)
class StampAsset:
    """Decoded stamp image, loaded once and shared read-only."""
    path: Path
    image: Image.Image = field(compare=False, repr=False)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def aspect_ratio(self) -> float:
        return self.image.width / self.image.height if self.image.height else 1.0


@dataclass(frozen=True)
class OverlayPlacement:
    """
    Resolved seal placement on one page.

    Attributes:
        rule: Rule that produced the placement
        target: Union of the addressed cells
        box: Where the stamp image is drawn
        stamp: Stamp asset
    """
    rule: SealRule
    target: Rect
    box: Rect
    stamp: StampAsset


@dataclass(frozen=True)
class Page:
    """Assembled page: layout, background and seal overlays."""
    layout: PageLayout
    background: Optional[Image.Image] = field(default=None, compare=False, repr=False)
    overlays: Tuple[OverlayPlacement, ...] = ()

    @property
    def page_index(self) -> int:
        return self.layout.page_index

    @property
    def glyphs(self) -> Tuple[PlacedGlyph, ...]:
        return self.layout.glyphs


class CoverKind(Enum):
    IMAGE = "image"
    GENERATED = "generated"


@dataclass(frozen=True)
class OutlineEntry:
    """Bookmark pointing at the first page of a text entry."""
    title: str
    page_number: int


@dataclass(frozen=True)
class DocumentPlan:
    """Complete result of the layout pass for one run."""
    cover: CoverKind
    pages: Tuple[PageLayout, ...]
    outlines: Tuple[OutlineEntry, ...] = ()
    cover_path: Optional[Path] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def last_page_number(self) -> int:
        """Highest printed page number; numbers skip over empty page breaks."""
        return self.pages[-1].number if self.pages else 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "cover": self.cover.value,
            "pages": [p.to_dict() for p in self.pages],
            "outlines": [
                {"title": o.title, "page_number": o.page_number} for o in self.outlines
            ],
        }
        if self.cover_path is not None:
            data["cover_path"] = str(self.cover_path)
        return data
