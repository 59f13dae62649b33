"""
Module: vrain.config.book

Purpose:
    Book configuration (``books/<id>/book.cfg``) as immutable dataclasses.
    Covers fonts, colours, cover/title/pager styles, text preprocessing
    rules and the punctuation adjustment tables.

Key Classes:
    - FontSlot / FontMapping: Font slots 1-5 and text/comment stacks
    - CoverStyle / TitleStyle / PagerStyle: Decoration styles
    - ReplacementRules / TextModes: Corpus preprocessing rules
    - PunctuationConfig: Rotated and hanging punctuation tables
    - BookLineStyle: Book-title side line style
    - BookConfig: Complete book configuration

Key Functions:
    - load_book_config(): Parse and validate a book.cfg file

Dependencies:
    - vrain.config.raw: key=value parsing

Used By:
    - vrain.controller
    - vrain.typeset
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from vrain.core.errors import ConfigError
from vrain.core.models import BLACK, Color, MarkAdjust

from .raw import RawConfig

FONT_SLOT_COUNT = 5


@dataclass(frozen=True)
class FontSlot:
    """
    One configured font (``fontN=file.ttf``).

    Attributes:
        index: 1-based slot number
        name: Font file name, relative to the fonts directory
        rotate: Extra rotation applied to every glyph of this font
        text_size: Main text size
        comment_size: Annotation text size
    """
    index: int
    name: str
    rotate: float = 0.0
    text_size: float = 60.0
    comment_size: float = 30.0


@dataclass(frozen=True)
class FontMapping:
    """Configured slots plus the ordered fallback stacks."""
    slots: Tuple[FontSlot, ...]
    text_stack: Tuple[int, ...]
    comment_stack: Tuple[int, ...]

    def __post_init__(self) -> None:
        known = {slot.index for slot in self.slots}
        if not self.text_stack:
            raise ConfigError("text_fonts_array is empty")
        if not self.comment_stack:
            raise ConfigError("comment_fonts_array is empty")
        missing = [i for i in self.text_stack + self.comment_stack if i not in known]
        if missing:
            raise ConfigError(f"Font stack references unconfigured slots: {sorted(set(missing))}")

    def slot(self, index: int) -> FontSlot:
        for slot in self.slots:
            if slot.index == index:
                return slot
        raise ConfigError(f"Font slot {index} is not configured")


@dataclass(frozen=True)
class CoverStyle:
    title_font_size: float = 120.0
    title_y: float = 200.0
    author_font_size: float = 60.0
    author_y: float = 600.0
    color: Color = BLACK


@dataclass(frozen=True)
class TitleStyle:
    """Running title drawn down the centre fold of each page."""
    center: bool = False
    postfix: Optional[str] = None
    directory: bool = False
    font_size: float = 80.0
    color: Color = BLACK
    y: float = 1200.0
    y_dis: float = 1.2


@dataclass(frozen=True)
class PagerStyle:
    font_size: float = 35.0
    color: Color = BLACK
    y: float = 500.0


@dataclass(frozen=True)
class ReplacementRules:
    """
    Text substitutions applied to every line before layout.

    Attributes:
        comma_pairs: (char, replacement) from ``exp_replace_comma``
        number_pairs: (char, replacement) from ``exp_replace_number``
        delete_tokens: Tokens removed by ``exp_delete_comma``
    """
    comma_pairs: Tuple[Tuple[str, str], ...] = ()
    number_pairs: Tuple[Tuple[str, str], ...] = ()
    delete_tokens: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TextModes:
    remove_punctuation: bool = False
    remove_tokens: Tuple[str, ...] = ()
    only_period: bool = False
    only_period_tokens: Tuple[str, ...] = ()
    only_period_color: Optional[Color] = None


@dataclass(frozen=True)
class PunctuationConfig:
    """
    Punctuation tables for main text and annotations.

    ``*_nop`` marks hang on the previous glyph without taking a cell;
    ``*_rotate`` marks are turned 90° and occupy a cell.
    """
    text_nop: MarkAdjust = field(default_factory=MarkAdjust)
    text_rotate: MarkAdjust = field(default_factory=MarkAdjust)
    comment_nop: MarkAdjust = field(default_factory=MarkAdjust)
    comment_rotate: MarkAdjust = field(default_factory=MarkAdjust)


@dataclass(frozen=True)
class BookLineStyle:
    width: float = 1.0
    color: Color = BLACK


@dataclass(frozen=True)
class BookConfig:
    """
    Complete book configuration (immutable).

    Attributes:
        title: Book title (cover, running title, output name)
        author: Author line on the generated cover
        canvas_id: Canvas configuration to use
        row_num: Rows per page column
        row_delta_y: Baseline shift applied to every cell
        multirows_horizontal_layout: 1 = bands across the leaf, 2 = per half page
        fonts: Font slots and stacks
        try_st: Retry missing glyphs in the other Chinese script
        book_line: Side line style; None disables side lines and makes
            the book-title marks ordinary drawn glyphs
    """
    title: str
    author: str
    canvas_id: str
    row_num: int
    fonts: FontMapping
    row_delta_y: float = 0.0
    multirows_horizontal_layout: int = 1
    try_st: bool = False
    text_font_color: Color = BLACK
    comment_font_color: Color = BLACK
    cover: CoverStyle = field(default_factory=CoverStyle)
    title_style: TitleStyle = field(default_factory=TitleStyle)
    pager_style: PagerStyle = field(default_factory=PagerStyle)
    replacements: ReplacementRules = field(default_factory=ReplacementRules)
    text_modes: TextModes = field(default_factory=TextModes)
    punctuation: PunctuationConfig = field(default_factory=PunctuationConfig)
    book_line: Optional[BookLineStyle] = None

    def __post_init__(self) -> None:
        if self.row_num <= 0:
            raise ConfigError(f"row_num must be positive: {self.row_num}")
        if self.cover.title_font_size <= 0 or self.cover.author_font_size <= 0:
            raise ConfigError("Cover font sizes must be positive")
        if self.title_style.font_size <= 0:
            raise ConfigError("title_font_size must be positive")
        if self.pager_style.font_size <= 0:
            raise ConfigError("pager_font_size must be positive")

    @property
    def book_line_enabled(self) -> bool:
        return self.book_line is not None


def load_book_config(path: Path) -> BookConfig:
    """
    Load ``book.cfg``.

    Raises:
        ConfigError: Missing required keys or invalid values
    """
    return book_config_from_raw(RawConfig.load(path))


def book_config_from_raw(raw: RawConfig) -> BookConfig:
    book_line = None
    if raw.get_bool("if_book_vline"):
        book_line = BookLineStyle(
            width=raw.get_float("book_line_width", 1.0),
            color=raw.get_color("book_line_color", BLACK),
        )

    return BookConfig(
        title=raw.require("title"),
        author=raw.require("author"),
        canvas_id=raw.require("canvas_id"),
        row_num=raw.require_int("row_num"),
        row_delta_y=raw.get_float("row_delta_y", 0.0),
        multirows_horizontal_layout=raw.get_int("multirows_horizontal_layout", 1),
        fonts=_font_mapping(raw),
        try_st=raw.get_bool("try_st"),
        text_font_color=raw.get_color("text_font_color", BLACK),
        comment_font_color=raw.get_color("comment_font_color", BLACK),
        cover=CoverStyle(
            title_font_size=raw.get_float("cover_title_font_size", 120.0),
            title_y=raw.get_float("cover_title_y", 200.0),
            author_font_size=raw.get_float("cover_author_font_size", 60.0),
            author_y=raw.get_float("cover_author_y", 600.0),
            color=raw.get_color("cover_font_color", BLACK),
        ),
        title_style=TitleStyle(
            center=raw.get_bool("if_tpcenter"),
            postfix=raw.get_str("title_postfix"),
            directory=raw.get_bool("title_directory"),
            font_size=raw.get_float("title_font_size", 80.0),
            color=raw.get_color("title_font_color", BLACK),
            y=raw.get_float("title_y", 1200.0),
            y_dis=raw.get_float("title_ydis", 1.2),
        ),
        pager_style=PagerStyle(
            font_size=raw.get_float("pager_font_size", 35.0),
            color=raw.get_color("pager_font_color", BLACK),
            y=raw.get_float("pager_y", 500.0),
        ),
        replacements=ReplacementRules(
            comma_pairs=_replace_pairs(raw.get("exp_replace_comma")),
            number_pairs=_replace_pairs(raw.get("exp_replace_number")),
            delete_tokens=_tokens(raw.get("exp_delete_comma")),
        ),
        text_modes=TextModes(
            remove_punctuation=raw.get_bool("if_nocomma"),
            remove_tokens=_tokens(raw.get("exp_nocomma")),
            only_period=raw.get_bool("if_onlyperiod"),
            only_period_tokens=_tokens(raw.get("exp_onlyperiod")),
            only_period_color=(
                raw.get_color("onlyperiod_color", BLACK) if raw.get_str("onlyperiod_color") else None
            ),
        ),
        punctuation=PunctuationConfig(
            text_nop=_mark_adjust(raw, "text_comma_nop"),
            text_rotate=_mark_adjust(raw, "text_comma_90"),
            comment_nop=_mark_adjust(raw, "comment_comma_nop"),
            comment_rotate=_mark_adjust(raw, "comment_comma_90"),
        ),
        book_line=book_line,
    )


def _font_mapping(raw: RawConfig) -> FontMapping:
    slots = []
    for idx in range(1, FONT_SLOT_COUNT + 1):
        name = raw.get_str(f"font{idx}")
        if not name:
            continue
        slots.append(FontSlot(
            index=idx,
            name=name,
            rotate=raw.get_float(f"font{idx}_rotate", 0.0),
            text_size=raw.get_float(f"text_font{idx}_size", 60.0),
            comment_size=raw.get_float(f"comment_font{idx}_size", 30.0),
        ))
    return FontMapping(
        slots=tuple(slots),
        text_stack=_stack(raw.get("text_fonts_array")),
        comment_stack=_stack(raw.get("comment_fonts_array")),
    )


def _stack(value: Optional[str]) -> Tuple[int, ...]:
    # "123" and "1|2|3" both mean slots 1, 2, 3
    return tuple(
        int(ch) for ch in (value or "")
        if ch.isdigit() and 1 <= int(ch) <= FONT_SLOT_COUNT
    )


def _replace_pairs(value: Optional[str]) -> Tuple[Tuple[str, str], ...]:
    pairs = []
    for pair in (value or "").split("|"):
        if len(pair) >= 2:
            pairs.append((pair[0], pair[1:]))
    return tuple(pairs)


def _tokens(value: Optional[str]) -> Tuple[str, ...]:
    return tuple(token for token in (value or "").split("|") if token)


def _mark_adjust(raw: RawConfig, prefix: str) -> MarkAdjust:
    value = raw.get(prefix) or ""
    if "|" in value:
        chars = tuple(token[0] for token in value.split("|") if token)
    else:
        chars = tuple(value)
    return MarkAdjust(
        chars=chars,
        scale=raw.get_float(f"{prefix}_size", 1.0),
        offset_x=raw.get_float(f"{prefix}_x", 0.0),
        offset_y=raw.get_float(f"{prefix}_y", 0.0),
    )
