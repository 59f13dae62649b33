"""
Module: vrain.typeset.typesetter

Purpose:
    Turn a range of text entries into a DocumentPlan: running titles per
    entry, the layout pass over all entries, and outline (bookmark)
    entries pointing at each entry's first page.

Key Classes:
    - TypesetOptions: Entry range, page limit and cover image
    - Typesetter: build_plan()

Used By:
    - vrain.controller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from vrain.config.book import BookConfig
from vrain.core.models import CoverKind, DocumentPlan, OutlineEntry

from .corpus import APPENDIX_ORDINAL, TextCorpus
from .engine import LayoutEngine, Section
from .numerals import NumeralMap

logger = logging.getLogger(__name__)

PREFACE_POSTFIX = "序"
APPENDIX_POSTFIX = "附"


@dataclass(frozen=True)
class TypesetOptions:
    first_entry: int = 1
    last_entry: Optional[int] = None
    max_pages: Optional[int] = None
    cover_image: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.first_entry < 0:
            raise ValueError(f"first_entry must not be negative: {self.first_entry}")
        if self.last_entry is not None and self.last_entry < self.first_entry:
            raise ValueError("last_entry must be >= first_entry")
        if self.max_pages is not None and self.max_pages <= 0:
            raise ValueError(f"max_pages must be positive: {self.max_pages}")

    @property
    def entry_range(self) -> range:
        last = self.last_entry if self.last_entry is not None else self.first_entry
        return range(self.first_entry, last + 1)


class Typesetter:
    """Lay out an entry range of a corpus into a DocumentPlan."""

    def __init__(self, book: BookConfig, engine: LayoutEngine, numerals: NumeralMap, corpus: TextCorpus):
        self.book = book
        self.engine = engine
        self.numerals = numerals
        self.corpus = corpus

    def entry_title(self, ordinal: int) -> str:
        """
        Running title of an entry: book title plus ``title_postfix``.

        ``X`` in the postfix becomes the chapter numeral; entry 0 is the
        preface and entry 999 the appendix.
        """
        postfix = self.book.title_style.postfix
        if not postfix:
            return self.book.title
        if ordinal == 0:
            postfix = PREFACE_POSTFIX
        elif ordinal == APPENDIX_ORDINAL and self.corpus.has_appendix:
            postfix = APPENDIX_POSTFIX
        elif "X" in postfix:
            postfix = postfix.replace("X", self.numerals.to_chinese_numeral(ordinal))
        return self.book.title + postfix

    def sections(self, options: TypesetOptions) -> List[Section]:
        return [
            Section(self.corpus.entry(ordinal).text, self.entry_title(ordinal))
            for ordinal in options.entry_range
        ]

    def build_plan(self, options: TypesetOptions) -> DocumentPlan:
        sections = self.sections(options)
        pages = self.engine.layout(sections, max_pages=options.max_pages)

        outlines = []
        seen = set()
        for page in pages:
            if page.section_index not in seen:
                seen.add(page.section_index)
                outlines.append(OutlineEntry(sections[page.section_index].title, page.number))

        logger.info(f"Laid out {len(pages)} pages from {len(sections)} entries")
        return DocumentPlan(
            cover=CoverKind.IMAGE if options.cover_image else CoverKind.GENERATED,
            pages=pages,
            outlines=tuple(outlines),
            cover_path=options.cover_image,
        )
