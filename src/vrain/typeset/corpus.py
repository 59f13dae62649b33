"""
Module: vrain.typeset.corpus

Purpose:
    Load ``books/<id>/text/NNN.txt`` entries and normalise them for
    layout: whitespace removal, configured replacements, punctuation
    modes, ``@`` as an explicit space, and padding every source line with
    spaces so the next line starts at the top of a column.

Key Classes:
    - TextEntry: One preprocessed text file
    - TextCorpus: Entries keyed by ordinal

Key Functions:
    - load_corpus(): Read and preprocess a text directory
    - preprocess_text(): Normalise one file's content

Used By:
    - vrain.typeset.typesetter
    - vrain.controller
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from vrain.config.book import BookConfig
from vrain.core.errors import ConfigError

from .classifier import ANNOTATION_CLOSE, ANNOTATION_OPEN, BOOK_TITLE_CLOSE, BOOK_TITLE_OPEN

logger = logging.getLogger(__name__)

APPENDIX_ORDINAL = 999
_ANNOTATION_RE = re.compile(f"{ANNOTATION_OPEN}(.*?){ANNOTATION_CLOSE}")


@dataclass(frozen=True)
class TextEntry:
    name: str
    ordinal: int
    text: str


@dataclass(frozen=True)
class TextCorpus:
    """
    Preprocessed text entries.

    Attributes:
        entries: Ordinal -> entry
        has_preface: A ``000.txt`` entry exists
        has_appendix: A ``999.txt`` entry exists
    """
    entries: Dict[int, TextEntry]
    has_preface: bool = False
    has_appendix: bool = False

    def entry(self, ordinal: int) -> TextEntry:
        try:
            return self.entries[ordinal]
        except KeyError:
            raise ConfigError(f"Text entry {ordinal} not available") from None

    @property
    def last_ordinal(self) -> int:
        return max(self.entries) if self.entries else 0


def load_corpus(text_dir: Path, book: BookConfig) -> TextCorpus:
    """
    Load every numbered ``.txt`` file in ``text_dir``.

    Raises:
        ConfigError: Directory missing or holding no numbered text files
    """
    if not text_dir.is_dir():
        raise ConfigError(f"Text directory not found: {text_dir}")

    entries: Dict[int, TextEntry] = {}
    for path in sorted(text_dir.iterdir()):
        if path.suffix.lower() != ".txt" or not path.stem.isdigit():
            continue
        ordinal = int(path.stem)
        content = path.read_text(encoding="utf-8")
        entries[ordinal] = TextEntry(path.name, ordinal, preprocess_text(content, book))

    if not entries:
        raise ConfigError(f"No .txt files found under {text_dir}")
    logger.info(f"Loaded {len(entries)} text entries from {text_dir}")
    return TextCorpus(
        entries=entries,
        has_preface=0 in entries,
        has_appendix=APPENDIX_ORDINAL in entries,
    )


def preprocess_text(content: str, book: BookConfig) -> str:
    """
    Normalise a text file for layout.

    Example:
        >>> preprocess_text("天地玄黃\\n宇宙", book)  # row_num=4
        '天地玄黃宇宙  '
    """
    pieces: List[str] = []
    for raw_line in content.splitlines():
        line = "".join(raw_line.split())
        if not line:
            continue
        line = _apply_replacements(line, book)
        line = _apply_text_modes(line, book)
        line = line.replace("@", " ")
        pieces.append(line)
        spaces = _missing_spaces(_line_cells(line, book), book.row_num)
        pieces.append(" " * spaces)
    return "".join(pieces)


def _apply_replacements(text: str, book: BookConfig) -> str:
    rules = book.replacements
    for source, target in rules.comma_pairs + rules.number_pairs:
        text = text.replace(source, target)
    for token in rules.delete_tokens:
        text = text.replace(token, "")
    return text


def _apply_text_modes(text: str, book: BookConfig) -> str:
    modes = book.text_modes
    if modes.remove_punctuation:
        for token in modes.remove_tokens:
            text = text.replace(token, "")
    if modes.only_period:
        for token in modes.only_period_tokens:
            text = text.replace(token, "。")
        # collapse runs of periods and drop a leading one
        text = re.sub("。{2,}", "。", text).lstrip("。")
    return text


def _line_cells(line: str, book: BookConfig) -> int:
    """Cells a line occupies in main-text terms."""
    punctuation = book.punctuation
    working = "".join(
        ch for ch in line
        if ch not in punctuation.text_nop and ch not in punctuation.comment_nop
    )
    if book.book_line_enabled:
        working = working.replace(BOOK_TITLE_OPEN, "").replace(BOOK_TITLE_CLOSE, "")
    annotation_cells = sum(math.ceil(len(m.group(1)) / 2) for m in _ANNOTATION_RE.finditer(working))
    working = _ANNOTATION_RE.sub("", working)
    return len(working) + annotation_cells


def _missing_spaces(total: int, row_num: int) -> int:
    remainder = total % row_num
    return 0 if remainder == 0 else row_num - remainder
