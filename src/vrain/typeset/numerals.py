"""
Module: vrain.typeset.numerals

Purpose:
    Chinese numeral lookup for page numbers and chapter titles.
    The table is supplied externally (``db/num2zh_jid.txt``), one
    ``value|numeral`` pair per line.

Key Classes:
    - NumeralMap: Immutable value -> numeral table

Used By:
    - vrain.typeset.engine: Page numbers
    - vrain.typeset.typesetter: Chapter titles
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from vrain.core.errors import ConfigError, NumberMappingError

logger = logging.getLogger(__name__)


class NumeralMap:
    """
    Lookup table from non-negative integers to numeral glyph runs.

    Example:
        >>> numerals = NumeralMap({1: "一", 12: "十二"})
        >>> numerals.to_chinese_numeral(12)
        '十二'
    """

    def __init__(self, mapping: Mapping[int, str]):
        self._map = MappingProxyType(dict(mapping))

    @classmethod
    def load(cls, path: Path) -> "NumeralMap":
        if not path.exists():
            raise ConfigError(f"Numeral table not found: {path}")
        numerals = cls.from_lines(path.read_text(encoding="utf-8").splitlines())
        logger.debug(f"Loaded {len(numerals)} numerals from {path}")
        return numerals

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "NumeralMap":
        mapping = {}
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, value = line.partition("|")
            key = key.strip()
            if not sep or not key.isdigit():
                continue
            mapping[int(key)] = value.split("|", 1)[0].strip()
        return cls(mapping)

    def to_chinese_numeral(self, value: int) -> str:
        """
        Render ``value``.

        Raises:
            NumberMappingError: Negative or missing value
        """
        if value < 0 or value not in self._map:
            raise NumberMappingError(value)
        return self._map[value]

    __getitem__ = to_chinese_numeral

    def __contains__(self, value: object) -> bool:
        return value in self._map

    def __len__(self) -> int:
        return len(self._map)
