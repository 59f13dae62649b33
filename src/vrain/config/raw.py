"""
Module: vrain.config.raw

Purpose:
    Reader for the ``key=value`` configuration files used by books and
    canvases (``book.cfg``, ``canvas/<id>.cfg``).

    Line rules:
    - blank lines and lines starting with ``#`` are ignored
    - an inline ``#`` starts a comment unless the line contains ``=#``
      (so colour values like ``color=#ff0000`` survive)
    - all whitespace is removed, then the line splits at the first ``=``

Key Classes:
    - RawConfig: Parsed key/value mapping with typed accessors

Key Functions:
    - parse_line(): Parse one line into (key, value)
    - parse_color(): Colour string to an RGB tuple

Dependencies:
    - PIL.ImageColor: Colour name and hex parsing

Used By:
    - vrain.config.book
    - vrain.config.canvas
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from PIL import ImageColor

from vrain.core.errors import ConfigError
from vrain.core.models import Color

logger = logging.getLogger(__name__)


def parse_line(raw: str) -> Optional[Tuple[str, str]]:
    """
    Parse a single configuration line.

    Returns:
        (key, value) or None for blank/comment/keyless lines

    Example:
        >>> parse_line("title = 史記  # comment")
        ('title', '史記')
        >>> parse_line("text_font_color=#333333")
        ('text_font_color', '#333333')
    """
    trimmed = raw.strip()
    if not trimmed or trimmed.startswith("#"):
        return None
    if "=#" not in trimmed:
        trimmed = trimmed.split("#", 1)[0].strip()
    if not trimmed:
        return None
    collapsed = "".join(trimmed.split())
    key, _, value = collapsed.partition("=")
    if not key:
        return None
    return key, value


def parse_color(value: Optional[str], default: Color) -> Color:
    """Parse ``#rgb``/``#rrggbb``/named colours; empty means default."""
    if not value:
        return default
    try:
        rgb = ImageColor.getrgb(value)
    except ValueError as exc:
        raise ConfigError(f"Unsupported colour '{value}'") from exc
    return (rgb[0], rgb[1], rgb[2])


class RawConfig:
    """
    Parsed ``key=value`` file.

    Later duplicate keys override earlier ones.

    Attributes:
        source: File the values came from (for error messages)
    """

    def __init__(self, data: Dict[str, str], source: Optional[Path] = None):
        self._data = dict(data)
        self.source = source

    @classmethod
    def load(cls, path: Path) -> "RawConfig":
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        text = path.read_text(encoding="utf-8")
        return cls.from_lines(text.splitlines(), source=path)

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: Optional[Path] = None) -> "RawConfig":
        data: Dict[str, str] = {}
        for line in lines:
            parsed = parse_line(line)
            if parsed is not None:
                data[parsed[0]] = parsed[1]
        return cls(data, source)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._data.get(key, default)

    def require(self, key: str) -> str:
        value = self._data.get(key)
        if value is None:
            raise ConfigError(f"Missing key '{key}' in {self._where()}")
        return value

    def get_float(self, key: str, default: float) -> float:
        """Optional float; unparsable values fall back to the default."""
        value = self._data.get(key)
        if not value:
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Ignoring non-numeric {key}={value!r} in {self._where()}")
            return default

    def require_float(self, key: str) -> float:
        value = self.require(key)
        try:
            return float(value)
        except ValueError as exc:
            raise ConfigError(f"{self._where()}: {key} must be a number, got {value!r}") from exc

    def get_int(self, key: str, default: int) -> int:
        value = self._data.get(key)
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring non-integer {key}={value!r} in {self._where()}")
            return default

    def require_int(self, key: str) -> int:
        value = self.require(key)
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigError(f"{self._where()}: {key} must be an integer, got {value!r}") from exc

    def get_bool(self, key: str) -> bool:
        return self._data.get(key, "") == "1"

    def get_str(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        return value if value else None

    def get_color(self, key: str, default: Color) -> Color:
        return parse_color(self._data.get(key), default)

    def _where(self) -> str:
        return str(self.source) if self.source else "<config>"
