"""
Module: vrain.typeset.variants

Purpose:
    Simplified/traditional counterparts for glyph fallback (``try_st``).
    Conversion uses OpenCC; only single-character results that differ
    from the input are offered.

Key Classes:
    - ScriptVariantSource: Protocol used by the engine
    - ScriptVariants: OpenCC-backed implementation

Dependencies:
    - opencc (opencc-python-reimplemented): s2t / t2s conversion

Used By:
    - vrain.typeset.engine
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Protocol

import opencc


class ScriptVariantSource(Protocol):
    def alternates(self, char: str) -> List[str]: ...


class ScriptVariants:
    """Traditional form first, then simplified, as in the fallback order."""

    def __init__(self) -> None:
        self._s2t = opencc.OpenCC("s2t")
        self._t2s = opencc.OpenCC("t2s")

    def to_traditional(self, char: str) -> str:
        return self._s2t.convert(char)

    def to_simplified(self, char: str) -> str:
        return self._t2s.convert(char)

    def alternates(self, char: str) -> List[str]:
        return list(_alternates(self, char))


@lru_cache(maxsize=4096)
def _alternates(variants: ScriptVariants, char: str) -> tuple:
    found = []
    for converted in (variants.to_traditional(char), variants.to_simplified(char)):
        if len(converted) == 1 and converted != char and converted not in found:
            found.append(converted)
    return tuple(found)
