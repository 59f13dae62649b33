"""
Seal stamping: rule parsing, stamp loading and placement.
"""

from .compositor import (
    SealCompositor,
    SealRuleError,
    StampCache,
    fit_box,
    load_seal_lines,
    parse_seal_rule,
    resolve,
)

__all__ = [
    "SealCompositor",
    "SealRuleError",
    "StampCache",
    "fit_box",
    "load_seal_lines",
    "parse_seal_rule",
    "resolve",
]
