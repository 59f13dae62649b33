"""
Core models and error types shared across vrain.

Re-exports the immutable page model and the error/warning taxonomy.
"""

from .errors import (
    BandSkipWarning,
    ConfigError,
    GlyphFallbackWarning,
    NumberMappingError,
    OutOfBounds,
    PlanValidationError,
    RunWarning,
    SealWarning,
    VrainError,
    WarningLog,
)
from .models import (
    BLACK,
    CellAddress,
    Color,
    ControlToken,
    CoverKind,
    DocumentPlan,
    GlyphClass,
    MarkAdjust,
    OutlineEntry,
    OverlayPlacement,
    Page,
    PageLayout,
    PlacedGlyph,
    Rect,
    SealRule,
    SideLine,
    StampAsset,
    TextUnit,
)

__all__ = [
    "BandSkipWarning",
    "ConfigError",
    "GlyphFallbackWarning",
    "NumberMappingError",
    "OutOfBounds",
    "PlanValidationError",
    "RunWarning",
    "SealWarning",
    "VrainError",
    "WarningLog",
    "BLACK",
    "CellAddress",
    "Color",
    "ControlToken",
    "CoverKind",
    "DocumentPlan",
    "GlyphClass",
    "MarkAdjust",
    "OutlineEntry",
    "OverlayPlacement",
    "Page",
    "PageLayout",
    "PlacedGlyph",
    "Rect",
    "SealRule",
    "SideLine",
    "StampAsset",
    "TextUnit",
]
