"""
Module: vrain.config.canvas

Purpose:
    Canvas configuration: page size, margins, columns, rows and the
    multirows band settings. Immutable once built and shared read-only
    by every component of a run.

Key Classes:
    - BandLayout: How multiple bands are traversed
    - CanvasConfig: Validated canvas/grid parameters

Key Functions:
    - load_canvas_config(): Merge ``canvas/<id>.cfg`` with book settings

Dependencies:
    - vrain.config.raw: key=value parsing

Used By:
    - vrain.grid.model: GridModel.build()
    - vrain.background.generator
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from vrain.core.errors import ConfigError

from .book import BookConfig
from .raw import RawConfig


class BandLayout(Enum):
    """
    Band traversal when multirows is enabled.

    HORIZONTAL_LEAF: bands are full-width strips stacked top to bottom;
        a band is filled across the whole leaf before the next one.
    HORIZONTAL_PAGE: each half leaf is a vertical strip holding its own
        stacked bands; the right half is filled band by band first,
        then the left half.
    """
    HORIZONTAL_LEAF = 1
    HORIZONTAL_PAGE = 2

    @classmethod
    def from_flag(cls, flag: int) -> "BandLayout":
        return cls.HORIZONTAL_PAGE if flag == 2 else cls.HORIZONTAL_LEAF


@dataclass(frozen=True)
class CanvasConfig:
    """
    Canvas and grid configuration (immutable).

    All lengths are canvas pixels, which map 1:1 to PDF points.

    Attributes:
        canvas_width / canvas_height: Page size
        margins_*: Page margins
        columns: Columns per page (both half leaves together)
        row_num: Rows per page column (split across bands)
        leaf_center_width: Centre fold strip between the half leaves
        line_width: Stroke width for slip borders in generated backgrounds
        multirows: Band mode requested
        band_count: Number of bands when multirows is active
        band_layout: Band traversal order
        band_gap: Vertical gap between bands
        row_delta_y: Baseline shift applied to glyph origins
        logo_text: Optional text printed in the fold
        canvas_id: Name of the canvas configuration

    Example:
        >>> CanvasConfig(canvas_width=1000, canvas_height=800, columns=10, row_num=20).bands
        1
    """
    canvas_width: float
    canvas_height: float
    columns: int
    row_num: int
    margins_top: float = 0.0
    margins_bottom: float = 0.0
    margins_left: float = 0.0
    margins_right: float = 0.0
    leaf_center_width: float = 0.0
    line_width: float = 2.0
    multirows: bool = False
    band_count: int = 1
    band_layout: BandLayout = BandLayout.HORIZONTAL_LEAF
    band_gap: float = 0.0
    row_delta_y: float = 0.0
    logo_text: Optional[str] = None
    canvas_id: str = ""

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ConfigError(
                f"Canvas size must be positive: {self.canvas_width}x{self.canvas_height}"
            )
        if self.columns <= 0:
            raise ConfigError(f"columns must be positive: {self.columns}")
        if self.row_num <= 0:
            raise ConfigError(f"row_num must be positive: {self.row_num}")
        if self.band_count <= 0:
            raise ConfigError(f"band_count must be positive: {self.band_count}")
        if self.band_gap < 0 or self.leaf_center_width < 0:
            raise ConfigError("band_gap and leaf_center_width must not be negative")
        if min(self.margins_top, self.margins_bottom, self.margins_left, self.margins_right) < 0:
            raise ConfigError("Margins must not be negative")
        if self.margins_left + self.margins_right >= self.canvas_width:
            raise ConfigError("Margins exceed canvas width")
        if self.margins_top + self.margins_bottom >= self.canvas_height:
            raise ConfigError("Margins exceed canvas height")
        if self.grid_width <= 0:
            raise ConfigError("Centre fold leaves no room for columns")
        if self.row_num % self.bands != 0:
            raise ConfigError(
                f"row_num {self.row_num} not divisible by band count {self.bands}"
            )
        if self.grid_height <= 0:
            raise ConfigError("Band gaps leave no room for rows")

    @property
    def bands(self) -> int:
        """Effective band count (1 unless multirows is active)."""
        if self.multirows and self.band_count > 1:
            return self.band_count
        return 1

    @property
    def multirows_active(self) -> bool:
        return self.bands > 1

    @property
    def available_width(self) -> float:
        """Width inside the margins."""
        return self.canvas_width - self.margins_left - self.margins_right

    @property
    def available_height(self) -> float:
        """Height inside the margins."""
        return self.canvas_height - self.margins_top - self.margins_bottom

    @property
    def grid_width(self) -> float:
        """Width covered by columns (excludes the centre fold)."""
        return self.available_width - self.leaf_center_width

    @property
    def grid_height(self) -> float:
        """Height covered by rows (excludes band gaps)."""
        return self.available_height - self.band_gap * (self.bands - 1)


def load_canvas_config(path: Path, book: BookConfig) -> CanvasConfig:
    """
    Load ``canvas/<id>.cfg`` and merge the book's row settings.

    Raises:
        ConfigError: Missing keys or invalid geometry
    """
    raw = RawConfig.load(path)
    return canvas_config_from_raw(raw, book, canvas_id=path.stem)


def canvas_config_from_raw(raw: RawConfig, book: BookConfig, canvas_id: str = "") -> CanvasConfig:
    return CanvasConfig(
        canvas_width=raw.require_float("canvas_width"),
        canvas_height=raw.require_float("canvas_height"),
        margins_top=raw.require_float("margins_top"),
        margins_bottom=raw.require_float("margins_bottom"),
        margins_left=raw.require_float("margins_left"),
        margins_right=raw.require_float("margins_right"),
        columns=raw.require_int("leaf_col"),
        row_num=book.row_num,
        leaf_center_width=raw.require_float("leaf_center_width"),
        line_width=raw.get_float("line_width", 2.0),
        multirows=raw.get_bool("if_multirows"),
        band_count=raw.get_int("multirows_num", 1),
        band_layout=BandLayout.from_flag(book.multirows_horizontal_layout),
        band_gap=raw.get_float("multirows_gap", 0.0),
        row_delta_y=book.row_delta_y,
        logo_text=raw.get_str("logo_text"),
        canvas_id=canvas_id,
    )
