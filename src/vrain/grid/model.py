"""
Module: vrain.grid.model

Purpose:
    Derive the addressable page grid from a CanvasConfig.
    Maps logical (band, column, row) addresses to physical cell
    rectangles and defines the slot traversal order used by layout.

    Columns are numbered right-to-left from the right margin; the
    columns of the left half leaf sit to the left of the centre fold.
    Rows are numbered top-to-bottom within a band. Bands stack
    downwards, separated by ``band_gap``.

Key Classes:
    - BandSegment: Run of traversal slots that share one band
    - GridModel: Immutable grid geometry and traversal

Dependencies:
    - vrain.config.canvas: CanvasConfig, BandLayout
    - vrain.core.models: Rect, CellAddress

Used By:
    - vrain.typeset.engine: Slot positions
    - vrain.seals.compositor: Seal target rectangles
    - vrain.output.assembler: Address validation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Tuple

from vrain.config.canvas import BandLayout, CanvasConfig
from vrain.core.errors import ConfigError, OutOfBounds
from vrain.core.models import CellAddress, Rect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BandSegment:
    """
    Consecutive traversal columns belonging to one band.

    Attributes:
        band: Band index
        columns: Column indices in traversal order
        start_slot: First slot of the segment
        rows_per_column: Rows in each column
    """
    band: int
    columns: Tuple[int, ...]
    start_slot: int
    rows_per_column: int

    @property
    def size(self) -> int:
        return len(self.columns) * self.rows_per_column

    @property
    def end_slot(self) -> int:
        """One past the last slot of the segment."""
        return self.start_slot + self.size

    @property
    def last_column_start(self) -> int:
        return self.end_slot - self.rows_per_column

    def __contains__(self, slot: object) -> bool:
        return isinstance(slot, int) and self.start_slot <= slot < self.end_slot


@dataclass(frozen=True)
class GridModel:
    """
    Immutable page grid.

    A *slot* is a 0-based position in traversal order; slot ``s`` lives
    in traversal column ``s // rows_per_column`` at row
    ``s % rows_per_column``.

    Attributes:
        canvas: Source configuration
        cell_width: Column width
        row_height: Row height
        rows_per_column: Rows in one band column
        order: (band, column) for each traversal column
        segments: Band segments in traversal order

    Example:
        >>> grid = GridModel.build(canvas)
        >>> grid.cell_rect(0, 0, 0)  # top-right cell
    """
    canvas: CanvasConfig
    cell_width: float
    row_height: float
    rows_per_column: int
    order: Tuple[Tuple[int, int], ...]
    segments: Tuple[BandSegment, ...]

    @classmethod
    def build(cls, canvas: CanvasConfig) -> "GridModel":
        """
        Build the grid for a canvas.

        Raises:
            ConfigError: If the derived cell size is not positive
        """
        bands = canvas.bands
        cell_width = canvas.grid_width / canvas.columns
        row_height = canvas.grid_height / canvas.row_num
        if cell_width <= 0 or row_height <= 0:
            raise ConfigError(f"Degenerate cell size {cell_width}x{row_height}")
        rows_per_column = canvas.row_num // bands

        groups = _traversal_groups(canvas.columns, bands, canvas.band_layout)
        order = []
        segments = []
        for band, columns in groups:
            if not columns:
                continue
            segments.append(BandSegment(
                band=band,
                columns=tuple(columns),
                start_slot=len(order) * rows_per_column,
                rows_per_column=rows_per_column,
            ))
            order.extend((band, col) for col in columns)

        logger.debug(
            f"Grid {canvas.columns} cols x {rows_per_column} rows x {bands} bands, "
            f"cell {cell_width:.2f}x{row_height:.2f}"
        )
        return cls(
            canvas=canvas,
            cell_width=cell_width,
            row_height=row_height,
            rows_per_column=rows_per_column,
            order=tuple(order),
            segments=tuple(segments),
        )

    @property
    def columns(self) -> int:
        return self.canvas.columns

    @property
    def bands(self) -> int:
        return self.canvas.bands

    @property
    def capacity(self) -> int:
        """Cells per page."""
        return len(self.order) * self.rows_per_column

    @property
    def printable_area(self) -> Rect:
        c = self.canvas
        return Rect(c.margins_left, c.margins_bottom, c.available_width, c.available_height)

    def contains(self, address: CellAddress) -> bool:
        return (
            0 <= address.band < self.bands
            and 0 <= address.column < self.columns
            and 0 <= address.row < self.rows_per_column
        )

    def column_x(self, column: int) -> float:
        """Left edge of a column (0-based, counted from the right)."""
        c = self.canvas
        number = column + 1
        x = c.canvas_width - c.margins_right - self.cell_width * number
        if number > c.columns / 2:
            x -= c.leaf_center_width
        return x

    def band_top(self, band: int) -> float:
        c = self.canvas
        band_height = self.rows_per_column * self.row_height + c.band_gap
        return c.canvas_height - c.margins_top - band * band_height

    def cell_rect(self, band: int, column: int, row: int) -> Rect:
        """
        Physical rectangle of a cell.

        Raises:
            OutOfBounds: If any index exceeds the configured counts
        """
        address = CellAddress(band, column, row)
        if not self.contains(address):
            raise OutOfBounds(
                f"Cell {address} outside grid of {self.bands} bands, "
                f"{self.columns} columns, {self.rows_per_column} rows",
                address=(band, column, row),
            )
        bottom = self.band_top(band) - self.row_height * (row + 1)
        return Rect(self.column_x(column), bottom, self.cell_width, self.row_height)

    def rect_of(self, address: CellAddress) -> Rect:
        return self.cell_rect(address.band, address.column, address.row)

    def half_rect(self, address: CellAddress, side: str) -> Rect:
        """Right or left half of a cell (annotation sub-columns)."""
        rect = self.rect_of(address)
        half = rect.width / 2
        x = rect.x + half if side == "right" else rect.x
        return Rect(x, rect.y, half, rect.height)

    def origin(self, address: CellAddress) -> Tuple[float, float]:
        """Text origin of a cell: left edge, bottom edge shifted by row_delta_y."""
        rect = self.rect_of(address)
        return round(rect.x, 3), round(rect.y + self.canvas.row_delta_y, 3)

    def slot_address(self, slot: int) -> CellAddress:
        """
        Address of a traversal slot.

        Raises:
            OutOfBounds: If slot is outside [0, capacity)
        """
        if not 0 <= slot < self.capacity:
            raise OutOfBounds(f"Slot {slot} outside page capacity {self.capacity}")
        band, column = self.order[slot // self.rows_per_column]
        return CellAddress(band, column, slot % self.rows_per_column)

    def slot_index(self, address: CellAddress) -> int:
        if not self.contains(address):
            raise OutOfBounds(f"Cell {address} outside grid", address=(address.band, address.column, address.row))
        return self.order.index((address.band, address.column)) * self.rows_per_column + address.row

    def column_start(self, slot: int) -> int:
        """First slot of the column containing ``slot``."""
        return slot - slot % self.rows_per_column

    def segment_of(self, slot: int) -> BandSegment:
        """
        Segment containing ``slot``; the page end belongs to the last segment.

        Raises:
            OutOfBounds: If slot is negative or beyond the page end
        """
        for segment in self.segments:
            if slot in segment:
                return segment
        if slot == self.capacity and self.segments:
            return self.segments[-1]
        raise OutOfBounds(f"Slot {slot} outside page capacity {self.capacity}")

    def iter_addresses(self) -> Iterator[CellAddress]:
        """All cells in traversal order."""
        for slot in range(self.capacity):
            yield self.slot_address(slot)


def _traversal_groups(columns: int, bands: int, layout: BandLayout):
    """(band, [columns]) runs in traversal order."""
    if layout is BandLayout.HORIZONTAL_PAGE and bands > 1:
        half = columns // 2
        right = [(band, list(range(half))) for band in range(bands)]
        left = [(band, list(range(half, columns))) for band in range(bands)]
        return right + left
    return [(band, list(range(columns))) for band in range(bands)]
