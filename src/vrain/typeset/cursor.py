"""
Module: vrain.typeset.cursor

Purpose:
    Pagination state as a single immutable value plus explicit
    transition functions. The layout engine replaces its Cursor after
    every step; nothing mutates a Cursor in place.

    Band, column and row are derived from ``slot`` through the
    GridModel, so a Cursor can never hold an inconsistent address.

Key Classes:
    - LayoutMode: NORMAL or ANNOTATION
    - Cursor: (page_index, slot, mode, book_title_active)
    - Transition: New cursor plus flush/warning side effects

Key Functions:
    - apply_control(): Transition for a control token
    - set_book_title(), enter_annotation(), exit_annotation()

Used By:
    - vrain.typeset.engine
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from vrain.core.errors import BandSkipWarning, RunWarning
from vrain.core.models import CellAddress, ControlToken
from vrain.grid.model import GridModel


class LayoutMode(Enum):
    NORMAL = "normal"
    ANNOTATION = "annotation"


@dataclass(frozen=True)
class Cursor:
    """
    Pagination state.

    Attributes:
        page_index: Page being filled (0-based, only increases)
        slot: Cells consumed on this page; the next cell is ``slot``
        mode: Normal text or double-row annotation
        book_title_active: Inside a book-title span
    """
    page_index: int = 0
    slot: int = 0
    mode: LayoutMode = LayoutMode.NORMAL
    book_title_active: bool = False

    def address(self, grid: GridModel) -> CellAddress:
        """Address of the next free cell."""
        return grid.slot_address(self.slot)

    def page_full(self, grid: GridModel) -> bool:
        return self.slot >= grid.capacity

    def advance(self, cells: int = 1) -> "Cursor":
        return replace(self, slot=self.slot + cells)

    def next_page(self) -> "Cursor":
        return replace(self, page_index=self.page_index + 1, slot=0)

    def page_start(self) -> "Cursor":
        return replace(self, slot=0)


@dataclass(frozen=True)
class Transition:
    cursor: Cursor
    flush: bool = False
    warning: Optional[RunWarning] = None


def apply_control(cursor: Cursor, token: ControlToken, grid: GridModel) -> Transition:
    """
    Cursor effect of a control token.

    - PAGE_BREAK: request a flush; the engine starts the next page
    - HALF_PAGE: jump to the page midpoint (capacity // 2), or to the
      page end when already past it; no-op at the page start or exactly
      on the midpoint
    - LAST_COLUMN: jump to the top of the last column of the current
      band segment unless that column has already been entered
    - BAND_SKIP: jump to the start of the next band segment (page end
      after the last one); a warning no-op without multirows
    """
    if token is ControlToken.PAGE_BREAK:
        return Transition(cursor, flush=True)

    if token is ControlToken.HALF_PAGE:
        half = grid.capacity // 2
        if cursor.slot in (0, half):
            return Transition(cursor)
        target = half if cursor.slot < half else grid.capacity
        return Transition(replace(cursor, slot=target))

    if token is ControlToken.LAST_COLUMN:
        segment = grid.segment_of(cursor.slot)
        if cursor.slot <= segment.last_column_start:
            return Transition(replace(cursor, slot=segment.last_column_start))
        return Transition(cursor)

    if token is ControlToken.BAND_SKIP:
        if grid.bands <= 1:
            warning = BandSkipWarning(
                f"Band skip on page {cursor.page_index + 1} ignored: multirows is off",
                page_index=cursor.page_index,
                slot=cursor.slot,
            )
            return Transition(cursor, warning=warning)
        if cursor.slot >= grid.capacity:
            return Transition(cursor)
        current = grid.segment_of(cursor.slot)
        later = [s for s in grid.segments if s.start_slot >= current.end_slot]
        target = later[0].start_slot if later else grid.capacity
        return Transition(replace(cursor, slot=target))

    raise ValueError(f"Unknown control token: {token}")


def set_book_title(cursor: Cursor, active: bool) -> Cursor:
    """Opening mark activates the span, closing mark ends it."""
    return replace(cursor, book_title_active=active)


def enter_annotation(cursor: Cursor) -> Cursor:
    return replace(cursor, mode=LayoutMode.ANNOTATION)


def exit_annotation(cursor: Cursor) -> Cursor:
    return replace(cursor, mode=LayoutMode.NORMAL)
