"""
Module: vrain.output.assembler

Purpose:
    Merge a finished PageLayout with the page background and its seal
    overlays into a Page for the sink. Pure merge: the only failure is a
    glyph addressed outside the grid, which means the layout pass broke
    its own bounds.

Key Classes:
    - PageAssembler: assemble() one page, assemble_all() a stream

Used By:
    - vrain.controller
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping, Optional, Sequence

from PIL import Image

from vrain.core.errors import OutOfBounds
from vrain.core.models import OverlayPlacement, Page, PageLayout
from vrain.grid.model import GridModel

logger = logging.getLogger(__name__)


class PageAssembler:
    """
    Assemble pages against one grid.

    Example:
        >>> assembler = PageAssembler(grid)
        >>> page = assembler.assemble(layout, background, overlays[layout.page_index])
    """

    def __init__(self, grid: GridModel):
        self.grid = grid

    def assemble(
        self,
        layout: PageLayout,
        background: Optional[Image.Image] = None,
        overlays: Sequence[OverlayPlacement] = (),
    ) -> Page:
        """
        Raises:
            OutOfBounds: A glyph address lies outside the grid
        """
        for glyph in layout.glyphs:
            if not self.grid.contains(glyph.address):
                a = glyph.address
                raise OutOfBounds(
                    f"Page {layout.number}: glyph {glyph.char!r} at {a} is outside the grid",
                    address=(a.band, a.column, a.row),
                )
        return Page(layout=layout, background=background, overlays=tuple(overlays))

    def assemble_all(
        self,
        layouts: Iterable[PageLayout],
        background: Optional[Image.Image] = None,
        overlays: Optional[Mapping[int, Sequence[OverlayPlacement]]] = None,
    ) -> Iterator[Page]:
        """Assemble a stream of layouts, one page at a time."""
        overlays = overlays or {}
        for layout in layouts:
            page = self.assemble(layout, background, overlays.get(layout.page_index, ()))
            logger.debug(
                f"Assembled page {layout.number}: {len(layout.glyphs)} glyphs, "
                f"{len(page.overlays)} seals"
            )
            yield page


def assemble(
    layout: PageLayout,
    background: Optional[Image.Image],
    overlays: Sequence[OverlayPlacement],
    grid: GridModel,
) -> Page:
    """Functional form of PageAssembler.assemble()."""
    return PageAssembler(grid).assemble(layout, background, overlays)
