"""
Tests for vrain.output.assembler
"""

import dataclasses

import pytest
from PIL import Image

from vrain.core.errors import OutOfBounds
from vrain.core.models import CellAddress
from vrain.output import PageAssembler, assemble


class TestPageAssembler:

    def test_assemble_when_layout_valid_then_page_carries_background(self, engine, grid):
        layout = engine.layout("天地")[0]
        background = Image.new("RGB", (400, 300))

        page = assemble(layout, background, (), grid)

        assert page.layout is layout
        assert page.background is background
        assert page.page_index == 0
        assert page.glyphs == layout.glyphs

    def test_assemble_when_glyph_outside_grid_then_out_of_bounds(self, engine, grid):
        layout = engine.layout("天")[0]
        stray = dataclasses.replace(layout.glyphs[0], address=CellAddress(0, 9, 0))
        broken = dataclasses.replace(layout, glyphs=(stray,))

        with pytest.raises(OutOfBounds):
            PageAssembler(grid).assemble(broken)

    def test_assemble_all_when_overlays_then_matched_by_page_index(self, engine, grid):
        layouts = engine.layout("天%地%玄")
        marker = object()

        pages = list(PageAssembler(grid).assemble_all(layouts, overlays={1: [marker]}))

        assert [len(p.overlays) for p in pages] == [0, 1, 0]
        assert pages[1].overlays[0] is marker
