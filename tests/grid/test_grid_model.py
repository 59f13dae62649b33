"""
Tests for vrain.grid.model

Test Coverage:
- Cell geometry: right-to-left columns, centre fold, top-down rows
- Tiling: cells never overlap and cover the printable area minus fold and gaps
- Traversal order for single and multiple bands
- OutOfBounds for addresses outside the grid
"""

import itertools

import pytest

from vrain.config.canvas import BandLayout
from vrain.core.errors import OutOfBounds
from vrain.core.models import CellAddress
from vrain.grid.model import GridModel


def _all_rects(grid):
    return [grid.rect_of(address) for address in grid.iter_addresses()]


class TestCellGeometry:
    """Tests for cell rectangles."""

    def test_cell_rect_when_top_right_cell_then_against_margins(self, grid):
        rect = grid.cell_rect(0, 0, 0)

        assert rect.right == pytest.approx(380.0)
        assert rect.top == pytest.approx(280.0)
        assert rect.width == pytest.approx(80.0)
        assert rect.height == pytest.approx(65.0)

    def test_column_x_when_left_half_then_shifted_by_centre_fold(self, grid):
        assert grid.column_x(1) == pytest.approx(220.0)
        assert grid.column_x(2) == pytest.approx(100.0)
        assert grid.column_x(3) == pytest.approx(20.0)

    def test_cell_rect_when_row_increases_then_moves_down(self, grid):
        upper = grid.cell_rect(0, 0, 0)
        lower = grid.cell_rect(0, 0, 1)

        assert lower.top == pytest.approx(upper.y)

    def test_cell_rect_when_column_out_of_range_then_out_of_bounds(self, grid):
        with pytest.raises(OutOfBounds):
            grid.cell_rect(0, 4, 0)

    def test_cell_rect_when_band_out_of_range_then_out_of_bounds(self, grid):
        with pytest.raises(OutOfBounds):
            grid.cell_rect(1, 0, 0)

    def test_origin_when_row_delta_then_baseline_shifted(self, make_canvas):
        grid = GridModel.build(make_canvas(row_delta_y=5.0))

        x, y = grid.origin(CellAddress(0, 0, 0))

        assert x == pytest.approx(300.0)
        assert y == pytest.approx(215.0 + 5.0)


class TestTiling:
    """Cells are pairwise disjoint and fill the printable area."""

    @pytest.mark.parametrize("overrides", [
        {},
        {"leaf_center_width": 0.0, "columns": 5},
        {"multirows": True, "band_count": 2, "band_gap": 10.0},
        {"multirows": True, "band_count": 2, "band_gap": 6.0, "band_layout": BandLayout.HORIZONTAL_PAGE},
    ])
    def test_cells_when_built_then_disjoint_and_cover_area(self, make_canvas, overrides):
        # Arrange
        canvas = make_canvas(**overrides)
        grid = GridModel.build(canvas)

        # Act
        rects = _all_rects(grid)

        # Assert
        for a, b in itertools.combinations(rects, 2):
            assert not a.overlaps(b)
        area = grid.printable_area
        for rect in rects:
            assert area.contains(rect)
        expected = canvas.grid_width * canvas.grid_height
        assert sum(r.area for r in rects) == pytest.approx(expected)
        assert len(rects) == grid.capacity == canvas.columns * canvas.row_num


class TestTraversal:
    """Tests for slot order."""

    def test_slot_address_when_single_band_then_column_major_right_to_left(self, grid):
        addresses = list(grid.iter_addresses())

        assert addresses[:5] == [
            CellAddress(0, 0, 0),
            CellAddress(0, 0, 1),
            CellAddress(0, 0, 2),
            CellAddress(0, 0, 3),
            CellAddress(0, 1, 0),
        ]
        assert addresses[-1] == CellAddress(0, 3, 3)

    def test_slot_address_when_leaf_bands_then_band_filled_before_next(self, make_canvas):
        grid = GridModel.build(make_canvas(multirows=True, band_count=2))

        addresses = list(grid.iter_addresses())

        assert grid.rows_per_column == 2
        assert [a.band for a in addresses[:8]] == [0] * 8
        assert addresses[8] == CellAddress(1, 0, 0)
        assert len(grid.segments) == 2

    def test_slot_address_when_page_bands_then_right_half_first(self, make_canvas):
        grid = GridModel.build(make_canvas(
            multirows=True, band_count=2, band_layout=BandLayout.HORIZONTAL_PAGE,
        ))

        order = [(s.band, s.columns) for s in grid.segments]

        assert order == [(0, (0, 1)), (1, (0, 1)), (0, (2, 3)), (1, (2, 3))]

    def test_slot_index_when_round_trip_then_same_slot(self, make_canvas):
        grid = GridModel.build(make_canvas(multirows=True, band_count=2))

        for slot in range(grid.capacity):
            assert grid.slot_index(grid.slot_address(slot)) == slot

    def test_slot_address_when_capacity_then_out_of_bounds(self, grid):
        with pytest.raises(OutOfBounds):
            grid.slot_address(grid.capacity)

    def test_segment_of_when_page_end_then_last_segment(self, grid):
        assert grid.segment_of(grid.capacity) is grid.segments[-1]

    def test_band_top_when_second_band_then_below_gap(self, make_canvas):
        grid = GridModel.build(make_canvas(multirows=True, band_count=2, band_gap=10.0))

        first_bottom = grid.cell_rect(0, 0, grid.rows_per_column - 1).y
        second_top = grid.cell_rect(1, 0, 0).top

        assert first_bottom - second_top == pytest.approx(10.0)
