"""
Tests for vrain.background.generator
"""

import numpy as np
import pytest
from PIL import Image

from vrain.background import BackgroundGenerator, BackgroundGeometry, save_background
from vrain.background.generator import SLIP_TONE
from vrain.grid.model import GridModel


@pytest.fixture
def generator():
    return BackgroundGenerator()


class TestBackgroundGeometry:

    def test_from_grid_when_built_then_one_slip_per_column(self, grid):
        geometry = BackgroundGeometry.from_grid(grid)

        assert len(geometry.slips) == grid.columns
        assert len(geometry.straps) == 2 * grid.columns
        assert len(geometry.fibers) == 30 * grid.columns

    def test_from_grid_when_built_then_slips_inside_columns(self, grid):
        geometry = BackgroundGeometry.from_grid(grid)

        for column, (x0, y0, x1, y1) in enumerate(geometry.slips):
            left = grid.column_x(column)
            assert left < x0 < x1 < left + grid.cell_width
            assert y0 == pytest.approx(20.0)
            assert y1 == pytest.approx(280.0)

    def test_from_grid_when_built_then_fibers_within_slip_height(self, grid):
        geometry = BackgroundGeometry.from_grid(grid)

        for fiber in geometry.fibers:
            assert 20.0 <= fiber.top < fiber.bottom <= 280.0


class TestBackgroundGenerator:

    def test_generate_when_called_then_canvas_sized_rgb(self, generator, canvas):
        image = generator.generate(canvas)

        assert image.mode == "RGB"
        assert image.size == (400, 300)

    def test_generate_when_same_seed_then_identical_pixels(self, generator, canvas):
        first = np.asarray(generator.generate(canvas, seed=3))
        second = np.asarray(generator.generate(canvas, seed=3))

        assert np.array_equal(first, second)

    def test_generate_when_other_seed_then_noise_differs_but_geometry_same(self, generator, canvas):
        first = np.asarray(generator.generate(canvas, seed=1))
        second = np.asarray(generator.generate(canvas, seed=2))

        assert not np.array_equal(first, second)
        assert generator.geometry(canvas) == generator.geometry(canvas)

    def test_generate_when_no_noise_then_slip_tone_inside_slip(self, canvas):
        image = BackgroundGenerator(noise_magnitude=0.0).generate(canvas)
        x0, y0, x1, y1 = BackgroundGeometry.from_grid(GridModel.build(canvas)).slips[0]

        # between two fibres, away from the shaded edges
        pixel = image.getpixel((int(x0) + 2, int((y0 + y1) / 2)))

        assert pixel == SLIP_TONE

    def test_save_background_when_jpeg_then_readable(self, generator, canvas, tmp_path):
        path = save_background(generator.generate(canvas), tmp_path / "out" / "test.jpg")

        with Image.open(path) as img:
            assert img.size == (400, 300)
