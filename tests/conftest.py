import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import vrain
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from vrain.config.book import BookConfig, FontMapping, FontSlot  # noqa: E402
from vrain.config.canvas import CanvasConfig  # noqa: E402
from vrain.grid.model import GridModel  # noqa: E402
from vrain.typeset.classifier import GlyphClassifier  # noqa: E402
from vrain.typeset.engine import LayoutEngine  # noqa: E402
from vrain.typeset.fonts import GlyphMetrics  # noqa: E402
from vrain.typeset.numerals import NumeralMap  # noqa: E402

CHINESE_DIGITS = "〇一二三四五六七八九"


class StubFonts:
    """Font capability that knows every character except ``missing``."""

    def __init__(self, missing=None):
        # slot -> set of characters the slot cannot draw
        self.missing = missing or {}

    def has_glyph(self, char, slot):
        return char not in self.missing.get(slot, set())

    def advance_metrics(self, char, slot, size):
        return GlyphMetrics(advance=size, height=size)


class StubVariants:
    """Script variants from a fixed table."""

    def __init__(self, table):
        self.table = table

    def alternates(self, char):
        return list(self.table.get(char, ()))


def chinese_number(value):
    return "".join(CHINESE_DIGITS[int(d)] for d in str(value))


# Common test fixtures
@pytest.fixture
def numerals():
    """Numeral table for 0-199."""
    return NumeralMap({i: chinese_number(i) for i in range(200)})


@pytest.fixture
def make_book():
    """Factory for BookConfig with small, test-friendly defaults."""
    def _create(**overrides):
        params = dict(
            title="測試",
            author="佚名",
            canvas_id="test",
            row_num=4,
            fonts=FontMapping(
                slots=(FontSlot(1, "main.ttf", text_size=20.0, comment_size=10.0),),
                text_stack=(1,),
                comment_stack=(1,),
            ),
        )
        params.update(overrides)
        return BookConfig(**params)
    return _create


@pytest.fixture
def make_canvas():
    """
    Factory for CanvasConfig.

    Defaults give 4 columns of 80 x 65 with a 40 wide centre fold.
    """
    def _create(**overrides):
        params = dict(
            canvas_width=400.0,
            canvas_height=300.0,
            columns=4,
            row_num=4,
            margins_top=20.0,
            margins_bottom=20.0,
            margins_left=20.0,
            margins_right=20.0,
            leaf_center_width=40.0,
            canvas_id="test",
        )
        params.update(overrides)
        return CanvasConfig(**params)
    return _create


@pytest.fixture
def book(make_book):
    return make_book()


@pytest.fixture
def canvas(make_canvas):
    return make_canvas()


@pytest.fixture
def grid(canvas):
    return GridModel.build(canvas)


@pytest.fixture
def stub_fonts():
    return StubFonts()


@pytest.fixture
def make_engine(book, grid, numerals):
    """Factory for LayoutEngine; every argument can be replaced."""
    def _create(book=book, grid=grid, fonts=None, variants=None, warnings=None):
        return LayoutEngine(
            book,
            grid,
            GlyphClassifier.from_book(book),
            fonts or StubFonts(),
            numerals,
            variants=variants,
            warnings=warnings,
        )
    return _create


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def vera_font_path():
    """TrueType font bundled with ReportLab (Latin only)."""
    import reportlab
    path = Path(reportlab.__file__).resolve().parent / "fonts" / "Vera.ttf"
    if not path.exists():
        pytest.skip("ReportLab Vera.ttf not available")
    return path


@pytest.fixture
def sample_image(tmp_path: Path):
    """Create a simple RGBA stamp image (wider than tall)."""
    img = Image.new("RGBA", (200, 100), color=(200, 30, 30, 255))
    img_path = tmp_path / "stamp.png"
    img.save(img_path)
    return img_path


@pytest.fixture
def missing_glyph_fonts():
    """Factory: fonts lacking the given characters, keyed by slot."""
    return StubFonts


@pytest.fixture
def variant_table():
    """Factory: script variants from a {char: [alternates]} table."""
    return StubVariants
