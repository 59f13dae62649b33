"""
Tests for vrain.controller

End-to-end runs against a small book in a temporary workspace.
"""

import shutil

import pytest
from PIL import Image
from pypdf import PdfReader

from vrain.controller import BuildConfig, BuildError, build_book, generate_background
from vrain.core.errors import ConfigError, SealWarning

BOOK_CFG = """\
title=Test
author=Anon
canvas_id=mini
row_num=4
font1=Vera.ttf
text_fonts_array=1
comment_fonts_array=1
text_font1_size=20
comment_font1_size=10
title_directory=1
title_font_size=12
title_y=250
pager_font_size=10
pager_y=120
"""

CANVAS_CFG = """\
canvas_width=400
canvas_height=300
margins_top=20
margins_bottom=20
margins_left=20
margins_right=20
leaf_col=4
leaf_center_width=40
"""


@pytest.fixture
def workspace(tmp_path, vera_font_path, sample_image):
    """books/, canvas/, fonts/ and db/ for a two-entry Latin book."""
    book_dir = tmp_path / "books" / "demo"
    (book_dir / "text").mkdir(parents=True)
    (book_dir / "book.cfg").write_text(BOOK_CFG, encoding="utf-8")
    (book_dir / "text" / "001.txt").write_text("ABCDEFGHIJKLMNOPQRS\n", encoding="utf-8")
    (book_dir / "text" / "002.txt").write_text("XYZ\n", encoding="utf-8")
    (book_dir / "yins").mkdir()
    shutil.copy(sample_image, book_dir / "yins" / "stamp.png")
    (book_dir / "yins.cfg").write_text(
        "*|1,1,1,2|stamp.png\n*|1,1,1,1|missing.png\n", encoding="utf-8",
    )

    (tmp_path / "canvas").mkdir()
    (tmp_path / "canvas" / "mini.cfg").write_text(CANVAS_CFG, encoding="utf-8")
    (tmp_path / "fonts").mkdir()
    shutil.copy(vera_font_path, tmp_path / "fonts" / "Vera.ttf")
    (tmp_path / "db").mkdir()
    numerals = "\n".join(f"{i}|{'〇一二三四五六七八九'[i % 10]}" for i in range(10))
    (tmp_path / "db" / "num2zh_jid.txt").write_text(numerals, encoding="utf-8")
    return tmp_path


def _config(workspace, **overrides):
    params = dict(
        book_id="demo",
        books_dir=workspace / "books",
        canvas_dir=workspace / "canvas",
        fonts_dir=workspace / "fonts",
        db_dir=workspace / "db",
        from_entry=1,
        to_entry=2,
    )
    params.update(overrides)
    return BuildConfig(**params)


class TestBuildConfig:

    def test_output_name_when_range_then_book_title_and_entries(self):
        config = BuildConfig(book_id="01", from_entry=1, to_entry=3)

        assert config.output_name("史記") == "《史記》文本1至3"

    def test_last_entry_when_to_missing_then_from_entry(self):
        assert BuildConfig(book_id="01", from_entry=4).last_entry == 4

    @pytest.mark.parametrize("kwargs", [
        {"book_id": ""},
        {"book_id": "01", "from_entry": 3, "to_entry": 1},
        {"book_id": "01", "test_pages": 0},
        {"book_id": "01", "workers": 0},
    ])
    def test_build_config_when_invalid_then_config_error(self, kwargs):
        with pytest.raises(ConfigError):
            BuildConfig(**kwargs)


class TestBuildBook:

    def test_build_book_when_valid_workspace_then_pdf_written(self, workspace):
        # Act
        result = build_book(_config(workspace))

        # Assert
        assert result.pdf_path.name == "《Test》文本1至2.pdf"
        assert result.pdf_path.exists()
        assert result.page_count == 3
        reader = PdfReader(str(result.pdf_path))
        assert len(reader.pages) == 1 + 3
        assert [entry.title for entry in reader.outline] == ["Test", "Test"]
        assert result.compressed_path is None

    def test_build_book_when_seal_rules_then_placed_and_bad_rule_warned(self, workspace):
        result = build_book(_config(workspace))

        assert result.metadata["seal_count"] == 1
        seal_warnings = [w for w in result.warnings if isinstance(w, SealWarning)]
        assert len(seal_warnings) == 1
        assert seal_warnings[0].line_number == 2

    def test_build_book_when_empty_page_break_then_seal_follows_printed_number(self, workspace):
        # Arrange
        book_dir = workspace / "books" / "demo"
        (book_dir / "text" / "001.txt").write_text("AB%%CD\n", encoding="utf-8")
        (book_dir / "yins.cfg").write_text("*|3,1,1,1|stamp.png\n", encoding="utf-8")

        # Act
        result = build_book(_config(workspace, to_entry=1))

        # Assert
        assert [page.number for page in result.plan.pages] == [1, 3]
        assert result.page_count == 2
        assert result.metadata["seal_count"] == 1
        assert not [w for w in result.warnings if isinstance(w, SealWarning)]

    def test_build_book_when_finished_then_metadata_summarises_run(self, workspace):
        result = build_book(_config(workspace))

        metadata = result.metadata
        assert metadata["book_id"] == "demo"
        assert metadata["entries"] == [1, 2]
        # padding spaces are placed glyphs too
        assert metadata["glyph_count"] == 20 + 4
        assert metadata["background"] == "generated"
        assert metadata["cover"] == "generated"
        assert metadata["warnings"] == {"SealWarning": 1}

    def test_build_book_when_test_pages_then_truncated(self, workspace):
        result = build_book(_config(workspace, test_pages=1))

        assert result.page_count == 1
        assert len(PdfReader(str(result.pdf_path)).pages) == 2

    def test_build_book_when_cover_and_background_images_then_used(self, workspace):
        Image.new("RGB", (40, 30), (240, 230, 200)).save(workspace / "canvas" / "mini.png")
        Image.new("RGB", (20, 40), (10, 10, 10)).save(workspace / "books" / "demo" / "cover.jpg")

        result = build_book(_config(workspace))

        assert result.metadata["cover"] == "image"
        assert result.metadata["background"].endswith("mini.png")

    def test_build_book_when_compress_then_compressed_copy(self, workspace):
        result = build_book(_config(workspace, compress=True))

        assert result.compressed_path is not None
        assert result.compressed_path.name == "《Test》文本1至2_compressed.pdf"

    def test_build_book_when_debug_plan_then_json_written(self, workspace):
        target = workspace / "plan.json"

        build_book(_config(workspace, debug_plan=target))

        assert '"output_name": "《Test》文本1至2"' in target.read_text(encoding="utf-8")

    def test_build_book_when_book_missing_then_build_error(self, workspace):
        with pytest.raises(BuildError, match="Book directory not found"):
            build_book(_config(workspace, book_id="nope"))

    def test_build_book_when_entry_missing_then_build_error(self, workspace):
        with pytest.raises(BuildError, match="Text entry 5"):
            build_book(_config(workspace, from_entry=5, to_entry=5))


class TestGenerateBackground:

    def test_generate_background_when_default_target_then_canvas_jpg(self, workspace):
        path = generate_background(_config(workspace, generate_bg=True))

        assert path == workspace / "canvas" / "mini.jpg"
        with Image.open(path) as img:
            assert img.size == (400, 300)

    def test_generate_background_when_output_given_then_written_there(self, workspace):
        target = workspace / "out" / "bg.png"

        assert generate_background(_config(workspace, bg_output=target)) == target
        assert target.exists()
