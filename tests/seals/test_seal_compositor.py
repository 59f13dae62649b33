"""
Tests for vrain.seals.compositor

Test Coverage:
- Rule parsing and yins.cfg loading
- Target rectangles and stamp fitting
- Name matching, including the * wildcard
- Bad rules become SealWarnings instead of errors
"""

import pytest

from vrain.core.errors import SealWarning, WarningLog
from vrain.core.models import Rect, SealRule, StampAsset
from vrain.grid.model import GridModel
from vrain.seals import (
    SealCompositor,
    SealRuleError,
    StampCache,
    fit_box,
    load_seal_lines,
    parse_seal_rule,
    resolve,
)

OUTPUT = "《測試》文本1至1"


@pytest.fixture
def stamps(sample_image):
    return StampCache(sample_image.parent)


@pytest.fixture
def compositor(grid, stamps):
    return SealCompositor(grid, stamps, WarningLog())


class TestParseSealRule:

    def test_parse_seal_rule_when_valid_then_fields(self):
        rule = parse_seal_rule(" book | 2,3,1,4 | chop.png ", line_number=7)

        assert rule == SealRule("book", 2, 3, 1, 4, "chop.png", 7)

    @pytest.mark.parametrize("line", [
        "book|2,3,1|chop.png",
        "book|2,3,1,4",
        "book|a,3,1,4|chop.png",
        "|2,3,1,4|chop.png",
    ])
    def test_parse_seal_rule_when_malformed_then_seal_rule_error(self, line):
        with pytest.raises(SealRuleError):
            parse_seal_rule(line)

    def test_load_seal_lines_when_comments_then_skipped_with_line_numbers(self, tmp_path):
        path = tmp_path / "yins.cfg"
        path.write_text("# seals\n\n*|1,1,1,1|a.png\nbook|2,1,1,1|b.png\n", encoding="utf-8")

        assert load_seal_lines(path) == [(3, "*|1,1,1,1|a.png"), (4, "book|2,1,1,1|b.png")]

    def test_load_seal_lines_when_file_missing_then_empty(self, tmp_path):
        assert load_seal_lines(tmp_path / "yins.cfg") == []


class TestFitBox:

    def test_fit_box_when_target_wide_then_height_fit_and_centred(self, sample_image):
        stamp = StampCache(sample_image.parent).get("stamp.png")

        box = fit_box(Rect(220.0, 215.0, 160.0, 65.0), stamp)

        assert box.height == pytest.approx(65.0)
        assert box.width == pytest.approx(130.0)
        assert box.x == pytest.approx(235.0)
        assert box.y == pytest.approx(215.0)

    def test_fit_box_when_target_narrow_then_clamped_to_width(self, sample_image):
        stamp = StampCache(sample_image.parent).get("stamp.png")

        box = fit_box(Rect(300.0, 215.0, 80.0, 65.0), stamp)

        assert box.width == pytest.approx(80.0)
        assert box.height == pytest.approx(40.0)
        assert box.y == pytest.approx(227.5)


class TestSealCompositor:

    def test_resolve_when_rule_matches_then_placement_on_page(self, compositor):
        # Act
        overlays = compositor.resolve([f"{OUTPUT}|2,1,1,2|stamp.png"], OUTPUT, page_count=5)

        # Assert
        assert list(overlays) == [1]
        placement = overlays[1][0]
        assert placement.target == Rect(220.0, 215.0, 160.0, 65.0)
        assert isinstance(placement.stamp, StampAsset)
        assert not compositor.warnings

    def test_resolve_when_target_spans_columns_then_union_of_cells(self, make_canvas, stamps):
        grid = GridModel.build(make_canvas(columns=8, canvas_width=800.0))
        compositor = SealCompositor(grid, stamps)

        placement = compositor.resolve(["*|1,2,3,4|stamp.png"], OUTPUT, page_count=1)[0][0]

        expected = grid.cell_rect(0, 1, 2)
        for column in (2, 3, 4):
            expected = expected.union(grid.cell_rect(0, column, 2))
        assert placement.target == expected

    def test_resolve_when_wildcard_then_applies_to_any_output(self, compositor):
        overlays = compositor.resolve(["*|1,1,1,1|stamp.png"], "anything", page_count=1)

        assert len(overlays[0]) == 1

    def test_resolve_when_other_output_then_ignored_without_warning(self, compositor):
        overlays = compositor.resolve(["other|1,1,1,1|stamp.png", "other|x|y"], OUTPUT, page_count=1)

        assert overlays == {}
        assert not compositor.warnings

    @pytest.mark.parametrize("line,fragment", [
        ("*|1,1,1,0|stamp.png", "span"),
        ("*|9,1,1,1|stamp.png", "outside 1..5"),
        ("*|1,5,1,1|stamp.png", "outside the grid"),
        ("*|1,1,1,1|missing.png", "not found"),
        ("*|one,1,1,1|stamp.png", "Non-numeric"),
    ])
    def test_resolve_when_rule_invalid_then_seal_warning(self, compositor, line, fragment):
        overlays = compositor.resolve([(3, line)], OUTPUT, page_count=5)

        assert overlays == {}
        warnings = compositor.warnings.of_type(SealWarning)
        assert len(warnings) == 1
        assert fragment in warnings[0].message
        assert warnings[0].line_number == 3

    def test_resolve_when_several_rules_then_kept_in_rule_order(self, grid, stamps):
        log = WarningLog()
        rules = ["*|1,1,1,1|stamp.png", "*|1,2,1,1|stamp.png", "*|2,1,1,1|stamp.png"]

        overlays = resolve(rules, OUTPUT, 2, grid, stamps, log)

        assert [p.rule.start_column for p in overlays[0]] == [1, 2]
        assert len(overlays[1]) == 1
        assert len(log) == 0

    def test_stamp_cache_when_same_file_then_loaded_once(self, stamps):
        assert stamps.get("stamp.png") is stamps.get("stamp.png")

    def test_stamp_cache_when_not_an_image_then_none(self, tmp_path):
        (tmp_path / "bad.png").write_bytes(b"not an image")

        assert StampCache(tmp_path).get("bad.png") is None
