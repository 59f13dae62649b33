"""
Tests for vrain.core (Rect geometry and the warning log)
"""

import logging

import pytest

from vrain.core.errors import BandSkipWarning, RunWarning, SealWarning, WarningLog
from vrain.core.models import CoverKind, DocumentPlan, PageLayout, Rect, SealRule


class TestRect:

    def test_overlaps_when_edges_shared_then_false(self):
        assert not Rect(0, 0, 10, 10).overlaps(Rect(10, 0, 10, 10))
        assert Rect(0, 0, 10, 10).overlaps(Rect(5, 5, 10, 10))

    def test_union_when_disjoint_then_bounding_box(self):
        assert Rect(0, 0, 10, 10).union(Rect(20, 5, 5, 10)) == Rect(0, 0, 25, 15)

    def test_contains_when_inside_then_true(self):
        outer = Rect(0, 0, 100, 100)

        assert outer.contains(Rect(10, 10, 20, 20))
        assert not outer.contains(Rect(90, 90, 20, 20))


class TestWarningLog:

    def test_record_when_warning_then_logged_and_kept_in_order(self, caplog):
        log = WarningLog()

        with caplog.at_level(logging.WARNING):
            log.record(SealWarning("bad span", rule="x|1,1,1,0|a.png"))
            log.record(BandSkipWarning("ignored", page_index=2))

        assert [w.kind for w in log] == ["SealWarning", "BandSkipWarning"]
        assert "SealWarning: bad span" in caplog.text

    def test_of_type_when_mixed_then_filtered(self):
        log = WarningLog()
        log.extend([RunWarning("a"), SealWarning("b"), SealWarning("c")])

        assert len(log.of_type(SealWarning)) == 2
        assert len(log.of_type(RunWarning)) == 3

    def test_clear_when_called_then_empty(self):
        log = WarningLog()
        log.record(RunWarning("a"))

        log.clear()

        assert len(log) == 0
        assert log.as_tuple() == ()


class TestSealRule:

    @pytest.mark.parametrize("pattern,name,expected", [
        ("*", "anything", True),
        ("book", "book", True),
        ("book", "other", False),
    ])
    def test_matches_when_pattern_then_wildcard_or_exact(self, pattern, name, expected):
        rule = SealRule(pattern, 1, 1, 1, 1, "a.png")

        assert rule.matches(name) is expected

    def test_str_when_rule_then_config_line(self):
        assert str(SealRule("book", 2, 3, 1, 4, "chop.png")) == "book|2,3,1,4|chop.png"


class TestDocumentPlan:

    def test_last_page_number_when_numbers_skip_then_highest_number(self):
        pages = (PageLayout(0, 1, "", "一"), PageLayout(2, 3, "", "三"))

        plan = DocumentPlan(CoverKind.GENERATED, pages)

        assert plan.page_count == 2
        assert plan.last_page_number == 3

    def test_last_page_number_when_no_pages_then_zero(self):
        assert DocumentPlan(CoverKind.GENERATED, ()).last_page_number == 0
