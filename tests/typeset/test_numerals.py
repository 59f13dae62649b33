"""
Tests for vrain.typeset.numerals
"""

import pytest

from vrain.core.errors import ConfigError, NumberMappingError
from vrain.typeset.numerals import NumeralMap


class TestNumeralMap:

    def test_from_lines_when_table_then_pairs_parsed(self):
        numerals = NumeralMap.from_lines(["# header", "1|一", "", "12 | 十二", "bad line", "x|叉"])

        assert numerals.to_chinese_numeral(1) == "一"
        assert numerals.to_chinese_numeral(12) == "十二"
        assert len(numerals) == 2

    def test_to_chinese_numeral_when_missing_then_number_mapping_error(self, numerals):
        with pytest.raises(NumberMappingError) as exc_info:
            numerals.to_chinese_numeral(500)

        assert exc_info.value.value == 500

    def test_to_chinese_numeral_when_negative_then_number_mapping_error(self, numerals):
        with pytest.raises(NumberMappingError):
            numerals.to_chinese_numeral(-1)

    def test_load_when_file_exists_then_loaded(self, tmp_path):
        path = tmp_path / "num2zh_jid.txt"
        path.write_text("0|〇\n1|一\n2|二\n", encoding="utf-8")

        numerals = NumeralMap.load(path)

        assert 2 in numerals
        assert numerals[0] == "〇"

    def test_load_when_file_missing_then_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            NumeralMap.load(tmp_path / "missing.txt")
