"""Unit tests for line item text normalization

Tests cover:
- Abbreviation expansion on whole-token boundaries
- Symbol conjunctions and separator handling
- Empty input
- Idempotence
"""

import pytest

from quotematch.matching.normalizer import normalize_text


SAMPLES = [
    "GR. 8 HX HD CAP SCR 5/16-18X2-1/2",
    "Washer & Nut w/ Lock",
    "SS Hex Nut 3/8-16",
    "St Steel Bolt",
    "Zinc Pl Washer",
    "hx-bolt",
    "hx..",
    "Bolt -- 1/2 // 3",
    "Café Screw™",
    "  ALUM  FLG   NUT  ",
    "w//x",
    "BOLT W/SS WASHER",
    "w/hx",
    "nut w/zp finish",
    "w/w/ss",
    "gr.8",
    "",
]


class TestAbbreviations:
    """Test shorthand expansion"""

    def test_fastener_line_item(self):
        assert normalize_text("GR. 8 HX HD CAP SCR 5/16-18X2-1/2") == "grade 8 hex head cap screw 5/16 18x2 1/2"

    def test_material_abbreviations(self):
        assert normalize_text("SS Hex Nut") == "stainless steel hex nut"
        assert normalize_text("SST washer") == "stainless steel washer"
        assert normalize_text("ALUM FLG NUT") == "aluminum flange nut"
        assert normalize_text("GALV THD ROD") == "galvanized thread rod"

    def test_multi_word_fixes(self):
        assert normalize_text("St Steel Bolt") == "stainless steel bolt"
        assert normalize_text("Stainless St Bolt") == "stainless steel bolt"
        assert normalize_text("Zinc Pl Washer") == "zinc plated washer"
        assert normalize_text("ZP washer") == "zinc plated washer"

    def test_abbreviation_inside_token_not_expanded(self):
        assert normalize_text("hxx bolt") == "hxx bolt"
        assert normalize_text("ss316") == "ss316"
        assert normalize_text("shd") == "shd"

    def test_abbreviation_next_to_punctuation_expanded(self):
        assert normalize_text("hx-bolt") == "hex bolt"
        assert normalize_text("(scr)") == "screw"


class TestSymbolsAndSeparators:
    """Test conjunctions, separators and disallowed characters"""

    def test_conjunctions(self):
        assert normalize_text("Washer & Nut w/ Lock") == "washer and nut with lock"

    def test_w_slash_only_at_token_start(self):
        assert normalize_text("screw w/nut") == "screw with nut"
        assert normalize_text("aw/b") == "aw/b"

    def test_abbreviation_after_w_slash_expanded(self):
        assert normalize_text("BOLT W/SS WASHER") == "bolt with stainless steel washer"
        assert normalize_text("w/hx") == "with hex"
        assert normalize_text("nut w/zp finish") == "nut with zinc plated finish"
        assert normalize_text("w/w/ss") == "with with stainless steel"

    def test_repeated_separators_collapse(self):
        assert normalize_text("Bolt -- 1/2 // 3") == "bolt 1/2 / 3"
        assert normalize_text("hx..") == "hex"

    def test_disallowed_characters_become_spaces(self):
        assert normalize_text("Café Screw™") == "caf screw"
        assert normalize_text("M8_bolt#2") == "m8 bolt 2"


class TestEmptyInput:
    """Test None and blank input"""

    @pytest.mark.parametrize("raw", [None, "", "   ", "###", "\t\n"])
    def test_empty_or_symbol_only(self, raw):
        assert normalize_text(raw) == ""


class TestIdempotence:
    """normalize_text(normalize_text(x)) == normalize_text(x)"""

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_idempotent(self, raw):
        once = normalize_text(raw)
        assert normalize_text(once) == once
