"""Tests for hex color parsing and WCAG contrast.

Run: pytest tests/test_color.py -v
"""

import pytest

from themeshot.utils.color import (
    Color,
    InvalidColorFormat,
    contrast_ratio,
    looks_like_color,
    parse_color,
    relative_luminance,
)


class TestParseColor:
    def test_six_digits_opaque(self):
        """#RRGGBB parses to an opaque color."""
        assert parse_color("#1E1E2E") == Color(30, 30, 46, 255)

    def test_eight_digits_rgba_order(self):
        """Last two digits of an 8-digit value are alpha."""
        c = parse_color("#ff000080")
        assert c.rgb == (255, 0, 0)
        assert c.a == 128

    def test_hash_optional(self):
        assert parse_color("abcdef") == parse_color("#abcdef")

    def test_case_insensitive(self):
        assert parse_color("#ABCDEF") == parse_color("#abcdef")

    @pytest.mark.parametrize("value", ["#ABC", "#fff", "#12345", "#1234567", "#123456789", "", "#"])
    def test_wrong_length_rejected(self, value):
        with pytest.raises(InvalidColorFormat):
            parse_color(value)

    @pytest.mark.parametrize("value", ["#ZZZZZZ", "#gg0000", "#12345z", "#12 456"])
    def test_non_hex_rejected(self, value):
        with pytest.raises(InvalidColorFormat):
            parse_color(value)

    def test_non_string_rejected(self):
        with pytest.raises(InvalidColorFormat):
            parse_color(0xFFFFFF)

    def test_invalid_format_is_value_error(self):
        """Callers catching ValueError still see parse failures."""
        with pytest.raises(ValueError):
            parse_color("nope")

    def test_hex_roundtrip_lowercase(self):
        assert parse_color("#ABCDEF").hex == "#abcdef"
        assert parse_color("#ABCDEF80").hex == "#abcdef80"


class TestLooksLikeColor:
    def test_hash_prefixed_counts_even_if_malformed(self):
        assert looks_like_color("#zz")

    def test_bare_hex(self):
        assert looks_like_color("a1b2c3")
        assert not looks_like_color("a1b2c")

    def test_non_strings(self):
        assert not looks_like_color(6)
        assert not looks_like_color(None)

    def test_font_name_is_not_color(self):
        assert not looks_like_color("JetBrains Mono")


class TestContrast:
    def test_black_white_is_21(self):
        assert contrast_ratio("#000000", "#FFFFFF") == pytest.approx(21.0)

    def test_identical_is_1(self):
        assert contrast_ratio("#abcdef", "abcdef") == pytest.approx(1.0)

    def test_symmetric(self):
        a, b = "#1e1e2e", "#cdd6f4"
        assert contrast_ratio(a, b) == pytest.approx(contrast_ratio(b, a))

    def test_alpha_ignored(self):
        assert contrast_ratio("#00000000", "#ffffff") == pytest.approx(21.0)

    def test_luminance_bounds(self):
        assert relative_luminance("#000000") == pytest.approx(0.0)
        assert relative_luminance("#ffffff") == pytest.approx(1.0)

    def test_accepts_parsed_colors(self):
        assert contrast_ratio(Color(0, 0, 0), Color(255, 255, 255)) == pytest.approx(21.0)

    def test_mid_gray_against_black(self):
        """#777777 on white sits just under the 4.5 AA threshold."""
        assert 4.4 < contrast_ratio("#777777", "#ffffff") < 4.5
