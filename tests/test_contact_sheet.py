"""Tests for contact sheet composition and dark/light pairing.

Run: pytest tests/test_contact_sheet.py -v
"""

import pytest

from themeshot.rendering.contact_sheet import (
    BORDER_COLOR,
    PLACEHOLDER_COLOR,
    ContactSheetComposer,
    SheetLayout,
    family_of,
    pair_themes,
)
from themeshot.theming.colorset import ThemeDescriptor


@pytest.fixture
def layout():
    return SheetLayout(thumb_width=40, thumb_height=26, padding=8, label_height=20, columns=3)


@pytest.fixture
def composer(layout, renderer):
    return ContactSheetComposer(layout, fonts=renderer.fonts)


def descriptors(*specs):
    return [ThemeDescriptor(slug, slug.replace("-", " ").title(), dark) for slug, dark in specs]


class TestPairing:
    @pytest.mark.parametrize(
        "slug, family",
        [
            ("ocean-dark", "ocean"),
            ("ocean-light", "ocean"),
            ("ocean-reversed", "ocean"),
            ("ocean", "ocean"),
            ("light-dark-light", "light-dark"),
        ],
    )
    def test_family_of(self, slug, family):
        assert family_of(slug) == family

    def test_pairs_dark_with_light(self):
        themes = descriptors(("ocean-dark", True), ("ocean-light", False), ("desert", True))
        pairs = pair_themes(themes)
        assert [(p.dark.slug, p.light.slug) for p in pairs] == [("ocean-dark", "ocean-light")]
        assert pairs[0].label == "Ocean Dark  vs  Ocean Light"

    def test_single_dark_family_excluded(self):
        themes = descriptors(("ocean-dark", True), ("ocean-light", False), ("forest-dark", True))
        pairs = pair_themes(themes)
        assert len(pairs) == 1
        assert "forest-dark" not in {p.dark.slug for p in pairs} | {p.light.slug for p in pairs}

    def test_first_dark_last_light(self):
        themes = descriptors(
            ("forest", True),
            ("forest-light", False),
            ("forest-dark", True),
            ("forest-reversed", False),
        )
        (pair,) = pair_themes(themes)
        assert pair.dark.slug == "forest"
        assert pair.light.slug == "forest-reversed"

    def test_single_mode_family_skipped(self):
        assert pair_themes(descriptors(("a-dark", True), ("a", True))) == []

    def test_family_order_follows_catalog(self):
        themes = descriptors(("b-light", False), ("a-dark", True), ("b-dark", True), ("a-light", False))
        assert [p.family for p in pair_themes(themes)] == ["b", "a"]


class TestGrid:
    def test_size_formula(self, composer, layout, solid_image):
        images = [solid_image(slug=f"t{i}") for i in range(5)]
        grid = composer.build_grid(images, [f"T{i}" for i in range(5)])
        # 3 columns, 2 rows
        assert grid.width == 3 * (40 + 8) + 8
        assert grid.height == 2 * (26 + 20 + 8) + 8
        assert grid.slug == ""

    def test_columns_override(self, composer, solid_image):
        grid = composer.build_grid([solid_image()] * 4, ["a", "b", "c", "d"], columns=1)
        assert grid.width == 40 + 2 * 8
        assert grid.height == 4 * (26 + 20 + 8) + 8

    def test_placeholder_for_missing(self, composer):
        grid = composer.build_grid([None], ["Missing Theme"])
        assert tuple(grid.pixels[8 + 20 + 5, 8 + 2]) == (*PLACEHOLDER_COLOR, 255)

    def test_thumbnail_and_border(self, composer, solid_image):
        grid = composer.build_grid([solid_image((10, 200, 30, 255))], ["Solid"])
        thumb_y = 8 + 20
        assert tuple(grid.pixels[thumb_y + 13, 8 + 20]) == (10, 200, 30, 255)
        assert tuple(grid.pixels[thumb_y, 8 + 20]) == (*BORDER_COLOR, 255)

    def test_empty_rejected(self, composer):
        with pytest.raises(ValueError):
            composer.build_grid([], [])

    def test_label_count_mismatch(self, composer, solid_image):
        with pytest.raises(ValueError):
            composer.build_grid([solid_image()], ["a", "b"])

    def test_zero_columns(self, composer, solid_image):
        with pytest.raises(ValueError):
            composer.build_grid([solid_image()], ["a"], columns=0)


class TestPairStrip:
    def test_strip_size(self, composer, solid_image):
        themes = descriptors(("ocean-dark", True), ("ocean-light", False))
        pairs = pair_themes(themes)
        images = {d.slug: solid_image(slug=d.slug) for d in themes}
        strip = composer.build_pair_strip(pairs, images)
        assert strip.width == 2 * 40 + 3 * 8
        assert strip.height == 1 * (26 + 20 + 8) + 8

    def test_dark_left_light_right(self, composer, solid_image):
        themes = descriptors(("ocean-light", False), ("ocean-dark", True))
        images = {
            "ocean-dark": solid_image((0, 0, 0, 255), slug="ocean-dark"),
            "ocean-light": solid_image((250, 250, 250, 255), slug="ocean-light"),
        }
        strip = composer.build_pair_strip(pair_themes(themes), images)
        y = 8 + 20 + 13
        assert tuple(strip.pixels[y, 8 + 20][:3]) == (0, 0, 0)
        assert tuple(strip.pixels[y, 8 + 40 + 8 + 20][:3]) == (250, 250, 250)

    def test_missing_image_leaves_slot_empty(self, composer, solid_image):
        themes = descriptors(("ocean-dark", True), ("ocean-light", False))
        strip = composer.build_pair_strip(pair_themes(themes), {"ocean-dark": solid_image(slug="ocean-dark")})
        y = 8 + 20 + 13
        assert tuple(strip.pixels[y, 8 + 40 + 8 + 20][:3]) == (0x22, 0x22, 0x22)

    def test_no_pairs(self, composer):
        assert composer.build_pair_strip([], {}) is None
