"""Unit tests for page dimensions and image placement."""

import pytest

from pagebinder.pdf.geometry import (
    PRINT_MARGIN_MM,
    Orientation,
    PageDimensions,
    PageSize,
    dimensions_for,
    mm_to_pt,
    placement_for,
    printable_area,
)


class TestDimensionsFor:
    def test_a4_portrait(self):
        assert dimensions_for(PageSize.A4, Orientation.PORTRAIT) == PageDimensions(210, 297)

    def test_letter_portrait(self):
        assert dimensions_for(PageSize.LETTER, Orientation.PORTRAIT) == PageDimensions(216, 279)

    def test_a3_portrait(self):
        assert dimensions_for(PageSize.A3, Orientation.PORTRAIT) == PageDimensions(297, 420)

    @pytest.mark.parametrize("size", list(PageSize))
    def test_landscape_is_exact_swap(self, size):
        portrait = dimensions_for(size, Orientation.PORTRAIT)
        landscape = dimensions_for(size, Orientation.LANDSCAPE)
        assert (landscape.width, landscape.height) == (portrait.height, portrait.width)

    def test_accepts_plain_strings(self):
        assert dimensions_for("A3", "landscape") == PageDimensions(420, 297)

    def test_unknown_size_falls_back_to_a4(self):
        assert dimensions_for("B5", "portrait") == dimensions_for(PageSize.A4, Orientation.PORTRAIT)

    def test_unknown_size_landscape_falls_back_to_a4_landscape(self):
        assert dimensions_for("Tabloid", "landscape") == PageDimensions(297, 210)

    def test_unknown_orientation_is_portrait(self):
        assert dimensions_for("A4", "sideways") == PageDimensions(210, 297)


class TestPlacementFor:
    a4 = PageDimensions(210, 297)

    def test_printable_area(self):
        assert printable_area(self.a4) == PageDimensions(200, 287)

    def test_anchored_at_margin(self):
        p = placement_for(self.a4, PRINT_MARGIN_MM, 1.0)
        assert (p.x, p.y) == (5, 5)

    def test_wide_image_fills_printable_width(self):
        p = placement_for(self.a4, 5, 2.0)
        assert p.width == 200
        assert p.height == pytest.approx(100)

    def test_square_image(self):
        p = placement_for(self.a4, 5, 1.0)
        assert p.width == 200
        assert p.height == pytest.approx(200)

    def test_tall_image_clamped_to_printable_height(self):
        p = placement_for(self.a4, 5, 0.5)
        assert p.height == pytest.approx(287)
        assert p.width == pytest.approx(143.5)

    def test_aspect_ratio_preserved_after_clamp(self):
        p = placement_for(self.a4, 5, 0.25)
        assert p.width / p.height == pytest.approx(0.25)

    @pytest.mark.parametrize("aspect", [0.75, 1.0, 1.5, 3.0, 10.0])
    def test_wider_than_printable_uses_full_width(self, aspect):
        area = printable_area(self.a4)
        assert aspect > area.aspect
        p = placement_for(self.a4, 5, aspect)
        assert p.width == pytest.approx(area.width)
        assert p.height <= area.height

    def test_landscape_page(self):
        page = dimensions_for("A4", "landscape")
        p = placement_for(page, 5, 1.0)
        assert p.height == pytest.approx(200)
        assert p.width == pytest.approx(200)

    def test_unknown_aspect_uses_page_aspect(self):
        """
        Without source dimensions the page's own aspect is used, so a
        non-matching image gets stretched to the page shape.
        """
        p = placement_for(self.a4, 5, None)
        assert p.width == 200
        assert p.width / p.height == pytest.approx(self.a4.aspect)

    def test_zero_aspect_treated_as_unknown(self):
        assert placement_for(self.a4, 5, 0) == placement_for(self.a4, 5, None)


def test_mm_to_pt():
    assert mm_to_pt(25.4) == pytest.approx(72)
    assert mm_to_pt(210) == pytest.approx(595.28, abs=0.01)
