import io

import pytest

from integdev.importbeats.svg import SvgError, svg_decode_config, svg_parse_to_pixels


def test_width_and_height_attributes():
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="32" height="48"></svg>'
    assert svg_decode_config(svg) == (32, 48)


def test_view_box_with_four_values():
    svg = '<svg viewBox="0 0 64 32"></svg>'
    assert svg_decode_config(svg) == (64, 32)


def test_view_box_with_two_values_from_file_object():
    svg = io.BytesIO(b'<svg viewBox="20 10"></svg>')
    assert svg_decode_config(svg) == (20, 10)


def test_zero_size_falls_back_to_view_box():
    svg = '<svg width="0" height="0" viewBox="0 0 16 24"></svg>'
    assert svg_decode_config(svg) == (16, 24)


def test_points_are_scaled():
    assert svg_parse_to_pixels("12pt") == pytest.approx(16.0)


def test_plain_number_is_unchanged():
    assert svg_parse_to_pixels("25") == 25.0


def test_pixel_unit_is_not_understood():
    with pytest.raises(SvgError):
        svg_parse_to_pixels("100px")


def test_missing_size_information():
    with pytest.raises(SvgError):
        svg_decode_config("<svg></svg>")


def test_invalid_xml():
    with pytest.raises(SvgError):
        svg_decode_config("<svg")