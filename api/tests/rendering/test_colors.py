"""Tests for name colour parsing."""

import logging

import pytest

from rendering.colors import FALLBACK_RGB, css_hex, parse_rgb

pytestmark = pytest.mark.unit


class TestParseRgb:
    @pytest.mark.parametrize(
        ("color", "rgb"),
        [
            ("#1a365d", (26, 54, 93)),
            ("#fff", (255, 255, 255)),
            ("rgb(10, 20, 30)", (10, 20, 30)),
            ("navy", (0, 0, 128)),
            ("  #000000  ", (0, 0, 0)),
        ],
    )
    def test_valid_colors(self, color, rgb):
        assert parse_rgb(color) == rgb

    def test_alpha_is_dropped(self):
        assert parse_rgb("#11223344") == (17, 34, 51)

    @pytest.mark.parametrize("color", ["not-a-color", "", None])
    def test_unparseable_falls_back_to_black(self, color, caplog):
        with caplog.at_level(logging.WARNING, logger="rendering.colors"):
            assert parse_rgb(color) == FALLBACK_RGB


class TestCssHex:
    def test_normalizes_to_hex(self):
        assert css_hex("rgb(26, 54, 93)") == "#1a365d"

    def test_unparseable_is_black(self):
        assert css_hex("???") == "#000000"
